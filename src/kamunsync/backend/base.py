"""Backend contract shared by cache-only and remote-backed persistence."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from kamunsync.cache import PersistentCache, cache_key
from kamunsync.cache.store import KEY_PREFIX
from kamunsync.remote.base import EventCallback, Filters, Row, Subscription, matches

if TYPE_CHECKING:
    from kamunsync.sync.entities import EntitySpec

logger = logging.getLogger(__name__)


class Backend(ABC):
    """
    Persistence target for every SyncEngine in the process.

    Chosen once at startup (see select_backend) and never switched. Rows,
    matches and patches passed in are already encoded (JSON-safe).

    Errors:
        Write methods raise KamunSyncError subclasses; load never raises.
    """

    realtime: bool = False

    def __init__(self, cache: PersistentCache) -> None:
        self.cache = cache

    # ----------------------------
    # Contract
    # ----------------------------
    @abstractmethod
    async def load(self, spec: EntitySpec[Any], session_id: Optional[str]) -> Optional[list[Row]]:
        """Return stored rows, or None when nothing is stored anywhere."""

    @abstractmethod
    async def insert(
        self,
        spec: EntitySpec[Any],
        session_id: Optional[str],
        rows: list[Row],
    ) -> list[Row]:
        """Persist new rows; return them as stored."""

    @abstractmethod
    async def update(
        self,
        spec: EntitySpec[Any],
        session_id: Optional[str],
        match: Filters,
        patch: Row,
    ) -> None: ...

    @abstractmethod
    async def delete(
        self,
        spec: EntitySpec[Any],
        session_id: Optional[str],
        match: Filters,
    ) -> None: ...

    def subscribe(
        self,
        spec: EntitySpec[Any],
        session_id: Optional[str],
        on_event: EventCallback,
    ) -> Subscription:
        """Open a change channel. Backends without realtime return an inert handle."""
        return Subscription()

    def forget_session(self, session_id: str) -> None:
        """Drop every cached collection scoped to session_id."""
        suffix = f":{session_id}"
        for key in self.cache.keys():
            if key.startswith(f"{KEY_PREFIX}:") and key.endswith(suffix):
                self.cache.remove(key)
        logger.debug("Dropped cached collections for session %s", session_id)

    def cache_collection(
        self,
        spec: EntitySpec[Any],
        session_id: Optional[str],
        rows: list[Row],
    ) -> None:
        """Replace the cached copy of a collection."""
        key = self._key(spec, session_id)
        if key is None:
            return
        self.cache.set(key, json.dumps(rows, default=str))

    async def close(self) -> None:
        return None

    # ----------------------------
    # Cache helpers
    # ----------------------------
    def _key(self, spec: EntitySpec[Any], session_id: Optional[str]) -> Optional[str]:
        if not spec.scoped:
            return cache_key(spec.kind)
        if session_id is None:
            return None
        return cache_key(spec.kind, session_id)

    def _read_cached(
        self,
        spec: EntitySpec[Any],
        session_id: Optional[str],
    ) -> Optional[list[Row]]:
        key = self._key(spec, session_id)
        if key is None:
            return None
        raw = self.cache.get(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring corrupt cache entry %s: %s", key, exc)
            return None
        if not isinstance(data, list):
            logger.warning("Ignoring cache entry %s: expected a list", key)
            return None
        return [row for row in data if isinstance(row, dict)]

    def _cache_insert(self, spec: EntitySpec[Any], session_id: Optional[str], rows: list[Row]) -> None:
        current = self._read_cached(spec, session_id) or []
        by_id = {row.get("id"): i for i, row in enumerate(current)}
        for row in rows:
            index = by_id.get(row.get("id"))
            if index is None:
                current.append(dict(row))
            else:
                current[index] = dict(row)
        self.cache_collection(spec, session_id, current)

    def _cache_update(
        self,
        spec: EntitySpec[Any],
        session_id: Optional[str],
        match: Filters,
        patch: Row,
    ) -> None:
        current = self._read_cached(spec, session_id)
        if current is None:
            return
        for row in current:
            if matches(row, match):
                row.update(patch)
        self.cache_collection(spec, session_id, current)

    def _cache_delete(self, spec: EntitySpec[Any], session_id: Optional[str], match: Filters) -> None:
        current = self._read_cached(spec, session_id)
        if current is None:
            return
        kept = [row for row in current if not matches(row, match)]
        self.cache_collection(spec, session_id, kept)


def order_rows(spec: EntitySpec[Any], rows: list[Row]) -> list[Row]:
    """Apply a spec's ordering and limit to rows read from the cache."""
    if spec.order_by is not None:
        column = spec.order_by
        present = [r for r in rows if r.get(column) is not None]
        missing = [r for r in rows if r.get(column) is None]
        present.sort(key=lambda r: r[column], reverse=spec.descending)
        rows = present + missing
    if spec.limit is not None:
        rows = rows[: spec.limit]
    return rows
