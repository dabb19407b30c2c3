"""Backend that writes through to the remote store and mirrors to the cache."""

from __future__ import annotations

import logging
from typing import Any, Optional

from kamunsync.cache import PersistentCache
from kamunsync.errors import KamunSyncError
from kamunsync.remote.base import EventCallback, Filters, RemoteStore, Row, Subscription
from kamunsync.remote.tables import SESSION_FK

from .base import Backend, order_rows

logger = logging.getLogger(__name__)


class RemoteBacked(Backend):
    """
    Remote-first persistence with the cache as read fallback.

    Notes:
        - load falls back to the cached copy when the remote fails
        - successful writes are mirrored into the cache
        - remote write failures propagate to the caller (the SyncEngine turns
          them into RemoteWriteFailure notices)
    """

    realtime = True

    def __init__(self, remote: RemoteStore, cache: PersistentCache) -> None:
        super().__init__(cache)
        self.remote = remote

    async def load(self, spec: Any, session_id: Optional[str]) -> Optional[list[Row]]:
        try:
            rows = await self.remote.select(
                spec.table,
                self._filters(spec, session_id),
                order_by=spec.order_by,
                descending=spec.descending,
                limit=spec.limit,
            )
        except KamunSyncError as exc:
            logger.warning(
                "Remote load of %s failed, using cached copy: %s",
                spec.table,
                exc,
            )
            cached = self._read_cached(spec, session_id)
            return None if cached is None else order_rows(spec, cached)

        self.cache_collection(spec, session_id, rows)
        return rows

    async def insert(self, spec: Any, session_id: Optional[str], rows: list[Row]) -> list[Row]:
        stored = await self.remote.insert(spec.table, rows)
        self._cache_insert(spec, session_id, stored)
        return stored

    async def update(
        self,
        spec: Any,
        session_id: Optional[str],
        match: Filters,
        patch: Row,
    ) -> None:
        await self.remote.update(spec.table, self._filters(spec, session_id, match), patch)
        self._cache_update(spec, session_id, match, patch)

    async def delete(self, spec: Any, session_id: Optional[str], match: Filters) -> None:
        await self.remote.delete(spec.table, self._filters(spec, session_id, match))
        self._cache_delete(spec, session_id, match)

    def subscribe(
        self,
        spec: Any,
        session_id: Optional[str],
        on_event: EventCallback,
    ) -> Subscription:
        return self.remote.subscribe_changes(
            spec.table,
            self._filters(spec, session_id),
            on_event,
        )

    async def close(self) -> None:
        await self.remote.close()

    def _filters(
        self,
        spec: Any,
        session_id: Optional[str],
        match: Optional[Filters] = None,
    ) -> Filters:
        filters = dict(match or {})
        if spec.scoped and session_id is not None:
            filters[SESSION_FK] = session_id
        return filters
