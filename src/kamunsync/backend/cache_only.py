"""Backend that persists every collection to the local cache only."""

from __future__ import annotations

import logging
from typing import Any, Optional

from kamunsync.remote.base import Filters, Row

from .base import Backend, order_rows

logger = logging.getLogger(__name__)


class CacheOnly(Backend):
    """
    Local-only persistence.

    Each write is a read-modify-write of the whole cached collection, so the
    cache always holds the latest state as one JSON list per collection.
    """

    realtime = False

    async def load(self, spec: Any, session_id: Optional[str]) -> Optional[list[Row]]:
        rows = self._read_cached(spec, session_id)
        if rows is None:
            return None
        return order_rows(spec, rows)

    async def insert(self, spec: Any, session_id: Optional[str], rows: list[Row]) -> list[Row]:
        self._cache_insert(spec, session_id, rows)
        return [dict(row) for row in rows]

    async def update(
        self,
        spec: Any,
        session_id: Optional[str],
        match: Filters,
        patch: Row,
    ) -> None:
        self._cache_update(spec, session_id, match, patch)

    async def delete(self, spec: Any, session_id: Optional[str], match: Filters) -> None:
        self._cache_delete(spec, session_id, match)
