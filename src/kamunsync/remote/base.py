"""RemoteStore contract and change-channel subscription handle."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol

from kamunsync.models import ChangeEvent
from kamunsync.util.ids import new_subscription_id

logger = logging.getLogger(__name__)

Filters = dict[str, Any]
Row = dict[str, Any]
EventCallback = Callable[[ChangeEvent], None]


class Subscription:
    """
    Handle for an open change channel.

    close() is idempotent; once closed, the owner guarantees no further
    callbacks are delivered through this handle.
    """

    def __init__(self, on_close: Optional[Callable[[], None]] = None) -> None:
        self.subscription_id = new_subscription_id()
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close()
            self._on_close = None


class RemoteStore(Protocol):
    """
    Network-backed structured store.

    Filters are equality matches on column values. Every write returns the
    affected rows as stored (including server-assigned fields).
    """

    async def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]: ...

    async def insert(self, table: str, records: list[Row]) -> list[Row]: ...

    async def update(self, table: str, filters: Filters, patch: Row) -> list[Row]: ...

    async def delete(self, table: str, filters: Filters) -> list[Row]: ...

    def subscribe_changes(
        self,
        table: str,
        filters: Filters,
        on_event: EventCallback,
    ) -> Subscription: ...

    async def close(self) -> None: ...


def matches(row: Row, filters: Optional[Filters]) -> bool:
    """Return True if every filter column equals the row's value."""
    if not filters:
        return True
    return all(row.get(column) == value for column, value in filters.items())


def event_matches(event: ChangeEvent, filters: Optional[Filters]) -> bool:
    """
    Return True if an event belongs to a subscription's filters.

    Delete events may carry only the row id, so session_id falls back to the
    event envelope.
    """
    if not filters:
        return True
    for column, value in filters.items():
        if column in event.record:
            if event.record[column] != value:
                return False
        elif column == "session_id" and event.session_id is not None:
            if event.session_id != value:
                return False
        elif event.kind.value != "delete":
            return False
    return True
