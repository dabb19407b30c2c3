"""Process-local RemoteStore that broadcasts change events to subscribers."""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass
from typing import Optional

from kamunsync.errors import ConflictError, InvalidArgumentError
from kamunsync.models import ChangeEvent, ChangeKind
from kamunsync.util.time import now_utc, to_rfc3339

from .base import EventCallback, Filters, Row, Subscription, event_matches, matches
from .tables import SESSION_FK, SESSION_SCOPED_TABLES, SESSIONS_TABLE

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Listener:
    table: str
    filters: Filters
    callback: EventCallback
    subscription: Subscription


class InMemoryRemoteStore:
    """
    Shared in-memory store with change notifications.

    Several clients (each with its own SyncEngines) can share one instance to
    exercise multi-client behaviour without a network. Rows are copied in and
    out so callers never alias stored state.

    Notes:
        - insert assigns created_at when the row has none
        - deleting a session removes every scoped row and notifies for each
        - events are delivered on the next loop iteration, never re-entrantly
    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, Row]] = {}
        self._listeners: list[_Listener] = []

    # ----------------------------
    # RemoteStore API
    # ----------------------------
    async def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        rows = [copy.deepcopy(r) for r in self._rows(table).values() if matches(r, filters)]
        if order_by is not None:
            rows.sort(key=lambda r: _sort_key(r.get(order_by)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def insert(self, table: str, records: list[Row]) -> list[Row]:
        rows = self._rows(table)
        stored: list[Row] = []
        for record in records:
            row_id = record.get("id")
            if not isinstance(row_id, str) or not row_id:
                raise InvalidArgumentError("Row id is required", details={"table": table})
            if row_id in rows:
                raise ConflictError(
                    "Duplicate row id",
                    details={"table": table, "id": row_id},
                )
            row = copy.deepcopy(record)
            if not row.get("created_at"):
                row["created_at"] = to_rfc3339(now_utc())
            rows[row_id] = row
            stored.append(copy.deepcopy(row))

        for row in stored:
            self._notify(ChangeKind.INSERT, table, row)
        return stored

    async def update(self, table: str, filters: Filters, patch: Row) -> list[Row]:
        if "id" in patch:
            raise InvalidArgumentError("Row id cannot be patched", details={"table": table})
        updated: list[Row] = []
        for row in self._rows(table).values():
            if matches(row, filters):
                row.update(copy.deepcopy(patch))
                updated.append(copy.deepcopy(row))

        for row in updated:
            self._notify(ChangeKind.UPDATE, table, row)
        return updated

    async def delete(self, table: str, filters: Filters) -> list[Row]:
        rows = self._rows(table)
        removed = [row for row in rows.values() if matches(row, filters)]
        for row in removed:
            del rows[row["id"]]

        cascaded: list[tuple[str, Row]] = []
        if table == SESSIONS_TABLE:
            for row in removed:
                cascaded.extend(self._cascade(row["id"]))

        for row in removed:
            self._notify(ChangeKind.DELETE, table, row)
        for child_table, child in cascaded:
            self._notify(ChangeKind.DELETE, child_table, child)
        return [copy.deepcopy(r) for r in removed]

    def subscribe_changes(
        self,
        table: str,
        filters: Filters,
        on_event: EventCallback,
    ) -> Subscription:
        listener: Optional[_Listener] = None

        def _detach() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        subscription = Subscription(on_close=_detach)
        listener = _Listener(
            table=table,
            filters=dict(filters),
            callback=on_event,
            subscription=subscription,
        )
        self._listeners.append(listener)
        logger.debug("Subscribed %s to %s %s", subscription.subscription_id, table, filters)
        return subscription

    async def close(self) -> None:
        for listener in list(self._listeners):
            listener.subscription.close()

    # ----------------------------
    # Internals
    # ----------------------------
    def _rows(self, table: str) -> dict[str, Row]:
        return self._tables.setdefault(table, {})

    def _cascade(self, session_id: str) -> list[tuple[str, Row]]:
        removed: list[tuple[str, Row]] = []
        for child_table in SESSION_SCOPED_TABLES:
            rows = self._rows(child_table)
            for row_id in [k for k, r in rows.items() if r.get(SESSION_FK) == session_id]:
                removed.append((child_table, rows.pop(row_id)))
        return removed

    def _notify(self, kind: ChangeKind, table: str, row: Row) -> None:
        session_id = row.get(SESSION_FK)
        record = row if kind is not ChangeKind.DELETE else {"id": row["id"]}
        event = ChangeEvent(
            kind=kind,
            table=table,
            record=copy.deepcopy(record),
            session_id=session_id if isinstance(session_id, str) else None,
        )
        for listener in list(self._listeners):
            if listener.table != table or not event_matches(event, listener.filters):
                continue
            self._deliver(listener, event)

    def _deliver(self, listener: _Listener, event: ChangeEvent) -> None:
        def _fire() -> None:
            if listener.subscription.closed:
                return
            listener.callback(event)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _fire()
            return
        loop.call_soon(_fire)


def _sort_key(value: object) -> tuple[int, object]:
    # None sorts first; mixed types fall back to their string form
    if value is None:
        return (0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    return (2, str(value))
