"""Generic optimistic sync engine for one entity collection."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from kamunsync.backend import Backend
from kamunsync.errors import InvalidStateError, RemoteWriteFailure
from kamunsync.models import ChangeEvent, ChangeKind
from kamunsync.remote.base import Row, Subscription
from kamunsync.util.ids import new_record_id

from .debounce import DebounceTable
from .entities import EntitySpec
from .notices import ErrorChannel

logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[[list[Any]], None]

_MISSING = object()


class SyncEngine(Generic[T]):
    """
    Keeps one collection consistent between memory, the backend and peers.

    Mutations apply to memory synchronously and persist in a background task.
    Persistence runs in call order (one FIFO write lock per engine) and waits
    until the collection has finished loading. Failures never raise to the
    caller: they are reported on the error channel and the optimistic state
    is kept.

    Inbound change events are applied by id, so replaying an event is
    harmless: inserts and updates replace the whole item (upserting unknown
    ids), deletes of unknown ids do nothing.
    """

    def __init__(
        self,
        spec: EntitySpec[T],
        backend: Backend,
        *,
        errors: Optional[ErrorChannel] = None,
        debounce_ms: int = 500,
    ) -> None:
        self.spec = spec
        self.backend = backend
        self.errors = errors if errors is not None else ErrorChannel()
        self.debounce_ms = debounce_ms

        self._items: list[T] = []
        self._session_id: Optional[str] = None
        self._loaded = asyncio.Event()
        self._write_lock = asyncio.Lock()
        self._generation = 0
        self._subscription: Optional[Subscription] = None
        self._debounce = DebounceTable()
        self._pending: set[asyncio.Task[bool]] = set()
        self._listeners: list[Listener] = []

    # ----------------------------
    # State
    # ----------------------------
    @property
    def items(self) -> list[T]:
        return list(self._items)

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def loaded(self) -> bool:
        return self._loaded.is_set()

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    @property
    def pending_debounced(self) -> int:
        return len(self._debounce)

    def find(self, match: dict[str, Any]) -> list[T]:
        return [item for item in self._items if _matches(item, match)]

    def get(self, item_id: str) -> Optional[T]:
        for item in self._items:
            if getattr(item, "id", None) == item_id:
                return item
        return None

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call listener with the current items after every change."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ----------------------------
    # Loading and subscription
    # ----------------------------
    async def load(self, session_id: Optional[str]) -> None:
        """
        Load the collection for session_id. Never raises.

        A newer call supersedes an older one still in flight; the older
        result is dropped. Items of the previous binding are dropped before
        the backend is awaited, so mutations issued while loading match
        nothing.
        """
        self._generation += 1
        generation = self._generation
        self._session_id = session_id
        self._loaded.clear()
        self._items = []
        self._notify()

        if self.spec.scoped and session_id is None:
            self._loaded.set()
            return

        rows = await self.backend.load(self.spec, session_id)
        if generation != self._generation:
            logger.debug("Dropping superseded load of %s", self.spec.kind)
            return

        if rows is None:
            items = self.spec.seed(session_id)
            if items:
                logger.info("Seeding %d default %s items", len(items), self.spec.kind)
                self._mirror(session_id, items)
        else:
            items = self._decode_rows(rows)

        self._items = items
        self._loaded.set()
        self._notify()

    def subscribe(self, session_id: Optional[str] = None) -> None:
        """Open the change channel for a session (remote-backed mode only)."""
        sid = session_id if session_id is not None else self._session_id
        self._close_subscription()
        if not self.backend.realtime:
            return
        if self.spec.scoped and sid is None:
            return
        self._subscription = self.backend.subscribe(self.spec, sid, self._on_event)
        logger.debug("Subscribed %s for session %s", self.spec.kind, sid)

    async def bind(self, session_id: Optional[str]) -> None:
        """Tear down the current binding, then load and subscribe for session_id."""
        self.close()
        await self.load(session_id)
        self.subscribe(session_id)

    def close(self) -> None:
        """Release the subscription and cancel pending debounced writes."""
        cancelled = self._debounce.cancel_all()
        if cancelled:
            logger.debug("Cancelled %d pending debounced %s writes", cancelled, self.spec.kind)
        self._close_subscription()

    async def drain(self) -> None:
        """Wait until every queued persistence task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def flush_debounced(self) -> None:
        """Fire pending debounced writes now and wait for them."""
        self._debounce.flush()
        await self.drain()

    # ----------------------------
    # Mutations
    # ----------------------------
    def mutate(self, match: dict[str, Any], patch: dict[str, Any]) -> Optional[asyncio.Task[bool]]:
        """
        Patch every item matching `match`, then persist the patch.

        Returns:
            The persistence task (resolving to True on success), or None when
            nothing matched.
        """
        _require_loop()
        if not self._apply_patch(match, patch):
            logger.debug("mutate on %s matched nothing: %s", self.spec.kind, match)
            return None

        sid = self._session_id
        enc_match = self.spec.encode_patch(match)
        enc_patch = self.spec.encode_patch(patch)
        return self._schedule(
            "update",
            sid,
            lambda: self.backend.update(self.spec, sid, enc_match, enc_patch),
        )

    def insert(self, item: T) -> Optional[asyncio.Task[bool]]:
        """Append an item (assigning an id when empty) and persist it."""
        _require_loop()
        if not getattr(item, "id", None):
            item = replace(item, id=new_record_id())
        if self.spec.scoped and self._session_id and not getattr(item, "session_id", None):
            item = replace(item, session_id=self._session_id)

        self._upsert(item)
        self._notify()

        sid = self._session_id
        row = self.spec.encode(item)

        def _adopt(stored: list[Row]) -> None:
            if sid != self._session_id:
                return
            for stored_row in stored:
                self._upsert(self.spec.decode(stored_row))
            self._notify()

        return self._schedule(
            "insert",
            sid,
            lambda: self.backend.insert(self.spec, sid, [row]),
            _adopt,
        )

    def remove(self, item_id: str) -> Optional[asyncio.Task[bool]]:
        return self.remove_where({"id": item_id})

    def remove_where(self, match: dict[str, Any]) -> Optional[asyncio.Task[bool]]:
        _require_loop()
        before = len(self._items)
        self._items = [item for item in self._items if not _matches(item, match)]
        if len(self._items) == before:
            return None
        self._notify()

        sid = self._session_id
        enc_match = self.spec.encode_patch(match)
        return self._schedule(
            "delete",
            sid,
            lambda: self.backend.delete(self.spec, sid, enc_match),
        )

    def debounced_mutate(
        self,
        match: dict[str, Any],
        field: str,
        value: Any,
        delay_ms: Optional[int] = None,
    ) -> None:
        """
        Patch memory now; persist only the last value of a quiet period.

        Pending writes are keyed by (match, field), so edits to different
        targets never cancel each other.
        """
        _require_loop()
        if not self._apply_patch(match, {field: value}):
            return

        sid = self._session_id
        enc_match = self.spec.encode_patch(match)
        enc_patch = self.spec.encode_patch({field: value})
        key = (json.dumps(enc_match, sort_keys=True, default=str), field)

        def _fire() -> None:
            self._schedule(
                "update",
                sid,
                lambda: self.backend.update(self.spec, sid, enc_match, enc_patch),
            )

        delay = self.debounce_ms if delay_ms is None else delay_ms
        self._debounce.schedule(key, delay, _fire)

    # ----------------------------
    # Internals
    # ----------------------------
    def _schedule(
        self,
        operation: str,
        session_id: Optional[str],
        factory: Callable[[], Awaitable[Any]],
        on_success: Optional[Callable[[Any], None]] = None,
    ) -> Optional[asyncio.Task[bool]]:
        loop = _require_loop()
        if self.spec.scoped and session_id is None:
            logger.debug("No session bound; %s on %s kept in memory only", operation, self.spec.kind)
            return None

        task = loop.create_task(self._persist(operation, factory, on_success))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _persist(
        self,
        operation: str,
        factory: Callable[[], Awaitable[Any]],
        on_success: Optional[Callable[[Any], None]],
    ) -> bool:
        async with self._write_lock:
            await self._loaded.wait()
            try:
                result = await factory()
            except Exception as exc:
                self.errors.report(
                    RemoteWriteFailure(
                        f"Failed to persist {operation} on {self.spec.table}: {exc}",
                        details={"table": self.spec.table, "operation": operation},
                        cause=exc,
                    )
                )
                return False
            if on_success is not None:
                on_success(result)
            return True

    def _on_event(self, event: ChangeEvent) -> None:
        if not self.subscribed or event.table != self.spec.table:
            return

        if self.spec.scoped:
            event_sid = event.session_id or event.record.get("session_id")
            if event_sid is not None and event_sid != self._session_id:
                logger.debug("Ignoring %s event for session %s", self.spec.kind, event_sid)
                return

        if event.kind is ChangeKind.DELETE:
            item_id = event.record_id
            before = len(self._items)
            self._items = [i for i in self._items if getattr(i, "id", None) != item_id]
            changed = len(self._items) != before
        else:
            try:
                item = self.spec.decode(event.record)
            except (TypeError, ValueError) as exc:
                logger.warning("Dropping undecodable %s event: %s", self.spec.kind, exc)
                return
            self._upsert(item)
            changed = True

        if changed:
            logger.debug("Applied %s %s event", event.kind.value, self.spec.kind)
            self._mirror(self._session_id, self._items)
            self._notify()

    def _apply_patch(self, match: dict[str, Any], patch: dict[str, Any]) -> bool:
        values = self.spec.decode_patch(self.spec.encode_patch(patch))
        changed = False
        for index, item in enumerate(self._items):
            if _matches(item, match):
                self._items[index] = replace(item, **values)
                changed = True
        if changed:
            self._notify()
        return changed

    def _upsert(self, item: T) -> None:
        item_id = getattr(item, "id", None)
        for index, existing in enumerate(self._items):
            if getattr(existing, "id", None) == item_id:
                self._items[index] = item
                return
        self._items.append(item)

    def _decode_rows(self, rows: list[Row]) -> list[T]:
        items: list[T] = []
        for row in rows:
            try:
                items.append(self.spec.decode(row))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping undecodable %s row: %s", self.spec.kind, exc)
        return items

    def _mirror(self, session_id: Optional[str], items: list[T]) -> None:
        try:
            self.backend.cache_collection(
                self.spec,
                session_id,
                [self.spec.encode(item) for item in items],
            )
        except OSError as exc:
            logger.warning("Failed to update cached %s: %s", self.spec.kind, exc)

    def _close_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def _notify(self) -> None:
        snapshot = self.items
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("%s listener failed", self.spec.kind)


def _matches(item: Any, match: dict[str, Any]) -> bool:
    return all(getattr(item, key, _MISSING) == value for key, value in match.items())


def _require_loop() -> asyncio.AbstractEventLoop:
    try:
        return asyncio.get_running_loop()
    except RuntimeError as exc:
        raise InvalidStateError("SyncEngine writes require a running event loop", cause=exc) from exc
