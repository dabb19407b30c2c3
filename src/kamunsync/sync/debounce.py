"""Per-key trailing debounce on the event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Hashable

logger = logging.getLogger(__name__)


class DebounceTable:
    """
    Cancel-on-supersede timers keyed by logical target.

    Scheduling a key that is already pending cancels the earlier timer, so
    only the last callback of a quiet period runs.
    """

    def __init__(self) -> None:
        self._pending: dict[Hashable, tuple[asyncio.TimerHandle, Callable[[], None]]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._pending

    def schedule(self, key: Hashable, delay_ms: int, callback: Callable[[], None]) -> None:
        loop = asyncio.get_running_loop()
        self.cancel(key)

        def _fire() -> None:
            self._pending.pop(key, None)
            callback()

        handle = loop.call_later(max(delay_ms, 0) / 1000.0, _fire)
        self._pending[key] = (handle, callback)
        logger.debug("Debounce scheduled for %s in %d ms", key, delay_ms)

    def cancel(self, key: Hashable) -> bool:
        entry = self._pending.pop(key, None)
        if entry is None:
            return False
        entry[0].cancel()
        return True

    def cancel_all(self) -> int:
        count = len(self._pending)
        for handle, _ in self._pending.values():
            handle.cancel()
        self._pending.clear()
        return count

    def flush(self) -> int:
        """Run every pending callback now, in scheduling order."""
        entries = list(self._pending.values())
        self._pending.clear()
        for handle, callback in entries:
            handle.cancel()
            callback()
        return len(entries)
