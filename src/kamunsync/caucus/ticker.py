"""One-second tick source built on loop.call_later."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from kamunsync.errors import InvalidStateError


class PeriodicTicker:
    """
    Calls `callback` every `interval` seconds while active.

    At most one TimerHandle is outstanding; the next one is registered only
    after the callback returns and only if the ticker is still active.
    """

    def __init__(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        self._callback = callback
        self.interval = interval
        self._handle: Optional[asyncio.TimerHandle] = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        self._active = True
        if self._handle is None:
            self._schedule()

    def stop(self) -> None:
        self._active = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            self._active = False
            raise InvalidStateError("Ticker requires a running event loop", cause=exc) from exc
        self._handle = loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if not self._active:
            return
        self._callback()
        if self._active and self._handle is None:
            self._schedule()
