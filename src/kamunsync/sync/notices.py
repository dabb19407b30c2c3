"""Non-blocking error notices for failed background writes."""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable

from kamunsync.errors import RemoteWriteFailure

logger = logging.getLogger(__name__)

NoticeListener = Callable[[RemoteWriteFailure], None]


class ErrorChannel:
    """
    Collects RemoteWriteFailure notices.

    Listeners are called synchronously; a failing listener is logged and does
    not stop delivery to the others.
    """

    def __init__(self, maxlen: int = 50) -> None:
        self._listeners: list[NoticeListener] = []
        self.recent: deque[RemoteWriteFailure] = deque(maxlen=maxlen)

    def add_listener(self, listener: NoticeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def report(self, failure: RemoteWriteFailure) -> None:
        logger.warning("%s (%s)", failure, failure.details)
        self.recent.append(failure)
        for listener in list(self._listeners):
            try:
                listener(failure)
            except Exception:
                logger.exception("Error notice listener failed")
