"""Audio cue sink contract."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class CueKind(str, Enum):
    WARNING = "warning"
    EXPIRY = "expiry"


class CueSink(Protocol):
    def emit_cue(self, kind: CueKind) -> None: ...


class SilentCueSink:
    """Cue sink that plays nothing."""

    def emit_cue(self, kind: CueKind) -> None:
        logger.debug("cue %s", kind.value)


def emit_safely(sink: CueSink, kind: CueKind) -> None:
    """Emit a cue; sink failures are logged and never reach the timer."""
    try:
        sink.emit_cue(kind)
    except Exception:
        logger.exception("Cue sink failed for %s", kind.value)
