"""Caucus timers and the general speakers list."""

from __future__ import annotations

from .cues import CueKind, CueSink, SilentCueSink, emit_safely
from .engine import CaucusTimerEngine, TimerKind
from .speakers import SpeakersList
from .ticker import PeriodicTicker
from .timer import CountdownTimer, ModeratedTimer, TimerState

__all__ = [
    "CaucusTimerEngine",
    "TimerKind",
    "CountdownTimer",
    "ModeratedTimer",
    "TimerState",
    "PeriodicTicker",
    "SpeakersList",
    "CueKind",
    "CueSink",
    "SilentCueSink",
    "emit_safely",
]
