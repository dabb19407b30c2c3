"""Pure countdown state machines driven by explicit ticks."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from kamunsync.errors import InvalidStateError, ValidationError

from .cues import CueKind

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"


class CountdownTimer:
    """
    Whole-second countdown.

    Invariants:
        - 0 <= remaining <= duration
        - state is RUNNING only while remaining > 0
        - the warning cue fires at most once per run, when remaining first
          drops to the threshold
        - the expiry cue fires exactly once, on the RUNNING -> EXPIRED edge

    tick() only computes the next state and returns the cues to emit; the
    caller schedules ticks and plays cues.
    """

    def __init__(self, duration: int, *, warning_threshold: Optional[int] = None) -> None:
        _check_duration(duration)
        self._duration = duration
        self._remaining = duration
        self._state = TimerState.IDLE
        self._warning_threshold = warning_threshold
        self._warned = False

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is TimerState.RUNNING

    @property
    def warning_threshold(self) -> Optional[int]:
        return self._warning_threshold

    def start(self) -> bool:
        """Start or resume. Returns True if the timer moved to RUNNING."""
        if self._state in (TimerState.RUNNING, TimerState.EXPIRED):
            return False
        self._state = TimerState.RUNNING
        return True

    def pause(self) -> bool:
        if self._state is not TimerState.RUNNING:
            return False
        self._state = TimerState.PAUSED
        return True

    def reset(self) -> None:
        self._remaining = self._duration
        self._state = TimerState.IDLE
        self._warned = False

    def set_duration(self, seconds: int) -> None:
        """Change the configured duration; the timer returns to IDLE."""
        if self.is_running:
            raise InvalidStateError("Cannot change duration while the timer is running")
        _check_duration(seconds)
        self._duration = seconds
        self.reset()

    def tick(self) -> list[CueKind]:
        if self._state is not TimerState.RUNNING:
            return []

        previous = self._remaining
        self._remaining = max(previous - 1, 0)
        cues: list[CueKind] = []

        threshold = self._warning_threshold
        if threshold is not None and not self._warned and previous > threshold >= self._remaining:
            self._warned = True
            cues.append(CueKind.WARNING)

        if self._remaining == 0:
            self._state = TimerState.EXPIRED
            cues.append(CueKind.EXPIRY)
        return cues


class ModeratedTimer(CountdownTimer):
    """
    Countdown with a per-speaker sub-timer.

    The speaker clock runs only while the parent runs. When it reaches zero it
    silently restarts at the per-speaker duration.
    """

    def __init__(
        self,
        duration: int,
        *,
        speaker_duration: int,
        warning_threshold: Optional[int] = None,
    ) -> None:
        super().__init__(duration, warning_threshold=warning_threshold)
        _check_duration(speaker_duration)
        self._speaker_duration = speaker_duration
        self._speaker_remaining = speaker_duration
        self.speaker_rollovers = 0

    @property
    def speaker_duration(self) -> int:
        return self._speaker_duration

    @property
    def speaker_remaining(self) -> int:
        return self._speaker_remaining

    def reset(self) -> None:
        super().reset()
        self._speaker_remaining = self._speaker_duration
        self.speaker_rollovers = 0

    def set_speaker_duration(self, seconds: int) -> None:
        if self.is_running:
            raise InvalidStateError("Cannot change speaker time while the timer is running")
        _check_duration(seconds)
        self._speaker_duration = seconds
        self.reset()

    def next_speaker(self) -> None:
        self._speaker_remaining = self._speaker_duration

    def tick(self) -> list[CueKind]:
        if self._state is not TimerState.RUNNING:
            return []
        cues = super().tick()
        self._speaker_remaining -= 1
        if self._speaker_remaining <= 0:
            self._speaker_remaining = self._speaker_duration
            self.speaker_rollovers += 1
        return cues


def _check_duration(seconds: int) -> None:
    if not isinstance(seconds, int) or isinstance(seconds, bool) or seconds <= 0:
        raise ValidationError("Duration must be a positive whole number of seconds",
                              details={"duration": seconds})
