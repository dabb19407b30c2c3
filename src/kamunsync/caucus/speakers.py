"""General speakers list with its own speaking-time countdown."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from kamunsync.errors import ValidationError
from kamunsync.roster import RosterService

from .cues import CueKind, CueSink, SilentCueSink, emit_safely
from .ticker import PeriodicTicker
from .timer import CountdownTimer, TimerState

logger = logging.getLogger(__name__)

DEFAULT_SPEAKING_SECONDS = 90
SPEAKER_WARNING_SECONDS = 10
AUTO_ADVANCE_SECONDS = 1.5


class SpeakersList:
    """
    Queue of present delegations waiting to speak.

    The current speaker is marked as having spoken when their time runs out
    or when they yield. When time runs out with delegations still queued, the
    chair is yielded automatically after `advance_delay` seconds.
    """

    def __init__(
        self,
        roster: RosterService,
        *,
        cues: Optional[CueSink] = None,
        speaking_time: int = DEFAULT_SPEAKING_SECONDS,
        tick_interval: float = 1.0,
        advance_delay: float = AUTO_ADVANCE_SECONDS,
    ) -> None:
        self.roster = roster
        self.advance_delay = advance_delay
        self._advance_handle: Optional[asyncio.TimerHandle] = None
        self.cues: CueSink = cues if cues is not None else SilentCueSink()
        self.timer = CountdownTimer(speaking_time, warning_threshold=SPEAKER_WARNING_SECONDS)
        self._queue: list[str] = []
        self._current: Optional[str] = None
        self._ticker = PeriodicTicker(self.tick, tick_interval)

    @property
    def queue(self) -> list[str]:
        return list(self._queue)

    @property
    def advance_pending(self) -> bool:
        return self._advance_handle is not None

    @property
    def current_speaker(self) -> Optional[str]:
        return self._current

    def add(self, country_name: str) -> bool:
        """Queue a present delegation. Returns False if already queued or speaking."""
        entry = self.roster.get(country_name)
        if entry is None or not entry.is_present:
            raise ValidationError(
                f"{country_name} is not present",
                details={"country_name": country_name},
            )
        if country_name in self._queue or country_name == self._current:
            return False
        self._queue.append(country_name)
        return True

    def remove(self, country_name: str) -> bool:
        if country_name not in self._queue:
            return False
        self._queue.remove(country_name)
        return True

    def start(self) -> bool:
        """Start (or resume) the current speaker, calling the next one if needed."""
        self._cancel_advance()
        if self._current is None:
            if not self._queue:
                return False
            self._current = self._queue.pop(0)
            self.timer.reset()
        if not self.timer.start():
            return False
        self._ticker.start()
        return True

    def pause(self) -> None:
        self._cancel_advance()
        self.timer.pause()
        self._ticker.stop()

    def reset(self) -> None:
        self._cancel_advance()
        self._ticker.stop()
        self.timer.reset()

    def set_speaking_time(self, seconds: int) -> None:
        self.timer.set_duration(seconds)

    def yield_to_chair(self) -> Optional[str]:
        """Finish the current speaker and call the next. Returns the new speaker."""
        self._cancel_advance()
        self._ticker.stop()
        if self._current is not None:
            self.roster.mark_spoken(self._current)
        self.timer.reset()
        self._current = self._queue.pop(0) if self._queue else None
        return self._current

    def yield_to_questions(self) -> None:
        """Stop the clock; the speaker stays at the podium for questions."""
        self.pause()
        if self._current is not None:
            self.roster.mark_spoken(self._current)

    def tick(self) -> None:
        cues = self.timer.tick()
        for cue in cues:
            emit_safely(self.cues, cue)
        if self.timer.state is not TimerState.RUNNING:
            self._ticker.stop()
        if CueKind.EXPIRY in cues:
            if self._current is not None:
                logger.debug("%s ran out of time", self._current)
                self.roster.mark_spoken(self._current)
            if self._queue:
                self._schedule_advance()

    def close(self) -> None:
        self._cancel_advance()
        self._ticker.stop()

    def _schedule_advance(self) -> None:
        self._cancel_advance()
        loop = asyncio.get_running_loop()
        self._advance_handle = loop.call_later(self.advance_delay, self._auto_advance)

    def _auto_advance(self) -> None:
        self._advance_handle = None
        speaker = self.yield_to_chair()
        logger.debug("Chair yielded automatically; next speaker %s", speaker)

    def _cancel_advance(self) -> None:
        if self._advance_handle is not None:
            self._advance_handle.cancel()
            self._advance_handle = None
