"""CaucusTimerEngine: the three concurrent caucus countdowns."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from kamunsync.errors import ValidationError
from kamunsync.models import CaucusLogEntry, CaucusType, LogEntryType
from kamunsync.roster import RosterService
from kamunsync.sync import SyncEngine
from kamunsync.util.time import now_utc

from .cues import CueKind, CueSink, SilentCueSink, emit_safely
from .ticker import PeriodicTicker
from .timer import CountdownTimer, ModeratedTimer, TimerState

logger = logging.getLogger(__name__)

DEFAULT_MODERATED_SECONDS = 600
DEFAULT_SPEAKER_SECONDS = 60
DEFAULT_UNMODERATED_SECONDS = 300
DEFAULT_REPLY_SECONDS = 60

CAUCUS_WARNING_SECONDS = 30
REPLY_WARNING_SECONDS = 10

MODERATED_TOPIC_FALLBACK = "Moderated Caucus"
UNMODERATED_TOPIC = "Unmoderated Caucus"


class TimerKind(str, Enum):
    MODERATED = "moderated"
    UNMODERATED = "unmoderated"
    REPLY = "reply"


class CaucusTimerEngine:
    """
    Moderated, unmoderated and right-of-reply timers for one client.

    Each timer ticks independently through its own PeriodicTicker. Starting
    a timer appends an entry to the caucus log; cues go to the sink and a
    failing sink never disturbs the countdown. With a roster, right of reply
    is only granted to delegations marked present.
    """

    def __init__(
        self,
        caucus_log: SyncEngine[CaucusLogEntry],
        *,
        cues: Optional[CueSink] = None,
        roster: Optional[RosterService] = None,
        tick_interval: float = 1.0,
        moderated_duration: int = DEFAULT_MODERATED_SECONDS,
        speaker_duration: int = DEFAULT_SPEAKER_SECONDS,
        unmoderated_duration: int = DEFAULT_UNMODERATED_SECONDS,
        reply_duration: int = DEFAULT_REPLY_SECONDS,
    ) -> None:
        self.caucus_log = caucus_log
        self.roster = roster
        self.cues: CueSink = cues if cues is not None else SilentCueSink()

        self.moderated = ModeratedTimer(
            moderated_duration,
            speaker_duration=speaker_duration,
            warning_threshold=CAUCUS_WARNING_SECONDS,
        )
        self.unmoderated = CountdownTimer(
            unmoderated_duration,
            warning_threshold=CAUCUS_WARNING_SECONDS,
        )
        self.reply = CountdownTimer(reply_duration, warning_threshold=REPLY_WARNING_SECONDS)

        self.topic = ""
        self.reply_country: Optional[str] = None

        self._tickers: dict[TimerKind, PeriodicTicker] = {
            kind: PeriodicTicker(self._tick_callback(kind), tick_interval) for kind in TimerKind
        }
        self._listeners: list[Callable[[TimerKind], None]] = []

    # ----------------------------
    # Accessors
    # ----------------------------
    def timer(self, kind: TimerKind) -> CountdownTimer:
        if kind is TimerKind.MODERATED:
            return self.moderated
        if kind is TimerKind.UNMODERATED:
            return self.unmoderated
        return self.reply

    @property
    def caucus_history(self) -> list[CaucusLogEntry]:
        return self.caucus_log.find({"entry_type": LogEntryType.CAUCUS})

    @property
    def reply_history(self) -> list[CaucusLogEntry]:
        return self.caucus_log.find({"entry_type": LogEntryType.REPLY})

    def add_listener(self, listener: Callable[[TimerKind], None]) -> Callable[[], None]:
        """Call listener with the timer kind after every state change or tick."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ----------------------------
    # Starting
    # ----------------------------
    def start_moderated(self, topic: Optional[str] = None) -> bool:
        if topic is not None:
            self.topic = topic
        if not self.moderated.start():
            return False
        self._log_caucus(
            self.topic.strip() or MODERATED_TOPIC_FALLBACK,
            self.moderated.duration,
            CaucusType.MODERATED,
        )
        self._running(TimerKind.MODERATED)
        return True

    def start_unmoderated(self) -> bool:
        if not self.unmoderated.start():
            return False
        self._log_caucus(UNMODERATED_TOPIC, self.unmoderated.duration, CaucusType.UNMODERATED)
        self._running(TimerKind.UNMODERATED)
        return True

    def start_reply(self, country: Optional[str] = None) -> bool:
        """
        Start right of reply for `country` (or the previously chosen one).

        Raises:
            ValidationError: if no country has been chosen, or the roster
                does not list it as present.
        """
        candidate = self.reply_country if country is None else country.strip() or None
        if not candidate:
            raise ValidationError("Choose a country before starting right of reply")
        if self.roster is not None:
            entry = self.roster.get(candidate)
            if entry is None or not entry.is_present:
                raise ValidationError(
                    f"{candidate} is not present",
                    details={"country_name": candidate},
                )
        self.reply_country = candidate
        if not self.reply.start():
            return False
        self.caucus_log.insert(
            CaucusLogEntry(
                id="",
                session_id="",
                entry_type=LogEntryType.REPLY,
                timestamp=now_utc(),
                country=self.reply_country,
            )
        )
        self._running(TimerKind.REPLY)
        return True

    # ----------------------------
    # Control
    # ----------------------------
    def pause(self, kind: TimerKind) -> bool:
        paused = self.timer(kind).pause()
        self._tickers[kind].stop()
        if paused:
            self._changed(kind)
        return paused

    def reset(self, kind: TimerKind) -> None:
        self._tickers[kind].stop()
        self.timer(kind).reset()
        self._changed(kind)

    def set_duration(self, kind: TimerKind, seconds: int) -> None:
        """Change a configured duration. Raises InvalidStateError while running."""
        self.timer(kind).set_duration(seconds)
        self._changed(kind)

    def set_speaker_duration(self, seconds: int) -> None:
        self.moderated.set_speaker_duration(seconds)
        self._changed(TimerKind.MODERATED)

    def next_speaker(self) -> None:
        self.moderated.next_speaker()
        emit_safely(self.cues, CueKind.WARNING)
        self._changed(TimerKind.MODERATED)

    def tick(self, kind: TimerKind) -> list[CueKind]:
        """Advance one timer by one second and play its cues."""
        timer = self.timer(kind)
        cues = timer.tick()
        for cue in cues:
            emit_safely(self.cues, cue)
        if timer.state is not TimerState.RUNNING:
            self._tickers[kind].stop()
            if timer.state is TimerState.EXPIRED:
                logger.debug("%s timer expired", kind.value)
        self._changed(kind)
        return cues

    def clear_caucus_history(self) -> None:
        self.caucus_log.remove_where({"entry_type": LogEntryType.CAUCUS})

    def clear_reply_history(self) -> None:
        self.caucus_log.remove_where({"entry_type": LogEntryType.REPLY})

    def close(self) -> None:
        for ticker in self._tickers.values():
            ticker.stop()

    # ----------------------------
    # Internals
    # ----------------------------
    def _tick_callback(self, kind: TimerKind) -> Callable[[], None]:
        def _tick() -> None:
            self.tick(kind)

        return _tick

    def _running(self, kind: TimerKind) -> None:
        logger.debug("%s timer running (%ds left)", kind.value, self.timer(kind).remaining)
        self._tickers[kind].start()
        self._changed(kind)

    def _log_caucus(self, topic: str, duration: int, caucus_type: CaucusType) -> None:
        self.caucus_log.insert(
            CaucusLogEntry(
                id="",
                session_id="",
                entry_type=LogEntryType.CAUCUS,
                timestamp=now_utc(),
                topic=topic,
                duration=duration,
                caucus_type=caucus_type,
            )
        )

    def _changed(self, kind: TimerKind) -> None:
        for listener in list(self._listeners):
            try:
                listener(kind)
            except Exception:
                logger.exception("Timer listener failed")
