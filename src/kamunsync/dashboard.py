"""Dashboard: wires backend, sync engines and services for one client."""

from __future__ import annotations

import logging
from typing import Any, Optional

from kamunsync.backend import Backend, select_backend
from kamunsync.cache import FileCache, PersistentCache
from kamunsync.caucus import CaucusTimerEngine, CueSink, SpeakersList, TimerKind
from kamunsync.config import Settings, get_settings
from kamunsync.remote import RemoteStore
from kamunsync.resolutions import ResolutionBoard
from kamunsync.roster import RosterService
from kamunsync.session import SessionController, Stage
from kamunsync.sync import (
    CAUCUS_LOG,
    RESOLUTIONS,
    ROSTER,
    SESSION_STATE,
    ErrorChannel,
    SyncEngine,
)
from kamunsync.voting import VotingProcedure

logger = logging.getLogger(__name__)


class Dashboard:
    """
    One client's view of the committee session.

    Every session-scoped engine is rebound whenever the session controller
    publishes a new session id.

    Usage:
        async with Dashboard.from_settings() as dash:
            await dash.start()
            await dash.session.create_session("GA1 Day 1")
            dash.roster.toggle_status("France")
    """

    def __init__(
        self,
        backend: Backend,
        *,
        cues: Optional[CueSink] = None,
        debounce_ms: int = 500,
        tick_interval: float = 1.0,
    ) -> None:
        self.backend = backend
        self.errors = ErrorChannel()

        def _engine(spec: Any) -> SyncEngine[Any]:
            return SyncEngine(spec, backend, errors=self.errors, debounce_ms=debounce_ms)

        self.metadata = _engine(SESSION_STATE)
        self.roster_engine = _engine(ROSTER)
        self.resolutions_engine = _engine(RESOLUTIONS)
        self.caucus_log_engine = _engine(CAUCUS_LOG)

        self.session = SessionController(backend, metadata=self.metadata)
        self.roster = RosterService(self.roster_engine, name_debounce_ms=debounce_ms)
        self.board = ResolutionBoard(self.resolutions_engine)
        self.voting = VotingProcedure(self.roster, self.board)
        self.timers = CaucusTimerEngine(
            self.caucus_log_engine,
            cues=cues,
            roster=self.roster,
            tick_interval=tick_interval,
        )
        self.speakers = SpeakersList(self.roster, cues=cues, tick_interval=tick_interval)

        for engine in self.scoped_engines:
            self.session.add_listener(engine.bind)
        self.session.add_listener(self._on_session_changed)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        *,
        cache: Optional[PersistentCache] = None,
        remote: Optional[RemoteStore] = None,
        cues: Optional[CueSink] = None,
    ) -> Dashboard:
        """Build a dashboard, choosing the backend once from settings."""
        use_settings = settings if settings is not None else get_settings()
        use_cache = cache if cache is not None else FileCache(use_settings.cache_path)
        backend = select_backend(use_settings, use_cache, remote=remote)
        return cls(
            backend,
            cues=cues,
            debounce_ms=use_settings.debounce_ms,
            tick_interval=use_settings.tick_interval,
        )

    async def __aenter__(self) -> Dashboard:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def scoped_engines(self) -> tuple[SyncEngine[Any], ...]:
        return (self.roster_engine, self.resolutions_engine, self.caucus_log_engine)

    @property
    def realtime(self) -> bool:
        return self.backend.realtime

    async def start(self, authenticated: bool = True) -> Stage:
        return await self.session.initialize(authenticated)

    async def flush(self) -> None:
        """Persist pending debounced edits and wait for every queued write."""
        for engine in (self.metadata, *self.scoped_engines):
            await engine.flush_debounced()

    async def close(self) -> None:
        self.timers.close()
        self.speakers.close()
        await self.flush()
        for engine in (self.metadata, *self.scoped_engines):
            engine.close()
        await self.backend.close()
        logger.info("Dashboard closed")

    async def _on_session_changed(self, session_id: Optional[str]) -> None:
        self.voting.reset()
        for kind in TimerKind:
            self.timers.pause(kind)
        self.speakers.pause()
