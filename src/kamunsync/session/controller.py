"""SessionController: session lifecycle and screen-stage gating."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from kamunsync.backend import Backend
from kamunsync.errors import (
    InvalidStateError,
    KamunSyncError,
    NotFoundError,
    ValidationError,
)
from kamunsync.models import Session, SessionResult, SessionState
from kamunsync.sync import ROSTER, SESSION_STATE, SESSIONS, SyncEngine, default_roster
from kamunsync.util.ids import new_uuid
from kamunsync.util.time import now_utc

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[str]], Awaitable[None]]


class Stage(str, Enum):
    LOADING = "loading"
    LOCKED = "locked"
    NEEDS_SESSION = "needsSession"
    ADMIN = "admin"
    SPLASH = "splash"
    VIDEO = "video"
    DASHBOARD = "dashboard"


_TRANSITIONS: dict[Stage, frozenset[Stage]] = {
    Stage.LOADING: frozenset({Stage.LOCKED, Stage.NEEDS_SESSION, Stage.ADMIN}),
    Stage.LOCKED: frozenset({Stage.NEEDS_SESSION, Stage.ADMIN}),
    Stage.NEEDS_SESSION: frozenset({Stage.ADMIN}),
    Stage.ADMIN: frozenset({Stage.ADMIN, Stage.SPLASH, Stage.NEEDS_SESSION}),
    Stage.SPLASH: frozenset({Stage.VIDEO, Stage.ADMIN, Stage.NEEDS_SESSION}),
    Stage.VIDEO: frozenset({Stage.DASHBOARD, Stage.ADMIN, Stage.NEEDS_SESSION}),
    Stage.DASHBOARD: frozenset({Stage.ADMIN, Stage.NEEDS_SESSION}),
}


class SessionController:
    """
    Owns the current session identity and the screen stage.

    Every lifecycle operation awaits each backend step in order and commits
    local state only after all steps succeed. A failure returns a
    SessionResult carrying the error and leaves stage and identity untouched.

    Listeners are awaited with the new session id (or None) whenever the
    identity changes; SyncEngine.bind is the usual listener.
    """

    def __init__(
        self,
        backend: Backend,
        *,
        metadata: Optional[SyncEngine[SessionState]] = None,
    ) -> None:
        self.backend = backend
        self.metadata = metadata if metadata is not None else SyncEngine(SESSION_STATE, backend)

        self._stage = Stage.LOADING
        self._session_id: Optional[str] = None
        self._session_name: Optional[str] = None
        self._sessions: list[Session] = []
        self._listeners: list[SessionListener] = []
        self._lock = asyncio.Lock()

    # ----------------------------
    # State
    # ----------------------------
    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def session_name(self) -> Optional[str]:
        return self._session_name

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions)

    @property
    def current_agenda(self) -> str:
        for state in self.metadata.items:
            if state.session_id == self._session_id:
                return state.current_agenda
        return ""

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ----------------------------
    # Startup
    # ----------------------------
    async def initialize(self, authenticated: bool = True) -> Stage:
        """Resolve the first stage: locked, or adopt the active session."""
        if self._stage is not Stage.LOADING:
            raise InvalidStateError(
                "Controller already initialized",
                details={"stage": self._stage.value},
            )
        if not authenticated:
            self._set_stage(Stage.LOCKED)
            return self._stage
        await self._adopt_active_session()
        return self._stage

    async def unlock(self) -> Stage:
        """Leave the locked stage once the operator is authenticated."""
        if self._stage is not Stage.LOCKED:
            raise InvalidStateError(
                "unlock is only valid while locked",
                details={"stage": self._stage.value},
            )
        await self._adopt_active_session()
        return self._stage

    async def refresh_sessions(self) -> list[Session]:
        """Reload the session list (newest first, at most 50)."""
        rows = await self.backend.load(SESSIONS, None) or []
        sessions: list[Session] = []
        for row in rows:
            try:
                sessions.append(SESSIONS.decode(row))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping undecodable session row: %s", exc)
        sessions.sort(key=_created_sort_key, reverse=True)
        self._sessions = sessions[: SESSIONS.limit]
        return self.sessions

    # ----------------------------
    # Lifecycle
    # ----------------------------
    async def create_session(self, name: str) -> SessionResult:
        """Create a new active session with empty metadata and the default roster."""
        async with self._lock:
            try:
                clean = (name or "").strip()
                if not clean:
                    raise ValidationError("Session name is required")
                self._check_transition(Stage.ADMIN)

                session = Session(id=new_uuid(), name=clean, created_at=now_utc(), is_active=True)
                await self.backend.update(SESSIONS, None, {"is_active": True}, {"is_active": False})
                stored = await self.backend.insert(SESSIONS, None, [SESSIONS.encode(session)])
                state = SessionState(id=new_uuid(), session_id=session.id)
                await self.backend.insert(SESSION_STATE, session.id, [SESSION_STATE.encode(state)])
                roster = [ROSTER.encode(entry) for entry in default_roster(session.id)]
                await self.backend.insert(ROSTER, session.id, roster)
            except KamunSyncError as exc:
                return self._failed("create_session", exc)

            if stored:
                session = SESSIONS.decode(stored[0])
            for other in self._sessions:
                other.is_active = False
            self._sessions.insert(0, session)
            logger.info("Created session %s (%s)", session.name, session.id)
            await self._adopt(session, Stage.ADMIN)
            return SessionResult(success=True, session_id=session.id)

    async def switch_session(self, session_id: str) -> SessionResult:
        """Make session_id the only active session."""
        async with self._lock:
            target = self._find(session_id)
            if target is None:
                await self.refresh_sessions()
                target = self._find(session_id)

            if target is not None and target.id == self._session_id and target.is_active:
                return SessionResult(success=True, session_id=session_id)

            try:
                if target is None:
                    raise NotFoundError("Session not found", details={"session_id": session_id})
                self._check_transition(Stage.ADMIN)
                await self.backend.update(SESSIONS, None, {"is_active": True}, {"is_active": False})
                await self.backend.update(SESSIONS, None, {"id": session_id}, {"is_active": True})
            except KamunSyncError as exc:
                return self._failed("switch_session", exc)

            for other in self._sessions:
                other.is_active = other.id == session_id
            logger.info("Switched to session %s (%s)", target.name, target.id)
            await self._adopt(target, Stage.ADMIN)
            return SessionResult(success=True, session_id=session_id)

    async def end_session(self) -> SessionResult:
        """Deactivate the current session without deleting it."""
        async with self._lock:
            session_id = self._session_id
            try:
                if session_id is None:
                    raise InvalidStateError("No current session")
                self._check_transition(Stage.NEEDS_SESSION)
                await self.backend.update(SESSIONS, None, {"id": session_id}, {"is_active": False})
            except KamunSyncError as exc:
                return self._failed("end_session", exc)

            for other in self._sessions:
                if other.id == session_id:
                    other.is_active = False
            logger.info("Ended session %s", session_id)
            await self._clear_identity()
            self._set_stage(Stage.NEEDS_SESSION)
            return SessionResult(success=True, session_id=session_id)

    async def delete_session(self, session_id: str) -> SessionResult:
        """
        Permanently delete a session and everything scoped to it.

        Deleting the current session clears the identity but leaves the
        stage as it is.
        """
        async with self._lock:
            try:
                await self.backend.delete(SESSIONS, None, {"id": session_id})
            except KamunSyncError as exc:
                return self._failed("delete_session", exc)

            self.backend.forget_session(session_id)
            self._sessions = [s for s in self._sessions if s.id != session_id]
            logger.info("Deleted session %s", session_id)
            if session_id == self._session_id:
                await self._clear_identity()
            return SessionResult(success=True, session_id=session_id)

    # ----------------------------
    # Agenda
    # ----------------------------
    def set_agenda(self, text: str) -> Optional[asyncio.Task[bool]]:
        if self._session_id is None:
            raise InvalidStateError("No current session")
        match = {"session_id": self._session_id}
        if self.metadata.find(match):
            return self.metadata.mutate(match, {"current_agenda": text})
        state = SessionState(id="", session_id=self._session_id, current_agenda=text)
        return self.metadata.insert(state)

    def clear_agenda(self) -> Optional[asyncio.Task[bool]]:
        return self.set_agenda("")

    # ----------------------------
    # Stage flow
    # ----------------------------
    def advance_to_splash(self) -> Stage:
        return self._advance(Stage.ADMIN, Stage.SPLASH)

    def advance_to_video(self) -> Stage:
        return self._advance(Stage.SPLASH, Stage.VIDEO)

    def advance_to_dashboard(self) -> Stage:
        return self._advance(Stage.VIDEO, Stage.DASHBOARD)

    def return_to_admin(self) -> Stage:
        if self._session_id is None:
            raise InvalidStateError("No current session")
        self._check_transition(Stage.ADMIN)
        self._set_stage(Stage.ADMIN)
        return self._stage

    # ----------------------------
    # Internals
    # ----------------------------
    async def _adopt_active_session(self) -> None:
        await self.refresh_sessions()
        active = next((s for s in self._sessions if s.is_active), None)
        if active is None:
            self._set_stage(Stage.NEEDS_SESSION)
            return
        logger.info("Resuming active session %s (%s)", active.name, active.id)
        await self._adopt(active, Stage.ADMIN)

    async def _adopt(self, session: Session, stage: Stage) -> None:
        self._session_id = session.id
        self._session_name = session.name
        self._set_stage(stage)
        await self.metadata.bind(session.id)
        await self._publish(session.id)

    async def _clear_identity(self) -> None:
        self._session_id = None
        self._session_name = None
        await self.metadata.bind(None)
        await self._publish(None)

    async def _publish(self, session_id: Optional[str]) -> None:
        for listener in list(self._listeners):
            try:
                await listener(session_id)
            except Exception:
                logger.exception("Session listener failed for %s", session_id)

    def _advance(self, expected: Stage, target: Stage) -> Stage:
        if self._stage is not expected:
            raise InvalidStateError(
                f"Cannot move to {target.value} from {self._stage.value}",
                details={"stage": self._stage.value, "target": target.value},
            )
        self._set_stage(target)
        return self._stage

    def _check_transition(self, target: Stage) -> None:
        if target not in _TRANSITIONS[self._stage]:
            raise InvalidStateError(
                f"Cannot move to {target.value} from {self._stage.value}",
                details={"stage": self._stage.value, "target": target.value},
            )

    def _set_stage(self, stage: Stage) -> None:
        if stage is not self._stage:
            logger.debug("Stage %s -> %s", self._stage.value, stage.value)
        self._stage = stage

    def _find(self, session_id: str) -> Optional[Session]:
        return next((s for s in self._sessions if s.id == session_id), None)

    def _failed(self, operation: str, exc: KamunSyncError) -> SessionResult:
        logger.warning("%s failed: %s", operation, exc)
        return SessionResult(
            success=False,
            session_id=self._session_id,
            error_type=exc.__class__.__name__,
            error_message=str(exc),
            error_details=getattr(exc, "details", None) or {},
        )


def _created_sort_key(session: Session) -> float:
    return session.created_at.timestamp() if session.created_at is not None else 0.0
