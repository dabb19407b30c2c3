"""kamunsync public API."""

from __future__ import annotations

from kamunsync.backend import Backend, CacheOnly, RemoteBacked, select_backend
from kamunsync.cache import FileCache, MemoryCache, PersistentCache, cache_key
from kamunsync.caucus import (
    CaucusTimerEngine,
    CountdownTimer,
    CueKind,
    ModeratedTimer,
    PeriodicTicker,
    SpeakersList,
    TimerKind,
    TimerState,
)
from kamunsync.config import RemoteCredentials, Settings, get_settings
from kamunsync.dashboard import Dashboard
from kamunsync.errors import (
    ApiError,
    AuthError,
    ConfigurationError,
    ConflictError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    KamunSyncError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RemoteWriteFailure,
    ValidationError,
    map_http_error,
)
from kamunsync.models import (
    AttendanceStatus,
    CaucusLogEntry,
    ChangeEvent,
    Resolution,
    ResolutionStatus,
    RosterEntry,
    RosterStats,
    Session,
    SessionResult,
    SessionState,
    Vote,
    VoteTally,
)
from kamunsync.remote import InMemoryRemoteStore, RedisChangeFeed, RemoteStore, RestRemoteStore
from kamunsync.resolutions import ResolutionBoard, SponsorSelection
from kamunsync.roster import RosterService
from kamunsync.session import SessionController, Stage
from kamunsync.sync import EntitySpec, ErrorChannel, SyncEngine
from kamunsync.voting import VotingProcedure

__all__ = [
    # High-level
    "Dashboard",
    "SessionController",
    "Stage",
    # Sync
    "SyncEngine",
    "EntitySpec",
    "ErrorChannel",
    "Backend",
    "CacheOnly",
    "RemoteBacked",
    "select_backend",
    # Storage
    "PersistentCache",
    "FileCache",
    "MemoryCache",
    "cache_key",
    "RemoteStore",
    "RestRemoteStore",
    "InMemoryRemoteStore",
    "RedisChangeFeed",
    # Services
    "RosterService",
    "ResolutionBoard",
    "SponsorSelection",
    "VotingProcedure",
    "CaucusTimerEngine",
    "CountdownTimer",
    "ModeratedTimer",
    "PeriodicTicker",
    "SpeakersList",
    "TimerKind",
    "TimerState",
    "CueKind",
    # Config
    "Settings",
    "get_settings",
    "RemoteCredentials",
    # Models
    "AttendanceStatus",
    "ResolutionStatus",
    "Vote",
    "Session",
    "SessionState",
    "RosterEntry",
    "Resolution",
    "CaucusLogEntry",
    "ChangeEvent",
    "SessionResult",
    "RosterStats",
    "VoteTally",
    # Errors
    "KamunSyncError",
    "ConfigurationError",
    "ValidationError",
    "InvalidStateError",
    "NotFoundError",
    "InvalidArgumentError",
    "AuthError",
    "ConflictError",
    "RateLimitError",
    "NetworkError",
    "ApiError",
    "RemoteWriteFailure",
    "HttpErrorInfo",
    "map_http_error",
]
