"""Optimistic synchronization of entity collections."""

from __future__ import annotations

from .debounce import DebounceTable
from .engine import SyncEngine
from .entities import (
    CAUCUS_LOG,
    RESOLUTIONS,
    ROSTER,
    SESSION_STATE,
    SESSIONS,
    EntitySpec,
    default_roster,
    default_session_state,
    encode_value,
)
from .notices import ErrorChannel

__all__ = [
    "SyncEngine",
    "EntitySpec",
    "ErrorChannel",
    "DebounceTable",
    "SESSIONS",
    "SESSION_STATE",
    "ROSTER",
    "RESOLUTIONS",
    "CAUCUS_LOG",
    "default_roster",
    "default_session_state",
    "encode_value",
]
