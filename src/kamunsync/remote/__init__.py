"""Remote synchronized store implementations."""

from __future__ import annotations

from .base import RemoteStore, Subscription, event_matches, matches
from .feed import RedisChangeFeed, channel_name
from .memory import InMemoryRemoteStore
from .rest import RestRemoteStore
from .tables import (
    ATTENDANCE_TABLE,
    CAUCUS_LOG_TABLE,
    RESOLUTIONS_TABLE,
    SESSION_SCOPED_TABLES,
    SESSION_STATE_TABLE,
    SESSIONS_TABLE,
)

__all__ = [
    "RemoteStore",
    "Subscription",
    "matches",
    "event_matches",
    "InMemoryRemoteStore",
    "RestRemoteStore",
    "RedisChangeFeed",
    "channel_name",
    "SESSIONS_TABLE",
    "SESSION_STATE_TABLE",
    "ATTENDANCE_TABLE",
    "RESOLUTIONS_TABLE",
    "CAUCUS_LOG_TABLE",
    "SESSION_SCOPED_TABLES",
]
