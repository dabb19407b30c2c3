"""Public model exports for kamunsync."""

from __future__ import annotations

from .enums import (
    STATUS_CYCLE,
    USER_MOVABLE_STATUSES,
    AttendanceStatus,
    CaucusType,
    ChangeKind,
    LogEntryType,
    ResolutionStatus,
    Vote,
)
from .events import ChangeEvent
from .delegations import DEFAULT_DELEGATIONS, flag_url
from .records import CaucusLogEntry, Resolution, RosterEntry, Session, SessionState
from .results import RosterStats, SessionResult, VoteTally

__all__ = [
    "AttendanceStatus",
    "ResolutionStatus",
    "LogEntryType",
    "CaucusType",
    "ChangeKind",
    "Vote",
    "STATUS_CYCLE",
    "DEFAULT_DELEGATIONS",
    "flag_url",
    "USER_MOVABLE_STATUSES",
    "Session",
    "SessionState",
    "RosterEntry",
    "Resolution",
    "CaucusLogEntry",
    "ChangeEvent",
    "SessionResult",
    "RosterStats",
    "VoteTally",
]
