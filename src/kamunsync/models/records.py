"""Data models for the entity collections kept in sync."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import (
    AttendanceStatus,
    CaucusType,
    LogEntryType,
    ResolutionStatus,
)


@dataclass(slots=True)
class Session:
    """
    A committee session.

    Notes:
        - At most one session has is_active=True at any time.
        - Deleting a session cascades to every record scoped to its id.
    """

    id: str
    name: str
    created_at: Optional[datetime] = None
    is_active: bool = False


@dataclass(slots=True)
class SessionState:
    """Mutable per-session metadata (currently the agenda)."""

    id: str
    session_id: str
    current_agenda: str = ""


@dataclass(slots=True)
class RosterEntry:
    """
    A delegation on the roll-call roster.

    country_name is fixed for the life of the entry; delegate_name is free
    text edited per keystroke (persisted through debounced writes).
    """

    id: str
    session_id: str
    country_name: str
    flag_url: str = ""
    status: AttendanceStatus = AttendanceStatus.ABSENT
    delegate_name: str = ""
    has_spoken: bool = False

    @property
    def is_present(self) -> bool:
        return self.status is not AttendanceStatus.ABSENT


@dataclass(slots=True)
class Resolution:
    """
    A working paper / draft resolution.

    sponsors and signatories are disjoint. PASSED/FAILED are only set by the
    voting procedure.
    """

    id: str
    session_id: str
    code: str
    title: str = ""
    sponsors: list[str] = field(default_factory=list)
    signatories: list[str] = field(default_factory=list)
    status: ResolutionStatus = ResolutionStatus.WORKING_PAPER
    position: int = 0


@dataclass(slots=True)
class CaucusLogEntry:
    """
    One immutable line of the session log.

    entry_type=CAUCUS uses topic/duration/caucus_type; entry_type=REPLY uses
    country.
    """

    id: str
    session_id: str
    entry_type: LogEntryType
    timestamp: Optional[datetime] = None

    topic: Optional[str] = None
    duration: Optional[int] = None
    caucus_type: Optional[CaucusType] = None
    country: Optional[str] = None
