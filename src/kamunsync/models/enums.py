"""Enumerations shared by the kamunsync models."""

from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Roll-call status of a delegate."""

    ABSENT = "absent"
    PRESENT = "present"
    PRESENT_AND_VOTING = "present_and_voting"


class ResolutionStatus(str, Enum):
    """Lifecycle status of a resolution."""

    WORKING_PAPER = "working_paper"
    DRAFT = "draft"
    PASSED = "passed"
    FAILED = "failed"


class LogEntryType(str, Enum):
    """Which caucus-log sequence an entry belongs to."""

    CAUCUS = "caucus"
    REPLY = "reply"


class CaucusType(str, Enum):
    MODERATED = "moderated"
    UNMODERATED = "unmoderated"


class ChangeKind(str, Enum):
    """Kinds of change notifications delivered by the remote store."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class Vote(str, Enum):
    YES = "yes"
    NO = "no"
    ABSTAIN = "abstain"


# Roll-call cycle used by the "toggle" interaction.
STATUS_CYCLE: dict[AttendanceStatus, AttendanceStatus] = {
    AttendanceStatus.ABSENT: AttendanceStatus.PRESENT,
    AttendanceStatus.PRESENT: AttendanceStatus.PRESENT_AND_VOTING,
    AttendanceStatus.PRESENT_AND_VOTING: AttendanceStatus.ABSENT,
}

USER_MOVABLE_STATUSES: frozenset[ResolutionStatus] = frozenset(
    {ResolutionStatus.WORKING_PAPER, ResolutionStatus.DRAFT}
)
