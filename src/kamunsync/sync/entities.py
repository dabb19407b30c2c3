"""Entity specifications: how each synchronized collection maps to rows."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

from kamunsync.models import (
    DEFAULT_DELEGATIONS,
    AttendanceStatus,
    CaucusLogEntry,
    CaucusType,
    LogEntryType,
    Resolution,
    ResolutionStatus,
    RosterEntry,
    Session,
    SessionState,
    flag_url,
)
from kamunsync.remote.tables import (
    ATTENDANCE_TABLE,
    CAUCUS_LOG_TABLE,
    RESOLUTIONS_TABLE,
    SESSION_STATE_TABLE,
    SESSIONS_TABLE,
)
from kamunsync.util.ids import new_record_id
from kamunsync.util.time import parse_rfc3339, to_rfc3339

T = TypeVar("T")
Row = dict[str, Any]


@dataclass(frozen=True)
class EntitySpec(Generic[T]):
    """
    Describes one synchronized collection.

    Attributes:
        kind: Cache key kind (kamun:<kind>[:<session_id>]).
        table: Remote table name.
        model: Dataclass type of the in-memory items.
        scoped: True if rows carry session_id and are loaded per session.
        order_by: Column used to order loads.
        descending: Load order direction.
        limit: Maximum rows loaded.
        defaults: Factory for the seed collection when nothing is stored.
    """

    kind: str
    table: str
    model: type[T]
    scoped: bool = True
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None
    defaults: Optional[Callable[[str], list[T]]] = None

    def encode(self, item: T) -> Row:
        return {f.name: encode_value(getattr(item, f.name)) for f in fields(self.model)}

    def decode(self, row: Row) -> T:
        """Build a model from a stored row. Unknown columns are ignored."""
        known = {f.name: f for f in fields(self.model)}
        kwargs: dict[str, Any] = {}
        for name, value in row.items():
            if name in known:
                kwargs[name] = _DECODERS.get(name, _identity)(value)
        return self.model(**kwargs)

    def encode_patch(self, patch: Row) -> Row:
        return {k: encode_value(v) for k, v in patch.items()}

    def decode_patch(self, patch: Row) -> Row:
        return {k: _DECODERS.get(k, _identity)(v) for k, v in patch.items()}

    def seed(self, session_id: Optional[str]) -> list[T]:
        if self.defaults is None or (self.scoped and session_id is None):
            return []
        return self.defaults(session_id or "")


def encode_value(value: Any) -> Any:
    """Convert a model value to its persisted (JSON-safe) form."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_rfc3339(value)
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


# ----------------------------
# Column decoders
# ----------------------------
def _identity(value: Any) -> Any:
    return value


def _datetime_or_none(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return parse_rfc3339(value)


def _optional(enum_type: type[Enum]) -> Callable[[Any], Any]:
    def _decode(value: Any) -> Any:
        return None if value is None else enum_type(value)

    return _decode


def _status(value: Any) -> Any:
    # attendance and resolution rows share the column name
    for enum_type in (AttendanceStatus, ResolutionStatus):
        try:
            return enum_type(value)
        except ValueError:
            continue
    raise ValueError(f"Unknown status: {value!r}")


def _str_list(value: Any) -> list[str]:
    if value is None:
        return []
    return [str(v) for v in value]


_DECODERS: dict[str, Callable[[Any], Any]] = {
    "created_at": _datetime_or_none,
    "timestamp": _datetime_or_none,
    "status": _status,
    "entry_type": LogEntryType,
    "caucus_type": _optional(CaucusType),
    "sponsors": _str_list,
    "signatories": _str_list,
    "has_spoken": bool,
    "is_active": bool,
}


# ----------------------------
# Default collections
# ----------------------------
def default_roster(session_id: str) -> list[RosterEntry]:
    """All default delegations by country name, absent, unnamed and not yet spoken."""
    return [
        RosterEntry(
            id=new_record_id(),
            session_id=session_id,
            country_name=name,
            flag_url=flag_url(code),
        )
        for name, code in sorted(DEFAULT_DELEGATIONS)
    ]


def default_session_state(session_id: str) -> list[SessionState]:
    return [SessionState(id=new_record_id(), session_id=session_id)]


# ----------------------------
# Specs
# ----------------------------
SESSIONS: EntitySpec[Session] = EntitySpec(
    kind="sessions",
    table=SESSIONS_TABLE,
    model=Session,
    scoped=False,
    order_by="created_at",
    descending=True,
    limit=50,
)

SESSION_STATE: EntitySpec[SessionState] = EntitySpec(
    kind="session_state",
    table=SESSION_STATE_TABLE,
    model=SessionState,
    defaults=default_session_state,
)

ROSTER: EntitySpec[RosterEntry] = EntitySpec(
    kind="roster",
    table=ATTENDANCE_TABLE,
    model=RosterEntry,
    order_by="country_name",
    defaults=default_roster,
)

RESOLUTIONS: EntitySpec[Resolution] = EntitySpec(
    kind="resolutions",
    table=RESOLUTIONS_TABLE,
    model=Resolution,
    order_by="position",
)

CAUCUS_LOG: EntitySpec[CaucusLogEntry] = EntitySpec(
    kind="caucus_log",
    table=CAUCUS_LOG_TABLE,
    model=CaucusLogEntry,
    order_by="timestamp",
)
