"""Remote table names and scoping rules."""

from __future__ import annotations

SESSIONS_TABLE: str = "sessions"
SESSION_STATE_TABLE: str = "session_state"
ATTENDANCE_TABLE: str = "attendance"
RESOLUTIONS_TABLE: str = "resolutions"
CAUCUS_LOG_TABLE: str = "caucus_log"

# Tables whose rows carry session_id and are removed with their session.
SESSION_SCOPED_TABLES: tuple[str, ...] = (
    SESSION_STATE_TABLE,
    ATTENDANCE_TABLE,
    RESOLUTIONS_TABLE,
    CAUCUS_LOG_TABLE,
)

SESSION_FK: str = "session_id"
