"""RosterService: roll call and speaking record for the current session."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from kamunsync.errors import ValidationError
from kamunsync.models import STATUS_CYCLE, AttendanceStatus, RosterEntry, RosterStats
from kamunsync.sync import SyncEngine

logger = logging.getLogger(__name__)

DELEGATE_NAME_DEBOUNCE_MS = 500


class RosterService:
    """
    Operations on the roster collection.

    Entries are addressed by country name, which is unique within a session.
    Unknown countries are silent no-ops.
    """

    def __init__(
        self,
        engine: SyncEngine[RosterEntry],
        *,
        name_debounce_ms: int = DELEGATE_NAME_DEBOUNCE_MS,
    ) -> None:
        self.engine = engine
        self.name_debounce_ms = name_debounce_ms

    @property
    def entries(self) -> list[RosterEntry]:
        return self.engine.items

    def get(self, country_name: str) -> Optional[RosterEntry]:
        found = self.engine.find({"country_name": country_name})
        return found[0] if found else None

    def toggle_status(self, country_name: str) -> Optional[AttendanceStatus]:
        """Advance absent -> present -> present and voting -> absent."""
        entry = self.get(country_name)
        if entry is None:
            return None
        status = STATUS_CYCLE[entry.status]
        self.engine.mutate({"country_name": country_name}, {"status": status})
        return status

    def set_status(self, country_name: str, status: AttendanceStatus | str) -> Optional[asyncio.Task[bool]]:
        try:
            value = AttendanceStatus(status)
        except ValueError as exc:
            raise ValidationError(f"Unknown attendance status: {status!r}", cause=exc) from exc
        return self.engine.mutate({"country_name": country_name}, {"status": value})

    def set_delegate_name(self, country_name: str, delegate_name: str) -> None:
        """Rename locally at once; persist after typing settles."""
        self.engine.debounced_mutate(
            {"country_name": country_name},
            "delegate_name",
            delegate_name,
            self.name_debounce_ms,
        )

    def mark_spoken(self, country_name: str) -> Optional[asyncio.Task[bool]]:
        return self.engine.mutate({"country_name": country_name}, {"has_spoken": True})

    def reset_spoken(self) -> Optional[asyncio.Task[bool]]:
        return self.engine.mutate({}, {"has_spoken": False})

    def reset_all(self) -> Optional[asyncio.Task[bool]]:
        """Mark every delegation absent."""
        logger.info("Resetting roll call")
        return self.engine.mutate({}, {"status": AttendanceStatus.ABSENT})

    def present(self) -> list[RosterEntry]:
        return [e for e in self.engine.items if e.is_present]

    def eligible_voters(self) -> list[RosterEntry]:
        """Delegations allowed to vote on substantive matters."""
        return self.present()

    def stats(self) -> RosterStats:
        entries = self.engine.items
        return RosterStats(
            total=len(entries),
            present=sum(1 for e in entries if e.status is AttendanceStatus.PRESENT),
            present_and_voting=sum(
                1 for e in entries if e.status is AttendanceStatus.PRESENT_AND_VOTING
            ),
            absent=sum(1 for e in entries if e.status is AttendanceStatus.ABSENT),
            spoken=sum(1 for e in entries if e.has_spoken),
        )
