"""Resolution board and sponsor selection."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from kamunsync.errors import ValidationError
from kamunsync.models import USER_MOVABLE_STATUSES, Resolution, ResolutionStatus
from kamunsync.sync import SyncEngine
from kamunsync.util.ids import new_record_id

logger = logging.getLogger(__name__)

TERMINAL_STATUSES: frozenset[ResolutionStatus] = frozenset(
    {ResolutionStatus.PASSED, ResolutionStatus.FAILED}
)


class SponsorSelection:
    """
    Sponsors and signatories being picked for a new resolution.

    A country is never in both lists: choosing it for one removes it from
    the other.
    """

    def __init__(self) -> None:
        self._sponsors: list[str] = []
        self._signatories: list[str] = []

    @property
    def sponsors(self) -> list[str]:
        return list(self._sponsors)

    @property
    def signatories(self) -> list[str]:
        return list(self._signatories)

    def toggle_sponsor(self, country: str) -> bool:
        """Returns True if the country is now a sponsor."""
        if country in self._sponsors:
            self._sponsors.remove(country)
            return False
        self._sponsors.append(country)
        if country in self._signatories:
            self._signatories.remove(country)
        return True

    def toggle_signatory(self, country: str) -> bool:
        """Returns True if the country is now a signatory."""
        if country in self._signatories:
            self._signatories.remove(country)
            return False
        self._signatories.append(country)
        if country in self._sponsors:
            self._sponsors.remove(country)
        return True

    def clear(self) -> None:
        self._sponsors.clear()
        self._signatories.clear()


class ResolutionBoard:
    """
    Working papers and draft resolutions for the current session.

    Users may only move papers between working paper and draft. Passed and
    failed are set by the voting procedure and are final.
    """

    def __init__(self, engine: SyncEngine[Resolution]) -> None:
        self.engine = engine

    @property
    def resolutions(self) -> list[Resolution]:
        return sorted(self.engine.items, key=lambda r: r.position)

    @property
    def drafts(self) -> list[Resolution]:
        return self.by_status(ResolutionStatus.DRAFT)

    def by_status(self, status: ResolutionStatus | str) -> list[Resolution]:
        wanted = ResolutionStatus(status)
        return [r for r in self.resolutions if r.status is wanted]

    def get(self, resolution_id: str) -> Optional[Resolution]:
        return self.engine.get(resolution_id)

    def add(
        self,
        code: str,
        title: str = "",
        sponsors: Iterable[str] = (),
        signatories: Iterable[str] = (),
    ) -> Resolution:
        """
        Add a working paper at the end of the board.

        Raises:
            ValidationError: if code is empty.
        """
        clean_code = (code or "").strip()
        if not clean_code:
            raise ValidationError("Resolution code is required")

        sponsor_list = _unique(sponsors)
        signatory_list = [c for c in _unique(signatories) if c not in sponsor_list]

        resolution = Resolution(
            id=new_record_id(),
            session_id=self.engine.session_id or "",
            code=clean_code,
            title=(title or "").strip(),
            sponsors=sponsor_list,
            signatories=signatory_list,
            status=ResolutionStatus.WORKING_PAPER,
            position=len(self.engine.items),
        )
        self.engine.insert(resolution)
        logger.info("Added resolution %s", clean_code)
        return resolution

    def add_from_selection(
        self,
        code: str,
        title: str,
        selection: SponsorSelection,
    ) -> Resolution:
        resolution = self.add(code, title, selection.sponsors, selection.signatories)
        selection.clear()
        return resolution

    def move(self, resolution_id: str, status: ResolutionStatus | str) -> Optional[asyncio.Task[bool]]:
        """Move between working paper and draft; anything else is rejected."""
        target = ResolutionStatus(status)
        if target not in USER_MOVABLE_STATUSES:
            raise ValidationError(
                f"Resolutions cannot be moved to {target.value}",
                details={"resolution_id": resolution_id},
            )
        current = self.engine.get(resolution_id)
        if current is None:
            return None
        if current.status in TERMINAL_STATUSES:
            raise ValidationError(
                f"Resolution {current.code} is already {current.status.value}",
                details={"resolution_id": resolution_id},
            )
        if current.status is target:
            return None
        return self.engine.mutate({"id": resolution_id}, {"status": target})

    def delete(self, resolution_id: str) -> Optional[asyncio.Task[bool]]:
        return self.engine.remove(resolution_id)

    def record_outcome(self, resolution_id: str, passed: bool) -> Optional[asyncio.Task[bool]]:
        """Record a vote result. Only the voting procedure calls this."""
        outcome = ResolutionStatus.PASSED if passed else ResolutionStatus.FAILED
        current = self.engine.get(resolution_id)
        if current is None:
            return None
        if current.status in TERMINAL_STATUSES:
            raise ValidationError(
                f"Resolution {current.code} already has an outcome",
                details={"resolution_id": resolution_id},
            )
        logger.info("Resolution %s %s", current.code, outcome.value)
        return self.engine.mutate({"id": resolution_id}, {"status": outcome})


def _unique(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen
