"""VotingProcedure: substantive vote on a draft resolution."""

from __future__ import annotations

import logging
from typing import Optional

from kamunsync.errors import InvalidStateError, NotFoundError, ValidationError
from kamunsync.models import AttendanceStatus, ResolutionStatus, Vote, VoteTally

from .resolutions import ResolutionBoard
from .roster import RosterService

logger = logging.getLogger(__name__)


class VotingProcedure:
    """
    One vote at a time, held in memory on the chair's client.

    Rules:
        - present and present-and-voting delegations may vote
        - only present delegations may abstain
        - majority is counted over yes + no; abstentions do not count
    """

    def __init__(self, roster: RosterService, board: ResolutionBoard) -> None:
        self.roster = roster
        self.board = board
        self._open = False
        self._resolution_id: Optional[str] = None
        self._votes: dict[str, Vote] = {}
        self.last_result: Optional[VoteTally] = None

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def resolution_id(self) -> Optional[str]:
        return self._resolution_id

    @property
    def votes(self) -> dict[str, Vote]:
        return dict(self._votes)

    def open(self, resolution_id: Optional[str] = None) -> None:
        """
        Open voting, optionally on a draft resolution.

        Raises:
            InvalidStateError: if a vote is already open.
            NotFoundError: if resolution_id is unknown.
            ValidationError: if the resolution is not a draft or nobody may vote.
        """
        if self._open:
            raise InvalidStateError("Voting is already open")
        if resolution_id is not None:
            resolution = self.board.get(resolution_id)
            if resolution is None:
                raise NotFoundError("Resolution not found", details={"resolution_id": resolution_id})
            if resolution.status is not ResolutionStatus.DRAFT:
                raise ValidationError(
                    "Only draft resolutions can be put to a vote",
                    details={"resolution_id": resolution_id, "status": resolution.status.value},
                )
        if not self.roster.eligible_voters():
            raise ValidationError("No delegations are present to vote")

        self._votes = {}
        self._resolution_id = resolution_id
        self._open = True
        self.last_result = None
        logger.info("Voting opened on %s", resolution_id or "an unnamed motion")

    def cast(self, country_name: str, vote: Vote | str) -> None:
        if not self._open:
            raise InvalidStateError("Voting is not open")
        choice = Vote(vote)
        entry = self.roster.get(country_name)
        if entry is None or not entry.is_present:
            raise ValidationError(
                f"{country_name} is not eligible to vote",
                details={"country_name": country_name},
            )
        if choice is Vote.ABSTAIN and entry.status is not AttendanceStatus.PRESENT:
            raise ValidationError(
                f"{country_name} is present and voting and cannot abstain",
                details={"country_name": country_name},
            )
        self._votes[country_name] = choice

    def tally(self) -> VoteTally:
        counts = {v: 0 for v in Vote}
        for vote in self._votes.values():
            counts[vote] += 1
        return VoteTally(
            yes=counts[Vote.YES],
            no=counts[Vote.NO],
            abstain=counts[Vote.ABSTAIN],
            total_eligible=len(self.roster.eligible_voters()),
        )

    def close(self) -> VoteTally:
        """Close voting and record the outcome on the selected resolution."""
        if not self._open:
            raise InvalidStateError("Voting is not open")
        result = self.tally()
        self._open = False
        self.last_result = result
        if self._resolution_id is not None:
            self.board.record_outcome(self._resolution_id, result.passed)
        logger.info(
            "Voting closed: %d yes, %d no, %d abstain (%s)",
            result.yes,
            result.no,
            result.abstain,
            "passed" if result.passed else "failed",
        )
        self._resolution_id = None
        return result

    def reset(self) -> None:
        self._open = False
        self._resolution_id = None
        self._votes = {}
        self.last_result = None
