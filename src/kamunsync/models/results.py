"""Result models returned by session, roster and voting operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(slots=True)
class SessionResult:
    """Outcome of a session lifecycle operation (create/switch/end/delete)."""

    success: bool
    session_id: Optional[str] = None

    error_type: Optional[str] = None
    error_message: Optional[str] = None
    error_details: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class RosterStats:
    """
    Attendance counts for the roster.

    Majorities are computed over every present delegate (present and
    present-and-voting alike).
    """

    total: int
    present: int
    present_and_voting: int
    absent: int
    spoken: int

    @property
    def total_present(self) -> int:
        return self.present + self.present_and_voting

    @property
    def simple_majority(self) -> int:
        n = self.total_present
        return n // 2 + 1 if n > 0 else 0

    @property
    def two_thirds_majority(self) -> int:
        n = self.total_present
        # ceil(2n / 3) in integer arithmetic
        return -(-2 * n // 3) if n > 0 else 0


@dataclass(slots=True, frozen=True)
class VoteTally:
    """
    Counted votes for one resolution.

    Abstentions do not count toward the majority: required is computed over
    yes + no only.
    """

    yes: int
    no: int
    abstain: int
    total_eligible: int

    @property
    def total_voted(self) -> int:
        return self.yes + self.no + self.abstain

    @property
    def substantive_votes(self) -> int:
        return self.yes + self.no

    @property
    def required(self) -> int:
        sub = self.substantive_votes
        return sub // 2 + 1 if sub > 0 else 1

    @property
    def passed(self) -> bool:
        return self.substantive_votes > 0 and self.yes >= self.required

    @property
    def all_voted(self) -> bool:
        return self.total_voted == self.total_eligible
