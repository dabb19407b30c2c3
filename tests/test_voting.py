import unittest

from kamunsync.backend import CacheOnly
from kamunsync.cache import MemoryCache
from kamunsync.errors import InvalidStateError, NotFoundError, ValidationError
from kamunsync.models import ResolutionStatus, Vote
from kamunsync.resolutions import ResolutionBoard
from kamunsync.roster import RosterService
from kamunsync.sync import RESOLUTIONS, ROSTER, SyncEngine
from kamunsync.voting import VotingProcedure


class TestVotingProcedure(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        backend = CacheOnly(MemoryCache())
        self.roster_engine = SyncEngine(ROSTER, backend)
        self.resolutions_engine = SyncEngine(RESOLUTIONS, backend)
        await self.roster_engine.load("s1")
        await self.resolutions_engine.load("s1")

        self.roster = RosterService(self.roster_engine)
        self.board = ResolutionBoard(self.resolutions_engine)
        self.voting = VotingProcedure(self.roster, self.board)

        for country in ("France", "Japan", "Brazil"):
            self.roster.set_status(country, "present_and_voting")
        for country in ("India", "Egypt"):
            self.roster.set_status(country, "present")

        self.draft = self.board.add("DR 1.1", "Clean oceans")
        self.board.move(self.draft.id, "draft")

    async def asyncTearDown(self) -> None:
        await self.roster_engine.drain()
        await self.resolutions_engine.drain()

    async def test_majority_ignores_abstentions(self) -> None:
        self.voting.open(self.draft.id)
        self.voting.cast("France", Vote.YES)
        self.voting.cast("Japan", "yes")
        self.voting.cast("India", "yes")
        self.voting.cast("Brazil", "no")
        self.voting.cast("Egypt", "abstain")

        tally = self.voting.tally()
        self.assertEqual((tally.yes, tally.no, tally.abstain), (3, 1, 1))
        self.assertEqual(tally.required, 3)
        self.assertTrue(tally.all_voted)

        result = self.voting.close()
        self.assertTrue(result.passed)
        self.assertFalse(self.voting.is_open)
        self.assertIs(self.voting.last_result, result)
        self.assertIs(self.board.get(self.draft.id).status, ResolutionStatus.PASSED)

    async def test_tie_fails(self) -> None:
        self.voting.open(self.draft.id)
        self.voting.cast("France", "yes")
        self.voting.cast("Japan", "no")

        result = self.voting.close()
        self.assertFalse(result.passed)
        self.assertIs(self.board.get(self.draft.id).status, ResolutionStatus.FAILED)

    async def test_all_abstain_fails(self) -> None:
        self.voting.open()
        self.voting.cast("India", "abstain")
        self.voting.cast("Egypt", "abstain")
        tally = self.voting.close()
        self.assertEqual(tally.required, 1)
        self.assertFalse(tally.passed)

    async def test_present_and_voting_cannot_abstain(self) -> None:
        self.voting.open()
        with self.assertRaises(ValidationError):
            self.voting.cast("France", Vote.ABSTAIN)

    async def test_absent_delegation_cannot_vote(self) -> None:
        self.voting.open()
        with self.assertRaises(ValidationError):
            self.voting.cast("Nigeria", "yes")

    async def test_recast_replaces_vote(self) -> None:
        self.voting.open()
        self.voting.cast("India", "yes")
        self.voting.cast("India", "no")
        self.assertEqual(self.voting.votes, {"India": Vote.NO})

    async def test_cast_requires_open_vote(self) -> None:
        with self.assertRaises(InvalidStateError):
            self.voting.cast("France", "yes")
        with self.assertRaises(InvalidStateError):
            self.voting.close()

    async def test_open_twice_raises(self) -> None:
        self.voting.open()
        with self.assertRaises(InvalidStateError):
            self.voting.open()

    async def test_open_requires_draft(self) -> None:
        paper = self.board.add("WP 9")
        with self.assertRaises(ValidationError):
            self.voting.open(paper.id)
        with self.assertRaises(NotFoundError):
            self.voting.open("missing")
        self.assertFalse(self.voting.is_open)

    async def test_open_requires_present_delegations(self) -> None:
        await self.roster.reset_all()
        with self.assertRaises(ValidationError):
            self.voting.open()

    async def test_reset_discards_votes(self) -> None:
        self.voting.open()
        self.voting.cast("France", "yes")
        self.voting.reset()
        self.assertFalse(self.voting.is_open)
        self.assertEqual(self.voting.votes, {})


if __name__ == "__main__":
    unittest.main()
