import asyncio
import json
import unittest

from kamunsync.backend import CacheOnly
from kamunsync.cache import MemoryCache
from kamunsync.errors import ValidationError
from kamunsync.models import AttendanceStatus
from kamunsync.roster import RosterService
from kamunsync.sync import ROSTER, SyncEngine


class TestRosterService(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.cache = MemoryCache()
        self.engine = SyncEngine(ROSTER, CacheOnly(self.cache))
        await self.engine.load("s1")
        self.roster = RosterService(self.engine, name_debounce_ms=20)

    async def asyncTearDown(self) -> None:
        self.engine.close()
        await self.engine.drain()

    def _cached(self, country: str) -> dict:
        rows = json.loads(self.cache.get("kamun:roster:s1"))
        return next(row for row in rows if row["country_name"] == country)

    async def test_default_roster(self) -> None:
        stats = self.roster.stats()
        self.assertEqual(stats.total, 24)
        self.assertEqual(stats.absent, 24)
        self.assertEqual(stats.total_present, 0)
        self.assertEqual(stats.simple_majority, 0)
        self.assertEqual(stats.two_thirds_majority, 0)

    async def test_toggle_cycles_status(self) -> None:
        self.assertIs(self.roster.toggle_status("France"), AttendanceStatus.PRESENT)
        self.assertIs(self.roster.toggle_status("France"), AttendanceStatus.PRESENT_AND_VOTING)
        self.assertIs(self.roster.toggle_status("France"), AttendanceStatus.ABSENT)
        self.assertIsNone(self.roster.toggle_status("Atlantis"))

    async def test_stats_and_majorities(self) -> None:
        for country in ("France", "Japan", "Brazil", "Nigeria"):
            self.roster.set_status(country, AttendanceStatus.PRESENT)
        for country in ("China", "India", "Egypt"):
            self.roster.set_status(country, "present_and_voting")
        self.roster.mark_spoken("France")

        stats = self.roster.stats()
        self.assertEqual(stats.present, 4)
        self.assertEqual(stats.present_and_voting, 3)
        self.assertEqual(stats.absent, 17)
        self.assertEqual(stats.spoken, 1)
        self.assertEqual(stats.simple_majority, 4)
        self.assertEqual(stats.two_thirds_majority, 5)
        self.assertEqual(len(self.roster.eligible_voters()), 7)

    async def test_mutate_by_id_changes_only_that_entry(self) -> None:
        rows = [
            {"id": row_id, "session_id": "s2", "country_name": country, "status": "absent"}
            for row_id, country in (("1", "Brazil"), ("2", "France"), ("3", "Japan"))
        ]
        self.cache.set("kamun:roster:s2", json.dumps(rows))
        engine = SyncEngine(ROSTER, CacheOnly(self.cache))
        await engine.load("s2")
        before = {e.id: e for e in engine.items}

        engine.mutate({"id": "2"}, {"status": "present_and_voting"})

        after = {e.id: e for e in engine.items}
        self.assertIs(after["2"].status, AttendanceStatus.PRESENT_AND_VOTING)
        self.assertEqual(after["1"], before["1"])
        self.assertEqual(after["3"], before["3"])
        self.assertEqual(RosterService(engine).stats().simple_majority, 1)
        await engine.drain()

    async def test_unknown_status_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.roster.set_status("France", "asleep")

    async def test_delegate_name_is_debounced(self) -> None:
        for text in ("A", "Am", "Ami", "Amina"):
            self.roster.set_delegate_name("Nigeria", text)
        self.assertEqual(self.roster.get("Nigeria").delegate_name, "Amina")
        self.assertEqual(self._cached("Nigeria")["delegate_name"], "")

        await asyncio.sleep(0.06)
        await self.engine.drain()
        self.assertEqual(self._cached("Nigeria")["delegate_name"], "Amina")

    async def test_reset_spoken_and_reset_all(self) -> None:
        self.roster.set_status("France", "present")
        self.roster.mark_spoken("France")
        self.roster.mark_spoken("Japan")

        await self.roster.reset_spoken()
        self.assertEqual(self.roster.stats().spoken, 0)

        await self.roster.reset_all()
        self.assertEqual(self.roster.stats().absent, 24)
        self.assertEqual(self._cached("France")["status"], "absent")


if __name__ == "__main__":
    unittest.main()
