import asyncio
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from kamunsync.backend import CacheOnly, RemoteBacked
from kamunsync.cache import FileCache, MemoryCache
from kamunsync.caucus import TimerState
from kamunsync.config import Settings
from kamunsync.dashboard import Dashboard
from kamunsync.errors import ValidationError
from kamunsync.models import AttendanceStatus
from kamunsync.remote import InMemoryRemoteStore
from kamunsync.session import Stage


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class TestDashboardCacheOnly(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.cache = MemoryCache()
        self.dash = Dashboard(CacheOnly(self.cache), debounce_ms=20, tick_interval=3600)

    async def asyncTearDown(self) -> None:
        await self.dash.close()

    async def test_start_without_sessions(self) -> None:
        self.assertIs(await self.dash.start(), Stage.NEEDS_SESSION)
        self.assertFalse(self.dash.realtime)
        self.assertEqual(self.dash.roster.entries, [])

    async def test_create_session_binds_every_engine(self) -> None:
        await self.dash.start()
        result = await self.dash.session.create_session("GA1 Day 1")

        self.assertTrue(result.success)
        for engine in self.dash.scoped_engines:
            self.assertEqual(engine.session_id, result.session_id)
            self.assertTrue(engine.loaded)
        self.assertEqual(self.dash.roster.stats().total, 24)
        self.assertEqual(self.dash.board.resolutions, [])

    async def test_session_change_resets_vote_and_timers(self) -> None:
        await self.dash.start()
        await self.dash.session.create_session("Morning")
        self.dash.roster.set_status("France", "present")
        self.dash.voting.open()
        self.dash.timers.start_unmoderated()

        await self.dash.session.create_session("Afternoon")

        self.assertFalse(self.dash.voting.is_open)
        self.assertEqual(self.dash.roster.stats().total_present, 0)
        self.assertEqual(self.dash.timers.caucus_history, [])
        self.assertIs(self.dash.timers.unmoderated.state, TimerState.PAUSED)

    async def test_reply_checks_session_roster(self) -> None:
        await self.dash.start()
        await self.dash.session.create_session("Morning")
        with self.assertRaises(ValidationError):
            self.dash.timers.start_reply("France")

        self.dash.roster.set_status("France", "present")
        self.assertTrue(self.dash.timers.start_reply("France"))

    async def test_close_flushes_debounced_edits(self) -> None:
        await self.dash.start()
        created = await self.dash.session.create_session("Morning")
        self.dash.roster.set_delegate_name("Japan", "Kenji")

        await self.dash.close()

        fresh = Dashboard(CacheOnly(self.cache), tick_interval=3600)
        await fresh.start()
        self.assertEqual(fresh.session.session_id, created.session_id)
        self.assertEqual(fresh.roster.get("Japan").delegate_name, "Kenji")
        await fresh.close()


class TestDashboardFromSettings(unittest.IsolatedAsyncioTestCase):
    async def test_defaults_to_cache_only_file_cache(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "cache.json"
            with patch.dict(os.environ, {"KAMUN_CACHE_PATH": str(path)}, clear=True):
                settings = Settings(_env_file=None)
            dash = Dashboard.from_settings(settings)

            self.assertIsInstance(dash.backend, CacheOnly)
            self.assertIsInstance(dash.backend.cache, FileCache)

            await dash.start()
            await dash.session.create_session("Morning")
            await dash.close()
            self.assertTrue(path.is_file())

    async def test_provided_remote_is_used(self) -> None:
        settings = Settings(_env_file=None)
        dash = Dashboard.from_settings(settings, cache=MemoryCache(), remote=InMemoryRemoteStore())
        self.assertIsInstance(dash.backend, RemoteBacked)
        self.assertTrue(dash.realtime)
        await dash.close()


class TestDashboardRealtime(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.remote = InMemoryRemoteStore()
        self.chair = Dashboard(RemoteBacked(self.remote, MemoryCache()), tick_interval=3600)
        self.screen = Dashboard(RemoteBacked(self.remote, MemoryCache()), tick_interval=3600)

    async def asyncTearDown(self) -> None:
        await self.chair.close()
        await self.screen.close()

    async def test_second_client_follows_roll_call(self) -> None:
        await self.chair.start()
        created = await self.chair.session.create_session("Plenary")

        self.assertIs(await self.screen.start(), Stage.ADMIN)
        self.assertEqual(self.screen.session.session_id, created.session_id)

        await self.chair.roster.set_status("France", AttendanceStatus.PRESENT)
        self.chair.board.add("WP 1", "Water")
        await self.chair.flush()
        await _settle()

        self.assertIs(self.screen.roster.get("France").status, AttendanceStatus.PRESENT)
        self.assertEqual([r.code for r in self.screen.board.resolutions], ["WP 1"])

    async def test_agenda_reaches_other_client(self) -> None:
        await self.chair.start()
        await self.chair.session.create_session("Plenary")
        await self.screen.start()

        await self.chair.session.set_agenda("Disarmament")
        await _settle()

        self.assertEqual(self.screen.session.current_agenda, "Disarmament")


if __name__ == "__main__":
    unittest.main()
