import asyncio
import unittest

from kamunsync.backend import CacheOnly
from kamunsync.cache import MemoryCache
from kamunsync.caucus import CueKind, SpeakersList, TimerState
from kamunsync.errors import ValidationError
from kamunsync.roster import RosterService
from kamunsync.sync import ROSTER, SyncEngine


class RecordingCueSink:
    def __init__(self) -> None:
        self.cues = []

    def emit_cue(self, kind: CueKind) -> None:
        self.cues.append(kind)


class TestSpeakersList(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.engine = SyncEngine(ROSTER, CacheOnly(MemoryCache()))
        await self.engine.load("s1")
        self.roster = RosterService(self.engine)
        for country in ("France", "Japan", "Brazil"):
            self.roster.set_status(country, "present")
        self.sink = RecordingCueSink()
        self.speakers = SpeakersList(self.roster, cues=self.sink, speaking_time=12, tick_interval=3600)

    async def asyncTearDown(self) -> None:
        self.speakers.close()
        await self.engine.drain()

    async def test_only_present_delegations_can_queue(self) -> None:
        with self.assertRaises(ValidationError):
            self.speakers.add("Egypt")
        with self.assertRaises(ValidationError):
            self.speakers.add("Atlantis")

    async def test_duplicates_are_rejected(self) -> None:
        self.assertTrue(self.speakers.add("France"))
        self.assertFalse(self.speakers.add("France"))
        self.speakers.start()
        self.assertFalse(self.speakers.add("France"))
        self.assertEqual(self.speakers.queue, [])

    async def test_start_calls_next_speaker(self) -> None:
        self.speakers.add("France")
        self.speakers.add("Japan")

        self.assertTrue(self.speakers.start())
        self.assertEqual(self.speakers.current_speaker, "France")
        self.assertEqual(self.speakers.queue, ["Japan"])

    async def test_start_with_empty_queue(self) -> None:
        self.assertFalse(self.speakers.start())
        self.assertIsNone(self.speakers.current_speaker)

    async def test_remove(self) -> None:
        self.speakers.add("France")
        self.assertTrue(self.speakers.remove("France"))
        self.assertFalse(self.speakers.remove("France"))

    async def test_yield_to_chair_marks_spoken_and_advances(self) -> None:
        self.speakers.add("France")
        self.speakers.add("Japan")
        self.speakers.start()

        self.assertEqual(self.speakers.yield_to_chair(), "Japan")
        self.assertTrue(self.roster.get("France").has_spoken)
        self.assertIs(self.speakers.timer.state, TimerState.IDLE)

    async def test_yield_to_questions_pauses(self) -> None:
        self.speakers.add("Brazil")
        self.speakers.start()
        self.speakers.tick()
        self.speakers.yield_to_questions()

        self.assertEqual(self.speakers.current_speaker, "Brazil")
        self.assertIs(self.speakers.timer.state, TimerState.PAUSED)
        self.assertTrue(self.roster.get("Brazil").has_spoken)

    async def test_expiry_marks_spoken_then_advances_after_delay(self) -> None:
        self.speakers.add("France")
        self.speakers.add("Japan")
        self.speakers.start()
        for _ in range(15):
            self.speakers.tick()

        self.assertEqual(self.sink.cues, [CueKind.WARNING, CueKind.EXPIRY])
        self.assertTrue(self.roster.get("France").has_spoken)
        self.assertEqual(self.speakers.current_speaker, "France")
        self.assertEqual(self.speakers.queue, ["Japan"])
        self.assertTrue(self.speakers.advance_pending)

    async def test_expiry_advances_to_next_speaker(self) -> None:
        speakers = SpeakersList(self.roster, speaking_time=1, tick_interval=3600, advance_delay=0.01)
        speakers.add("France")
        speakers.add("Japan")
        speakers.start()
        speakers.tick()

        await asyncio.sleep(0.05)

        self.assertEqual(speakers.current_speaker, "Japan")
        self.assertEqual(speakers.queue, [])
        self.assertFalse(speakers.advance_pending)
        self.assertIs(speakers.timer.state, TimerState.IDLE)
        speakers.close()

    async def test_expiry_with_empty_queue_keeps_speaker(self) -> None:
        speakers = SpeakersList(self.roster, speaking_time=1, tick_interval=3600, advance_delay=0.01)
        speakers.add("France")
        speakers.start()
        speakers.tick()

        self.assertFalse(speakers.advance_pending)
        await asyncio.sleep(0.05)
        self.assertEqual(speakers.current_speaker, "France")
        speakers.close()

    async def test_close_cancels_pending_advance(self) -> None:
        speakers = SpeakersList(self.roster, speaking_time=1, tick_interval=3600, advance_delay=0.01)
        speakers.add("France")
        speakers.add("Japan")
        speakers.start()
        speakers.tick()
        self.assertTrue(speakers.advance_pending)

        speakers.close()
        await asyncio.sleep(0.05)

        self.assertEqual(speakers.current_speaker, "France")
        self.assertEqual(speakers.queue, ["Japan"])

    async def test_reset_cancels_pending_advance(self) -> None:
        speakers = SpeakersList(self.roster, speaking_time=1, tick_interval=3600, advance_delay=0.01)
        speakers.add("France")
        speakers.add("Japan")
        speakers.start()
        speakers.tick()

        speakers.reset()
        await asyncio.sleep(0.05)

        self.assertFalse(speakers.advance_pending)
        self.assertEqual(speakers.current_speaker, "France")
        speakers.close()

    async def test_set_speaking_time(self) -> None:
        self.speakers.set_speaking_time(45)
        self.assertEqual(self.speakers.timer.remaining, 45)

    async def test_ticker_counts_down(self) -> None:
        speakers = SpeakersList(self.roster, speaking_time=30, tick_interval=0.01)
        speakers.add("France")
        speakers.start()
        await asyncio.sleep(0.055)
        speakers.pause()
        self.assertLess(speakers.timer.remaining, 30)
        speakers.close()


if __name__ == "__main__":
    unittest.main()
