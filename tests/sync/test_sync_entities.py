import unittest
from datetime import datetime, timezone

from kamunsync.models import (
    AttendanceStatus,
    CaucusLogEntry,
    CaucusType,
    LogEntryType,
    Resolution,
    ResolutionStatus,
    Session,
)
from kamunsync.sync import CAUCUS_LOG, RESOLUTIONS, ROSTER, SESSION_STATE, SESSIONS, encode_value


class TestEntitySpecs(unittest.TestCase):
    def test_roster_seed_is_all_absent(self) -> None:
        entries = ROSTER.seed("s1")
        self.assertEqual(len(entries), 24)
        self.assertEqual(len({e.id for e in entries}), 24)
        self.assertTrue(all(e.status is AttendanceStatus.ABSENT for e in entries))
        self.assertTrue(all(e.delegate_name == "" and not e.has_spoken for e in entries))
        france = next(e for e in entries if e.country_name == "France")
        self.assertEqual(france.flag_url, "https://flagcdn.com/w80/fr.png")
        self.assertTrue(all(e.session_id == "s1" for e in entries))

    def test_roster_orders_by_country_name(self) -> None:
        self.assertEqual(ROSTER.order_by, "country_name")
        self.assertFalse(ROSTER.descending)
        names = [e.country_name for e in ROSTER.seed("s1")]
        self.assertEqual(names, sorted(names))

    def test_seed_without_session_is_empty(self) -> None:
        self.assertEqual(ROSTER.seed(None), [])
        self.assertEqual(RESOLUTIONS.seed("s1"), [])

    def test_session_state_seed(self) -> None:
        (state,) = SESSION_STATE.seed("s1")
        self.assertEqual(state.current_agenda, "")
        self.assertEqual(state.session_id, "s1")

    def test_encode_decode_resolution(self) -> None:
        res = Resolution(
            id="r1",
            session_id="s1",
            code="A/1",
            sponsors=["France"],
            status=ResolutionStatus.DRAFT,
            position=2,
        )
        row = RESOLUTIONS.encode(res)
        self.assertEqual(row["status"], "draft")
        self.assertEqual(RESOLUTIONS.decode(row), res)

    def test_decode_ignores_unknown_columns(self) -> None:
        row = {"id": "s1", "name": "Day 1", "created_at": "2025-01-01T00:00:00Z", "extra": 1}
        session = SESSIONS.decode(row)
        self.assertEqual(session, Session(
            id="s1",
            name="Day 1",
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        ))

    def test_decode_log_entry(self) -> None:
        row = {
            "id": "l1",
            "session_id": "s1",
            "entry_type": "caucus",
            "timestamp": "2025-01-01T10:00:00Z",
            "topic": "Climate",
            "duration": 600,
            "caucus_type": "moderated",
            "country": None,
        }
        entry = CAUCUS_LOG.decode(row)
        self.assertIsInstance(entry, CaucusLogEntry)
        self.assertIs(entry.entry_type, LogEntryType.CAUCUS)
        self.assertIs(entry.caucus_type, CaucusType.MODERATED)

    def test_decode_rejects_unknown_status(self) -> None:
        with self.assertRaises(ValueError):
            ROSTER.decode({"id": "a", "session_id": "s", "country_name": "X", "status": "asleep"})

    def test_decode_patch_restores_enums(self) -> None:
        patch = ROSTER.decode_patch({"status": "present_and_voting"})
        self.assertIs(patch["status"], AttendanceStatus.PRESENT_AND_VOTING)

    def test_encode_value(self) -> None:
        dt = datetime(2025, 1, 1, tzinfo=timezone.utc)
        self.assertEqual(encode_value(dt), "2025-01-01T00:00:00.000000Z")
        self.assertEqual(encode_value([ResolutionStatus.DRAFT]), ["draft"])
        self.assertEqual(encode_value(3), 3)


if __name__ == "__main__":
    unittest.main()
