import json
import unittest

from kamunsync.models import ChangeEvent, ChangeKind


class TestChangeEvent(unittest.TestCase):
    def test_json_round_trip_keeps_fields(self) -> None:
        event = ChangeEvent(
            kind=ChangeKind.UPDATE,
            table="attendance",
            record={"id": "r1", "status": "present"},
            session_id="s1",
        )
        parsed = ChangeEvent.from_json(event.to_json())
        self.assertEqual(parsed, event)
        self.assertEqual(parsed.record_id, "r1")

    def test_delete_event_without_session(self) -> None:
        payload = json.dumps({"kind": "delete", "table": "resolutions", "record": {"id": "x"}})
        event = ChangeEvent.from_json(payload)
        self.assertIs(event.kind, ChangeKind.DELETE)
        self.assertIsNone(event.session_id)

    def test_malformed_payloads_raise_value_error(self) -> None:
        for payload in ("not json", "[]", json.dumps({"kind": "insert", "record": 3})):
            with self.subTest(payload=payload):
                with self.assertRaises(ValueError):
                    ChangeEvent.from_json(payload)

    def test_unknown_kind_raises_value_error(self) -> None:
        payload = json.dumps({"kind": "upsert", "table": "t", "record": {"id": "x"}})
        with self.assertRaises(ValueError):
            ChangeEvent.from_json(payload)

    def test_record_id_none_when_missing(self) -> None:
        event = ChangeEvent(kind=ChangeKind.INSERT, table="t", record={})
        self.assertIsNone(event.record_id)


if __name__ == "__main__":
    unittest.main()
