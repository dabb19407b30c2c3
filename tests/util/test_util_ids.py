import unittest
import uuid

from kamunsync.util.ids import new_record_id, new_subscription_id, new_uuid


class TestUtilIds(unittest.TestCase):
    def test_new_uuid_is_valid_uuid4(self) -> None:
        value = new_uuid()
        parsed = uuid.UUID(value)
        self.assertEqual(str(parsed), value)
        self.assertEqual(parsed.version, 4)

    def test_new_record_id_is_valid_uuid4(self) -> None:
        parsed = uuid.UUID(new_record_id())
        self.assertEqual(parsed.version, 4)

    def test_new_subscription_id_is_valid_uuid4(self) -> None:
        parsed = uuid.UUID(new_subscription_id())
        self.assertEqual(parsed.version, 4)

    def test_ids_are_unique(self) -> None:
        values = {new_uuid(), new_record_id(), new_subscription_id()}
        self.assertEqual(len(values), 3)


if __name__ == "__main__":
    unittest.main()
