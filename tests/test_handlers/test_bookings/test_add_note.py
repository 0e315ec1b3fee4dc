import importlib
import json
import os
import unittest
from unittest.mock import MagicMock, patch
from datetime import datetime, timezone

from assist.models.bookings import Note
from assist.utils.custom_exceptions import Forbidden


class AddNoteTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.env = patch.dict(os.environ, {"TABLE_NAME": "test-table"}, clear=False)
        cls.env.start()
        cls.resource = patch("assist.repository.storage.resource")
        mock_res = cls.resource.start()
        mock_res.return_value.Table.return_value = MagicMock()
        import assist_handlers.bookings.add_note as mod
        cls.mod = importlib.reload(mod)

    @classmethod
    def tearDownClass(cls):
        cls.resource.stop()
        cls.env.stop()

    def setUp(self):
        self.p_add = patch.object(self.mod.booking_service, "add_note")
        self.mock_add = self.p_add.start()

    def tearDown(self):
        self.p_add.stop()

    def _event(self, body):
        return {
            "body": json.dumps(body),
            "pathParameters": {"booking_id": "b1"},
            "requestContext": {"authorizer": {"user_id": "c1", "role": "CUSTOMER"}},
        }

    def test_success_returns_201(self):
        self.mock_add.return_value = Note(
            "c1", "Blue car near the gate", datetime(2026, 3, 1, tzinfo=timezone.utc)
        )
        resp = self.mod.add_note(self._event({"message": "Blue car near the gate"}), None)
        self.assertEqual(201, resp["statusCode"])
        self.assertFalse(json.loads(resp["body"])["data"]["is_internal"])
        self.mock_add.assert_called_once()
        self.assertEqual({"is_internal": False}, self.mock_add.call_args[1])

    def test_internal_flag_forwarded(self):
        self.mock_add.return_value = Note("c1", "x", datetime(2026, 3, 1, tzinfo=timezone.utc))
        self.mod.add_note(self._event({"message": "x", "isInternal": True}), None)
        self.assertEqual({"is_internal": True}, self.mock_add.call_args[1])

    def test_forbidden_returns_403(self):
        self.mock_add.side_effect = Forbidden("Access denied. You can only access your own bookings.")
        resp = self.mod.add_note(self._event({"message": "hello"}), None)
        self.assertEqual(403, resp["statusCode"])


if __name__ == "__main__":
    unittest.main()
