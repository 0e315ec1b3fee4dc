import importlib
import json
import os
import unittest
from unittest.mock import MagicMock, patch

from assist.utils.custom_exceptions import InvalidTransition


class CancelBookingTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.env = patch.dict(os.environ, {"TABLE_NAME": "test-table"}, clear=False)
        cls.env.start()
        cls.resource = patch("assist.repository.storage.resource")
        mock_res = cls.resource.start()
        mock_res.return_value.Table.return_value = MagicMock()
        import assist_handlers.bookings.cancel_booking as mod
        cls.mod = importlib.reload(mod)

    @classmethod
    def tearDownClass(cls):
        cls.resource.stop()
        cls.env.stop()

    def setUp(self):
        self.p_cancel = patch.object(self.mod.booking_service, "cancel_booking")
        self.p_response = patch.object(self.mod, "booking_response", return_value={"booking_id": "b1"})
        self.mock_cancel = self.p_cancel.start()
        self.p_response.start()

    def tearDown(self):
        self.p_cancel.stop()
        self.p_response.stop()

    def _event(self, body=None):
        return {
            "body": body,
            "pathParameters": {"booking_id": "b1"},
            "requestContext": {"authorizer": {"user_id": "c1", "role": "CUSTOMER"}},
        }

    def test_cancel_without_body(self):
        resp = self.mod.cancel_booking(self._event(), None)
        self.assertEqual(200, resp["statusCode"])
        self.assertEqual({"reason": None}, self.mock_cancel.call_args[1])

    def test_cancel_with_reason(self):
        self.mod.cancel_booking(self._event(json.dumps({"reason": "Car started"})), None)
        self.assertEqual({"reason": "Car started"}, self.mock_cancel.call_args[1])

    def test_cancel_terminal_booking_returns_409(self):
        self.mock_cancel.side_effect = InvalidTransition("completed", "cancelled")
        resp = self.mod.cancel_booking(self._event(), None)
        self.assertEqual(409, resp["statusCode"])


if __name__ == "__main__":
    unittest.main()
