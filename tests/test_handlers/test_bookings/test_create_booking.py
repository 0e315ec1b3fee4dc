import importlib
import json
import os
import unittest
from unittest.mock import MagicMock, patch
from datetime import datetime, timezone, timedelta

from assist.models.bookings import Booking, ContactInfo, Location
from assist.utils.custom_exceptions import ServiceUnavailable, StorageUnavailable


def _booking():
    return Booking(
        booking_id="b1",
        customer_id="c1",
        service_id="s1",
        scheduled_at=datetime.now(timezone.utc) + timedelta(hours=2),
        location=Location(address="1 Main St", city="Pune", state="MH"),
        contact_info=ContactInfo(phone="9876543210"),
        estimated_cost=650.0,
    )


class CreateBookingTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.env = patch.dict(os.environ, {"TABLE_NAME": "test-table"}, clear=False)
        cls.env.start()
        cls.resource = patch("assist.repository.storage.resource")
        mock_res = cls.resource.start()
        mock_res.return_value.Table.return_value = MagicMock()
        import assist_handlers.bookings.create_booking as mod
        cls.mod = importlib.reload(mod)

    @classmethod
    def tearDownClass(cls):
        cls.resource.stop()
        cls.env.stop()

    def setUp(self):
        self.p_create = patch.object(self.mod.booking_service, "create_booking")
        self.mock_create = self.p_create.start()

    def tearDown(self):
        self.p_create.stop()

    def _event(self, body=None, user_id="c1", role="CUSTOMER"):
        authorizer = {"user_id": user_id, "role": role} if user_id else {}
        return {"body": body, "requestContext": {"authorizer": authorizer}}

    def _valid_body(self):
        return json.dumps({
            "serviceId": "s1",
            "scheduledAt": (datetime.now(timezone.utc) + timedelta(hours=2)).isoformat(),
            "location": {"address": "1 Main St", "city": "Pune", "state": "MH"},
            "contactInfo": {"phone": "9876543210"},
        })

    def test_missing_body_returns_400(self):
        resp = self.mod.create_booking(self._event(), None)
        self.assertEqual(400, resp["statusCode"])

    def test_validation_error_returns_400(self):
        resp = self.mod.create_booking(self._event(body=json.dumps({"serviceId": "s1"})), None)
        self.assertEqual(400, resp["statusCode"])
        body = json.loads(resp["body"])
        self.assertEqual("ValidationError", body["data"]["kind"])
        self.mock_create.assert_not_called()

    def test_missing_user_in_authorizer_returns_401(self):
        resp = self.mod.create_booking(self._event(body=self._valid_body(), user_id=None), None)
        self.assertEqual(401, resp["statusCode"])

    def test_inactive_service_returns_422(self):
        self.mock_create.side_effect = ServiceUnavailable("Service not found or no longer available")
        resp = self.mod.create_booking(self._event(body=self._valid_body()), None)
        self.assertEqual(422, resp["statusCode"])
        self.assertEqual("ServiceUnavailable", json.loads(resp["body"])["data"]["kind"])

    def test_storage_timeout_returns_503(self):
        self.mock_create.side_effect = StorageUnavailable("Storage timed out")
        resp = self.mod.create_booking(self._event(body=self._valid_body()), None)
        self.assertEqual(503, resp["statusCode"])
        self.assertTrue(json.loads(resp["body"])["data"]["retryable"])

    def test_generic_error_returns_500(self):
        self.mock_create.side_effect = RuntimeError("boom")
        resp = self.mod.create_booking(self._event(body=self._valid_body()), None)
        self.assertEqual(500, resp["statusCode"])

    def test_success_returns_201(self):
        self.mock_create.return_value = _booking()
        resp = self.mod.create_booking(self._event(body=self._valid_body()), None)
        self.assertEqual(201, resp["statusCode"])
        data = json.loads(resp["body"])["data"]
        self.assertEqual("b1", data["booking_id"])
        self.assertEqual("pending", data["status"])
        self.assertEqual("Pending Assignment", data["status_display"])
        actor, request = self.mock_create.call_args[0]
        self.assertEqual("c1", actor.user_id)
        self.assertEqual("s1", request.service_id)


if __name__ == "__main__":
    unittest.main()
