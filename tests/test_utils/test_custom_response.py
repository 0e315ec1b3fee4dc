import json
import unittest

from assist.utils.custom_exceptions import (
    InvalidTransition,
    NotFoundException,
    StorageUnavailable,
)
from assist.utils.custom_response import send_custom_response, send_error_response


class TestCustomResponse(unittest.TestCase):

    def test_envelope(self):
        resp = send_custom_response(201, "Booking created successfully", {"booking_id": "b1"})

        self.assertEqual(resp["statusCode"], 201)
        self.assertEqual(resp["headers"]["Content-Type"], "application/json")
        body = json.loads(resp["body"])
        self.assertEqual(body["status_code"], 201)
        self.assertEqual(body["message"], "Booking created successfully")
        self.assertEqual(body["data"], {"booking_id": "b1"})

    def test_error_response_carries_kind(self):
        resp = send_error_response(InvalidTransition("completed", "cancelled"))

        self.assertEqual(resp["statusCode"], 409)
        body = json.loads(resp["body"])
        self.assertEqual(body["message"], "Cannot transition from completed to cancelled")
        self.assertEqual(body["data"], {"kind": "InvalidTransition", "retryable": False})

    def test_not_found_message(self):
        resp = send_error_response(NotFoundException("booking", "b9"))

        self.assertEqual(resp["statusCode"], 404)
        self.assertEqual(json.loads(resp["body"])["message"], "booking 'b9' not found")

    def test_storage_unavailable_is_retryable(self):
        resp = send_error_response(StorageUnavailable("Storage timed out"))

        self.assertEqual(resp["statusCode"], 503)
        self.assertTrue(json.loads(resp["body"])["data"]["retryable"])


if __name__ == "__main__":
    unittest.main()
