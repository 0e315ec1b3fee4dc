import importlib
import json
import os
import unittest
from unittest.mock import MagicMock, patch

from assist.models.catalog import CatalogService, ServiceCategory
from assist.utils.custom_exceptions import Forbidden


class AddServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.env = patch.dict(os.environ, {"TABLE_NAME": "test-table"}, clear=False)
        cls.env.start()
        cls.resource = patch("assist.repository.storage.resource")
        mock_res = cls.resource.start()
        mock_res.return_value.Table.return_value = MagicMock()
        import assist_handlers.catalog.add_service as mod
        cls.mod = importlib.reload(mod)

    @classmethod
    def tearDownClass(cls):
        cls.resource.stop()
        cls.env.stop()

    def setUp(self):
        self.p_add = patch.object(self.mod.catalog_manager, "add_service")
        self.mock_add = self.p_add.start()

    def tearDown(self):
        self.p_add.stop()

    def _event(self, body, role="ADMIN"):
        return {
            "body": json.dumps(body),
            "requestContext": {"authorizer": {"user_id": "a1", "role": role}},
        }

    def test_success_returns_201(self):
        self.mock_add.return_value = CatalogService(
            service_id="s1",
            title="EV top-up",
            category=ServiceCategory.EV_CHARGING,
            price=900.0,
            duration_minutes=60,
        )
        resp = self.mod.add_service(
            self._event({"title": "EV top-up", "category": "ev-charging", "price": 900, "durationMinutes": 60}),
            None,
        )
        self.assertEqual(201, resp["statusCode"])
        self.assertEqual("ev-charging", json.loads(resp["body"])["data"]["category"])

    def test_duration_out_of_range_returns_400(self):
        resp = self.mod.add_service(
            self._event({"title": "Quick look", "price": 100, "durationMinutes": 5}), None
        )
        self.assertEqual(400, resp["statusCode"])
        self.mock_add.assert_not_called()

    def test_non_admin_returns_403(self):
        self.mock_add.side_effect = Forbidden("Only admins can manage the service catalog")
        resp = self.mod.add_service(
            self._event({"title": "x", "price": 1, "durationMinutes": 30}, role="MECHANIC"), None
        )
        self.assertEqual(403, resp["statusCode"])


if __name__ == "__main__":
    unittest.main()
