import unittest
from datetime import datetime, timezone, timedelta
from assist.utils.datetime_normaliser import (
    from_iso_string,
    optional_from_iso,
    parse_client_datetime,
    to_iso_string,
)

class TestDatetimeNormaliser(unittest.TestCase):
    def test_from_iso_string_with_timezone(self):
        iso = "2026-01-29T12:00:00+05:30"
        dt = from_iso_string(iso)
        self.assertIsInstance(dt, datetime)
        self.assertEqual(dt.tzinfo, timezone.utc)
        self.assertEqual(dt.hour, 6)

    def test_from_iso_string_naive_raises(self):
        iso = "2026-01-29T12:00:00"
        with self.assertRaises(ValueError):
            from_iso_string(iso)

    def test_to_iso_string_is_fixed_width_utc(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        self.assertEqual(
            to_iso_string(datetime(2026, 1, 29, 12, 0, tzinfo=ist)),
            "2026-01-29T06:30:00.000000+00:00",
        )
        self.assertEqual(
            len(to_iso_string(datetime(2026, 1, 29, tzinfo=timezone.utc))),
            len(to_iso_string(datetime(2026, 1, 29, 0, 0, 0, 1, tzinfo=timezone.utc))),
        )

    def test_to_iso_string_naive_raises(self):
        with self.assertRaises(ValueError):
            to_iso_string(datetime(2026, 1, 29))

    def test_optional_from_iso(self):
        self.assertIsNone(optional_from_iso(None))
        self.assertIsNone(optional_from_iso(""))

    def test_parse_client_datetime_bare_date_is_utc_midnight(self):
        self.assertEqual(
            parse_client_datetime("2026-03-01"),
            datetime(2026, 3, 1, tzinfo=timezone.utc),
        )

    def test_parse_client_datetime_accepts_z_suffix(self):
        self.assertEqual(
            parse_client_datetime("2026-03-01T10:15:00Z"),
            datetime(2026, 3, 1, 10, 15, tzinfo=timezone.utc),
        )

    def test_parse_client_datetime_rejects_garbage(self):
        with self.assertRaises(ValueError):
            parse_client_datetime("last tuesday")

if __name__ == "__main__":
    unittest.main()
