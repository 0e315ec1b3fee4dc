import unittest
from unittest.mock import MagicMock
from datetime import datetime, timezone, timedelta

from assist.models.bookings import (
    Booking,
    BookingStatus,
    ContactInfo,
    Location,
    Rating,
)
from assist.models.users import Actor, UserRole
from assist.services.stats_service import BookingStatsService, summarize
from assist.utils.custom_exceptions import Forbidden, InvalidInput

NOW = datetime(2026, 3, 20, 12, 0, tzinfo=timezone.utc)
ADMIN = Actor("a1", UserRole.ADMIN)


def make_booking(status, created_at, actual_cost=None, score=None):
    return Booking(
        booking_id=f"{status.value}-{created_at.isoformat()}",
        customer_id="c1",
        service_id="s1",
        scheduled_at=created_at + timedelta(hours=1),
        location=Location(address="1 Main St", city="Pune", state="MH"),
        contact_info=ContactInfo(phone="9876543210"),
        status=status,
        actual_cost=actual_cost,
        rating=Rating(score=score, rated_at=created_at) if score else None,
        created_at=created_at,
    )


class TestSummarize(unittest.TestCase):

    def test_counts_revenue_and_ratings(self):
        bookings = [
            make_booking(BookingStatus.PENDING, NOW - timedelta(days=1)),
            make_booking(BookingStatus.PENDING, NOW - timedelta(days=20)),
            make_booking(BookingStatus.COMPLETED, NOW - timedelta(days=2), 1000.0, 5),
            make_booking(BookingStatus.COMPLETED, NOW - timedelta(days=3), 500.5, 4),
            make_booking(BookingStatus.COMPLETED, NOW - timedelta(days=30), 250.0),
            make_booking(BookingStatus.CANCELLED, NOW - timedelta(days=10)),
        ]

        stats = summarize(bookings, generated_at=NOW, recent_since=NOW - timedelta(days=7))

        self.assertEqual(stats.total_bookings, 6)
        self.assertEqual(stats.pending_bookings, 2)
        self.assertEqual(stats.completed_bookings, 3)
        self.assertEqual(stats.recent_bookings, 3)

        by_status = {row.status: row for row in stats.status_breakdown}
        self.assertEqual(set(by_status), {
            BookingStatus.PENDING, BookingStatus.COMPLETED, BookingStatus.CANCELLED
        })
        completed = by_status[BookingStatus.COMPLETED]
        self.assertEqual(completed.count, 3)
        self.assertEqual(completed.total_revenue, 1750.5)
        self.assertEqual(completed.avg_rating, 4.5)
        self.assertIsNone(by_status[BookingStatus.PENDING].avg_rating)
        self.assertEqual(by_status[BookingStatus.CANCELLED].total_revenue, 0.0)

    def test_empty_ledger(self):
        stats = summarize([], generated_at=NOW, recent_since=NOW)

        self.assertEqual(stats.total_bookings, 0)
        self.assertEqual(stats.status_breakdown, [])


class TestBookingStatsService(unittest.TestCase):

    def setUp(self):
        self.repo = MagicMock()
        self.repo.scan_bookings.return_value = []
        self.service = BookingStatsService(self.repo, clock=lambda: NOW)

    def test_admin_gets_windowed_stats(self):
        stats = self.service.get_stats(ADMIN, "2026-03-01", "2026-03-15T00:00:00Z")

        start = datetime(2026, 3, 1, tzinfo=timezone.utc)
        end = datetime(2026, 3, 15, tzinfo=timezone.utc)
        self.repo.scan_bookings.assert_called_once_with(created_from=start, created_to=end)
        self.assertEqual(stats.start_date, start)
        self.assertEqual(stats.end_date, end)
        self.assertEqual(stats.generated_at, NOW)

    def test_no_range_scans_everything(self):
        self.service.get_stats(ADMIN)

        self.repo.scan_bookings.assert_called_once_with(created_from=None, created_to=None)

    def test_inverted_range_rejected(self):
        with self.assertRaises(InvalidInput):
            self.service.get_stats(ADMIN, "2026-03-15", "2026-03-01")

    def test_malformed_date_rejected(self):
        with self.assertRaises(InvalidInput):
            self.service.get_stats(ADMIN, "yesterday")

    def test_non_admin_forbidden(self):
        for role in (UserRole.CUSTOMER, UserRole.MECHANIC):
            with self.assertRaises(Forbidden):
                self.service.get_stats(Actor("x", role))
        self.repo.scan_bookings.assert_not_called()


if __name__ == "__main__":
    unittest.main()
