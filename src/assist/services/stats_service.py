"""Read-only rollups over the booking ledger for the admin dashboard."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import ValidationError

from assist.models.bookings import Booking, BookingStatus
from assist.models.users import Actor
from assist.repository.booking_repo import BookingRepository
from assist.schemas.bookings import StatsQuery
from assist.services.authorization import AuthorizationGate, Operation
from assist.utils.constants import RECENT_BOOKINGS_DAYS
from assist.utils.custom_exceptions import InvalidInput
from assist.utils.datetime_normaliser import utc_now


@dataclass
class StatusBreakdown:
    status: BookingStatus
    count: int
    total_revenue: float
    avg_rating: Optional[float]


@dataclass
class BookingStats:
    total_bookings: int
    pending_bookings: int
    completed_bookings: int
    recent_bookings: int
    status_breakdown: List[StatusBreakdown]
    generated_at: datetime
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


def parse_date_range(start_date=None, end_date=None) -> StatsQuery:
    try:
        return StatsQuery(start_date=start_date, end_date=end_date)
    except ValidationError as e:
        raise InvalidInput("; ".join(err["msg"] for err in e.errors()))


def summarize(
    bookings: List[Booking], generated_at: datetime, recent_since: datetime
) -> BookingStats:
    groups = defaultdict(list)
    for booking in bookings:
        groups[booking.status].append(booking)

    breakdown = []
    for status in BookingStatus:
        members = groups.get(status)
        if not members:
            continue
        revenue = sum(b.actual_cost or 0.0 for b in members)
        scores = [b.rating.score for b in members if b.rating is not None]
        breakdown.append(
            StatusBreakdown(
                status=status,
                count=len(members),
                total_revenue=round(revenue, 2),
                avg_rating=round(sum(scores) / len(scores), 1) if scores else None,
            )
        )

    return BookingStats(
        total_bookings=len(bookings),
        pending_bookings=len(groups.get(BookingStatus.PENDING, [])),
        completed_bookings=len(groups.get(BookingStatus.COMPLETED, [])),
        recent_bookings=sum(1 for b in bookings if b.created_at >= recent_since),
        status_breakdown=breakdown,
        generated_at=generated_at,
    )


class BookingStatsService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        gate: Optional[AuthorizationGate] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.booking_repo = booking_repo
        self.gate = gate or AuthorizationGate()
        self.clock = clock or utc_now

    def get_stats(self, actor: Actor, start_date=None, end_date=None) -> BookingStats:
        self.gate.authorize(actor, Operation.VIEW_STATS)
        date_range = parse_date_range(start_date, end_date)

        now = self.clock()
        bookings = self.booking_repo.scan_bookings(
            created_from=date_range.start_date, created_to=date_range.end_date
        )
        stats = summarize(
            bookings,
            generated_at=now,
            recent_since=now - timedelta(days=RECENT_BOOKINGS_DAYS),
        )
        stats.start_date = date_range.start_date
        stats.end_date = date_range.end_date
        return stats
