from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Optional

from assist.models.bookings import (
    Booking,
    Note,
    duration_minutes,
    status_display,
    total_duration_hours,
)
from assist.models.catalog import CatalogService
from assist.services.booking_service import BookingPage
from assist.services.stats_service import BookingStats


def _plain(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def note_response(note: Note) -> dict:
    return {
        "author_id": note.author_id,
        "message": note.message,
        "timestamp": note.timestamp.isoformat(),
        "is_internal": note.is_internal,
    }


def booking_response(booking: Booking) -> dict:
    return {
        "booking_id": booking.booking_id,
        "customer_id": booking.customer_id,
        "service_id": booking.service_id,
        "mechanic_id": booking.mechanic_id,
        "status": booking.status.value,
        "status_display": status_display(booking.status),
        "scheduled_at": booking.scheduled_at.isoformat(),
        "location": _plain(asdict(booking.location)),
        "vehicle_info": _plain(asdict(booking.vehicle_info)),
        "contact_info": _plain(asdict(booking.contact_info)),
        "problem_description": booking.problem_description,
        "urgency_level": booking.urgency_level.value,
        "estimated_cost": booking.estimated_cost,
        "actual_cost": booking.actual_cost,
        "timeline": _plain(asdict(booking.timeline)),
        "duration_minutes": duration_minutes(booking),
        "total_duration_hours": total_duration_hours(booking),
        "notes": [note_response(n) for n in booking.notes],
        "rating": _plain(asdict(booking.rating)) if booking.rating else None,
        "created_at": booking.created_at.isoformat(),
        "updated_at": _iso(booking.updated_at),
    }


def booking_page_response(page: BookingPage) -> dict:
    return {
        "bookings": [booking_response(b) for b in page.bookings],
        "pagination": {
            "current_page": page.page,
            "total_pages": page.total_pages,
            "total_bookings": page.total,
            "has_next_page": page.has_next_page,
            "has_prev_page": page.has_prev_page,
            "limit": page.limit,
        },
    }


def stats_response(stats: BookingStats) -> dict:
    date_range = {}
    if stats.start_date:
        date_range["start"] = stats.start_date.isoformat()
    if stats.end_date:
        date_range["end"] = stats.end_date.isoformat()
    return {
        "overview": {
            "total_bookings": stats.total_bookings,
            "pending_bookings": stats.pending_bookings,
            "completed_bookings": stats.completed_bookings,
            "recent_bookings": stats.recent_bookings,
        },
        "status_breakdown": [
            {
                "status": row.status.value,
                "count": row.count,
                "total_revenue": row.total_revenue,
                "avg_rating": row.avg_rating,
            }
            for row in stats.status_breakdown
        ],
        "date_range": date_range,
        "generated_at": stats.generated_at.isoformat(),
    }


def service_response(service: CatalogService) -> dict:
    return {
        "service_id": service.service_id,
        "title": service.title,
        "category": service.category.value,
        "price": service.price,
        "duration_minutes": service.duration_minutes,
        "is_active": service.is_active,
    }
