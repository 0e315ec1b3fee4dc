from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


class BookingStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


TERMINAL_STATUSES = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
)


class UrgencyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"

    @property
    def rank(self) -> int:
        return _URGENCY_RANK[self]


_URGENCY_RANK = {
    UrgencyLevel.LOW: 0,
    UrgencyLevel.MEDIUM: 1,
    UrgencyLevel.HIGH: 2,
    UrgencyLevel.EMERGENCY: 3,
}


class VehicleType(str, Enum):
    CAR = "car"
    MOTORCYCLE = "motorcycle"
    TRUCK = "truck"
    EV = "ev"
    HYBRID = "hybrid"


class PreferredContact(str, Enum):
    PHONE = "phone"
    WHATSAPP = "whatsapp"
    SMS = "sms"


@dataclass
class Coordinates:
    lat: float
    lng: float


@dataclass
class Location:
    address: str
    city: str
    state: str
    coordinates: Optional[Coordinates] = None


@dataclass
class VehicleInfo:
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    license_plate: Optional[str] = None
    vehicle_type: VehicleType = VehicleType.CAR


@dataclass
class ContactInfo:
    phone: str
    alternate_phone: Optional[str] = None
    preferred_contact: PreferredContact = PreferredContact.PHONE


@dataclass
class Timeline:
    created_at: datetime
    accepted_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


@dataclass
class Note:
    author_id: str
    message: str
    timestamp: datetime
    is_internal: bool = False


@dataclass
class Rating:
    score: int
    rated_at: datetime
    feedback: Optional[str] = None


@dataclass
class Booking:
    booking_id: str
    customer_id: str
    service_id: str
    scheduled_at: datetime
    location: Location
    contact_info: ContactInfo
    vehicle_info: VehicleInfo = field(default_factory=VehicleInfo)
    status: BookingStatus = BookingStatus.PENDING
    mechanic_id: Optional[str] = None
    problem_description: Optional[str] = None
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM

    estimated_cost: float = 0.0
    actual_cost: Optional[float] = None

    timeline: Timeline = field(
        default_factory=lambda: Timeline(created_at=datetime.now(timezone.utc))
    )
    notes: List[Note] = field(default_factory=list)
    rating: Optional[Rating] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None


STATUS_DISPLAY = {
    BookingStatus.PENDING: "Pending Assignment",
    BookingStatus.ACCEPTED: "Mechanic Assigned",
    BookingStatus.IN_PROGRESS: "Service in Progress",
    BookingStatus.COMPLETED: "Completed",
    BookingStatus.CANCELLED: "Cancelled",
    BookingStatus.NO_SHOW: "No Show",
}


def status_display(status: BookingStatus) -> str:
    return STATUS_DISPLAY.get(status, status.value)


def duration_minutes(booking: Booking) -> Optional[int]:
    """Minutes spent on site, from start of work to completion."""
    started = booking.timeline.started_at
    completed = booking.timeline.completed_at
    if not started or not completed:
        return None
    return round((completed - started).total_seconds() / 60)


def total_duration_hours(booking: Booking) -> Optional[int]:
    created = booking.timeline.created_at
    completed = booking.timeline.completed_at
    if not created or not completed:
        return None
    return round((completed - created).total_seconds() / 3600)
