from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from assist.models.bookings import (
    ContactInfo,
    Coordinates,
    Location,
    PreferredContact,
    UrgencyLevel,
    VehicleInfo,
    VehicleType,
)
from assist.utils.constants import DEFAULT_PAGE_LIMIT, DEFAULT_QUEUE_LIMIT, MAX_PAGE_LIMIT
from assist.utils.datetime_normaliser import parse_client_datetime


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


def _aware_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("scheduledAt must include timezone info")
    return value.astimezone(timezone.utc)


class CoordinatesIn(CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def to_domain(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)


class LocationIn(CamelModel):
    address: str
    city: str
    state: str
    coordinates: Optional[CoordinatesIn] = None

    def to_domain(self) -> Location:
        return Location(
            address=self.address.strip(),
            city=self.city.strip(),
            state=self.state.strip(),
            coordinates=self.coordinates.to_domain() if self.coordinates else None,
        )


class VehicleInfoIn(CamelModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    license_plate: Optional[str] = None
    vehicle_type: VehicleType = VehicleType.CAR

    def to_domain(self) -> VehicleInfo:
        return VehicleInfo(
            make=self.make,
            model=self.model,
            year=self.year,
            license_plate=self.license_plate,
            vehicle_type=self.vehicle_type,
        )


class ContactInfoIn(CamelModel):
    phone: str
    alternate_phone: Optional[str] = None
    preferred_contact: PreferredContact = PreferredContact.PHONE

    def to_domain(self) -> ContactInfo:
        return ContactInfo(
            phone=self.phone.strip(),
            alternate_phone=self.alternate_phone,
            preferred_contact=self.preferred_contact,
        )


class BookingRequest(CamelModel):
    service_id: str = Field(min_length=1)
    scheduled_at: datetime
    location: LocationIn
    contact_info: ContactInfoIn
    vehicle_info: Optional[VehicleInfoIn] = None
    problem_description: Optional[str] = None
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v: datetime) -> datetime:
        return _aware_utc(v)

    @field_validator("urgency_level", mode="before")
    @classmethod
    def lower_urgency(cls, v):
        return v.lower() if isinstance(v, str) else v


class BookingUpdateRequest(CamelModel):
    scheduled_at: Optional[datetime] = None
    location: Optional[LocationIn] = None
    vehicle_info: Optional[VehicleInfoIn] = None
    contact_info: Optional[ContactInfoIn] = None
    problem_description: Optional[str] = None
    urgency_level: Optional[UrgencyLevel] = None

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _aware_utc(v) if v is not None else v

    @field_validator("urgency_level", mode="before")
    @classmethod
    def lower_urgency(cls, v):
        return v.lower() if isinstance(v, str) else v

    def provided_fields(self) -> set:
        return set(self.model_fields_set)


class StatusUpdateRequest(CamelModel):
    status: str = Field(min_length=1)
    notes: Optional[str] = None
    actual_cost: Optional[float] = None


class NoteRequest(CamelModel):
    message: str
    is_internal: bool = False


class CancelRequest(CamelModel):
    reason: Optional[str] = None


class RatingRequest(CamelModel):
    score: int = Field(ge=1, le=5)
    feedback: Optional[str] = None


class _DateRangeQuery(CamelModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        if v is None or isinstance(v, datetime):
            return v
        return parse_client_datetime(v)

    @model_validator(mode="after")
    def validate_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class BookingListQuery(_DateRangeQuery):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT)
    status: Optional[str] = None


class PendingQueueQuery(CamelModel):
    limit: int = Field(default=DEFAULT_QUEUE_LIMIT, ge=1, le=MAX_PAGE_LIMIT)


class StatsQuery(_DateRangeQuery):
    pass
