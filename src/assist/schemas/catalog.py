from pydantic import Field, field_validator
from assist.schemas.bookings import CamelModel
from assist.models.catalog import ServiceCategory
from assist.utils.constants import MAX_SERVICE_DURATION, MIN_SERVICE_DURATION


class ServiceRequest(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    category: ServiceCategory = ServiceCategory.ROADSIDE_ASSISTANCE
    price: float = Field(ge=0, allow_inf_nan=False)
    duration_minutes: int = Field(ge=MIN_SERVICE_DURATION, le=MAX_SERVICE_DURATION)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str):
        if not v.strip():
            raise ValueError("Service title is required")
        return v.strip()


class ServiceStatusRequest(CamelModel):
    is_active: bool
