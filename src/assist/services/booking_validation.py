"""Field rules checked by the ledger before anything is persisted."""

import math
from datetime import datetime
from typing import Optional

from assist.models.bookings import ContactInfo, Location
from assist.utils.constants import (
    MAX_ADDRESS_LENGTH,
    MAX_FEEDBACK_LENGTH,
    MAX_NOTE_LENGTH,
    MAX_PROBLEM_DESCRIPTION_LENGTH,
    PHONE_REGEX,
)
from assist.utils.custom_exceptions import InvalidInput


def validate_scheduled_at(scheduled_at: datetime, now: datetime):
    if scheduled_at is None:
        raise InvalidInput("Scheduled time is required")
    if scheduled_at.tzinfo is None:
        raise InvalidInput("Scheduled time must include timezone info")
    if scheduled_at <= now:
        raise InvalidInput("Scheduled time must be in the future")


def validate_location(location: Location):
    if location is None:
        raise InvalidInput("Location is required")
    if not (location.address and location.city and location.state):
        raise InvalidInput("Location must include address, city, and state")
    if len(location.address) > MAX_ADDRESS_LENGTH:
        raise InvalidInput(f"Address cannot exceed {MAX_ADDRESS_LENGTH} characters")
    coordinates = location.coordinates
    if coordinates is not None:
        if not -90 <= coordinates.lat <= 90:
            raise InvalidInput("Latitude must be between -90 and 90")
        if not -180 <= coordinates.lng <= 180:
            raise InvalidInput("Longitude must be between -180 and 180")


def validate_contact(contact: ContactInfo):
    if contact is None or not contact.phone:
        raise InvalidInput("Contact phone number is required")
    if not PHONE_REGEX.fullmatch(contact.phone):
        raise InvalidInput("Please enter a valid phone number")
    if contact.alternate_phone and not PHONE_REGEX.fullmatch(contact.alternate_phone):
        raise InvalidInput("Please enter a valid alternate phone number")


def normalize_problem_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) > MAX_PROBLEM_DESCRIPTION_LENGTH:
        raise InvalidInput(
            f"Problem description cannot exceed {MAX_PROBLEM_DESCRIPTION_LENGTH} characters"
        )
    return value or None


def validate_cost(value: Optional[float], label: str = "Cost"):
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{label} must be a number")
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidInput(f"{label} cannot be negative")


def normalize_note_message(message: Optional[str]) -> str:
    message = (message or "").strip()
    if not message:
        raise InvalidInput("Note message is required")
    if len(message) > MAX_NOTE_LENGTH:
        raise InvalidInput(f"Note cannot exceed {MAX_NOTE_LENGTH} characters")
    return message


def validate_rating(score: int, feedback: Optional[str]):
    if isinstance(score, bool) or not isinstance(score, int) or not 1 <= score <= 5:
        raise InvalidInput("Rating must be between 1 and 5")
    if feedback and len(feedback) > MAX_FEEDBACK_LENGTH:
        raise InvalidInput(f"Feedback cannot exceed {MAX_FEEDBACK_LENGTH} characters")
