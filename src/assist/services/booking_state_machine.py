"""Booking lifecycle transitions.

The edge table below is the only authority on which status changes are legal.
Writes go through ``BookingRepository.apply_transition``, a conditional update
on the booking's (status, mechanic_id) snapshot, so a stale snapshot can never
overwrite a concurrent change.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from assist.models.bookings import Booking, BookingStatus, Note
from assist.models.users import Actor
from assist.repository.booking_repo import BookingRepository
from assist.services.booking_validation import validate_cost
from assist.utils.custom_exceptions import InvalidInput, InvalidTransition
from assist.utils.datetime_normaliser import utc_now

logger = logging.getLogger(__name__)

TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.ACCEPTED, BookingStatus.CANCELLED}),
    BookingStatus.ACCEPTED: frozenset(
        {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.IN_PROGRESS: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED}
    ),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}


def parse_status(value) -> BookingStatus:
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in BookingStatus)
        raise InvalidInput(f"Invalid status. Valid statuses: {allowed}")


def allowed_transitions(status: BookingStatus) -> frozenset:
    return TRANSITIONS.get(status, frozenset())


def can_transition(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in allowed_transitions(current)


def assert_transition(current: BookingStatus, requested: BookingStatus):
    if not can_transition(current, requested):
        raise InvalidTransition(current.value, requested.value)


class BookingStateMachine:
    def __init__(
        self,
        booking_repo: BookingRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.booking_repo = booking_repo
        self.clock = clock or utc_now

    def transition(
        self,
        booking: Booking,
        requested_status,
        actor: Actor,
        actual_cost: Optional[float] = None,
        note: Optional[Note] = None,
    ) -> Booking:
        requested = parse_status(requested_status)
        assert_transition(booking.status, requested)

        if actual_cost is not None:
            if requested != BookingStatus.COMPLETED:
                raise InvalidInput("actual cost can only be set when completing a booking")
            validate_cost(actual_cost, "Actual cost")

        assign_mechanic_id = None
        if (
            booking.status == BookingStatus.PENDING
            and requested == BookingStatus.ACCEPTED
            and actor.is_mechanic
        ):
            if booking.mechanic_id and booking.mechanic_id != actor.user_id:
                raise InvalidTransition(
                    booking.status.value,
                    requested.value,
                    "booking is already assigned to another mechanic",
                )
            assign_mechanic_id = actor.user_id

        updated = self.booking_repo.apply_transition(
            booking,
            requested,
            now=self.clock(),
            assign_mechanic_id=assign_mechanic_id,
            actual_cost=actual_cost,
            note=note,
        )

        logger.info(
            "Booking %s moved %s -> %s by %s",
            booking.booking_id,
            booking.status.value,
            requested.value,
            actor.user_id,
        )
        if assign_mechanic_id:
            logger.info(
                "Booking %s assigned to mechanic %s", booking.booking_id, assign_mechanic_id
            )
        return updated
