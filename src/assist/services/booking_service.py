import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

from assist.models.bookings import Booking, BookingStatus, Note, Rating, Timeline, VehicleInfo
from assist.models.users import Actor
from assist.repository.booking_repo import BookingRepository
from assist.repository.catalog_repo import CatalogRepository
from assist.repository.user_repo import UserRepository
from assist.schemas.bookings import BookingListQuery, BookingRequest, BookingUpdateRequest
from assist.services.authorization import AuthorizationGate, Operation, operation_for_status
from assist.services.booking_state_machine import BookingStateMachine, parse_status
from assist.services.booking_validation import (
    normalize_note_message,
    normalize_problem_description,
    validate_contact,
    validate_location,
    validate_rating,
    validate_scheduled_at,
)
from assist.utils.constants import DEFAULT_QUEUE_LIMIT
from assist.utils.custom_exceptions import (
    InvalidInput,
    NotFoundException,
    ServiceUnavailable,
    Unauthenticated,
)
from assist.utils.datetime_normaliser import to_iso_string, utc_now

logger = logging.getLogger(__name__)


def _require_actor(actor: Optional[Actor]):
    if actor is None:
        raise Unauthenticated()


@dataclass
class BookingPage:
    bookings: List[Booking]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1


class BookingService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        user_repo: UserRepository,
        catalog_repo: CatalogRepository,
        state_machine: Optional[BookingStateMachine] = None,
        gate: Optional[AuthorizationGate] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.booking_repo = booking_repo
        self.user_repo = user_repo
        self.catalog_repo = catalog_repo
        self.clock = clock or utc_now
        self.state_machine = state_machine or BookingStateMachine(
            booking_repo, clock=self.clock
        )
        self.gate = gate or AuthorizationGate()

    def create_booking(self, actor: Actor, req: BookingRequest) -> Booking:
        self.gate.authorize(actor, Operation.CREATE)

        now = self.clock()
        location = req.location.to_domain()
        contact_info = req.contact_info.to_domain()
        validate_scheduled_at(req.scheduled_at, now)
        validate_location(location)
        validate_contact(contact_info)
        problem_description = normalize_problem_description(req.problem_description)

        customer = self.user_repo.get_by_id(actor.user_id)
        if customer is None:
            raise NotFoundException(resource="user", identifier=actor.user_id)

        service = self.catalog_repo.get_service_by_id(req.service_id)
        if service is None or not service.is_active:
            raise ServiceUnavailable("Service not found or no longer available")

        booking = Booking(
            booking_id=str(uuid4()),
            customer_id=actor.user_id,
            service_id=service.service_id,
            scheduled_at=req.scheduled_at,
            location=location,
            contact_info=contact_info,
            vehicle_info=req.vehicle_info.to_domain() if req.vehicle_info else VehicleInfo(),
            problem_description=problem_description,
            urgency_level=req.urgency_level,
            estimated_cost=service.price,
            timeline=Timeline(created_at=now),
            created_at=now,
        )
        self.booking_repo.add_booking(booking)
        logger.info(
            "Booking %s created by customer %s for service %s",
            booking.booking_id,
            actor.user_id,
            service.service_id,
        )
        return booking

    def get_booking(self, actor: Actor, booking_id: str) -> Booking:
        booking = self._get_or_404(booking_id)
        self.gate.authorize(actor, Operation.VIEW, booking)
        return self._view(actor, booking)

    def list_bookings(self, actor: Actor, query: BookingListQuery) -> BookingPage:
        _require_actor(actor)
        status = parse_status(query.status) if query.status else None
        skip = (query.page - 1) * query.limit

        if actor.is_mechanic and status is None:
            page, total = self._mechanic_history(actor, query, skip)
        else:
            page, total = self.booking_repo.find_page(
                skip,
                query.limit,
                customer_id=actor.user_id if actor.is_customer else None,
                mechanic_id=actor.user_id if actor.is_mechanic else None,
                status=status,
                scheduled_from=query.start_date,
                scheduled_to=query.end_date,
            )

        return BookingPage(
            bookings=[self._view(actor, b) for b in page],
            page=query.page,
            limit=query.limit,
            total=total,
        )

    def _mechanic_history(self, actor: Actor, query: BookingListQuery, skip: int):
        # MechanicIndex groups by status first; one mechanic's assignments are merged here.
        bookings = self.booking_repo.get_mechanic_bookings(actor.user_id)
        if query.start_date:
            bookings = [b for b in bookings if b.scheduled_at >= query.start_date]
        if query.end_date:
            bookings = [b for b in bookings if b.scheduled_at <= query.end_date]
        bookings.sort(key=lambda b: b.created_at, reverse=True)
        return bookings[skip : skip + query.limit], len(bookings)

    def list_unassigned(self, actor: Actor, limit: int = DEFAULT_QUEUE_LIMIT) -> List[Booking]:
        self.gate.authorize(actor, Operation.LIST_QUEUE)
        if limit < 1:
            raise InvalidInput("limit must be at least 1")

        now = self.clock()
        pending = self.booking_repo.get_bookings_by_status(
            BookingStatus.PENDING, scheduled_after=now
        )
        queue = [
            b
            for b in pending
            if b.status == BookingStatus.PENDING
            and b.mechanic_id is None
            and b.scheduled_at > now
        ]
        queue.sort(key=lambda b: (-b.urgency_level.rank, b.scheduled_at))
        return [self._view(actor, b) for b in queue[:limit]]

    def update_status(
        self,
        actor: Actor,
        booking_id: str,
        status,
        note: Optional[str] = None,
        actual_cost: Optional[float] = None,
    ) -> Booking:
        """Status endpoint; mechanics and admins only. Customers cancel via ``cancel_booking``."""
        self.gate.authorize(actor, Operation.UPDATE_STATUS)
        return self._change_status(
            actor, booking_id, status, note=note, actual_cost=actual_cost
        )

    def cancel_booking(self, actor: Actor, booking_id: str, reason: Optional[str] = None) -> Booking:
        _require_actor(actor)
        return self._change_status(actor, booking_id, BookingStatus.CANCELLED, note=reason)

    def _change_status(
        self,
        actor: Actor,
        booking_id: str,
        status,
        note: Optional[str] = None,
        actual_cost: Optional[float] = None,
    ) -> Booking:
        requested = parse_status(status)
        message = normalize_note_message(note) if note is not None and note.strip() else None

        booking = self._get_or_404(booking_id)
        self.gate.authorize(actor, operation_for_status(booking, requested), booking)

        entry = None
        if message:
            entry = Note(
                author_id=actor.user_id,
                message=message,
                timestamp=self.clock(),
                is_internal=False,
            )

        updated = self.state_machine.transition(
            booking, requested, actor, actual_cost=actual_cost, note=entry
        )
        return self._view(actor, updated)

    def update_booking(
        self, actor: Actor, booking_id: str, req: BookingUpdateRequest
    ) -> Booking:
        _require_actor(actor)
        provided = req.provided_fields()
        if not provided:
            raise InvalidInput("No valid fields to update")

        now = self.clock()
        updates = {}
        if "scheduled_at" in provided:
            validate_scheduled_at(req.scheduled_at, now)
            updates["scheduled_at"] = to_iso_string(req.scheduled_at)
        if "location" in provided:
            if req.location is None:
                raise InvalidInput("Location is required")
            location = req.location.to_domain()
            validate_location(location)
            updates["location"] = BookingRepository.location_item(location)
        if "contact_info" in provided:
            if req.contact_info is None:
                raise InvalidInput("Contact phone number is required")
            contact = req.contact_info.to_domain()
            validate_contact(contact)
            updates["contact_info"] = BookingRepository.contact_item(contact)
        if "vehicle_info" in provided:
            vehicle = req.vehicle_info.to_domain() if req.vehicle_info else VehicleInfo()
            updates["vehicle_info"] = BookingRepository.vehicle_item(vehicle)
        if "problem_description" in provided:
            updates["problem_description"] = normalize_problem_description(
                req.problem_description
            )
        if "urgency_level" in provided:
            if req.urgency_level is None:
                raise InvalidInput("urgencyLevel cannot be empty")
            updates["urgency_level"] = req.urgency_level.value

        booking = self._get_or_404(booking_id)
        self.gate.authorize(actor, Operation.EDIT_FIELDS, booking)

        updated = self.booking_repo.update_booking_fields(
            booking_id, booking.customer_id, updates, now
        )
        logger.info("Booking %s details updated by %s", booking_id, actor.user_id)
        return self._view(actor, updated)

    def add_note(
        self, actor: Actor, booking_id: str, message: str, is_internal: bool = False
    ) -> Note:
        _require_actor(actor)
        message = normalize_note_message(message)

        booking = self._get_or_404(booking_id)
        self.gate.authorize(actor, Operation.ADD_NOTE, booking)

        note = Note(
            author_id=actor.user_id,
            message=message,
            timestamp=self.clock(),
            is_internal=self.gate.effective_internal_flag(actor, is_internal),
        )
        self.booking_repo.append_note(booking_id, note)
        logger.info(
            "Note added to booking %s by %s (internal=%s)",
            booking_id,
            actor.user_id,
            note.is_internal,
        )
        return note

    def rate_booking(
        self, actor: Actor, booking_id: str, score: int, feedback: Optional[str] = None
    ) -> Booking:
        _require_actor(actor)
        feedback = feedback.strip() if feedback else None
        validate_rating(score, feedback)

        booking = self._get_or_404(booking_id)
        self.gate.authorize(actor, Operation.RATE, booking)
        if booking.status != BookingStatus.COMPLETED:
            raise InvalidInput("Only completed bookings can be rated")
        if booking.rating is not None:
            raise InvalidInput("Booking has already been rated")

        rating = Rating(score=score, feedback=feedback or None, rated_at=self.clock())
        updated = self.booking_repo.set_rating(booking_id, booking.customer_id, rating)
        return self._view(actor, updated)

    def _get_or_404(self, booking_id: str) -> Booking:
        if not booking_id:
            raise InvalidInput("booking id is required")
        booking = self.booking_repo.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException(resource="booking", identifier=booking_id)
        return booking

    def _view(self, actor: Actor, booking: Booking) -> Booking:
        return replace(booking, notes=self.gate.visible_notes(actor, booking.notes))
