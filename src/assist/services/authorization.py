"""Single decision table for who may do what to a booking.

Rules are evaluated top to bottom and the first matching rule decides.
Every booking operation consults ``AuthorizationGate.authorize`` before the
state machine or the ledger is touched.
"""

from enum import Enum
from typing import List, Optional

from assist.models.bookings import Booking, BookingStatus, Note
from assist.models.users import Actor
from assist.utils.custom_exceptions import Forbidden, Unauthenticated


class Operation(str, Enum):
    CREATE = "create"
    VIEW = "view"
    EDIT_FIELDS = "edit-fields"
    ACCEPT = "accept"
    UPDATE_STATUS = "update-status"
    CHANGE_STATUS = "change-status"
    CANCEL = "cancel"
    ADD_NOTE = "add-note"
    LIST_QUEUE = "list-queue"
    VIEW_STATS = "view-stats"
    RATE = "rate"


STATUS_CHANGING = frozenset({Operation.CHANGE_STATUS, Operation.CANCEL})


def operation_for_status(booking: Booking, requested: BookingStatus) -> Operation:
    if requested == BookingStatus.CANCELLED:
        return Operation.CANCEL
    if requested == BookingStatus.ACCEPTED and booking.status == BookingStatus.PENDING:
        return Operation.ACCEPT
    return Operation.CHANGE_STATUS


def _is_owner(actor: Actor, booking: Optional[Booking]) -> bool:
    return booking is not None and booking.customer_id == actor.user_id


def _is_assigned(actor: Actor, booking: Optional[Booking]) -> bool:
    return (
        booking is not None
        and booking.mechanic_id is not None
        and booking.mechanic_id == actor.user_id
    )


class AuthorizationGate:
    def authorize(
        self,
        actor: Optional[Actor],
        operation: Operation,
        booking: Optional[Booking] = None,
    ):
        if actor is None:
            raise Unauthenticated()

        if actor.is_admin:
            return

        if operation == Operation.UPDATE_STATUS:
            if actor.is_staff:
                return
            raise Forbidden("Access denied. Mechanic or admin role required.")

        if actor.is_mechanic and operation == Operation.ACCEPT:
            if booking is not None and booking.status == BookingStatus.PENDING:
                return
            raise Forbidden("Only pending bookings can be accepted")

        if actor.is_mechanic and operation in STATUS_CHANGING:
            if _is_assigned(actor, booking):
                return
            raise Forbidden("You can only update bookings assigned to you")

        if actor.is_customer and operation == Operation.CREATE:
            return

        if actor.is_customer and operation == Operation.EDIT_FIELDS:
            if not _is_owner(actor, booking):
                raise Forbidden("You can only update your own bookings")
            if booking.status != BookingStatus.PENDING:
                raise Forbidden("Can only update pending bookings")
            return

        if actor.is_customer and operation == Operation.CANCEL:
            if _is_owner(actor, booking):
                return
            raise Forbidden("You can only cancel your own bookings")

        if operation in (Operation.ADD_NOTE, Operation.VIEW):
            if _is_owner(actor, booking) or _is_assigned(actor, booking):
                return
            raise Forbidden("Access denied. You can only access your own bookings.")

        if actor.is_mechanic and operation == Operation.LIST_QUEUE:
            return

        if actor.is_customer and operation == Operation.RATE:
            if _is_owner(actor, booking):
                return
            raise Forbidden("You can only rate your own bookings")

        raise Forbidden(f"{actor.role.value.lower()} cannot perform {operation.value}")

    @staticmethod
    def effective_internal_flag(actor: Actor, requested: bool) -> bool:
        return bool(requested) and actor.is_staff

    @staticmethod
    def visible_notes(actor: Actor, notes: List[Note]) -> List[Note]:
        if actor.is_staff:
            return list(notes)
        return [note for note in notes if not note.is_internal]
