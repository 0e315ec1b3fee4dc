import unittest
from unittest.mock import MagicMock
from datetime import datetime, timezone, timedelta

from assist.models.bookings import (
    Booking,
    BookingStatus,
    ContactInfo,
    Location,
    Note,
    Timeline,
)
from assist.models.users import Actor, UserRole
from assist.services.booking_state_machine import (
    BookingStateMachine,
    allowed_transitions,
    can_transition,
    parse_status,
)
from assist.utils.custom_exceptions import InvalidInput, InvalidTransition

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_booking(status=BookingStatus.PENDING, mechanic_id=None):
    return Booking(
        booking_id="b1",
        customer_id="c1",
        service_id="s1",
        scheduled_at=NOW + timedelta(hours=2),
        location=Location(address="1 Main St", city="Pune", state="MH"),
        contact_info=ContactInfo(phone="9876543210"),
        status=status,
        mechanic_id=mechanic_id,
        timeline=Timeline(created_at=NOW),
        created_at=NOW,
    )


class TestTransitionTable(unittest.TestCase):

    def test_terminal_statuses_have_no_exits(self):
        for status in (BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
            self.assertEqual(allowed_transitions(status), frozenset())

    def test_same_status_is_never_allowed(self):
        for status in BookingStatus:
            self.assertFalse(can_transition(status, status))

    def test_legal_edges(self):
        self.assertTrue(can_transition(BookingStatus.PENDING, BookingStatus.ACCEPTED))
        self.assertTrue(can_transition(BookingStatus.ACCEPTED, BookingStatus.NO_SHOW))
        self.assertTrue(can_transition(BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED))
        self.assertFalse(can_transition(BookingStatus.PENDING, BookingStatus.COMPLETED))
        self.assertFalse(can_transition(BookingStatus.IN_PROGRESS, BookingStatus.NO_SHOW))

    def test_parse_status_accepts_wire_values(self):
        self.assertEqual(parse_status("In-Progress"), BookingStatus.IN_PROGRESS)
        self.assertEqual(parse_status(BookingStatus.NO_SHOW), BookingStatus.NO_SHOW)

    def test_parse_status_rejects_unknown(self):
        with self.assertRaises(InvalidInput) as ctx:
            parse_status("done")
        self.assertIn("Valid statuses", str(ctx.exception))


class TestBookingStateMachine(unittest.TestCase):

    def setUp(self):
        self.repo = MagicMock()
        self.machine = BookingStateMachine(self.repo, clock=lambda: NOW)
        self.mechanic = Actor("m1", UserRole.MECHANIC)
        self.admin = Actor("a1", UserRole.ADMIN)

    def test_mechanic_accept_assigns_self(self):
        booking = make_booking()

        self.machine.transition(booking, "accepted", self.mechanic)

        self.repo.apply_transition.assert_called_once_with(
            booking,
            BookingStatus.ACCEPTED,
            now=NOW,
            assign_mechanic_id="m1",
            actual_cost=None,
            note=None,
        )

    def test_admin_accept_does_not_assign(self):
        booking = make_booking()

        self.machine.transition(booking, BookingStatus.ACCEPTED, self.admin)

        _, kwargs = self.repo.apply_transition.call_args
        self.assertIsNone(kwargs["assign_mechanic_id"])

    def test_accept_of_booking_held_by_other_mechanic_rejected(self):
        booking = make_booking(mechanic_id="m2")

        with self.assertRaises(InvalidTransition):
            self.machine.transition(booking, BookingStatus.ACCEPTED, self.mechanic)
        self.repo.apply_transition.assert_not_called()

    def test_invalid_edge_never_touches_storage(self):
        booking = make_booking(BookingStatus.COMPLETED, mechanic_id="m1")

        with self.assertRaises(InvalidTransition):
            self.machine.transition(booking, BookingStatus.CANCELLED, self.admin)

        self.repo.apply_transition.assert_not_called()
        self.assertEqual(booking.status, BookingStatus.COMPLETED)
        self.assertIsNone(booking.timeline.cancelled_at)

    def test_repeating_current_status_rejected(self):
        booking = make_booking(BookingStatus.ACCEPTED, mechanic_id="m1")

        with self.assertRaises(InvalidTransition):
            self.machine.transition(booking, BookingStatus.ACCEPTED, self.mechanic)
        self.repo.apply_transition.assert_not_called()

    def test_actual_cost_only_on_completion(self):
        booking = make_booking(BookingStatus.ACCEPTED, mechanic_id="m1")

        with self.assertRaises(InvalidInput):
            self.machine.transition(
                booking, BookingStatus.IN_PROGRESS, self.mechanic, actual_cost=100.0
            )

    def test_negative_actual_cost_rejected(self):
        booking = make_booking(BookingStatus.IN_PROGRESS, mechanic_id="m1")

        with self.assertRaises(InvalidInput):
            self.machine.transition(
                booking, BookingStatus.COMPLETED, self.mechanic, actual_cost=-1.0
            )
        self.repo.apply_transition.assert_not_called()

    def test_completion_passes_actual_cost(self):
        booking = make_booking(BookingStatus.IN_PROGRESS, mechanic_id="m1")

        self.machine.transition(
            booking, BookingStatus.COMPLETED, self.mechanic, actual_cost=1250.0
        )

        _, kwargs = self.repo.apply_transition.call_args
        self.assertEqual(kwargs["actual_cost"], 1250.0)

    def test_note_travels_with_the_transition_write(self):
        booking = make_booking(BookingStatus.ACCEPTED, mechanic_id="m1")
        note = Note("m1", "On site", NOW)

        self.machine.transition(
            booking, BookingStatus.IN_PROGRESS, self.mechanic, note=note
        )

        _, kwargs = self.repo.apply_transition.call_args
        self.assertIs(kwargs["note"], note)


if __name__ == "__main__":
    unittest.main()
