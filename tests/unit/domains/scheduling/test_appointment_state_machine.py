"""
Unit tests for appointment lifecycle rules.

Tests:
- AppointmentStateMachine transitions and initial status policy
- Appointment transition methods
"""

import pytest

from clinicbook.domains.scheduling.domain.exceptions import InvalidTransition, ValidationError
from clinicbook.domains.scheduling.domain.services.appointment_state_machine import AppointmentStateMachine
from clinicbook.domains.scheduling.domain.value_objects import AppointmentStatus, BookingChannel, Urgency
from tests.utils import at, make_appointment

pytestmark = pytest.mark.unit

PENDING = AppointmentStatus.PENDING
CONFIRMED = AppointmentStatus.CONFIRMED
COMPLETED = AppointmentStatus.COMPLETED
CANCELLED = AppointmentStatus.CANCELLED


# ============================================================================
# AppointmentStateMachine
# ============================================================================


class TestTransitions:
    """Tests for the transition table."""

    @pytest.mark.parametrize(
        "current, target",
        [
            (PENDING, CONFIRMED),
            (PENDING, CANCELLED),
            (CONFIRMED, CANCELLED),
        ],
    )
    def test_allowed_transitions(self, state_machine, current, target):
        """Should allow confirm and cancel from active states."""
        assert state_machine.can_transition(current, target)
        state_machine.ensure_transition(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (CONFIRMED, CONFIRMED),
            (CONFIRMED, PENDING),
            (COMPLETED, CANCELLED),
            (COMPLETED, CONFIRMED),
            (CANCELLED, CONFIRMED),
            (CANCELLED, PENDING),
            (CANCELLED, COMPLETED),
        ],
    )
    def test_rejected_transitions(self, state_machine, current, target):
        """Should raise InvalidTransition for moves outside the table."""
        with pytest.raises(InvalidTransition) as exc_info:
            state_machine.ensure_transition(current, target, via_completion=True)

        assert exc_info.value.current_state == current.value
        assert exc_info.value.target_status == target.value

    def test_completion_requires_workflow(self, state_machine):
        """Should only allow completed through the completion workflow."""
        assert not state_machine.can_transition(CONFIRMED, COMPLETED)
        assert state_machine.can_transition(CONFIRMED, COMPLETED, via_completion=True)
        assert state_machine.can_transition(PENDING, COMPLETED, via_completion=True)

    def test_terminal_states(self):
        """Should report completed and cancelled as terminal."""
        assert COMPLETED.is_terminal()
        assert CANCELLED.is_terminal()
        assert not PENDING.is_terminal()
        assert not CONFIRMED.is_terminal()

    def test_completed_still_occupies_time(self):
        """Should keep completed appointments on the calendar."""
        assert [s for s in AppointmentStatus if s.occupies_time()] == [PENDING, CONFIRMED, COMPLETED]


class TestInitialStatus:
    """Tests for the per-channel initial status policy."""

    def test_defaults(self, state_machine):
        """Should start self-service bookings pending and staff bookings confirmed."""
        assert state_machine.initial_status(BookingChannel.SELF_SERVICE) == PENDING
        assert state_machine.initial_status(BookingChannel.ASSISTANT) == PENDING
        assert state_machine.initial_status(BookingChannel.STAFF) == CONFIRMED

    def test_configurable(self):
        """Should honour configured initial statuses."""
        machine = AppointmentStateMachine(self_service_initial="confirmed", staff_initial="pending")

        assert machine.initial_status(BookingChannel.SELF_SERVICE) == CONFIRMED
        assert machine.initial_status(BookingChannel.STAFF) == PENDING

    @pytest.mark.parametrize("value", ["completed", "cancelled", "unknown"])
    def test_rejects_non_active_initial_status(self, value):
        """Should refuse terminal or unknown initial statuses."""
        with pytest.raises(ValidationError):
            AppointmentStateMachine(self_service_initial=value)


# ============================================================================
# Appointment entity
# ============================================================================


class TestAppointmentTransitions:
    """Tests for Appointment status methods."""

    def test_confirm_sets_timestamp(self):
        appointment = make_appointment(at(9), status=PENDING)

        appointment.confirm()

        assert appointment.status == CONFIRMED
        assert appointment.confirmed_at is not None

    def test_cancel_records_reason(self):
        """Should store who cancelled and why."""
        appointment = make_appointment(at(9))

        appointment.cancel(reason="Feeling better", cancelled_by="patient")

        assert appointment.status == CANCELLED
        assert appointment.cancellation_reason == "Feeling better"
        assert appointment.cancelled_by == "patient"
        assert not appointment.occupies_time()

    def test_cancel_twice_rejected(self):
        appointment = make_appointment(at(9), status=CANCELLED)

        with pytest.raises(InvalidTransition):
            appointment.cancel()

    def test_mark_completed(self):
        """Should complete and keep consultation notes."""
        appointment = make_appointment(at(9))

        appointment.mark_completed(consultation_notes="Filling on 36", completed_by="prov-1")

        assert appointment.status == COMPLETED
        assert appointment.consultation_notes == "Filling on 36"
        assert appointment.completed_at is not None
        assert appointment.occupies_time()

    def test_move_terminal_rejected(self):
        """Should refuse to reschedule a completed appointment."""
        appointment = make_appointment(at(9), status=COMPLETED)

        with pytest.raises(InvalidTransition):
            appointment.move_to(at(10))

    def test_conflicts_with(self):
        """Should detect overlap only for occupying appointments of the same provider."""
        first = make_appointment(at(9), 60)

        assert first.conflicts_with(make_appointment(at(9, 30)))
        assert not first.conflicts_with(make_appointment(at(10)))
        assert not first.conflicts_with(make_appointment(at(9, 30), provider_id="prov-2"))
        assert not first.conflicts_with(make_appointment(at(9, 30), status=CANCELLED))

    def test_urgency(self):
        assert Urgency.HIGH.is_urgent()
        assert Urgency.EMERGENCY.is_urgent()
        assert not Urgency.MEDIUM.is_urgent()
        assert Urgency.from_string("Emergency") == Urgency.EMERGENCY
