"""
Appointment Entity for Scheduling Domain

Represents a booked provider/patient appointment and its lifecycle.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from clinicbook.core.domain import AggregateRoot

from ..exceptions import InvalidTransition
from ..services.appointment_state_machine import AppointmentStateMachine, default_state_machine
from ..value_objects.appointment_status import AppointmentStatus, BookingChannel, Urgency
from ..value_objects.time_range import TimeRange


@dataclass
class Appointment(AggregateRoot[str]):
    """
    Appointment aggregate root for the scheduling domain.

    Example:
        ```python
        appointment = Appointment(
            patient_id="pat-1",
            provider_id="prov-1",
            start_at=datetime(2025, 3, 3, 9, 0),
            duration_minutes=30,
        )
        appointment.confirm()
        appointment.cancel(reason="Patient request", cancelled_by="patient")
        ```
    """

    # References
    patient_id: str = ""
    provider_id: str = ""
    business_id: str | None = None

    # Scheduling
    start_at: datetime | None = None
    duration_minutes: int = 30

    # Classification
    status: AppointmentStatus = AppointmentStatus.PENDING
    urgency: Urgency = Urgency.LOW
    booking_channel: BookingChannel = BookingChannel.SELF_SERVICE

    # Clinical information
    reason: str = ""
    notes: str = ""
    consultation_notes: str | None = None
    treatment_plan_id: str | None = None
    follow_up_of_id: str | None = None

    # Timestamps
    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    # Cancellation / completion
    cancellation_reason: str | None = None
    cancelled_by: str | None = None
    completed_by: str | None = None

    @property
    def end_at(self) -> datetime | None:
        """Get end as datetime."""
        if self.start_at is None:
            return None
        return self.start_at + timedelta(minutes=self.duration_minutes)

    @property
    def time_range(self) -> TimeRange:
        if self.start_at is None:
            raise ValueError("Appointment has no start time")
        return TimeRange.from_duration(self.start_at, self.duration_minutes)

    def occupies_time(self) -> bool:
        return self.status.occupies_time()

    # Status Transitions

    def confirm(self, machine: AppointmentStateMachine = default_state_machine) -> None:
        """Confirm the appointment."""
        machine.ensure_transition(self.status, AppointmentStatus.CONFIRMED)
        self.status = AppointmentStatus.CONFIRMED
        self.confirmed_at = datetime.now(UTC)
        self.touch()

    def cancel(
        self,
        reason: str | None = None,
        cancelled_by: str = "system",
        machine: AppointmentStateMachine = default_state_machine,
    ) -> None:
        """Cancel the appointment."""
        machine.ensure_transition(self.status, AppointmentStatus.CANCELLED)
        self.status = AppointmentStatus.CANCELLED
        self.cancelled_at = datetime.now(UTC)
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.touch()

    def mark_completed(
        self,
        consultation_notes: str | None = None,
        completed_by: str | None = None,
        machine: AppointmentStateMachine = default_state_machine,
    ) -> None:
        """Move to completed. Only the completion workflow calls this."""
        machine.ensure_transition(self.status, AppointmentStatus.COMPLETED, via_completion=True)
        self.status = AppointmentStatus.COMPLETED
        self.completed_at = datetime.now(UTC)
        if consultation_notes:
            self.consultation_notes = consultation_notes
        self.completed_by = completed_by
        self.touch()

    def move_to(self, new_start_at: datetime, duration_minutes: int | None = None) -> None:
        """Reschedule the appointment to a new start time."""
        if not self.status.is_active():
            raise InvalidTransition(self.status.value, self.status.value, operation="reschedule")
        self.start_at = new_start_at
        if duration_minutes is not None:
            self.duration_minutes = duration_minutes
        self.touch()

    # Conflict Detection

    def conflicts_with(self, other: "Appointment") -> bool:
        """Check if appointment conflicts with another of the same provider."""
        if self.provider_id != other.provider_id:
            return False
        if self.start_at is None or other.start_at is None:
            return False
        if not (self.occupies_time() and other.occupies_time()):
            return False
        return self.time_range.overlaps(other.time_range)

    # Serialization

    def to_summary_dict(self) -> dict[str, Any]:
        """Convert to summary dictionary."""
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "provider_id": self.provider_id,
            "start_at": self.start_at.isoformat() if self.start_at else None,
            "end_at": self.end_at.isoformat() if self.end_at else None,
            "duration_minutes": self.duration_minutes,
            "status": self.status.value,
            "urgency": self.urgency.value,
        }
