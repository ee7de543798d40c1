"""
Booking DTOs

Data transfer objects for reserving, moving and listing appointments.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from clinicbook.domains.scheduling.domain.entities.appointment import Appointment
from clinicbook.domains.scheduling.domain.value_objects.appointment_status import BookingChannel, Urgency
from clinicbook.domains.scheduling.domain.value_objects.time_range import Slot


@dataclass(frozen=True)
class BookingMetadata:
    """Descriptive data attached to a reservation."""

    urgency: Urgency = Urgency.LOW
    reason: str = ""
    notes: str = ""
    channel: BookingChannel = BookingChannel.SELF_SERVICE
    follow_up_of_id: str | None = None
    treatment_plan_id: str | None = None

    @property
    def urgent(self) -> bool:
        return self.urgency.is_urgent()


@dataclass
class BookAppointmentRequest:
    """Request for booking an appointment."""

    provider_id: str
    patient_id: str
    start_at: datetime
    duration_minutes: int | None = None
    metadata: BookingMetadata = field(default_factory=BookingMetadata)
    send_confirmation: bool = True


@dataclass
class BookAppointmentResponse:
    """Response from booking an appointment."""

    appointment: Appointment
    confirmation_sent: bool = False
    confirmation_error: str | None = None


@dataclass
class AvailableSlotsRequest:
    """Request for the slots of a provider on one date."""

    provider_id: str
    date: date
    duration_minutes: int | None = None
    urgent: bool = False
    only_available: bool = False


@dataclass
class AvailableSlotsResponse:
    provider_id: str
    date: date
    duration_minutes: int
    slots: list[Slot] = field(default_factory=list)

    @property
    def available_count(self) -> int:
        return sum(1 for s in self.slots if s.available)
