"""
Scheduling Domain Value Objects

Status enums for appointments, bookings and the artifacts produced at completion.
"""

from clinicbook.core.domain import StatusEnum


class AppointmentStatus(StatusEnum):
    """
    Appointment lifecycle states.

    Valid transitions:
    - PENDING -> CONFIRMED, CANCELLED, COMPLETED
    - CONFIRMED -> CANCELLED, COMPLETED
    - COMPLETED -> (terminal)
    - CANCELLED -> (terminal)

    The move to COMPLETED is only performed by the completion workflow.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def can_transition_to(self, new_status: "AppointmentStatus") -> bool:
        """Check if transition to new status is valid."""
        return new_status.value in _TRANSITIONS.get(self.value, ())

    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self.value in ("completed", "cancelled")

    def is_active(self) -> bool:
        """Check if appointment can still be changed."""
        return self.value in ("pending", "confirmed")

    def occupies_time(self) -> bool:
        """Check if an appointment in this state blocks its interval."""
        return self.value in ("pending", "confirmed", "completed")

    @classmethod
    def active(cls) -> tuple["AppointmentStatus", ...]:
        return (cls.PENDING, cls.CONFIRMED)

    @classmethod
    def occupying(cls) -> tuple["AppointmentStatus", ...]:
        return (cls.PENDING, cls.CONFIRMED, cls.COMPLETED)


_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "pending": ("confirmed", "cancelled", "completed"),
    "confirmed": ("cancelled", "completed"),
    "completed": (),
    "cancelled": (),
}


class Urgency(StatusEnum):
    """Patient-reported urgency of a booking."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"

    def is_urgent(self) -> bool:
        """Urgent bookings may use emergency-reserved time."""
        return self.value in ("high", "emergency")


class BookingChannel(StatusEnum):
    """Where a booking originated."""

    SELF_SERVICE = "self_service"
    ASSISTANT = "assistant"
    STAFF = "staff"


class ExceptionKind(StatusEnum):
    """Kinds of dated availability exceptions."""

    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"


class SlotReason(StatusEnum):
    """Why a slot is not available."""

    BOOKED = "booked"
    ON_EXCEPTION = "on_exception"
    OUTSIDE_HOURS = "outside_hours"
    EMERGENCY_RESERVED = "emergency_reserved"


class ClinicalNoteKind(StatusEnum):
    """Kinds of clinical notes written at completion."""

    TREATMENT_RECORD = "treatment_record"
    CONSULTATION = "consultation"


class PaymentStatus(StatusEnum):
    """Payment state of invoices and payment requests."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class PrescriptionStatus(StatusEnum):
    """Prescription lifecycle."""

    ACTIVE = "active"
    DISCONTINUED = "discontinued"


class TreatmentPlanStatus(StatusEnum):
    """Treatment plan lifecycle."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TreatmentPlanPriority(StatusEnum):
    """Clinical priority of a treatment plan."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
