"""Scheduling application DTOs."""

from .booking import (
    AvailableSlotsRequest,
    AvailableSlotsResponse,
    BookAppointmentRequest,
    BookAppointmentResponse,
    BookingMetadata,
)
from .completion import (
    CompletionRequest,
    CompletionResult,
    CompletionStep,
    FollowUpRequest,
    NewTreatmentPlan,
    PrescriptionInput,
    StepOutcome,
    StepStatus,
    TreatmentPlanChoice,
)
from .reminders import ReminderOutcome, ReminderRunResult

__all__ = [
    "AvailableSlotsRequest",
    "AvailableSlotsResponse",
    "BookAppointmentRequest",
    "BookAppointmentResponse",
    "BookingMetadata",
    "CompletionRequest",
    "CompletionResult",
    "CompletionStep",
    "FollowUpRequest",
    "NewTreatmentPlan",
    "PrescriptionInput",
    "ReminderOutcome",
    "ReminderRunResult",
    "StepOutcome",
    "StepStatus",
    "TreatmentPlanChoice",
]
