"""Scheduling domain value objects."""

from .appointment_status import (
    AppointmentStatus,
    BookingChannel,
    ClinicalNoteKind,
    ExceptionKind,
    PaymentStatus,
    PrescriptionStatus,
    SlotReason,
    TreatmentPlanPriority,
    TreatmentPlanStatus,
    Urgency,
)
from .time_range import Slot, TimeRange, TreatmentLineItem, intervals_overlap

__all__ = [
    "AppointmentStatus",
    "BookingChannel",
    "ClinicalNoteKind",
    "ExceptionKind",
    "PaymentStatus",
    "PrescriptionStatus",
    "SlotReason",
    "TreatmentPlanPriority",
    "TreatmentPlanStatus",
    "Urgency",
    "Slot",
    "TimeRange",
    "TreatmentLineItem",
    "intervals_overlap",
]
