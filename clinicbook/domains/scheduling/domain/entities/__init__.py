"""Scheduling domain entities."""

from .appointment import Appointment
from .billing import Invoice, PaymentRequest
from .clinical import ClinicalNote, Prescription, TreatmentPlan
from .patient_contact import PatientContact
from .provider_schedule import (
    AvailabilityException,
    EmergencyWindow,
    ProviderSchedule,
    WorkingWindow,
)

__all__ = [
    "Appointment",
    "AvailabilityException",
    "ClinicalNote",
    "EmergencyWindow",
    "Invoice",
    "PatientContact",
    "PaymentRequest",
    "Prescription",
    "ProviderSchedule",
    "TreatmentPlan",
    "WorkingWindow",
]
