"""
Scheduling Repositories

SQLAlchemy and in-memory implementations of the scheduling ports.
"""

from .appointment_repository import SQLAlchemyAppointmentRepository
from .billing_repository import SQLAlchemyBillingRepository
from .clinical_repository import (
    SQLAlchemyClinicalNoteRepository,
    SQLAlchemyPrescriptionRepository,
    SQLAlchemyTreatmentPlanRepository,
)
from .contact_directory import SQLAlchemyContactDirectory
from .in_memory import (
    InMemoryAppointmentRepository,
    InMemoryBillingRepository,
    InMemoryClinicalNoteRepository,
    InMemoryContactDirectory,
    InMemoryPrescriptionRepository,
    InMemoryProviderScheduleRepository,
    InMemoryTreatmentPlanRepository,
)
from .schedule_repository import SQLAlchemyProviderScheduleRepository

__all__ = [
    "SQLAlchemyAppointmentRepository",
    "SQLAlchemyBillingRepository",
    "SQLAlchemyClinicalNoteRepository",
    "SQLAlchemyContactDirectory",
    "SQLAlchemyPrescriptionRepository",
    "SQLAlchemyProviderScheduleRepository",
    "SQLAlchemyTreatmentPlanRepository",
    "InMemoryAppointmentRepository",
    "InMemoryBillingRepository",
    "InMemoryClinicalNoteRepository",
    "InMemoryContactDirectory",
    "InMemoryPrescriptionRepository",
    "InMemoryProviderScheduleRepository",
    "InMemoryTreatmentPlanRepository",
]
