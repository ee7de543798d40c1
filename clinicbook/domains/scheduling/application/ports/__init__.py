"""Scheduling application ports (Protocols implemented by infrastructure adapters)."""

from .appointment_port import IAppointmentRepository
from .clinical_port import (
    IBillingRepository,
    IClinicalNoteRepository,
    IPrescriptionRepository,
    ITreatmentPlanRepository,
)
from .notification_port import (
    IContactDirectory,
    INotificationGateway,
    NotificationKind,
    NotificationReceipt,
)
from .schedule_port import IProviderScheduleRepository

__all__ = [
    "IAppointmentRepository",
    "IBillingRepository",
    "IClinicalNoteRepository",
    "IContactDirectory",
    "INotificationGateway",
    "IPrescriptionRepository",
    "IProviderScheduleRepository",
    "ITreatmentPlanRepository",
    "NotificationKind",
    "NotificationReceipt",
]
