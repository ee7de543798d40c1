"""Scheduling use cases."""

from .book_appointment import BookAppointmentUseCase
from .complete_appointment import CompleteAppointmentUseCase
from .get_available_slots import FindNextAvailableUseCase, GetAvailableSlotsUseCase
from .manage_appointment import (
    CancelAppointmentUseCase,
    ConfirmAppointmentUseCase,
    RescheduleAppointmentUseCase,
)
from .payment_requests import MarkPaymentRequestPaidUseCase, ResendPaymentRequestUseCase
from .provider_availability import (
    AddAvailabilityExceptionUseCase,
    ApproveAvailabilityExceptionUseCase,
    GetProviderScheduleUseCase,
    SetWeeklyAvailabilityUseCase,
)
from .send_reminders import SendDueRemindersUseCase

__all__ = [
    "AddAvailabilityExceptionUseCase",
    "ApproveAvailabilityExceptionUseCase",
    "BookAppointmentUseCase",
    "CancelAppointmentUseCase",
    "CompleteAppointmentUseCase",
    "ConfirmAppointmentUseCase",
    "FindNextAvailableUseCase",
    "GetAvailableSlotsUseCase",
    "GetProviderScheduleUseCase",
    "MarkPaymentRequestPaidUseCase",
    "RescheduleAppointmentUseCase",
    "ResendPaymentRequestUseCase",
    "SendDueRemindersUseCase",
    "SetWeeklyAvailabilityUseCase",
]
