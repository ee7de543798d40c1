"""
Scheduling API Dependencies

FastAPI dependencies for the scheduling domain.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.database.async_db import get_async_db
from clinicbook.domains.scheduling.application.use_cases import (
    AddAvailabilityExceptionUseCase,
    ApproveAvailabilityExceptionUseCase,
    BookAppointmentUseCase,
    CancelAppointmentUseCase,
    CompleteAppointmentUseCase,
    ConfirmAppointmentUseCase,
    FindNextAvailableUseCase,
    GetAvailableSlotsUseCase,
    GetProviderScheduleUseCase,
    MarkPaymentRequestPaidUseCase,
    RescheduleAppointmentUseCase,
    ResendPaymentRequestUseCase,
    SendDueRemindersUseCase,
    SetWeeklyAvailabilityUseCase,
)
from clinicbook.domains.scheduling.container import SchedulingContainer, get_scheduling_container

# Type aliases for session and container dependencies
DbSession = Annotated[AsyncSession, Depends(get_async_db)]
Container = Annotated[SchedulingContainer, Depends(get_scheduling_container)]


def get_available_slots_use_case(db: DbSession, container: Container) -> GetAvailableSlotsUseCase:
    """Get GetAvailableSlotsUseCase instance with database session."""
    return container.create_get_available_slots_use_case(db)


def get_find_next_available_use_case(db: DbSession, container: Container) -> FindNextAvailableUseCase:
    return container.create_find_next_available_use_case(db)


def get_book_appointment_use_case(db: DbSession, container: Container) -> BookAppointmentUseCase:
    """Get BookAppointmentUseCase instance with database session."""
    return container.create_book_appointment_use_case(db)


def get_confirm_appointment_use_case(db: DbSession, container: Container) -> ConfirmAppointmentUseCase:
    return container.create_confirm_appointment_use_case(db)


def get_cancel_appointment_use_case(db: DbSession, container: Container) -> CancelAppointmentUseCase:
    return container.create_cancel_appointment_use_case(db)


def get_reschedule_appointment_use_case(db: DbSession, container: Container) -> RescheduleAppointmentUseCase:
    return container.create_reschedule_appointment_use_case(db)


def get_complete_appointment_use_case(db: DbSession, container: Container) -> CompleteAppointmentUseCase:
    """Get CompleteAppointmentUseCase instance with database session."""
    return container.create_complete_appointment_use_case(db)


def get_resend_payment_request_use_case(db: DbSession, container: Container) -> ResendPaymentRequestUseCase:
    return container.create_resend_payment_request_use_case(db)


def get_mark_payment_request_paid_use_case(db: DbSession, container: Container) -> MarkPaymentRequestPaidUseCase:
    return container.create_mark_payment_request_paid_use_case(db)


def get_send_due_reminders_use_case(db: DbSession, container: Container) -> SendDueRemindersUseCase:
    return container.create_send_due_reminders_use_case(db)


def get_provider_schedule_use_case(db: DbSession, container: Container) -> GetProviderScheduleUseCase:
    return container.create_get_provider_schedule_use_case(db)


def get_set_weekly_availability_use_case(db: DbSession, container: Container) -> SetWeeklyAvailabilityUseCase:
    """Get SetWeeklyAvailabilityUseCase instance with database session."""
    return container.create_set_weekly_availability_use_case(db)


def get_add_availability_exception_use_case(db: DbSession, container: Container) -> AddAvailabilityExceptionUseCase:
    return container.create_add_availability_exception_use_case(db)


def get_approve_availability_exception_use_case(
    db: DbSession, container: Container
) -> ApproveAvailabilityExceptionUseCase:
    return container.create_approve_availability_exception_use_case(db)


__all__ = [
    "get_add_availability_exception_use_case",
    "get_approve_availability_exception_use_case",
    "get_available_slots_use_case",
    "get_book_appointment_use_case",
    "get_cancel_appointment_use_case",
    "get_complete_appointment_use_case",
    "get_confirm_appointment_use_case",
    "get_find_next_available_use_case",
    "get_mark_payment_request_paid_use_case",
    "get_provider_schedule_use_case",
    "get_reschedule_appointment_use_case",
    "get_resend_payment_request_use_case",
    "get_send_due_reminders_use_case",
    "get_set_weekly_availability_use_case",
]
