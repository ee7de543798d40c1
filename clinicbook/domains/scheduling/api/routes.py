"""
Scheduling API Routes

FastAPI router for provider availability, slot search, booking, lifecycle,
completion, payment requests and the reminder job.
Domain exceptions propagate to the application exception handlers.
"""

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from clinicbook.domains.scheduling.api.dependencies import (
    get_add_availability_exception_use_case,
    get_approve_availability_exception_use_case,
    get_available_slots_use_case,
    get_book_appointment_use_case,
    get_cancel_appointment_use_case,
    get_complete_appointment_use_case,
    get_confirm_appointment_use_case,
    get_find_next_available_use_case,
    get_mark_payment_request_paid_use_case,
    get_provider_schedule_use_case,
    get_reschedule_appointment_use_case,
    get_resend_payment_request_use_case,
    get_send_due_reminders_use_case,
    get_set_weekly_availability_use_case,
)
from clinicbook.domains.scheduling.api.schemas import (
    AppointmentCreateRequest,
    AppointmentResponse,
    AvailabilityExceptionCreateRequest,
    AvailabilityExceptionResponse,
    AvailabilityUpdateRequest,
    BookingResponse,
    CancelRequest,
    CompleteAppointmentRequest,
    CompletionResponse,
    NextAvailableResponse,
    PaymentRequestResponse,
    ProviderAvailabilityResponse,
    ReminderRunRequest,
    ReminderRunResponse,
    RescheduleRequest,
    ResendPaymentResponse,
    SlotListResponse,
    SlotResponse,
)
from clinicbook.domains.scheduling.application.dto.booking import AvailableSlotsRequest
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

router = APIRouter(prefix="/scheduling", tags=["Scheduling"])

# Type aliases for use case dependencies
GetAvailableSlotsUseCaseDep = Annotated[GetAvailableSlotsUseCase, Depends(get_available_slots_use_case)]
FindNextAvailableUseCaseDep = Annotated[FindNextAvailableUseCase, Depends(get_find_next_available_use_case)]
BookAppointmentUseCaseDep = Annotated[BookAppointmentUseCase, Depends(get_book_appointment_use_case)]
ConfirmAppointmentUseCaseDep = Annotated[ConfirmAppointmentUseCase, Depends(get_confirm_appointment_use_case)]
CancelAppointmentUseCaseDep = Annotated[CancelAppointmentUseCase, Depends(get_cancel_appointment_use_case)]
RescheduleAppointmentUseCaseDep = Annotated[
    RescheduleAppointmentUseCase, Depends(get_reschedule_appointment_use_case)
]
CompleteAppointmentUseCaseDep = Annotated[CompleteAppointmentUseCase, Depends(get_complete_appointment_use_case)]
ResendPaymentRequestUseCaseDep = Annotated[
    ResendPaymentRequestUseCase, Depends(get_resend_payment_request_use_case)
]
MarkPaymentRequestPaidUseCaseDep = Annotated[
    MarkPaymentRequestPaidUseCase, Depends(get_mark_payment_request_paid_use_case)
]
GetProviderScheduleUseCaseDep = Annotated[GetProviderScheduleUseCase, Depends(get_provider_schedule_use_case)]
SetWeeklyAvailabilityUseCaseDep = Annotated[
    SetWeeklyAvailabilityUseCase, Depends(get_set_weekly_availability_use_case)
]
AddAvailabilityExceptionUseCaseDep = Annotated[
    AddAvailabilityExceptionUseCase, Depends(get_add_availability_exception_use_case)
]
ApproveAvailabilityExceptionUseCaseDep = Annotated[
    ApproveAvailabilityExceptionUseCase, Depends(get_approve_availability_exception_use_case)
]
SendDueRemindersUseCaseDep = Annotated[SendDueRemindersUseCase, Depends(get_send_due_reminders_use_case)]


# ==================== SLOTS ====================


@router.get("/providers/{provider_id}/slots", response_model=SlotListResponse)
async def list_slots(
    provider_id: str,
    use_case: GetAvailableSlotsUseCaseDep,
    day: Annotated[date, Query(alias="date")],
    duration_minutes: Annotated[int | None, Query(gt=0, le=480)] = None,
    urgent: bool = False,
    only_available: bool = False,
):
    """List the slots of a provider on one date."""
    result = await use_case.execute(
        AvailableSlotsRequest(
            provider_id=provider_id,
            date=day,
            duration_minutes=duration_minutes,
            urgent=urgent,
            only_available=only_available,
        )
    )
    return SlotListResponse.from_result(result)


@router.get("/providers/{provider_id}/next-available", response_model=NextAvailableResponse)
async def next_available(
    provider_id: str,
    use_case: FindNextAvailableUseCaseDep,
    after: datetime,
    duration_minutes: Annotated[int | None, Query(gt=0, le=480)] = None,
    urgent: bool = False,
    search_days: Annotated[int | None, Query(gt=0, le=90)] = None,
):
    """Find the earliest free slot at or after a time."""
    slot = await use_case.execute(provider_id, after, duration_minutes, urgent=urgent, search_days=search_days)
    return NextAvailableResponse(
        provider_id=provider_id,
        found=slot is not None,
        slot=SlotResponse.from_slot(slot) if slot else None,
    )


# ==================== APPOINTMENTS ====================


@router.post("/appointments", response_model=BookingResponse, status_code=201)
async def book_appointment(request: AppointmentCreateRequest, use_case: BookAppointmentUseCaseDep):
    """Book a new appointment."""
    result = await use_case.execute(request.to_request())
    return BookingResponse(
        appointment=AppointmentResponse.from_entity(result.appointment),
        confirmation_sent=result.confirmation_sent,
        confirmation_error=result.confirmation_error,
    )


@router.post("/appointments/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment(appointment_id: str, use_case: ConfirmAppointmentUseCaseDep):
    appointment = await use_case.execute(appointment_id)
    return AppointmentResponse.from_entity(appointment)


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(appointment_id: str, request: CancelRequest, use_case: CancelAppointmentUseCaseDep):
    appointment = await use_case.execute(appointment_id, reason=request.reason, cancelled_by=request.cancelled_by)
    return AppointmentResponse.from_entity(appointment)


@router.post("/appointments/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: str,
    request: RescheduleRequest,
    use_case: RescheduleAppointmentUseCaseDep,
):
    appointment = await use_case.execute(appointment_id, request.new_start_at, request.duration_minutes)
    return AppointmentResponse.from_entity(appointment)


@router.post("/appointments/{appointment_id}/complete", response_model=CompletionResponse)
async def complete_appointment(
    appointment_id: str,
    request: CompleteAppointmentRequest,
    use_case: CompleteAppointmentUseCaseDep,
):
    """Run the completion workflow for an appointment."""
    result = await use_case.execute(appointment_id, request.to_request())
    return CompletionResponse.from_result(result)


# ==================== PAYMENT REQUESTS ====================


@router.post("/payment-requests/{payment_request_id}/resend", response_model=ResendPaymentResponse)
async def resend_payment_request(payment_request_id: str, use_case: ResendPaymentRequestUseCaseDep):
    payment_request, receipt = await use_case.execute(payment_request_id)
    return ResendPaymentResponse(
        payment_request=PaymentRequestResponse.from_entity(payment_request),
        delivered=receipt.success,
        error=receipt.error,
    )


@router.post("/payment-requests/{payment_request_id}/mark-paid", response_model=PaymentRequestResponse)
async def mark_payment_request_paid(payment_request_id: str, use_case: MarkPaymentRequestPaidUseCaseDep):
    payment_request = await use_case.execute(payment_request_id)
    return PaymentRequestResponse.from_entity(payment_request)


# ==================== PROVIDER AVAILABILITY ====================


@router.get("/providers/{provider_id}/availability", response_model=ProviderAvailabilityResponse)
async def get_provider_availability(provider_id: str, use_case: GetProviderScheduleUseCaseDep):
    schedule = await use_case.execute(provider_id)
    return ProviderAvailabilityResponse.from_entity(schedule)


@router.put("/providers/{provider_id}/availability", response_model=ProviderAvailabilityResponse)
async def set_provider_availability(
    provider_id: str,
    request: AvailabilityUpdateRequest,
    use_case: SetWeeklyAvailabilityUseCaseDep,
):
    """Replace a provider's weekly working hours, breaks and emergency windows."""
    working_windows, emergency_windows = request.to_windows()
    schedule = await use_case.execute(
        provider_id,
        working_windows,
        emergency_windows,
        default_slot_minutes=request.default_slot_minutes,
    )
    return ProviderAvailabilityResponse.from_entity(schedule)


@router.post(
    "/providers/{provider_id}/exceptions",
    response_model=AvailabilityExceptionResponse,
    status_code=201,
)
async def add_availability_exception(
    provider_id: str,
    request: AvailabilityExceptionCreateRequest,
    use_case: AddAvailabilityExceptionUseCaseDep,
):
    """Record a vacation, sick or personal day. It blocks bookings once approved."""
    exception = await use_case.execute(
        provider_id,
        request.start_date,
        request.end_date,
        kind=request.kind,
        reason=request.reason,
        approved=request.approved,
    )
    return AvailabilityExceptionResponse.from_entity(exception)


@router.post(
    "/providers/{provider_id}/exceptions/{exception_id}/approve",
    response_model=AvailabilityExceptionResponse,
)
async def approve_availability_exception(
    provider_id: str,
    exception_id: str,
    use_case: ApproveAvailabilityExceptionUseCaseDep,
):
    exception = await use_case.execute(provider_id, exception_id)
    return AvailabilityExceptionResponse.from_entity(exception)


# ==================== REMINDERS ====================


@router.post("/reminders/run", response_model=ReminderRunResponse)
async def run_reminders(use_case: SendDueRemindersUseCaseDep, request: ReminderRunRequest | None = None):
    """Send the appointment reminders due now. Delivery failures are listed, not raised."""
    now = request.now if request and request.now else datetime.now()
    result = await use_case.execute(now)
    return ReminderRunResponse.from_result(result)


__all__ = ["router"]
