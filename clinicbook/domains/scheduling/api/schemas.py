"""
Scheduling API Schemas

Pydantic schemas for API request/response validation.
"""

from datetime import date, datetime, time

from pydantic import BaseModel, Field, field_validator

from clinicbook.domains.scheduling.application.dto.booking import (
    AvailableSlotsResponse,
    BookAppointmentRequest,
    BookingMetadata,
)
from clinicbook.domains.scheduling.application.dto.completion import (
    CompletionRequest,
    CompletionResult,
    FollowUpRequest,
    NewTreatmentPlan,
    PrescriptionInput,
    TreatmentPlanChoice,
)
from clinicbook.domains.scheduling.application.dto.reminders import ReminderOutcome, ReminderRunResult
from clinicbook.domains.scheduling.domain.entities import (
    Appointment,
    AvailabilityException,
    EmergencyWindow,
    Invoice,
    PaymentRequest,
    ProviderSchedule,
    WorkingWindow,
)
from clinicbook.domains.scheduling.domain.value_objects import (
    BookingChannel,
    ExceptionKind,
    TreatmentLineItem,
    TreatmentPlanPriority,
    Urgency,
)
from clinicbook.domains.scheduling.domain.value_objects.time_range import Slot

# ==================== SLOTS ====================


class SlotResponse(BaseModel):
    """Slot response schema."""

    start_at: datetime
    end_at: datetime
    duration_minutes: int
    available: bool
    reason: str | None = None

    @classmethod
    def from_slot(cls, slot: Slot) -> "SlotResponse":
        return cls(
            start_at=slot.start_at,
            end_at=slot.end_at,
            duration_minutes=slot.duration_minutes,
            available=slot.available,
            reason=slot.reason.value if slot.reason else None,
        )


class SlotListResponse(BaseModel):
    provider_id: str
    date: date
    duration_minutes: int
    available_count: int
    slots: list[SlotResponse]

    @classmethod
    def from_result(cls, result: AvailableSlotsResponse) -> "SlotListResponse":
        return cls(
            provider_id=result.provider_id,
            date=result.date,
            duration_minutes=result.duration_minutes,
            available_count=result.available_count,
            slots=[SlotResponse.from_slot(s) for s in result.slots],
        )


class NextAvailableResponse(BaseModel):
    provider_id: str
    found: bool
    slot: SlotResponse | None = None


# ==================== APPOINTMENTS ====================


class AppointmentCreateRequest(BaseModel):
    """Appointment booking request schema."""

    provider_id: str = Field(..., min_length=1)
    patient_id: str = Field(..., min_length=1)
    start_at: datetime
    duration_minutes: int | None = Field(default=None, gt=0, le=480)
    urgency: Urgency = Urgency.LOW
    channel: BookingChannel = BookingChannel.SELF_SERVICE
    reason: str = ""
    notes: str = ""
    treatment_plan_id: str | None = None
    send_confirmation: bool = True

    def to_request(self) -> BookAppointmentRequest:
        return BookAppointmentRequest(
            provider_id=self.provider_id,
            patient_id=self.patient_id,
            start_at=self.start_at,
            duration_minutes=self.duration_minutes,
            metadata=BookingMetadata(
                urgency=self.urgency,
                reason=self.reason,
                notes=self.notes,
                channel=self.channel,
                treatment_plan_id=self.treatment_plan_id,
            ),
            send_confirmation=self.send_confirmation,
        )


class AppointmentResponse(BaseModel):
    """Appointment response schema."""

    id: str
    patient_id: str
    provider_id: str
    start_at: datetime
    end_at: datetime
    duration_minutes: int
    status: str
    urgency: str
    booking_channel: str
    reason: str = ""
    consultation_notes: str | None = None
    treatment_plan_id: str | None = None
    follow_up_of_id: str | None = None
    cancellation_reason: str | None = None
    version: int = 0

    @classmethod
    def from_entity(cls, appointment: Appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            patient_id=appointment.patient_id,
            provider_id=appointment.provider_id,
            start_at=appointment.start_at,
            end_at=appointment.end_at,
            duration_minutes=appointment.duration_minutes,
            status=appointment.status.value,
            urgency=appointment.urgency.value,
            booking_channel=appointment.booking_channel.value,
            reason=appointment.reason,
            consultation_notes=appointment.consultation_notes,
            treatment_plan_id=appointment.treatment_plan_id,
            follow_up_of_id=appointment.follow_up_of_id,
            cancellation_reason=appointment.cancellation_reason,
            version=appointment.version,
        )


class BookingResponse(BaseModel):
    appointment: AppointmentResponse
    confirmation_sent: bool
    confirmation_error: str | None = None


class CancelRequest(BaseModel):
    reason: str = ""
    cancelled_by: str = Field(default="patient", pattern="^(patient|provider|staff|system)$")


class RescheduleRequest(BaseModel):
    new_start_at: datetime
    duration_minutes: int | None = Field(default=None, gt=0, le=480)


# ==================== COMPLETION ====================


class LineItemSchema(BaseModel):
    name: str = Field(..., min_length=1)
    price_cents: int = Field(..., ge=0)
    tooth_ref: str | None = None


class PrescriptionSchema(BaseModel):
    medication: str = Field(..., min_length=1)
    dosage: str = ""
    frequency: str = ""
    duration_text: str = ""
    instructions: str = ""


class NewTreatmentPlanSchema(BaseModel):
    title: str = Field(..., min_length=1)
    diagnosis: str = ""
    priority: TreatmentPlanPriority = TreatmentPlanPriority.MEDIUM
    estimated_cost_cents: int = Field(default=0, ge=0)


class TreatmentPlanChoiceSchema(BaseModel):
    link_existing_id: str | None = None
    create_new: NewTreatmentPlanSchema | None = None


class FollowUpSchema(BaseModel):
    needed: bool = False
    start_at: datetime | None = None
    duration_minutes: int | None = Field(default=None, gt=0, le=480)
    reason: str = ""


class CompleteAppointmentRequest(BaseModel):
    """Completion request schema."""

    line_items: list[LineItemSchema] = Field(default_factory=list)
    consultation_notes: str = ""
    follow_up: FollowUpSchema = Field(default_factory=FollowUpSchema)
    payment_received: bool = False
    prescriptions: list[PrescriptionSchema] = Field(default_factory=list)
    treatment_plan: TreatmentPlanChoiceSchema | None = None
    completed_by: str = "provider"

    def to_request(self) -> CompletionRequest:
        """Convert to the domain request. Raises ValidationError on inconsistent choices."""
        plan = None
        if self.treatment_plan is not None:
            create_new = None
            if self.treatment_plan.create_new is not None:
                create_new = NewTreatmentPlan(**self.treatment_plan.create_new.model_dump())
            plan = TreatmentPlanChoice(link_existing_id=self.treatment_plan.link_existing_id, create_new=create_new)
        return CompletionRequest(
            line_items=[TreatmentLineItem(**item.model_dump()) for item in self.line_items],
            consultation_notes=self.consultation_notes,
            follow_up=FollowUpRequest(**self.follow_up.model_dump()),
            payment_received=self.payment_received,
            prescriptions=[PrescriptionInput(**p.model_dump()) for p in self.prescriptions],
            treatment_plan=plan,
            completed_by=self.completed_by,
        )


class StepOutcomeSchema(BaseModel):
    step: str
    status: str
    detail: str | None = None


class InvoiceResponse(BaseModel):
    id: str
    total_cents: int
    currency: str
    status: str
    line_items: list[LineItemSchema]

    @classmethod
    def from_entity(cls, invoice: Invoice) -> "InvoiceResponse":
        return cls(
            id=invoice.id,
            total_cents=invoice.total_cents,
            currency=invoice.currency,
            status=invoice.status.value,
            line_items=[
                LineItemSchema(name=i.name, price_cents=i.price_cents, tooth_ref=i.tooth_ref)
                for i in invoice.line_items
            ],
        )


class PaymentRequestResponse(BaseModel):
    id: str
    appointment_id: str
    amount_cents: int
    currency: str
    status: str
    recipient_contact: str | None = None
    sent_count: int = 0
    last_sent_at: datetime | None = None
    paid_at: datetime | None = None

    @classmethod
    def from_entity(cls, payment_request: PaymentRequest) -> "PaymentRequestResponse":
        return cls(
            id=payment_request.id,
            appointment_id=payment_request.appointment_id,
            amount_cents=payment_request.amount_cents,
            currency=payment_request.currency,
            status=payment_request.status.value,
            recipient_contact=payment_request.recipient_contact,
            sent_count=payment_request.sent_count,
            last_sent_at=payment_request.last_sent_at,
            paid_at=payment_request.paid_at,
        )


class CompletionResponse(BaseModel):
    """Completion response schema."""

    appointment: AppointmentResponse
    fully_succeeded: bool
    outcomes: list[StepOutcomeSchema]
    invoice: InvoiceResponse | None = None
    payment_request: PaymentRequestResponse | None = None
    prescription_ids: list[str] = Field(default_factory=list)
    treatment_plan_id: str | None = None
    follow_up_appointment: AppointmentResponse | None = None

    @classmethod
    def from_result(cls, result: CompletionResult) -> "CompletionResponse":
        return cls(
            appointment=AppointmentResponse.from_entity(result.appointment),
            fully_succeeded=result.fully_succeeded,
            outcomes=[
                StepOutcomeSchema(step=o.step.value, status=o.status.value, detail=o.detail) for o in result.outcomes
            ],
            invoice=InvoiceResponse.from_entity(result.invoice) if result.invoice else None,
            payment_request=(
                PaymentRequestResponse.from_entity(result.payment_request) if result.payment_request else None
            ),
            prescription_ids=[p.id for p in result.prescriptions],
            treatment_plan_id=result.treatment_plan_id,
            follow_up_appointment=(
                AppointmentResponse.from_entity(result.follow_up_appointment)
                if result.follow_up_appointment
                else None
            ),
        )


class ResendPaymentResponse(BaseModel):
    payment_request: PaymentRequestResponse
    delivered: bool
    error: str | None = None


# ==================== PROVIDER AVAILABILITY ====================


class WorkingWindowSchema(BaseModel):
    """Working hours for one weekday (0=Monday), with an optional break."""

    day_of_week: int = Field(..., ge=0, le=6)
    start: time
    end: time
    break_start: time | None = None
    break_end: time | None = None

    def to_window(self) -> WorkingWindow:
        return WorkingWindow(
            day_of_week=self.day_of_week,
            start=self.start,
            end=self.end,
            break_start=self.break_start,
            break_end=self.break_end,
        )


class EmergencyWindowSchema(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6)
    start: time
    end: time

    def to_window(self) -> EmergencyWindow:
        return EmergencyWindow(day_of_week=self.day_of_week, start=self.start, end=self.end)


class AvailabilityUpdateRequest(BaseModel):
    """Weekly availability replacing the stored one. Omit emergency_windows to keep them."""

    working_windows: list[WorkingWindowSchema] = Field(default_factory=list)
    emergency_windows: list[EmergencyWindowSchema] | None = None
    default_slot_minutes: int | None = Field(default=None, gt=0, le=480)

    def to_windows(self) -> tuple[list[WorkingWindow], list[EmergencyWindow] | None]:
        """Convert to domain windows. Raises ValidationError on malformed hours."""
        emergency = None
        if self.emergency_windows is not None:
            emergency = [w.to_window() for w in self.emergency_windows]
        return [w.to_window() for w in self.working_windows], emergency


class AvailabilityExceptionCreateRequest(BaseModel):
    start_date: date
    end_date: date
    kind: ExceptionKind = ExceptionKind.VACATION
    reason: str = ""
    approved: bool = False


class AvailabilityExceptionResponse(BaseModel):
    id: str
    start_date: date
    end_date: date
    kind: str
    approved: bool
    reason: str = ""

    @classmethod
    def from_entity(cls, exception: AvailabilityException) -> "AvailabilityExceptionResponse":
        return cls(
            id=exception.id,
            start_date=exception.start_date,
            end_date=exception.end_date,
            kind=exception.kind.value,
            approved=exception.approved,
            reason=exception.reason,
        )


class ProviderAvailabilityResponse(BaseModel):
    """Provider schedule response schema."""

    provider_id: str
    display_name: str = ""
    default_slot_minutes: int
    working_windows: list[WorkingWindowSchema]
    emergency_windows: list[EmergencyWindowSchema]
    exceptions: list[AvailabilityExceptionResponse]

    @classmethod
    def from_entity(cls, schedule: ProviderSchedule) -> "ProviderAvailabilityResponse":
        return cls(
            provider_id=schedule.provider_id,
            display_name=schedule.display_name,
            default_slot_minutes=schedule.default_slot_minutes,
            working_windows=[
                WorkingWindowSchema(
                    day_of_week=w.day_of_week,
                    start=w.start,
                    end=w.end,
                    break_start=w.break_start,
                    break_end=w.break_end,
                )
                for w in sorted(schedule.working_windows, key=lambda w: (w.day_of_week, w.start))
            ],
            emergency_windows=[
                EmergencyWindowSchema(day_of_week=w.day_of_week, start=w.start, end=w.end)
                for w in schedule.emergency_windows
            ],
            exceptions=[AvailabilityExceptionResponse.from_entity(e) for e in schedule.exceptions],
        )


# ==================== REMINDERS ====================


class ReminderRunRequest(BaseModel):
    """Reminder job trigger. ``now`` defaults to the server's local time."""

    now: datetime | None = None

    @field_validator("now")
    @classmethod
    def validate_naive(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is not None:
            raise ValueError("now must be a naive clinic-local time")
        return v


class ReminderOutcomeSchema(BaseModel):
    appointment_id: str | None = None
    hours_before: int
    success: bool
    error: str | None = None


class ReminderRunResponse(BaseModel):
    ran_at: datetime
    sent_count: int
    failed_count: int
    sent: list[ReminderOutcomeSchema]
    failed: list[ReminderOutcomeSchema]

    @classmethod
    def from_result(cls, result: ReminderRunResult) -> "ReminderRunResponse":
        def outcome(o: ReminderOutcome) -> ReminderOutcomeSchema:
            return ReminderOutcomeSchema(
                appointment_id=o.appointment_id, hours_before=o.hours_before, success=o.success, error=o.error
            )

        return cls(
            ran_at=result.ran_at,
            sent_count=result.sent_count,
            failed_count=result.failed_count,
            sent=[outcome(o) for o in result.sent],
            failed=[outcome(o) for o in result.failed],
        )
