"""
Completion DTOs

The immutable request a provider assembles to complete an appointment, and
the per-step result of running it.
"""

from dataclasses import dataclass, field
from datetime import datetime

from clinicbook.core.domain import StatusEnum
from clinicbook.domains.scheduling.domain.entities.appointment import Appointment
from clinicbook.domains.scheduling.domain.entities.billing import Invoice, PaymentRequest
from clinicbook.domains.scheduling.domain.entities.clinical import Prescription
from clinicbook.domains.scheduling.domain.exceptions import ValidationError
from clinicbook.domains.scheduling.domain.value_objects.appointment_status import TreatmentPlanPriority
from clinicbook.domains.scheduling.domain.value_objects.time_range import TreatmentLineItem


class CompletionStep(StatusEnum):
    """Steps of the completion workflow, in execution order."""

    TREATMENT_RECORD = "treatment_record"
    CONSULTATION_NOTES = "consultation_notes"
    BILLING = "billing"
    PRESCRIPTIONS = "prescriptions"
    TREATMENT_PLAN = "treatment_plan"
    STATUS = "status"
    PAYMENT_REQUEST_EMAIL = "payment_request_email"
    FOLLOW_UP = "follow_up"
    NOTIFICATION = "notification"


class StepStatus(StatusEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class FollowUpRequest:
    """Follow-up booking requested at completion."""

    needed: bool = False
    start_at: datetime | None = None
    duration_minutes: int | None = None
    reason: str = ""

    def __post_init__(self):
        if self.needed and self.start_at is None:
            raise ValidationError("Follow-up needs a start time", field="follow_up.start_at")


@dataclass(frozen=True)
class PrescriptionInput:
    medication: str
    dosage: str = ""
    frequency: str = ""
    duration_text: str = ""
    instructions: str = ""


@dataclass(frozen=True)
class NewTreatmentPlan:
    title: str
    diagnosis: str = ""
    priority: TreatmentPlanPriority = TreatmentPlanPriority.MEDIUM
    estimated_cost_cents: int = 0


@dataclass(frozen=True)
class TreatmentPlanChoice:
    """Either link an existing plan or create a new one."""

    link_existing_id: str | None = None
    create_new: NewTreatmentPlan | None = None

    def __post_init__(self):
        if (self.link_existing_id is None) == (self.create_new is None):
            raise ValidationError(
                "Choose exactly one of link_existing_id or create_new",
                field="treatment_plan",
            )


@dataclass(frozen=True)
class CompletionRequest:
    """
    Everything needed to complete an appointment.

    Assembled by the caller and passed whole, so a failed run can be retried
    with the same request.
    """

    line_items: tuple[TreatmentLineItem, ...] = ()
    consultation_notes: str = ""
    follow_up: FollowUpRequest = field(default_factory=FollowUpRequest)
    payment_received: bool = False
    prescriptions: tuple[PrescriptionInput, ...] = ()
    treatment_plan: TreatmentPlanChoice | None = None
    completed_by: str = "provider"

    def __post_init__(self):
        # Lists from callers are frozen into tuples.
        object.__setattr__(self, "line_items", tuple(self.line_items))
        object.__setattr__(self, "prescriptions", tuple(self.prescriptions))

    @property
    def total_cents(self) -> int:
        return sum(item.price_cents for item in self.line_items)

    @property
    def has_consultation_notes(self) -> bool:
        return bool(self.consultation_notes.strip())


@dataclass(frozen=True)
class StepOutcome:
    step: CompletionStep
    status: StepStatus
    detail: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == StepStatus.FAILED


@dataclass
class CompletionResult:
    """Outcome of a completion run that reached the status change."""

    appointment: Appointment
    outcomes: list[StepOutcome] = field(default_factory=list)
    invoice: Invoice | None = None
    payment_request: PaymentRequest | None = None
    prescriptions: list[Prescription] = field(default_factory=list)
    treatment_plan_id: str | None = None
    follow_up_appointment: Appointment | None = None

    def outcome(self, step: CompletionStep) -> StepOutcome | None:
        for outcome in self.outcomes:
            if outcome.step == step:
                return outcome
        return None

    @property
    def failures(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def fully_succeeded(self) -> bool:
        return not self.failures
