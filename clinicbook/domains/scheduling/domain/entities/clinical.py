"""
Clinical Entities

Clinical notes, prescriptions and treatment plans produced around an appointment.
"""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from clinicbook.core.domain import AggregateRoot

from ..exceptions import ValidationError
from ..value_objects.appointment_status import (
    ClinicalNoteKind,
    PrescriptionStatus,
    TreatmentPlanPriority,
    TreatmentPlanStatus,
)


@dataclass
class ClinicalNote(AggregateRoot[str]):
    """Free-text clinical record attached to an appointment."""

    appointment_id: str = ""
    patient_id: str = ""
    provider_id: str = ""
    kind: ClinicalNoteKind = ClinicalNoteKind.CONSULTATION
    content: str = ""

    def __post_init__(self):
        if not self.content.strip():
            raise ValidationError("Clinical note content is required", field="content")


@dataclass
class Prescription(AggregateRoot[str]):
    """Medication prescribed during an appointment."""

    patient_id: str = ""
    provider_id: str = ""
    appointment_id: str | None = None
    medication: str = ""
    dosage: str = ""
    frequency: str = ""
    duration_text: str = ""
    instructions: str = ""
    status: PrescriptionStatus = PrescriptionStatus.ACTIVE
    prescribed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self):
        if not self.medication.strip():
            raise ValidationError("Medication is required", field="medication")


@dataclass
class TreatmentPlan(AggregateRoot[str]):
    """Longer-running treatment a patient follows across appointments."""

    patient_id: str = ""
    provider_id: str = ""
    title: str = ""
    diagnosis: str = ""
    priority: TreatmentPlanPriority = TreatmentPlanPriority.MEDIUM
    estimated_cost_cents: int = 0
    status: TreatmentPlanStatus = TreatmentPlanStatus.ACTIVE
    start_date: date = field(default_factory=date.today)

    def __post_init__(self):
        if not self.title.strip():
            raise ValidationError("Treatment plan title is required", field="title")
        if self.estimated_cost_cents < 0:
            raise ValidationError("Estimated cost cannot be negative", field="estimated_cost_cents")

    def is_active(self) -> bool:
        return self.status == TreatmentPlanStatus.ACTIVE

    def belongs_to(self, patient_id: str) -> bool:
        return self.patient_id == patient_id
