"""
Clinical Repository Implementations

SQLAlchemy implementations for clinical notes, prescriptions and treatment plans.
"""

import logging

from sqlalchemy import delete, select

from clinicbook.core.domain import generate_uuid_str
from clinicbook.domains.scheduling.application.ports.clinical_port import (
    IClinicalNoteRepository,
    IPrescriptionRepository,
    ITreatmentPlanRepository,
)
from clinicbook.domains.scheduling.domain.entities.clinical import ClinicalNote, Prescription, TreatmentPlan
from clinicbook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import (
    ClinicalNoteModel,
    PrescriptionModel,
    TreatmentPlanModel,
)

from .base import SQLAlchemyRepository

logger = logging.getLogger(__name__)


class SQLAlchemyClinicalNoteRepository(SQLAlchemyRepository, IClinicalNoteRepository):
    """SQLAlchemy implementation of clinical note repository."""

    async def add(self, note: ClinicalNote) -> ClinicalNote:
        note.id = note.id or generate_uuid_str()
        self.session.add(
            ClinicalNoteModel(
                id=note.id,
                appointment_id=note.appointment_id,
                patient_id=note.patient_id,
                provider_id=note.provider_id,
                kind=note.kind,
                content=note.content,
                created_at=note.created_at,
                updated_at=note.updated_at,
            )
        )
        await self._commit()
        return note

    async def find_by_appointment(self, appointment_id: str) -> list[ClinicalNote]:
        result = await self.session.execute(
            select(ClinicalNoteModel)
            .where(ClinicalNoteModel.appointment_id == appointment_id)
            .order_by(ClinicalNoteModel.created_at)
        )
        return [
            ClinicalNote(
                id=m.id,
                appointment_id=m.appointment_id,
                patient_id=m.patient_id,
                provider_id=m.provider_id,
                kind=m.kind,
                content=m.content,
                created_at=m.created_at,
                updated_at=m.updated_at,
            )
            for m in result.scalars().all()
        ]

    async def delete(self, note_id: str) -> bool:
        result = await self.session.execute(delete(ClinicalNoteModel).where(ClinicalNoteModel.id == note_id))
        await self._commit()
        return result.rowcount > 0


class SQLAlchemyPrescriptionRepository(SQLAlchemyRepository, IPrescriptionRepository):
    """SQLAlchemy implementation of prescription repository."""

    async def add(self, prescription: Prescription) -> Prescription:
        prescription.id = prescription.id or generate_uuid_str()
        self.session.add(
            PrescriptionModel(
                id=prescription.id,
                patient_id=prescription.patient_id,
                provider_id=prescription.provider_id,
                appointment_id=prescription.appointment_id,
                medication=prescription.medication,
                dosage=prescription.dosage,
                frequency=prescription.frequency,
                duration_text=prescription.duration_text,
                instructions=prescription.instructions,
                status=prescription.status,
                prescribed_at=prescription.prescribed_at,
            )
        )
        await self._commit()
        return prescription

    async def find_by_appointment(self, appointment_id: str) -> list[Prescription]:
        result = await self.session.execute(
            select(PrescriptionModel).where(PrescriptionModel.appointment_id == appointment_id)
        )
        return [
            Prescription(
                id=m.id,
                patient_id=m.patient_id,
                provider_id=m.provider_id,
                appointment_id=m.appointment_id,
                medication=m.medication,
                dosage=m.dosage,
                frequency=m.frequency,
                duration_text=m.duration_text,
                instructions=m.instructions,
                status=m.status,
                prescribed_at=m.prescribed_at,
            )
            for m in result.scalars().all()
        ]

    async def delete(self, prescription_id: str) -> bool:
        result = await self.session.execute(delete(PrescriptionModel).where(PrescriptionModel.id == prescription_id))
        await self._commit()
        return result.rowcount > 0


class SQLAlchemyTreatmentPlanRepository(SQLAlchemyRepository, ITreatmentPlanRepository):
    """SQLAlchemy implementation of treatment plan repository."""

    async def find_by_id(self, plan_id: str) -> TreatmentPlan | None:
        result = await self.session.execute(select(TreatmentPlanModel).where(TreatmentPlanModel.id == plan_id))
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return TreatmentPlan(
            id=model.id,
            patient_id=model.patient_id,
            provider_id=model.provider_id,
            title=model.title,
            diagnosis=model.diagnosis,
            priority=model.priority,
            estimated_cost_cents=model.estimated_cost_cents,
            status=model.status,
            start_date=model.start_date,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def add(self, plan: TreatmentPlan) -> TreatmentPlan:
        plan.id = plan.id or generate_uuid_str()
        self.session.add(
            TreatmentPlanModel(
                id=plan.id,
                patient_id=plan.patient_id,
                provider_id=plan.provider_id,
                title=plan.title,
                diagnosis=plan.diagnosis,
                priority=plan.priority,
                estimated_cost_cents=plan.estimated_cost_cents,
                status=plan.status,
                start_date=plan.start_date,
            )
        )
        await self._commit()
        logger.info(f"Created treatment plan {plan.id} for patient {plan.patient_id}")
        return plan

    async def delete(self, plan_id: str) -> bool:
        result = await self.session.execute(delete(TreatmentPlanModel).where(TreatmentPlanModel.id == plan_id))
        await self._commit()
        return result.rowcount > 0
