"""
Contact Directory Implementation

Reads patient contact data from the patient_contacts projection.
"""

from sqlalchemy import select

from clinicbook.domains.scheduling.application.ports.notification_port import IContactDirectory
from clinicbook.domains.scheduling.domain.entities.patient_contact import PatientContact
from clinicbook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import PatientContactModel

from .base import SQLAlchemyRepository


class SQLAlchemyContactDirectory(SQLAlchemyRepository, IContactDirectory):
    """Read-only contact lookup."""

    async def get_contact(self, patient_id: str) -> PatientContact | None:
        result = await self.session.execute(
            select(PatientContactModel).where(PatientContactModel.patient_id == patient_id)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return PatientContact(patient_id=model.patient_id, name=model.name or "", email=model.email, phone=model.phone)
