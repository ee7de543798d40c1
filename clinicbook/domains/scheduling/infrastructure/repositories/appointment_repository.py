"""
Appointment Repository Implementation

SQLAlchemy implementation of IAppointmentRepository.
"""

import logging
from datetime import datetime

from sqlalchemy import and_, delete, select, text, update
from sqlalchemy.exc import IntegrityError

from clinicbook.core.domain import generate_uuid_str
from clinicbook.domains.scheduling.application.ports.appointment_port import IAppointmentRepository
from clinicbook.domains.scheduling.domain.entities.appointment import Appointment
from clinicbook.domains.scheduling.domain.exceptions import SlotConflict
from clinicbook.domains.scheduling.domain.value_objects.appointment_status import AppointmentStatus
from clinicbook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import AppointmentModel

from .base import SQLAlchemyRepository

logger = logging.getLogger(__name__)


class SQLAlchemyAppointmentRepository(SQLAlchemyRepository, IAppointmentRepository):
    """
    SQLAlchemy implementation of appointment repository.

    Handles all appointment data persistence operations.
    """

    async def find_by_id(self, appointment_id: str) -> Appointment | None:
        """Find appointment by ID."""
        result = await self.session.execute(select(AppointmentModel).where(AppointmentModel.id == appointment_id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_by_provider(
        self,
        provider_id: str,
        range_start: datetime,
        range_end: datetime,
        occupying_only: bool = True,
    ) -> list[Appointment]:
        """Find provider appointments overlapping a window."""
        query = select(AppointmentModel).where(
            and_(
                AppointmentModel.provider_id == provider_id,
                AppointmentModel.start_at < range_end,
                AppointmentModel.end_at > range_start,
            )
        )
        if occupying_only:
            query = query.where(AppointmentModel.status.in_(AppointmentStatus.occupying()))

        result = await self.session.execute(query.order_by(AppointmentModel.start_at))
        return [self._to_entity(m) for m in result.scalars().all()]

    async def find_starting_between(
        self,
        range_start: datetime,
        range_end: datetime,
        statuses: tuple[AppointmentStatus, ...] = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED),
    ) -> list[Appointment]:
        """Find appointments of any provider starting in [range_start, range_end)."""
        query = select(AppointmentModel).where(
            and_(
                AppointmentModel.start_at >= range_start,
                AppointmentModel.start_at < range_end,
                AppointmentModel.status.in_(statuses),
            )
        )
        result = await self.session.execute(query.order_by(AppointmentModel.start_at))
        return [self._to_entity(m) for m in result.scalars().all()]

    async def find_conflicts(
        self,
        provider_id: str,
        start_at: datetime,
        end_at: datetime,
        exclude_appointment_id: str | None = None,
    ) -> list[Appointment]:
        """Find occupying appointments overlapping [start_at, end_at)."""
        query = select(AppointmentModel).where(
            and_(
                AppointmentModel.provider_id == provider_id,
                AppointmentModel.status.in_(AppointmentStatus.occupying()),
                # Half-open interval overlap
                AppointmentModel.start_at < end_at,
                AppointmentModel.end_at > start_at,
            )
        )
        if exclude_appointment_id:
            query = query.where(AppointmentModel.id != exclude_appointment_id)

        result = await self.session.execute(query.order_by(AppointmentModel.start_at))
        return [self._to_entity(m) for m in result.scalars().all()]

    async def lock_provider(self, provider_id: str) -> None:
        """
        Transaction-scoped advisory lock on PostgreSQL, released by the next commit or rollback.

        SQLite has no cross-process equivalent: with SQLite only a single process may book,
        protected by the in-process provider lock and the unique start index.
        """
        if self.dialect_name != "postgresql":
            return
        await self.session.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
            {"key": f"provider-booking:{provider_id}"},
        )

    async def release_provider(self, provider_id: str) -> None:
        """Roll back the open transaction so a refused booking does not keep the advisory lock."""
        if self.dialect_name == "postgresql" and self.session.in_transaction():
            await self.session.rollback()

    async def add(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment."""
        if appointment.id is None:
            appointment.id = generate_uuid_str()
        model = self._to_model(appointment)
        self.session.add(model)
        try:
            await self._commit()
        except IntegrityError as e:
            logger.warning(f"Unique start constraint rejected appointment at {appointment.start_at}: {e.orig}")
            raise SlotConflict(
                provider_id=appointment.provider_id,
                start_at=appointment.start_at,
                end_at=appointment.end_at,
            ) from e
        await self.session.refresh(model)
        return self._to_entity(model)

    async def save(self, appointment: Appointment) -> Appointment:
        """Save or update appointment."""
        result = await self.session.execute(select(AppointmentModel).where(AppointmentModel.id == appointment.id))
        model = result.scalar_one_or_none()
        if model:
            self._update_model(model, appointment)
        else:
            model = self._to_model(appointment)
            self.session.add(model)

        await self._commit()
        await self.session.refresh(model)
        return self._to_entity(model)

    async def save_if_status(self, appointment: Appointment, expected_status: AppointmentStatus) -> bool:
        """Compare-and-set update guarded by the stored status."""
        values = self._values(appointment)
        values["version"] = AppointmentModel.version + 1
        statement = (
            update(AppointmentModel)
            .where(
                and_(
                    AppointmentModel.id == appointment.id,
                    AppointmentModel.status == expected_status,
                )
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(statement)
            await self._commit()
        except IntegrityError as e:
            raise SlotConflict(
                provider_id=appointment.provider_id,
                start_at=appointment.start_at,
                end_at=appointment.end_at,
            ) from e

        # Later reads in this session must see the stored row, not the cached one.
        self.session.expire_all()
        if result.rowcount != 1:
            logger.info(f"Appointment {appointment.id} was no longer {expected_status.value}")
            return False
        appointment.increment_version()
        return True

    async def delete(self, appointment_id: str) -> bool:
        """Delete appointment."""
        result = await self.session.execute(delete(AppointmentModel).where(AppointmentModel.id == appointment_id))
        await self._commit()
        return result.rowcount > 0

    # Mapping

    @staticmethod
    def _values(appointment: Appointment) -> dict:
        return {
            "patient_id": appointment.patient_id,
            "provider_id": appointment.provider_id,
            "business_id": appointment.business_id,
            "start_at": appointment.start_at,
            "end_at": appointment.end_at,
            "duration_minutes": appointment.duration_minutes,
            "status": appointment.status,
            "urgency": appointment.urgency,
            "booking_channel": appointment.booking_channel,
            "reason": appointment.reason,
            "notes": appointment.notes,
            "consultation_notes": appointment.consultation_notes,
            "treatment_plan_id": appointment.treatment_plan_id,
            "follow_up_of_id": appointment.follow_up_of_id,
            "confirmed_at": appointment.confirmed_at,
            "completed_at": appointment.completed_at,
            "cancelled_at": appointment.cancelled_at,
            "cancellation_reason": appointment.cancellation_reason,
            "cancelled_by": appointment.cancelled_by,
            "completed_by": appointment.completed_by,
            "updated_at": appointment.updated_at,
        }

    def _to_entity(self, model: AppointmentModel) -> Appointment:
        """Convert model to entity."""
        return Appointment(
            id=model.id,
            patient_id=model.patient_id,
            provider_id=model.provider_id,
            business_id=model.business_id,
            start_at=model.start_at,
            duration_minutes=model.duration_minutes,
            status=model.status,
            urgency=model.urgency,
            booking_channel=model.booking_channel,
            reason=model.reason or "",
            notes=model.notes or "",
            consultation_notes=model.consultation_notes,
            treatment_plan_id=model.treatment_plan_id,
            follow_up_of_id=model.follow_up_of_id,
            confirmed_at=model.confirmed_at,
            completed_at=model.completed_at,
            cancelled_at=model.cancelled_at,
            cancellation_reason=model.cancellation_reason,
            cancelled_by=model.cancelled_by,
            completed_by=model.completed_by,
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version or 0,
        )

    def _to_model(self, appointment: Appointment) -> AppointmentModel:
        """Convert entity to model."""
        return AppointmentModel(
            id=appointment.id,
            created_at=appointment.created_at,
            version=appointment.version,
            **self._values(appointment),
        )

    def _update_model(self, model: AppointmentModel, appointment: Appointment) -> None:
        """Update model from entity."""
        for key, value in self._values(appointment).items():
            setattr(model, key, value)
