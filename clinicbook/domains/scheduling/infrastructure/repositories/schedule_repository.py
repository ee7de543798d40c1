"""
Provider Schedule Repository Implementation

SQLAlchemy implementation of IProviderScheduleRepository.
"""

import logging

from sqlalchemy import select

from clinicbook.core.domain import generate_uuid_str
from clinicbook.domains.scheduling.application.ports.schedule_port import IProviderScheduleRepository
from clinicbook.domains.scheduling.domain.entities.provider_schedule import (
    AvailabilityException,
    EmergencyWindow,
    ProviderSchedule,
    WorkingWindow,
)
from clinicbook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import (
    AvailabilityExceptionModel,
    AvailabilityWindowModel,
    EmergencyWindowModel,
    ProviderModel,
)

from .base import SQLAlchemyRepository

logger = logging.getLogger(__name__)


class SQLAlchemyProviderScheduleRepository(SQLAlchemyRepository, IProviderScheduleRepository):
    """
    SQLAlchemy implementation of provider schedule repository.

    Windows, emergency windows and exceptions are stored in child tables and
    replaced as a whole on save.
    """

    async def find_by_provider_id(self, provider_id: str) -> ProviderSchedule | None:
        """Find schedule by provider ID."""
        result = await self.session.execute(select(ProviderModel).where(ProviderModel.id == provider_id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def save(self, schedule: ProviderSchedule) -> ProviderSchedule:
        """Create or replace a provider schedule."""
        result = await self.session.execute(select(ProviderModel).where(ProviderModel.id == schedule.provider_id))
        model = result.scalar_one_or_none()
        if model is None:
            model = ProviderModel(id=schedule.provider_id)
            self.session.add(model)

        model.business_id = schedule.business_id
        model.display_name = schedule.display_name
        model.default_slot_minutes = schedule.default_slot_minutes
        model.version = schedule.version
        model.windows = [
            AvailabilityWindowModel(
                day_of_week=w.day_of_week,
                start_time=w.start,
                end_time=w.end,
                break_start=w.break_start,
                break_end=w.break_end,
            )
            for w in schedule.working_windows
        ]
        model.emergency_windows = [
            EmergencyWindowModel(day_of_week=w.day_of_week, start_time=w.start, end_time=w.end)
            for w in schedule.emergency_windows
        ]
        # Exceptions keep their ids, so stored rows are updated in place.
        stored = {e.id: e for e in model.exceptions}
        exceptions = []
        for e in schedule.exceptions:
            row = stored.get(e.id) if e.id else None
            if row is None:
                row = AvailabilityExceptionModel(id=e.id or generate_uuid_str())
            row.start_date = e.start_date
            row.end_date = e.end_date
            row.approved = e.approved
            row.kind = e.kind
            row.reason = e.reason
            exceptions.append(row)
        model.exceptions = exceptions

        await self._commit()
        logger.info(f"Saved schedule for provider {schedule.provider_id}")
        return self._to_entity(model)

    def _to_entity(self, model: ProviderModel) -> ProviderSchedule:
        """Convert model to entity."""
        return ProviderSchedule(
            id=model.id,
            provider_id=model.id,
            business_id=model.business_id or "",
            display_name=model.display_name or "",
            default_slot_minutes=model.default_slot_minutes,
            working_windows=[
                WorkingWindow(
                    day_of_week=w.day_of_week,
                    start=w.start_time,
                    end=w.end_time,
                    break_start=w.break_start,
                    break_end=w.break_end,
                )
                for w in model.windows
            ],
            emergency_windows=[
                EmergencyWindow(day_of_week=w.day_of_week, start=w.start_time, end=w.end_time)
                for w in model.emergency_windows
            ],
            exceptions=[
                AvailabilityException(
                    id=e.id,
                    provider_id=model.id,
                    start_date=e.start_date,
                    end_date=e.end_date,
                    approved=e.approved,
                    kind=e.kind,
                    reason=e.reason or "",
                )
                for e in model.exceptions
            ],
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version or 0,
        )
