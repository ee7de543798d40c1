"""
Get Available Slots Use Case

Lists the slots of a provider for one date, or finds the next free one.
"""

import logging
from datetime import datetime, timedelta

from clinicbook.domains.scheduling.application.dto.booking import AvailableSlotsRequest, AvailableSlotsResponse
from clinicbook.domains.scheduling.application.ports.appointment_port import IAppointmentRepository
from clinicbook.domains.scheduling.application.ports.schedule_port import IProviderScheduleRepository
from clinicbook.domains.scheduling.domain.entities.provider_schedule import ProviderSchedule
from clinicbook.domains.scheduling.domain.exceptions import NotFound, ValidationError
from clinicbook.domains.scheduling.domain.services.slot_generator import SlotGenerator
from clinicbook.domains.scheduling.domain.value_objects.time_range import Slot

logger = logging.getLogger(__name__)


async def _load_schedule(repo: IProviderScheduleRepository, provider_id: str) -> ProviderSchedule:
    schedule = await repo.find_by_provider_id(provider_id)
    if schedule is None:
        raise NotFound("Provider", provider_id)
    return schedule


class GetAvailableSlotsUseCase:
    """
    Use case for listing a provider's slots on a date.

    Existing appointments are loaded for the whole day so every slot is
    checked against the same snapshot.
    """

    def __init__(
        self,
        schedule_repository: IProviderScheduleRepository,
        appointment_repository: IAppointmentRepository,
        slot_generator: SlotGenerator | None = None,
    ):
        self.schedule_repo = schedule_repository
        self.appointment_repo = appointment_repository
        self.slot_generator = slot_generator or SlotGenerator()

    async def execute(self, request: AvailableSlotsRequest) -> AvailableSlotsResponse:
        """
        Execute slot listing.

        Args:
            request: Provider, date, duration and urgency

        Returns:
            Slots for the date (only available ones if requested)
        """
        schedule = await _load_schedule(self.schedule_repo, request.provider_id)
        day_start = datetime.combine(request.date, datetime.min.time())
        existing = await self.appointment_repo.find_by_provider(
            request.provider_id, day_start, day_start + timedelta(days=1)
        )

        slots = self.slot_generator.generate_slots(
            schedule,
            request.date,
            request.duration_minutes,
            existing,
            urgent=request.urgent,
        )
        if request.only_available:
            slots = [slot for slot in slots if slot.available]

        return AvailableSlotsResponse(
            provider_id=request.provider_id,
            date=request.date,
            duration_minutes=request.duration_minutes or schedule.default_slot_minutes,
            slots=slots,
        )


class FindNextAvailableUseCase:
    """Use case for finding the earliest free slot within a bounded number of days."""

    def __init__(
        self,
        schedule_repository: IProviderScheduleRepository,
        appointment_repository: IAppointmentRepository,
        slot_generator: SlotGenerator | None = None,
        search_days: int = 14,
    ):
        self.schedule_repo = schedule_repository
        self.appointment_repo = appointment_repository
        self.slot_generator = slot_generator or SlotGenerator()
        self.search_days = search_days

    async def execute(
        self,
        provider_id: str,
        after: datetime,
        duration_minutes: int | None = None,
        urgent: bool = False,
        search_days: int | None = None,
    ) -> Slot | None:
        """
        Find the next available slot.

        Args:
            provider_id: Provider ID
            after: Earliest acceptable start
            duration_minutes: Slot length (provider default if not specified)
            urgent: Allow emergency-reserved time
            search_days: Override the configured search horizon

        Returns:
            First available slot or None
        """
        days = search_days or self.search_days
        if days <= 0:
            raise ValidationError("search_days must be positive", field="search_days")

        schedule = await _load_schedule(self.schedule_repo, provider_id)
        horizon_start = datetime.combine(after.date(), datetime.min.time())
        existing = await self.appointment_repo.find_by_provider(
            provider_id, horizon_start, horizon_start + timedelta(days=days)
        )
        slot = self.slot_generator.first_available(
            schedule, after, duration_minutes, existing, search_days=days, urgent=urgent
        )
        if slot is None:
            logger.info(f"No free slot for provider {provider_id} within {days} days of {after.isoformat()}")
        return slot
