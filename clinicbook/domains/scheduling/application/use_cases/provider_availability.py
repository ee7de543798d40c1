"""
Provider Availability Use Cases

Staff-side editing of a provider's week: working windows with breaks,
emergency windows, and dated absences that need approval before they
block bookings.
"""

import logging
from datetime import date

from clinicbook.domains.scheduling.application.ports.schedule_port import IProviderScheduleRepository
from clinicbook.domains.scheduling.domain.entities.provider_schedule import (
    AvailabilityException,
    EmergencyWindow,
    ProviderSchedule,
    WorkingWindow,
)
from clinicbook.domains.scheduling.domain.exceptions import NotFound
from clinicbook.domains.scheduling.domain.value_objects import ExceptionKind

logger = logging.getLogger(__name__)


async def _load_schedule(repo: IProviderScheduleRepository, provider_id: str) -> ProviderSchedule:
    schedule = await repo.find_by_provider_id(provider_id)
    if schedule is None:
        raise NotFound("Provider", provider_id)
    return schedule


class GetProviderScheduleUseCase:
    """Use case for reading a provider's windows and exceptions."""

    def __init__(self, schedule_repository: IProviderScheduleRepository):
        self.schedule_repo = schedule_repository

    async def execute(self, provider_id: str) -> ProviderSchedule:
        return await _load_schedule(self.schedule_repo, provider_id)


class SetWeeklyAvailabilityUseCase:
    """
    Use case for replacing a provider's weekly availability.

    The submitted windows replace the stored ones as a whole; a day left
    out of the set becomes a day off. Bookings already made are kept.
    """

    def __init__(self, schedule_repository: IProviderScheduleRepository):
        self.schedule_repo = schedule_repository

    async def execute(
        self,
        provider_id: str,
        working_windows: list[WorkingWindow],
        emergency_windows: list[EmergencyWindow] | None = None,
        default_slot_minutes: int | None = None,
    ) -> ProviderSchedule:
        """
        Replace the weekly availability.

        Args:
            provider_id: Provider ID
            working_windows: New working windows, breaks included
            emergency_windows: New emergency windows, or None to keep the current ones
            default_slot_minutes: New default slot length, or None to keep it

        Returns:
            The saved schedule

        Raises:
            NotFound: unknown provider
            ValidationError: overlapping windows or a non-positive slot length
        """
        schedule = await _load_schedule(self.schedule_repo, provider_id)
        schedule.replace_windows(working_windows, emergency_windows)
        if default_slot_minutes is not None:
            schedule.set_default_slot_minutes(default_slot_minutes)

        saved = await self.schedule_repo.save(schedule)
        logger.info(
            f"Provider {provider_id} availability set: {len(saved.working_windows)} windows, "
            f"{len(saved.emergency_windows)} emergency windows"
        )
        return saved


class AddAvailabilityExceptionUseCase:
    """Use case for recording a requested absence. It blocks nothing until approved."""

    def __init__(self, schedule_repository: IProviderScheduleRepository):
        self.schedule_repo = schedule_repository

    async def execute(
        self,
        provider_id: str,
        start_date: date,
        end_date: date,
        kind: ExceptionKind = ExceptionKind.VACATION,
        reason: str = "",
        approved: bool = False,
    ) -> AvailabilityException:
        schedule = await _load_schedule(self.schedule_repo, provider_id)
        exception = AvailabilityException(
            id=None,
            provider_id=provider_id,
            start_date=start_date,
            end_date=end_date,
            approved=approved,
            kind=kind,
            reason=reason,
        )
        schedule.add_exception(exception)

        saved = await self.schedule_repo.save(schedule)
        logger.info(
            f"Provider {provider_id} {kind.value} {start_date.isoformat()}..{end_date.isoformat()} recorded "
            f"({'approved' if approved else 'awaiting approval'})"
        )
        return saved.get_exception(exception.id)


class ApproveAvailabilityExceptionUseCase:
    """Use case for approving a recorded absence so it blocks its dates."""

    def __init__(self, schedule_repository: IProviderScheduleRepository):
        self.schedule_repo = schedule_repository

    async def execute(self, provider_id: str, exception_id: str) -> AvailabilityException:
        """
        Approve an exception.

        Raises:
            NotFound: unknown provider or exception
        """
        schedule = await _load_schedule(self.schedule_repo, provider_id)
        schedule.approve_exception(exception_id)

        saved = await self.schedule_repo.save(schedule)
        logger.info(f"Provider {provider_id} exception {exception_id} approved")
        return saved.get_exception(exception_id)
