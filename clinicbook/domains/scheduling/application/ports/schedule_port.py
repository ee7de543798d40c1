# ============================================================================
# SCOPE: APPLICATION LAYER (Scheduling)
# Description: Provider schedule repository port.
# ============================================================================
"""Provider Schedule Repository Port."""

from typing import Protocol, runtime_checkable

from clinicbook.domains.scheduling.domain.entities.provider_schedule import ProviderSchedule


@runtime_checkable
class IProviderScheduleRepository(Protocol):
    """Access to provider schedules with their windows and exceptions."""

    async def find_by_provider_id(self, provider_id: str) -> ProviderSchedule | None:
        """
        Load a provider schedule.

        Args:
            provider_id: Provider ID

        Returns:
            Schedule with windows and exceptions, or None
        """
        ...

    async def save(self, schedule: ProviderSchedule) -> ProviderSchedule:
        """Create or replace a provider schedule."""
        ...
