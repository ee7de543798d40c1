# ============================================================================
# SCOPE: APPLICATION LAYER (Scheduling)
# Description: Appointment repository port.
# ============================================================================
"""
Appointment Repository Port

Interface for appointment data access following Clean Architecture.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable

from clinicbook.domains.scheduling.domain.entities.appointment import Appointment
from clinicbook.domains.scheduling.domain.value_objects.appointment_status import AppointmentStatus


@runtime_checkable
class IAppointmentRepository(Protocol):
    """
    Appointment repository interface.

    Example:
        ```python
        class SQLAlchemyAppointmentRepository(IAppointmentRepository):
            async def find_by_id(self, appointment_id: str) -> Appointment | None:
                ...
        ```
    """

    async def find_by_id(self, appointment_id: str) -> Appointment | None:
        """
        Find appointment by ID.

        Args:
            appointment_id: Unique appointment identifier

        Returns:
            Appointment if found, None otherwise
        """
        ...

    async def find_by_provider(
        self,
        provider_id: str,
        range_start: datetime,
        range_end: datetime,
        occupying_only: bool = True,
    ) -> list[Appointment]:
        """
        Find provider appointments overlapping a window.

        Args:
            provider_id: Provider ID
            range_start: Window start (inclusive)
            range_end: Window end (exclusive)
            occupying_only: Skip cancelled appointments

        Returns:
            Appointments ordered by start
        """
        ...

    async def find_conflicts(
        self,
        provider_id: str,
        start_at: datetime,
        end_at: datetime,
        exclude_appointment_id: str | None = None,
    ) -> list[Appointment]:
        """
        Find pending, confirmed or completed appointments overlapping [start_at, end_at).

        Args:
            provider_id: Provider ID
            start_at: Proposed start
            end_at: Proposed end
            exclude_appointment_id: Appointment to ignore (for reschedule)

        Returns:
            Conflicting appointments
        """
        ...

    async def find_starting_between(
        self,
        range_start: datetime,
        range_end: datetime,
        statuses: tuple[AppointmentStatus, ...] = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED),
    ) -> list[Appointment]:
        """
        Find appointments of any provider whose start lies in [range_start, range_end).

        Args:
            range_start: Window start (inclusive)
            range_end: Window end (exclusive)
            statuses: Statuses to include

        Returns:
            Appointments ordered by start
        """
        ...

    async def lock_provider(self, provider_id: str) -> None:
        """Take the storage-level booking lock for a provider until the next commit."""
        ...

    async def release_provider(self, provider_id: str) -> None:
        """Give up the provider lock when the booking is refused and nothing was written."""
        ...

    async def add(self, appointment: Appointment) -> Appointment:
        """
        Insert a new appointment.

        Raises:
            SlotConflict: if storage rejects an active duplicate start
        """
        ...

    async def save(self, appointment: Appointment) -> Appointment:
        """Update an existing appointment."""
        ...

    async def save_if_status(self, appointment: Appointment, expected_status: AppointmentStatus) -> bool:
        """
        Compare-and-set update: write the appointment only if its stored status
        still equals expected_status.

        Returns:
            True if this call performed the write, False if it lost the race
        """
        ...

    async def delete(self, appointment_id: str) -> bool:
        """Delete appointment. Returns True if deleted."""
        ...
