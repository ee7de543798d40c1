"""
Send Due Reminders Use Case

Emails patients ahead of their pending or confirmed appointments, by default
24 and 2 hours before the start. Meant to be run by a scheduler every
``window_minutes``.
"""

import logging
from datetime import datetime, timedelta

from clinicbook.domains.scheduling.application.dto.reminders import ReminderOutcome, ReminderRunResult
from clinicbook.domains.scheduling.application.ports.appointment_port import IAppointmentRepository
from clinicbook.domains.scheduling.application.ports.schedule_port import IProviderScheduleRepository
from clinicbook.domains.scheduling.application.services.patient_notifier import PatientNotifier
from clinicbook.domains.scheduling.domain.entities.appointment import Appointment

logger = logging.getLogger(__name__)

DEFAULT_LEAD_HOURS = (24, 2)


class SendDueRemindersUseCase:
    """
    Use case for sending the reminders that fall due in the current window.

    For each lead time the window is ``[now + lead, now + lead + window_minutes)``
    on appointment start. Consecutive runs spaced ``window_minutes`` apart
    therefore remind every appointment once per lead time. Nothing is
    raised: lookup and delivery failures are returned in the result.
    """

    def __init__(
        self,
        appointment_repository: IAppointmentRepository,
        notifier: PatientNotifier,
        schedule_repository: IProviderScheduleRepository | None = None,
        lead_hours: tuple[int, ...] | list[int] = DEFAULT_LEAD_HOURS,
        window_minutes: int = 15,
    ):
        self.appointment_repo = appointment_repository
        self.notifier = notifier
        self.schedule_repo = schedule_repository
        self.lead_hours = tuple(lead_hours)
        self.window = timedelta(minutes=window_minutes)

    async def execute(self, now: datetime) -> ReminderRunResult:
        """
        Send reminders due at ``now`` (naive clinic-local time).

        Returns:
            Sent and failed reminders
        """
        result = ReminderRunResult(ran_at=now)
        provider_names: dict[str, str] = {}

        for hours in self.lead_hours:
            window_start = now + timedelta(hours=hours)
            try:
                due = await self.appointment_repo.find_starting_between(window_start, window_start + self.window)
            except Exception as e:
                logger.exception(f"Could not load appointments for {hours}h reminders")
                error = str(e) or e.__class__.__name__
                result.record(ReminderOutcome(appointment_id=None, hours_before=hours, success=False, error=error))
                continue

            for appointment in due:
                name = await self._provider_name(appointment, provider_names)
                receipt = await self.notifier.send_reminder(appointment, hours, provider_name=name)
                result.record(
                    ReminderOutcome(
                        appointment_id=appointment.id,
                        hours_before=hours,
                        success=receipt.success,
                        recipient=receipt.recipient,
                        error=receipt.error,
                    )
                )
                if not receipt.success:
                    logger.warning(f"{hours}h reminder for appointment {appointment.id} failed: {receipt.error}")

        logger.info(f"Reminder run at {now.isoformat()}: {result.sent_count} sent, {result.failed_count} failed")
        return result

    async def _provider_name(self, appointment: Appointment, cache: dict[str, str]) -> str:
        if self.schedule_repo is None:
            return ""
        if appointment.provider_id not in cache:
            try:
                schedule = await self.schedule_repo.find_by_provider_id(appointment.provider_id)
            except Exception:
                logger.exception(f"Could not load provider {appointment.provider_id} for reminder")
                schedule = None
            cache[appointment.provider_id] = schedule.display_name if schedule else ""
        return cache[appointment.provider_id]
