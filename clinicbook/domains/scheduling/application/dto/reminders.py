"""
Reminder DTOs

Outcome of one run of the appointment reminder job.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ReminderOutcome:
    """One reminder attempt. ``appointment_id`` is None when the lookup itself failed."""

    appointment_id: str | None
    hours_before: int
    success: bool
    recipient: str | None = None
    error: str | None = None


@dataclass
class ReminderRunResult:
    """Reminders sent and failed during one run."""

    ran_at: datetime
    sent: list[ReminderOutcome] = field(default_factory=list)
    failed: list[ReminderOutcome] = field(default_factory=list)

    def record(self, outcome: ReminderOutcome) -> None:
        if outcome.success:
            self.sent.append(outcome)
        else:
            self.failed.append(outcome)

    @property
    def sent_count(self) -> int:
        return len(self.sent)

    @property
    def failed_count(self) -> int:
        return len(self.failed)
