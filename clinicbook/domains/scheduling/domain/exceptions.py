"""
Scheduling Domain Exceptions

Errors raised by availability, booking, lifecycle and completion logic.
"""

from datetime import datetime
from typing import Any

from clinicbook.core.domain import (
    ConflictException,
    DomainException,
    EntityNotFoundException,
    InvalidOperationException,
    ValidationException,
)


class SlotConflict(ConflictException):
    """Raised when a requested interval is no longer free for the provider."""

    default_code = "SLOT_CONFLICT"

    def __init__(
        self,
        provider_id: str,
        start_at: datetime,
        end_at: datetime,
        conflicting_appointment_id: str | None = None,
        reason: str = "booked",
        message: str | None = None,
    ):
        self.provider_id = provider_id
        self.start_at = start_at
        self.end_at = end_at
        self.conflicting_appointment_id = conflicting_appointment_id
        self.reason = reason
        details: dict[str, Any] = {
            "provider_id": provider_id,
            "time_slot": f"{start_at.isoformat()}/{end_at.isoformat()}",
            "reason": reason,
        }
        if conflicting_appointment_id:
            details["conflicting_appointment_id"] = conflicting_appointment_id
        super().__init__(
            message or f"Provider {provider_id} is not available at {start_at.isoformat()}",
            details=details,
        )


class InvalidTransition(InvalidOperationException):
    """Raised when an appointment status change is not allowed."""

    default_code = "INVALID_TRANSITION"

    def __init__(self, current_status: str, target_status: str, operation: str | None = None):
        self.target_status = target_status
        super().__init__(
            operation=operation or target_status,
            current_state=current_status,
            message=f"Cannot move appointment from '{current_status}' to '{target_status}'",
        )
        self.details["target_status"] = target_status


class NotFound(EntityNotFoundException):
    """Raised when an appointment, provider or billing record does not exist."""


class ValidationError(ValidationException):
    """Raised when input data or an aggregate invariant is invalid."""


class CompletionError(DomainException):
    """
    Raised when the completion workflow fails before the status change.

    Carries the failing step, the underlying cause and the original request
    so the caller can retry without re-entering data.
    """

    default_code = "COMPLETION_FAILED"

    def __init__(self, step: str, cause: Exception, request: Any, message: str | None = None):
        self.step = step
        self.cause = cause
        self.request = request
        details: dict[str, Any] = {
            "step": step,
            "cause": getattr(cause, "code", cause.__class__.__name__),
            "cause_message": str(cause),
        }
        super().__init__(message or f"Completion failed at step '{step}': {cause}", details=details)
