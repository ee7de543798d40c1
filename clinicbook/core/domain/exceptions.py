"""
Domain exceptions.

Every business rule violation carries a machine-readable ``code`` and a
``details`` dict; the API layer maps exception classes to HTTP statuses.
"""

from typing import Any


class DomainException(Exception):
    """Base class for business rule violations."""

    default_code = "DOMAIN_ERROR"

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        """
        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "SLOT_CONFLICT")
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationException(DomainException):
    """Invalid input or a broken aggregate invariant."""

    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, details=details)
        self.field = field


class EntityNotFoundException(DomainException):
    default_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any, message: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            message or f"{entity_type} '{entity_id}' not found",
            details={"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class InvalidOperationException(DomainException):
    """Operation not allowed in the record's current state."""

    default_code = "INVALID_OPERATION"

    def __init__(self, operation: str, current_state: str, message: str | None = None):
        self.operation = operation
        self.current_state = current_state
        super().__init__(
            message or f"Cannot {operation} while '{current_state}'",
            details={"operation": operation, "current_state": current_state},
        )


class ConflictException(DomainException):
    """A resource is already taken by another record."""

    default_code = "CONFLICT"
