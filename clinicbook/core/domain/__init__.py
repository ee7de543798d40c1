"""
Domain building blocks shared by every domain package: entities,
value objects, status enums and the exception hierarchy.
"""

from clinicbook.core.domain.entities import (
    AggregateRoot,
    Entity,
    generate_uuid_str,
    utcnow,
)
from clinicbook.core.domain.exceptions import (
    ConflictException,
    DomainException,
    EntityNotFoundException,
    InvalidOperationException,
    ValidationException,
)
from clinicbook.core.domain.value_objects import (
    Email,
    StatusEnum,
    ValueObject,
)

__all__ = [
    "Entity",
    "AggregateRoot",
    "generate_uuid_str",
    "utcnow",
    "ValueObject",
    "Email",
    "StatusEnum",
    "DomainException",
    "ValidationException",
    "EntityNotFoundException",
    "InvalidOperationException",
    "ConflictException",
]
