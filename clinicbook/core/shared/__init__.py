"""Shared utilities used across domains."""

from clinicbook.core.shared.logger import (
    ContextLogger,
    configure_logging,
    get_service_logger,
)

__all__ = [
    "ContextLogger",
    "configure_logging",
    "get_service_logger",
]
