"""
Shared Logger

Logging setup for clinicbook. Services log through ``ContextLogger`` so
provider, patient and appointment ids travel with every record; the JSON
formatter emits them as fields, the console formatters append them as
``key=value`` pairs.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s%(context_suffix)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _context_of(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "context", None) or {}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context ids as top-level fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(_context_of(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable line with the record context appended."""

    def __init__(self):
        super().__init__(CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        context = _context_of(record)
        record.context_suffix = (" | " + " ".join(f"{k}={v}" for k, v in context.items())) if context else ""
        return super().format(record)


class ColoredFormatter(ConsoleFormatter):
    """Console formatter coloring the level name."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Restore the plain level name so other handlers see it uncolored.
        levelname = record.levelname
        record.levelname = f"{self.COLORS.get(levelname, '')}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class ContextLogger:
    """
    Wrapper around a stdlib logger that carries key/value context.

    ``with_context`` returns a new logger; the original is never mutated,
    so a module-level instance can be narrowed per booking or completion.
    """

    def __init__(self, name: str, context: dict[str, Any] | None = None):
        self._logger = logging.getLogger(name)
        self._context = dict(context or {})

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def context(self) -> dict[str, Any]:
        return dict(self._context)

    def with_context(self, **kwargs) -> "ContextLogger":
        return ContextLogger(self._logger.name, {**self._context, **kwargs})

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, message, exc_info=exc_info, extra={"context": {**self._context, **kwargs}})

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, message, exc_info=True, **kwargs)


_FORMATTERS = {
    "json": JSONFormatter,
    "colored": ColoredFormatter,
    "plain": ConsoleFormatter,
}


def configure_logging(level: str = "INFO", format_type: str = "colored") -> None:
    """
    Configure the root logger with a single stdout handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'colored', 'json' or 'plain'
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    formatter_cls = _FORMATTERS.get(format_type, ConsoleFormatter)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter_cls())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    # SQL echo is controlled by DB_ECHO, keep the engine logger quiet otherwise.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_service_logger(service_name: str) -> ContextLogger:
    """Context logger for an application service (booking, completion, notifications)."""
    return ContextLogger(f"clinicbook.services.{service_name}", {"service": service_name})
