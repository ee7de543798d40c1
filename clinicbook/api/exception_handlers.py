"""
Exception handlers for the FastAPI application.

Every error leaves the API with the same body:
``{"error": true, "code", "message", "details", "status_code"}``.
Completion failures also echo the failing ``step`` and the submitted
``request`` so the client can retry it unchanged.
"""

import dataclasses
import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from clinicbook.core.domain import (
    ConflictException,
    DomainException,
    EntityNotFoundException,
    InvalidOperationException,
    ValidationException,
)
from clinicbook.domains.scheduling.domain.exceptions import CompletionError

logger = logging.getLogger(__name__)

# Checked in order; the first matching class wins.
_STATUS_BY_EXCEPTION: list[tuple[type[DomainException], int]] = [
    (EntityNotFoundException, status.HTTP_404_NOT_FOUND),
    (ConflictException, status.HTTP_409_CONFLICT),
    (InvalidOperationException, status.HTTP_409_CONFLICT),
    (ValidationException, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (CompletionError, status.HTTP_422_UNPROCESSABLE_ENTITY),
]


def status_for(exc: DomainException) -> int:
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _error_response(
    status_code: int,
    code: str,
    message: Any,
    details: Any = None,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    body = {
        "error": True,
        "code": code,
        "message": message,
        "details": details if details is not None else {},
        "status_code": status_code,
        **extra,
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def _request_payload(request_obj: Any) -> Any:
    if dataclasses.is_dataclass(request_obj) and not isinstance(request_obj, type):
        return dataclasses.asdict(request_obj)
    return request_obj


async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, DomainException):
        return await global_exception_handler(request, exc)

    status_code = status_for(exc)
    if isinstance(exc, CompletionError):
        logger.warning(f"Completion failed on {request.url.path} at step {exc.step}: {exc.cause}")
        return _error_response(
            status_code,
            exc.code,
            exc.message,
            exc.details,
            step=exc.step,
            request=_request_payload(exc.request),
        )

    logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return _error_response(status_code, exc.code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, HTTPException):
        return await global_exception_handler(request, exc)
    return _error_response(exc.status_code, "HTTP_ERROR", exc.detail, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Malformed request bodies and query parameters, one entry per field."""
    if not isinstance(exc, RequestValidationError):
        return await global_exception_handler(request, exc)

    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Invalid request on {request.url.path}: {errors}")
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", "Invalid request", errors)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled errors: full traceback in the log, a safe body to the client."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc!s}", exc_info=True)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
