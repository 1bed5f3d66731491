"""
Error translation - domain errors to HTTP responses.

Every RegistrationError is rendered as ``{"detail": ..., "kind": ...}``
with the status code of its kind.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.domain.exceptions import (
    BadRequest,
    Conflict,
    InternalError,
    InvalidInput,
    RegistrationError,
    StoreError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[RegistrationError], int] = {
    BadRequest: 400,
    InvalidInput: 422,
    Conflict: 409,
    StoreError: 503,
    InternalError: 500,
}


def status_code_for(exc: RegistrationError) -> int:
    """HTTP status for a domain error, resolved through its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 500


async def registration_error_handler(request: Request, exc: RegistrationError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s: %s", request.method, request.url.path, exc.kind, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "kind": exc.kind})


def install_error_handlers(app: FastAPI) -> None:
    """Register the domain error handler on an application."""
    app.add_exception_handler(RegistrationError, registration_error_handler)
