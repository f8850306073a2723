"""Ledger error taxonomy and exception handlers.

Services raise the typed exceptions below; the handlers registered on the
FastAPI app turn them into a uniform error body.  None of these errors is
retried by the ledger itself; the caller decides whether to resubmit.
"""

import logging
import traceback
from typing import Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class TrackChainException(Exception):
    """Base exception for ledger errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(self.message)


class NotAuthorizedError(TrackChainException):
    """Caller lacks the role or relationship the operation requires."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="NOT_AUTHORIZED",
        )


class NotFoundError(TrackChainException):
    """Referenced stakeholder, batch, product or verification is missing."""

    def __init__(self, resource: str, identifier):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND",
        )


class AlreadyExistsError(TrackChainException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="ALREADY_EXISTS",
        )


class InvalidStakeholderError(TrackChainException):
    """Role outside the enumerated set, or an unregistered transfer target."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="INVALID_STAKEHOLDER",
        )


class InvalidQuantityError(TrackChainException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="INVALID_QUANTITY",
        )


class InvalidTransitionError(TrackChainException):
    def __init__(self, current, requested):
        super().__init__(
            message=f"Cannot move product from {current} to {requested}",
            status_code=status.HTTP_409_CONFLICT,
            error_code="INVALID_TRANSITION",
        )


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Union[dict, list, None] = None,
) -> JSONResponse:
    """Body shape: ``{"error": {"code", "message", "details"?}}``."""
    error = {"code": error_code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


async def trackchain_exception_handler(
    request: Request,
    exc: TrackChainException,
) -> JSONResponse:
    """Render a rejected ledger operation."""
    logger.warning(
        f"Rejected {request.method} {request.url.path}: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code},
    )
    return create_error_response(exc.status_code, exc.message, exc.error_code)


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException],
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")

    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=f"HTTP_{exc.status_code}",
    )


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError],
) -> JSONResponse:
    """Malformed payloads (unknown verification type, inverted range, ...)."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")

    errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        error_code="VALIDATION_ERROR",
        details={"errors": errors},
    )


async def database_exception_handler(
    request: Request,
    exc: IntegrityError,
) -> JSONResponse:
    """Constraint violations that slipped past the service checks.

    The services validate before writing, so reaching this handler means
    two writers raced on the same ledger row or the schema drifted.
    """
    logger.error(
        f"Ledger constraint violated on {request.method} {request.url.path}: {exc.orig}",
    )

    error_msg = str(exc.orig).lower()
    if "ck_batches_remaining_within_total" in error_msg or "check constraint" in error_msg:
        message = "Batch quantity would leave its allowed range"
        error_code = "INVALID_QUANTITY"
    elif "unique" in error_msg or "duplicate key" in error_msg:
        message = "Ledger record already written"
        error_code = "ALREADY_EXISTS"
    elif "foreign key" in error_msg:
        message = "Referenced batch or product does not exist"
        error_code = "NOT_FOUND"
    else:
        message = "Ledger constraint violation"
        error_code = "INTEGRITY_ERROR"

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message=message,
        error_code=error_code,
    )


async def operational_exception_handler(
    request: Request,
    exc: OperationalError,
) -> JSONResponse:
    """Connection loss or lock wait failures while touching the ledger."""
    logger.error(f"Ledger database unavailable on {request.method} {request.url.path}: {exc}")
    return create_error_response(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        message="Ledger database temporarily unavailable",
        error_code="DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        extra={"traceback": traceback.format_exc()},
        exc_info=True,
    )
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    """Register all ledger exception handlers with the FastAPI app."""
    app.add_exception_handler(TrackChainException, trackchain_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, database_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
