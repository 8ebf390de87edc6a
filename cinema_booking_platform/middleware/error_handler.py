"""
Error handling middleware: renders platform exceptions as structured JSON
with a matching HTTP status.
"""

import logging
import traceback
from uuid import uuid4

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as SQLTimeoutError
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.clock import utcnow
from ..utils.exceptions import (
    CinemaBookingError,
    ErrorCode,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_PROMOTION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.PAYMENT_AMOUNT_MISMATCH: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.SEAT_NOT_AVAILABLE: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_BOOKING_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.SEAT_HOLD_EXPIRED: status.HTTP_410_GONE,
}


def error_response(exc: CinemaBookingError, error_id: str) -> JSONResponse:
    """Build the JSON response for a platform exception."""
    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=STATUS_MAP.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={
            "error": exc.to_dict(),
            "error_id": error_id,
            "timestamp": utcnow().isoformat(),
        },
        headers=headers,
    )


def validation_error_from(exc: PydanticValidationError | RequestValidationError) -> ValidationError:
    field_errors = {}
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors.setdefault(field_path, []).append(error["msg"])
    return ValidationError("Request validation failed", field_errors=field_errors)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """FastAPI exception handler giving request-body errors the common error shape."""
    return error_response(validation_error_from(exc), str(uuid4()))


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for error handling and response formatting."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        error_id = str(uuid4())
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc, error_id)

    def _handle_exception(self, request: Request, exc: Exception, error_id: str) -> JSONResponse:
        self._log_error(request, exc, error_id)

        if isinstance(exc, CinemaBookingError):
            return error_response(exc, error_id)
        if isinstance(exc, PydanticValidationError):
            return error_response(validation_error_from(exc), error_id)
        if isinstance(exc, IntegrityError):
            conflict = ValidationError(
                "Data integrity constraint violation",
                details={"constraint": str(exc.orig) if self.debug else "integrity"},
            )
            response = error_response(conflict, error_id)
            response.status_code = status.HTTP_409_CONFLICT
            return response
        if isinstance(exc, (OperationalError, SQLTimeoutError)):
            unavailable = CinemaBookingError(
                "Database service temporarily unavailable",
                details={"error_type": type(exc).__name__},
                retry_after=30,
            )
            response = error_response(unavailable, error_id)
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return response

        unexpected = CinemaBookingError(
            "An unexpected error occurred",
            error_code=ErrorCode.INTERNAL_ERROR,
            details={"error_type": type(exc).__name__, "exception": str(exc)} if self.debug else None,
        )
        return error_response(unexpected, error_id)

    def _log_error(self, request: Request, exc: Exception, error_id: str) -> None:
        context = {
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
        }

        if isinstance(exc, (ValidationError, NotFoundError)):
            logger.warning(f"Client error [{error_id}]: {exc.message}", extra={**context, "error_code": exc.error_code.value})
        elif isinstance(exc, CinemaBookingError):
            logger.info(f"Business error [{error_id}]: {exc.message}", extra={**context, "error_code": exc.error_code.value})
        else:
            logger.error(
                f"Unexpected error [{error_id}]: {exc}",
                extra={**context, "error_type": type(exc).__name__, "traceback": traceback.format_exc()},
            )
