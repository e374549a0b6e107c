"""FastAPI exception handlers for converting engine errors to HTTP responses.

Business-rule failures (BookingError) and store failures (StoreError) are
rendered with the same JSON structure as ErrorResponse.

The ErrorCode-to-HTTP status mapping follows REST conventions:
- 400 Bad Request: Malformed ranges, guest limits
- 403 Forbidden: Caller may not act on the booking or property
- 404 Not Found: Property or booking absent
- 409 Conflict: Dates taken or blocked, status change not allowed
- 503 Service Unavailable: Transient store failure, safe to retry

Usage:
    from stayhub_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from stayhub.models.errors import BookingError, ErrorCode, ErrorResponse, StoreError
from stayhub.utils.logging import get_logger
from stayhub_api.models.common import format_validation_errors

logger = get_logger(__name__)

# Seconds a client should wait before retrying after a store failure
RETRY_AFTER_SECONDS = 1

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_RANGE: HTTP_400_BAD_REQUEST,
    ErrorCode.UNAVAILABLE: HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: HTTP_409_CONFLICT,
    ErrorCode.FORBIDDEN: HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_STATE: HTTP_409_CONFLICT,
    ErrorCode.GUEST_LIMIT_EXCEEDED: HTTP_400_BAD_REQUEST,
    ErrorCode.STORE_UNAVAILABLE: HTTP_503_SERVICE_UNAVAILABLE,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Handle BookingError exceptions and convert to JSON response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The BookingError exception

    Returns:
        JSONResponse with error details and appropriate status code.
    """
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Handle StoreError exceptions with a retryable 503 response."""
    logger.warning("Store failure on %s %s: %s", request.method, request.url.path, exc)
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.retryable else None
    return JSONResponse(
        status_code=HTTP_503_SERVICE_UNAVAILABLE,
        content=ErrorResponse.from_code(exc.code).model_dump(mode="json"),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors with the standard error structure."""
    return JSONResponse(
        status_code=422,
        content=format_validation_errors(list(exc.errors())).model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StoreError, store_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
