"""Standard error codes for the booking engine.

Business-rule failures are raised as ``BookingError`` subclasses and are
never retried: a conflict or a blocked date is a fact, not a fault.
Store failures are raised as ``StoreError`` subclasses so callers can tell
a timeout apart from a ``Conflict`` and retry only the former.
"""

from enum import Enum
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Error codes returned to callers."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_RANGE = "INVALID_RANGE"
    UNAVAILABLE = "UNAVAILABLE"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    INVALID_STATE = "INVALID_STATE"
    GUEST_LIMIT_EXCEEDED = "GUEST_LIMIT_EXCEEDED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NOT_FOUND: "The requested property or booking does not exist",
    ErrorCode.INVALID_RANGE: "The requested date range is not valid for this property",
    ErrorCode.UNAVAILABLE: "Some of the requested dates are blocked by the host",
    ErrorCode.CONFLICT: "The requested dates overlap an existing booking",
    ErrorCode.FORBIDDEN: "You are not allowed to perform this action",
    ErrorCode.INVALID_STATE: "The booking cannot make this status change",
    ErrorCode.GUEST_LIMIT_EXCEEDED: "Number of guests exceeds the property's capacity",
    ErrorCode.STORE_UNAVAILABLE: "The booking service is temporarily unavailable",
}

# Recovery suggestions for callers
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.NOT_FOUND: "Check the identifier and try again",
    ErrorCode.INVALID_RANGE: "Choose a check-out after check-in that meets the minimum and maximum stay",
    ErrorCode.UNAVAILABLE: "Pick different dates or ask for alternative dates",
    ErrorCode.CONFLICT: "Pick different dates or ask for alternative dates",
    ErrorCode.FORBIDDEN: "Only the guest or the host of the booking may do this",
    ErrorCode.INVALID_STATE: "Reload the booking to see its current status",
    ErrorCode.GUEST_LIMIT_EXCEEDED: "Reduce the number of adults and children",
    ErrorCode.STORE_UNAVAILABLE: "Retry the request shortly",
}


class ErrorResponse(BaseModel):
    """Standard error body returned for engine failures."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Exception raised by engine operations for business-rule failures."""

    code: ClassVar[ErrorCode]

    def __init__(
        self,
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, str]] = None,
    ):
        if code is not None:
            self.code = code
        self.message = ERROR_MESSAGES[self.code]
        self.recovery = ERROR_RECOVERY[self.code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)


class NotFoundError(BookingError):
    code = ErrorCode.NOT_FOUND


class InvalidRangeError(BookingError):
    code = ErrorCode.INVALID_RANGE


class UnavailableError(BookingError):
    code = ErrorCode.UNAVAILABLE


class ConflictError(BookingError):
    code = ErrorCode.CONFLICT


class ForbiddenError(BookingError):
    code = ErrorCode.FORBIDDEN


class InvalidStateError(BookingError):
    code = ErrorCode.INVALID_STATE


class GuestLimitExceededError(BookingError):
    code = ErrorCode.GUEST_LIMIT_EXCEEDED


class StoreError(Exception):
    """Base class for persistence failures."""

    retryable: ClassVar[bool] = False
    code: ClassVar[ErrorCode] = ErrorCode.STORE_UNAVAILABLE


class StoreUnavailableError(StoreError):
    """Transient store failure (throttling, timeout, service error)."""

    retryable = True


class ConcurrentModificationError(StoreError):
    """Another writer changed the property calendar between read and commit."""

    retryable = True
