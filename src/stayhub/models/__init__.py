"""Pydantic models for StayHub data entities."""

from .availability import (
    AlternativeDateRange,
    AvailabilityCalendar,
    AvailabilityClear,
    AvailabilityDateInput,
    AvailabilityDay,
    AvailabilityQuery,
    AvailabilityUpdate,
    CalendarDay,
    ResolvedDay,
)
from .booking import (
    Booking,
    BookingCreate,
    BookingDatesChange,
    BookingPage,
    BookingSearch,
    GuestCounts,
    PriceBreakdown,
)
from .enums import (
    ACTIVE_BOOKING_STATUSES,
    ALLOWED_TRANSITIONS,
    BookingStatus,
    PaymentStatus,
    PropertyType,
    RoomType,
    can_transition,
    ensure_transition,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    BookingError,
    ConcurrentModificationError,
    ConflictError,
    ErrorCode,
    ErrorResponse,
    ForbiddenError,
    GuestLimitExceededError,
    InvalidRangeError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    StoreUnavailableError,
    UnavailableError,
)
from .property import Property

__all__ = [
    # Enums
    "ACTIVE_BOOKING_STATUSES",
    "ALLOWED_TRANSITIONS",
    "BookingStatus",
    "PaymentStatus",
    "PropertyType",
    "RoomType",
    "can_transition",
    "ensure_transition",
    # Property
    "Property",
    # Availability
    "AlternativeDateRange",
    "AvailabilityCalendar",
    "AvailabilityClear",
    "AvailabilityDateInput",
    "AvailabilityDay",
    "AvailabilityQuery",
    "AvailabilityUpdate",
    "CalendarDay",
    "ResolvedDay",
    # Booking
    "Booking",
    "BookingCreate",
    "BookingDatesChange",
    "BookingPage",
    "BookingSearch",
    "GuestCounts",
    "PriceBreakdown",
    # Errors
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "BookingError",
    "ConcurrentModificationError",
    "ConflictError",
    "ErrorCode",
    "ErrorResponse",
    "ForbiddenError",
    "GuestLimitExceededError",
    "InvalidRangeError",
    "InvalidStateError",
    "NotFoundError",
    "StoreError",
    "StoreUnavailableError",
    "UnavailableError",
]
