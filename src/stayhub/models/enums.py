"""Enumeration types for StayHub data models."""

from enum import Enum

from .errors import InvalidStateError


class BookingStatus(str, Enum):
    """Status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    """Payment status for a booking."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class PropertyType(str, Enum):
    """Kind of listing."""

    HOUSE = "house"
    APARTMENT = "apartment"
    GUESTHOUSE = "guesthouse"
    HOTEL = "hotel"
    CABIN = "cabin"
    VILLA = "villa"
    COTTAGE = "cottage"
    CONDO = "condo"


class RoomType(str, Enum):
    """What part of the property the guest gets."""

    ENTIRE_PLACE = "entire_place"
    PRIVATE_ROOM = "private_room"
    SHARED_ROOM = "shared_room"


# Bookings that hold their dates
ACTIVE_BOOKING_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Whether the booking state machine allows ``current -> target``."""
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise InvalidStateError unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidStateError(details={"current_status": current.value, "target_status": target.value})
