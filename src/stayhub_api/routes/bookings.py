"""Booking endpoints.

Provides REST endpoints for:
- Creating bookings (guest)
- Listing the caller's bookings and reading one booking (guest or host)
- Cancelling (guest or host), confirming and completing (host)
- Moving a booking to new dates (guest)

Every endpoint requires the x-user-sub header set by API Gateway after it
has validated the caller's JWT.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from stayhub.models import (
    Booking,
    BookingCreate,
    BookingDatesChange,
    BookingPage,
    BookingSearch,
    BookingStatus,
)
from stayhub.services import BookingService
from stayhub_api.dependencies import get_actor_id, get_booking_service
from stayhub_api.models.common import build_input

router = APIRouter(tags=["bookings"])


@router.post(
    "/bookings",
    summary="Create booking",
    description="""
Reserve a property for [checkInDate, checkOutDate).

Validates the party size, stay length, blocked days and overlapping
bookings, prices the stay and commits it atomically.

**Notes:**
- Instant-book properties return a `confirmed` booking, others `pending`
- Guest ID is derived from x-user-sub
""",
    response_description="Created booking with price breakdown",
    response_model=Booking,
    status_code=HTTP_201_CREATED,
    responses={
        201: {"description": "Booking created"},
        400: {"description": "Invalid stay length or too many guests"},
        401: {"description": "Authentication required"},
        404: {"description": "Property not found"},
        409: {"description": "Dates blocked or already booked"},
        503: {"description": "Store temporarily unavailable, retry"},
    },
)
def create_booking(
    body: BookingCreate,
    actor_id: str = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Create a new booking for the caller."""
    return service.reserve(actor_id, body)


@router.get(
    "/bookings",
    summary="List my bookings",
    description="""
List the caller's bookings as a guest, sorted by check-in date.

**Notes:**
- `upcoming=true` keeps stays that check in today or later
- `past=true` keeps stays that checked out before today
""",
    response_model=BookingPage,
    responses={401: {"description": "Authentication required"}},
)
def list_bookings(
    status: Optional[BookingStatus] = Query(default=None, description="Filter by status"),
    upcoming: Optional[bool] = Query(default=None),
    past: Optional[bool] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    actor_id: str = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
) -> BookingPage:
    """List the caller's bookings."""
    search = build_input(
        BookingSearch,
        status=status,
        upcoming=upcoming,
        past=past,
        page=page,
        limit=limit,
    )
    return service.list_bookings(actor_id, search)


@router.get(
    "/bookings/{booking_id}",
    summary="Get booking",
    response_model=Booking,
    responses={
        401: {"description": "Authentication required"},
        403: {"description": "Caller is neither the guest nor the host"},
        404: {"description": "Booking not found"},
    },
)
def get_booking(
    booking_id: uuid.UUID,
    actor_id: str = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Get a booking by ID."""
    return service.get_booking(str(booking_id), actor_id)


@router.post(
    "/bookings/{booking_id}/cancel",
    summary="Cancel booking",
    description="Cancel a pending or confirmed booking. Guest or host.",
    response_model=Booking,
    responses={
        403: {"description": "Caller is neither the guest nor the host"},
        404: {"description": "Booking not found"},
        409: {"description": "Booking already cancelled or completed"},
    },
)
def cancel_booking(
    booking_id: uuid.UUID,
    actor_id: str = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Cancel a booking."""
    return service.cancel(str(booking_id), actor_id)


@router.post(
    "/bookings/{booking_id}/confirm",
    summary="Confirm booking",
    description="Confirm a pending booking. Host only.",
    response_model=Booking,
    responses={
        403: {"description": "Caller is not the host"},
        404: {"description": "Booking not found"},
        409: {"description": "Booking is not pending"},
    },
)
def confirm_booking(
    booking_id: uuid.UUID,
    actor_id: str = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Confirm a pending booking."""
    return service.confirm(str(booking_id), actor_id)


@router.post(
    "/bookings/{booking_id}/complete",
    summary="Complete booking",
    description="Mark a confirmed stay as completed. Host only.",
    response_model=Booking,
    responses={
        403: {"description": "Caller is not the host"},
        404: {"description": "Booking not found"},
        409: {"description": "Booking is not confirmed"},
    },
)
def complete_booking(
    booking_id: uuid.UUID,
    actor_id: str = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Complete a confirmed booking."""
    return service.complete(str(booking_id), actor_id)


@router.patch(
    "/bookings/{booking_id}/dates",
    summary="Change booking dates",
    description="""
Move an active booking to new dates. Guest only.

The new dates are validated like a new booking, except that the booking's
own nights do not count as taken. The stay is re-priced.
""",
    response_model=Booking,
    responses={
        400: {"description": "Invalid stay length"},
        403: {"description": "Caller is not the guest"},
        404: {"description": "Booking not found"},
        409: {"description": "New dates unavailable, or booking no longer active"},
        503: {"description": "Store temporarily unavailable, retry"},
    },
)
def change_booking_dates(
    booking_id: uuid.UUID,
    body: BookingDatesChange,
    actor_id: str = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Reschedule a booking."""
    return service.reschedule(str(booking_id), actor_id, body)
