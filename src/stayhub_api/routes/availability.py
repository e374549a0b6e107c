"""Availability endpoints for property calendars.

Provides REST endpoints for:
- Reading a property's resolved calendar (public)
- Setting and clearing host overrides (host only)
- Quoting the price of a stay (public)
- Suggesting nearby alternative dates (public)

All dates are in YYYY-MM-DD format. Amounts are decimal strings in the
property's currency. Routes are plain functions so that engine calls,
which may wait on a property lock, run in the worker threadpool.
"""

import datetime as dt
import uuid

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_200_OK

from stayhub.models import (
    AvailabilityCalendar,
    AvailabilityClear,
    AvailabilityDay,
    AvailabilityQuery,
    AvailabilityUpdate,
)
from stayhub.services import (
    AvailabilityService,
    ConflictChecker,
    PricingCalculator,
)
from stayhub_api.dependencies import (
    get_actor_id,
    get_availability_service,
    get_conflict_checker,
    get_pricing_calculator,
)
from stayhub_api.models.availability import (
    AlternativeDatesResponse,
    AvailabilitySetRequest,
    QuoteResponse,
)
from stayhub_api.models.common import SuccessMessage, build_input

router = APIRouter(tags=["availability"])


@router.get(
    "/properties/{property_id}/availability",
    summary="Get property calendar",
    description="""
Get the resolved calendar of a property for [startDate, endDate).

Each day carries its effective price and whether it can be booked.
Days held by an active booking are reported as booked.

**Notes:**
- endDate is exclusive
- At most 366 days per request
""",
    response_description="Calendar with one entry per day",
    response_model=AvailabilityCalendar,
    responses={
        200: {"description": "Calendar resolved"},
        400: {"description": "startDate is not before endDate, or range too long"},
        404: {"description": "Property not found"},
    },
)
def get_availability(
    property_id: uuid.UUID,
    start_date: dt.date = Query(
        ...,
        alias="startDate",
        description="First day (YYYY-MM-DD)",
        examples=["2026-03-01"],
    ),
    end_date: dt.date = Query(
        ...,
        alias="endDate",
        description="Day after the last day (YYYY-MM-DD)",
        examples=["2026-04-01"],
    ),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityCalendar:
    """Get availability calendar for a property."""
    query = build_input(
        AvailabilityQuery,
        property_id=str(property_id),
        start_date=start_date,
        end_date=end_date,
    )
    return service.get_availability(query)


@router.put(
    "/properties/{property_id}/availability",
    summary="Set calendar overrides",
    description="""
Block, unblock or re-price specific days of a property.

**Host only** (x-user-sub must be the property's host).

Each listed day overwrites any earlier setting for that day.
""",
    response_description="Stored day settings",
    response_model=list[AvailabilityDay],
    responses={
        200: {"description": "Days stored"},
        401: {"description": "Authentication required"},
        403: {"description": "Caller is not the host"},
        404: {"description": "Property not found"},
    },
)
def set_availability(
    property_id: uuid.UUID,
    body: AvailabilitySetRequest,
    actor_id: str = Depends(get_actor_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> list[AvailabilityDay]:
    """Set host overrides for a property's days."""
    update = build_input(AvailabilityUpdate, property_id=str(property_id), dates=body.dates)
    return service.set_availability(actor_id, update)


@router.delete(
    "/properties/{property_id}/availability",
    summary="Clear calendar overrides",
    description="""
Remove host settings so the listed days fall back to the property defaults.

**Host only.**
""",
    response_model=SuccessMessage,
    status_code=HTTP_200_OK,
    responses={
        401: {"description": "Authentication required"},
        403: {"description": "Caller is not the host"},
        404: {"description": "Property not found"},
    },
)
def clear_availability(
    property_id: uuid.UUID,
    body: AvailabilityClear,
    actor_id: str = Depends(get_actor_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> SuccessMessage:
    """Clear host overrides for a property's days."""
    service.clear_availability(actor_id, str(property_id), body.dates)
    return SuccessMessage(message=f"Cleared {len(body.dates)} day(s)")


@router.get(
    "/properties/{property_id}/availability/alternatives",
    summary="Suggest alternative dates",
    description="""
Find bookable stays of the same length close to the requested dates.

Closest alternatives come first; dates before today are never suggested.
""",
    response_model=AlternativeDatesResponse,
    responses={
        400: {"description": "checkOutDate is not after checkInDate"},
        404: {"description": "Property not found"},
    },
)
def get_alternative_dates(
    property_id: uuid.UUID,
    check_in_date: dt.date = Query(..., alias="checkInDate", examples=["2026-03-01"]),
    check_out_date: dt.date = Query(..., alias="checkOutDate", examples=["2026-03-03"]),
    search_window_days: int = Query(default=14, alias="searchWindowDays", ge=1, le=60),
    max_suggestions: int = Query(default=3, alias="maxSuggestions", ge=1, le=10),
    service: AvailabilityService = Depends(get_availability_service),
) -> AlternativeDatesResponse:
    """Suggest alternative dates for a stay."""
    alternatives = service.suggest_alternative_dates(
        str(property_id),
        check_in_date,
        check_out_date,
        search_window_days=search_window_days,
        max_suggestions=max_suggestions,
    )
    return AlternativeDatesResponse(
        property_id=str(property_id),
        requested_check_in=check_in_date,
        requested_check_out=check_out_date,
        alternatives=alternatives,
    )


@router.get(
    "/properties/{property_id}/quote",
    summary="Quote a stay",
    description="""
Price a stay and report whether it can be booked right now.

Fails when a night is blocked by the host; a stay that overlaps a booking
or breaks the minimum/maximum stay is priced but marked not bookable.
""",
    response_model=QuoteResponse,
    responses={
        400: {"description": "checkOutDate is not after checkInDate"},
        404: {"description": "Property not found"},
        409: {"description": "A night in the range is blocked"},
    },
)
def get_quote(
    property_id: uuid.UUID,
    check_in_date: dt.date = Query(..., alias="checkInDate", examples=["2026-03-01"]),
    check_out_date: dt.date = Query(..., alias="checkOutDate", examples=["2026-03-03"]),
    pricing: PricingCalculator = Depends(get_pricing_calculator),
    conflicts: ConflictChecker = Depends(get_conflict_checker),
) -> QuoteResponse:
    """Quote the price of a stay."""
    breakdown = pricing.compute_price(str(property_id), check_in_date, check_out_date)
    has_conflict = conflicts.check_conflict(str(property_id), check_in_date, check_out_date)
    return QuoteResponse(
        property_id=str(property_id),
        check_in_date=check_in_date,
        check_out_date=check_out_date,
        is_bookable=not has_conflict,
        pricing=breakdown,
    )
