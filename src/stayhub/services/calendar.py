"""Calendar resolution: effective availability and price per night."""

import datetime as dt
from typing import TYPE_CHECKING

from stayhub.models import (
    AvailabilityDay,
    InvalidRangeError,
    NotFoundError,
    Property,
    ResolvedDay,
)
from stayhub.utils.dates import date_range, nights_between

if TYPE_CHECKING:
    from .store import BookingStore

# Longest window a single call may resolve
MAX_CALENDAR_DAYS = 366


def resolve_day(prop: Property, date: dt.date, override: AvailabilityDay | None) -> ResolvedDay:
    """Merge a property's default price with an optional host override."""
    if override is None:
        return ResolvedDay(date=date, is_available=True, price=prop.price_per_night)
    return ResolvedDay(
        date=date,
        is_available=override.is_available,
        price=override.custom_price if override.custom_price is not None else prop.price_per_night,
        is_override=True,
        note=override.note,
    )


class CalendarResolver:
    """Resolves a property's calendar from its defaults and host overrides.

    Bookings do not affect the resolved calendar; overlap with existing
    stays is the conflict checker's concern.
    """

    def __init__(self, store: "BookingStore") -> None:
        """Initialize the resolver.

        Args:
            store: Booking store to read properties and overrides from
        """
        self.store = store

    def get_property(self, property_id: str) -> Property:
        """Fetch a property or raise NotFoundError."""
        prop = self.store.get_property(property_id)
        if prop is None:
            raise NotFoundError(details={"property_id": property_id})
        return prop

    def resolve(
        self,
        property_id: str,
        start_date: dt.date,
        end_date: dt.date,
    ) -> list[ResolvedDay]:
        """Resolve every day in [start_date, end_date).

        Args:
            property_id: Property to resolve
            start_date: First day
            end_date: Day after the last day (exclusive)

        Returns:
            One ResolvedDay per date, ascending

        Raises:
            InvalidRangeError: If start_date is not before end_date
            NotFoundError: If the property does not exist
        """
        self._validate_window(start_date, end_date)
        prop = self.get_property(property_id)
        return self.resolve_for(prop, start_date, end_date)

    def resolve_for(
        self,
        prop: Property,
        start_date: dt.date,
        end_date: dt.date,
    ) -> list[ResolvedDay]:
        """Resolve days for a property that has already been fetched."""
        self._validate_window(start_date, end_date)
        overrides = self.store.get_availability_overrides(prop.property_id, start_date, end_date)
        return [resolve_day(prop, d, overrides.get(d)) for d in date_range(start_date, end_date)]

    def _validate_window(self, start_date: dt.date, end_date: dt.date) -> None:
        days = nights_between(start_date, end_date)
        if days < 1:
            raise InvalidRangeError(
                details={"reason": "start_date must be before end_date"},
            )
        if days > MAX_CALENDAR_DAYS:
            raise InvalidRangeError(
                details={"reason": f"date range may span at most {MAX_CALENDAR_DAYS} days"},
            )
