"""Conflict checking for proposed stays."""

import datetime as dt
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from stayhub.models import (
    ConflictError,
    InvalidRangeError,
    Property,
    ResolvedDay,
    UnavailableError,
)
from stayhub.utils.dates import intervals_overlap, nights_between

from .calendar import MAX_CALENDAR_DAYS, CalendarResolver

if TYPE_CHECKING:
    from .store import BookingStore


@dataclass
class ConflictReport:
    """Everything that stands between a proposed stay and a booking."""

    property_id: str
    check_in: dt.date
    check_out: dt.date
    nights: int
    nights_violation: str | None = None
    unavailable_dates: list[dt.date] = field(default_factory=list)
    overlapping_booking_ids: list[str] = field(default_factory=list)
    days: list[ResolvedDay] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.nights_violation or self.unavailable_dates or self.overlapping_booking_ids)

    def raise_for_conflict(self) -> None:
        """Raise the most fundamental problem with the stay, if any.

        Raises:
            InvalidRangeError: Stay length is outside the property's bounds
            UnavailableError: A night is blocked by the host
            ConflictError: The stay overlaps an active booking
        """
        if self.nights_violation:
            raise InvalidRangeError(
                details={
                    "property_id": self.property_id,
                    "nights": str(self.nights),
                    "reason": self.nights_violation,
                }
            )
        if self.unavailable_dates:
            raise UnavailableError(
                details={
                    "property_id": self.property_id,
                    "unavailable_dates": ",".join(d.isoformat() for d in self.unavailable_dates),
                }
            )
        if self.overlapping_booking_ids:
            raise ConflictError(
                details={
                    "property_id": self.property_id,
                    "check_in": self.check_in.isoformat(),
                    "check_out": self.check_out.isoformat(),
                }
            )


def nights_violation(prop: Property, nights: int) -> str | None:
    """Describe why a stay length is not bookable, or None if it is."""
    if nights < 1:
        return "check-out must be after check-in"
    if nights < prop.min_nights:
        return f"minimum stay is {prop.min_nights} nights"
    if nights > prop.max_nights:
        return f"maximum stay is {prop.max_nights} nights"
    return None


class ConflictChecker:
    """Decides whether [check_in, check_out) can be booked for a property.

    Reads only; safe to call repeatedly and concurrently.
    """

    def __init__(self, store: "BookingStore", calendar: CalendarResolver) -> None:
        """Initialize the checker.

        Args:
            store: Booking store to read active bookings from
            calendar: Resolver for per-night availability
        """
        self.store = store
        self.calendar = calendar

    def check_conflict(
        self,
        property_id: str,
        check_in: dt.date,
        check_out: dt.date,
        exclude_booking_id: str | None = None,
    ) -> bool:
        """Whether the stay cannot be booked.

        Args:
            property_id: Property to check
            check_in: Check-in date
            check_out: Check-out date (exclusive)
            exclude_booking_id: Booking to ignore, when re-validating it

        Returns:
            True if the stay overlaps an active booking, touches a blocked
            night or breaks the property's stay-length rules

        Raises:
            NotFoundError: If the property does not exist
        """
        prop = self.calendar.get_property(property_id)
        return self.evaluate(prop, check_in, check_out, exclude_booking_id).has_conflict

    def evaluate(
        self,
        prop: Property,
        check_in: dt.date,
        check_out: dt.date,
        exclude_booking_id: str | None = None,
    ) -> ConflictReport:
        """Build a full conflict report for an already-fetched property."""
        nights = nights_between(check_in, check_out)
        report = ConflictReport(
            property_id=prop.property_id,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            nights_violation=nights_violation(prop, nights),
        )
        if nights < 1 or nights > MAX_CALENDAR_DAYS:
            return report

        report.days = self.calendar.resolve_for(prop, check_in, check_out)
        report.unavailable_dates = [day.date for day in report.days if not day.is_available]

        for booking in self.store.get_active_bookings(prop.property_id):
            if booking.booking_id == exclude_booking_id:
                continue
            if intervals_overlap(check_in, check_out, booking.check_in_date, booking.check_out_date):
                report.overlapping_booking_ids.append(booking.booking_id)
        return report
