"""Availability service for calendar reads and host overrides."""

import datetime as dt
from collections.abc import Callable
from typing import TYPE_CHECKING

from stayhub.models import (
    AlternativeDateRange,
    AvailabilityCalendar,
    AvailabilityDay,
    AvailabilityQuery,
    AvailabilityUpdate,
    CalendarDay,
    ForbiddenError,
    InvalidRangeError,
    Property,
)
from stayhub.utils.dates import date_range, intervals_overlap, nights_between, utc_now
from stayhub.utils.logging import get_logger, log_booking_operation

from .locks import PropertyLockRegistry

if TYPE_CHECKING:
    from .calendar import CalendarResolver
    from .conflicts import ConflictChecker
    from .store import BookingStore

logger = get_logger(__name__)


class AvailabilityService:
    """Service for availability checking and management."""

    def __init__(
        self,
        store: "BookingStore",
        calendar: "CalendarResolver",
        conflicts: "ConflictChecker",
        locks: PropertyLockRegistry | None = None,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        """Initialize availability service.

        Args:
            store: Booking store
            calendar: Calendar resolver
            conflicts: Conflict checker
            locks: Per-property lock registry shared with the booking service
            clock: Source of the current UTC time
        """
        self.store = store
        self.calendar = calendar
        self.conflicts = conflicts
        self.locks = locks or PropertyLockRegistry()
        self.clock = clock

    def get_availability(self, query: AvailabilityQuery) -> AvailabilityCalendar:
        """Get the guest-facing calendar of a property.

        Nights held by an active booking are reported unavailable and
        marked as booked.

        Args:
            query: Property and [start_date, end_date) window

        Returns:
            AvailabilityCalendar with one day per night and summary counts
        """
        days = self.calendar.resolve(query.property_id, query.start_date, query.end_date)
        prop = self.calendar.get_property(query.property_id)

        booked: set[dt.date] = set()
        for booking in self.store.get_active_bookings(query.property_id):
            if not intervals_overlap(
                query.start_date, query.end_date, booking.check_in_date, booking.check_out_date
            ):
                continue
            booked.update(date_range(booking.check_in_date, booking.check_out_date))

        calendar_days = []
        for day in days:
            is_booked = day.date in booked
            calendar_days.append(
                CalendarDay(
                    date=day.date,
                    is_available=day.is_available and not is_booked,
                    price=day.price,
                    is_override=day.is_override,
                    note=day.note,
                    is_booked=is_booked,
                )
            )

        return AvailabilityCalendar(
            property_id=prop.property_id,
            start_date=query.start_date,
            end_date=query.end_date,
            currency=prop.currency,
            min_nights=prop.min_nights,
            max_nights=prop.max_nights,
            days=calendar_days,
            available_nights=sum(1 for d in calendar_days if d.is_available),
            blocked_nights=sum(1 for d in calendar_days if not d.is_booked and not d.is_available),
            booked_nights=sum(1 for d in calendar_days if d.is_booked),
        )

    def set_availability(self, actor_id: str, update: AvailabilityUpdate) -> list[AvailabilityDay]:
        """Overwrite the host's settings for the listed days.

        Args:
            actor_id: Caller, who must be the property's host
            update: Days to set

        Returns:
            The stored day settings, ascending by date

        Raises:
            NotFoundError: Property does not exist
            ForbiddenError: Caller is not the property's host
        """
        prop = self._get_owned_property(update.property_id, actor_id, "set_availability")
        now = self.clock()
        days = sorted(
            (
                AvailabilityDay(
                    property_id=prop.property_id,
                    date=entry.date,
                    is_available=entry.is_available,
                    custom_price=entry.custom_price,
                    note=entry.note,
                    updated_at=now,
                )
                for entry in update.dates
            ),
            key=lambda d: d.date,
        )

        with self.locks.hold(prop.property_id):
            self.store.put_availability_days(prop.property_id, days)

        log_booking_operation(
            logger,
            "set_availability",
            property_id=prop.property_id,
            actor_id=actor_id,
            days=len(days),
            blocked=sum(1 for d in days if not d.is_available),
        )
        return days

    def clear_availability(self, actor_id: str, property_id: str, dates: list[dt.date]) -> None:
        """Remove host settings so the days fall back to property defaults.

        Raises:
            NotFoundError: Property does not exist
            ForbiddenError: Caller is not the property's host
        """
        prop = self._get_owned_property(property_id, actor_id, "clear_availability")
        with self.locks.hold(prop.property_id):
            self.store.delete_availability_days(prop.property_id, dates)

        log_booking_operation(
            logger,
            "clear_availability",
            property_id=prop.property_id,
            actor_id=actor_id,
            days=len(dates),
        )

    def suggest_alternative_dates(
        self,
        property_id: str,
        check_in: dt.date,
        check_out: dt.date,
        search_window_days: int = 14,
        max_suggestions: int = 3,
    ) -> list[AlternativeDateRange]:
        """Find bookable stays of the same length near the requested dates.

        Tries start dates one day earlier, one day later, two days earlier
        and so on, never before today.

        Args:
            property_id: Property to search
            check_in: Originally requested check-in date
            check_out: Originally requested check-out date
            search_window_days: How many days before/after to search
            max_suggestions: Maximum number of alternatives to return

        Returns:
            Alternatives ordered closest first

        Raises:
            NotFoundError: Property does not exist
            InvalidRangeError: Requested stay has no nights
        """
        nights = nights_between(check_in, check_out)
        if nights < 1:
            raise InvalidRangeError(details={"reason": "check-out must be after check-in"})
        prop = self.calendar.get_property(property_id)
        today = self.clock().date()

        suggestions: list[AlternativeDateRange] = []
        for offset in range(1, search_window_days + 1):
            for direction, signed in (("earlier", -offset), ("later", offset)):
                if len(suggestions) >= max_suggestions:
                    return suggestions
                start = check_in + dt.timedelta(days=signed)
                if start < today:
                    continue
                end = start + dt.timedelta(days=nights)
                if self.conflicts.evaluate(prop, start, end).has_conflict:
                    continue
                suggestions.append(
                    AlternativeDateRange(
                        check_in=start,
                        check_out=end,
                        nights=nights,
                        offset_days=signed,
                        direction=direction,
                    )
                )
        return suggestions

    def _get_owned_property(self, property_id: str, actor_id: str, operation: str) -> Property:
        prop = self.calendar.get_property(property_id)
        if prop.host_id != actor_id:
            log_booking_operation(
                logger,
                operation,
                property_id=property_id,
                actor_id=actor_id,
                rejected=ForbiddenError.code.value,
            )
            raise ForbiddenError(details={"property_id": property_id})
        return prop
