"""In-process BookingStore for local development and single-node deployments."""

import datetime as dt
import threading

from stayhub.models import (
    ACTIVE_BOOKING_STATUSES,
    AvailabilityDay,
    Booking,
    BookingStatus,
    Property,
)

from .store import apply_status


class InMemoryBookingStore:
    """BookingStore kept in dictionaries behind a single lock.

    Offers the same conditional-write semantics as the DynamoDB store:
    version-checked booking writes return None when the property's
    calendar moved, and status updates return None when the booking's
    status moved.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._properties: dict[str, Property] = {}
        self._bookings: dict[str, Booking] = {}
        self._availability: dict[str, dict[dt.date, AvailabilityDay]] = {}

    def _bump_version(self, property_id: str) -> None:
        prop = self._properties[property_id]
        self._properties[property_id] = prop.model_copy(
            update={"calendar_version": prop.calendar_version + 1}
        )

    def _version_matches(self, property_id: str, expected_version: int) -> bool:
        prop = self._properties.get(property_id)
        return prop is not None and prop.calendar_version == expected_version

    def get_property(self, property_id: str) -> Property | None:
        with self._lock:
            return self._properties.get(property_id)

    def put_property(self, prop: Property) -> Property:
        """Store a property's listing fields.

        The calendar version is owned by the store: a new property starts
        at 0 and an existing one keeps its current version.
        """
        with self._lock:
            existing = self._properties.get(prop.property_id)
            version = existing.calendar_version if existing is not None else 0
            stored = prop.model_copy(update={"calendar_version": version})
            self._properties[prop.property_id] = stored
        return stored

    def get_active_bookings(self, property_id: str) -> list[Booking]:
        with self._lock:
            bookings = [
                b
                for b in self._bookings.values()
                if b.property_id == property_id and b.status in ACTIVE_BOOKING_STATUSES
            ]
        return sorted(bookings, key=lambda b: (b.check_in_date, b.booking_id))

    def get_availability_overrides(
        self,
        property_id: str,
        start: dt.date,
        end: dt.date,
    ) -> dict[dt.date, AvailabilityDay]:
        with self._lock:
            days = self._availability.get(property_id, {})
            return {d: day for d, day in days.items() if start <= d < end}

    def put_availability_days(self, property_id: str, days: list[AvailabilityDay]) -> None:
        with self._lock:
            calendar = self._availability.setdefault(property_id, {})
            for day in days:
                calendar[day.date] = day
            if property_id in self._properties:
                self._bump_version(property_id)

    def delete_availability_days(self, property_id: str, dates: list[dt.date]) -> None:
        with self._lock:
            calendar = self._availability.get(property_id, {})
            for d in dates:
                calendar.pop(d, None)
            if property_id in self._properties:
                self._bump_version(property_id)

    def insert_booking(self, booking: Booking, expected_version: int) -> Booking | None:
        with self._lock:
            if not self._version_matches(booking.property_id, expected_version):
                return None
            if booking.booking_id in self._bookings:
                return None
            self._bookings[booking.booking_id] = booking
            self._bump_version(booking.property_id)
        return booking

    def update_booking_dates(self, booking: Booking, expected_version: int) -> Booking | None:
        with self._lock:
            if not self._version_matches(booking.property_id, expected_version):
                return None
            current = self._bookings.get(booking.booking_id)
            if current is None or current.status not in ACTIVE_BOOKING_STATUSES:
                return None
            updated = current.model_copy(
                update={
                    "check_in_date": booking.check_in_date,
                    "check_out_date": booking.check_out_date,
                    "pricing": booking.pricing,
                    "updated_at": booking.updated_at,
                }
            )
            self._bookings[booking.booking_id] = updated
            self._bump_version(booking.property_id)
        return updated

    def update_booking_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
        timestamp: dt.datetime,
        actor_id: str | None = None,
    ) -> Booking | None:
        with self._lock:
            current = self._bookings.get(booking.booking_id)
            if current is None or current.status != booking.status:
                return None
            updated = apply_status(current, new_status, timestamp, actor_id)
            self._bookings[booking.booking_id] = updated
        return updated

    def get_booking(self, booking_id: str) -> Booking | None:
        with self._lock:
            return self._bookings.get(booking_id)

    def list_guest_bookings(self, guest_id: str) -> list[Booking]:
        with self._lock:
            bookings = [b for b in self._bookings.values() if b.guest_id == guest_id]
        return sorted(bookings, key=lambda b: b.check_in_date)
