"""Unit tests for calendar resolution."""

import datetime as dt
from decimal import Decimal

import pytest

from stayhub.models import AvailabilityDay, InvalidRangeError, NotFoundError, Property
from stayhub.services import MAX_CALENDAR_DAYS, CalendarResolver, InMemoryBookingStore


def override(prop: Property, day: str, **fields: object) -> AvailabilityDay:
    return AvailabilityDay(property_id=prop.property_id, date=dt.date.fromisoformat(day), **fields)


class TestResolve:
    """Tests for CalendarResolver.resolve."""

    def test_days_default_to_property_price(
        self, calendar: CalendarResolver, sample_property: Property
    ) -> None:
        days = calendar.resolve(sample_property.property_id, dt.date(2026, 3, 1), dt.date(2026, 3, 4))

        assert [d.date for d in days] == [
            dt.date(2026, 3, 1),
            dt.date(2026, 3, 2),
            dt.date(2026, 3, 3),
        ]
        assert all(d.is_available for d in days)
        assert all(d.price == Decimal("100.00") for d in days)
        assert not any(d.is_override for d in days)

    def test_override_wins_for_single_day(
        self,
        calendar: CalendarResolver,
        store: InMemoryBookingStore,
        sample_property: Property,
    ) -> None:
        """Resolving [d, d+1) returns the explicit override for d."""
        store.put_availability_days(
            sample_property.property_id,
            [override(sample_property, "2026-03-02", is_available=False, note="Painting")],
        )

        (day,) = calendar.resolve(sample_property.property_id, dt.date(2026, 3, 2), dt.date(2026, 3, 3))

        assert day.is_available is False
        assert day.is_override is True
        assert day.note == "Painting"
        assert day.price == Decimal("100.00")

    def test_custom_price_replaces_default(
        self,
        calendar: CalendarResolver,
        store: InMemoryBookingStore,
        sample_property: Property,
    ) -> None:
        store.put_availability_days(
            sample_property.property_id,
            [override(sample_property, "2026-03-02", is_available=True, custom_price=Decimal("150"))],
        )

        days = calendar.resolve(sample_property.property_id, dt.date(2026, 3, 1), dt.date(2026, 3, 3))

        assert [d.price for d in days] == [Decimal("100.00"), Decimal("150")]

    def test_override_outside_range_is_ignored(
        self,
        calendar: CalendarResolver,
        store: InMemoryBookingStore,
        sample_property: Property,
    ) -> None:
        """The end date is exclusive."""
        store.put_availability_days(
            sample_property.property_id,
            [override(sample_property, "2026-03-03", is_available=False)],
        )

        days = calendar.resolve(sample_property.property_id, dt.date(2026, 3, 1), dt.date(2026, 3, 3))

        assert all(d.is_available for d in days)

    @pytest.mark.parametrize("end", [dt.date(2026, 3, 1), dt.date(2026, 2, 27)])
    def test_empty_or_reversed_range_is_invalid(
        self, calendar: CalendarResolver, sample_property: Property, end: dt.date
    ) -> None:
        with pytest.raises(InvalidRangeError):
            calendar.resolve(sample_property.property_id, dt.date(2026, 3, 1), end)

    def test_range_longer_than_limit_is_invalid(
        self, calendar: CalendarResolver, sample_property: Property
    ) -> None:
        start = dt.date(2026, 1, 1)
        end = start + dt.timedelta(days=MAX_CALENDAR_DAYS + 1)
        with pytest.raises(InvalidRangeError):
            calendar.resolve(sample_property.property_id, start, end)

    def test_missing_property(self, calendar: CalendarResolver) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            calendar.resolve("missing", dt.date(2026, 3, 1), dt.date(2026, 3, 2))
        assert exc_info.value.details == {"property_id": "missing"}

    def test_repeated_resolution_is_identical(
        self, calendar: CalendarResolver, sample_property: Property
    ) -> None:
        first = calendar.resolve(sample_property.property_id, dt.date(2026, 3, 1), dt.date(2026, 4, 1))
        second = calendar.resolve(sample_property.property_id, dt.date(2026, 3, 1), dt.date(2026, 4, 1))
        assert first == second
