"""Availability models: host overrides, resolved calendar days and requests."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .common import CamelModel, UuidStr


class AvailabilityDay(BaseModel):
    """Explicit host setting for one calendar day of a property.

    Days without a record are available at the property's default price.
    """

    model_config = ConfigDict(strict=False)

    property_id: str
    date: dt.date
    is_available: bool
    custom_price: Optional[Decimal] = Field(default=None, gt=0)
    note: Optional[str] = Field(default=None, max_length=255)
    updated_at: Optional[dt.datetime] = None


class ResolvedDay(BaseModel):
    """Effective availability and price of one night."""

    model_config = ConfigDict(strict=False)

    date: dt.date
    is_available: bool
    price: Decimal
    is_override: bool = False
    note: Optional[str] = None


class CalendarDay(ResolvedDay):
    """Resolved day as shown to guests, including existing bookings."""

    is_booked: bool = False


class AvailabilityCalendar(BaseModel):
    """Per-day calendar for a property over a date range."""

    model_config = ConfigDict(strict=False)

    property_id: str
    start_date: dt.date
    end_date: dt.date
    currency: str
    min_nights: int
    max_nights: int
    days: list[CalendarDay]
    available_nights: int = Field(ge=0)
    blocked_nights: int = Field(ge=0)
    booked_nights: int = Field(ge=0)


class AlternativeDateRange(BaseModel):
    """Nearby stay of the same length that can be booked."""

    model_config = ConfigDict(strict=False)

    check_in: dt.date
    check_out: dt.date
    nights: int = Field(ge=1)
    offset_days: int = Field(description="Days shifted from original dates (negative=earlier)")
    direction: str = Field(description="'earlier' or 'later'")


class AvailabilityQuery(CamelModel):
    """Validated input of the get-availability operation."""

    property_id: UuidStr
    start_date: dt.date
    end_date: dt.date


class AvailabilityDateInput(CamelModel):
    """One day of a set-availability request."""

    date: dt.date
    is_available: bool
    custom_price: Optional[Decimal] = Field(default=None, gt=0)
    note: Optional[str] = Field(default=None, max_length=255)


class AvailabilityUpdate(CamelModel):
    """Validated input of the set-availability operation."""

    property_id: UuidStr
    dates: list[AvailabilityDateInput] = Field(min_length=1, max_length=365)

    @model_validator(mode="after")
    def validate_unique_dates(self) -> "AvailabilityUpdate":
        """A day may appear only once per request."""
        seen = {d.date for d in self.dates}
        if len(seen) != len(self.dates):
            raise ValueError("dates must not contain the same day twice")
        return self


class AvailabilityClear(CamelModel):
    """Days whose overrides the host wants removed."""

    dates: list[dt.date] = Field(min_length=1, max_length=365)

    @field_validator("dates")
    @classmethod
    def dedupe(cls, v: list[dt.date]) -> list[dt.date]:
        return sorted(set(v))
