"""Booking models: the booking record, its price breakdown and requests."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import CamelModel, UuidStr
from .enums import ACTIVE_BOOKING_STATUSES, BookingStatus, PaymentStatus


class GuestCounts(BaseModel):
    """Party composition for a stay."""

    model_config = ConfigDict(strict=False)

    adults: int = Field(default=1, ge=1, le=50)
    children: int = Field(default=0, ge=0, le=50)
    infants: int = Field(default=0, ge=0, le=10)
    pets: int = Field(default=0, ge=0, le=10)

    @property
    def occupancy(self) -> int:
        """Guests counted against the property's capacity.

        Infants and pets do not take a bed and are not counted.
        """
        return self.adults + self.children


class PriceBreakdown(BaseModel):
    """Deterministic price of a stay, in the property's currency."""

    model_config = ConfigDict(strict=False)

    currency: str
    nights: int = Field(ge=1)
    nightly_rates: list[Decimal]
    subtotal: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal
    taxes: Decimal
    total: Decimal


class Booking(BaseModel):
    """Reservation of a property for [check_in_date, check_out_date)."""

    model_config = ConfigDict(strict=False)

    booking_id: str
    property_id: str
    guest_id: str
    host_id: str
    check_in_date: dt.date
    check_out_date: dt.date
    guests: GuestCounts
    pricing: PriceBreakdown
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    guest_message: Optional[str] = Field(default=None, max_length=1000)
    created_at: dt.datetime
    updated_at: dt.datetime
    confirmed_at: Optional[dt.datetime] = None
    cancelled_at: Optional[dt.datetime] = None
    cancelled_by: Optional[str] = None
    completed_at: Optional[dt.datetime] = None

    @model_validator(mode="after")
    def validate_dates(self) -> "Booking":
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days

    @property
    def is_active(self) -> bool:
        """Whether the booking still holds its dates."""
        return self.status in ACTIVE_BOOKING_STATUSES


class BookingCreate(CamelModel):
    """Validated input of the reserve-booking operation.

    Guest ID is not included - it comes from the authenticated caller.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "propertyId": "5b0f6c1e-8f0a-4a53-9d57-3c1f1f0b2a11",
                    "checkInDate": "2026-03-01",
                    "checkOutDate": "2026-03-03",
                    "adults": 2,
                    "children": 1,
                    "guestMessage": "Arriving late in the evening",
                }
            ]
        },
    )

    property_id: UuidStr
    check_in_date: dt.date
    check_out_date: dt.date
    adults: int = Field(default=1, ge=1, le=50)
    children: int = Field(default=0, ge=0, le=50)
    infants: int = Field(default=0, ge=0, le=10)
    pets: int = Field(default=0, ge=0, le=10)
    guest_message: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def validate_dates(self) -> "BookingCreate":
        if self.check_out_date <= self.check_in_date:
            raise ValueError("Check-out date must be after check-in date")
        return self

    @property
    def guests(self) -> GuestCounts:
        return GuestCounts(
            adults=self.adults,
            children=self.children,
            infants=self.infants,
            pets=self.pets,
        )


class BookingDatesChange(CamelModel):
    """New dates for an existing booking."""

    check_in_date: dt.date
    check_out_date: dt.date

    @model_validator(mode="after")
    def validate_dates(self) -> "BookingDatesChange":
        if self.check_out_date <= self.check_in_date:
            raise ValueError("Check-out date must be after check-in date")
        return self


class BookingSearch(CamelModel):
    """Filters for listing a guest's bookings."""

    status: Optional[BookingStatus] = None
    upcoming: Optional[bool] = None
    past: Optional[bool] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class BookingPage(BaseModel):
    """One page of bookings."""

    model_config = ConfigDict(strict=False)

    data: list[Booking]
    page: int
    limit: int
    total: int
    total_pages: int
