"""Property model.

A property is read-only for the engine: hosts edit it through property
management, the engine only reads rules and prices while booking.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import PropertyType, RoomType

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


class Property(BaseModel):
    """Bookable listing with its stay rules and default prices."""

    model_config = ConfigDict(strict=False)

    property_id: str
    host_id: str
    title: str = Field(default="", max_length=255)
    property_type: PropertyType = PropertyType.APARTMENT
    room_type: RoomType = RoomType.ENTIRE_PLACE
    max_guests: int = Field(default=1, ge=1, le=50)
    price_per_night: Decimal = Field(gt=0, le=100000)
    cleaning_fee: Decimal = Field(default=Decimal("0"), ge=0, le=10000)
    service_fee_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    min_nights: int = Field(default=1, ge=1, le=365)
    max_nights: int = Field(default=365, ge=1, le=365)
    check_in_time: str = Field(default="15:00", pattern=TIME_PATTERN)
    check_out_time: str = Field(default="11:00", pattern=TIME_PATTERN)
    is_instant_book: bool = False
    is_published: bool = True
    calendar_version: int = Field(
        default=0,
        ge=0,
        description="Bumped by the store on every write that moves an active stay",
    )

    @model_validator(mode="after")
    def validate_night_bounds(self) -> "Property":
        """Reject a maximum stay shorter than the minimum stay."""
        if self.max_nights < self.min_nights:
            raise ValueError("max_nights must be greater than or equal to min_nights")
        return self
