"""API models for availability endpoints."""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from stayhub.models import AlternativeDateRange, AvailabilityDateInput, PriceBreakdown
from stayhub.models.common import CamelModel


class AvailabilitySetRequest(CamelModel):
    """Body of PUT /properties/{property_id}/availability."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "dates": [
                        {"date": "2026-03-02", "isAvailable": False, "note": "Maintenance"},
                        {"date": "2026-03-07", "isAvailable": True, "customPrice": "140.00"},
                    ]
                }
            ]
        },
    )

    dates: list[AvailabilityDateInput] = Field(min_length=1, max_length=365)


class AlternativeDatesResponse(BaseModel):
    """Nearby bookable stays for a requested range."""

    model_config = ConfigDict(strict=True)

    property_id: str
    requested_check_in: dt.date
    requested_check_out: dt.date
    alternatives: list[AlternativeDateRange]


class QuoteResponse(BaseModel):
    """Price of a stay and whether it can be booked right now."""

    model_config = ConfigDict(strict=True)

    property_id: str
    check_in_date: dt.date
    check_out_date: dt.date
    is_bookable: bool = Field(
        ...,
        description="False when the stay overlaps a booking or breaks stay-length rules",
    )
    pricing: Optional[PriceBreakdown] = None
