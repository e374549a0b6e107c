"""Booking engine services."""

from stayhub.config import Settings, StoreBackend, get_settings

from .availability import AvailabilityService
from .booking import BookingService
from .calendar import MAX_CALENDAR_DAYS, CalendarResolver
from .conflicts import ConflictChecker, ConflictReport
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .locks import PropertyLockRegistry
from .memory_store import InMemoryBookingStore
from .pricing import (
    NoTax,
    PercentageTax,
    PerNightTax,
    PricingCalculator,
    TaxContext,
    TaxPolicy,
    build_tax_policy,
)
from .store import TABLE_DEFINITIONS, BookingStore, DynamoBookingStore, ensure_tables


def create_booking_store(settings: Settings | None = None) -> BookingStore:
    """Create the store selected by STORE_BACKEND."""
    settings = settings or get_settings()
    if settings.store_backend == StoreBackend.MEMORY:
        return InMemoryBookingStore()
    return DynamoBookingStore(get_dynamodb_service())


__all__ = [
    "MAX_CALENDAR_DAYS",
    "TABLE_DEFINITIONS",
    "AvailabilityService",
    "BookingService",
    "BookingStore",
    "CalendarResolver",
    "ConflictChecker",
    "ConflictReport",
    "DynamoBookingStore",
    "DynamoDBService",
    "InMemoryBookingStore",
    "NoTax",
    "PerNightTax",
    "PercentageTax",
    "PricingCalculator",
    "PropertyLockRegistry",
    "TaxContext",
    "TaxPolicy",
    "build_tax_policy",
    "create_booking_store",
    "ensure_tables",
    "get_dynamodb_service",
    "reset_dynamodb_service",
]
