"""Pytest configuration and fixtures for the StayHub booking engine tests.

This module provides reusable fixtures for testing:
- Engine services wired to an in-memory store with a fixed clock
- DynamoDB mocking with moto
- Sample property and booking request data
"""

import datetime as dt
import os
from collections.abc import Generator
from decimal import Decimal
from typing import Any

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-stayhub")
os.environ.setdefault("STORE_BACKEND", "memory")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from stayhub.config import get_settings  # noqa: E402
from stayhub.models import BookingCreate, Property  # noqa: E402
from stayhub.services import (  # noqa: E402
    AvailabilityService,
    BookingService,
    CalendarResolver,
    ConflictChecker,
    DynamoBookingStore,
    DynamoDBService,
    InMemoryBookingStore,
    PricingCalculator,
    PropertyLockRegistry,
    ensure_tables,
    reset_dynamodb_service,
)

# "Now" for every engine fixture: stays in March 2026 are in the future
FIXED_NOW = dt.datetime(2026, 2, 1, 12, 0, tzinfo=dt.UTC)

HOST_ID = "host-1"
GUEST_ID = "guest-1"
OTHER_GUEST_ID = "guest-2"
PROPERTY_ID = "5b0f6c1e-8f0a-4a53-9d57-3c1f1f0b2a11"


def fixed_clock() -> dt.datetime:
    return FIXED_NOW


# === Singleton resets ===


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset cached settings and the DynamoDB singleton around each test.

    Tests using mock_aws get a fresh service instance inside the mock
    context rather than reusing one from a previous test.
    """
    get_settings.cache_clear()
    reset_dynamodb_service()
    yield
    get_settings.cache_clear()
    reset_dynamodb_service()


# === Sample data ===


def make_property(**overrides: Any) -> Property:
    """Property with 100/night, cleaning 20, 2-14 nights, 4 guests."""
    data: dict[str, Any] = {
        "property_id": PROPERTY_ID,
        "host_id": HOST_ID,
        "title": "Seaside apartment",
        "max_guests": 4,
        "price_per_night": Decimal("100.00"),
        "cleaning_fee": Decimal("20.00"),
        "service_fee_percent": Decimal("0"),
        "currency": "USD",
        "min_nights": 2,
        "max_nights": 14,
    }
    data.update(overrides)
    return Property(**data)


def make_request(check_in: str, check_out: str, **overrides: Any) -> BookingCreate:
    """Booking request for the sample property."""
    data: dict[str, Any] = {
        "propertyId": PROPERTY_ID,
        "checkInDate": check_in,
        "checkOutDate": check_out,
        "adults": 2,
    }
    data.update(overrides)
    return BookingCreate.model_validate(data)


@pytest.fixture
def sample_property() -> Property:
    return make_property()


# === Engine fixtures (in-memory store) ===


@pytest.fixture
def store(sample_property: Property) -> InMemoryBookingStore:
    """In-memory store holding the sample property."""
    memory_store = InMemoryBookingStore()
    memory_store.put_property(sample_property)
    return memory_store


@pytest.fixture
def locks() -> PropertyLockRegistry:
    return PropertyLockRegistry()


@pytest.fixture
def calendar(store: InMemoryBookingStore) -> CalendarResolver:
    return CalendarResolver(store)


@pytest.fixture
def conflicts(store: InMemoryBookingStore, calendar: CalendarResolver) -> ConflictChecker:
    return ConflictChecker(store, calendar)


@pytest.fixture
def pricing(calendar: CalendarResolver) -> PricingCalculator:
    return PricingCalculator(calendar)


@pytest.fixture
def booking_service(
    store: InMemoryBookingStore,
    calendar: CalendarResolver,
    conflicts: ConflictChecker,
    pricing: PricingCalculator,
    locks: PropertyLockRegistry,
) -> BookingService:
    """BookingService on the in-memory store with a fixed clock."""
    return BookingService(store, calendar, conflicts, pricing, locks=locks, clock=fixed_clock)


@pytest.fixture
def availability_service(
    store: InMemoryBookingStore,
    calendar: CalendarResolver,
    conflicts: ConflictChecker,
    locks: PropertyLockRegistry,
) -> AvailabilityService:
    """AvailabilityService sharing the booking service's store and locks."""
    return AvailabilityService(store, calendar, conflicts, locks=locks, clock=fixed_clock)


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        yield boto3.client("dynamodb", region_name="eu-west-1")


@pytest.fixture
def dynamodb_service(dynamodb_client: Any) -> DynamoDBService:
    """DynamoDBService with every engine table created in moto."""
    db = DynamoDBService(name_prefix="test-stayhub", region="eu-west-1")
    ensure_tables(db)
    return db


@pytest.fixture
def dynamo_store(dynamodb_service: DynamoDBService, sample_property: Property) -> DynamoBookingStore:
    """DynamoDB-backed store holding the sample property."""
    dynamo = DynamoBookingStore(dynamodb_service)
    dynamo.put_property(sample_property)
    return dynamo


# === Identities and factories ===


@pytest.fixture
def host_id() -> str:
    return HOST_ID


@pytest.fixture
def guest_id() -> str:
    return GUEST_ID


@pytest.fixture
def other_guest_id() -> str:
    return OTHER_GUEST_ID


@pytest.fixture
def property_factory() -> Any:
    """Build properties with the sample defaults, overriding any field."""
    return make_property


@pytest.fixture
def booking_request() -> Any:
    """Build booking requests for the sample property."""
    return make_request


@pytest.fixture
def now() -> dt.datetime:
    """The fixed clock value used by engine fixtures."""
    return FIXED_NOW
