"""Fixtures for API route tests.

Every test gets a fresh in-memory store holding the sample property, so
bookings made by one test never leak into the next.
"""

from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from stayhub.models import Property
from stayhub.services import BookingStore
from stayhub_api.dependencies import get_booking_store, reset_services


@pytest.fixture
def api_store(
    monkeypatch: pytest.MonkeyPatch, sample_property: Property
) -> Generator[BookingStore, None, None]:
    """Store behind the app's dependency providers, seeded with the sample property."""
    monkeypatch.setenv("STORE_BACKEND", "memory")
    reset_services()
    store = get_booking_store()
    store.put_property(sample_property)
    yield store
    reset_services()


@pytest.fixture
def client(api_store: BookingStore) -> TestClient:
    """Create test client for API."""
    from stayhub_api.main import app

    return TestClient(app)


@pytest.fixture
def auth_headers() -> Any:
    """Build x-user-sub headers for a caller."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"x-user-sub": user_id}

    return _headers
