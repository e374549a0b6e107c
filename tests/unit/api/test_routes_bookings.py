"""Unit tests for booking API routes.

Tests for:
- POST /api/bookings - Reserve a stay
- GET /api/bookings, GET /api/bookings/{id} - Read bookings
- POST /api/bookings/{id}/cancel|confirm|complete - Lifecycle
- PATCH /api/bookings/{id}/dates - Reschedule
"""

import uuid
from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.status import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from stayhub.models import Property, StoreUnavailableError
from stayhub.services import BookingStore


def booking_body(prop: Property, check_in: str, check_out: str, **overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "propertyId": prop.property_id,
        "checkInDate": check_in,
        "checkOutDate": check_out,
        "adults": 2,
    }
    body.update(overrides)
    return body


@pytest.fixture
def create_booking(client: TestClient, sample_property: Property, auth_headers: Any) -> Any:
    """POST a booking for the sample property and return the response body."""

    def _create(guest: str, check_in: str, check_out: str) -> dict[str, Any]:
        response = client.post(
            "/api/bookings",
            json=booking_body(sample_property, check_in, check_out),
            headers=auth_headers(guest),
        )
        assert response.status_code == HTTP_201_CREATED, response.text
        return response.json()

    return _create


class TestCreateBooking:
    """Tests for POST /api/bookings."""

    def test_creates_pending_booking(
        self,
        client: TestClient,
        sample_property: Property,
        auth_headers: Any,
        guest_id: str,
        host_id: str,
    ) -> None:
        """Should price the stay and return 201 with the booking."""
        response = client.post(
            "/api/bookings",
            json=booking_body(sample_property, "2030-03-01", "2030-03-03", guestMessage="Late arrival"),
            headers=auth_headers(guest_id),
        )

        assert response.status_code == HTTP_201_CREATED
        data = response.json()
        assert data["status"] == "pending"
        assert data["guest_id"] == guest_id
        assert data["host_id"] == host_id
        assert data["guest_message"] == "Late arrival"
        assert data["pricing"]["nights"] == 2
        assert data["pricing"]["subtotal"] == "200.00"
        assert data["pricing"]["cleaning_fee"] == "20.00"
        assert data["pricing"]["total"] == "220.00"
        uuid.UUID(data["booking_id"])

    def test_requires_authentication(self, client: TestClient, sample_property: Property) -> None:
        response = client.post("/api/bookings", json=booking_body(sample_property, "2030-03-01", "2030-03-03"))
        assert response.status_code == HTTP_401_UNAUTHORIZED

    def test_overlap_returns_conflict(
        self,
        client: TestClient,
        create_booking: Any,
        sample_property: Property,
        auth_headers: Any,
        other_guest_id: str,
        guest_id: str,
    ) -> None:
        create_booking(guest_id, "2030-03-01", "2030-03-04")

        response = client.post(
            "/api/bookings",
            json=booking_body(sample_property, "2030-03-03", "2030-03-06"),
            headers=auth_headers(other_guest_id),
        )

        assert response.status_code == HTTP_409_CONFLICT
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "CONFLICT"
        assert data["recovery"]

    def test_back_to_back_stays_allowed(self, create_booking: Any, guest_id: str, other_guest_id: str) -> None:
        create_booking(guest_id, "2030-03-01", "2030-03-04")
        second = create_booking(other_guest_id, "2030-03-04", "2030-03-06")
        assert second["check_in_date"] == "2030-03-04"

    def test_too_many_guests(
        self, client: TestClient, sample_property: Property, auth_headers: Any, guest_id: str
    ) -> None:
        response = client.post(
            "/api/bookings",
            json=booking_body(sample_property, "2030-03-01", "2030-03-03", adults=3, children=2),
            headers=auth_headers(guest_id),
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "GUEST_LIMIT_EXCEEDED"

    def test_stay_shorter_than_minimum(
        self, client: TestClient, sample_property: Property, auth_headers: Any, guest_id: str
    ) -> None:
        response = client.post(
            "/api/bookings",
            json=booking_body(sample_property, "2030-03-01", "2030-03-02"),
            headers=auth_headers(guest_id),
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "INVALID_RANGE"

    def test_check_out_before_check_in_is_validation_error(
        self, client: TestClient, sample_property: Property, auth_headers: Any, guest_id: str
    ) -> None:
        response = client.post(
            "/api/bookings",
            json=booking_body(sample_property, "2030-03-05", "2030-03-01"),
            headers=auth_headers(guest_id),
        )

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "ERR_VALIDATION"
        assert data["details"]

    def test_unknown_property(self, client: TestClient, auth_headers: Any, guest_id: str) -> None:
        response = client.post(
            "/api/bookings",
            json={
                "propertyId": str(uuid.uuid4()),
                "checkInDate": "2030-03-01",
                "checkOutDate": "2030-03-03",
            },
            headers=auth_headers(guest_id),
        )

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_store_failure_is_retryable(
        self,
        client: TestClient,
        api_store: BookingStore,
        sample_property: Property,
        auth_headers: Any,
        guest_id: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A throttled store answers 503 with Retry-After, never 409."""

        def throttled(*args: Any, **kwargs: Any) -> None:
            raise StoreUnavailableError("insert_booking: ThrottlingException")

        monkeypatch.setattr(api_store, "insert_booking", throttled)

        response = client.post(
            "/api/bookings",
            json=booking_body(sample_property, "2030-03-01", "2030-03-03"),
            headers=auth_headers(guest_id),
        )

        assert response.status_code == HTTP_503_SERVICE_UNAVAILABLE
        assert response.headers["Retry-After"] == "1"
        assert response.json()["error_code"] == "STORE_UNAVAILABLE"


class TestReadBookings:
    """Tests for GET /api/bookings and GET /api/bookings/{id}."""

    def test_guest_and_host_can_read(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str, host_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")

        for caller in (guest_id, host_id):
            response = client.get(f"/api/bookings/{booking['booking_id']}", headers=auth_headers(caller))
            assert response.status_code == HTTP_200_OK
            assert response.json()["booking_id"] == booking["booking_id"]

    def test_stranger_is_forbidden(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str, other_guest_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")

        response = client.get(f"/api/bookings/{booking['booking_id']}", headers=auth_headers(other_guest_id))

        assert response.status_code == HTTP_403_FORBIDDEN
        assert response.json()["error_code"] == "FORBIDDEN"

    def test_missing_booking(self, client: TestClient, auth_headers: Any, guest_id: str) -> None:
        response = client.get(f"/api/bookings/{uuid.uuid4()}", headers=auth_headers(guest_id))
        assert response.status_code == HTTP_404_NOT_FOUND

    def test_malformed_booking_id(self, client: TestClient, auth_headers: Any, guest_id: str) -> None:
        response = client.get("/api/bookings/not-a-uuid", headers=auth_headers(guest_id))
        assert response.status_code == 422

    def test_list_filters_and_paginates(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str
    ) -> None:
        first = create_booking(guest_id, "2030-03-01", "2030-03-03")
        create_booking(guest_id, "2030-04-01", "2030-04-03")
        create_booking(guest_id, "2030-05-01", "2030-05-03")
        client.post(f"/api/bookings/{first['booking_id']}/cancel", headers=auth_headers(guest_id))

        response = client.get("/api/bookings", params={"limit": 2}, headers=auth_headers(guest_id))
        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["total"] == 3
        assert data["total_pages"] == 2
        assert [b["check_in_date"] for b in data["data"]] == ["2030-03-01", "2030-04-01"]

        response = client.get("/api/bookings", params={"status": "pending"}, headers=auth_headers(guest_id))
        assert [b["check_in_date"] for b in response.json()["data"]] == ["2030-04-01", "2030-05-01"]

    def test_list_rejects_unknown_status(self, client: TestClient, auth_headers: Any, guest_id: str) -> None:
        response = client.get("/api/bookings", params={"status": "archived"}, headers=auth_headers(guest_id))
        assert response.status_code == 422


class TestLifecycle:
    """Tests for cancel, confirm and complete."""

    def test_guest_cancels(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")

        response = client.post(f"/api/bookings/{booking['booking_id']}/cancel", headers=auth_headers(guest_id))

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["status"] == "cancelled"
        assert data["cancelled_by"] == guest_id
        assert data["cancelled_at"] is not None

    def test_cancel_twice_is_invalid_state(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")
        client.post(f"/api/bookings/{booking['booking_id']}/cancel", headers=auth_headers(guest_id))

        response = client.post(f"/api/bookings/{booking['booking_id']}/cancel", headers=auth_headers(guest_id))

        assert response.status_code == HTTP_409_CONFLICT
        assert response.json()["error_code"] == "INVALID_STATE"

    def test_cancelled_dates_can_be_rebooked(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str, other_guest_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")
        client.post(f"/api/bookings/{booking['booking_id']}/cancel", headers=auth_headers(guest_id))

        rebooked = create_booking(other_guest_id, "2030-03-01", "2030-03-03")
        assert rebooked["guest_id"] == other_guest_id

    def test_host_confirms_then_completes(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str, host_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")
        booking_url = f"/api/bookings/{booking['booking_id']}"

        confirmed = client.post(f"{booking_url}/confirm", headers=auth_headers(host_id))
        assert confirmed.status_code == HTTP_200_OK
        assert confirmed.json()["status"] == "confirmed"

        completed = client.post(f"{booking_url}/complete", headers=auth_headers(host_id))
        assert completed.status_code == HTTP_200_OK
        assert completed.json()["status"] == "completed"

    def test_guest_cannot_confirm(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")

        response = client.post(f"/api/bookings/{booking['booking_id']}/confirm", headers=auth_headers(guest_id))

        assert response.status_code == HTTP_403_FORBIDDEN

    def test_complete_pending_is_invalid_state(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str, host_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")

        response = client.post(f"/api/bookings/{booking['booking_id']}/complete", headers=auth_headers(host_id))

        assert response.status_code == HTTP_409_CONFLICT
        assert response.json()["error_code"] == "INVALID_STATE"


class TestChangeDates:
    """Tests for PATCH /api/bookings/{id}/dates."""

    def test_moves_and_reprices(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")

        response = client.patch(
            f"/api/bookings/{booking['booking_id']}/dates",
            json={"checkInDate": "2030-03-02", "checkOutDate": "2030-03-05"},
            headers=auth_headers(guest_id),
        )

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["check_in_date"] == "2030-03-02"
        assert data["check_out_date"] == "2030-03-05"
        assert data["pricing"]["total"] == "320.00"

    def test_new_dates_taken(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str, other_guest_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")
        create_booking(other_guest_id, "2030-03-10", "2030-03-12")

        response = client.patch(
            f"/api/bookings/{booking['booking_id']}/dates",
            json={"checkInDate": "2030-03-09", "checkOutDate": "2030-03-11"},
            headers=auth_headers(guest_id),
        )

        assert response.status_code == HTTP_409_CONFLICT
        assert response.json()["error_code"] == "CONFLICT"

    def test_host_cannot_reschedule(
        self, client: TestClient, create_booking: Any, auth_headers: Any, guest_id: str, host_id: str
    ) -> None:
        booking = create_booking(guest_id, "2030-03-01", "2030-03-03")

        response = client.patch(
            f"/api/bookings/{booking['booking_id']}/dates",
            json={"checkInDate": "2030-03-02", "checkOutDate": "2030-03-05"},
            headers=auth_headers(host_id),
        )

        assert response.status_code == HTTP_403_FORBIDDEN
