"""Persistence contract for the booking engine and its DynamoDB implementation.

The engine reads and writes through ``BookingStore`` only. Writes that can
create or move an active stay are conditional on the property's
``calendar_version`` and bump it in the same transaction, so two writers
that both passed the conflict check cannot both commit.

Read methods return ``None`` for missing records and write methods return
``None`` when a write condition failed; callers turn those outcomes into
business errors.
"""

import datetime as dt
from typing import Any, Protocol

from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from stayhub.models import (
    ACTIVE_BOOKING_STATUSES,
    AvailabilityDay,
    Booking,
    BookingStatus,
    GuestCounts,
    PaymentStatus,
    PriceBreakdown,
    Property,
    PropertyType,
    RoomType,
)
from stayhub.utils.logging import get_logger
from stayhub.utils.money import to_decimal

from .dynamodb import DynamoDBService, translate_errors

logger = get_logger(__name__)


class BookingStore(Protocol):
    """Narrow read/write contract the engine needs from durable storage."""

    def get_property(self, property_id: str) -> Property | None: ...

    def put_property(self, prop: Property) -> Property: ...

    def get_active_bookings(self, property_id: str) -> list[Booking]: ...

    def get_availability_overrides(
        self, property_id: str, start: dt.date, end: dt.date
    ) -> dict[dt.date, AvailabilityDay]: ...

    def put_availability_days(self, property_id: str, days: list[AvailabilityDay]) -> None: ...

    def delete_availability_days(self, property_id: str, dates: list[dt.date]) -> None: ...

    def insert_booking(self, booking: Booking, expected_version: int) -> Booking | None: ...

    def update_booking_dates(self, booking: Booking, expected_version: int) -> Booking | None: ...

    def update_booking_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
        timestamp: dt.datetime,
        actor_id: str | None = None,
    ) -> Booking | None: ...

    def get_booking(self, booking_id: str) -> Booking | None: ...

    def list_guest_bookings(self, guest_id: str) -> list[Booking]: ...


# Timestamp attribute set by each status transition
STATUS_TIMESTAMP_FIELDS: dict[BookingStatus, str] = {
    BookingStatus.CONFIRMED: "confirmed_at",
    BookingStatus.CANCELLED: "cancelled_at",
    BookingStatus.COMPLETED: "completed_at",
}


def apply_status(
    booking: Booking,
    new_status: BookingStatus,
    timestamp: dt.datetime,
    actor_id: str | None = None,
) -> Booking:
    """Return a copy of ``booking`` moved to ``new_status`` at ``timestamp``."""
    update: dict[str, Any] = {
        "status": new_status,
        "updated_at": timestamp,
        STATUS_TIMESTAMP_FIELDS[new_status]: timestamp,
    }
    if new_status == BookingStatus.CANCELLED:
        update["cancelled_by"] = actor_id
    return booking.model_copy(update=update)


# =========================================================================
# DynamoDB schema
# =========================================================================

TABLE_DEFINITIONS: dict[str, dict[str, Any]] = {
    "properties": {
        "KeySchema": [{"AttributeName": "property_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "property_id", "AttributeType": "S"},
        ],
    },
    "bookings": {
        "KeySchema": [
            {"AttributeName": "property_id", "KeyType": "HASH"},
            {"AttributeName": "booking_id", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "property_id", "AttributeType": "S"},
            {"AttributeName": "booking_id", "AttributeType": "S"},
            {"AttributeName": "guest_id", "AttributeType": "S"},
            {"AttributeName": "check_in_date", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": "guest_id-index",
                "KeySchema": [
                    {"AttributeName": "guest_id", "KeyType": "HASH"},
                    {"AttributeName": "check_in_date", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    },
    "availability": {
        "KeySchema": [
            {"AttributeName": "property_id", "KeyType": "HASH"},
            {"AttributeName": "date", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "property_id", "AttributeType": "S"},
            {"AttributeName": "date", "AttributeType": "S"},
        ],
    },
    # booking_id -> property_id, written with the booking so lookups can read it consistently
    "booking_keys": {
        "KeySchema": [{"AttributeName": "booking_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "booking_id", "AttributeType": "S"},
        ],
    },
}


def ensure_tables(db: DynamoDBService) -> list[str]:
    """Create any missing engine tables.

    Args:
        db: DynamoDB service (its prefix decides the table names)

    Returns:
        Names of the tables that were created
    """
    created = []
    for table, definition in TABLE_DEFINITIONS.items():
        name = db.table_name(table)
        try:
            with translate_errors("create_table"):
                db.client.create_table(
                    TableName=name,
                    BillingMode="PAY_PER_REQUEST",
                    **definition,
                )
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceInUseException":
                raise
            continue
        db.client.get_waiter("table_exists").wait(TableName=name)
        logger.info("Created table %s", name)
        created.append(name)
    return created


# =========================================================================
# Item conversion
# =========================================================================


def _iso(value: dt.date | dt.datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: str | None) -> dt.datetime | None:
    return dt.datetime.fromisoformat(value) if value else None


def _property_to_item(prop: Property) -> dict[str, Any]:
    item: dict[str, Any] = {
        "property_id": prop.property_id,
        "host_id": prop.host_id,
        "title": prop.title,
        "property_type": prop.property_type.value,
        "room_type": prop.room_type.value,
        "max_guests": prop.max_guests,
        "price_per_night": prop.price_per_night,
        "cleaning_fee": prop.cleaning_fee,
        "service_fee_percent": prop.service_fee_percent,
        "currency": prop.currency,
        "min_nights": prop.min_nights,
        "max_nights": prop.max_nights,
        "check_in_time": prop.check_in_time,
        "check_out_time": prop.check_out_time,
        "is_instant_book": prop.is_instant_book,
        "is_published": prop.is_published,
    }
    return {k: v for k, v in item.items() if v is not None}


def _item_to_property(item: dict[str, Any]) -> Property:
    service_fee = item.get("service_fee_percent")
    return Property(
        property_id=item["property_id"],
        host_id=item["host_id"],
        title=item.get("title", ""),
        property_type=PropertyType(item.get("property_type", PropertyType.APARTMENT.value)),
        room_type=RoomType(item.get("room_type", RoomType.ENTIRE_PLACE.value)),
        max_guests=int(item.get("max_guests", 1)),
        price_per_night=to_decimal(item["price_per_night"]),
        cleaning_fee=to_decimal(item.get("cleaning_fee", 0)),
        service_fee_percent=to_decimal(service_fee) if service_fee is not None else None,
        currency=item.get("currency", "USD"),
        min_nights=int(item.get("min_nights", 1)),
        max_nights=int(item.get("max_nights", 365)),
        check_in_time=item.get("check_in_time", "15:00"),
        check_out_time=item.get("check_out_time", "11:00"),
        is_instant_book=bool(item.get("is_instant_book", False)),
        is_published=bool(item.get("is_published", True)),
        calendar_version=int(item.get("calendar_version", 0)),
    )


def _pricing_to_item(pricing: PriceBreakdown) -> dict[str, Any]:
    return {
        "currency": pricing.currency,
        "nights": pricing.nights,
        "nightly_rates": list(pricing.nightly_rates),
        "subtotal": pricing.subtotal,
        "cleaning_fee": pricing.cleaning_fee,
        "service_fee": pricing.service_fee,
        "taxes": pricing.taxes,
        "total": pricing.total,
    }


def _booking_to_item(booking: Booking) -> dict[str, Any]:
    item: dict[str, Any] = {
        "booking_id": booking.booking_id,
        "property_id": booking.property_id,
        "guest_id": booking.guest_id,
        "host_id": booking.host_id,
        "check_in_date": booking.check_in_date.isoformat(),
        "check_out_date": booking.check_out_date.isoformat(),
        "guests": booking.guests.model_dump(),
        "pricing": _pricing_to_item(booking.pricing),
        "status": booking.status.value,
        "payment_status": booking.payment_status.value,
        "guest_message": booking.guest_message,
        "created_at": _iso(booking.created_at),
        "updated_at": _iso(booking.updated_at),
        "confirmed_at": _iso(booking.confirmed_at),
        "cancelled_at": _iso(booking.cancelled_at),
        "cancelled_by": booking.cancelled_by,
        "completed_at": _iso(booking.completed_at),
    }
    return {k: v for k, v in item.items() if v is not None}


def _item_to_booking(item: dict[str, Any]) -> Booking:
    pricing = item["pricing"]
    return Booking(
        booking_id=item["booking_id"],
        property_id=item["property_id"],
        guest_id=item["guest_id"],
        host_id=item["host_id"],
        check_in_date=dt.date.fromisoformat(item["check_in_date"]),
        check_out_date=dt.date.fromisoformat(item["check_out_date"]),
        guests=GuestCounts(**{k: int(v) for k, v in item["guests"].items()}),
        pricing=PriceBreakdown(
            currency=pricing["currency"],
            nights=int(pricing["nights"]),
            nightly_rates=[to_decimal(r) for r in pricing["nightly_rates"]],
            subtotal=to_decimal(pricing["subtotal"]),
            cleaning_fee=to_decimal(pricing["cleaning_fee"]),
            service_fee=to_decimal(pricing["service_fee"]),
            taxes=to_decimal(pricing["taxes"]),
            total=to_decimal(pricing["total"]),
        ),
        status=BookingStatus(item["status"]),
        payment_status=PaymentStatus(item.get("payment_status", PaymentStatus.PENDING.value)),
        guest_message=item.get("guest_message"),
        created_at=_parse_datetime(item["created_at"]),
        updated_at=_parse_datetime(item["updated_at"]),
        confirmed_at=_parse_datetime(item.get("confirmed_at")),
        cancelled_at=_parse_datetime(item.get("cancelled_at")),
        cancelled_by=item.get("cancelled_by"),
        completed_at=_parse_datetime(item.get("completed_at")),
    )


def _availability_to_item(day: AvailabilityDay) -> dict[str, Any]:
    item: dict[str, Any] = {
        "property_id": day.property_id,
        "date": day.date.isoformat(),
        "is_available": day.is_available,
        "custom_price": day.custom_price,
        "note": day.note,
        "updated_at": _iso(day.updated_at),
    }
    return {k: v for k, v in item.items() if v is not None}


def _item_to_availability(item: dict[str, Any]) -> AvailabilityDay:
    custom_price = item.get("custom_price")
    return AvailabilityDay(
        property_id=item["property_id"],
        date=dt.date.fromisoformat(item["date"]),
        is_available=bool(item["is_available"]),
        custom_price=to_decimal(custom_price) if custom_price is not None else None,
        note=item.get("note"),
        updated_at=_parse_datetime(item.get("updated_at")),
    )


# =========================================================================
# DynamoDB store
# =========================================================================


class DynamoBookingStore:
    """BookingStore backed by DynamoDB.

    Conflict checks read bookings from the base table with strongly
    consistent queries. Lookups by booking ID read a key item that is
    written in the same transaction as the booking, also consistently.
    """

    PROPERTIES = "properties"
    BOOKINGS = "bookings"
    AVAILABILITY = "availability"
    BOOKING_KEYS = "booking_keys"

    def __init__(self, db: DynamoDBService) -> None:
        """Initialize the store.

        Args:
            db: DynamoDB service instance
        """
        self.db = db
        self._serializer = TypeSerializer()

    def _attribute_map(self, item: dict[str, Any]) -> dict[str, Any]:
        """Convert a plain item to the low-level attribute format."""
        return {k: self._serializer.serialize(v) for k, v in item.items()}

    def _version_bump(self, property_id: str, expected_version: int) -> dict[str, Any]:
        """Transaction item that advances the property's calendar version."""
        condition = "calendar_version = :expected"
        if expected_version == 0:
            condition = f"attribute_not_exists(calendar_version) OR {condition}"
        return {
            "Update": {
                "TableName": self.db.table_name(self.PROPERTIES),
                "Key": {"property_id": {"S": property_id}},
                "UpdateExpression": "SET calendar_version = :next",
                "ConditionExpression": f"attribute_exists(property_id) AND ({condition})",
                "ExpressionAttributeValues": {
                    ":expected": {"N": str(expected_version)},
                    ":next": {"N": str(expected_version + 1)},
                },
            }
        }

    # Properties

    def get_property(self, property_id: str) -> Property | None:
        item = self.db.get_item(
            self.PROPERTIES,
            {"property_id": property_id},
            consistent_read=True,
        )
        if not item:
            return None
        return _item_to_property(item)

    def put_property(self, prop: Property) -> Property:
        """Create or update a property's listing fields.

        ``calendar_version`` is never taken from ``prop``: a new property
        starts at 0 and an existing one keeps its counter, so writing a
        stale copy cannot move the version backwards.

        Returns:
            The property as stored, with its current calendar version
        """
        fields = _property_to_item(prop)
        fields.pop("property_id")

        names: dict[str, str] = {"#cv": "calendar_version"}
        values: dict[str, Any] = {":zero": 0}
        assignments = ["#cv = if_not_exists(#cv, :zero)"]
        for i, (field, value) in enumerate(fields.items()):
            names[f"#f{i}"] = field
            values[f":v{i}"] = value
            assignments.append(f"#f{i} = :v{i}")
        update_expression = "SET " + ", ".join(assignments)
        if prop.service_fee_percent is None:
            names["#fee"] = "service_fee_percent"
            update_expression += " REMOVE #fee"

        attrs = self.db.update_item(
            self.PROPERTIES,
            key={"property_id": prop.property_id},
            update_expression=update_expression,
            expression_attribute_values=values,
            expression_attribute_names=names,
        )
        return _item_to_property(attrs) if attrs else prop

    def _bump_calendar_version(self, property_id: str) -> None:
        self.db.update_item(
            self.PROPERTIES,
            key={"property_id": property_id},
            update_expression="SET calendar_version = if_not_exists(calendar_version, :zero) + :one",
            expression_attribute_values={":zero": 0, ":one": 1},
            condition_expression="attribute_exists(property_id)",
        )

    # Availability overrides

    def get_availability_overrides(
        self,
        property_id: str,
        start: dt.date,
        end: dt.date,
    ) -> dict[dt.date, AvailabilityDay]:
        """Get explicit day settings in [start, end)."""
        if end <= start:
            return {}
        last_night = end - dt.timedelta(days=1)
        items = self.db.query_by_partition(
            self.AVAILABILITY,
            "property_id",
            property_id,
            sort_key_condition=Key("date").between(start.isoformat(), last_night.isoformat()),
            consistent_read=True,
        )
        days = [_item_to_availability(item) for item in items]
        return {day.date: day for day in days}

    def put_availability_days(self, property_id: str, days: list[AvailabilityDay]) -> None:
        self.db.batch_write(
            self.AVAILABILITY,
            put_items=[_availability_to_item(day) for day in days],
        )
        self._bump_calendar_version(property_id)

    def delete_availability_days(self, property_id: str, dates: list[dt.date]) -> None:
        self.db.batch_write(
            self.AVAILABILITY,
            delete_keys=[{"property_id": property_id, "date": d.isoformat()} for d in dates],
        )
        self._bump_calendar_version(property_id)

    # Bookings

    def get_active_bookings(self, property_id: str) -> list[Booking]:
        """Get pending and confirmed bookings ordered by check-in."""
        items = self.db.query_by_partition(
            self.BOOKINGS,
            "property_id",
            property_id,
            filter_expression=Attr("status").is_in([s.value for s in ACTIVE_BOOKING_STATUSES]),
            consistent_read=True,
        )
        bookings = [_item_to_booking(item) for item in items]
        return sorted(bookings, key=lambda b: (b.check_in_date, b.booking_id))

    def get_booking(self, booking_id: str) -> Booking | None:
        key = self.db.get_item(
            self.BOOKING_KEYS,
            {"booking_id": booking_id},
            consistent_read=True,
        )
        if not key:
            return None
        item = self.db.get_item(
            self.BOOKINGS,
            {"property_id": key["property_id"], "booking_id": booking_id},
            consistent_read=True,
        )
        return _item_to_booking(item) if item else None

    def list_guest_bookings(self, guest_id: str) -> list[Booking]:
        items = self.db.query_by_partition(
            self.BOOKINGS,
            "guest_id",
            guest_id,
            index_name="guest_id-index",
        )
        return [_item_to_booking(item) for item in items]

    def insert_booking(self, booking: Booking, expected_version: int) -> Booking | None:
        """Atomically create a booking and advance the property's calendar version.

        Returns:
            The committed booking, or None if the calendar changed since
            ``expected_version`` was read
        """
        committed = self.db.transact_write(
            [
                self._version_bump(booking.property_id, expected_version),
                {
                    "Put": {
                        "TableName": self.db.table_name(self.BOOKINGS),
                        "Item": self._attribute_map(_booking_to_item(booking)),
                        "ConditionExpression": "attribute_not_exists(booking_id)",
                    }
                },
                {
                    "Put": {
                        "TableName": self.db.table_name(self.BOOKING_KEYS),
                        "Item": self._attribute_map(
                            {"booking_id": booking.booking_id, "property_id": booking.property_id}
                        ),
                        "ConditionExpression": "attribute_not_exists(booking_id)",
                    }
                },
            ]
        )
        return booking if committed else None

    def update_booking_dates(self, booking: Booking, expected_version: int) -> Booking | None:
        """Atomically move an active booking to new dates and price.

        Returns:
            The updated booking, or None if the calendar or the booking
            status changed concurrently
        """
        values = self._attribute_map(
            {
                ":check_in": booking.check_in_date.isoformat(),
                ":check_out": booking.check_out_date.isoformat(),
                ":pricing": _pricing_to_item(booking.pricing),
                ":now": _iso(booking.updated_at),
                ":pending": BookingStatus.PENDING.value,
                ":confirmed": BookingStatus.CONFIRMED.value,
            }
        )
        committed = self.db.transact_write(
            [
                self._version_bump(booking.property_id, expected_version),
                {
                    "Update": {
                        "TableName": self.db.table_name(self.BOOKINGS),
                        "Key": self._attribute_map(
                            {"property_id": booking.property_id, "booking_id": booking.booking_id}
                        ),
                        "UpdateExpression": (
                            "SET check_in_date = :check_in, check_out_date = :check_out, "
                            "pricing = :pricing, updated_at = :now"
                        ),
                        "ConditionExpression": "#s IN (:pending, :confirmed)",
                        "ExpressionAttributeNames": {"#s": "status"},
                        "ExpressionAttributeValues": values,
                    }
                },
            ]
        )
        return booking if committed else None

    def update_booking_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
        timestamp: dt.datetime,
        actor_id: str | None = None,
    ) -> Booking | None:
        """Move a booking to ``new_status`` if it still has its loaded status.

        Returns:
            The updated booking, or None if its status changed concurrently
        """
        updated = apply_status(booking, new_status, timestamp, actor_id)
        timestamp_field = STATUS_TIMESTAMP_FIELDS[new_status]

        update_expression = f"SET #s = :new, updated_at = :now, {timestamp_field} = :now"
        values: dict[str, Any] = {
            ":new": new_status.value,
            ":now": timestamp.isoformat(),
            ":expected": booking.status.value,
        }
        if new_status == BookingStatus.CANCELLED and actor_id:
            update_expression += ", cancelled_by = :actor"
            values[":actor"] = actor_id

        attrs = self.db.update_item(
            self.BOOKINGS,
            key={"property_id": booking.property_id, "booking_id": booking.booking_id},
            update_expression=update_expression,
            expression_attribute_values=values,
            expression_attribute_names={"#s": "status"},
            condition_expression="#s = :expected",
        )
        if attrs is None:
            return None
        return updated

