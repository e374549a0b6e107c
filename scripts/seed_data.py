#!/usr/bin/env python3
"""Seed a development database with a sample property and calendar.

Creates the engine's DynamoDB tables when they are missing, stores one
property and blocks a few days so the calendar has something to show.

Usage:
    python scripts/seed_data.py --env dev
    python scripts/seed_data.py --env dev --instant-book
    python scripts/seed_data.py --prefix stayhub-local --region eu-west-1
"""

import argparse
import datetime as dt
import uuid
from decimal import Decimal

from stayhub.models import AvailabilityDay, Property, PropertyType
from stayhub.services import DynamoBookingStore, DynamoDBService, ensure_tables

# Fixed ID so repeated runs overwrite the same property
SAMPLE_PROPERTY_ID = "5b0f6c1e-8f0a-4a53-9d57-3c1f1f0b2a11"


def build_sample_property(host_id: str, instant_book: bool) -> Property:
    """Seaside apartment used in local development."""
    return Property(
        property_id=SAMPLE_PROPERTY_ID,
        host_id=host_id,
        title="Seaside apartment with terrace",
        property_type=PropertyType.APARTMENT,
        max_guests=4,
        price_per_night=Decimal("100.00"),
        cleaning_fee=Decimal("20.00"),
        service_fee_percent=Decimal("10"),
        currency="USD",
        min_nights=2,
        max_nights=28,
        is_instant_book=instant_book,
    )


def build_sample_calendar(prop: Property, start: dt.date) -> list[AvailabilityDay]:
    """A blocked maintenance weekend and a pricier holiday night."""
    now = dt.datetime.now(dt.UTC)
    blocked = [
        AvailabilityDay(
            property_id=prop.property_id,
            date=start + dt.timedelta(days=offset),
            is_available=False,
            note="Maintenance",
            updated_at=now,
        )
        for offset in (12, 13)
    ]
    holiday = AvailabilityDay(
        property_id=prop.property_id,
        date=start + dt.timedelta(days=30),
        is_available=True,
        custom_price=Decimal("180.00"),
        note="Holiday rate",
        updated_at=now,
    )
    return [*blocked, holiday]


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed StayHub development data")
    parser.add_argument("--env", default="dev", help="Target environment (default: dev)")
    parser.add_argument("--prefix", help="Table name prefix (default: stayhub-<env>)")
    parser.add_argument("--region", help="AWS region (default: AWS_DEFAULT_REGION)")
    parser.add_argument("--host-id", default=str(uuid.uuid5(uuid.NAMESPACE_DNS, "host.stayhub.local")))
    parser.add_argument("--instant-book", action="store_true", help="Make the property instant-book")
    args = parser.parse_args()

    db = DynamoDBService(name_prefix=args.prefix or f"stayhub-{args.env}", region=args.region)
    created = ensure_tables(db)
    for name in created:
        print(f"  ✓ Created table {name}")

    store = DynamoBookingStore(db)
    prop = store.put_property(build_sample_property(args.host_id, args.instant_book))
    print(f"Seeded property {prop.property_id} ({prop.title}) for host {prop.host_id}")

    days = build_sample_calendar(prop, dt.date.today())
    store.put_availability_days(prop.property_id, days)
    for day in days:
        state = "blocked" if not day.is_available else f"{day.custom_price} {prop.currency}"
        print(f"  ✓ {day.date.isoformat()}: {state} ({day.note})")


if __name__ == "__main__":
    main()
