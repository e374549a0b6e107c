"""Unit tests for price breakdowns and tax policies."""

import datetime as dt
from decimal import Decimal
from typing import Any

import pytest

from stayhub.config import Settings, TaxPolicyName
from stayhub.models import AvailabilityDay, InvalidRangeError, Property, UnavailableError
from stayhub.services import (
    CalendarResolver,
    InMemoryBookingStore,
    NoTax,
    PercentageTax,
    PerNightTax,
    PricingCalculator,
    TaxContext,
    build_tax_policy,
)

D = dt.date.fromisoformat


def tax_context(**overrides: Any) -> TaxContext:
    data: dict[str, Any] = {
        "property_id": "p-1",
        "currency": "USD",
        "nights": 2,
        "subtotal": Decimal("200.00"),
        "cleaning_fee": Decimal("20.00"),
        "service_fee": Decimal("10.00"),
    }
    data.update(overrides)
    return TaxContext(**data)


class TestComputePrice:
    """Tests for PricingCalculator.compute_price."""

    def test_two_night_stay(self, pricing: PricingCalculator, sample_property: Property) -> None:
        """100/night, cleaning 20, no fee or tax: 200 + 20."""
        price = pricing.compute_price(sample_property.property_id, D("2026-03-01"), D("2026-03-03"))

        assert price.nights == 2
        assert price.nightly_rates == [Decimal("100.00"), Decimal("100.00")]
        assert price.subtotal == Decimal("200.00")
        assert price.cleaning_fee == Decimal("20.00")
        assert price.service_fee == Decimal("0.00")
        assert price.taxes == Decimal("0.00")
        assert price.total == Decimal("220.00")
        assert price.currency == "USD"

    def test_custom_prices_are_summed(
        self,
        pricing: PricingCalculator,
        store: InMemoryBookingStore,
        sample_property: Property,
    ) -> None:
        store.put_availability_days(
            sample_property.property_id,
            [
                AvailabilityDay(
                    property_id=sample_property.property_id,
                    date=D("2026-03-02"),
                    is_available=True,
                    custom_price=Decimal("149.99"),
                )
            ],
        )

        price = pricing.compute_price(sample_property.property_id, D("2026-03-01"), D("2026-03-04"))

        assert price.subtotal == Decimal("349.99")
        assert price.total == Decimal("369.99")

    def test_service_fee_from_property(
        self, store: InMemoryBookingStore, property_factory: Any
    ) -> None:
        store.put_property(property_factory(service_fee_percent=Decimal("12.5")))
        calculator = PricingCalculator(CalendarResolver(store), default_service_fee_percent=Decimal("3"))

        price = calculator.compute_price(
            property_factory().property_id, D("2026-03-01"), D("2026-03-03")
        )

        assert price.service_fee == Decimal("25.00")
        assert price.total == Decimal("245.00")

    def test_default_service_fee_when_property_has_none(
        self, store: InMemoryBookingStore, property_factory: Any
    ) -> None:
        store.put_property(property_factory(service_fee_percent=None))
        calculator = PricingCalculator(CalendarResolver(store), default_service_fee_percent=Decimal("3"))

        price = calculator.compute_price(
            property_factory().property_id, D("2026-03-01"), D("2026-03-03")
        )

        assert price.service_fee == Decimal("6.00")

    def test_zero_decimal_currency(self, store: InMemoryBookingStore, property_factory: Any) -> None:
        store.put_property(
            property_factory(
                currency="JPY",
                price_per_night=Decimal("12345"),
                cleaning_fee=Decimal("3000"),
                service_fee_percent=Decimal("7.5"),
            )
        )
        calculator = PricingCalculator(CalendarResolver(store))

        price = calculator.compute_price(
            property_factory().property_id, D("2026-03-01"), D("2026-03-03")
        )

        # 24690 * 7.5% = 1851.75, rounded to whole yen
        assert price.service_fee == Decimal("1852")
        assert price.total == Decimal("29542")

    def test_no_nights_is_invalid(self, pricing: PricingCalculator, sample_property: Property) -> None:
        with pytest.raises(InvalidRangeError):
            pricing.compute_price(sample_property.property_id, D("2026-03-03"), D("2026-03-03"))

    def test_blocked_night_is_unavailable(
        self,
        pricing: PricingCalculator,
        store: InMemoryBookingStore,
        sample_property: Property,
    ) -> None:
        store.put_availability_days(
            sample_property.property_id,
            [
                AvailabilityDay(
                    property_id=sample_property.property_id,
                    date=D("2026-03-02"),
                    is_available=False,
                )
            ],
        )
        with pytest.raises(UnavailableError):
            pricing.compute_price(sample_property.property_id, D("2026-03-01"), D("2026-03-03"))

    def test_single_night_is_priced(self, pricing: PricingCalculator, sample_property: Property) -> None:
        """Stay-length rules are the conflict checker's concern."""
        price = pricing.compute_price(sample_property.property_id, D("2026-03-01"), D("2026-03-02"))
        assert price.total == Decimal("120.00")

    def test_repeated_computation_is_identical(
        self, store: InMemoryBookingStore, property_factory: Any
    ) -> None:
        store.put_property(
            property_factory(price_per_night=Decimal("33.33"), service_fee_percent=Decimal("14.2"))
        )
        calculator = PricingCalculator(CalendarResolver(store), tax_policy=PercentageTax(Decimal("7.25")))

        results = {
            calculator.compute_price(property_factory().property_id, D("2026-03-01"), D("2026-03-08"))
            .model_dump_json()
            for _ in range(20)
        }

        assert len(results) == 1


class TestTaxPolicies:
    """Tests for pluggable tax policies."""

    def test_no_tax(self) -> None:
        assert NoTax().calculate(tax_context()) == Decimal("0.00")

    def test_percentage_of_subtotal(self) -> None:
        assert PercentageTax(Decimal("10")).calculate(tax_context()) == Decimal("20.00")

    def test_percentage_including_fees(self) -> None:
        policy = PercentageTax(Decimal("10"), include_fees=True)
        assert policy.calculate(tax_context()) == Decimal("23.00")

    def test_per_night(self) -> None:
        policy = PerNightTax(Decimal("2.50"))
        assert policy.calculate(tax_context(nights=3)) == Decimal("7.50")

    def test_taxes_added_to_total(self, calendar: CalendarResolver, sample_property: Property) -> None:
        calculator = PricingCalculator(calendar, tax_policy=PerNightTax(Decimal("3")))
        price = calculator.compute_price(sample_property.property_id, D("2026-03-01"), D("2026-03-03"))

        assert price.taxes == Decimal("6.00")
        assert price.total == Decimal("226.00")

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            (TaxPolicyName.NONE, NoTax),
            (TaxPolicyName.PERCENTAGE, PercentageTax),
            (TaxPolicyName.PER_NIGHT, PerNightTax),
        ],
    )
    def test_build_tax_policy(self, name: TaxPolicyName, expected: type) -> None:
        settings = Settings(tax_policy=name, tax_rate=Decimal("5"), tax_includes_fees=True)
        policy = build_tax_policy(settings)

        assert isinstance(policy, expected)
        if isinstance(policy, PercentageTax):
            assert policy.include_fees is True
            assert policy.rate_percent == Decimal("5")
