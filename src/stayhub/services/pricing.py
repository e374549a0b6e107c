"""Pricing service for stay price breakdowns.

Amounts are ``Decimal`` end to end. Nightly prices are summed exactly;
the service fee and taxes are each rounded once, half-up, to the
currency's minor unit, so the same inputs always give the same total.
"""

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol

from stayhub.config import Settings, TaxPolicyName
from stayhub.models import (
    InvalidRangeError,
    PriceBreakdown,
    Property,
    ResolvedDay,
    UnavailableError,
)
from stayhub.utils.dates import nights_between
from stayhub.utils.money import percent_of, quantize

if TYPE_CHECKING:
    from .calendar import CalendarResolver


@dataclass(frozen=True)
class TaxContext:
    """Inputs a tax policy may base its amount on."""

    property_id: str
    currency: str
    nights: int
    subtotal: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal


class TaxPolicy(Protocol):
    """Strategy that computes the tax owed on a stay."""

    def calculate(self, context: TaxContext) -> Decimal: ...


class NoTax:
    """No taxes are collected."""

    def calculate(self, context: TaxContext) -> Decimal:
        return quantize(Decimal("0"), context.currency)


@dataclass(frozen=True)
class PercentageTax:
    """Percentage of the nightly subtotal, optionally including fees."""

    rate_percent: Decimal
    include_fees: bool = False

    def calculate(self, context: TaxContext) -> Decimal:
        base = context.subtotal
        if self.include_fees:
            base += context.cleaning_fee + context.service_fee
        return percent_of(base, self.rate_percent, context.currency)


@dataclass(frozen=True)
class PerNightTax:
    """Flat occupancy tax charged per night."""

    amount: Decimal

    def calculate(self, context: TaxContext) -> Decimal:
        return quantize(self.amount * context.nights, context.currency)


def build_tax_policy(settings: Settings) -> TaxPolicy:
    """Select the tax policy named by configuration.

    Args:
        settings: Engine settings (TAX_POLICY, TAX_RATE, TAX_INCLUDES_FEES)

    Returns:
        The configured TaxPolicy
    """
    if settings.tax_policy == TaxPolicyName.PERCENTAGE:
        return PercentageTax(rate_percent=settings.tax_rate, include_fees=settings.tax_includes_fees)
    if settings.tax_policy == TaxPolicyName.PER_NIGHT:
        return PerNightTax(amount=settings.tax_rate)
    return NoTax()


class PricingCalculator:
    """Computes deterministic price breakdowns from the resolved calendar."""

    def __init__(
        self,
        calendar: "CalendarResolver",
        tax_policy: TaxPolicy | None = None,
        default_service_fee_percent: Decimal = Decimal("0"),
    ) -> None:
        """Initialize the calculator.

        Args:
            calendar: Resolver for per-night prices
            tax_policy: Tax strategy. Defaults to NoTax.
            default_service_fee_percent: Used when a property sets no fee
        """
        self.calendar = calendar
        self.tax_policy = tax_policy or NoTax()
        self.default_service_fee_percent = default_service_fee_percent

    def compute_price(
        self,
        property_id: str,
        check_in: dt.date,
        check_out: dt.date,
    ) -> PriceBreakdown:
        """Calculate the price of a stay.

        Args:
            property_id: Property to price
            check_in: Check-in date
            check_out: Check-out date (exclusive)

        Returns:
            PriceBreakdown in the property's currency

        Raises:
            InvalidRangeError: If the stay has no nights
            UnavailableError: If any night is unavailable
            NotFoundError: If the property does not exist
        """
        if nights_between(check_in, check_out) < 1:
            raise InvalidRangeError(details={"reason": "check-out must be after check-in"})
        prop = self.calendar.get_property(property_id)
        days = self.calendar.resolve_for(prop, check_in, check_out)
        return self.price_days(prop, days)

    def price_days(self, prop: Property, days: list[ResolvedDay]) -> PriceBreakdown:
        """Price already-resolved nights of a property."""
        if not days:
            raise InvalidRangeError(details={"reason": "check-out must be after check-in"})
        blocked = [day.date.isoformat() for day in days if not day.is_available]
        if blocked:
            raise UnavailableError(
                details={"property_id": prop.property_id, "unavailable_dates": ",".join(blocked)}
            )

        currency = prop.currency
        nightly_rates = [day.price for day in days]
        subtotal = quantize(sum(nightly_rates, Decimal("0")), currency)
        cleaning_fee = quantize(prop.cleaning_fee, currency)
        fee_percent = (
            prop.service_fee_percent
            if prop.service_fee_percent is not None
            else self.default_service_fee_percent
        )
        service_fee = percent_of(subtotal, fee_percent, currency)
        taxes = self.tax_policy.calculate(
            TaxContext(
                property_id=prop.property_id,
                currency=currency,
                nights=len(days),
                subtotal=subtotal,
                cleaning_fee=cleaning_fee,
                service_fee=service_fee,
            )
        )

        return PriceBreakdown(
            currency=currency,
            nights=len(days),
            nightly_rates=nightly_rates,
            subtotal=subtotal,
            cleaning_fee=cleaning_fee,
            service_fee=service_fee,
            taxes=taxes,
            total=subtotal + cleaning_fee + service_fee + taxes,
        )
