"""Fixed-point money helpers.

All amounts are ``Decimal`` in the major currency unit (e.g. 120.50 USD).
Rounding happens once per derived amount, to the currency's minor unit.
"""

from decimal import ROUND_HALF_UP, Decimal

# ISO-4217 currencies without a minor unit
ZERO_DECIMAL_CURRENCIES = frozenset(
    {"BIF", "CLP", "DJF", "GNF", "ISK", "JPY", "KMF", "KRW", "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}
)

_CENT = Decimal("0.01")
_UNIT = Decimal("1")
_HUNDRED = Decimal("100")


def minor_unit(currency: str) -> Decimal:
    """Smallest representable amount for a currency."""
    return _UNIT if currency.upper() in ZERO_DECIMAL_CURRENCIES else _CENT


def quantize(amount: Decimal, currency: str) -> Decimal:
    """Round an amount half-up to the currency's minor unit."""
    return amount.quantize(minor_unit(currency), rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal, currency: str) -> Decimal:
    """Return ``percent`` % of ``amount``, rounded to the minor unit."""
    return quantize(amount * percent / _HUNDRED, currency)


def to_decimal(value: object) -> Decimal:
    """Convert a stored or user-supplied number to Decimal without float drift."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)  # type: ignore[arg-type]
