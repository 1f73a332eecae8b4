"""
Display formatting for magnitudes, money and percentages.

All views render numbers through these helpers so that rounding and
thresholds stay consistent across the dashboard.
"""

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext, localcontext
from typing import Optional, Union

from .errors import InvalidInput

Number = Union[int, float, Decimal]

THOUSAND = Decimal(1_000)
MILLION = Decimal(1_000_000)
ONE_DECIMAL = Decimal("0.1")
CENTS = Decimal("0.01")
UNIT_COST_PRECISION = Decimal("0.0001")


def _to_decimal(value: Number, name: str = "value") -> Decimal:
    """Convert a finite, non-negative number to Decimal."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidInput(f"{name} must be finite, got {value!r}")
    if value < 0:
        raise InvalidInput(f"{name} cannot be negative, got {value!r}")
    return Decimal(str(value))


def quantize_half_up(value: Decimal, exponent: Decimal) -> Decimal:
    """Round half-up to the exponent, widening precision for very large values."""
    with localcontext() as ctx:
        ctx.prec = max(getcontext().prec, value.adjusted() - exponent.adjusted() + 2)
        return value.quantize(exponent, rounding=ROUND_HALF_UP)


def _one_decimal(value: Decimal) -> Decimal:
    return quantize_half_up(value, ONE_DECIMAL)


def format_magnitude(n: Number) -> str:
    """Abbreviate a magnitude for display.

    Values from one million render as "X.YM", values from one thousand as
    "X.YK", both rounded half-up to one decimal. A thousands value that
    rounds up to 1000.0K is promoted to the millions form. Smaller values
    render as a plain integer or a trimmed decimal.

    Raises:
        InvalidInput: If n is negative or not finite
    """
    value = _to_decimal(n, "n")

    if value >= MILLION:
        return f"{_one_decimal(value / MILLION)}M"

    if value >= THOUSAND:
        thousands = _one_decimal(value / THOUSAND)
        if thousands >= THOUSAND:
            return f"{_one_decimal(value / MILLION)}M"
        return f"{thousands}K"

    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def format_currency(amount_minor: Number) -> str:
    """Format an aggregate amount given in minor units, e.g. "$1,234.56"."""
    value = quantize_half_up(_to_decimal(amount_minor, "amount_minor") / 100, CENTS)
    return f"${value:,.2f}"


def format_unit_cost(amount_minor: Number) -> str:
    """Format a per-unit cost given in (possibly fractional) minor units.

    Amounts under one dollar keep up to four decimals so per-credit
    rates stay readable; trailing zeros are trimmed down to two.
    """
    value = _to_decimal(amount_minor, "amount_minor") / 100
    if value >= 1:
        return f"${quantize_half_up(value, CENTS):,.2f}"

    precise = quantize_half_up(value, UNIT_COST_PRECISION)
    whole, fraction = f"{precise:.4f}".split(".")
    fraction = fraction.rstrip("0").ljust(2, "0")
    return f"${whole}.{fraction}"


def parse_currency(text: str) -> int:
    """Parse a formatted currency string back into minor units.

    Args:
        text: String such as "$1,234.56"

    Returns:
        Amount in minor units, rounded half-up

    Raises:
        InvalidInput: If the string is not a non-negative amount
    """
    cleaned = text.strip().lstrip("$").replace(",", "").strip()
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        raise InvalidInput(f"Not a currency amount: {text!r}")
    if not value.is_finite() or value < 0:
        raise InvalidInput(f"Not a currency amount: {text!r}")
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + 2)
        minor = value.scaleb(2)
    return int(quantize_half_up(minor, Decimal("1")))


def format_count(n: int) -> str:
    return f"{int(n):,}"


def format_credits(n: int) -> str:
    return f"{format_count(n)} credits"


def format_percentage(percentage: float) -> str:
    return f"{percentage:.1f}%"


def format_growth(growth: Optional[float]) -> str:
    """Format growth with an explicit sign; None renders as "N/A"."""
    if growth is None:
        return "N/A"
    sign = "+" if growth >= 0 else "-"
    return f"{sign}{abs(growth):.1f}%"
