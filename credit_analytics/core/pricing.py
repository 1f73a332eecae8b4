"""
Tiered credit pricing and cost estimation.

Maps credit usage to an estimated monetary cost in minor currency units.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from numbers import Integral
from typing import Optional, Tuple

from .errors import InvalidInput
from .formatting import quantize_half_up


@dataclass(frozen=True)
class PricingTier:
    """One usage-volume bracket with a flat price for a reference quantity."""
    upper_bound_credits: Optional[int]  # Inclusive; None means unbounded
    price_minor: int  # Price of reference_credits, in cents
    reference_credits: int

    def __post_init__(self):
        """Validate tier values are usable."""
        if self.upper_bound_credits is not None and self.upper_bound_credits <= 0:
            raise ValueError("upper_bound_credits must be > 0")
        if self.price_minor < 0:
            raise ValueError("price_minor cannot be negative")
        if self.reference_credits <= 0:
            raise ValueError("reference_credits must be > 0")

    @property
    def rate(self) -> Decimal:
        """Effective price per credit in minor units."""
        return Decimal(self.price_minor) / Decimal(self.reference_credits)

    def covers(self, credits: int) -> bool:
        return self.upper_bound_credits is None or credits <= self.upper_bound_credits


@dataclass(frozen=True)
class PricingTable:
    """Ordered set of pricing tiers evaluated as a step function."""
    tiers: Tuple[PricingTier, ...]

    def __post_init__(self):
        """Validate tiers ascend and end with exactly one unbounded tier."""
        if not self.tiers:
            raise ValueError("Pricing table needs at least one tier")

        *bounded, last = self.tiers
        if last.upper_bound_credits is not None:
            raise ValueError("Last pricing tier must be unbounded")

        previous = 0
        for tier in bounded:
            if tier.upper_bound_credits is None:
                raise ValueError("Only the last pricing tier may be unbounded")
            if tier.upper_bound_credits <= previous:
                raise ValueError("Pricing tier bounds must be strictly ascending")
            previous = tier.upper_bound_credits

    def tier_for(self, credits: int) -> PricingTier:
        """Get the first tier whose inclusive bound covers the credits.

        Args:
            credits: Non-negative credit quantity

        Returns:
            The matching PricingTier
        """
        for tier in self.tiers:
            if tier.covers(credits):
                return tier
        # Unreachable: the last tier is unbounded
        raise AssertionError("No pricing tier matched")


# Plan prices: Basic $4.24 / 6K, Standard $14.17 / 10K, Pro $70.82 / 20K
DEFAULT_PRICING_TABLE = PricingTable((
    PricingTier(upper_bound_credits=6000, price_minor=424, reference_credits=6000),
    PricingTier(upper_bound_credits=10000, price_minor=1417, reference_credits=10000),
    PricingTier(upper_bound_credits=None, price_minor=7082, reference_credits=20000),
))


def _validate_credits(credits_spent) -> int:
    """Return credits as int or raise InvalidInput."""
    if isinstance(credits_spent, bool):
        raise InvalidInput(f"credits_spent must be an integer, got {credits_spent!r}")
    if isinstance(credits_spent, float):
        if not math.isfinite(credits_spent) or not credits_spent.is_integer():
            raise InvalidInput(f"credits_spent must be a whole number, got {credits_spent!r}")
        credits_spent = int(credits_spent)
    if not isinstance(credits_spent, Integral):
        raise InvalidInput(f"credits_spent must be an integer, got {credits_spent!r}")
    if credits_spent < 0:
        raise InvalidInput(f"credits_spent cannot be negative, got {credits_spent}")
    return int(credits_spent)


def estimate_cost(credits_spent: int, table: PricingTable = DEFAULT_PRICING_TABLE) -> int:
    """Estimate the cost of a credit quantity.

    The matching tier's effective rate is applied to the whole quantity;
    tiers are not blended.

    Args:
        credits_spent: Non-negative credit quantity
        table: Pricing table to evaluate

    Returns:
        Cost in minor currency units, rounded half-up

    Raises:
        InvalidInput: If credits_spent is negative or not a whole number
    """
    credits = _validate_credits(credits_spent)
    tier = table.tier_for(credits)
    cost = Decimal(credits) * tier.rate
    return int(quantize_half_up(cost, Decimal("1")))


def unit_cost(credits_spent: int, table: PricingTable = DEFAULT_PRICING_TABLE) -> Decimal:
    """Per-credit rate, in minor units, applied at this usage level."""
    return table.tier_for(_validate_credits(credits_spent)).rate
