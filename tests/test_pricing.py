"""
Unit tests for pricing calculations.

Tests tier selection, rounding behavior, and error handling.
"""

import pytest
from decimal import Decimal, ROUND_HALF_UP

from credit_analytics.core.errors import InvalidInput
from credit_analytics.core.pricing import (
    DEFAULT_PRICING_TABLE,
    PricingTable,
    PricingTier,
    estimate_cost,
    unit_cost,
)


def _expected(credits: int, price: int, reference: int) -> int:
    """Reference half-up rounding of credits * price / reference."""
    value = Decimal(credits) * Decimal(price) / Decimal(reference)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class TestPricingTier:
    """Test PricingTier dataclass."""

    def test_rate_calculation(self):
        """Verify the effective per-credit rate."""
        tier = PricingTier(upper_bound_credits=6000, price_minor=424, reference_credits=6000)
        assert tier.rate == Decimal(424) / Decimal(6000)

    def test_unbounded_tier_covers_everything(self):
        """Verify an unbounded tier matches any quantity."""
        tier = PricingTier(upper_bound_credits=None, price_minor=7082, reference_credits=20000)
        assert tier.covers(10 ** 9)

    def test_bound_is_inclusive(self):
        """Verify the upper bound itself belongs to the tier."""
        tier = PricingTier(upper_bound_credits=6000, price_minor=424, reference_credits=6000)
        assert tier.covers(6000)
        assert not tier.covers(6001)

    def test_invalid_reference_credits(self):
        """Verify zero reference credits are rejected."""
        with pytest.raises(ValueError, match="reference_credits must be > 0"):
            PricingTier(upper_bound_credits=100, price_minor=1, reference_credits=0)

    def test_negative_price(self):
        """Verify negative prices are rejected."""
        with pytest.raises(ValueError, match="price_minor cannot be negative"):
            PricingTier(upper_bound_credits=100, price_minor=-1, reference_credits=100)


class TestPricingTable:
    """Test pricing table validation and lookup."""

    def test_default_table_tiers(self):
        """Verify the default tier thresholds and prices."""
        bounds = [tier.upper_bound_credits for tier in DEFAULT_PRICING_TABLE.tiers]
        prices = [tier.price_minor for tier in DEFAULT_PRICING_TABLE.tiers]
        assert bounds == [6000, 10000, None]
        assert prices == [424, 1417, 7082]

    def test_tier_for_boundaries(self):
        """Verify first-match lookup with inclusive bounds."""
        assert DEFAULT_PRICING_TABLE.tier_for(0).upper_bound_credits == 6000
        assert DEFAULT_PRICING_TABLE.tier_for(6000).upper_bound_credits == 6000
        assert DEFAULT_PRICING_TABLE.tier_for(6001).upper_bound_credits == 10000
        assert DEFAULT_PRICING_TABLE.tier_for(10000).upper_bound_credits == 10000
        assert DEFAULT_PRICING_TABLE.tier_for(10001).upper_bound_credits is None

    def test_empty_table_rejected(self):
        """Verify a table needs at least one tier."""
        with pytest.raises(ValueError, match="at least one tier"):
            PricingTable(())

    def test_bounded_last_tier_rejected(self):
        """Verify the last tier must be unbounded."""
        with pytest.raises(ValueError, match="Last pricing tier must be unbounded"):
            PricingTable((PricingTier(100, 10, 100),))

    def test_unbounded_middle_tier_rejected(self):
        """Verify only the last tier may be unbounded."""
        with pytest.raises(ValueError, match="Only the last pricing tier"):
            PricingTable((PricingTier(None, 10, 100), PricingTier(None, 10, 100)))

    def test_descending_bounds_rejected(self):
        """Verify bounds must ascend."""
        with pytest.raises(ValueError, match="strictly ascending"):
            PricingTable((
                PricingTier(200, 10, 100),
                PricingTier(100, 10, 100),
                PricingTier(None, 10, 100),
            ))


class TestCostEstimation:
    """Test cost estimation accuracy and rounding."""

    def test_zero_credits_cost(self):
        """Verify zero credits cost nothing."""
        assert estimate_cost(0) == 0

    @pytest.mark.parametrize("credits", [1, 100, 375, 2999, 5999, 6000])
    def test_first_tier(self, credits):
        """Verify credits up to 6,000 use the 424/6000 rate."""
        assert estimate_cost(credits) == _expected(credits, 424, 6000)

    @pytest.mark.parametrize("credits", [6001, 7500, 9999, 10000])
    def test_second_tier(self, credits):
        """Verify credits above 6,000 up to 10,000 use the 1417/10000 rate."""
        assert estimate_cost(credits) == _expected(credits, 1417, 10000)

    @pytest.mark.parametrize("credits", [10001, 20000, 450000, 1000000])
    def test_third_tier(self, credits):
        """Verify credits above 10,000 use the 7082/20000 rate."""
        assert estimate_cost(credits) == _expected(credits, 7082, 20000)

    def test_exact_tier_prices(self):
        """Verify the reference quantities reproduce the plan prices."""
        assert estimate_cost(6000) == 424
        assert estimate_cost(10000) == 1417
        assert estimate_cost(20000) == 7082

    def test_rounding_half_up(self):
        """Verify exact half cents round up, not to even."""
        # 375 * 424 / 6000 = 26.5
        assert estimate_cost(375) == 27

    def test_large_quantity(self):
        """Verify estimates wider than the default decimal precision."""
        assert estimate_cost(10 ** 30) == 3541 * 10 ** 26

    def test_monotonic_at_first_boundary(self):
        """Verify no cost drop around 6,000 credits."""
        costs = [estimate_cost(c) for c in (5999, 6000, 6001)]
        assert costs == [424, 424, 850]
        assert costs == sorted(costs)

    def test_monotonic_at_second_boundary(self):
        """Verify no cost drop around 10,000 credits."""
        costs = [estimate_cost(c) for c in (9999, 10000, 10001)]
        assert costs == [1417, 1417, 3541]
        assert costs == sorted(costs)

    def test_monotonic_over_range(self):
        """Verify cost never decreases as credits grow."""
        previous = 0
        for credits in range(0, 12001, 7):
            cost = estimate_cost(credits)
            assert cost >= previous
            previous = cost

    def test_whole_float_accepted(self):
        """Verify integral floats from JSON are accepted."""
        assert estimate_cost(6000.0) == 424

    def test_negative_credits_raise(self):
        """Verify negative usage is a contract violation."""
        with pytest.raises(InvalidInput, match="cannot be negative"):
            estimate_cost(-1)

    @pytest.mark.parametrize("value", [1.5, float("inf"), float("nan")])
    def test_non_integral_credits_raise(self, value):
        """Verify fractional and non-finite usage is rejected."""
        with pytest.raises(InvalidInput):
            estimate_cost(value)

    def test_bool_and_string_raise(self):
        """Verify non-numeric values are rejected."""
        with pytest.raises(InvalidInput):
            estimate_cost(True)
        with pytest.raises(InvalidInput):
            estimate_cost("100")

    def test_custom_table(self):
        """Verify estimation against a custom table."""
        table = PricingTable((
            PricingTier(upper_bound_credits=100, price_minor=100, reference_credits=100),
            PricingTier(upper_bound_credits=None, price_minor=50, reference_credits=100),
        ))
        assert estimate_cost(100, table) == 100
        # 101 * 0.5 = 50.5 -> 51
        assert estimate_cost(101, table) == 51


class TestUnitCost:
    """Test per-credit rate lookup."""

    def test_unit_cost_per_tier(self):
        """Verify the rate follows the matching tier."""
        assert unit_cost(100) == Decimal(424) / Decimal(6000)
        assert unit_cost(8000) == Decimal(1417) / Decimal(10000)
        assert unit_cost(50000) == Decimal(7082) / Decimal(20000)

    def test_unit_cost_validates_input(self):
        """Verify unit cost rejects negative credits."""
        with pytest.raises(InvalidInput):
            unit_cost(-10)
