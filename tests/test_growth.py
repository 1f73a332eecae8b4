"""
Unit tests for growth calculation.

Tests the growth formula, rounding and the zero baseline policy.
"""

import math

import pytest

from credit_analytics.core.errors import AmbiguousGrowthInput, InvalidInput
from credit_analytics.core.formatting import format_growth
from credit_analytics.core.growth import (
    CLAMPED_GROWTH,
    ZeroBaselinePolicy,
    compute_growth,
    growth_rate,
)


class TestGrowthRate:
    """Test the unrounded growth rate."""

    def test_positive_growth(self):
        assert growth_rate(150, 100) == 50.0

    def test_zero_to_zero(self):
        """Verify no activity in either period is 0% growth."""
        assert growth_rate(0, 0) == 0.0

    def test_zero_baseline_raises(self):
        """Verify growth from zero is reported as ambiguous."""
        with pytest.raises(AmbiguousGrowthInput) as exc_info:
            growth_rate(5, 0)
        assert exc_info.value.current == 5

    @pytest.mark.parametrize("current,previous", [
        (float("nan"), 100),
        (100, float("inf")),
        ("100", 100),
        (True, 100),
    ])
    def test_invalid_values_raise(self, current, previous):
        """Verify non-finite and non-numeric inputs are rejected."""
        with pytest.raises(InvalidInput):
            growth_rate(current, previous)


class TestComputeGrowth:
    """Test rounded growth and policy handling."""

    def test_fifty_percent_up(self):
        assert compute_growth(150, 100) == 50.0

    def test_fifty_percent_down(self):
        assert compute_growth(50, 100) == -50.0

    def test_zero_to_zero(self):
        assert compute_growth(0, 0) == 0.0

    def test_one_decimal_rounding(self):
        """Verify results are rounded to one decimal place."""
        assert compute_growth(2, 3) == -33.3
        assert compute_growth(1, 3) == -66.7
        assert compute_growth(123000, 100000) == 23.0

    def test_rounding_half_up(self):
        """Verify an exact half rounds away from zero."""
        # (100.05 - 100) / 100 * 100 = 0.05
        assert compute_growth(100.05, 100) == 0.1

    def test_tiny_decline_is_not_negative_zero(self):
        """Verify a decline that rounds to zero renders as +0.0%."""
        result = compute_growth(99.99, 100)
        assert result == 0.0
        assert math.copysign(1, result) == 1
        assert format_growth(result) == "+0.0%"

    def test_large_values(self):
        """Verify growth beyond the default decimal precision still rounds."""
        assert compute_growth(1e300, 1) == pytest.approx(1e302)

    def test_zero_baseline_not_applicable(self):
        """Verify the default policy reports growth from zero as N/A."""
        result = compute_growth(5, 0)
        assert result is None
        assert format_growth(result) == "N/A"

    def test_zero_baseline_clamp(self):
        """Verify the clamp policy reports growth from zero as 100%."""
        assert compute_growth(5, 0, ZeroBaselinePolicy.CLAMP) == CLAMPED_GROWTH
        assert format_growth(CLAMPED_GROWTH) == "+100.0%"

    def test_clamp_keeps_zero_to_zero(self):
        """Verify the clamp policy does not affect the 0 -> 0 case."""
        assert compute_growth(0, 0, ZeroBaselinePolicy.CLAMP) == 0.0

    def test_invalid_input_propagates(self):
        """Verify contract violations are not hidden by the policy."""
        with pytest.raises(InvalidInput):
            compute_growth(float("nan"), 0)


class TestGrowthFormatting:
    """Test signed growth strings."""

    def test_positive_sign(self):
        assert format_growth(50.0) == "+50.0%"

    def test_negative_sign(self):
        assert format_growth(-50.0) == "-50.0%"

    def test_zero_sign(self):
        assert format_growth(0.0) == "+0.0%"
