"""
Month-over-month growth calculation.

Derives percentage change between a current and a previous period.
"""

import math
from decimal import Decimal
from enum import Enum
from typing import Optional

from .errors import AmbiguousGrowthInput, InvalidInput
from .formatting import quantize_half_up


class ZeroBaselinePolicy(Enum):
    """How growth from a zero previous-period value is reported."""
    NOT_APPLICABLE = "not_applicable"  # No meaningful percentage, shown as N/A
    CLAMP = "clamp"  # Treated as 100% "new activity"


CLAMPED_GROWTH = 100.0


def growth_rate(current: float, previous: float) -> float:
    """Compute raw percentage change from previous to current.

    Args:
        current: Current period value
        previous: Previous period value

    Returns:
        Unrounded percentage change; 0.0 when both values are zero

    Raises:
        InvalidInput: If either value is not finite
        AmbiguousGrowthInput: If previous is zero and current is not
    """
    for name, value in (("current", current), ("previous", previous)):
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise InvalidInput(f"{name} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise InvalidInput(f"{name} must be finite, got {value!r}")

    if previous == 0:
        if current == 0:
            return 0.0
        raise AmbiguousGrowthInput(current)

    change = (Decimal(str(current)) - Decimal(str(previous))) / Decimal(str(previous))
    return float(change * 100)


def compute_growth(
    current: float,
    previous: float,
    policy: ZeroBaselinePolicy = ZeroBaselinePolicy.NOT_APPLICABLE,
) -> Optional[float]:
    """Compute growth rounded to one decimal place.

    Args:
        current: Current period value
        previous: Previous period value
        policy: Resolution for a zero previous value with non-zero current

    Returns:
        Percentage change, or None when not applicable under the policy
    """
    try:
        rate = growth_rate(current, previous)
    except AmbiguousGrowthInput:
        if policy is ZeroBaselinePolicy.CLAMP:
            return CLAMPED_GROWTH
        return None

    rounded = quantize_half_up(Decimal(str(rate)), Decimal("0.1"))
    # Tiny negative changes would otherwise render as "-0.0"
    return 0.0 if rounded == 0 else float(rounded)
