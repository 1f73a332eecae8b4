"""
Data models for analytics inputs.

Defines the immutable records consumed from the analytics endpoints and
the parsers that build them from JSON-shaped payloads.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Mapping, Union

DateLike = Union[date, datetime, str]


@dataclass(frozen=True)
class UsageRecord:
    """A single credit spend by one user on one feature."""
    user_id: str
    feature_name: str
    credits_spent: int
    occurred_on: date

    def __post_init__(self):
        if self.credits_spent < 0:
            raise ValueError("credits_spent cannot be negative")


@dataclass(frozen=True)
class PeriodAggregate:
    """Totals for one period (current or previous month)."""
    revenue: int  # Minor units
    user_count: int
    credits_used: int

    def __post_init__(self):
        """Validate aggregates are non-negative."""
        if self.revenue < 0:
            raise ValueError("revenue cannot be negative")
        if self.user_count < 0:
            raise ValueError("user_count cannot be negative")
        if self.credits_used < 0:
            raise ValueError("credits_used cannot be negative")

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "PeriodAggregate":
        """Build from a monthly-trends period: {revenue, users, credits}."""
        return cls(
            revenue=to_minor_units(data["revenue"]),
            user_count=_non_negative_int(data["users"], "users"),
            credits_used=_non_negative_int(data["credits"], "credits"),
        )


@dataclass(frozen=True)
class DashboardStats:
    """Platform-wide totals for the summary grid."""
    total_users: int
    active_subscriptions: int
    total_credits_used: int
    total_revenue: int  # Minor units, all time
    mrr: int  # Minor units

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "DashboardStats":
        return cls(
            total_users=_non_negative_int(data["total_users"], "total_users"),
            active_subscriptions=_non_negative_int(data["active_subscriptions"], "active_subscriptions"),
            total_credits_used=_non_negative_int(data["total_credits_used"], "total_credits_used"),
            total_revenue=to_minor_units(data["total_revenue"]),
            mrr=to_minor_units(data["mrr"]),
        )


@dataclass(frozen=True)
class FeatureUsage:
    """Credits burned by one feature across all users."""
    name: str
    credits: int
    count: int = 0

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "FeatureUsage":
        # cost-per-feature rows name the credits total_credits
        credits = data["credits"] if "credits" in data else data["total_credits"]
        count = data.get("count", data.get("usage_count", 0))
        return cls(
            name=str(data["name"]),
            credits=_non_negative_int(credits, "credits"),
            count=_non_negative_int(count, "count"),
        )


@dataclass(frozen=True)
class UserUsage:
    """Usage totals for one user."""
    user_id: str
    name: str
    credits_today: int
    total_credits_spent: int = 0
    total_generations: int = 0
    credits_balance: int = 0
    email: str = ""
    most_used_feature: str = ""
    plan_name: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "UserUsage":
        total = _non_negative_int(data.get("total_credits_spent", 0), "total_credits_spent")
        return cls(
            user_id=str(data["user_id"]),
            name=str(data.get("name") or data.get("email") or data["user_id"]),
            credits_today=_non_negative_int(data.get("credits_today", total), "credits_today"),
            total_credits_spent=total,
            total_generations=_non_negative_int(data.get("total_generations", 0), "total_generations"),
            credits_balance=_non_negative_int(data.get("credits_balance", 0), "credits_balance"),
            email=str(data.get("email") or ""),
            most_used_feature=str(data.get("most_used_feature") or ""),
            plan_name=str(data.get("plan_name") or ""),
        )


class UserSortKey(Enum):
    """Fields top users can be ranked by; values are UserUsage attributes."""
    CREDITS_TODAY = "credits_today"
    TOTAL_CREDITS = "total_credits_spent"
    GENERATIONS = "total_generations"
    BALANCE = "credits_balance"

    @classmethod
    def from_name(cls, name: str) -> "UserSortKey":
        """Parse a sort key by name, accepting the admin endpoint's aliases.

        Raises:
            ValueError: If the name is not a known sort key
        """
        aliases = {
            "credits_today": cls.CREDITS_TODAY,
            "total_credits": cls.TOTAL_CREDITS,
            "credits": cls.TOTAL_CREDITS,
            "generations": cls.GENERATIONS,
            "balance": cls.BALANCE,
        }
        try:
            return aliases[name.lower()]
        except (AttributeError, KeyError):
            valid = sorted(aliases)
            raise ValueError(f"Unknown sort key {name!r}, must be one of: {valid}")


@dataclass(frozen=True)
class DailyUsagePoint:
    """Credits spent on one calendar day, possibly one of several per day."""
    date: DateLike
    credits_spent: int

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "DailyUsagePoint":
        credits = data["total_credits_spent"] if "total_credits_spent" in data else data["credits_spent"]
        return cls(date=data["date"], credits_spent=credits)


def to_minor_units(amount: Any) -> int:
    """Convert a major-unit amount (e.g. dollars) to minor units.

    Raises:
        ValueError: If amount is not a non-negative number
    """
    if isinstance(amount, bool):
        raise ValueError(f"Invalid amount: {amount!r}")
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid amount: {amount!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _non_negative_int(value: Any, field: str) -> int:
    """Coerce a JSON number to a non-negative int."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{field}' must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"'{field}' must be a whole number, got {value!r}")
    if value < 0:
        raise ValueError(f"'{field}' cannot be negative")
    return int(value)


def payload_section(payload: Mapping[str, Any], key: str) -> Dict[str, Any]:
    """Get a mapping section from a payload, unwrapping a {"success", "data"} envelope."""
    section = payload[key]
    if isinstance(section, Mapping) and "success" in section and "data" in section:
        section = section["data"]
    if not isinstance(section, Mapping):
        raise ValueError(f"'{key}' must be a mapping")
    return dict(section)
