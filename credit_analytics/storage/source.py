"""
Read-only access to analytics endpoint payloads.

Each method mirrors one admin analytics endpoint. Any failure to read or
parse a payload is reported as UpstreamUnavailable for that endpoint only,
so one broken view never prevents the others from loading.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Protocol, Tuple, TypeVar

import yaml

from credit_analytics.core.errors import UpstreamUnavailable
from .models import (
    DailyUsagePoint,
    DashboardStats,
    FeatureUsage,
    PeriodAggregate,
    UserUsage,
    payload_section,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# View names double as snapshot keys
DASHBOARD_STATS = "dashboard_stats"
FEATURE_USAGE = "feature_usage"
TOP_USERS = "top_users"
COST_PER_FEATURE = "cost_per_feature"
MONTHLY_TRENDS = "monthly_trends"
DAILY_TRENDS = "daily_trends"


class AnalyticsSource(Protocol):
    """Anything that can supply the six analytics endpoint payloads."""

    def get_dashboard_stats(self) -> DashboardStats: ...

    def get_feature_usage(self) -> List[FeatureUsage]: ...

    def get_top_users(self) -> List[UserUsage]: ...

    def get_cost_per_feature(self) -> List[FeatureUsage]: ...

    def get_monthly_trends(self) -> Tuple[PeriodAggregate, PeriodAggregate]: ...

    def get_daily_trends(self) -> List[DailyUsagePoint]: ...


class PayloadSource:
    """Source backed by an in-memory mapping of endpoint payloads.

    The mapping holds one entry per endpoint, keyed by view name. Entries
    may be the bare ``data`` object or the full ``{"success", "data"}``
    response envelope.
    """

    def __init__(self, payload: Mapping[str, Any]):
        self._payload = payload

    def _load(self) -> Mapping[str, Any]:
        return self._payload

    def _fetch(self, view: str, parser: Callable[[Dict[str, Any]], T]) -> T:
        """Read one endpoint section and parse it.

        Raises:
            UpstreamUnavailable: If the section is missing or malformed
        """
        logger.debug("Fetching %s", view)
        try:
            payload = self._load()
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise UpstreamUnavailable(view, f"cannot load data ({e})")
        if not isinstance(payload, Mapping):
            raise UpstreamUnavailable(view, "payload is not a mapping")
        if view not in payload:
            raise UpstreamUnavailable(view, "no data returned")
        try:
            return parser(payload_section(payload, view))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailable(view, f"malformed response ({e})")

    def get_dashboard_stats(self) -> DashboardStats:
        return self._fetch(DASHBOARD_STATS, DashboardStats.from_payload)

    def get_feature_usage(self) -> List[FeatureUsage]:
        return self._fetch(
            FEATURE_USAGE,
            lambda data: [FeatureUsage.from_payload(row) for row in data["features"]],
        )

    def get_top_users(self) -> List[UserUsage]:
        return self._fetch(
            TOP_USERS,
            lambda data: [UserUsage.from_payload(row) for row in data["top_users"]],
        )

    def get_cost_per_feature(self) -> List[FeatureUsage]:
        return self._fetch(
            COST_PER_FEATURE,
            lambda data: [FeatureUsage.from_payload(row) for row in data["features"]],
        )

    def get_monthly_trends(self) -> Tuple[PeriodAggregate, PeriodAggregate]:
        return self._fetch(
            MONTHLY_TRENDS,
            lambda data: (
                PeriodAggregate.from_payload(data["current_month"]),
                PeriodAggregate.from_payload(data["previous_month"]),
            ),
        )

    def get_daily_trends(self) -> List[DailyUsagePoint]:
        """Daily rows are passed through unvalidated; the series builder checks them."""
        return self._fetch(
            DAILY_TRENDS,
            lambda data: [DailyUsagePoint.from_payload(row) for row in data["trends"]],
        )


class SnapshotSource(PayloadSource):
    """Source that reads endpoint payloads from a JSON or YAML file.

    The file is re-read on every fetch, so each view sees the file as it
    is at request time and fails independently if it cannot be read.
    """

    def __init__(self, path: str):
        super().__init__({})
        self.path = path

    def _load(self) -> Mapping[str, Any]:
        snapshot_path = Path(self.path)
        with open(snapshot_path, 'r', encoding='utf-8') as f:
            payload = yaml.safe_load(f)
        return payload if payload is not None else {}
