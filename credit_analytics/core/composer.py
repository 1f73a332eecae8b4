"""
Composition of dashboard views.

Combines cost estimation, growth and daily series into the ranked,
formatted records displayed on the admin analytics dashboard.

Each view is built independently:
1. A view whose data cannot be fetched degrades to a safe default
2. The failure is reported once as a one-line error on that view
3. Sibling views are computed regardless, and nothing is retried
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from .daily_series import MonthAnchor, build_daily_series
from .errors import InvalidInput, UpstreamUnavailable
from .formatting import (
    format_count,
    format_credits,
    format_currency,
    format_growth,
    format_magnitude,
    format_percentage,
    quantize_half_up,
)
from .growth import ZeroBaselinePolicy, compute_growth
from .pricing import DEFAULT_PRICING_TABLE, PricingTable, estimate_cost
from credit_analytics.config.loader import DEFAULT_CONFIG, AnalyticsConfig
from credit_analytics.storage.models import (
    DashboardStats,
    FeatureUsage,
    PeriodAggregate,
    UserSortKey,
    UserUsage,
)
from credit_analytics.storage.source import (
    COST_PER_FEATURE,
    DAILY_TRENDS,
    DASHBOARD_STATS,
    FEATURE_USAGE,
    MONTHLY_TRENDS,
    TOP_USERS,
    AnalyticsSource,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserCostEntry:
    """A ranked user with the estimated cost of their credits."""
    rank: int
    user_id: str
    name: str
    credits: int
    cost_minor: int
    cost_display: str


@dataclass(frozen=True)
class FeatureShareEntry:
    """A ranked feature with its share of all credits burned."""
    rank: int
    name: str
    credits: int
    percentage: float
    cost_minor: int
    credits_display: str
    percentage_display: str
    cost_display: str


@dataclass(frozen=True)
class FeatureCostEntry:
    """Estimated cost of one feature's total credits."""
    name: str
    credits: int
    cost_minor: int
    cost_display: str


@dataclass
class FeatureCostReport:
    """Per-feature costs and their sum."""
    entries: List[FeatureCostEntry]
    total_cost_minor: int

    @property
    def total_cost_display(self) -> str:
        return format_currency(self.total_cost_minor)


@dataclass(frozen=True)
class MonthlyTrends:
    """Month-over-month growth of the three tracked metrics."""
    revenue_growth: Optional[float]
    user_growth: Optional[float]
    usage_growth: Optional[float]

    def rows(self) -> List[Tuple[str, str]]:
        """Display rows as (label, signed percentage)."""
        return [
            ("Revenue Growth", format_growth(self.revenue_growth)),
            ("User Growth", format_growth(self.user_growth)),
            ("Usage Growth", format_growth(self.usage_growth)),
        ]


@dataclass(frozen=True)
class StatCard:
    """One tile of the summary grid."""
    title: str
    value: str
    change: str = ""


@dataclass
class ViewResult:
    """Outcome of building one dashboard view."""
    name: str
    data: Any
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class AnalyticsDashboard:
    """All dashboard views, in display order."""
    views: List[ViewResult] = field(default_factory=list)

    def view(self, name: str) -> ViewResult:
        for result in self.views:
            if result.name == name:
                return result
        raise KeyError(name)

    @property
    def errors(self) -> List[str]:
        return [result.error for result in self.views if result.error]


def _check_limit(limit: Optional[int]) -> None:
    if limit is None:
        return
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidInput(f"limit must be a positive integer, got {limit!r}")


def _resolve_sort_key(sort_by: Union[UserSortKey, str]) -> UserSortKey:
    """Parse a sort key, falling back to credits today for unknown names."""
    if isinstance(sort_by, UserSortKey):
        return sort_by
    try:
        return UserSortKey.from_name(sort_by)
    except ValueError:
        logger.warning("Unknown user sort key %r, ranking by credits today", sort_by)
        return UserSortKey.CREDITS_TODAY


def rank_top_users(
    users: Sequence[UserUsage],
    limit: Optional[int] = 5,
    sort_by: Union[UserSortKey, str] = UserSortKey.CREDITS_TODAY,
    table: PricingTable = DEFAULT_PRICING_TABLE,
) -> List[UserCostEntry]:
    """Rank users by a sort key, highest first.

    Ties keep their input order. The reported credits, and the cost
    estimated from them, are the sort key's credits when it is a credit
    field and credits today otherwise.

    Args:
        users: Usage totals per user
        limit: Maximum number of entries, None for all
        sort_by: Ranking field
        table: Pricing table for cost estimates

    Returns:
        Ranked UserCostEntry list, rank starting at 1
    """
    _check_limit(limit)
    key = _resolve_sort_key(sort_by)

    # sorted() is stable with reverse=True, equal keys keep input order
    ranked = sorted(users, key=lambda u: getattr(u, key.value), reverse=True)
    if limit is not None:
        ranked = ranked[:limit]

    credit_field = key.value if key in (UserSortKey.CREDITS_TODAY, UserSortKey.TOTAL_CREDITS) \
        else UserSortKey.CREDITS_TODAY.value

    entries = []
    for rank, user in enumerate(ranked, start=1):
        credits = getattr(user, credit_field)
        cost = estimate_cost(credits, table)
        entries.append(UserCostEntry(
            rank=rank,
            user_id=user.user_id,
            name=user.name,
            credits=credits,
            cost_minor=cost,
            cost_display=format_currency(cost),
        ))
    return entries


def _share(credits: int, total: int) -> float:
    if total == 0:
        return 0.0
    percentage = Decimal(credits) * 100 / Decimal(total)
    return float(quantize_half_up(percentage, Decimal("0.1")))


def feature_usage_shares(
    features: Sequence[FeatureUsage],
    limit: Optional[int] = None,
    table: PricingTable = DEFAULT_PRICING_TABLE,
) -> List[FeatureShareEntry]:
    """Rank features by their share of all credits burned.

    Shares are taken against the total of every feature, including those
    cut by the limit, and are rounded to one decimal place.
    """
    _check_limit(limit)
    total = sum(feature.credits for feature in features)

    ranked = sorted(features, key=lambda f: f.credits, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]

    entries = []
    for rank, feature in enumerate(ranked, start=1):
        percentage = _share(feature.credits, total)
        cost = estimate_cost(feature.credits, table)
        entries.append(FeatureShareEntry(
            rank=rank,
            name=feature.name,
            credits=feature.credits,
            percentage=percentage,
            cost_minor=cost,
            credits_display=format_credits(feature.credits),
            percentage_display=format_percentage(percentage),
            cost_display=format_currency(cost),
        ))
    return entries


def cost_per_feature(
    features: Sequence[FeatureUsage],
    table: PricingTable = DEFAULT_PRICING_TABLE,
) -> FeatureCostReport:
    """Estimate each feature's cost independently.

    Credits are never pooled across features before pricing, so the
    total is the sum of the per-feature estimates.
    """
    entries = []
    for feature in features:
        cost = estimate_cost(feature.credits, table)
        entries.append(FeatureCostEntry(
            name=feature.name,
            credits=feature.credits,
            cost_minor=cost,
            cost_display=format_currency(cost),
        ))
    return FeatureCostReport(
        entries=entries,
        total_cost_minor=sum(entry.cost_minor for entry in entries)
    )


def monthly_trends(
    current: PeriodAggregate,
    previous: PeriodAggregate,
    policy: ZeroBaselinePolicy = ZeroBaselinePolicy.NOT_APPLICABLE,
) -> MonthlyTrends:
    return MonthlyTrends(
        revenue_growth=compute_growth(current.revenue, previous.revenue, policy),
        user_growth=compute_growth(current.user_count, previous.user_count, policy),
        usage_growth=compute_growth(current.credits_used, previous.credits_used, policy),
    )


def _change(growth: Optional[float]) -> str:
    return f"{format_growth(growth)} from last month"


def summary_cards(
    stats: DashboardStats,
    current: Optional[PeriodAggregate] = None,
    trends: Optional[MonthlyTrends] = None,
) -> List[StatCard]:
    """Build the summary grid.

    Month-over-month changes and this month's revenue come from the
    monthly trends data; without it those parts render as blank or N/A.
    """
    if stats.total_users > 0:
        average = quantize_half_up(Decimal(stats.total_credits_used) / stats.total_users, Decimal("0.1"))
    else:
        average = Decimal(0)

    return [
        StatCard(
            "Total Users",
            format_count(stats.total_users),
            _change(trends.user_growth) if trends else "",
        ),
        StatCard("Active Subscriptions", format_count(stats.active_subscriptions)),
        StatCard(
            "Total Credits Used",
            format_magnitude(stats.total_credits_used),
            _change(trends.usage_growth) if trends else "",
        ),
        StatCard(
            "Revenue This Month",
            format_currency(current.revenue) if current else "N/A",
            _change(trends.revenue_growth) if trends else "",
        ),
        StatCard("Monthly Recurring Revenue", format_currency(stats.mrr)),
        StatCard("Total Revenue", format_currency(stats.total_revenue)),
        StatCard("Avg Credits/User", format_magnitude(average)),
    ]


def _unavailable(name: str, error: UpstreamUnavailable) -> str:
    """Log a view failure once and return its one-line message."""
    logger.warning("View %s unavailable: %s", name, error.reason)
    return f"Failed to load {name}: {error.reason}"


def _run_view(name: str, build: Callable[[], Any], default: Any) -> ViewResult:
    """Build one view, degrading to the default if its data is unavailable."""
    try:
        return ViewResult(name=name, data=build())
    except UpstreamUnavailable as e:
        return ViewResult(name=name, data=default, error=_unavailable(name, e))


def daily_usage_view(
    source: AnalyticsSource,
    window_days: int,
    anchor: MonthAnchor,
) -> ViewResult:
    """Daily credit usage for the window; zero-filled if the source fails."""
    try:
        records = source.get_daily_trends()
    except UpstreamUnavailable as e:
        return ViewResult(
            name=DAILY_TRENDS,
            data=build_daily_series(None, window_days, anchor),
            error=_unavailable(DAILY_TRENDS, e),
        )
    return ViewResult(name=DAILY_TRENDS, data=build_daily_series(records, window_days, anchor))


def compose_dashboard(
    source: AnalyticsSource,
    config: AnalyticsConfig = DEFAULT_CONFIG,
    anchor: Optional[MonthAnchor] = None,
    window_days: Optional[int] = None,
) -> AnalyticsDashboard:
    """Build every dashboard view from a source.

    Args:
        source: Supplier of the endpoint payloads
        config: Pricing, growth policy and ranking limits
        anchor: Month of the daily series, defaults to the current UTC month
        window_days: Days in the daily series, defaults to the anchor month's length

    Returns:
        AnalyticsDashboard with one ViewResult per view
    """
    anchor = anchor or MonthAnchor.current()
    window_days = window_days if window_days is not None else anchor.days_in_month()
    table = config.pricing
    limits = config.dashboard

    # Monthly periods feed both the trends view and the summary grid
    periods: Optional[Tuple[PeriodAggregate, PeriodAggregate]] = None
    try:
        periods = source.get_monthly_trends()
        trends_view = ViewResult(
            name=MONTHLY_TRENDS,
            data=monthly_trends(*periods, config.zero_baseline_policy),
        )
    except UpstreamUnavailable as e:
        trends_view = ViewResult(name=MONTHLY_TRENDS, data=None, error=_unavailable(MONTHLY_TRENDS, e))

    def build_summary() -> List[StatCard]:
        current = periods[0] if periods else None
        return summary_cards(source.get_dashboard_stats(), current, trends_view.data)

    views = [
        _run_view(DASHBOARD_STATS, build_summary, []),
        _run_view(
            FEATURE_USAGE,
            lambda: feature_usage_shares(source.get_feature_usage(), limits.top_features_limit, table),
            [],
        ),
        _run_view(
            TOP_USERS,
            lambda: rank_top_users(
                source.get_top_users(), limits.top_users_limit, limits.user_sort_key, table
            ),
            [],
        ),
        _run_view(
            COST_PER_FEATURE,
            lambda: cost_per_feature(source.get_cost_per_feature(), table),
            FeatureCostReport(entries=[], total_cost_minor=0),
        ),
        trends_view,
        daily_usage_view(source, window_days, anchor),
    ]
    return AnalyticsDashboard(views=views)
