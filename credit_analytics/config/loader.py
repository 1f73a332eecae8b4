"""
Configuration management and loading.

Handles pricing tiers, growth policy and dashboard limits.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

from credit_analytics.core.growth import ZeroBaselinePolicy
from credit_analytics.core.pricing import DEFAULT_PRICING_TABLE, PricingTable, PricingTier
from credit_analytics.storage.models import UserSortKey


@dataclass(frozen=True)
class DashboardConfig:
    """Limits and ordering for ranked dashboard views."""
    top_users_limit: int = 5
    top_features_limit: int = 4
    user_sort_key: UserSortKey = UserSortKey.CREDITS_TODAY

    def __post_init__(self):
        """Validate limits are positive."""
        if self.top_users_limit <= 0:
            raise ValueError("top_users_limit must be > 0")
        if self.top_features_limit <= 0:
            raise ValueError("top_features_limit must be > 0")


@dataclass(frozen=True)
class AnalyticsConfig:
    """Complete analytics configuration."""
    pricing: PricingTable = DEFAULT_PRICING_TABLE
    zero_baseline_policy: ZeroBaselinePolicy = ZeroBaselinePolicy.NOT_APPLICABLE
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)


DEFAULT_CONFIG = AnalyticsConfig()


def load_analytics_config(path: str) -> AnalyticsConfig:
    """Load and validate analytics configuration from a YAML file.

    Every section is optional and falls back to the built-in defaults,
    but any key that is present is validated strictly so a typo never
    silently changes reported costs.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AnalyticsConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Analytics config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return DEFAULT_CONFIG
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    _reject_unknown_keys(raw_config, {'pricing', 'growth', 'dashboard'}, "configuration")

    pricing = DEFAULT_PRICING_TABLE
    if 'pricing' in raw_config:
        pricing = _parse_pricing(_section(raw_config, 'pricing'))

    policy = DEFAULT_CONFIG.zero_baseline_policy
    if 'growth' in raw_config:
        policy = _parse_growth(_section(raw_config, 'growth'))

    dashboard = DEFAULT_CONFIG.dashboard
    if 'dashboard' in raw_config:
        dashboard = _parse_dashboard(_section(raw_config, 'dashboard'))

    return AnalyticsConfig(
        pricing=pricing,
        zero_baseline_policy=policy,
        dashboard=dashboard
    )


def _section(raw_config: Dict, name: str) -> Dict:
    data = raw_config[name]
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    return data


def _reject_unknown_keys(data: Dict, allowed: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _require_int(value: Any, path: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValueError(f"'{path}' must be an integer >= {minimum}")
    return value


def _parse_pricing(data: Dict) -> PricingTable:
    """Parse and validate the pricing tier list.

    Raises:
        ValueError: If tiers are missing, malformed or out of order
    """
    _reject_unknown_keys(data, {'tiers'}, "pricing")

    if 'tiers' not in data:
        raise ValueError("Missing required 'tiers' in pricing")

    tiers_data = data['tiers']
    if not isinstance(tiers_data, list) or not tiers_data:
        raise ValueError("'pricing.tiers' must be a non-empty list")

    tiers: List[PricingTier] = []
    for i, tier_data in enumerate(tiers_data):
        path = f"pricing.tiers[{i}]"
        if not isinstance(tier_data, dict):
            raise ValueError(f"{path} must be a dictionary")
        _reject_unknown_keys(tier_data, {'upper_bound', 'price_minor', 'reference_credits'}, path)

        for key in ('upper_bound', 'price_minor', 'reference_credits'):
            if key not in tier_data:
                raise ValueError(f"Missing required '{key}' in {path}")

        upper_bound = tier_data['upper_bound']
        if upper_bound is not None:
            upper_bound = _require_int(upper_bound, f"{path}.upper_bound", 1)

        tiers.append(PricingTier(
            upper_bound_credits=upper_bound,
            price_minor=_require_int(tier_data['price_minor'], f"{path}.price_minor", 0),
            reference_credits=_require_int(tier_data['reference_credits'], f"{path}.reference_credits", 1)
        ))

    return PricingTable(tuple(tiers))


def _parse_growth(data: Dict) -> ZeroBaselinePolicy:
    _reject_unknown_keys(data, {'zero_baseline_policy'}, "growth")

    if 'zero_baseline_policy' not in data:
        return DEFAULT_CONFIG.zero_baseline_policy

    policy_str = data['zero_baseline_policy']
    if not isinstance(policy_str, str):
        raise ValueError("'growth.zero_baseline_policy' must be a string")

    try:
        return ZeroBaselinePolicy(policy_str.lower())
    except ValueError:
        valid_policies = [policy.value for policy in ZeroBaselinePolicy]
        raise ValueError(f"'growth.zero_baseline_policy' must be one of: {valid_policies}")


def _parse_dashboard(data: Dict) -> DashboardConfig:
    _reject_unknown_keys(data, {'top_users_limit', 'top_features_limit', 'user_sort_key'}, "dashboard")
    defaults = DEFAULT_CONFIG.dashboard

    sort_key = defaults.user_sort_key
    if 'user_sort_key' in data:
        if not isinstance(data['user_sort_key'], str):
            raise ValueError("'dashboard.user_sort_key' must be a string")
        sort_key = UserSortKey.from_name(data['user_sort_key'])

    return DashboardConfig(
        top_users_limit=_require_int(
            data.get('top_users_limit', defaults.top_users_limit), "dashboard.top_users_limit", 1
        ),
        top_features_limit=_require_int(
            data.get('top_features_limit', defaults.top_features_limit), "dashboard.top_features_limit", 1
        ),
        user_sort_key=sort_key
    )
