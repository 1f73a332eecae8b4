# credit_analytics/demo/seed_demo_data.py

import sys
from typing import Any, Dict

import yaml

DEMO_PAYLOAD: Dict[str, Any] = {
    "dashboard_stats": {
        "success": True,
        "data": {
            "total_users": 12847,
            "active_subscriptions": 3247,
            "total_credits_used": 1200000,
            "total_revenue": 184320.50,
            "mrr": 23456.00,
        },
    },
    "feature_usage": {
        "features": [
            {"name": "Text to Image", "count": 15000, "credits": 450000},
            {"name": "Image to Video", "count": 3500, "credits": 280000},
            {"name": "Image to Image", "count": 6000, "credits": 180000},
            {"name": "Text to Video", "count": 1125, "credits": 90000},
        ],
        "total_credits": 1000000,
    },
    "top_users": {
        "top_users": [
            {"user_id": "u-1", "name": "Sarah Johnson", "credits_today": 1240, "total_credits_spent": 18400},
            {"user_id": "u-2", "name": "Mike Chen", "credits_today": 980, "total_credits_spent": 9100},
            {"user_id": "u-3", "name": "Emma Davis", "credits_today": 856, "total_credits_spent": 7300},
            {"user_id": "u-4", "name": "James Wilson", "credits_today": 742, "total_credits_spent": 5900},
            {"user_id": "u-5", "name": "Lisa Park", "credits_today": 685, "total_credits_spent": 4100},
        ],
        "sorted_by": "credits",
    },
    "cost_per_feature": {
        "features": [
            {"name": "Text to Image", "usage_count": 15000, "total_credits": 450000},
            {"name": "Image to Video", "usage_count": 3500, "total_credits": 280000},
            {"name": "Image to Image", "usage_count": 6000, "total_credits": 180000},
            {"name": "Text to Video", "usage_count": 1125, "total_credits": 90000},
        ],
    },
    "monthly_trends": {
        "current_month": {"revenue": 23456.00, "users": 12847, "credits": 123000},
        "previous_month": {"revenue": 19878.00, "users": 11470, "credits": 100000},
    },
    "daily_trends": {
        "days": 30,
        "trends": [
            {"date": "2024-05-01", "total_credits_spent": 4200},
            {"date": "2024-05-02", "total_credits_spent": 3900},
            {"date": "2024-05-02T18:30:00+00:00", "total_credits_spent": 300},
            {"date": "2024-05-05", "total_credits_spent": 5100},
            {"date": "2024-05-22", "total_credits_spent": 6100},
        ],
    },
}


def write_demo_snapshot(path: str) -> None:
    """Write the demo payload as a YAML snapshot file."""
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(DEMO_PAYLOAD, f, sort_keys=False)


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else "demo_snapshot.yaml"
    write_demo_snapshot(target)
    print(f"Demo analytics snapshot written to {target}")
