"""AI usage tracking exports."""

from hymnal.usage.models import UsageLimits, UsageStats
from hymnal.usage.tracker import UsageTracker, estimate_cost

__all__ = [
    "UsageLimits",
    "UsageStats",
    "UsageTracker",
    "estimate_cost",
]
