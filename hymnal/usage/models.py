"""AI usage counters and limits."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class UsageStats:
    """Counters for one provider/model pair on one day."""

    provider: str
    model: str
    day: date
    request_count: int = 0
    total_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost: float = 0.0
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def stats_key(self) -> str:
        return stats_key(self.provider, self.model, self.day)

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "date": datetime(self.day.year, self.day.month, self.day.day).isoformat(),
            "requestCount": self.request_count,
            "totalTokens": self.total_tokens,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "cost": self.cost,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UsageStats:
        raw_date = data.get("date")
        day = datetime.fromisoformat(raw_date).date() if raw_date else date.today()
        return cls(
            provider=str(data.get("provider") or ""),
            model=str(data.get("model") or ""),
            day=day,
            request_count=int(data.get("requestCount") or 0),
            total_tokens=int(data.get("totalTokens") or 0),
            prompt_tokens=int(data.get("promptTokens") or 0),
            completion_tokens=int(data.get("completionTokens") or 0),
            cost=float(data.get("cost") or 0.0),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True, slots=True)
class UsageLimits:
    """Admin-configured ceilings; ``near_limit_ratio`` sets the warning threshold."""

    daily_request_limit: int = 1000
    hourly_request_limit: int = 60
    daily_token_limit: int = 100_000
    monthly_request_limit: int = 10_000
    monthly_cost_limit: float = 50.0
    near_limit_ratio: float = 0.8

    def __post_init__(self) -> None:
        if not 0.0 < self.near_limit_ratio <= 1.0:
            raise ValueError("near_limit_ratio must be in (0, 1]")
        for name in (
            "daily_request_limit",
            "hourly_request_limit",
            "daily_token_limit",
            "monthly_request_limit",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.monthly_cost_limit < 0:
            raise ValueError("monthly_cost_limit must not be negative")

    def to_dict(self) -> dict[str, Any]:
        return {
            "dailyRequestLimit": self.daily_request_limit,
            "hourlyRequestLimit": self.hourly_request_limit,
            "dailyTokenLimit": self.daily_token_limit,
            "monthlyRequestLimit": self.monthly_request_limit,
            "monthlyCostLimit": self.monthly_cost_limit,
            "nearLimitRatio": self.near_limit_ratio,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UsageLimits:
        defaults = cls()
        return cls(
            daily_request_limit=int(data.get("dailyRequestLimit", defaults.daily_request_limit)),
            hourly_request_limit=int(data.get("hourlyRequestLimit", defaults.hourly_request_limit)),
            daily_token_limit=int(data.get("dailyTokenLimit", defaults.daily_token_limit)),
            monthly_request_limit=int(
                data.get("monthlyRequestLimit", defaults.monthly_request_limit)
            ),
            monthly_cost_limit=float(data.get("monthlyCostLimit", defaults.monthly_cost_limit)),
            near_limit_ratio=float(data.get("nearLimitRatio", defaults.near_limit_ratio)),
        )


def date_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def stats_key(provider: str, model: str, day: date) -> str:
    return f"{provider}_{model}_{date_key(day)}"
