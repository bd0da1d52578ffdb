"""Per-day AI usage accounting against configurable limits."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping

from hymnal.errors import classify_exception, format_error_for_user
from hymnal.store.base import AuthProvider, DocumentStore, KeyValueStore, UserIdentity
from hymnal.usage.models import UsageLimits, UsageStats, date_key, stats_key

logger = logging.getLogger(__name__)

LIMITS_KEY = "ai_usage_limits"
DAILY_KEY_PREFIX = "ai_usage_"
REMOTE_LIMITS_PATH = "system/ai_usage/limits"
REMOTE_DAILY_ROOT = "system/ai_usage/daily"
REMOTE_HOURLY_ROOT = "system/ai_usage/hourly"

# Cost per 1K tokens.
OPENAI_RATES: Mapping[str, float] = {
    "gpt-3.5-turbo": 0.002,
    "gpt-4": 0.03,
}
OPENAI_DEFAULT_RATE = 0.002
GEMINI_RATE = 0.001

_DAILY_KEY_RE = re.compile(r"^ai_usage_(\d{4}-\d{2}-\d{2})$")
_UNSAFE_PATH_CHARS_RE = re.compile(r"[.#$/\[\]\s]")


def estimate_cost(provider: str, model: str, total_tokens: int) -> float:
    """Estimate the dollar cost of ``total_tokens`` for a provider/model pair."""
    thousands = total_tokens / 1000
    provider_name = provider.lower()
    if provider_name == "openai":
        return thousands * OPENAI_RATES.get(model.lower(), OPENAI_DEFAULT_RATE)
    if provider_name == "gemini":
        return thousands * GEMINI_RATE
    return 0.0


def clean_model_name(model: str) -> str:
    return _UNSAFE_PATH_CHARS_RE.sub("_", model)


def hour_key(moment: datetime) -> int:
    """Epoch milliseconds of the start of ``moment``'s hour."""
    start = moment.replace(minute=0, second=0, microsecond=0)
    return int(start.timestamp() * 1000)


class UsageTracker:
    """Accumulates request, token and cost counters per day, provider and model.

    Today's counters live in memory and are written through to the local
    store on every call. When a user is signed in they are mirrored to the
    remote document store as daily and hourly documents. Every collaborator
    failure is logged and swallowed so that tracking never breaks the caller.
    """

    def __init__(
        self,
        store: KeyValueStore,
        remote: DocumentStore | None = None,
        auth: AuthProvider | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._remote = remote
        self._auth = auth
        self._clock = clock
        self._today_stats: dict[str, UsageStats] = {}
        self._limits = UsageLimits()
        self.last_notice = ""

    @property
    def limits(self) -> UsageLimits:
        return self._limits

    def initialize(self) -> None:
        self._load_today_stats()
        self._load_limits()
        logger.info("Usage tracker ready with %d stat entries", len(self._today_stats))

    def track_usage(
        self,
        provider: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        metadata: Mapping[str, Any] | None = None,
    ) -> UsageStats:
        if prompt_tokens < 0 or completion_tokens < 0:
            raise ValueError("token counts must be non-negative")
        now = self._clock()
        today = now.date()
        key = stats_key(provider, model, today)
        total = prompt_tokens + completion_tokens
        self._drop_past_days(today)
        existing = self._today_stats.get(key) or UsageStats(provider=provider, model=model, day=today)

        merged_metadata = dict(existing.metadata)
        merged_metadata.update(metadata or {})
        merged_metadata["lastUsed"] = now.isoformat()

        updated = replace(
            existing,
            request_count=existing.request_count + 1,
            total_tokens=existing.total_tokens + total,
            prompt_tokens=existing.prompt_tokens + prompt_tokens,
            completion_tokens=existing.completion_tokens + completion_tokens,
            cost=existing.cost + estimate_cost(provider, model, total),
            metadata=merged_metadata,
        )
        self._today_stats[key] = updated
        self._save_locally(key, updated)
        self._save_remotely(updated, now)
        logger.debug("Usage tracked: %s/%s - %d tokens", provider, model, total)
        return updated

    def estimate_cost(self, provider: str, model: str, total_tokens: int) -> float:
        return estimate_cost(provider, model, total_tokens)

    def get_usage(self, provider: str, model: str) -> UsageStats | None:
        """Today's counters for one provider/model pair."""
        return self._today_stats.get(stats_key(provider, model, self._today()))

    def get_today_usage(self) -> dict[str, Any]:
        today = self._today()
        total_requests = 0
        total_tokens = 0
        total_cost = 0.0
        breakdown: dict[str, int] = {}
        for stats in self._today_stats.values():
            if stats.day != today:
                continue
            total_requests += stats.request_count
            total_tokens += stats.total_tokens
            total_cost += stats.cost
            pair = f"{stats.provider}/{stats.model}"
            breakdown[pair] = breakdown.get(pair, 0) + stats.request_count

        limits = self._limits
        return {
            "totalRequests": total_requests,
            "totalTokens": total_tokens,
            "totalCost": total_cost,
            "providerBreakdown": breakdown,
            "limits": limits.to_dict(),
            "percentages": {
                "requestsUsed": _percent(total_requests, limits.daily_request_limit),
                "tokensUsed": _percent(total_tokens, limits.daily_token_limit),
            },
        }

    def check_usage_limits(self) -> dict[str, bool]:
        usage = self.get_today_usage()
        requests = usage["totalRequests"]
        tokens = usage["totalTokens"]
        limits = self._limits
        ratio = limits.near_limit_ratio
        return {
            "dailyRequestsExceeded": requests >= limits.daily_request_limit,
            "dailyTokensExceeded": tokens >= limits.daily_token_limit,
            "nearDailyRequestLimit": requests >= limits.daily_request_limit * ratio,
            "nearDailyTokenLimit": tokens >= limits.daily_token_limit * ratio,
        }

    def update_limits(self, limits: UsageLimits) -> bool:
        """Save new limits locally and mirror them for a signed-in user.

        The limits take effect only once the local save succeeds. A failed
        remote mirror keeps them active, since they are already stored on
        this device, but still returns False with a notice. Stored history
        is untouched.
        """
        self.last_notice = ""
        try:
            self._store.set(LIMITS_KEY, limits.to_dict())
        except Exception as exc:
            self._limits_save_failed(exc)
            return False
        self._limits = limits

        user = self._current_user()
        if user is not None and self._remote is not None:
            try:
                self._remote.set_document(REMOTE_LIMITS_PATH, limits.to_dict())
            except Exception as exc:
                self._limits_save_failed(exc)
                return False
        logger.info("Usage limits updated")
        return True

    def _limits_save_failed(self, exc: Exception) -> None:
        error = classify_exception(exc)
        logger.error("Failed to save usage limits: %s", error.to_dict())
        self.last_notice = format_error_for_user(error)

    def get_provider_usage(self, provider: str) -> dict[str, int]:
        wanted = provider.lower()
        requests = 0
        tokens = 0
        today = self._today()
        for stats in self._today_stats.values():
            if stats.day == today and stats.provider.lower() == wanted:
                requests += stats.request_count
                tokens += stats.total_tokens
        return {"dailyRequests": requests, "dailyTokens": tokens}

    def get_hourly_request_count(self, provider: str, model: str) -> int:
        user = self._current_user()
        if user is None or self._remote is None:
            return 0
        path = self._hourly_path(user, provider, model, hour_key(self._clock()))
        try:
            doc = self._remote.get_document(path)
        except Exception:
            logger.warning("Failed to read hourly usage for %s", path, exc_info=True)
            return 0
        if not doc:
            return 0
        return int(doc.get("requestCount") or 0)

    def get_historical_usage(
        self,
        provider: str | None = None,
        model: str | None = None,
        start: date | None = None,
        end: date | None = None,
        limit: int = 30,
    ) -> list[UsageStats]:
        """Locally saved daily stats within ``[start, end]``, newest first."""
        today = self._today()
        end = end or today
        start = start or today - timedelta(days=30)
        rows: list[UsageStats] = []
        try:
            keys = self._store.keys()
        except Exception:
            logger.warning("Failed to list stored usage history", exc_info=True)
            return []

        for key in keys:
            match = _DAILY_KEY_RE.match(key)
            if match is None:
                continue
            try:
                day = date.fromisoformat(match.group(1))
            except ValueError:
                continue
            if not start <= day <= end:
                continue
            for stats in self._read_day(key).values():
                if provider is not None and stats.provider != provider:
                    continue
                if model is not None and stats.model != model:
                    continue
                rows.append(stats)

        rows.sort(key=lambda s: (s.day, s.provider, s.model), reverse=True)
        return rows[:limit] if limit > 0 else rows

    def reset_today(self) -> None:
        """Drop today's counters from memory and the local store."""
        today = self._today()
        self._today_stats = {k: v for k, v in self._today_stats.items() if v.day != today}
        try:
            self._store.remove(self._daily_key(today))
        except Exception:
            logger.warning("Failed to clear today's usage", exc_info=True)
        logger.info("Usage counters reset for %s", date_key(today))

    def _today(self) -> date:
        return self._clock().date()

    def _drop_past_days(self, today: date) -> None:
        self._today_stats = {k: v for k, v in self._today_stats.items() if v.day == today}

    def _current_user(self) -> UserIdentity | None:
        if self._auth is None:
            return None
        try:
            return self._auth.current_user()
        except Exception:
            logger.warning("Auth provider failed", exc_info=True)
            return None

    @staticmethod
    def _daily_key(day: date) -> str:
        return f"{DAILY_KEY_PREFIX}{date_key(day)}"

    @staticmethod
    def _hourly_path(user: UserIdentity, provider: str, model: str, hour: int) -> str:
        return f"{REMOTE_HOURLY_ROOT}/{user.uid}/{provider}_{clean_model_name(model)}/{hour}"

    def _read_day(self, key: str) -> dict[str, UsageStats]:
        try:
            raw = self._store.get(key, {})
        except Exception:
            logger.warning("Failed to read %s", key, exc_info=True)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed usage entry %s", key)
            return {}
        parsed: dict[str, UsageStats] = {}
        for stat_key, value in raw.items():
            try:
                parsed[stat_key] = UsageStats.from_dict(value)
            except (TypeError, ValueError, AttributeError):
                logger.warning("Skipping unreadable usage stat %s", stat_key)
        return parsed

    def _load_today_stats(self) -> None:
        self._today_stats.update(self._read_day(self._daily_key(self._today())))

    def _load_limits(self) -> None:
        user = self._current_user()
        if user is not None and self._remote is not None:
            try:
                doc = self._remote.get_document(REMOTE_LIMITS_PATH)
                if doc:
                    self._limits = UsageLimits.from_dict(doc)
                    return
            except Exception:
                logger.warning("Failed to load remote usage limits", exc_info=True)
        try:
            stored = self._store.get(LIMITS_KEY)
            if stored:
                self._limits = UsageLimits.from_dict(stored)
        except Exception:
            logger.warning("Failed to load stored usage limits", exc_info=True)

    def _save_locally(self, key: str, stats: UsageStats) -> None:
        day_key = self._daily_key(stats.day)
        try:
            existing = self._store.get(day_key, {})
            if not isinstance(existing, dict):
                existing = {}
            existing[key] = stats.to_dict()
            self._store.set(day_key, existing)
        except Exception:
            logger.error("Failed to save usage locally", exc_info=True)

    def _save_remotely(self, stats: UsageStats, now: datetime) -> None:
        user = self._current_user()
        if user is None or self._remote is None:
            return
        pair = f"{stats.provider}_{clean_model_name(stats.model)}"
        try:
            self._remote.set_document(
                f"{REMOTE_DAILY_ROOT}/{user.uid}/{date_key(stats.day)}/{pair}",
                stats.to_dict(),
            )
            self._remote.set_document(
                self._hourly_path(user, stats.provider, stats.model, hour_key(now)),
                {"requestCount": stats.request_count, "timestamp": now.isoformat()},
            )
        except Exception:
            logger.error("Failed to mirror usage remotely", exc_info=True)


def _percent(used: int, limit: int) -> float:
    if limit <= 0:
        return 0.0
    return used / limit * 100
