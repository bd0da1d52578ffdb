"""Tests for hymnal.usage."""

from __future__ import annotations

from datetime import date

import pytest

from hymnal.store.base import StaticAuthProvider
from hymnal.store.memory import MemoryDocumentStore, MemoryStore
from hymnal.usage.models import UsageLimits, UsageStats
from hymnal.usage.tracker import (
    LIMITS_KEY,
    REMOTE_LIMITS_PATH,
    UsageTracker,
    clean_model_name,
    estimate_cost,
    hour_key,
)


class FailingStore(MemoryStore):
    def set(self, key, value):
        raise OSError("disk full")


def _tracker(store, clock, remote=None, auth=None) -> UsageTracker:
    tracker = UsageTracker(store, remote, auth, clock=clock)
    tracker.initialize()
    return tracker


class TestLimits:
    def test_near_limit_at_eighty_percent(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.update_limits(UsageLimits(daily_request_limit=100))
        for _ in range(81):
            tracker.track_usage("openai", "gpt-4", 1, 1)

        flags = tracker.check_usage_limits()
        assert flags["nearDailyRequestLimit"] is True
        assert flags["dailyRequestsExceeded"] is False

    def test_below_threshold_is_not_near(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.update_limits(UsageLimits(daily_request_limit=100))
        for _ in range(79):
            tracker.track_usage("openai", "gpt-4", 1, 1)

        assert tracker.check_usage_limits()["nearDailyRequestLimit"] is False

    def test_exceeded_at_limit(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.update_limits(UsageLimits(daily_request_limit=100, daily_token_limit=150))
        for _ in range(100):
            tracker.track_usage("gemini", "gemini-pro", 1, 0)

        flags = tracker.check_usage_limits()
        assert flags["dailyRequestsExceeded"] is True
        assert flags["nearDailyTokenLimit"] is False
        assert flags["dailyTokensExceeded"] is False

    def test_custom_ratio(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.update_limits(UsageLimits(daily_request_limit=10, near_limit_ratio=0.5))
        for _ in range(5):
            tracker.track_usage("openai", "gpt-4", 1, 1)
        assert tracker.check_usage_limits()["nearDailyRequestLimit"] is True

    @pytest.mark.parametrize(
        "kwargs",
        [{"near_limit_ratio": 0}, {"near_limit_ratio": 1.5}, {"daily_request_limit": -1}],
    )
    def test_invalid_limits_rejected(self, kwargs) -> None:
        with pytest.raises(ValueError):
            UsageLimits(**kwargs)

    def test_update_limits_failure_keeps_previous_limits(self, clock) -> None:
        tracker = _tracker(FailingStore(), clock)

        assert tracker.update_limits(UsageLimits(daily_request_limit=5)) is False
        assert tracker.limits == UsageLimits()
        assert tracker.last_notice == "Your change could not be saved on this device."

    def test_remote_limits_failure_keeps_local_save(self, store, clock, signed_in) -> None:
        class BrokenRemote(MemoryDocumentStore):
            def set_document(self, path, data):
                raise ConnectionError("offline")

        tracker = _tracker(store, clock, BrokenRemote(), signed_in)
        limits = UsageLimits(daily_request_limit=5)

        assert tracker.update_limits(limits) is False
        assert tracker.limits == limits
        assert store.get(LIMITS_KEY) == limits.to_dict()
        assert tracker.last_notice == (
            "The server could not be reached. Check your internet connection."
        )

    def test_remote_limits_take_precedence(self, store, clock, remote, signed_in) -> None:
        store.set(LIMITS_KEY, UsageLimits(daily_request_limit=7).to_dict())
        remote.set_document(REMOTE_LIMITS_PATH, UsageLimits(daily_request_limit=9).to_dict())

        assert _tracker(store, clock, remote, signed_in).limits.daily_request_limit == 9
        assert _tracker(store, clock).limits.daily_request_limit == 7


class TestTracking:
    def test_counters_accumulate(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.track_usage("openai", "gpt-4", 100, 50, {"feature": "summary"})
        clock.advance(minutes=5)
        stats = tracker.track_usage("openai", "gpt-4", 200, 150)

        assert stats.request_count == 2
        assert stats.prompt_tokens == 300
        assert stats.completion_tokens == 200
        assert stats.total_tokens == 500
        assert stats.cost == pytest.approx(0.015)
        assert stats.metadata["feature"] == "summary"
        assert stats.metadata["lastUsed"] == clock.now.isoformat()
        assert tracker.get_usage("openai", "gpt-4") == stats

    def test_local_store_keyed_by_day(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.track_usage("openai", "gpt-3.5-turbo", 10, 10)

        saved = store.get("ai_usage_2026-03-14")
        entry = saved["openai_gpt-3.5-turbo_2026-03-14"]
        assert entry["requestCount"] == 1
        assert entry["date"] == "2026-03-14T00:00:00"

    def test_today_usage_summary(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.update_limits(UsageLimits(daily_request_limit=10, daily_token_limit=1000))
        tracker.track_usage("openai", "gpt-4", 100, 100)
        tracker.track_usage("gemini", "gemini-pro", 50, 50)
        tracker.track_usage("gemini", "gemini-pro", 25, 25)

        usage = tracker.get_today_usage()
        assert usage["totalRequests"] == 3
        assert usage["totalTokens"] == 350
        assert usage["providerBreakdown"] == {"openai/gpt-4": 1, "gemini/gemini-pro": 2}
        assert usage["percentages"]["requestsUsed"] == pytest.approx(30.0)
        assert usage["percentages"]["tokensUsed"] == pytest.approx(35.0)
        assert usage["limits"]["dailyRequestLimit"] == 10

    def test_initialize_reloads_today(self, store, clock) -> None:
        _tracker(store, clock).track_usage("openai", "gpt-4", 10, 5)
        reloaded = _tracker(store, clock)

        stats = reloaded.get_usage("openai", "gpt-4")
        assert stats is not None
        assert stats.request_count == 1
        assert stats.total_tokens == 15

    def test_provider_usage_is_case_insensitive(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.track_usage("OpenAI", "gpt-4", 10, 10)
        tracker.track_usage("openai", "gpt-3.5-turbo", 5, 5)
        assert tracker.get_provider_usage("OPENAI") == {"dailyRequests": 2, "dailyTokens": 30}

    def test_reset_today(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.track_usage("openai", "gpt-4", 10, 10)
        tracker.reset_today()

        assert tracker.get_today_usage()["totalRequests"] == 0
        assert not store.contains("ai_usage_2026-03-14")

    def test_new_day_starts_fresh(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.track_usage("openai", "gpt-4", 10, 10)
        clock.advance(days=1)

        assert tracker.get_today_usage()["totalRequests"] == 0
        assert tracker.get_usage("openai", "gpt-4") is None
        assert tracker.track_usage("openai", "gpt-4", 1, 1).request_count == 1

    def test_provider_usage_resets_after_midnight(self, store, clock) -> None:
        tracker = _tracker(store, clock)
        tracker.track_usage("openai", "gpt-4", 10, 10)
        clock.advance(days=1)

        assert tracker.get_provider_usage("openai") == {"dailyRequests": 0, "dailyTokens": 0}
        tracker.track_usage("gemini", "gemini-pro", 1, 1)
        assert tracker.get_provider_usage("openai") == {"dailyRequests": 0, "dailyTokens": 0}
        assert [stats.day for stats in tracker._today_stats.values()] == [clock.now.date()]
        assert store.get("ai_usage_2026-03-14")["openai_gpt-4_2026-03-14"]["requestCount"] == 1

    @pytest.mark.parametrize(("prompt", "completion"), [(-500, 0), (0, -1)])
    def test_negative_tokens_rejected(self, store, clock, prompt, completion) -> None:
        tracker = _tracker(store, clock)
        tracker.track_usage("openai", "gpt-4", 100, 0)

        with pytest.raises(ValueError):
            tracker.track_usage("openai", "gpt-4", prompt, completion)

        stats = tracker.get_usage("openai", "gpt-4")
        assert stats.request_count == 1
        assert stats.total_tokens == 100
        assert stats.cost == pytest.approx(0.003)


class TestRemoteMirror:
    def test_daily_and_hourly_documents(self, store, clock, remote, signed_in) -> None:
        tracker = _tracker(store, clock, remote, signed_in)
        tracker.track_usage("openai", "gpt-3.5-turbo", 10, 10)
        tracker.track_usage("openai", "gpt-3.5-turbo", 10, 10)

        daily = remote.get_document("system/ai_usage/daily/user-1/2026-03-14/openai_gpt-3_5-turbo")
        assert daily["requestCount"] == 2
        hourly_path = f"system/ai_usage/hourly/user-1/openai_gpt-3_5-turbo/{hour_key(clock.now)}"
        assert remote.get_document(hourly_path)["requestCount"] == 2
        assert tracker.get_hourly_request_count("openai", "gpt-3.5-turbo") == 2

    def test_signed_out_writes_nothing_remote(self, store, clock, remote) -> None:
        tracker = _tracker(store, clock, remote, StaticAuthProvider())
        tracker.track_usage("openai", "gpt-4", 1, 1)

        assert remote.paths() == []
        assert tracker.get_hourly_request_count("openai", "gpt-4") == 0

    def test_remote_failure_does_not_break_tracking(self, store, clock, signed_in) -> None:
        class BrokenRemote(MemoryDocumentStore):
            def set_document(self, path, data):
                raise ConnectionError("offline")

        tracker = _tracker(store, clock, BrokenRemote(), signed_in)
        assert tracker.track_usage("openai", "gpt-4", 1, 1).request_count == 1
        assert store.contains("ai_usage_2026-03-14")


class TestHistory:
    def _seed(self, store) -> None:
        for day, provider, count in (
            (date(2026, 3, 10), "openai", 3),
            (date(2026, 3, 12), "gemini", 2),
            (date(2026, 3, 13), "openai", 1),
            (date(2026, 1, 1), "openai", 9),
        ):
            stats = UsageStats(provider=provider, model="m", day=day, request_count=count)
            store.set(f"ai_usage_{day.isoformat()}", {stats.stats_key: stats.to_dict()})

    def test_newest_first_within_window(self, store, clock) -> None:
        self._seed(store)
        rows = _tracker(store, clock).get_historical_usage()
        assert [row.day for row in rows] == [date(2026, 3, 13), date(2026, 3, 12), date(2026, 3, 10)]

    def test_filters_and_limit(self, store, clock) -> None:
        self._seed(store)
        tracker = _tracker(store, clock)

        openai = tracker.get_historical_usage(provider="openai")
        assert [row.request_count for row in openai] == [1, 3]
        assert len(tracker.get_historical_usage(limit=1)) == 1
        older = tracker.get_historical_usage(start=date(2026, 1, 1), end=date(2026, 1, 31))
        assert [row.request_count for row in older] == [9]


def test_cost_table() -> None:
    assert estimate_cost("openai", "gpt-4", 1000) == pytest.approx(0.03)
    assert estimate_cost("OpenAI", "GPT-3.5-Turbo", 2000) == pytest.approx(0.004)
    assert estimate_cost("openai", "gpt-4o", 1000) == pytest.approx(0.002)
    assert estimate_cost("gemini", "anything", 1000) == pytest.approx(0.001)
    assert estimate_cost("anthropic", "claude", 1000) == 0.0


def test_clean_model_name() -> None:
    assert clean_model_name("gpt-3.5 turbo#1") == "gpt-3_5_turbo_1"
