"""Tests for hymnal.session.manager."""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from hymnal.session.manager import (
    DEVICE_ID_KEY,
    DEVICE_PREMIUM_REASON_KEY,
    PREMIUM_SESSION_KEY,
    SESSION_KEY,
    TRIAL_HISTORY_KEY,
    TRIAL_REQUESTS_PATH,
    SessionManager,
)
from hymnal.session.models import UserSession
from hymnal.store.memory import MemoryDocumentStore, MemoryStore

from conftest import START


class RecordingRemote(MemoryDocumentStore):
    def __init__(self) -> None:
        super().__init__()
        self.updates: list[tuple[str, dict]] = []

    def update_document(self, path, data):
        self.updates.append((path, dict(data)))
        super().update_document(path, data)


class BrokenRemote(MemoryDocumentStore):
    def set_document(self, path, data):
        raise ConnectionError("offline")

    def query_documents(self, collection):
        raise ConnectionError("offline")


class SelectiveFailStore(MemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.failing_keys: set[str] = set()
        self.fail_all = False

    def set(self, key, value):
        if self.fail_all or key in self.failing_keys:
            raise OSError("disk full")
        super().set(key, value)


def _manager(store, clock, remote=None) -> SessionManager:
    manager = SessionManager(store, remote, clock=clock)
    manager.initialize()
    return manager


class TestSessionLifecycle:
    def test_first_launch_creates_guest(self, store, clock) -> None:
        manager = _manager(store, clock)
        session = manager.current_session

        assert session.is_guest
        assert session.session_expires_at == START + timedelta(days=30)
        assert re.fullmatch(r"device_[0-9a-f]{16}", manager.device_id)
        assert store.get(DEVICE_ID_KEY) == manager.device_id
        assert store.get(SESSION_KEY)["userRole"] == "guest"
        assert manager.can_save_favorites is False

    def test_device_id_and_session_survive_restart(self, store, clock) -> None:
        first = _manager(store, clock)
        first.create_user_session("u-9", "reader@example.com")

        second = _manager(store, clock)
        assert second.device_id == first.device_id
        assert second.user_role == "user"
        assert second.user_email == "reader@example.com"

    def test_expired_session_is_replaced_by_guest(self, store, clock) -> None:
        _manager(store, clock).create_user_session("u-9", "reader@example.com")
        clock.advance(days=91)

        assert _manager(store, clock).current_session.is_guest

    def test_corrupt_stored_session_falls_back_to_guest(self, store, clock) -> None:
        store.set(SESSION_KEY, {"sessionCreatedAt": "not a date"})
        assert _manager(store, clock).current_session.is_guest

    def test_registered_permissions(self, store, clock) -> None:
        manager = _manager(store, clock)
        manager.create_user_session("u-1", "admin@example.com", user_role="admin")

        session = manager.current_session
        assert session.is_admin
        assert manager.can_access_audio is True
        assert manager.has_permission("canAccessAdminFeatures") is True
        assert manager.has_permission("canManageUsers") is False
        assert manager.has_permission("canAccessPremiumContent") is False

    def test_session_round_trips_through_dict(self, clock) -> None:
        session = UserSession.registered(
            user_id="u-1",
            email="reader@example.com",
            device_id="device_0123456789abcdef",
            now=clock(),
            is_premium=True,
            premium_expiry_date=clock() + timedelta(days=3),
        )
        assert UserSession.from_dict(session.to_dict()) == session


class TestPremium:
    def test_grant_requires_a_session(self, store, clock) -> None:
        assert SessionManager(store, clock=clock).grant_premium_access() is None

    def test_grant_caches_premium_session(self, store, clock) -> None:
        manager = _manager(store, clock)
        session = manager.grant_premium_access(START + timedelta(days=10))

        assert session.user_role == "premium"
        assert manager.is_premium is True
        assert manager.can_access_audio is True
        assert store.get(PREMIUM_SESSION_KEY)["isPremium"] is True

        clock.advance(days=11)
        assert manager.is_premium is False

    def test_cached_premium_restored_after_logout_of_session_only(self, store, clock) -> None:
        manager = _manager(store, clock)
        manager.grant_premium_access(START + timedelta(days=10))
        store.remove(SESSION_KEY)

        fresh = _manager(store, clock)
        assert fresh.is_premium is False
        assert fresh.check_cached_premium_access() is True
        assert fresh.is_premium is True

    def test_logout_clears_premium_cache(self, store, clock) -> None:
        manager = _manager(store, clock)
        manager.grant_premium_access()
        guest = manager.logout()

        assert guest.is_guest
        assert not store.contains(PREMIUM_SESSION_KEY)
        assert manager.check_cached_premium_access() is False

    def test_device_premium_lasts_thirty_days(self, store, clock) -> None:
        manager = _manager(store, clock)
        session = manager.grant_device_premium_access(reason="Choir license")

        assert session.premium_expiry_date == START + timedelta(days=30)
        assert store.get(DEVICE_PREMIUM_REASON_KEY) == "Choir license"


class TestWeeklyTrial:
    def test_start_trial(self, store, clock) -> None:
        manager = _manager(store, clock)
        trial = manager.start_weekly_trial()

        assert trial is not None
        assert trial.user_role == "trial"
        assert trial.is_premium is True
        assert trial.premium_expiry_date == START + timedelta(days=7)
        assert trial.trial_type == "week_trial"
        assert manager.can_access_audio_with_trial is True
        assert manager.can_access_premium_with_trial is True
        record = f"{manager.device_id}_week_trial"
        assert store.get(TRIAL_HISTORY_KEY) == [record]
        assert store.get(f"{record}_timestamp") == START.isoformat()

    def test_trial_is_once_per_device(self, store, clock) -> None:
        manager = _manager(store, clock)
        manager.start_weekly_trial()
        manager.logout()

        assert manager.is_trial_eligible() is False
        assert manager.start_weekly_trial() is None
        assert manager.last_notice
        assert manager.current_session.is_guest

    def test_remaining_time_tiers(self, store, clock) -> None:
        manager = _manager(store, clock)
        manager.start_weekly_trial()

        info = manager.get_trial_info()
        assert info.has_active_trial is True
        assert info.remaining_trial_days == 7
        assert info.remaining_label() == "7 days"

        clock.advance(days=5)
        assert manager.get_trial_info().remaining_label() == "2 days"

        clock.advance(days=1, hours=12)
        info = manager.get_trial_info()
        assert info.remaining_trial_days == 0
        assert info.remaining_trial_hours == 12
        assert info.remaining_label() == "12 hours"

    def test_expiry_warnings(self, store, clock) -> None:
        manager = _manager(store, clock)
        manager.start_weekly_trial()
        assert manager.is_trial_expiring_soon is False
        assert manager.trial_expiration_warning is None

        clock.advance(days=6, hours=12)
        assert manager.is_trial_expiring_soon is True
        assert manager.trial_expiration_warning == "Your premium trial expires in 12 hours!"

        clock.advance(hours=11, minutes=30)
        assert manager.trial_expiration_warning == "Your premium trial expires in less than 1 hour!"

    def test_expired_trial_info(self, store, clock) -> None:
        manager = _manager(store, clock)
        manager.start_weekly_trial()
        clock.advance(days=7, minutes=1)

        info = manager.get_trial_info()
        assert info.is_trial_expired is True
        assert info.has_active_trial is False
        assert info.trial_ended_at == START + timedelta(days=7)
        assert info.remaining_trial_hours == 0
        assert manager.is_trial_expiring_soon is False
        assert manager.can_access_audio_with_trial is True
        assert manager.can_access_audio is False

    def test_guest_has_no_trial(self, store, clock) -> None:
        info = _manager(store, clock).get_trial_info()
        assert info.is_trial_user is False
        assert info.trial_type == "none"
        assert info.to_dict()["trialStartedAt"] is None

    def test_failed_history_write_grants_nothing(self, clock) -> None:
        store = SelectiveFailStore()
        manager = _manager(store, clock)
        saved_session = store.get(SESSION_KEY)
        store.failing_keys.add(TRIAL_HISTORY_KEY)

        assert manager.start_weekly_trial() is None
        assert manager.is_premium is False
        assert manager.current_session.is_guest
        assert manager.is_trial_eligible() is True
        assert store.get(SESSION_KEY) == saved_session
        assert manager.last_notice == "The premium trial could not be started. Please try again."

    def test_failed_session_write_rolls_back_history(self, clock) -> None:
        store = SelectiveFailStore()
        manager = _manager(store, clock)
        saved_session = store.get(SESSION_KEY)
        store.failing_keys.add(SESSION_KEY)

        assert manager.start_weekly_trial() is None
        assert manager.current_session.is_guest
        assert store.get(TRIAL_HISTORY_KEY) is None
        assert not store.contains(f"{manager.device_id}_week_trial_timestamp")
        assert store.get(SESSION_KEY) == saved_session
        assert manager.is_trial_eligible() is True

        store.failing_keys.clear()
        assert manager.start_weekly_trial() is not None
        assert manager.is_premium is True

    def test_all_writes_failing_grants_nothing(self, clock) -> None:
        store = SelectiveFailStore()
        manager = _manager(store, clock)
        store.fail_all = True

        assert manager.start_weekly_trial() is None
        assert manager.is_premium is False
        assert manager.last_notice


class TestTrialRequests:
    def test_statuses_are_reported(self, store, clock) -> None:
        remote = RecordingRemote()
        manager = _manager(store, clock, remote)
        manager.start_weekly_trial()
        clock.advance(minutes=1)
        manager.start_weekly_trial()

        requests = remote.query_documents(TRIAL_REQUESTS_PATH)
        statuses = sorted(
            (doc["requestedAtTimestamp"], doc["status"]) for doc in requests.values()
        )
        assert [status for _, status in statuses] == ["activated", "requested"]
        assert all(doc["trialType"] == "week_trial" for doc in requests.values())

    def test_expired_status_sent_once(self, store, clock) -> None:
        remote = RecordingRemote()
        manager = _manager(store, clock, remote)
        manager.start_weekly_trial()
        clock.advance(days=8)

        manager.get_trial_info()
        manager.get_trial_info()

        assert [data["status"] for _, data in remote.updates] == ["activated", "expired"]

    def test_remote_failures_do_not_block_trial(self, store, clock) -> None:
        manager = _manager(store, clock, BrokenRemote())
        assert manager.start_weekly_trial() is not None
        assert manager.current_session.is_trial_user


def test_clock_is_injected(store) -> None:
    manager = SessionManager(store, clock=lambda: datetime(2030, 1, 1))
    assert manager.initialize().session_created_at == datetime(2030, 1, 1)
