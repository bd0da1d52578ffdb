"""Device session persistence and the once-per-device premium trial."""

from __future__ import annotations

import hashlib
import logging
import platform
import uuid
from datetime import datetime, timedelta
from typing import Callable

from hymnal.errors import ErrorCode, HymnalError, classify_exception, format_error_for_user
from hymnal.session.models import (
    GUEST_ROLE,
    PREMIUM_ROLE,
    TRIAL_ROLE,
    USER_ROLE,
    WEEK_TRIAL,
    TrialInfo,
    UserSession,
)
from hymnal.store.base import DocumentStore, KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY = "user_session_v2"
DEVICE_ID_KEY = "device_id_v2"
PREMIUM_SESSION_KEY = "premium_session_cache"
TRIAL_HISTORY_KEY = "trial_history_v1"
DEVICE_PREMIUM_REASON_KEY = "device_premium_reason"
DEVICE_PREMIUM_GRANTED_KEY = "device_premium_granted"

TRIAL_REQUESTS_PATH = "admin/trial_requests"
TRIAL_LENGTH = timedelta(days=7)
EXPIRING_SOON = timedelta(hours=24)


class SessionManager:
    """Owns the current UserSession and the trial history of this device.

    Storage failures are logged and replaced by a safe default: a guest
    session, an ineligible trial, or ``None``.
    """

    def __init__(
        self,
        store: KeyValueStore,
        remote: DocumentStore | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._remote = remote
        self._clock = clock
        self._device_id: str | None = None
        self._session: UserSession | None = None
        self._expired_status_sent = False
        self.last_notice = ""

    # -- lifecycle --

    def initialize(self) -> UserSession:
        now = self._clock()
        device_id = self.device_id
        restored = self._restore_session()
        if restored is not None and not restored.is_expired(now):
            self._session = restored
            logger.info("Restored %s session", restored.user_role)
            return restored

        guest = self._guest(now)
        self._session = guest
        self._save_session(guest)
        logger.info("Created guest session for %s", device_id)
        return guest

    @property
    def device_id(self) -> str:
        if self._device_id is None:
            self._device_id = self._get_or_create_device_id()
        return self._device_id

    @property
    def current_session(self) -> UserSession:
        if self._session is None:
            return self._guest(self._clock())
        return self._session

    def create_user_session(
        self,
        user_id: str,
        email: str,
        user_role: str = USER_ROLE,
        is_premium: bool = False,
        premium_expiry_date: datetime | None = None,
    ) -> UserSession:
        session = UserSession.registered(
            user_id=user_id,
            email=email,
            device_id=self.device_id,
            now=self._clock(),
            user_role=user_role,
            is_premium=is_premium,
            premium_expiry_date=premium_expiry_date,
            device_info=_device_info(),
        )
        self._session = session
        self._save_session(session)
        logger.info("User session created: %s%s", user_role, " (premium)" if is_premium else "")
        return session

    def grant_premium_access(self, expiry_date: datetime | None = None) -> UserSession | None:
        if self._session is None:
            logger.warning("No active session to grant premium access")
            return None
        current = self._session
        session = UserSession.registered(
            user_id=current.user_id or f"premium_{self.device_id}",
            email=current.email or "premium_user@device.local",
            device_id=current.device_id,
            now=self._clock(),
            user_role=PREMIUM_ROLE if current.user_role == GUEST_ROLE else current.user_role,
            is_premium=True,
            premium_expiry_date=expiry_date,
            device_info=current.device_info,
        )
        self._session = session
        self._save_session(session)
        self._cache_premium_session(session)
        logger.info("Premium access granted until %s", expiry_date or "indefinite")
        return session

    def grant_device_premium_access(
        self,
        duration: timedelta = timedelta(days=30),
        reason: str = "Device premium access",
    ) -> UserSession | None:
        now = self._clock()
        session = self.grant_premium_access(now + duration)
        if session is not None:
            try:
                self._store.set(DEVICE_PREMIUM_REASON_KEY, reason)
                self._store.set(DEVICE_PREMIUM_GRANTED_KEY, now.isoformat())
            except Exception:
                logger.warning("Failed to record device premium grant", exc_info=True)
        return session

    def check_cached_premium_access(self) -> bool:
        """Restore a cached premium session if it has not expired."""
        try:
            raw = self._store.get(PREMIUM_SESSION_KEY)
            if not raw:
                return False
            cached = UserSession.from_dict(raw)
        except Exception:
            logger.warning("Failed to read cached premium session", exc_info=True)
            return False
        if cached.is_premium and not cached.is_premium_expired(self._clock()):
            self._session = cached
            self._save_session(cached)
            return True
        return False

    def logout(self) -> UserSession:
        guest = self._guest(self._clock())
        self._session = guest
        try:
            self._store.remove(SESSION_KEY)
            self._store.remove(PREMIUM_SESSION_KEY)
        except Exception:
            logger.warning("Failed to clear stored session", exc_info=True)
        self._save_session(guest)
        logger.info("Logged out; reverted to guest session")
        return guest

    # -- access checks --

    @property
    def is_premium(self) -> bool:
        session = self.current_session
        return session.is_premium and not session.is_premium_expired(self._clock())

    @property
    def can_access_audio(self) -> bool:
        session = self.current_session
        return session.has_audio_access and not session.is_premium_expired(self._clock())

    @property
    def can_save_favorites(self) -> bool:
        return self.current_session.has_permission("canSaveFavorites")

    def has_permission(self, permission: str) -> bool:
        return self.current_session.has_permission(permission)

    @property
    def user_role(self) -> str:
        return self.current_session.user_role

    @property
    def user_email(self) -> str | None:
        return self.current_session.email

    @property
    def can_access_audio_with_trial(self) -> bool:
        session = self.current_session
        return session.has_audio_access or session.has_active_trial(self._clock())

    @property
    def can_access_premium_with_trial(self) -> bool:
        session = self.current_session
        return session.is_premium or session.has_active_trial(self._clock())

    # -- trial --

    def is_trial_eligible(self) -> bool:
        """True when no week trial has ever been recorded for this device."""
        try:
            history = self._trial_history()
        except Exception:
            logger.warning("Failed to read trial history", exc_info=True)
            return False
        return f"{self.device_id}_{WEEK_TRIAL}" not in history

    def start_weekly_trial(self) -> UserSession | None:
        self.last_notice = ""
        self._log_trial_request(WEEK_TRIAL, "user_initiated")

        if not self.is_trial_eligible():
            self.last_notice = format_error_for_user(HymnalError(ErrorCode.TRIAL_NOT_ELIGIBLE))
            logger.info("Trial refused: device %s already used its trial", self.device_id)
            return None

        now = self._clock()
        current = self.current_session
        trial = UserSession.registered(
            user_id=current.user_id or f"trial_{self.device_id}",
            email=current.email or "trial_user@device.local",
            device_id=current.device_id,
            now=now,
            user_role=TRIAL_ROLE if current.user_role == GUEST_ROLE else current.user_role,
            is_premium=True,
            premium_expiry_date=now + TRIAL_LENGTH,
            is_trial_user=True,
            trial_started_at=now,
            trial_type=WEEK_TRIAL,
            device_info=current.device_info,
        )
        # A failed write leaves neither the history record nor the trial session behind.
        try:
            previous_history = self._store.get(TRIAL_HISTORY_KEY)
            previous_session = self._store.get(SESSION_KEY)
        except Exception as exc:
            return self._trial_start_failed(exc)
        try:
            self._record_trial_usage(WEEK_TRIAL, now)
            self._store.set(SESSION_KEY, trial.to_dict())
        except Exception as exc:
            self._restore_after_failed_trial(previous_history, previous_session)
            return self._trial_start_failed(exc)

        self._session = trial
        self._update_trial_request_status("activated")
        logger.info("Week trial started for %s", self.device_id)
        return trial

    def get_trial_info(self) -> TrialInfo:
        now = self._clock()
        session = self.current_session
        info = TrialInfo.from_session(session, now)
        if info.is_trial_user and info.is_trial_expired and not self._expired_status_sent:
            self._expired_status_sent = True
            self._update_trial_request_status("expired")
        return info

    @property
    def is_trial_expiring_soon(self) -> bool:
        session = self.current_session
        remaining = session.remaining_trial_time(self._clock())
        if remaining is None:
            return False
        return remaining <= EXPIRING_SOON

    @property
    def trial_expiration_warning(self) -> str | None:
        remaining = self.current_session.remaining_trial_time(self._clock())
        if remaining is None or remaining > EXPIRING_SOON:
            return None
        hours = int(remaining.total_seconds() // 3600)
        if hours <= 1:
            return "Your premium trial expires in less than 1 hour!"
        return f"Your premium trial expires in {hours} hours!"

    # -- persistence helpers --

    def _guest(self, now: datetime) -> UserSession:
        return UserSession.guest(self.device_id, now, device_info=_device_info())

    def _get_or_create_device_id(self) -> str:
        try:
            existing = self._store.get(DEVICE_ID_KEY)
        except Exception:
            logger.warning("Failed to read device id", exc_info=True)
            existing = None
        if isinstance(existing, str) and existing:
            return existing

        now = self._clock()
        seed = f"{int(now.timestamp() * 1000)}-{now.isoformat()}-{uuid.uuid4().hex}"
        device_id = "device_" + hashlib.sha256(seed.encode("utf-8")).hexdigest()[:16]
        try:
            self._store.set(DEVICE_ID_KEY, device_id)
        except Exception:
            logger.warning("Failed to persist device id", exc_info=True)
        logger.info("Generated device id %s", device_id)
        return device_id

    def _save_session(self, session: UserSession) -> None:
        try:
            self._store.set(SESSION_KEY, session.to_dict())
        except Exception:
            logger.error("Failed to save session", exc_info=True)

    def _restore_session(self) -> UserSession | None:
        try:
            raw = self._store.get(SESSION_KEY)
            if not raw:
                return None
            return UserSession.from_dict(raw)
        except Exception:
            logger.warning("Ignoring unreadable stored session", exc_info=True)
            return None

    def _cache_premium_session(self, session: UserSession) -> None:
        if not session.is_premium:
            return
        try:
            self._store.set(PREMIUM_SESSION_KEY, session.to_dict())
        except Exception:
            logger.warning("Failed to cache premium session", exc_info=True)

    def _trial_history(self) -> list[str]:
        raw = self._store.get(TRIAL_HISTORY_KEY, [])
        if not isinstance(raw, list):
            return []
        return [str(item) for item in raw]

    def _record_trial_usage(self, trial_type: str, now: datetime) -> None:
        history = self._trial_history()
        record = f"{self.device_id}_{trial_type}"
        if record in history:
            return
        history.append(record)
        self._store.set(TRIAL_HISTORY_KEY, history)
        self._store.set(f"{record}_timestamp", now.isoformat())
        logger.debug("Trial usage recorded: %s", record)

    def _restore_after_failed_trial(
        self,
        previous_history: object,
        previous_session: object,
    ) -> None:
        record = f"{self.device_id}_{WEEK_TRIAL}"
        restores = (
            (TRIAL_HISTORY_KEY, previous_history),
            (SESSION_KEY, previous_session),
            (f"{record}_timestamp", None),
        )
        for key, value in restores:
            try:
                if value is None:
                    self._store.remove(key)
                else:
                    self._store.set(key, value)
            except Exception:
                logger.warning("Failed to restore %s after trial start failed", key, exc_info=True)

    def _trial_start_failed(self, exc: Exception) -> None:
        error = classify_exception(exc)
        logger.error("Failed to start weekly trial: %s", error.to_dict())
        self.last_notice = format_error_for_user(HymnalError(ErrorCode.TRIAL_START_FAILED))
        return None

    def _log_trial_request(self, trial_type: str, source: str) -> None:
        if self._remote is None:
            return
        session = self.current_session
        now = self._clock()
        stamp = int(now.timestamp() * 1000)
        request_id = f"{session.device_id}_{stamp}"
        try:
            self._remote.set_document(
                f"{TRIAL_REQUESTS_PATH}/{request_id}",
                {
                    "requestId": request_id,
                    "userId": session.user_id,
                    "email": session.email,
                    "deviceId": session.device_id,
                    "userRole": session.user_role,
                    "trialType": trial_type,
                    "source": source,
                    "status": "requested",
                    "requestedAt": now.isoformat(),
                    "requestedAtTimestamp": stamp,
                },
            )
        except Exception:
            logger.warning("Failed to log trial request %s", request_id, exc_info=True)

    def _update_trial_request_status(self, status: str) -> None:
        if self._remote is None:
            return
        device_id = self.current_session.device_id
        try:
            requests = self._remote.query_documents(TRIAL_REQUESTS_PATH)
            latest_id = None
            latest_stamp = 0
            for request_id, data in requests.items():
                if data.get("deviceId") != device_id:
                    continue
                stamp = int(data.get("requestedAtTimestamp") or 0)
                if stamp > latest_stamp:
                    latest_stamp = stamp
                    latest_id = request_id
            if latest_id is None:
                return
            self._remote.update_document(
                f"{TRIAL_REQUESTS_PATH}/{latest_id}",
                {"status": status, "statusUpdatedAt": self._clock().isoformat()},
            )
        except Exception:
            logger.warning("Failed to update trial request status to %s", status, exc_info=True)


def _device_info() -> str:
    return f"{platform.system() or 'Unknown'} desktop"
