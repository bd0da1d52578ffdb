"""Session, trial and premium status records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Mapping

GUEST_ROLE = "guest"
USER_ROLE = "user"
TRIAL_ROLE = "trial"
PREMIUM_ROLE = "premium"
ADMIN_ROLES = frozenset({"admin", "super_admin"})

WEEK_TRIAL = "week_trial"
GUEST_SESSION_DAYS = 30
REGISTERED_SESSION_DAYS = 90


def trial_duration(trial_type: str | None) -> timedelta:
    return timedelta(days=7) if trial_type == WEEK_TRIAL else timedelta(days=1)


@dataclass(frozen=True, slots=True)
class UserSession:
    """Persisted access state for this device.

    Time-dependent checks take ``now`` so callers control the clock.
    """

    session_created_at: datetime
    session_expires_at: datetime
    device_id: str
    user_id: str | None = None
    email: str | None = None
    user_role: str = GUEST_ROLE
    is_premium: bool = False
    has_audio_access: bool = False
    premium_expiry_date: datetime | None = None
    device_type: str = "desktop"
    device_info: str = ""
    permissions: Mapping[str, bool] = field(default_factory=dict)
    is_trial_user: bool = False
    trial_started_at: datetime | None = None
    trial_type: str | None = None

    @classmethod
    def guest(
        cls,
        device_id: str,
        now: datetime,
        device_type: str = "desktop",
        device_info: str = "",
    ) -> UserSession:
        return cls(
            session_created_at=now,
            session_expires_at=now + timedelta(days=GUEST_SESSION_DAYS),
            device_id=device_id,
            device_type=device_type,
            device_info=device_info,
            permissions={
                "canAccessPublicCollections": True,
                "canSaveFavorites": False,
                "canAccessAudio": False,
                "canAccessPremiumContent": False,
            },
        )

    @classmethod
    def registered(
        cls,
        *,
        user_id: str,
        email: str,
        device_id: str,
        now: datetime,
        user_role: str = USER_ROLE,
        is_premium: bool = False,
        premium_expiry_date: datetime | None = None,
        is_trial_user: bool = False,
        trial_started_at: datetime | None = None,
        trial_type: str | None = None,
        device_type: str = "desktop",
        device_info: str = "",
    ) -> UserSession:
        is_admin = user_role in ADMIN_ROLES
        audio = is_premium or is_admin
        return cls(
            session_created_at=now,
            session_expires_at=now + timedelta(days=REGISTERED_SESSION_DAYS),
            device_id=device_id,
            user_id=user_id,
            email=email,
            user_role=user_role,
            is_premium=is_premium,
            has_audio_access=audio,
            premium_expiry_date=premium_expiry_date,
            device_type=device_type,
            device_info=device_info,
            permissions={
                "canAccessPublicCollections": True,
                "canSaveFavorites": True,
                "canAccessAudio": audio,
                "canAccessPremiumContent": is_premium,
                "canAccessRegisteredContent": True,
                "canAccessAdminFeatures": is_admin,
                "canManageUsers": user_role == "super_admin",
            },
            is_trial_user=is_trial_user,
            trial_started_at=trial_started_at,
            trial_type=trial_type,
        )

    @property
    def is_guest(self) -> bool:
        return self.user_role == GUEST_ROLE

    @property
    def is_registered(self) -> bool:
        return self.user_id is not None and not self.is_guest

    @property
    def is_admin(self) -> bool:
        return self.user_role in ADMIN_ROLES

    def has_permission(self, permission: str) -> bool:
        return self.permissions.get(permission) is True

    def is_expired(self, now: datetime) -> bool:
        return now > self.session_expires_at

    def is_premium_expired(self, now: datetime) -> bool:
        return self.premium_expiry_date is not None and now > self.premium_expiry_date

    def trial_ends_at(self) -> datetime | None:
        if self.trial_started_at is None:
            return None
        return self.trial_started_at + trial_duration(self.trial_type)

    def is_trial_expired(self, now: datetime) -> bool:
        if not self.is_trial_user or self.trial_started_at is None:
            return False
        return now > self.trial_ends_at()

    def has_active_trial(self, now: datetime) -> bool:
        return self.is_trial_user and not self.is_trial_expired(now)

    def remaining_trial_time(self, now: datetime) -> timedelta | None:
        if not self.is_trial_user or self.trial_started_at is None or self.is_trial_expired(now):
            return None
        return self.trial_ends_at() - now

    def has_trial_access(self, now: datetime) -> bool:
        return self.has_active_trial(now) or self.is_premium

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "email": self.email,
            "userRole": self.user_role,
            "isPremium": self.is_premium,
            "hasAudioAccess": self.has_audio_access,
            "premiumExpiryDate": _iso(self.premium_expiry_date),
            "sessionCreatedAt": self.session_created_at.isoformat(),
            "sessionExpiresAt": self.session_expires_at.isoformat(),
            "deviceId": self.device_id,
            "deviceType": self.device_type,
            "deviceInfo": self.device_info,
            "permissions": dict(self.permissions),
            "isTrialUser": self.is_trial_user,
            "trialStartedAt": _iso(self.trial_started_at),
            "trialType": self.trial_type,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UserSession:
        """Parse a stored session; raises KeyError or ValueError on malformed data."""
        return cls(
            session_created_at=datetime.fromisoformat(data["sessionCreatedAt"]),
            session_expires_at=datetime.fromisoformat(data["sessionExpiresAt"]),
            device_id=str(data.get("deviceId") or ""),
            user_id=data.get("userId"),
            email=data.get("email"),
            user_role=str(data.get("userRole") or GUEST_ROLE),
            is_premium=bool(data.get("isPremium", False)),
            has_audio_access=bool(data.get("hasAudioAccess", False)),
            premium_expiry_date=_parse(data.get("premiumExpiryDate")),
            device_type=str(data.get("deviceType") or "unknown"),
            device_info=str(data.get("deviceInfo") or ""),
            permissions=dict(data.get("permissions") or {}),
            is_trial_user=bool(data.get("isTrialUser", False)),
            trial_started_at=_parse(data.get("trialStartedAt")),
            trial_type=data.get("trialType"),
        )


@dataclass(frozen=True, slots=True)
class TrialInfo:
    """Snapshot of the trial window, recomputed on every query."""

    is_trial_user: bool = False
    trial_type: str = "none"
    trial_started_at: datetime | None = None
    has_active_trial: bool = False
    is_trial_expired: bool = False
    remaining_trial_days: int = 0
    remaining_trial_hours: int = 0
    has_trial_access: bool = False
    trial_ended_at: datetime | None = None

    @classmethod
    def from_session(cls, session: UserSession, now: datetime) -> TrialInfo:
        remaining = session.remaining_trial_time(now)
        expired = session.is_trial_expired(now)
        ended_at = None
        if expired and session.trial_started_at is not None:
            ended_at = session.trial_started_at + timedelta(days=7)
        return cls(
            is_trial_user=session.is_trial_user,
            trial_type=session.trial_type or "none",
            trial_started_at=session.trial_started_at,
            has_active_trial=session.has_active_trial(now),
            is_trial_expired=expired,
            remaining_trial_days=remaining.days if remaining is not None else 0,
            remaining_trial_hours=int(remaining.total_seconds() // 3600) if remaining is not None else 0,
            has_trial_access=session.has_trial_access(now),
            trial_ended_at=ended_at,
        )

    def remaining_label(self) -> str:
        if self.remaining_trial_days > 0:
            return f"{self.remaining_trial_days} days"
        return f"{self.remaining_trial_hours} hours"

    def to_dict(self) -> dict[str, Any]:
        return {
            "isTrialUser": self.is_trial_user,
            "trialType": self.trial_type,
            "trialStartedAt": _iso(self.trial_started_at),
            "hasActiveTrial": self.has_active_trial,
            "isTrialExpired": self.is_trial_expired,
            "remainingTrialDays": self.remaining_trial_days,
            "remainingTrialHours": self.remaining_trial_hours,
            "hasTrialAccess": self.has_trial_access,
            "trialEndedAt": _iso(self.trial_ended_at),
        }


@dataclass(frozen=True, slots=True)
class PremiumStatus:
    is_premium: bool
    has_offline_access: bool
    has_audio_access: bool
    expiry_date: datetime | None = None
    subscription_type: str | None = None

    @classmethod
    def free(cls) -> PremiumStatus:
        return cls(is_premium=False, has_offline_access=False, has_audio_access=False)

    @classmethod
    def premium(cls) -> PremiumStatus:
        return cls(
            is_premium=True,
            has_offline_access=True,
            has_audio_access=True,
            subscription_type=PREMIUM_ROLE,
        )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse(value: Any) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value))
