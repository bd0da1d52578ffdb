"""Premium status lookups against the remote user records."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from hymnal.errors import classify_exception, format_error_for_user
from hymnal.session.models import ADMIN_ROLES, PREMIUM_ROLE, USER_ROLE, PremiumStatus
from hymnal.store.base import AuthProvider, DocumentStore

logger = logging.getLogger(__name__)

USERS_PATH = "users"

PREMIUM_FEATURES: tuple[str, ...] = (
    "Unlimited audio playback",
    "Advanced player controls",
    "Mini-player with quick access",
    "Full-screen player experience",
    "Premium audio settings",
    "High-quality audio streaming",
)


class PremiumService:
    """Answers "is this reader premium?" from the signed-in user's record.

    Admins and super admins always count as premium. Lookup failures count
    as free.
    """

    def __init__(
        self,
        remote: DocumentStore,
        auth: AuthProvider,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._remote = remote
        self._auth = auth
        self._clock = clock
        self.last_notice = ""

    def is_premium(self) -> bool:
        try:
            doc = self._current_user_doc()
        except Exception:
            logger.warning("Failed to check premium status", exc_info=True)
            return False
        if not doc:
            return False
        role = doc.get("role")
        if role in ADMIN_ROLES or role == PREMIUM_ROLE:
            return True
        return doc.get("isPremium") is True

    def get_premium_status(self) -> PremiumStatus:
        return PremiumStatus.premium() if self.is_premium() else PremiumStatus.free()

    def can_access_audio(self) -> bool:
        return self.is_premium()

    def premium_features(self) -> list[str]:
        return list(PREMIUM_FEATURES)

    def assign_premium(self, user_id: str) -> bool:
        return self._update_role(user_id, PREMIUM_ROLE, is_premium=True)

    def remove_premium(self, user_id: str) -> bool:
        return self._update_role(user_id, USER_ROLE, is_premium=False)

    def _current_user_doc(self) -> dict[str, Any] | None:
        user = self._auth.current_user()
        if user is None:
            return None
        return self._remote.get_document(f"{USERS_PATH}/{user.uid}")

    def _update_role(self, user_id: str, role: str, *, is_premium: bool) -> bool:
        self.last_notice = ""
        try:
            self._remote.update_document(
                f"{USERS_PATH}/{user_id}",
                {
                    "role": role,
                    "isPremium": is_premium,
                    "updatedAt": self._clock().isoformat(),
                },
            )
        except Exception as exc:
            error = classify_exception(exc)
            logger.error("Failed to set role %s for %s: %s", role, user_id, error.to_dict())
            self.last_notice = format_error_for_user(error)
            return False
        logger.info("Role for %s set to %s", user_id, role)
        return True
