"""State behind the settings page: premium, trial and version info."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Callable

from PySide6.QtCore import QObject, Signal

from hymnal.session.manager import SessionManager
from hymnal.session.models import TrialInfo
from hymnal.session.premium import PremiumService
from hymnal.store.base import AuthProvider

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "1.0.0"
DEFAULT_BUILD_NUMBER = "1"


def installed_version_info() -> tuple[str, str]:
    """Return ``(version, build)`` from the installed distribution metadata."""
    raw = version("hymnal")
    release, _, local = raw.partition("+")
    return release, local or DEFAULT_BUILD_NUMBER


class SettingsController(QObject):
    """Loads each flag independently; one failed load never blocks another."""

    changed = Signal()

    def __init__(
        self,
        premium: PremiumService | None = None,
        session: SessionManager | None = None,
        auth: AuthProvider | None = None,
        *,
        version_loader: Callable[[], tuple[str, str]] = installed_version_info,
    ) -> None:
        super().__init__()
        self._premium = premium
        self._session = session
        self._auth = auth
        self._version_loader = version_loader
        self._is_premium = False
        self._is_loading_premium = True
        self._trial_info = TrialInfo()
        self._version: str | None = None
        self._build_number: str | None = None

    @property
    def is_premium(self) -> bool:
        return self._is_premium

    @property
    def is_loading_premium(self) -> bool:
        return self._is_loading_premium

    @property
    def trial_info(self) -> TrialInfo:
        return self._trial_info

    @property
    def version(self) -> str | None:
        return self._version

    @property
    def build_number(self) -> str | None:
        return self._build_number

    def initialize(self) -> None:
        self.load_premium_status()
        self.load_trial_status()
        self._load_version_info()

    def load_premium_status(self) -> None:
        self._is_loading_premium = True
        self.changed.emit()
        try:
            if self._premium is not None:
                self._is_premium = self._premium.is_premium()
        except Exception:
            logger.warning("Failed to load premium status", exc_info=True)
        finally:
            self._is_loading_premium = False
            self.changed.emit()

    def load_trial_status(self) -> None:
        if self._session is None:
            return
        try:
            self._trial_info = self._session.get_trial_info()
        except Exception:
            logger.warning("Failed to load trial status", exc_info=True)
            return
        self.changed.emit()

    def get_user_status_text(self) -> str:
        user = None
        if self._auth is not None:
            try:
                user = self._auth.current_user()
            except Exception:
                logger.warning("Auth provider failed", exc_info=True)
        if user is None or user.is_anonymous:
            return "Guest"
        return "Premium" if self._is_premium else "Registered"

    def get_version_info(self) -> str:
        if self._version is None:
            return f"{DEFAULT_VERSION} ({DEFAULT_BUILD_NUMBER})"
        return f"{self._version} ({self._build_number or DEFAULT_BUILD_NUMBER})"

    def _load_version_info(self) -> None:
        try:
            self._version, self._build_number = self._version_loader()
        except PackageNotFoundError:
            logger.debug("Package metadata unavailable; using default version")
            return
        except Exception:
            logger.warning("Failed to load version info", exc_info=True)
            return
        self.changed.emit()
