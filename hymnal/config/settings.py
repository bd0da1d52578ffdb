"""Application settings via QSettings."""

from __future__ import annotations

import os
from pathlib import Path

from PySide6.QtCore import QSettings

from hymnal.store.settings_store import SettingsStore
from hymnal.theme.constants import (
    DEFAULT_ANIMATION_PROFILE,
    DEFAULT_COLOR_KEY,
    DEFAULT_VARIANT,
)

DEFAULT_FONT_SIZE = 16.0
DEFAULT_FONT_FAMILY = "Roboto"
DEFAULT_TEXT_ALIGN = "left"

TEXT_ALIGNS: tuple[str, ...] = ("left", "right", "center", "justify")

_MIN_FONT_SIZE = 8.0
_MAX_FONT_SIZE = 48.0


class AppSettings:
    """Wraps QSettings for persistent reader configuration."""

    def __init__(self, ini_path: str | Path | None = None) -> None:
        if ini_path is None:
            self._qs = QSettings("Hymnal", "Hymnal")
        else:
            self._qs = QSettings(str(ini_path), QSettings.Format.IniFormat)

    @property
    def qsettings(self) -> QSettings:
        return self._qs

    def key_value_store(self) -> SettingsStore:
        """Return the key-value store used by services for their own state."""
        return SettingsStore(self._qs, group="state")

    def sync(self) -> None:
        self._qs.sync()

    # -- reading --

    @property
    def is_dark_mode(self) -> bool:
        return bool(self._qs.value("reading/dark_mode", False, type=bool))

    @is_dark_mode.setter
    def is_dark_mode(self, value: bool) -> None:
        self._qs.setValue("reading/dark_mode", bool(value))

    @property
    def font_size(self) -> float:
        raw = self._qs.value("reading/font_size", DEFAULT_FONT_SIZE, type=float)
        try:
            size = float(raw)
        except (TypeError, ValueError):
            return DEFAULT_FONT_SIZE
        if not _MIN_FONT_SIZE <= size <= _MAX_FONT_SIZE:
            return DEFAULT_FONT_SIZE
        return size

    @font_size.setter
    def font_size(self, value: float) -> None:
        size = float(value)
        if not _MIN_FONT_SIZE <= size <= _MAX_FONT_SIZE:
            size = DEFAULT_FONT_SIZE
        self._qs.setValue("reading/font_size", size)

    @property
    def font_family(self) -> str:
        raw = self._qs.value("reading/font_family", DEFAULT_FONT_FAMILY, type=str)
        value = (raw or "").strip()
        return value or DEFAULT_FONT_FAMILY

    @font_family.setter
    def font_family(self, value: str) -> None:
        cleaned = (value or "").strip() or DEFAULT_FONT_FAMILY
        self._qs.setValue("reading/font_family", cleaned)

    @property
    def text_align(self) -> str:
        raw = self._qs.value("reading/text_align", DEFAULT_TEXT_ALIGN, type=str)
        align = (raw or "").strip().lower()
        if align in TEXT_ALIGNS:
            return align
        return DEFAULT_TEXT_ALIGN

    @text_align.setter
    def text_align(self, value: str) -> None:
        align = (value or "").strip().lower()
        if align not in TEXT_ALIGNS:
            align = DEFAULT_TEXT_ALIGN
        self._qs.setValue("reading/text_align", align)

    # -- theme --

    @property
    def color_theme(self) -> str:
        raw = self._qs.value("theme/color_key", DEFAULT_COLOR_KEY, type=str)
        value = (raw or "").strip()
        return value or DEFAULT_COLOR_KEY

    @color_theme.setter
    def color_theme(self, value: str) -> None:
        cleaned = (value or "").strip() or DEFAULT_COLOR_KEY
        self._qs.setValue("theme/color_key", cleaned)

    @property
    def theme_variant(self) -> str:
        raw = self._qs.value("theme/variant", DEFAULT_VARIANT, type=str)
        value = (raw or "").strip()
        return value or DEFAULT_VARIANT

    @theme_variant.setter
    def theme_variant(self, value: str) -> None:
        cleaned = (value or "").strip() or DEFAULT_VARIANT
        self._qs.setValue("theme/variant", cleaned)

    @property
    def animation_profile(self) -> str:
        raw = self._qs.value("theme/animation_profile", DEFAULT_ANIMATION_PROFILE, type=str)
        value = (raw or "").strip()
        return value or DEFAULT_ANIMATION_PROFILE

    @animation_profile.setter
    def animation_profile(self, value: str) -> None:
        cleaned = (value or "").strip() or DEFAULT_ANIMATION_PROFILE
        self._qs.setValue("theme/animation_profile", cleaned)

    @property
    def haptic_feedback(self) -> bool:
        return bool(self._qs.value("theme/haptic_feedback", True, type=bool))

    @haptic_feedback.setter
    def haptic_feedback(self, value: bool) -> None:
        self._qs.setValue("theme/haptic_feedback", bool(value))

    @property
    def advanced_animations(self) -> bool:
        return bool(self._qs.value("theme/advanced_animations", True, type=bool))

    @advanced_animations.setter
    def advanced_animations(self, value: bool) -> None:
        self._qs.setValue("theme/advanced_animations", bool(value))

    # -- helpers --

    @property
    def app_data_dir(self) -> Path:
        path = self._app_data_dir()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def log_dir(self) -> Path:
        path = self.app_data_dir / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def _app_data_dir() -> Path:
        base = Path(os.environ.get("APPDATA", Path.home() / ".config"))
        return base / "hymnal"
