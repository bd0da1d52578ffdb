"""Observable reader preferences."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from hymnal.config.settings import AppSettings


class SettingsNotifier(QObject):
    """Exposes reader preferences and persists every update.

    ``changed`` carries the name of the preference that was updated.
    """

    changed = Signal(str)

    def __init__(self, settings: AppSettings) -> None:
        super().__init__()
        self._settings = settings
        self._is_dark_mode = settings.is_dark_mode
        self._font_size = settings.font_size
        self._font_family = settings.font_family
        self._text_align = settings.text_align
        self._color_theme = settings.color_theme
        self._theme_variant = settings.theme_variant
        self._animation_profile = settings.animation_profile

    @property
    def is_dark_mode(self) -> bool:
        return self._is_dark_mode

    @property
    def theme_mode(self) -> str:
        return "dark" if self._is_dark_mode else "light"

    @property
    def font_size(self) -> float:
        return self._font_size

    @property
    def font_family(self) -> str:
        return self._font_family

    @property
    def text_align(self) -> str:
        return self._text_align

    @property
    def color_theme(self) -> str:
        return self._color_theme

    @property
    def theme_variant(self) -> str:
        return self._theme_variant

    @property
    def animation_profile(self) -> str:
        return self._animation_profile

    def update_dark_mode(self, value: bool) -> None:
        self._settings.is_dark_mode = value
        self._is_dark_mode = self._settings.is_dark_mode
        self.changed.emit("dark_mode")

    def update_font_size(self, value: float) -> None:
        self._settings.font_size = value
        self._font_size = self._settings.font_size
        self.changed.emit("font_size")

    def update_font_family(self, value: str) -> None:
        self._settings.font_family = value
        self._font_family = self._settings.font_family
        self.changed.emit("font_family")

    def update_text_align(self, value: str) -> None:
        self._settings.text_align = value
        self._text_align = self._settings.text_align
        self.changed.emit("text_align")

    def update_color_theme(self, value: str) -> None:
        self._settings.color_theme = value
        self._color_theme = self._settings.color_theme
        self.changed.emit("color_theme")

    def update_theme_variant(self, value: str) -> None:
        self._settings.theme_variant = value
        self._theme_variant = self._settings.theme_variant
        self.changed.emit("theme_variant")

    def update_animation_profile(self, value: str) -> None:
        self._settings.animation_profile = value
        self._animation_profile = self._settings.animation_profile
        self.changed.emit("animation_profile")
