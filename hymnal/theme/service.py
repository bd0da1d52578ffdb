"""Runtime theme resolve, apply and persistence service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal

from hymnal.theme.compiler import compile_theme_stylesheet
from hymnal.theme.constants import (
    DEFAULT_ANIMATION_PROFILE,
    DEFAULT_COLOR_KEY,
    DEFAULT_VARIANT,
)
from hymnal.theme.metrics import device_class_for_width
from hymnal.theme.models import DeviceClass, ResolvedTheme
from hymnal.theme.resolver import ThemeResolver

if TYPE_CHECKING:
    from hymnal.config.settings import AppSettings

logger = logging.getLogger(__name__)


class ThemeService(QObject):
    """Resolve the reader's theme, apply it to the application and persist selection."""

    theme_changed = Signal(object)

    def __init__(
        self,
        settings: AppSettings,
        resolver: ThemeResolver | None = None,
        app=None,
        *,
        device_width: float | None = None,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._resolver = resolver or ThemeResolver()
        self._app = app
        self._device_class = (
            device_class_for_width(device_width) if device_width is not None else DeviceClass.MOBILE
        )
        self._current: ResolvedTheme | None = None

    @property
    def resolver(self) -> ThemeResolver:
        return self._resolver

    @property
    def device_class(self) -> DeviceClass:
        return self._device_class

    def current_theme(self) -> ResolvedTheme:
        if self._current is None:
            self._current = self._resolve_from_settings()
        return self._current

    def set_device_width(self, width: float) -> ResolvedTheme:
        """Re-resolve for a new window width; re-applies only when the device class changes."""
        device = device_class_for_width(width)
        if device == self._device_class and self._current is not None:
            return self._current
        self._device_class = device
        return self._apply(self._resolve_from_settings())

    def apply_theme(
        self,
        *,
        color_key: str | None = None,
        dark_mode: bool | None = None,
        variant: str | None = None,
        animation_profile: str | None = None,
        persist: bool = True,
    ) -> tuple[bool, str]:
        """Apply a new selection; unspecified values keep the stored preference."""
        tables = self._resolver.tables
        if color_key is not None and color_key not in tables.colors:
            return False, f"Color theme not found: {color_key}"
        if variant is not None and variant not in tables.variants:
            return False, f"Theme variant not found: {variant}"
        if animation_profile is not None and animation_profile not in tables.animations:
            return False, f"Animation profile not found: {animation_profile}"

        settings = self._settings
        chosen_color = color_key if color_key is not None else settings.color_theme
        chosen_dark = dark_mode if dark_mode is not None else settings.is_dark_mode
        chosen_variant = variant if variant is not None else settings.theme_variant
        chosen_animation = (
            animation_profile if animation_profile is not None else settings.animation_profile
        )
        if persist:
            settings.color_theme = chosen_color
            settings.is_dark_mode = chosen_dark
            settings.theme_variant = chosen_variant
            settings.animation_profile = chosen_animation

        theme = self._resolver.resolve(
            chosen_dark,
            chosen_color,
            self._device_class,
            chosen_variant,
            chosen_animation,
            settings.font_family,
            haptic_feedback=settings.haptic_feedback,
            advanced_animations=settings.advanced_animations,
        )
        self._apply(theme)
        return True, f"Applied theme: {theme.color_key} ({theme.brightness})"

    def apply_startup_theme(self) -> tuple[bool, str]:
        """Apply the stored theme, first resetting any key that no longer exists."""
        settings = self._settings
        tables = self._resolver.tables
        stale: list[str] = []
        if settings.color_theme not in tables.colors:
            stale.append(settings.color_theme)
            settings.color_theme = DEFAULT_COLOR_KEY
        if settings.theme_variant not in tables.variants:
            stale.append(settings.theme_variant)
            settings.theme_variant = DEFAULT_VARIANT
        if settings.animation_profile not in tables.animations:
            stale.append(settings.animation_profile)
            settings.animation_profile = DEFAULT_ANIMATION_PROFILE

        ok, message = self.apply_theme(persist=False)
        if stale:
            logger.warning("Reset stale theme preferences: %s", ", ".join(stale))
            return False, f"Stored theme preferences were reset to defaults. {message}"
        return ok, message

    def _resolve_from_settings(self) -> ResolvedTheme:
        settings = self._settings
        return self._resolver.resolve(
            settings.is_dark_mode,
            settings.color_theme,
            self._device_class,
            settings.theme_variant,
            settings.animation_profile,
            settings.font_family,
            haptic_feedback=settings.haptic_feedback,
            advanced_animations=settings.advanced_animations,
        )

    def _apply(self, theme: ResolvedTheme) -> ResolvedTheme:
        if self._app is not None:
            self._app.setStyleSheet(compile_theme_stylesheet(theme))
        self._current = theme
        self.theme_changed.emit(theme)
        return theme
