"""Theme resolution exports."""

from hymnal.theme.constants import DEFAULT_ANIMATION_PROFILE, DEFAULT_COLOR_KEY, DEFAULT_VARIANT
from hymnal.theme.models import DeviceClass, ResolvedTheme, ThemeTableError
from hymnal.theme.resolver import ThemeResolver
from hymnal.theme.service import ThemeService

__all__ = [
    "DEFAULT_ANIMATION_PROFILE",
    "DEFAULT_COLOR_KEY",
    "DEFAULT_VARIANT",
    "DeviceClass",
    "ResolvedTheme",
    "ThemeResolver",
    "ThemeService",
    "ThemeTableError",
]
