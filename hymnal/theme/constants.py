"""Theme framework constants."""

from __future__ import annotations

DEFAULT_COLOR_KEY = "Blue"
DEFAULT_VARIANT = "standard"
DEFAULT_ANIMATION_PROFILE = "default"

MAX_THEME_CACHE_SIZE = 20

PERSONALITIES: tuple[str, ...] = (
    "professional",
    "creative",
    "energetic",
    "calm",
    "natural",
    "bold",
    "sophisticated",
    "playful",
)

COLOR_SET_KEYS: tuple[str, ...] = (
    "primary",
    "secondary",
    "accent",
    "personality",
)

VARIANT_KEYS: tuple[str, ...] = (
    "name",
    "description",
    "contrast_ratio",
    "saturation_multiplier",
)

ANIMATION_KEYS: tuple[str, ...] = (
    "transition_ms",
    "page_transition_ms",
    "micro_animation_ms",
    "curve",
    "bounce_curve",
)

SURFACE_KEYS: tuple[str, ...] = (
    "background",
    "surface",
    "surface_variant",
    "surface_container",
    "surface_container_lowest",
    "surface_container_low",
    "surface_container_high",
    "surface_container_highest",
)

TABLE_SECTIONS: tuple[str, ...] = (
    "colors",
    "variants",
    "animations",
    "surfaces",
)

# Responsive breakpoints (logical pixels).
MOBILE_MAX_WIDTH = 768.0
DESKTOP_MIN_WIDTH = 1024.0
LARGE_DESKTOP_MIN_WIDTH = 1440.0
