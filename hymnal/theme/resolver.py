"""Deterministic theme resolution with a bounded FIFO cache."""

from __future__ import annotations

import logging
from types import MappingProxyType

from hymnal.theme.cache import ThemeCache
from hymnal.theme.color import (
    HslColor,
    adjust_saturation,
    on_color,
    with_alpha,
)
from hymnal.theme.constants import (
    DEFAULT_ANIMATION_PROFILE,
    DEFAULT_COLOR_KEY,
    DEFAULT_VARIANT,
    MAX_THEME_CACHE_SIZE,
)
from hymnal.theme.loader import builtin_theme_tables
from hymnal.theme.metrics import coerce_device_class, device_class_for_width, metrics_for
from hymnal.theme.models import (
    AnimationProfile,
    AppBarStyle,
    ButtonStyle,
    CardStyle,
    ColorScheme,
    ComponentStyles,
    DeviceClass,
    DeviceMetrics,
    DividerStyle,
    InputStyle,
    ListTileStyle,
    ResolvedTheme,
    SliderStyle,
    SnackBarStyle,
    SurfaceColors,
    SwitchStyle,
    TextStyle,
    ThemeColorSet,
    ThemeExtension,
    ThemeTables,
    ThemeVariant,
)

logger = logging.getLogger(__name__)

# (name, size, weight, letter spacing, line height, uses on_surface_variant)
TEXT_STYLE_SPECS: tuple[tuple[str, float, int, float, float, bool], ...] = (
    ("displayLarge", 57, 400, -0.25, 1.12, False),
    ("displayMedium", 45, 400, 0.0, 1.16, False),
    ("displaySmall", 36, 400, 0.0, 1.22, False),
    ("headlineLarge", 32, 400, 0.0, 1.25, False),
    ("headlineMedium", 28, 400, 0.0, 1.29, False),
    ("headlineSmall", 24, 400, 0.0, 1.33, False),
    ("titleLarge", 22, 400, 0.0, 1.27, False),
    ("titleMedium", 16, 500, 0.15, 1.5, False),
    ("titleSmall", 14, 500, 0.1, 1.43, False),
    ("bodyLarge", 16, 400, 0.5, 1.5, False),
    ("bodyMedium", 14, 400, 0.25, 1.43, True),
    ("bodySmall", 12, 400, 0.4, 1.33, True),
    ("labelLarge", 14, 500, 0.1, 1.43, False),
    ("labelMedium", 12, 500, 0.5, 1.33, False),
    ("labelSmall", 11, 500, 0.5, 1.45, False),
)

# Neutral roles per brightness.
_NEUTRALS = {
    False: {
        "on_surface": "#1C1B1F",
        "on_surface_variant": "#49454F",
        "outline": "#79747E",
        "outline_variant": "#CAC4D0",
        "error": "#B3261E",
        "on_error": "#FFFFFF",
        "inverse_surface": "#313033",
        "on_inverse_surface": "#F4EFF4",
    },
    True: {
        "on_surface": "#E6E1E5",
        "on_surface_variant": "#CAC4D0",
        "outline": "#938F99",
        "outline_variant": "#49454F",
        "error": "#F2B8B5",
        "on_error": "#601410",
        "inverse_surface": "#E6E1E5",
        "on_inverse_surface": "#313033",
    },
}


class ThemeResolver:
    """Turn reader preferences into a fully computed ResolvedTheme.

    Results are memoized by a key built from every input. The cache evicts in
    insertion order once it reaches capacity.
    """

    def __init__(
        self,
        tables: ThemeTables | None = None,
        *,
        cache_size: int = MAX_THEME_CACHE_SIZE,
    ) -> None:
        self._tables = tables or builtin_theme_tables()
        self._cache: ThemeCache[ResolvedTheme] = ThemeCache(cache_size)

    @property
    def tables(self) -> ThemeTables:
        return self._tables

    @property
    def cache(self) -> ThemeCache[ResolvedTheme]:
        return self._cache

    def resolve(
        self,
        dark_mode: bool,
        color_key: str | None,
        device_class: DeviceClass | str | None = None,
        variant: str | None = DEFAULT_VARIANT,
        animation_profile: str | None = DEFAULT_ANIMATION_PROFILE,
        font_family: str | None = None,
        *,
        haptic_feedback: bool = True,
        advanced_animations: bool = True,
    ) -> ResolvedTheme:
        color_key = color_key or DEFAULT_COLOR_KEY
        variant = variant or DEFAULT_VARIANT
        animation_profile = animation_profile or DEFAULT_ANIMATION_PROFILE
        device = coerce_device_class(device_class)
        key = self.cache_key(
            dark_mode,
            color_key,
            device,
            variant,
            animation_profile,
            font_family,
            haptic_feedback=haptic_feedback,
            advanced_animations=advanced_animations,
        )
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        theme = self._build(
            dark_mode=bool(dark_mode),
            color_key=color_key,
            device=device,
            variant_key=variant,
            animation_key=animation_profile,
            font_family=font_family,
            haptic_feedback=haptic_feedback,
            advanced_animations=advanced_animations,
        )
        self._cache.put(key, theme)
        logger.debug("Resolved theme %s", key)
        return theme

    def resolve_for_width(
        self,
        width: float,
        dark_mode: bool,
        color_key: str,
        variant: str = DEFAULT_VARIANT,
        animation_profile: str = DEFAULT_ANIMATION_PROFILE,
        font_family: str | None = None,
        **toggles: bool,
    ) -> ResolvedTheme:
        return self.resolve(
            dark_mode,
            color_key,
            device_class_for_width(width),
            variant,
            animation_profile,
            font_family,
            **toggles,
        )

    def resolve_legacy(
        self,
        dark_mode: bool,
        color_key: str,
        device_class: DeviceClass | str | None = None,
    ) -> ResolvedTheme:
        """Resolve with the default variant and animation profile."""
        return self.resolve(dark_mode, color_key, device_class)

    @staticmethod
    def cache_key(
        dark_mode: bool,
        color_key: str | None,
        device_class: DeviceClass | str | None,
        variant: str | None,
        animation_profile: str | None,
        font_family: str | None,
        *,
        haptic_feedback: bool = True,
        advanced_animations: bool = True,
    ) -> str:
        device = coerce_device_class(device_class)
        parts = [
            str(bool(dark_mode)).lower(),
            str(color_key),
            device.value,
            str(variant),
            str(animation_profile),
            str(font_family or "null"),
        ]
        key = "-".join(parts)
        if not (haptic_feedback and advanced_animations):
            key = f"{key}-h{int(haptic_feedback)}a{int(advanced_animations)}"
        return key

    def color_set_or_default(self, key: str) -> ThemeColorSet:
        colors = self._tables.colors
        return colors.get(key) or colors[DEFAULT_COLOR_KEY]

    def variant_or_default(self, key: str) -> ThemeVariant:
        variants = self._tables.variants
        return variants.get(key) or variants[DEFAULT_VARIANT]

    def animation_or_default(self, key: str) -> AnimationProfile:
        animations = self._tables.animations
        return animations.get(key) or animations[DEFAULT_ANIMATION_PROFILE]

    def available_color_themes(self) -> list[str]:
        return list(self._tables.colors)

    def available_theme_variants(self) -> list[str]:
        return list(self._tables.variants)

    def available_animation_profiles(self) -> list[str]:
        return list(self._tables.animations)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _build(
        self,
        *,
        dark_mode: bool,
        color_key: str,
        device: DeviceClass,
        variant_key: str,
        animation_key: str,
        font_family: str | None,
        haptic_feedback: bool,
        advanced_animations: bool,
    ) -> ResolvedTheme:
        color_set = self.color_set_or_default(color_key)
        variant = self.variant_or_default(variant_key)
        animation = self.animation_or_default(animation_key)
        surfaces = self._tables.surfaces["dark" if dark_mode else "light"]
        metrics = metrics_for(device)

        scheme = build_color_scheme(color_set, variant, surfaces, dark_mode)
        text_theme = build_text_theme(scheme, metrics.typography_scale, font_family)
        components = build_components(scheme, surfaces, metrics, animation, dark_mode)
        resolved_key = color_key if color_key in self._tables.colors else DEFAULT_COLOR_KEY

        return ResolvedTheme(
            is_dark=dark_mode,
            color_key=resolved_key,
            device_class=device,
            font_family=font_family,
            color_scheme=scheme,
            surfaces=surfaces,
            metrics=metrics,
            text_theme=text_theme,
            components=components,
            extension=ThemeExtension(
                animation=animation,
                variant=variant,
                personality=color_set.personality,
                haptic_feedback=haptic_feedback,
                advanced_animations=advanced_animations,
            ),
        )


def build_color_scheme(
    color_set: ThemeColorSet,
    variant: ThemeVariant,
    surfaces: SurfaceColors,
    dark_mode: bool,
) -> ColorScheme:
    """Derive the color roles from a palette adjusted for ``variant``."""
    multiplier = variant.saturation_multiplier
    seed = HslColor.from_hex(adjust_saturation(color_set.primary, multiplier))
    neutrals = _NEUTRALS[dark_mode]

    if dark_mode:
        primary = seed.with_lightness(0.8).to_hex()
        primary_container = seed.with_lightness(0.3).to_hex()
        on_primary_container = seed.with_lightness(0.9).to_hex()
        inverse_primary = seed.with_lightness(0.4).to_hex()
    else:
        primary = seed.to_hex()
        primary_container = seed.with_lightness(0.9).to_hex()
        on_primary_container = seed.with_lightness(0.1).to_hex()
        inverse_primary = seed.with_lightness(0.8).to_hex()

    secondary = adjust_saturation(color_set.secondary, multiplier)
    tertiary = adjust_saturation(color_set.accent, multiplier)

    return ColorScheme(
        primary=primary,
        on_primary=on_color(primary),
        primary_container=primary_container,
        on_primary_container=on_primary_container,
        secondary=secondary,
        on_secondary=on_color(secondary),
        tertiary=tertiary,
        on_tertiary=on_color(tertiary),
        surface=surfaces.surface,
        on_surface=neutrals["on_surface"],
        on_surface_variant=neutrals["on_surface_variant"],
        outline=neutrals["outline"],
        outline_variant=neutrals["outline_variant"],
        error=neutrals["error"],
        on_error=neutrals["on_error"],
        inverse_surface=neutrals["inverse_surface"],
        on_inverse_surface=neutrals["on_inverse_surface"],
        inverse_primary=inverse_primary,
        shadow="#000000",
        surface_tint=primary,
    )


def build_text_theme(
    scheme: ColorScheme,
    scale: float,
    font_family: str | None,
) -> MappingProxyType:
    styles = {}
    for name, size, weight, spacing, height, muted in TEXT_STYLE_SPECS:
        styles[name] = TextStyle(
            font_size=size * scale,
            font_weight=weight,
            letter_spacing=spacing,
            height=height,
            color=scheme.on_surface_variant if muted else scheme.on_surface,
            font_family=font_family,
        )
    return MappingProxyType(styles)


def build_components(
    scheme: ColorScheme,
    surfaces: SurfaceColors,
    metrics: DeviceMetrics,
    animation: AnimationProfile,
    dark_mode: bool,
) -> ComponentStyles:
    scale = metrics.typography_scale
    spacing = metrics.spacing
    radius = metrics.border_radius

    button_text = TextStyle(
        font_size=16 * scale,
        font_weight=600,
        letter_spacing=0.1,
        height=1.25,
        color=scheme.on_primary,
    )
    elevated = ButtonStyle(
        background=scheme.primary,
        foreground=scheme.on_primary,
        disabled_background=with_alpha(scheme.on_surface, 0.12),
        disabled_foreground=with_alpha(scheme.on_surface, 0.38),
        min_height=metrics.button_height,
        horizontal_padding=spacing * 1.5,
        vertical_padding=spacing * 0.75,
        border_radius=radius,
        elevation=metrics.card_elevation,
        text_style=button_text,
        animation_ms=animation.transition_ms,
    )
    filled = ButtonStyle(
        background=scheme.primary,
        foreground=scheme.on_primary,
        disabled_background=with_alpha(scheme.on_surface, 0.12),
        disabled_foreground=with_alpha(scheme.on_surface, 0.38),
        min_height=metrics.button_height,
        horizontal_padding=spacing * 1.5,
        vertical_padding=spacing * 0.75,
        border_radius=radius,
        elevation=0.0,
        text_style=TextStyle(
            font_size=16 * scale,
            font_weight=600,
            letter_spacing=0.1,
            height=1.25,
            color=scheme.on_primary,
        ),
        animation_ms=animation.transition_ms,
    )

    return ComponentStyles(
        app_bar=AppBarStyle(
            background=surfaces.surface_container,
            foreground=scheme.on_surface,
            toolbar_height=metrics.app_bar_height,
            title_style=TextStyle(
                font_size=20 * scale,
                font_weight=600,
                letter_spacing=0.15,
                height=1.2,
                color=scheme.on_surface,
            ),
            icon_color=scheme.on_surface_variant,
            actions_icon_color=scheme.primary,
            icon_size=metrics.icon_size,
            title_spacing=spacing,
        ),
        card=CardStyle(
            color=surfaces.surface_container_low,
            shadow_color=with_alpha(scheme.shadow, 0.3 if dark_mode else 0.1),
            border_color=with_alpha(scheme.outline_variant, 0.2),
            elevation=metrics.card_elevation,
            border_radius=radius,
            margin=spacing / 2,
        ),
        elevated_button=elevated,
        filled_button=filled,
        input=InputStyle(
            fill_color=surfaces.surface_container_highest,
            border_color=scheme.outline,
            focused_border_color=scheme.primary,
            error_border_color=scheme.error,
            border_radius=radius,
            content_padding=spacing,
            hint_style=TextStyle(
                font_size=16 * scale,
                font_weight=400,
                letter_spacing=0.15,
                height=1.5,
                color=with_alpha(scheme.on_surface_variant, 0.6),
            ),
            label_style=TextStyle(
                font_size=16 * scale,
                font_weight=400,
                letter_spacing=0.15,
                height=1.5,
                color=scheme.on_surface_variant,
            ),
        ),
        switch=SwitchStyle(
            thumb_selected=scheme.on_primary,
            thumb=scheme.outline,
            track_selected=scheme.primary,
            track=surfaces.surface_container_highest,
        ),
        slider=SliderStyle(
            active_track=scheme.primary,
            inactive_track=scheme.primary_container,
            thumb=scheme.primary,
            overlay=with_alpha(scheme.primary, 0.12),
            track_height=metrics.track_height,
            value_indicator_style=TextStyle(
                font_size=12 * scale,
                font_weight=600,
                letter_spacing=0.0,
                height=1.33,
                color=scheme.on_primary,
            ),
        ),
        list_tile=ListTileStyle(
            text_color=scheme.on_surface,
            icon_color=scheme.on_surface_variant,
            subtitle_style=TextStyle(
                font_size=14 * scale,
                font_weight=400,
                letter_spacing=0.25,
                height=1.43,
                color=scheme.on_surface_variant,
            ),
            horizontal_padding=spacing,
            vertical_padding=spacing / 4,
        ),
        divider=DividerStyle(
            color=scheme.outline_variant,
            thickness=1.0,
            space=spacing,
        ),
        snack_bar=SnackBarStyle(
            background=scheme.inverse_surface,
            action_color=scheme.inverse_primary,
            text_style=TextStyle(
                font_size=14 * scale,
                font_weight=400,
                letter_spacing=0.25,
                height=1.43,
                color=scheme.on_inverse_surface,
            ),
            border_radius=radius,
        ),
    )
