"""Theme framework models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping


class ThemeTableError(ValueError):
    """Raised when the built-in theme tables fail validation."""


class DeviceClass(str, Enum):
    """Coarse screen-size tier used to scale UI metrics."""

    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"
    LARGE_DESKTOP = "largeDesktop"


@dataclass(frozen=True, slots=True)
class ThemeColorSet:
    """A named palette."""

    primary: str
    secondary: str
    accent: str
    personality: str


@dataclass(frozen=True, slots=True)
class ThemeVariant:
    """Contrast/saturation adjustment profile applied to a palette."""

    name: str
    description: str
    contrast_ratio: float
    saturation_multiplier: float


@dataclass(frozen=True, slots=True)
class AnimationProfile:
    """Durations (milliseconds) and curve names for transitions."""

    transition_ms: int
    page_transition_ms: int
    micro_animation_ms: int
    curve: str
    bounce_curve: str


@dataclass(frozen=True, slots=True)
class SurfaceColors:
    """Fixed surface tones for one brightness."""

    background: str
    surface: str
    surface_variant: str
    surface_container: str
    surface_container_lowest: str
    surface_container_low: str
    surface_container_high: str
    surface_container_highest: str


@dataclass(frozen=True, slots=True)
class ThemeTables:
    """Read-only lookup tables loaded from the bundled YAML file."""

    colors: Mapping[str, ThemeColorSet]
    variants: Mapping[str, ThemeVariant]
    animations: Mapping[str, AnimationProfile]
    surfaces: Mapping[str, SurfaceColors]


@dataclass(frozen=True, slots=True)
class DeviceMetrics:
    """Per-device-class scale factors and sizes."""

    typography_scale: float
    icon_size: float
    border_radius: float
    button_height: float
    track_height: float
    app_bar_height: float
    spacing: float
    card_elevation: float


@dataclass(frozen=True, slots=True)
class ColorScheme:
    primary: str
    on_primary: str
    primary_container: str
    on_primary_container: str
    secondary: str
    on_secondary: str
    tertiary: str
    on_tertiary: str
    surface: str
    on_surface: str
    on_surface_variant: str
    outline: str
    outline_variant: str
    error: str
    on_error: str
    inverse_surface: str
    on_inverse_surface: str
    inverse_primary: str
    shadow: str
    surface_tint: str


@dataclass(frozen=True, slots=True)
class TextStyle:
    font_size: float
    font_weight: int
    letter_spacing: float
    height: float
    color: str
    font_family: str | None = None


@dataclass(frozen=True, slots=True)
class AppBarStyle:
    background: str
    foreground: str
    toolbar_height: float
    title_style: TextStyle
    icon_color: str
    actions_icon_color: str
    icon_size: float
    title_spacing: float
    center_title: bool = True


@dataclass(frozen=True, slots=True)
class CardStyle:
    color: str
    shadow_color: str
    border_color: str
    elevation: float
    border_radius: float
    margin: float


@dataclass(frozen=True, slots=True)
class ButtonStyle:
    background: str
    foreground: str
    disabled_background: str
    disabled_foreground: str
    min_height: float
    horizontal_padding: float
    vertical_padding: float
    border_radius: float
    elevation: float
    text_style: TextStyle
    animation_ms: int


@dataclass(frozen=True, slots=True)
class InputStyle:
    fill_color: str
    border_color: str
    focused_border_color: str
    error_border_color: str
    border_radius: float
    content_padding: float
    hint_style: TextStyle
    label_style: TextStyle


@dataclass(frozen=True, slots=True)
class SwitchStyle:
    thumb_selected: str
    thumb: str
    track_selected: str
    track: str


@dataclass(frozen=True, slots=True)
class SliderStyle:
    active_track: str
    inactive_track: str
    thumb: str
    overlay: str
    track_height: float
    value_indicator_style: TextStyle


@dataclass(frozen=True, slots=True)
class ListTileStyle:
    text_color: str
    icon_color: str
    subtitle_style: TextStyle
    horizontal_padding: float
    vertical_padding: float


@dataclass(frozen=True, slots=True)
class DividerStyle:
    color: str
    thickness: float
    space: float


@dataclass(frozen=True, slots=True)
class SnackBarStyle:
    background: str
    action_color: str
    text_style: TextStyle
    border_radius: float


@dataclass(frozen=True, slots=True)
class ComponentStyles:
    """Component-specific style records."""

    app_bar: AppBarStyle
    card: CardStyle
    elevated_button: ButtonStyle
    filled_button: ButtonStyle
    input: InputStyle
    switch: SwitchStyle
    slider: SliderStyle
    list_tile: ListTileStyle
    divider: DividerStyle
    snack_bar: SnackBarStyle


@dataclass(frozen=True, slots=True)
class ThemeExtension:
    """Non-color settings carried alongside the resolved theme."""

    animation: AnimationProfile
    variant: ThemeVariant
    personality: str
    haptic_feedback: bool
    advanced_animations: bool


@dataclass(frozen=True, slots=True)
class ResolvedTheme:
    """Fully computed style object for one combination of inputs."""

    is_dark: bool
    color_key: str
    device_class: DeviceClass
    font_family: str | None
    color_scheme: ColorScheme
    surfaces: SurfaceColors
    metrics: DeviceMetrics
    text_theme: Mapping[str, TextStyle]
    components: ComponentStyles
    extension: ThemeExtension

    @property
    def brightness(self) -> str:
        return "dark" if self.is_dark else "light"
