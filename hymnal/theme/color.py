"""Hex color helpers: HSL conversion, saturation scaling, contrast."""

from __future__ import annotations

import colorsys
from dataclasses import dataclass, replace

WHITE = "#FFFFFF"
BLACK = "#000000"


@dataclass(frozen=True, slots=True)
class HslColor:
    """A color in HSL space; hue in degrees, other channels in [0, 1]."""

    hue: float
    saturation: float
    lightness: float
    alpha: float = 1.0

    @classmethod
    def from_hex(cls, value: str) -> HslColor:
        r, g, b, a = parse_hex(value)
        h, l, s = colorsys.rgb_to_hls(r, g, b)
        return cls(hue=h * 360.0, saturation=s, lightness=l, alpha=a)

    def with_saturation(self, saturation: float) -> HslColor:
        return replace(self, saturation=_clamp(saturation))

    def with_lightness(self, lightness: float) -> HslColor:
        return replace(self, lightness=_clamp(lightness))

    def to_hex(self) -> str:
        r, g, b = colorsys.hls_to_rgb(self.hue / 360.0, self.lightness, self.saturation)
        return to_hex(r, g, b, self.alpha)


def parse_hex(value: str) -> tuple[float, float, float, float]:
    """Parse ``#RRGGBB`` or Qt-style ``#AARRGGBB`` into float channels."""
    text = value.strip().lstrip("#")
    if len(text) == 6:
        alpha = 255
        rgb = text
    elif len(text) == 8:
        alpha = int(text[:2], 16)
        rgb = text[2:]
    else:
        raise ValueError(f"Unsupported color {value!r}")
    r, g, b = (int(rgb[i:i + 2], 16) for i in (0, 2, 4))
    return r / 255.0, g / 255.0, b / 255.0, alpha / 255.0


def to_hex(r: float, g: float, b: float, alpha: float = 1.0) -> str:
    """Format float channels as ``#RRGGBB``, or ``#AARRGGBB`` when translucent."""
    channels = [_to_byte(c) for c in (r, g, b)]
    rgb = "".join(f"{c:02X}" for c in channels)
    a = _to_byte(alpha)
    if a == 255:
        return f"#{rgb}"
    return f"#{a:02X}{rgb}"


def adjust_saturation(value: str, multiplier: float) -> str:
    """Scale a color's HSL saturation, clamped to [0, 1]; hue and lightness are kept."""
    return adjust_saturation_hsl(HslColor.from_hex(value), multiplier).to_hex()


def adjust_saturation_hsl(color: HslColor, multiplier: float) -> HslColor:
    return color.with_saturation(color.saturation * multiplier)


def with_alpha(value: str, alpha: float) -> str:
    r, g, b, _ = parse_hex(value)
    return to_hex(r, g, b, alpha)


def relative_luminance(value: str) -> float:
    r, g, b, _ = parse_hex(value)
    return 0.2126 * _linear(r) + 0.7152 * _linear(g) + 0.0722 * _linear(b)


def contrast_ratio(first: str, second: str) -> float:
    l1 = relative_luminance(first)
    l2 = relative_luminance(second)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def on_color(background: str) -> str:
    """Pick black or white text, whichever contrasts more with ``background``."""
    if contrast_ratio(background, WHITE) >= contrast_ratio(background, BLACK):
        return WHITE
    return BLACK


def _linear(channel: float) -> float:
    if channel <= 0.03928:
        return channel / 12.92
    return ((channel + 0.055) / 1.055) ** 2.4


def _to_byte(channel: float) -> int:
    return int(round(_clamp(channel) * 255))


def _clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))
