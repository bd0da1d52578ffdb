"""Responsive lookup tables keyed by device class."""

from __future__ import annotations

from types import MappingProxyType

from hymnal.theme.constants import (
    DESKTOP_MIN_WIDTH,
    LARGE_DESKTOP_MIN_WIDTH,
    MOBILE_MAX_WIDTH,
)
from hymnal.theme.models import DeviceClass, DeviceMetrics

_TOOLBAR_HEIGHT = 56.0

DEVICE_METRICS = MappingProxyType(
    {
        DeviceClass.MOBILE: DeviceMetrics(
            typography_scale=1.0,
            icon_size=24.0,
            border_radius=12.0,
            button_height=52.0,
            track_height=4.0,
            app_bar_height=_TOOLBAR_HEIGHT,
            spacing=16.0,
            card_elevation=2.0,
        ),
        DeviceClass.TABLET: DeviceMetrics(
            typography_scale=1.1,
            icon_size=26.0,
            border_radius=14.0,
            button_height=56.0,
            track_height=5.0,
            app_bar_height=_TOOLBAR_HEIGHT + 8,
            spacing=24.0,
            card_elevation=4.0,
        ),
        DeviceClass.DESKTOP: DeviceMetrics(
            typography_scale=1.2,
            icon_size=28.0,
            border_radius=16.0,
            button_height=60.0,
            track_height=6.0,
            app_bar_height=_TOOLBAR_HEIGHT + 16,
            spacing=32.0,
            card_elevation=6.0,
        ),
        DeviceClass.LARGE_DESKTOP: DeviceMetrics(
            typography_scale=1.3,
            icon_size=30.0,
            border_radius=18.0,
            button_height=64.0,
            track_height=6.0,
            app_bar_height=_TOOLBAR_HEIGHT + 16,
            spacing=40.0,
            card_elevation=6.0,
        ),
    }
)


def device_class_for_width(width: float) -> DeviceClass:
    """Classify a logical screen width into a device class."""
    if width < MOBILE_MAX_WIDTH:
        return DeviceClass.MOBILE
    if width < DESKTOP_MIN_WIDTH:
        return DeviceClass.TABLET
    if width < LARGE_DESKTOP_MIN_WIDTH:
        return DeviceClass.DESKTOP
    return DeviceClass.LARGE_DESKTOP


def coerce_device_class(value: DeviceClass | str | None) -> DeviceClass:
    """Map a device class, its string value, or None to a DeviceClass (mobile by default)."""
    if isinstance(value, DeviceClass):
        return value
    if isinstance(value, str):
        for device in DeviceClass:
            if device.value.lower() == value.strip().lower():
                return device
    return DeviceClass.MOBILE


def metrics_for(device_class: DeviceClass) -> DeviceMetrics:
    return DEVICE_METRICS[device_class]
