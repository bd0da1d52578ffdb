"""Theme table parsing and validation."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

from hymnal.runtime_paths import theme_tables_path
from hymnal.theme.constants import (
    ANIMATION_KEYS,
    COLOR_SET_KEYS,
    DEFAULT_ANIMATION_PROFILE,
    DEFAULT_COLOR_KEY,
    DEFAULT_VARIANT,
    PERSONALITIES,
    SURFACE_KEYS,
    TABLE_SECTIONS,
    VARIANT_KEYS,
)
from hymnal.theme.models import (
    AnimationProfile,
    SurfaceColors,
    ThemeColorSet,
    ThemeTableError,
    ThemeTables,
    ThemeVariant,
)

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_KEY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")

_MAX_TABLE_BYTES = 64 * 1024
_MAX_SHORT_FIELD_LEN = 120
_MAX_DESC_LEN = 240
_MAX_MULTIPLIER = 4.0
_MAX_DURATION_MS = 10_000


def load_theme_tables(path: Path | None = None) -> ThemeTables:
    """Load and validate the color, variant, animation and surface tables."""
    source = path or theme_tables_path()
    data = _load_yaml(source)
    _reject_unknown_keys(data, allowed=set(TABLE_SECTIONS), context=str(source))

    colors = {
        key: _parse_color_set(key, entry, source)
        for key, entry in _section(data, "colors", source).items()
    }
    variants = {
        key: _parse_variant(key, entry, source)
        for key, entry in _section(data, "variants", source).items()
    }
    animations = {
        key: _parse_animation(key, entry, source)
        for key, entry in _section(data, "animations", source).items()
    }
    surfaces_section = _section(data, "surfaces", source)
    _reject_unknown_keys(surfaces_section, allowed={"light", "dark"}, context=f"{source}: surfaces")
    surfaces = {
        brightness: _parse_surfaces(brightness, surfaces_section.get(brightness), source)
        for brightness in ("light", "dark")
    }

    _require_default(colors, DEFAULT_COLOR_KEY, "colors", source)
    _require_default(variants, DEFAULT_VARIANT, "variants", source)
    _require_default(animations, DEFAULT_ANIMATION_PROFILE, "animations", source)

    return ThemeTables(
        colors=MappingProxyType(colors),
        variants=MappingProxyType(variants),
        animations=MappingProxyType(animations),
        surfaces=MappingProxyType(surfaces),
    )


@lru_cache(maxsize=1)
def builtin_theme_tables() -> ThemeTables:
    """Return the bundled tables, parsed once per process."""
    return load_theme_tables()


def _load_yaml(path: Path) -> Mapping[str, object]:
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise ThemeTableError(f"Unable to stat {path}: {exc}") from exc
    if size > _MAX_TABLE_BYTES:
        raise ThemeTableError(f"{path}: file exceeds max size ({_MAX_TABLE_BYTES} bytes)")
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ThemeTableError(f"Unable to read {path}: {exc}") from exc
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ThemeTableError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ThemeTableError(f"Expected a mapping at the top of {path}")
    return data


def _section(data: Mapping[str, object], name: str, source: Path) -> Mapping[str, object]:
    section = data.get(name)
    if not isinstance(section, dict) or not section:
        raise ThemeTableError(f"{source}: section {name!r} must be a non-empty mapping")
    for key in section:
        if not isinstance(key, str) or not _KEY_RE.match(key):
            raise ThemeTableError(f"{source}: {name} key {key!r} must be alphanumeric")
    return section


def _parse_color_set(key: str, entry: object, source: Path) -> ThemeColorSet:
    context = f"{source}: colors.{key}"
    fields = _entry(entry, COLOR_SET_KEYS, context)
    personality = _required_str(fields, "personality", context, max_len=_MAX_SHORT_FIELD_LEN)
    if personality not in PERSONALITIES:
        raise ThemeTableError(f"{context}: unknown personality {personality!r}")
    return ThemeColorSet(
        primary=_required_color(fields, "primary", context),
        secondary=_required_color(fields, "secondary", context),
        accent=_required_color(fields, "accent", context),
        personality=personality,
    )


def _parse_variant(key: str, entry: object, source: Path) -> ThemeVariant:
    context = f"{source}: variants.{key}"
    fields = _entry(entry, VARIANT_KEYS, context)
    return ThemeVariant(
        name=_required_str(fields, "name", context, max_len=_MAX_SHORT_FIELD_LEN),
        description=_required_str(fields, "description", context, max_len=_MAX_DESC_LEN),
        contrast_ratio=_required_number(fields, "contrast_ratio", context, upper=_MAX_MULTIPLIER),
        saturation_multiplier=_required_number(
            fields, "saturation_multiplier", context, upper=_MAX_MULTIPLIER
        ),
    )


def _parse_animation(key: str, entry: object, source: Path) -> AnimationProfile:
    context = f"{source}: animations.{key}"
    fields = _entry(entry, ANIMATION_KEYS, context)
    return AnimationProfile(
        transition_ms=_required_duration(fields, "transition_ms", context),
        page_transition_ms=_required_duration(fields, "page_transition_ms", context),
        micro_animation_ms=_required_duration(fields, "micro_animation_ms", context),
        curve=_required_str(fields, "curve", context, max_len=_MAX_SHORT_FIELD_LEN),
        bounce_curve=_required_str(fields, "bounce_curve", context, max_len=_MAX_SHORT_FIELD_LEN),
    )


def _parse_surfaces(brightness: str, entry: object, source: Path) -> SurfaceColors:
    context = f"{source}: surfaces.{brightness}"
    fields = _entry(entry, SURFACE_KEYS, context)
    return SurfaceColors(**{key: _required_color(fields, key, context) for key in SURFACE_KEYS})


def _entry(entry: object, keys: tuple[str, ...], context: str) -> Mapping[str, object]:
    if not isinstance(entry, dict):
        raise ThemeTableError(f"{context}: expected a mapping")
    _reject_unknown_keys(entry, allowed=set(keys), context=context)
    missing = [key for key in keys if key not in entry]
    if missing:
        raise ThemeTableError(f"{context}: missing keys: {', '.join(sorted(missing))}")
    return entry


def _required_str(data: Mapping[str, object], key: str, context: str, *, max_len: int) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ThemeTableError(f"{context}: field {key!r} must be a non-empty string")
    cleaned = value.strip()
    if len(cleaned) > max_len:
        raise ThemeTableError(f"{context}: field {key!r} exceeds max length {max_len}")
    if any(ch in cleaned for ch in ("\n", "\r", "\t")):
        raise ThemeTableError(f"{context}: field {key!r} must be a single line string")
    return cleaned


def _required_color(data: Mapping[str, object], key: str, context: str) -> str:
    value = _required_str(data, key, context, max_len=9)
    if not _HEX_COLOR_RE.match(value):
        raise ThemeTableError(f"{context}: field {key!r} has invalid color {value!r}")
    return value.upper()


def _required_number(data: Mapping[str, object], key: str, context: str, *, upper: float) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ThemeTableError(f"{context}: field {key!r} must be a number")
    number = float(value)
    if not 0.0 < number <= upper:
        raise ThemeTableError(f"{context}: field {key!r} must be in (0, {upper}]")
    return number


def _required_duration(data: Mapping[str, object], key: str, context: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ThemeTableError(f"{context}: field {key!r} must be an integer")
    if not 0 <= value <= _MAX_DURATION_MS:
        raise ThemeTableError(f"{context}: field {key!r} must be in [0, {_MAX_DURATION_MS}]")
    return value


def _require_default(table: Mapping[str, object], key: str, section: str, source: Path) -> None:
    if key not in table:
        raise ThemeTableError(f"{source}: {section} must define the default entry {key!r}")


def _reject_unknown_keys(
    data: Mapping[str, object],
    *,
    allowed: set[str],
    context: str,
) -> None:
    unknown = sorted(str(key) for key in data.keys() if key not in allowed)
    if unknown:
        joined = ", ".join(unknown)
        raise ThemeTableError(f"{context}: unsupported keys found: {joined}")
