"""Locate bundled resources when running from source or from a frozen build."""

from __future__ import annotations

import sys
from pathlib import Path

_PACKAGE_NAME = "hymnal"


def is_frozen() -> bool:
    """True inside a PyInstaller build of the reader."""
    return bool(getattr(sys, "frozen", False))


def bundle_root() -> Path:
    """Extraction directory of a frozen build, or the directory above the package."""
    meipass = getattr(sys, "_MEIPASS", None) if is_frozen() else None
    if meipass:
        return Path(meipass)
    return Path(__file__).resolve().parents[1]


def package_root() -> Path:
    """Directory holding the hymnal package and its data files."""
    if not is_frozen():
        return Path(__file__).resolve().parent
    root = bundle_root()
    nested = root / _PACKAGE_NAME
    return nested if nested.exists() else root


def builtin_theme_root() -> Path:
    """Directory shipping the built-in theme tables."""
    return package_root() / "theme" / "builtin"


def theme_tables_path() -> Path:
    """The YAML file with the palettes, variants, animations and surfaces."""
    return builtin_theme_root() / "themes.yaml"
