"""QSettings-backed key-value store."""

from __future__ import annotations

import json
from typing import Any

from PySide6.QtCore import QSettings

from hymnal.store.base import KeyValueStore


class SettingsStore(KeyValueStore):
    """Persists JSON-encoded values under one QSettings group.

    Values are stored as JSON text so INI and native backends round-trip
    lists, dicts and numbers identically.
    """

    def __init__(self, qsettings: QSettings, group: str = "state") -> None:
        self._qs = qsettings
        self._group = group.strip("/")

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._qs.value(self._key(key))
        if raw is None:
            return default
        if not isinstance(raw, str):
            return raw
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._qs.setValue(self._key(key), json.dumps(value, sort_keys=True))

    def remove(self, key: str) -> None:
        self._qs.remove(self._key(key))

    def contains(self, key: str) -> bool:
        return self._qs.contains(self._key(key))

    def keys(self) -> list[str]:
        self._qs.beginGroup(self._group)
        try:
            return sorted(self._qs.allKeys())
        finally:
            self._qs.endGroup()

    def _key(self, key: str) -> str:
        return f"{self._group}/{key}"
