"""In-process store implementations."""

from __future__ import annotations

import copy
from typing import Any, Mapping

from hymnal.store.base import DocumentStore, KeyValueStore


class MemoryStore(KeyValueStore):
    """Dictionary-backed key-value store."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(initial or {}))

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def contains(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> list[str]:
        return sorted(self._data)


class MemoryDocumentStore(DocumentStore):
    """Flat path -> document map standing in for the remote database."""

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, Any]] = {}

    def get_document(self, path: str) -> dict[str, Any] | None:
        doc = self._docs.get(self._normalize(path))
        return copy.deepcopy(doc) if doc is not None else None

    def set_document(self, path: str, data: Mapping[str, Any]) -> None:
        self._docs[self._normalize(path)] = copy.deepcopy(dict(data))

    def update_document(self, path: str, data: Mapping[str, Any]) -> None:
        key = self._normalize(path)
        merged = dict(self._docs.get(key, {}))
        merged.update(copy.deepcopy(dict(data)))
        self._docs[key] = merged

    def query_documents(self, collection: str) -> dict[str, dict[str, Any]]:
        prefix = self._normalize(collection) + "/"
        rows: dict[str, dict[str, Any]] = {}
        for key, doc in self._docs.items():
            if not key.startswith(prefix):
                continue
            child = key[len(prefix):]
            if "/" in child:
                continue
            rows[child] = copy.deepcopy(doc)
        return rows

    def paths(self) -> list[str]:
        return sorted(self._docs)

    @staticmethod
    def _normalize(path: str) -> str:
        return "/".join(part for part in path.split("/") if part)
