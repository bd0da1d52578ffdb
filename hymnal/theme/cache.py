"""Bounded insertion-order cache for resolved themes."""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

from hymnal.theme.constants import MAX_THEME_CACHE_SIZE

V = TypeVar("V")


class ThemeCache(Generic[V]):
    """FIFO cache: once full, the oldest inserted key is evicted.

    Lookups never reorder entries, so a frequently read key is still evicted
    in insertion order.
    """

    def __init__(self, capacity: int = MAX_THEME_CACHE_SIZE) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._entries: dict[str, V] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: str) -> V | None:
        return self._entries.get(key)

    def put(self, key: str, value: V) -> None:
        if key in self._entries:
            self._entries[key] = value
            return
        while len(self._entries) >= self._capacity:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
