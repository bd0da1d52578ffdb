"""Tests for the FIFO theme cache."""

from __future__ import annotations

import pytest

from hymnal.theme.cache import ThemeCache
from hymnal.theme.constants import DEFAULT_ANIMATION_PROFILE, DEFAULT_VARIANT
from hymnal.theme.models import DeviceClass
from hymnal.theme.resolver import ThemeResolver


def test_twenty_first_insert_evicts_the_first() -> None:
    cache: ThemeCache[int] = ThemeCache(20)
    for index in range(21):
        cache.put(f"k{index}", index)

    assert len(cache) == 20
    assert "k0" not in cache
    assert "k1" in cache
    assert "k20" in cache


def test_hits_do_not_refresh_position() -> None:
    cache: ThemeCache[int] = ThemeCache(3)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("c", 3)
    for _ in range(5):
        assert cache.get("a") == 1

    cache.put("d", 4)
    assert cache.get("a") is None
    assert cache.keys() == ["b", "c", "d"]


def test_replacing_existing_key_does_not_evict() -> None:
    cache: ThemeCache[int] = ThemeCache(2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("a", 10)
    assert cache.keys() == ["a", "b"]
    assert cache.get("a") == 10


def test_clear_empties_cache() -> None:
    cache: ThemeCache[int] = ThemeCache()
    cache.put("a", 1)
    cache.clear()
    assert len(cache) == 0
    assert cache.capacity == 20


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ThemeCache(0)


def test_resolver_cache_evicts_oldest_request() -> None:
    resolver = ThemeResolver()
    requests = []
    for color in resolver.available_color_themes():
        for dark in (False, True):
            for device in (DeviceClass.MOBILE, DeviceClass.DESKTOP):
                requests.append((dark, color, device))
    requests = requests[:21]
    assert len(set(requests)) == 21

    for dark, color, device in requests:
        resolver.resolve(dark, color, device)

    def key(request):
        dark, color, device = request
        return ThemeResolver.cache_key(
            dark, color, device, DEFAULT_VARIANT, DEFAULT_ANIMATION_PROFILE, None
        )

    assert len(resolver.cache) == 20
    assert key(requests[0]) not in resolver.cache
    assert key(requests[1]) in resolver.cache
    assert key(requests[20]) in resolver.cache
