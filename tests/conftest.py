"""Shared fixtures: a controllable clock, in-memory stores and INI settings."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from hymnal.config.settings import AppSettings
from hymnal.store.base import StaticAuthProvider, UserIdentity
from hymnal.store.memory import MemoryDocumentStore, MemoryStore

START = datetime(2026, 3, 14, 10, 30)


class FakeClock:
    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def remote() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def signed_in() -> StaticAuthProvider:
    return StaticAuthProvider(UserIdentity(uid="user-1", email="reader@example.com"))


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "hymnal.ini"


@pytest.fixture
def app_settings(settings_path: Path) -> AppSettings:
    return AppSettings(settings_path)
