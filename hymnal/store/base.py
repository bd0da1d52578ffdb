"""Collaborator interfaces consumed by the services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


class KeyValueStore:
    """Local preference storage holding JSON-compatible values.

    Implementations may raise on I/O failure; callers catch and fall back to
    defaults.
    """

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def contains(self, key: str) -> bool:
        raise NotImplementedError

    def keys(self) -> list[str]:
        raise NotImplementedError


class DocumentStore:
    """Remote document storage addressed by slash-separated paths."""

    def get_document(self, path: str) -> dict[str, Any] | None:
        raise NotImplementedError

    def set_document(self, path: str, data: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def update_document(self, path: str, data: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def query_documents(self, collection: str) -> dict[str, dict[str, Any]]:
        """Return the direct children of ``collection`` keyed by document id."""
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """The signed-in account as reported by the auth provider."""

    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    is_anonymous: bool = False


class AuthProvider:
    """Supplies the nullable current-user identity."""

    def current_user(self) -> UserIdentity | None:
        raise NotImplementedError


class StaticAuthProvider(AuthProvider):
    """Auth provider holding a user set in-process."""

    def __init__(self, user: UserIdentity | None = None) -> None:
        self._user = user

    def current_user(self) -> UserIdentity | None:
        return self._user

    def sign_in(self, user: UserIdentity) -> None:
        self._user = user

    def sign_out(self) -> None:
        self._user = None
