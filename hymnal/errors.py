"""Error codes and the user-facing notices shown for failed actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorCode(Enum):
    """Failure families reported by the services."""

    # Local store
    STORE_WRITE_FAILED = auto()
    STORE_CORRUPT = auto()

    # Auth
    AUTH_REQUIRED = auto()
    AUTH_PERMISSION_DENIED = auto()

    # Remote store
    NETWORK_TIMEOUT = auto()
    NETWORK_UNAVAILABLE = auto()
    NETWORK_NOT_FOUND = auto()
    NETWORK_RATE_LIMITED = auto()

    TRIAL_NOT_ELIGIBLE = auto()
    TRIAL_START_FAILED = auto()

    OPERATION_FAILED = auto()


# code -> (message, suggestion)
ERROR_TEXT: dict[ErrorCode, tuple[str, str]] = {
    ErrorCode.STORE_WRITE_FAILED: ("Your change could not be saved on this device.", ""),
    ErrorCode.STORE_CORRUPT: ("Saved data is damaged and was ignored.", ""),
    ErrorCode.AUTH_REQUIRED: ("You are not signed in.", "Please sign in to continue."),
    ErrorCode.AUTH_PERMISSION_DENIED: ("You do not have permission to do that.", ""),
    ErrorCode.NETWORK_TIMEOUT: (
        "The request timed out.",
        "Check your internet connection.",
    ),
    ErrorCode.NETWORK_UNAVAILABLE: (
        "The server could not be reached.",
        "Check your internet connection.",
    ),
    ErrorCode.NETWORK_NOT_FOUND: ("The requested record was not found.", ""),
    ErrorCode.NETWORK_RATE_LIMITED: (
        "Too many requests.",
        "Please wait a moment and try again.",
    ),
    ErrorCode.TRIAL_NOT_ELIGIBLE: ("A premium trial has already been used on this device.", ""),
    ErrorCode.TRIAL_START_FAILED: (
        "The premium trial could not be started.",
        "Please try again.",
    ),
    ErrorCode.OPERATION_FAILED: ("Something went wrong.", "Please try again."),
}


@dataclass
class HymnalError(Exception):
    """A classified failure with the text shown to the reader."""

    code: ErrorCode
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        default_message, default_suggestion = ERROR_TEXT.get(
            self.code, ("An unexpected error occurred.", "")
        )
        self.message = self.message or default_message
        self.suggestion = self.suggestion or default_suggestion

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({rendered})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.name,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": dict(self.details),
        }


_NAME_RULES: tuple[tuple[str, ErrorCode], ...] = (
    ("PermissionError", ErrorCode.AUTH_PERMISSION_DENIED),
    ("TimeoutError", ErrorCode.NETWORK_TIMEOUT),
    ("ConnectionError", ErrorCode.NETWORK_UNAVAILABLE),
    ("JSONDecodeError", ErrorCode.STORE_CORRUPT),
)

_TEXT_RULES: tuple[tuple[tuple[str, ...], ErrorCode], ...] = (
    (("permission denied", "403"), ErrorCode.AUTH_PERMISSION_DENIED),
    (("401", "unauthenticated", "not signed in"), ErrorCode.AUTH_REQUIRED),
    (("timeout", "timed out", "deadline"), ErrorCode.NETWORK_TIMEOUT),
    (("429", "rate limit", "quota"), ErrorCode.NETWORK_RATE_LIMITED),
    (("404", "not found"), ErrorCode.NETWORK_NOT_FOUND),
    (("network", "unreachable", "offline"), ErrorCode.NETWORK_UNAVAILABLE),
    (("corrupt",), ErrorCode.STORE_CORRUPT),
)


def classify_exception(exc: Exception) -> HymnalError:
    """Map a collaborator exception to a HymnalError.

    Type names are checked first, then message text. Any other OSError is
    treated as a failed local write.
    """
    if isinstance(exc, HymnalError):
        return exc
    name = type(exc).__name__
    text = str(exc).lower()
    details = {"exception": name, "text": text}

    for fragment, code in _NAME_RULES:
        if fragment in name:
            return HymnalError(code, details=details)
    for needles, code in _TEXT_RULES:
        if any(needle in text for needle in needles):
            return HymnalError(code, details=details)
    if isinstance(exc, OSError):
        return HymnalError(ErrorCode.STORE_WRITE_FAILED, details=details)
    return HymnalError(ErrorCode.OPERATION_FAILED, details=details)


def format_error_for_user(error: HymnalError | Exception) -> str:
    """One-line text for a transient toast or snackbar."""
    classified = classify_exception(error)
    if classified.suggestion:
        return f"{classified.message} {classified.suggestion}"
    return classified.message
