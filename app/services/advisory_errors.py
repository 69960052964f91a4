"""Error taxonomy and classification for the advisory path."""

from __future__ import annotations

from typing import Literal

from app.services.gemini_client import GeminiCircuitOpenError

AdvisoryErrorKind = Literal[
    "rate_limited",
    "unauthorized",
    "network",
    "quota_exceeded",
    "server_error",
    "timeout",
    "bad_request",
    "malformed_response",
    "unknown",
]

RETRYABLE_KINDS: frozenset[str] = frozenset(
    {"rate_limited", "network", "server_error", "timeout"}
)

# Evaluated in order against the lowercased error text.
_KIND_MARKERS: tuple[tuple[AdvisoryErrorKind, tuple[str, ...]], ...] = (
    ("quota_exceeded", ("insufficient_quota", "quota exceeded", "exceeded your current quota", "billing")),
    ("rate_limited", ("rate_limit", "rate limit", "too many requests", "429")),
    ("unauthorized", ("unauthorized", "authentication", "api key", "api_key", "permission", "401", "403")),
    ("timeout", ("timeout", "timed out", "deadline")),
    ("network", ("network", "connection", "econnrefused", "enotfound", "unreachable")),
    (
        "server_error",
        ("server_error", "internal error", "circuit is open", "bad gateway", "unavailable", "500", "502", "503", "504"),
    ),
    ("bad_request", ("malformed request", "invalid argument", "bad request")),
    ("malformed_response", ("empty response", "malformed response", "invalid payload")),
)

_STATUS_KINDS: dict[int, AdvisoryErrorKind] = {
    400: "bad_request",
    401: "unauthorized",
    403: "unauthorized",
    408: "timeout",
    429: "rate_limited",
    504: "timeout",
}

USER_MESSAGES: dict[str, str] = {
    "rate_limited": "Too many requests right now, please wait",
    "quota_exceeded": "AI service limit reached, showing smart recommendations",
    "network": "Connection issue, using offline recommendations",
    "timeout": "Connection issue, using offline recommendations",
    "unauthorized": "Service temporarily unavailable, using quick recommendations",
    "server_error": "AI service is down at the moment, using quick recommendations",
}
GENERIC_MESSAGE = "Showing quick recommendations for the current weather"


class SnapshotValidationError(ValueError):
    """Raised when a weather snapshot is missing fields or out of range."""


class AdvisoryError(RuntimeError):
    """Advisory request failed after classification (and any retries)."""

    def __init__(
        self,
        message: str,
        kind: AdvisoryErrorKind = "unknown",
        *,
        attempts: int = 1,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.kind: AdvisoryErrorKind = kind
        self.attempts = attempts
        self._retryable = retryable

    @property
    def retryable(self) -> bool:
        if self._retryable is not None:
            return self._retryable
        return self.kind in RETRYABLE_KINDS or "temporary" in str(self).lower()

    @classmethod
    def from_exception(cls, exc: BaseException) -> "AdvisoryError":
        if isinstance(exc, AdvisoryError):
            return exc
        return cls(
            str(exc) or exc.__class__.__name__,
            classify_error(exc),
            retryable=is_retryable(exc),
        )


def classify_error(exc: BaseException) -> AdvisoryErrorKind:
    """Map an exception to an error kind from its status code or message text."""
    if isinstance(exc, AdvisoryError):
        return exc.kind
    if isinstance(exc, TimeoutError):
        return "timeout"
    if isinstance(exc, ConnectionError):
        return "network"

    text = str(exc).lower()
    for kind, markers in _KIND_MARKERS:
        if any(marker in text for marker in markers):
            return kind

    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        if status in _STATUS_KINDS:
            return _STATUS_KINDS[status]
        if status >= 500:
            return "server_error"
    return "unknown"


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, AdvisoryError):
        return exc.retryable
    if isinstance(exc, (SnapshotValidationError, GeminiCircuitOpenError)):
        return False
    if classify_error(exc) in RETRYABLE_KINDS:
        return True
    return "temporary" in str(exc).lower()


def user_message(exc: BaseException | None) -> str:
    if exc is None or isinstance(exc, SnapshotValidationError):
        return GENERIC_MESSAGE
    return USER_MESSAGES.get(classify_error(exc), GENERIC_MESSAGE)


__all__ = [
    "AdvisoryError",
    "AdvisoryErrorKind",
    "GENERIC_MESSAGE",
    "RETRYABLE_KINDS",
    "SnapshotValidationError",
    "USER_MESSAGES",
    "classify_error",
    "is_retryable",
    "user_message",
]
