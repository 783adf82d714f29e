"""Error taxonomy for search failures.

Every failure the search path can raise is a ``SearchError`` tagged with an
``ErrorKind``. The ``retryable`` flag is what the plan-level retry policy
looks at, so rate-limit, credential and configuration problems are never
retried regardless of their message.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    TRANSIENT = "transient"
    MALFORMED = "malformed"


class SearchError(Exception):
    kind: ErrorKind = ErrorKind.TRANSIENT
    retryable: bool = True


class ConfigurationError(SearchError):
    """No API credential (or another required setting) is available."""

    kind = ErrorKind.CONFIGURATION
    retryable = False


class RateLimitedError(SearchError):
    """Raised by the local rate limiter or on HTTP 429."""

    kind = ErrorKind.RATE_LIMITED
    retryable = False

    def __init__(self, message: str = "Rate limit reached. Please wait before searching again.",
                 retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class AuthenticationError(SearchError):
    kind = ErrorKind.AUTH_FAILED
    retryable = False

    def __init__(self, message: str = "Invalid API key. Please check your RapidAPI key and try again.",
                 status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientSearchError(SearchError):
    """Network failure, offline, or a generic non-success status."""

    kind = ErrorKind.TRANSIENT

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(SearchError):
    kind = ErrorKind.MALFORMED
