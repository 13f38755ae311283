"""
Exception hierarchy for search errors.

This module defines the errors raised by the search engine, covering
invalid input, authentication, remote HTTP failures, timeouts and
transport-level faults.
"""

from typing import Optional


class EasynewsSearchError(Exception):
    """Base exception for search related errors."""

    pass


class InvalidArgument(EasynewsSearchError, ValueError):
    """Raised when search input is invalid. Never reaches the network."""

    pass


class AuthenticationFailed(EasynewsSearchError):
    """Raised when the remote API rejects the credentials (HTTP 401)."""

    pass


class RemoteRequestFailed(EasynewsSearchError):
    """Raised when the remote API answers with a non-success status."""

    def __init__(self, message: str, status_code: int, reason: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class RequestTimedOut(EasynewsSearchError, TimeoutError):
    """Raised when a request exceeds its timeout."""

    pass


class TransportError(EasynewsSearchError):
    """Raised on network-level faults. The underlying error is kept in ``cause``."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
