"""Exception hierarchy for ghrest.

Every failure the core cannot recover from surfaces as one of these.
Normalization problems (duplicate-case JSON keys, unparsable dates) never
raise; they degrade to a less structured body instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ghrest.models import StructuredError


class GitHubRestError(Exception):
    """Base class for ghrest errors."""


class ConfigurationError(GitHubRestError):
    """Raised for invalid caller input, before any network call is made."""


class TransportError(GitHubRestError):
    """Raised when no response was received (DNS, TLS, connection, timeout)."""

    def __init__(self, message: str, method: str | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.method = method
        self.url = url


class RetryExhaustedError(GitHubRestError):
    """Raised when a GET keeps answering 202 past the configured retry budget."""

    def __init__(self, limit: int, url: str | None = None) -> None:
        super().__init__(
            f"Request still not ready after the configured maximum of {limit} retries"
            + (f": {url}" if url else "")
        )
        self.limit = limit
        self.url = url


class ApiError(GitHubRestError):
    """Raised for a non-2xx response.

    The full structured breakdown is available on ``error``; the most used
    fields are mirrored as attributes.
    """

    def __init__(self, error: StructuredError) -> None:
        super().__init__(error.message)
        self.error = error
        self.status_code = error.status_code
        self.request_id = error.request_id
