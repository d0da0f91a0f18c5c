"""Internal data models for ghrest.

All models use Pydantic v2. Request and response models are frozen: a
descriptor describes exactly one call and an envelope records exactly one
response.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ghrest.errors import ConfigurationError

VERSION = "0.1.0"

DEFAULT_ACCEPT = "application/vnd.github.v3+json"
DEFAULT_API_HOST = "github.com"
JSON_CONTENT_TYPE = "application/json; charset=UTF-8"

VALID_METHODS = frozenset({"GET", "POST", "PATCH", "PUT", "DELETE"})
# Methods that may carry a request body and get a Content-Type header.
BODY_METHODS = frozenset({"POST", "PATCH", "PUT", "DELETE"})
STATE_CHANGING_METHODS = BODY_METHODS
# File uploads (release assets) are only accepted on creating calls.
UPLOAD_METHODS = frozenset({"POST"})


# =============================================================================
# Request / Response Models
# =============================================================================


class RequestDescriptor(BaseModel):
    """One fully described REST call.

    ``target`` is either a path fragment relative to the configured API host
    (``repos/octo/hello``) or an absolute URL, typically a ``rel="next"`` link
    replayed verbatim from a previous response.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    method: str = Field(default="GET", description="HTTP method")
    target: str = Field(description="Relative path fragment or absolute URL")
    accept: str = Field(default=DEFAULT_ACCEPT, description="Accept header, may be comma-joined")
    body: str | None = Field(default=None, description="Raw request body (usually JSON text)")
    in_file: Path | None = Field(default=None, description="File to upload as the request body")
    content_type: str | None = Field(default=None, description="Explicit Content-Type")
    additional_headers: dict[str, str] = Field(
        default_factory=dict, description="Caller headers merged into the request"
    )
    extended_result: bool = Field(default=False, description="Return the envelope, not the body")
    save: bool = Field(default=False, description="Persist the body to a temporary file")
    single_page: bool = Field(default=False, description="Stop pagination after the first page")
    description: str | None = Field(default=None, description="Human label used in log lines")

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> str:
        method = str(v).upper()
        if method not in VALID_METHODS:
            raise ConfigurationError(
                f"Unsupported HTTP method '{v}'. Valid: {', '.join(sorted(VALID_METHODS))}"
            )
        return method

    @model_validator(mode="after")
    def check_body_exclusivity(self) -> Self:
        if self.in_file is not None:
            if self.body is not None:
                raise ConfigurationError("body and in_file are mutually exclusive")
            if self.method not in UPLOAD_METHODS:
                raise ConfigurationError(
                    f"in_file can only be used with {', '.join(sorted(UPLOAD_METHODS))}, "
                    f"not {self.method}"
                )
        return self


class BodyKind(str, Enum):
    """How far the normalizer got with a response body."""

    DECODED = "decoded"  # Structured JSON value
    RAW = "raw"  # Undecoded text (or bytes if not UTF-8)
    SAVED = "saved"  # Path of a temporary file holding the raw bytes
    EMPTY = "empty"  # No payload


class NormalizedBody(BaseModel):
    """Tagged result of response normalization."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: BodyKind = Field(description="Decoding outcome")
    value: Any = Field(default=None, description="Decoded value, raw text/bytes, or file path")


class ResponseEnvelope(BaseModel):
    """One HTTP response with the headers callers care about surfaced as fields."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    body: Any = Field(default=None, description="Normalized body value")
    body_kind: BodyKind = Field(default=BodyKind.EMPTY, description="Normalization outcome")
    status_code: int = Field(description="HTTP status code")
    request_id: str | None = Field(default=None, description="X-GitHub-Request-Id")
    link: str | None = Field(default=None, description="Raw Link header")
    etag: str | None = Field(default=None)
    last_modified: str | None = Field(default=None)
    if_none_match: str | None = Field(default=None)
    if_modified_since: str | None = Field(default=None)
    rate_limit: int | None = Field(default=None, description="X-RateLimit-Limit")
    rate_limit_remaining: int | None = Field(default=None, description="X-RateLimit-Remaining")
    rate_limit_reset: int | None = Field(
        default=None, description="X-RateLimit-Reset (epoch seconds)"
    )

    @property
    def rate_limit_reset_at(self) -> datetime | None:
        if self.rate_limit_reset is None:
            return None
        return datetime.fromtimestamp(self.rate_limit_reset, tz=timezone.utc)


class PaginationCursor(BaseModel):
    """Pagination state parsed from a Link header.

    Page-number links fill ``next_page_number``/``num_pages``; cursor links
    fill ``since`` and leave ``num_pages`` at 0 (unknown).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    next_link: str | None = Field(default=None, description="Absolute URL of the next page")
    next_page_number: int | None = Field(default=None)
    num_pages: int = Field(default=0, description="Total pages, 0 when unknown")
    since: int | None = Field(default=None, description="Opaque increasing cursor value")

    @model_validator(mode="after")
    def check_single_mode(self) -> Self:
        if self.next_page_number is not None and self.since is not None:
            raise ValueError("page-number and since-cursor pagination are mutually exclusive")
        return self


class StructuredError(BaseModel):
    """Normalized breakdown of a failed call."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    message: str = Field(description="Composed multi-line message")
    status_code: int = Field(description="HTTP status code")
    status_description: str = Field(default="", description="Reason phrase")
    request_id: str | None = Field(default=None)
    api_message: str | None = Field(default=None, description="GitHub's own error message")
    documentation_url: str | None = Field(default=None)
    details: list[dict[str, Any]] = Field(
        default_factory=list, description="Per-field errors from the body"
    )
    hint: str | None = Field(default=None, description="Remediation note, e.g. for 404")


# =============================================================================
# Runtime Configuration Model
# =============================================================================


class ClientConfig(BaseModel):
    """Configuration consumed read-only by the core."""

    model_config = ConfigDict(extra="forbid")

    api_host: str = Field(default=DEFAULT_API_HOST, description="github.com or an Enterprise host")
    web_request_timeout_sec: float = Field(default=30.0, gt=0)
    max_retries_when_not_ready: int = Field(default=30, ge=0)
    retry_delay_seconds: float = Field(default=30.0, ge=0, description="0 disables 202 retries")
    state_change_delay_seconds: float = Field(default=0.0, ge=0)
    multi_request_progress_threshold: int = Field(
        default=10, ge=0, description="Pages before progress shows, 0 disables"
    )
    disable_date_coercion: bool = Field(default=False)
    suppress_no_token_warning: bool = Field(default=False)
    access_token_path: Path | None = Field(default=None, description="Persisted token file")
    user_agent: str = Field(default=f"ghrest/{VERSION}")
    log_level: str = Field(default="WARNING")
    log_path: Path | None = Field(default=None)

    @field_validator("api_host")
    @classmethod
    def strip_host(cls, v: str) -> str:
        host = v.strip().rstrip("/")
        for scheme in ("https://", "http://"):
            if host.lower().startswith(scheme):
                host = host[len(scheme):]
        if not host:
            raise ValueError("api_host must not be empty")
        return host

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level '{v}'")
        return level
