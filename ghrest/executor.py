"""Executor - Sends one REST call and captures the response.

The Executor turns a RequestDescriptor into an HTTP request against the
configured GitHub host, applies the 202 "not ready" retry policy and the
post-mutation settle delay, and returns a ResponseEnvelope. Failures are
handed to the error translator and raised.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any

import httpx

from ghrest import error_translator
from ghrest.auth import AuthResolver
from ghrest.errors import ConfigurationError, RetryExhaustedError
from ghrest.models import (
    BODY_METHODS,
    DEFAULT_API_HOST,
    JSON_CONTENT_TYPE,
    STATE_CHANGING_METHODS,
    ClientConfig,
    RequestDescriptor,
    ResponseEnvelope,
)
from ghrest.normalizer import normalize

logger = logging.getLogger(__name__)

NOT_READY_STATUS = 202
DEFAULT_UPLOAD_CONTENT_TYPE = "application/octet-stream"

# Extension -> media type for uploads without an explicit content type.
UPLOAD_CONTENT_TYPES: dict[str, str] = {
    ".7z": "application/x-7z-compressed",
    ".bz2": "application/x-bzip2",
    ".csv": "text/csv",
    ".deb": "application/vnd.debian.binary-package",
    ".dmg": "application/x-apple-diskimage",
    ".exe": "application/vnd.microsoft.portable-executable",
    ".gif": "image/gif",
    ".gz": "application/gzip",
    ".htm": "text/html",
    ".html": "text/html",
    ".jar": "application/java-archive",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".json": "application/json",
    ".md": "text/markdown",
    ".msi": "application/x-msdownload",
    ".nupkg": "application/zip",
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".rpm": "application/x-rpm",
    ".svg": "image/svg+xml",
    ".tar": "application/x-tar",
    ".tgz": "application/gzip",
    ".txt": "text/plain",
    ".xml": "application/xml",
    ".xz": "application/x-xz",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
    ".zip": "application/zip",
}


class RetryState(str, Enum):
    """States of the 202 retry loop."""

    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


def is_absolute_url(target: str) -> bool:
    lowered = target.lower()
    return lowered.startswith("https://") or lowered.startswith("http://")


def api_base_url(api_host: str) -> str:
    """Root URL for the REST API on github.com or an Enterprise Server host."""
    if api_host.lower() == DEFAULT_API_HOST:
        return f"https://api.{api_host}"
    return f"https://{api_host}/api/v3"


def build_url(target: str, api_host: str) -> str:
    """Resolve a descriptor target to the URL that is actually requested.

    Absolute URLs (e.g. a Link header's next page) are returned unchanged.
    Relative fragments lose one leading and one trailing slash, then are
    joined to the API root for the host.
    """
    if is_absolute_url(target):
        return target
    fragment = target
    if fragment.startswith("/"):
        fragment = fragment[1:]
    if fragment.endswith("/"):
        fragment = fragment[:-1]
    return f"{api_base_url(api_host)}/{fragment}"


def upload_content_type(path: Path) -> str:
    """Infer an upload media type from the file extension."""
    return UPLOAD_CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_UPLOAD_CONTENT_TYPE)


def _int_header(headers: httpx.Headers, name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning("Non-numeric %s header: %r", name, value)
        return None


class Executor:
    """Executes single REST calls.

    Usage:
        with Executor(config, auth_resolver) as executor:
            envelope = executor.execute(RequestDescriptor(target="user"))
    """

    def __init__(
        self,
        config: ClientConfig,
        auth: AuthResolver,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            config: Client configuration (host, timeout, retry and delay settings).
            auth: Resolver consulted for every call.
            client: Optional pre-built httpx client (tests inject a MockTransport).
                    When omitted the executor creates and owns one.
        """
        self._config = config
        self._auth = auth
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=config.web_request_timeout_sec,
            follow_redirects=True,
        )

    def __enter__(self) -> "Executor":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this executor created it."""
        if self._owns_client:
            self._client.close()

    @property
    def config(self) -> ClientConfig:
        return self._config

    def execute(self, descriptor: RequestDescriptor, token: str | None = None) -> ResponseEnvelope:
        """Execute one call.

        Args:
            descriptor: The call to make.
            token: Explicit token for this call; overrides the resolver's cache.

        Returns:
            ResponseEnvelope with the normalized body.

        Raises:
            ConfigurationError: If the upload file cannot be read.
            TransportError: If no response was received.
            ApiError: For a non-2xx response.
            RetryExhaustedError: If a GET kept answering 202.
        """
        url = build_url(descriptor.target, self._config.api_host)
        headers, content = self._build_request(descriptor, self._auth.resolve(token))
        label = descriptor.description or f"{descriptor.method} {url}"

        logger.debug("Executing: %s", label)
        response = self._send_with_retry(descriptor.method, url, headers, content)

        if descriptor.method in STATE_CHANGING_METHODS:
            self._settle()

        return self._build_envelope(response, descriptor)

    def _build_request(
        self,
        descriptor: RequestDescriptor,
        token: str | None,
    ) -> tuple[dict[str, str], bytes | None]:
        """Assemble headers and body bytes for the descriptor."""
        headers: dict[str, str] = {
            "Accept": descriptor.accept,
            "User-Agent": self._config.user_agent,
        }
        headers.update(descriptor.additional_headers)
        if token:
            headers["Authorization"] = f"token {token}"

        content: bytes | None = None
        content_type = descriptor.content_type

        if descriptor.in_file is not None:
            try:
                content = descriptor.in_file.read_bytes()
            except OSError as e:
                raise ConfigurationError(
                    f"Cannot read upload file {descriptor.in_file}: {e}"
                ) from e
            if content_type is None:
                content_type = upload_content_type(descriptor.in_file)
        elif descriptor.body is not None:
            content = descriptor.body.encode("utf-8")

        if descriptor.method in BODY_METHODS:
            if "content-type" not in {k.lower() for k in headers}:
                headers["Content-Type"] = content_type or JSON_CONTENT_TYPE

        return headers, content

    def _send(self, method: str, url: str, headers: dict[str, str], content: bytes | None) -> httpx.Response:
        """Issue one HTTP request. Non-2xx responses are raised as ApiError."""
        start_time = time.perf_counter()
        try:
            response = self._client.request(
                method=method,
                url=url,
                headers=headers,
                content=content,
                timeout=self._config.web_request_timeout_sec,
            )
        except httpx.RequestError as e:
            raise error_translator.transport_error(e, method, url) from e
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        logger.info("%s %s -> %d (%.0f ms)", method, url, response.status_code, elapsed_ms)

        if not response.is_success:
            raise error_translator.api_error(response, method, url)
        return response

    def _send_with_retry(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        content: bytes | None,
    ) -> httpx.Response:
        """Send, retrying a GET while GitHub answers 202 (result still being computed).

        At most max_retries_when_not_ready retries follow the first attempt.
        """
        max_retries = self._config.max_retries_when_not_ready
        delay = self._config.retry_delay_seconds
        state = RetryState.ATTEMPTING

        for attempt in range(max_retries + 1):
            state = RetryState.ATTEMPTING
            response = self._send(method, url, headers, content)

            if response.status_code != NOT_READY_STATUS:
                state = RetryState.SUCCEEDED
                break

            if method != "GET":
                logger.warning(
                    "%s %s returned 202 (accepted, processing); not retrying a "
                    "state-changing request",
                    method,
                    url,
                )
                state = RetryState.SUCCEEDED
                break

            if delay <= 0:
                logger.warning(
                    "GET %s returned 202 (result not ready) and retries are disabled "
                    "(retry_delay_seconds=0); returning the 202 response",
                    url,
                )
                state = RetryState.SUCCEEDED
                break

            if attempt == max_retries:
                state = RetryState.EXHAUSTED
                break

            state = RetryState.WAITING
            logger.warning(
                "GET %s returned 202 (result not ready); retrying in %s seconds "
                "(%d of %d retries remaining)",
                url,
                delay,
                max_retries - attempt,
                max_retries,
            )
            time.sleep(delay)

        if state is RetryState.EXHAUSTED:
            error = RetryExhaustedError(max_retries, url)
            logger.error(str(error))
            raise error
        return response

    def _settle(self) -> None:
        """Pause after a mutation so immediately following reads see it."""
        delay = self._config.state_change_delay_seconds
        if delay > 0:
            logger.info("Waiting %s seconds after state change", delay)
            time.sleep(delay)

    def _build_envelope(self, response: httpx.Response, descriptor: RequestDescriptor) -> ResponseEnvelope:
        """Convert an httpx Response to a ResponseEnvelope."""
        normalized = normalize(
            response.content,
            save=descriptor.save,
            coerce_dates=not self._config.disable_date_coercion,
        )
        headers = response.headers
        sent = httpx.Headers(descriptor.additional_headers)
        return ResponseEnvelope(
            body=normalized.value,
            body_kind=normalized.kind,
            status_code=response.status_code,
            request_id=headers.get(error_translator.REQUEST_ID_HEADER),
            link=headers.get("Link"),
            etag=headers.get("ETag"),
            last_modified=headers.get("Last-Modified"),
            if_none_match=sent.get("If-None-Match"),
            if_modified_since=sent.get("If-Modified-Since"),
            rate_limit=_int_header(headers, "X-RateLimit-Limit"),
            rate_limit_remaining=_int_header(headers, "X-RateLimit-Remaining"),
            rate_limit_reset=_int_header(headers, "X-RateLimit-Reset"),
        )
