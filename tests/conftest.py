"""Pytest configuration and fixtures for ghrest tests.

This file provides:
- make_config: ClientConfig with test-friendly defaults
- ScriptedTransport: httpx.MockTransport that replays queued responses and
  records every request it receives
- Fixtures: token store, auth resolver, executor wiring
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from ghrest.auth import AuthResolver, AuthSession, TokenStore
from ghrest.executor import Executor
from ghrest.models import ClientConfig

API = "https://api.github.com"


def make_config(**overrides: Any) -> ClientConfig:
    """Create a ClientConfig for tests.

    Retries default to a 1 second delay (sleep is patched in tests that
    exercise retries) and progress reporting is off.
    """
    values: dict[str, Any] = {
        "max_retries_when_not_ready": 3,
        "retry_delay_seconds": 1,
        "state_change_delay_seconds": 0,
        "multi_request_progress_threshold": 0,
    }
    values.update(overrides)
    return ClientConfig(**values)


def make_response(
    status_code: int = 200,
    body: Any = None,
    headers: dict[str, str] | None = None,
    content: bytes | None = None,
) -> httpx.Response:
    """Build an httpx.Response; ``body`` is JSON-encoded unless ``content`` is given."""
    if content is None:
        content = b"" if body is None else json.dumps(body).encode("utf-8")
    return httpx.Response(status_code, headers=headers or {}, content=content)


class ScriptedTransport(httpx.MockTransport):
    """Replays queued responses in order and records the requests sent.

    A queued item may be an httpx.Response, an exception instance (raised
    instead of answering), or a callable taking the request.
    """

    def __init__(self, *responses: httpx.Response | Exception | Callable[[httpx.Request], httpx.Response]) -> None:
        self.queue = list(responses)
        self.requests: list[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.queue:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        item = self.queue.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item) and not isinstance(item, httpx.Response):
            return item(request)
        return item


@pytest.fixture
def token_store(tmp_path: Path) -> TokenStore:
    return TokenStore(tmp_path / "ghrest" / "access_token")


@pytest.fixture
def auth(token_store: TokenStore) -> AuthResolver:
    return AuthResolver(token_store, AuthSession(), suppress_warning=True)


@pytest.fixture
def build_executor(auth: AuthResolver) -> Callable[..., tuple[Executor, ScriptedTransport]]:
    """Factory fixture: build_executor(*responses, **config_overrides)."""
    created: list[Executor] = []

    def _build(*responses: Any, **config_overrides: Any) -> tuple[Executor, ScriptedTransport]:
        transport = ScriptedTransport(*responses)
        client = httpx.Client(transport=transport)
        executor = Executor(make_config(**config_overrides), auth, client=client)
        created.append(executor)
        return executor, transport

    yield _build

    for executor in created:
        executor.close()
