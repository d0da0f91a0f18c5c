"""GitHubRestClient - public entry point wiring the core together.

Usage:
    with GitHubRestClient.from_config_file() as gh:
        repo = gh.invoke(RequestDescriptor(target="repos/octocat/hello-world"))
        issues = gh.invoke_multiple(
            RequestDescriptor(target="repos/octocat/hello-world/issues?per_page=100")
        )
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

import httpx

from ghrest.auth import AuthResolver, AuthSession, TokenStore
from ghrest.config_loader import access_token_path, load_client_config
from ghrest.executor import Executor
from ghrest.models import ClientConfig, RequestDescriptor, ResponseEnvelope
from ghrest.pagination import Paginator


class GitHubRestClient:
    """Runs single-result and multi-result calls against the GitHub REST API."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        auth: AuthResolver | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._auth = auth or AuthResolver(
            TokenStore(access_token_path(self._config)),
            AuthSession(),
            suppress_warning=self._config.suppress_no_token_warning,
        )
        self._executor = Executor(self._config, self._auth, http_client)
        self._paginator = Paginator(self._executor)

    @classmethod
    def from_config_file(cls, config_path: Path | None = None) -> GitHubRestClient:
        return cls(load_client_config(config_path))

    def __enter__(self) -> GitHubRestClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._executor.close()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def auth(self) -> AuthResolver:
        return self._auth

    def invoke(self, descriptor: RequestDescriptor, token: str | None = None) -> Any:
        """Execute a single-result call.

        Returns the envelope when ``descriptor.extended_result`` is set,
        otherwise the normalized body.
        """
        envelope = self._executor.execute(descriptor, token)
        if descriptor.extended_result:
            return envelope
        return envelope.body

    def invoke_multiple(self, descriptor: RequestDescriptor, token: str | None = None) -> list[Any]:
        """Execute a paginated GET and return every result across all pages."""
        return self._paginator.collect_all(descriptor, token)

    def iter_multiple(self, descriptor: RequestDescriptor, token: str | None = None) -> Iterator[Any]:
        """Like invoke_multiple, but fetches pages lazily as results are consumed."""
        return self._paginator.iter_results(descriptor, token)

    # -------------------------------------------------------------------------
    # Convenience wrappers for the common verbs
    # -------------------------------------------------------------------------

    def get(self, target: str, **kwargs: Any) -> Any:
        return self.invoke(RequestDescriptor(method="GET", target=target, **kwargs))

    def get_all(self, target: str, **kwargs: Any) -> list[Any]:
        return self.invoke_multiple(RequestDescriptor(method="GET", target=target, **kwargs))

    def post(self, target: str, data: Any = None, **kwargs: Any) -> Any:
        return self.invoke(_json_descriptor("POST", target, data, kwargs))

    def patch(self, target: str, data: Any = None, **kwargs: Any) -> Any:
        return self.invoke(_json_descriptor("PATCH", target, data, kwargs))

    def put(self, target: str, data: Any = None, **kwargs: Any) -> Any:
        return self.invoke(_json_descriptor("PUT", target, data, kwargs))

    def delete(self, target: str, data: Any = None, **kwargs: Any) -> Any:
        return self.invoke(_json_descriptor("DELETE", target, data, kwargs))

    def envelope(self, descriptor: RequestDescriptor, token: str | None = None) -> ResponseEnvelope:
        """Execute a single call and always return the full envelope."""
        return self._executor.execute(descriptor, token)


def _json_descriptor(
    method: str,
    target: str,
    data: Any,
    kwargs: dict[str, Any],
) -> RequestDescriptor:
    if data is not None:
        kwargs = {**kwargs, "body": json.dumps(data)}
    return RequestDescriptor(method=method, target=target, **kwargs)
