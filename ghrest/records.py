"""Typed records for common GitHub resources.

The decoded JSON stays available on ``raw``; the fields callers pipe into
follow-up calls are lifted out, together with derived values such as the
canonical repository URL. Records are built by the ``to_*_record`` mapping
functions rather than by attaching attributes to decoded dicts.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class UserRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    login: str
    id: int
    html_url: str | None = None
    type: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)


class RepositoryRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: int
    name: str
    full_name: str
    owner_login: str
    private: bool = False
    default_branch: str | None = None
    created_at: datetime | str | None = None
    updated_at: datetime | str | None = None
    repository_url: str = Field(description="Canonical web URL, usable as input to other calls")
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)


class IssueRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: int
    number: int
    title: str
    state: str
    is_pull_request: bool = Field(description="The issues API also lists pull requests")
    user_login: str | None = None
    created_at: datetime | str | None = None
    closed_at: datetime | str | None = None
    repository_url: str = Field(description="Canonical web URL of the owning repository")
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)


def _repository_url_from_html(html_url: str, depth: int = 2) -> str:
    """``https://github.com/o/r/issues/3`` -> ``https://github.com/o/r``."""
    scheme, _, rest = html_url.partition("://")
    parts = rest.split("/")
    return f"{scheme}://" + "/".join(parts[: depth + 1])


def to_user_record(data: dict[str, Any]) -> UserRecord:
    return UserRecord(
        login=data["login"],
        id=data["id"],
        html_url=data.get("html_url"),
        type=data.get("type"),
        raw=data,
    )


def to_repository_record(data: dict[str, Any]) -> RepositoryRecord:
    owner = data.get("owner") or {}
    html_url = data.get("html_url") or f"https://github.com/{data['full_name']}"
    return RepositoryRecord(
        id=data["id"],
        name=data["name"],
        full_name=data["full_name"],
        owner_login=owner.get("login") or data["full_name"].split("/", 1)[0],
        private=bool(data.get("private", False)),
        default_branch=data.get("default_branch"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        repository_url=html_url,
        raw=data,
    )


def to_issue_record(data: dict[str, Any]) -> IssueRecord:
    user = data.get("user") or {}
    return IssueRecord(
        id=data["id"],
        number=data["number"],
        title=data.get("title", ""),
        state=data.get("state", ""),
        is_pull_request="pull_request" in data,
        user_login=user.get("login"),
        created_at=data.get("created_at"),
        closed_at=data.get("closed_at"),
        repository_url=_repository_url_from_html(data["html_url"]),
        raw=data,
    )


def map_records(items: Iterable[dict[str, Any]], mapper: Callable[[dict[str, Any]], T]) -> list[T]:
    """Apply a ``to_*_record`` mapper to every item of a result list."""
    return [mapper(item) for item in items]
