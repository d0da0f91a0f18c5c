"""Pagination Aggregator - Follows Link headers until the last page.

GitHub paginates list endpoints with a Link header:

    <https://api.github.com/repos/o/r/issues?page=2>; rel="next",
    <https://api.github.com/repos/o/r/issues?page=5>; rel="last"

A few enumeration endpoints (e.g. ``/users``, ``/repositories``) page by an
opaque increasing id instead and never send ``rel="last"``:

    <https://api.github.com/users?since=123>; rel="next"

Both shapes are detected per response, so callers do not need to know which
one an endpoint uses. Next links are replayed verbatim.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterator

import httpx

from ghrest.errors import ConfigurationError
from ghrest.executor import Executor
from ghrest.models import PaginationCursor, RequestDescriptor
from ghrest.progress import ProgressReporter

logger = logging.getLogger(__name__)

_LINK_PART = re.compile(r'<([^>]*)>\s*;\s*rel="([^"]+)"')


def parse_link_header(link: str | None) -> PaginationCursor:
    """Parse a Link header into a PaginationCursor.

    No ``rel="next"`` entry yields an empty cursor (``next_link`` is None).
    """
    if not link:
        return PaginationCursor()

    rels: dict[str, str] = {}
    for url, rel_value in _LINK_PART.findall(link):
        for rel in rel_value.split():
            rels.setdefault(rel, url)

    next_link = rels.get("next")
    if not next_link:
        return PaginationCursor()

    next_page = _query_int(next_link, "page")
    if next_page is not None:
        last_link = rels.get("last")
        num_pages = _query_int(last_link, "page") if last_link else None
        return PaginationCursor(
            next_link=next_link,
            next_page_number=next_page,
            num_pages=num_pages or 0,
        )

    return PaginationCursor(next_link=next_link, since=_query_int(next_link, "since"), num_pages=0)


def _query_int(url: str, name: str) -> int | None:
    try:
        value = httpx.URL(url).params.get(name)
    except httpx.InvalidURL:
        return None
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _is_empty(body: Any) -> bool:
    return body is None or (isinstance(body, (list, dict, str, bytes)) and len(body) == 0)


class Paginator:
    """Collects every page of a list endpoint through an Executor."""

    def __init__(
        self,
        executor: Executor,
        progress_factory: Callable[..., ProgressReporter] = ProgressReporter,
    ) -> None:
        self._executor = executor
        self._progress_factory = progress_factory

    def iter_results(self, descriptor: RequestDescriptor, token: str | None = None) -> Iterator[Any]:
        """Yield results page by page, in server order.

        List bodies are flattened; other non-empty bodies are yielded whole.
        The generator is lazy: each page is fetched when the previous one has
        been consumed. A new call starts over from ``descriptor.target``.
        """
        if descriptor.method != "GET":
            raise ConfigurationError(
                f"Paginated requests must use GET, not {descriptor.method}"
            )

        threshold = self._executor.config.multi_request_progress_threshold
        activity = descriptor.description or "Fetching results"
        reporter = self._progress_factory(activity=activity)
        next_target: str | None = descriptor.target
        page = 0

        try:
            while next_target is not None:
                page += 1
                envelope = self._executor.execute(
                    RequestDescriptor(
                        method="GET",
                        target=next_target,
                        accept=descriptor.accept,
                        additional_headers=descriptor.additional_headers,
                        extended_result=True,
                        description=descriptor.description,
                    ),
                    token,
                )

                if not _is_empty(envelope.body):
                    if isinstance(envelope.body, list):
                        yield from envelope.body
                    else:
                        yield envelope.body

                if descriptor.single_page:
                    break

                cursor = parse_link_header(envelope.link)
                next_target = cursor.next_link
                if next_target is None:
                    break

                logger.debug(
                    "Following next link (page %d -> %s, %s pages total)",
                    page,
                    cursor.next_page_number or f"since={cursor.since}",
                    cursor.num_pages or "unknown",
                )
                if self._should_report(threshold, cursor, page):
                    reporter.update(page + 1, cursor.num_pages)
        finally:
            reporter.stop()

    def collect_all(self, descriptor: RequestDescriptor, token: str | None = None) -> list[Any]:
        """Fetch every page and return the accumulated results as a list."""
        return list(self.iter_results(descriptor, token))

    @staticmethod
    def _should_report(threshold: int, cursor: PaginationCursor, page: int) -> bool:
        if threshold <= 0:
            return False
        if cursor.num_pages:
            return cursor.num_pages >= threshold
        return page + 1 >= threshold
