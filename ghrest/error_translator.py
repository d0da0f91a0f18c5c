"""Error Translator - Builds one consolidated error for a failed call.

Transport failures (no response at all) become TransportError without any
further extraction. HTTP failures become ApiError, whose message joins:

    HTTP 404 (Not Found) for GET https://api.github.com/repos/o/r
    404 | Not Found
    Not Found | https://docs.github.com/rest/repos/repos#get-a-repository
    <per-field error table, if any>
    <not-found-or-no-access note, for 404>
    RequestId: ABCD:1234
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ghrest.errors import ApiError, TransportError
from ghrest.models import StructuredError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-GitHub-Request-Id"

NOT_FOUND_HINT = (
    "This resource may not exist, or you may not have permission to see it. "
    "GitHub returns 404 instead of 401/403 for private resources the caller "
    "cannot access, so check the name and that your token has the required scopes."
)

_DETAIL_COLUMNS = ("resource", "field", "code", "message")


def transport_error(exc: Exception, method: str, url: str) -> TransportError:
    """Log a transport-level failure and wrap it. Caller raises ``from exc``."""
    if isinstance(exc, httpx.TimeoutException):
        message = f"{method} {url} timed out: {exc}"
    elif isinstance(exc, httpx.ConnectError):
        message = f"{method} {url} connection error: {exc}"
    else:
        message = f"{method} {url} request error: {exc}"
    logger.error(message)
    return TransportError(message, method=method, url=url)


def api_error(response: httpx.Response, method: str, url: str) -> ApiError:
    """Log a non-2xx response and wrap it in an ApiError. Caller raises."""
    status_code = response.status_code
    status_description = response.reason_phrase or ""
    request_id = response.headers.get(REQUEST_ID_HEADER)

    lines = [f"HTTP {status_code} ({status_description}) for {method} {url}"]
    lines.append(f"{status_code} | {status_description}")

    api_message, documentation_url, details = _extract_body(response)
    if api_message is not None or documentation_url is not None:
        lines.append(" | ".join(p for p in (api_message, documentation_url) if p))
    if details:
        lines.append(render_details(details))

    hint = NOT_FOUND_HINT if status_code == 404 else None
    if hint:
        lines.append(hint)
    if request_id:
        lines.append(f"RequestId: {request_id}")

    message = "\n".join(lines)
    logger.error(message)

    return ApiError(
        StructuredError(
            message=message,
            status_code=status_code,
            status_description=status_description,
            request_id=request_id,
            api_message=api_message,
            documentation_url=documentation_url,
            details=details,
            hint=hint,
        )
    )


def _extract_body(response: httpx.Response) -> tuple[str | None, str | None, list[dict[str, Any]]]:
    """Pull (message, documentation_url, details) out of a GitHub error body."""
    text = _response_text(response)
    if not text:
        return None, None, []

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text, None, []

    if isinstance(parsed, str):
        return parsed, None, []
    if not isinstance(parsed, dict):
        return text, None, []

    message = parsed.get("message")
    documentation_url = parsed.get("documentation_url")
    raw_details = parsed.get("errors", parsed.get("details")) or []
    if not isinstance(raw_details, list):
        raw_details = [raw_details]
    details = [d if isinstance(d, dict) else {"message": str(d)} for d in raw_details]

    if message is None and documentation_url is None and not details:
        return text, None, []
    return (
        str(message) if message is not None else None,
        str(documentation_url) if documentation_url is not None else None,
        details,
    )


def _response_text(response: httpx.Response) -> str:
    try:
        return response.text.strip()
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        return ""


def render_details(details: list[dict[str, Any]]) -> str:
    """Render per-field errors as an aligned text table."""
    columns = [c for c in _DETAIL_COLUMNS if any(c in d for d in details)]
    extra = sorted({k for d in details for k in d} - set(columns))
    columns.extend(extra)
    if not columns:
        return ""

    rows = [[str(d.get(c, "")) for c in columns] for d in details]
    widths = [max(len(c), *(len(r[i]) for r in rows)) for i, c in enumerate(columns)]

    def fmt(cells: list[str]) -> str:
        return "  ".join(cell.ljust(w) for cell, w in zip(cells, widths)).rstrip()

    out = [fmt(list(columns)), fmt(["-" * w for w in widths])]
    out.extend(fmt(r) for r in rows)
    return "\n".join(out)
