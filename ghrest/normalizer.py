"""Response Normalizer - Turns a raw response payload into a usable value.

Fallback chain:
    save requested   -> raw bytes written to a temporary file, Path returned
    valid JSON       -> decoded value (dates coerced unless disabled)
    case-dup keys    -> raw text, with a warning
    anything else    -> raw text (bytes if not UTF-8), e.g. file content

Normalization never raises.
"""

from __future__ import annotations

import json
import logging
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

from ghrest.models import BodyKind, NormalizedBody

logger = logging.getLogger(__name__)

# Field names GitHub uses for timestamps.
DATE_FIELDS = frozenset({
    "closed_at",
    "committed_at",
    "completed_at",
    "created_at",
    "date",
    "due_on",
    "last_edited_at",
    "last_read_at",
    "merged_at",
    "published_at",
    "pushed_at",
    "starred_at",
    "started_at",
    "submitted_at",
    "timestamp",
    "updated_at",
})


class DuplicateCaseKeyError(ValueError):
    """Raised while decoding when two keys of one object differ only by case."""

    def __init__(self, key: str, other: str) -> None:
        super().__init__(f"keys '{other}' and '{key}' differ only by case")
        self.key = key
        self.other = other


def _reject_case_duplicates(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    seen: dict[str, str] = {}
    for key, _ in pairs:
        folded = key.casefold()
        if folded in seen and seen[folded] != key:
            raise DuplicateCaseKeyError(key, seen[folded])
        seen[folded] = key
    return dict(pairs)


def decode_json(text: str) -> Any:
    """json.loads that treats case-insensitive duplicate keys as an error.

    Raises:
        DuplicateCaseKeyError: If an object holds e.g. both ``a.txt`` and ``A.txt``.
        json.JSONDecodeError: If the text is not JSON.
    """
    return json.loads(text, object_pairs_hook=_reject_case_duplicates)


def save_to_temp_file(raw: bytes) -> Path:
    """Write raw bytes to a fresh temporary file and return its path."""
    with tempfile.NamedTemporaryFile(prefix="ghrest_", suffix=".bin", delete=False) as f:
        f.write(raw)
    return Path(f.name)


def normalize(raw: bytes, *, save: bool = False, coerce_dates: bool = True) -> NormalizedBody:
    """Run the fallback chain over a response payload."""
    if save:
        path = save_to_temp_file(raw)
        logger.debug("Saved %d byte response body to %s", len(raw), path)
        return NormalizedBody(kind=BodyKind.SAVED, value=path)

    if not raw:
        return NormalizedBody(kind=BodyKind.EMPTY, value=None)

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return NormalizedBody(kind=BodyKind.RAW, value=raw)

    try:
        decoded = decode_json(text)
    except DuplicateCaseKeyError as e:
        logger.warning(
            "Response contains JSON keys that differ only by case (%s); "
            "returning the undecoded text instead",
            e,
        )
        return NormalizedBody(kind=BodyKind.RAW, value=text)
    except (json.JSONDecodeError, RecursionError):
        # Not JSON: raw file content, plain text, diffs, etc.
        return NormalizedBody(kind=BodyKind.RAW, value=text)

    if coerce_dates and not _is_numeric_shape(decoded):
        decoded = coerce_date_fields(decoded)
    return NormalizedBody(kind=BodyKind.DECODED, value=decoded)


def coerce_date_fields(value: Any) -> Any:
    """Return a copy of value with known timestamp fields parsed to datetime.

    Unparsable strings are left as they are. Values that are already
    datetimes are not strings and pass through, so the function is idempotent.
    """
    if isinstance(value, dict):
        result: dict[str, Any] = {}
        for key, item in value.items():
            if key in DATE_FIELDS and isinstance(item, str) and item:
                result[key] = _parse_datetime(item)
            else:
                result[key] = coerce_date_fields(item)
        return result
    if isinstance(value, list):
        return [coerce_date_fields(item) for item in value]
    return value


def _parse_datetime(value: str) -> datetime | str:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Leaving unparsable date value as text: %r", value)
        return value


def _is_numeric_shape(value: Any) -> bool:
    """True for a number or a list of numbers (e.g. a byte array payload)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, list) and value:
        return all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)
    return False
