"""
Envelope unwrapping for inconsistent cluster responses.

The same logical list comes back in many shapes depending on the
cluster and API generation:

    [ {...}, {...} ]                          bare array
    {"content": [...], "totalElements": 25}   Spring page
    {"data": [...]}                           data wrapper
    {"data": {"content": [...]}}              wrapped page
    {"prompt": [...]}                         entity-specific plural key
    {"merchantId": 42, ...}                   single record
    "[{\"id\": 1}]"                           JSON-encoded string

Each shape is a candidate decoder tried in a fixed order; the first
one that yields a result wins. The order decides which array is chosen
when a payload carries several, so it must not be rearranged.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger()

DEFAULT_ID_KEYS = ("id", "merchantId")

# data → nested data → content → hint keys, at most this many "data" levels deep
_MAX_DATA_DEPTH = 2


@dataclass(frozen=True)
class Unwrapped:
    """Records found in a payload plus the object that carried them."""

    records: list[Any]
    container: dict[str, Any] = field(default_factory=dict)


ShapeCandidate = Callable[[Any, Sequence[str], Sequence[str], int], "Unwrapped | None"]


def parse_json_text(raw: Any) -> Any:
    """Decode JSON-encoded strings; anything else (or invalid JSON) is returned as-is."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("envelope.opaque_string", length=len(raw))
        return raw


def _bare_array(value: Any, hint_keys, id_keys, depth) -> Unwrapped | None:
    if isinstance(value, list):
        return Unwrapped(records=value)
    return None


def _keyed_array(key: str) -> ShapeCandidate:
    def _candidate(value: Any, hint_keys, id_keys, depth) -> Unwrapped | None:
        if isinstance(value, dict) and isinstance(value.get(key), list):
            return Unwrapped(records=value[key], container=value)
        return None

    _candidate.__name__ = f"_array_at_{key}"
    return _candidate


def _hinted_array(value: Any, hint_keys, id_keys, depth) -> Unwrapped | None:
    if not isinstance(value, dict):
        return None
    for key in hint_keys:
        if isinstance(value.get(key), list):
            return Unwrapped(records=value[key], container=value)
    return None


def _nested_data(value: Any, hint_keys, id_keys, depth) -> Unwrapped | None:
    if not isinstance(value, dict) or depth >= _MAX_DATA_DEPTH:
        return None
    inner = parse_json_text(value.get("data"))
    if not isinstance(inner, dict):
        return None
    return first_match(_COLLECTION_CANDIDATES, inner, hint_keys, id_keys, depth + 1) or _single_record(
        inner, hint_keys, id_keys, depth + 1
    )


def _single_record(value: Any, hint_keys, id_keys, depth) -> Unwrapped | None:
    if isinstance(value, dict) and any(value.get(key) not in (None, "") for key in id_keys):
        return Unwrapped(records=[value], container={})
    return None


_COLLECTION_CANDIDATES: tuple[ShapeCandidate, ...] = (
    _bare_array,
    _keyed_array("data"),
    _nested_data,
    _keyed_array("content"),
    _hinted_array,
)

SHAPE_CANDIDATES: tuple[ShapeCandidate, ...] = _COLLECTION_CANDIDATES + (_single_record,)


def first_match(
    candidates: Sequence[ShapeCandidate],
    value: Any,
    hint_keys: Sequence[str],
    id_keys: Sequence[str],
    depth: int = 0,
) -> Unwrapped | None:
    """Return the result of the first candidate that recognizes ``value``."""
    for candidate in candidates:
        result = candidate(value, hint_keys, id_keys, depth)
        if result is not None:
            return result
    return None


def decode(
    raw: Any,
    hint_keys: Sequence[str] = (),
    id_keys: Sequence[str] = DEFAULT_ID_KEYS,
) -> Unwrapped:
    """Locate the record collection inside ``raw``; never raises."""
    value = parse_json_text(raw)
    found = first_match(SHAPE_CANDIDATES, value, hint_keys, id_keys)
    if found is None:
        if value not in (None, "", {}):
            logger.info("envelope.no_collection", type=type(value).__name__)
        return Unwrapped(records=[])
    return found


def unwrap(
    raw: Any,
    hint_keys: Sequence[str] = (),
    id_keys: Sequence[str] = DEFAULT_ID_KEYS,
) -> list[Any]:
    """Reduce any supported payload shape to an ordered list of records."""
    return decode(raw, hint_keys, id_keys).records
