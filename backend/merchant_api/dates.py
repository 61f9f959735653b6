"""
Timestamp normalization for cluster payloads.

Clusters report dates as ISO-8601, ``MM/DD/YYYY HH:mm:ms``,
``DD/MM/YYYY``, two-digit years, 12-hour clocks with AM/PM markers,
verbose ``Jan 15, 2024, 2:30:00 PM`` strings and bare epoch numbers.
Everything is reduced to ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC, or the
empty string when nothing sensible can be recovered.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any

UNPARSEABLE = ""

_NULL_SENTINELS = {"", "n/a", "null", "undefined", "none"}

# Verbose formats some clusters emit for engagement/user records
_NATIVE_FORMATS = (
    "%b %d, %Y, %I:%M:%S %p",
    "%b %d, %Y %I:%M:%S %p",
    "%b %d, %Y, %I:%M %p",
    "%b %d, %Y",
    "%B %d, %Y",
    "%a %b %d %H:%M:%S %Y",
)

_EPOCH_SECONDS_CEILING = 10_000_000_000


def to_iso(value: datetime) -> str:
    """Render an aware or naive (assumed UTC) datetime as ``...T..:..:..mmmZ``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _parse_native(text: str) -> datetime | None:
    if text.isdigit() and len(text) != 8:
        # bare numbers are epochs, except compact YYYYMMDD dates
        return None
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        pass
    for fmt in _NATIVE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _parse_time_part(time_part: str | None) -> tuple[int, int, int, int]:
    """Return (hour, minute, second, millisecond) from ``HH:mm:SS-or-ms``."""
    if not time_part:
        return 0, 0, 0, 0
    segments = time_part.split(":")
    hour = int(segments[0] or 0)
    minute = int(segments[1] or 0) if len(segments) > 1 else 0
    second, millis = 0, 0
    if len(segments) > 2 and segments[2]:
        third = segments[2]
        if "." in third:
            whole, _, fraction = third.partition(".")
            second = min(int(whole or 0), 59)
            millis = int(fraction[:3].ljust(3, "0")) if fraction else 0
        elif len(third) >= 3:
            # "05:03:649": a three-digit tail is milliseconds, not seconds
            millis = int(third[:3])
        else:
            second = min(int(third), 59)
    return hour, minute, second, millis


def _apply_meridiem(hour: int, tokens: list[str]) -> int:
    upper = {token.upper() for token in tokens}
    if "PM" in upper and hour < 12:
        return hour + 12
    if "PM" not in upper and "AM" in upper and hour == 12:
        return 0
    return hour


def _parse_numeric_date(text: str) -> datetime | None:
    parts = text.split()
    date_components = re.split(r"[/-]", parts[0])
    if len(date_components) != 3:
        return None

    first, second, third = date_components
    try:
        if len(first) == 4:
            # YYYY/MM/DD
            year, month, day = int(first), int(second), int(third)
        else:
            year = int(f"20{third}" if len(third) == 2 else third)
            if int(first) > 12:
                day, month = int(first), int(second)
            else:
                month, day = int(first), int(second)
    except ValueError:
        return None

    try:
        hour, minute, sec, millis = _parse_time_part(parts[1] if len(parts) > 1 else None)
        hour = _apply_meridiem(hour, parts)
        return datetime(year, month, day, hour, minute, sec, millis * 1000, tzinfo=timezone.utc)
    except ValueError:
        pass

    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None


def _parse_epoch(text: str) -> datetime | None:
    if not text.isdigit():
        return None
    stamp = int(text)
    seconds, millis = (stamp, 0) if stamp < _EPOCH_SECONDS_CEILING else divmod(stamp, 1000)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(milliseconds=millis)
    except (OverflowError, OSError, ValueError):
        return None


def normalize_date(raw: Any) -> str:
    """
    Canonicalize a timestamp, first match wins:

    1. native parsing (ISO-8601 and verbose month-name formats)
    2. ``MM/DD/YYYY`` or ``DD/MM/YYYY`` (first component > 12) with an
       optional ``HH:mm:SS-or-ms`` time and AM/PM markers
    3. epoch seconds or milliseconds

    Returns ``""`` when the value is missing or unrecognizable.
    """
    if raw is None or isinstance(raw, bool):
        return UNPARSEABLE
    if isinstance(raw, datetime):
        return to_iso(raw)

    text = str(raw).strip()
    if text.lower() in _NULL_SENTINELS:
        return UNPARSEABLE

    for parser in (_parse_native, _parse_numeric_date, _parse_epoch):
        parsed = parser(text)
        if parsed is not None:
            return to_iso(parsed)
    return UNPARSEABLE
