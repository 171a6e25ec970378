from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

# Epoch values above this are treated as milliseconds.
_MILLIS_THRESHOLD = 10_000_000_000


def normalize_timestamp(value: Any) -> datetime | None:
    """
    Convert the timestamp encodings the document store produces into an aware UTC datetime.

    Accepts datetime objects, ISO-8601 strings (including a trailing "Z"),
    epoch seconds or milliseconds, and server timestamp maps of the form
    {"seconds": ..., "nanoseconds": ...} or {"_seconds": ..., "_nanoseconds": ...}.
    Returns None for anything else.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return normalize_timestamp(parsed)

    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            try:
                return datetime.fromtimestamp(seconds + nanos / 1_000_000_000, timezone.utc)
            except (OverflowError, OSError, ValueError, TypeError):
                return None

    return None
