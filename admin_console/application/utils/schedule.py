from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, Iterable, TypeVar
from zoneinfo import ZoneInfo

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")

# Sort key for times that cannot be parsed: after every valid time of day.
UNPARSEABLE_TIME = 24 * 60

T = TypeVar("T")


def minutes_of_day(value: str | None) -> int | None:
    """Parse "HH:MM" into hours*60+minutes, or None when malformed."""
    if not value:
        return None
    match = _TIME_RE.match(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def sort_by_time_of_day(items: Iterable[T], time_of: Any = lambda item: item.time) -> list[T]:
    """Stable ascending sort on time of day; ties keep source order."""

    def key(item: T) -> int:
        minutes = minutes_of_day(time_of(item))
        return UNPARSEABLE_TIME if minutes is None else minutes

    return sorted(items, key=key)


def coerce_price(value: Any) -> float:
    """Coerce a raw price field to a float, using 0 for anything non-numeric."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def today_iso(tz: ZoneInfo, now: datetime | None = None) -> str:
    current = now.astimezone(tz) if now is not None else datetime.now(tz)
    return current.date().isoformat()


def safe_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except Exception:
        return ZoneInfo("UTC")


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())
