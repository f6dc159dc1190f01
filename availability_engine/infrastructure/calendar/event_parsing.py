from __future__ import annotations

import re
from datetime import date, datetime, timezone

_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_provider_datetime(value: str, assume_tz: timezone | None = timezone.utc) -> datetime:
    """
    Parse ISO-8601 timestamps as returned by calendar APIs.

    Handles a trailing "Z", fractional seconds longer than microseconds
    (Graph returns 7 digits) and naive values, which are read in assume_tz.
    """
    text = value.strip().replace("Z", "+00:00")
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None and assume_tz is not None:
        parsed = parsed.replace(tzinfo=assume_tz)
    return parsed


def parse_all_day(value: str) -> datetime:
    """All-day dates are treated as midnight UTC."""
    day = date.fromisoformat(value.strip()[:10])
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
