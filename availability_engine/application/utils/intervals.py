from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test: [a_start, a_end) and [b_start, b_end) share time. Touching endpoints do not."""
    return a_start < b_end and a_end > b_start


def overlaps_any(start: datetime, end: datetime, intervals: Iterable[tuple[datetime, datetime]]) -> bool:
    return any(overlaps(start, end, other_start, other_end) for other_start, other_end in intervals)
