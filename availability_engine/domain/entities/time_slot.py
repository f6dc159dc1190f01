from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta


@dataclass(frozen=True, order=True)
class TimeSlot:
    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""

    start: date
    end: date

    def days(self) -> list[date]:
        out: list[date] = []
        current = self.start
        while current <= self.end:
            out.append(current)
            current += timedelta(days=1)
        return out
