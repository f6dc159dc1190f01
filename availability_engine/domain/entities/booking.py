from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    RESCHEDULED = "RESCHEDULED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


# PENDING requests do not hold time until approved.
OCCUPYING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.RESCHEDULED})


@dataclass(frozen=True)
class Booking:
    id: str
    host_id: str
    start: datetime
    end: datetime
    status: BookingStatus

    @property
    def occupies_time(self) -> bool:
        return self.status in OCCUPYING_STATUSES

    @staticmethod
    def from_payload(payload: dict) -> "Booking":
        return Booking(
            id=str(payload.get("id") or ""),
            host_id=str(payload.get("host_id") or ""),
            start=_parse_instant(payload["start"]),
            end=_parse_instant(payload["end"]),
            status=BookingStatus(str(payload.get("status") or "PENDING").upper()),
        )


def _parse_instant(value: str | datetime) -> datetime:
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        # Stored instants without an offset are UTC.
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
