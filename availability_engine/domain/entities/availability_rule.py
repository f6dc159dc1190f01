from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class RuleKind(str, Enum):
    RECURRING = "RECURRING"
    DATE_SPECIFIC = "DATE_SPECIFIC"
    BLOCKED = "BLOCKED"


@dataclass(frozen=True)
class AvailabilityRule:
    id: str
    owner_id: str
    kind: RuleKind
    start_time: str  # wall clock "HH:MM"
    end_time: str  # wall clock "HH:MM"
    day_of_week: int | None = None  # 0 = Sunday ... 6 = Saturday
    specific_date: date | None = None
    is_blocked: bool = False
    block_reason: str | None = None

    @property
    def blocks_time(self) -> bool:
        """BLOCKED-kind rules and flagged RECURRING/DATE_SPECIFIC rules are busy time."""
        return self.kind == RuleKind.BLOCKED or self.is_blocked

    @property
    def kind_label(self) -> str:
        return RuleKind.BLOCKED.value if self.blocks_time else self.kind.value

    @staticmethod
    def from_payload(payload: dict) -> "AvailabilityRule":
        specific = payload.get("specific_date")
        if isinstance(specific, str) and specific.strip():
            specific = date.fromisoformat(specific.strip()[:10])
        day_of_week = payload.get("day_of_week")
        return AvailabilityRule(
            id=str(payload.get("id") or ""),
            owner_id=str(payload.get("owner_id") or ""),
            kind=RuleKind(str(payload.get("kind") or "").strip().upper()),
            start_time=str(payload.get("start_time") or "").strip(),
            end_time=str(payload.get("end_time") or "").strip(),
            day_of_week=int(day_of_week) if day_of_week is not None else None,
            specific_date=specific or None,
            is_blocked=bool(payload.get("is_blocked", False)),
            block_reason=payload.get("block_reason") or None,
        )
