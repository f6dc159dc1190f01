from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class NormalizedEvent:
    id: str
    title: str
    start: datetime
    end: datetime
    status: str = "confirmed"  # provider status, lower-cased: "confirmed", "tentative", "cancelled"
    transparency: str = "opaque"  # "opaque" (busy) or "transparent" (free)
    description: str | None = None
    location: str | None = None
    booking_id: str | None = None  # internal booking id stored as event metadata

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"

    @property
    def is_free(self) -> bool:
        return self.transparency == "transparent"


@dataclass(frozen=True)
class ConflictRecord:
    external_event_id: str
    title: str
    start: datetime
    end: datetime
    provider: str
    calendar_name: str
    location: str | None = None
    status: str = "busy"

    def to_dict(self) -> dict[str, Any]:
        return {
            "external_event_id": self.external_event_id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "provider": self.provider,
            "calendar_name": self.calendar_name,
            "location": self.location,
            "status": self.status,
        }


@dataclass(frozen=True)
class IntegrationCheckResult:
    integration_id: str
    name: str
    provider: str
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class ConflictCheckResult:
    has_conflicts: bool = False
    conflicts: list[ConflictRecord] = field(default_factory=list)
    checked_integrations: list[IntegrationCheckResult] = field(default_factory=list)

    @property
    def failed_integrations(self) -> list[IntegrationCheckResult]:
        return [r for r in self.checked_integrations if not r.success]
