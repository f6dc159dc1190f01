from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CalendarProvider(str, Enum):
    GOOGLE = "GOOGLE"
    OUTLOOK = "OUTLOOK"
    CALDAV = "CALDAV"
    MOCK = "MOCK"


@dataclass(frozen=True)
class CalendarIntegration:
    id: str
    owner_id: str
    name: str
    provider: CalendarProvider | str
    encrypted_credential: str
    calendar_id: str | None = None
    is_active: bool = True
    conflict_detection_enabled: bool = True

    @property
    def is_eligible(self) -> bool:
        return self.is_active and self.conflict_detection_enabled and bool(self.encrypted_credential)

    @property
    def provider_name(self) -> str:
        return self.provider.value if isinstance(self.provider, CalendarProvider) else str(self.provider)

    @staticmethod
    def from_payload(payload: dict) -> "CalendarIntegration":
        raw_provider = str(payload.get("provider") or "").strip().upper()
        try:
            provider: CalendarProvider | str = CalendarProvider(raw_provider)
        except ValueError:
            # Unknown providers are kept so the detector can report them per integration.
            provider = raw_provider
        return CalendarIntegration(
            id=str(payload.get("id") or ""),
            owner_id=str(payload.get("owner_id") or ""),
            name=str(payload.get("name") or raw_provider.title()),
            provider=provider,
            encrypted_credential=str(payload.get("encrypted_credential") or ""),
            calendar_id=payload.get("calendar_id") or None,
            is_active=bool(payload.get("is_active", True)),
            conflict_detection_enabled=bool(payload.get("conflict_detection_enabled", True)),
        )
