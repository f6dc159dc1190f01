from __future__ import annotations

import logging
from datetime import datetime

from availability_engine.application.ports.calendar_provider import CalendarProviderPort
from availability_engine.application.utils.intervals import overlaps
from availability_engine.domain.entities.conflict import NormalizedEvent


class MockCalendar(CalendarProviderPort):
    def __init__(self, events: dict[str, list[NormalizedEvent]] | None = None) -> None:
        # calendar_id -> events; None calendar ids are stored under "primary"
        self._events: dict[str, list[NormalizedEvent]] = {k: list(v) for k, v in (events or {}).items()}
        self._logger = logging.getLogger(__name__)

    def list_events(
        self,
        credential: str,
        calendar_id: str | None,
        start_iso: str,
        end_iso: str,
    ) -> list[NormalizedEvent]:
        start = datetime.fromisoformat(start_iso.replace("Z", "+00:00"))
        end = datetime.fromisoformat(end_iso.replace("Z", "+00:00"))
        return [
            event
            for event in self._events.get(calendar_id or "primary", [])
            if overlaps(start, end, event.start, event.end)
        ]

    def add_event(self, event: NormalizedEvent, calendar_id: str | None = None) -> str:
        self._events.setdefault(calendar_id or "primary", []).append(event)
        self._logger.info(
            "Mock calendar event added",
            extra={
                "event_id": event.id,
                "start": event.start.isoformat(),
                "end": event.end.isoformat(),
                "title": event.title,
            },
        )
        return event.id
