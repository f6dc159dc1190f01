from __future__ import annotations

from abc import ABC, abstractmethod

from availability_engine.domain.entities.conflict import NormalizedEvent


class CalendarProviderPort(ABC):
    @abstractmethod
    def list_events(
        self,
        credential: str,
        calendar_id: str | None,
        start_iso: str,
        end_iso: str,
    ) -> list[NormalizedEvent]:
        """
        List events between start_iso and end_iso, translated into NormalizedEvent.
        Raises IntegrationError (or httpx.HTTPError) when the provider call fails.
        """
        raise NotImplementedError
