from __future__ import annotations

from abc import ABC, abstractmethod

from availability_engine.domain.entities.calendar_integration import CalendarIntegration


class IntegrationReaderPort(ABC):
    @abstractmethod
    def read_active_integrations(self, owner_id: str) -> list[CalendarIntegration]:
        """Read the owner's calendar integrations."""
        raise NotImplementedError
