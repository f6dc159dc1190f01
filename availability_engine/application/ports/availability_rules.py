from __future__ import annotations

from abc import ABC, abstractmethod

from availability_engine.domain.entities.availability_rule import AvailabilityRule
from availability_engine.domain.entities.time_slot import DateRange


class AvailabilityRuleReaderPort(ABC):
    @abstractmethod
    def read_availability_rules(self, owner_id: str, window: DateRange | None = None) -> list[AvailabilityRule]:
        """
        Read the owner's availability rules.
        window=None returns every rule; otherwise rules tied to a specific_date are limited to the window
        and weekday rules (recurring or blocked by day_of_week) are always included.
        """
        raise NotImplementedError
