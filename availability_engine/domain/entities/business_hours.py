from __future__ import annotations

from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True)
class BusinessHours:
    start: time = time(9, 0)
    end: time = time(18, 0)

    def contains(self, local_time: time) -> bool:
        """Start inclusive, end exclusive."""
        return self.start <= local_time < self.end

    @staticmethod
    def from_strings(start: str, end: str) -> "BusinessHours":
        return BusinessHours(start=time.fromisoformat(start.strip()), end=time.fromisoformat(end.strip()))
