from __future__ import annotations

from abc import ABC, abstractmethod


class HostProfilePort(ABC):
    @abstractmethod
    def read_timezone(self, host_id: str) -> str | None:
        """IANA timezone name configured for the host, or None."""
        raise NotImplementedError
