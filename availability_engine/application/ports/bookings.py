from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from availability_engine.domain.entities.booking import Booking, BookingStatus


class BookingReaderPort(ABC):
    @abstractmethod
    def read_bookings(
        self,
        host_id: str,
        start: datetime,
        end: datetime,
        statuses: Iterable[BookingStatus],
    ) -> list[Booking]:
        """Read the host's bookings overlapping [start, end) whose status is in statuses."""
        raise NotImplementedError
