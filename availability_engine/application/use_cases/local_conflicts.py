from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from availability_engine.application.utils.intervals import overlaps_any
from availability_engine.domain.entities.booking import Booking
from availability_engine.domain.entities.time_slot import TimeSlot


class LocalConflictFilter:
    """Drops candidate slots that collide with blocked time or bookings that occupy time."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def filter(
        self,
        candidates: Sequence[TimeSlot],
        blocked: Iterable[tuple[datetime, datetime]],
        bookings: Iterable[Booking],
    ) -> list[TimeSlot]:
        busy = self._busy_intervals(blocked, bookings)
        kept = [slot for slot in candidates if not overlaps_any(slot.start, slot.end, busy)]
        self._logger.debug(
            "Local conflict filter applied",
            extra={"slot_count": len(kept), "removed": len(candidates) - len(kept)},
        )
        return kept

    def is_free(
        self,
        start: datetime,
        end: datetime,
        blocked: Iterable[tuple[datetime, datetime]],
        bookings: Iterable[Booking],
    ) -> bool:
        return not overlaps_any(start, end, self._busy_intervals(blocked, bookings))

    @staticmethod
    def _busy_intervals(
        blocked: Iterable[tuple[datetime, datetime]],
        bookings: Iterable[Booking],
    ) -> list[tuple[datetime, datetime]]:
        busy = list(blocked)
        # Only CONFIRMED and RESCHEDULED bookings hold time.
        busy.extend((b.start, b.end) for b in bookings if b.occupies_time)
        return busy
