from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from availability_engine.application.exceptions import ValidationError
from availability_engine.application.use_cases.conflict_detection import ConflictDetector
from availability_engine.domain.entities.business_hours import BusinessHours

# (start, end) -> True when no blocked time or occupying booking overlaps the window.
LocalWindowCheck = Callable[[datetime, datetime], bool]


class AlternativeSuggester:
    """
    Greedy forward search for open windows after a preferred start.

    Candidates are visited every step_minutes in chronological order. A candidate is
    accepted when its local start falls inside business hours and both the local filter
    and the external calendars report it free.
    """

    def __init__(
        self,
        detector: ConflictDetector,
        business_hours: BusinessHours | None = None,
        step_minutes: int = 30,
    ) -> None:
        if step_minutes <= 0:
            raise ValidationError("step_minutes must be greater than 0")
        self._detector = detector
        self._business_hours = business_hours or BusinessHours()
        self._step = timedelta(minutes=step_minutes)
        self._logger = logging.getLogger(__name__)

    def suggest(
        self,
        host_id: str,
        preferred_start: datetime,
        duration_minutes: int,
        tz: ZoneInfo,
        local_check: LocalWindowCheck,
        search_days: int = 7,
        max_suggestions: int = 5,
    ) -> list[datetime]:
        validate_search_arguments(duration_minutes, search_days, max_suggestions)

        duration = timedelta(minutes=duration_minutes)
        horizon = preferred_start + timedelta(days=search_days)

        suggestions: list[datetime] = []
        cursor = preferred_start
        while cursor < horizon and len(suggestions) < max_suggestions:
            window_end = cursor + duration
            if (
                self._business_hours.contains(cursor.astimezone(tz).time())
                and local_check(cursor, window_end)
                and self._detector.is_time_slot_available(host_id, cursor, window_end)
            ):
                suggestions.append(cursor)
            cursor += self._step

        self._logger.info(
            "Alternative slots suggested",
            extra={"host_id": host_id, "slot_count": len(suggestions)},
        )
        return suggestions


def validate_search_arguments(duration_minutes: int, search_days: int, max_suggestions: int) -> None:
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError("duration_minutes must be greater than 0")
    if search_days is None or search_days <= 0:
        raise ValidationError("search_days must be greater than 0")
    if max_suggestions is None or max_suggestions <= 0:
        raise ValidationError("max_suggestions must be greater than 0")
