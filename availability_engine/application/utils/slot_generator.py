from __future__ import annotations

from datetime import datetime, timedelta

from availability_engine.application.exceptions import ValidationError
from availability_engine.domain.entities.time_slot import TimeSlot


def validate_slot_arguments(duration_minutes: int, buffer_minutes: int = 0) -> None:
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError("duration_minutes must be greater than 0")
    if buffer_minutes is None or buffer_minutes < 0:
        raise ValidationError("buffer_minutes must be 0 or greater")


def generate_slots(
    start: datetime,
    end: datetime,
    duration_minutes: int,
    buffer_minutes: int = 0,
) -> list[TimeSlot]:
    """
    Cut one availability interval into consecutive slots of duration_minutes.

    The buffer is inserted between emitted slots only, never before the first one.
    An interval shorter than the duration yields no slots.
    """
    validate_slot_arguments(duration_minutes, buffer_minutes)

    duration = timedelta(minutes=duration_minutes)
    step = duration + timedelta(minutes=buffer_minutes)

    slots: list[TimeSlot] = []
    cursor = start
    while cursor + duration <= end:
        slots.append(TimeSlot(start=cursor, end=cursor + duration))
        cursor += step
    return slots
