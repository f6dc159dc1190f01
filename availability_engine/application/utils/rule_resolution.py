from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from availability_engine.application.exceptions import ValidationError
from availability_engine.domain.entities.availability_rule import AvailabilityRule, RuleKind

WALL_CLOCK_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?$")

# "24:00" is accepted as an end time meaning midnight at the end of the day.
END_OF_DAY = "24:00"

logger = logging.getLogger(__name__)


def parse_wall_clock(value: str) -> time:
    match = WALL_CLOCK_RE.match((value or "").strip())
    if not match:
        raise ValidationError(f"Invalid wall-clock time '{value}', expected HH:MM")
    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    second = int(match.group("second") or 0)
    if hour > 23 or minute > 59 or second > 59:
        raise ValidationError(f"Invalid wall-clock time '{value}'")
    return time(hour, minute, second)


def validate_rule(rule: AvailabilityRule) -> None:
    """Reject malformed rules before any slot is computed."""
    if (rule.start_time or "").strip() == END_OF_DAY:
        raise ValidationError(f"Rule {rule.id}: start time cannot be {END_OF_DAY}")
    start = parse_wall_clock(rule.start_time)
    if (rule.end_time or "").strip() != END_OF_DAY and start >= parse_wall_clock(rule.end_time):
        raise ValidationError(f"Rule {rule.id}: start time must be before end time")

    if rule.kind == RuleKind.RECURRING:
        if rule.day_of_week is None:
            raise ValidationError(f"Rule {rule.id}: day_of_week is required for recurring availability")
        if not 0 <= rule.day_of_week <= 6:
            raise ValidationError(f"Rule {rule.id}: day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    elif rule.kind == RuleKind.DATE_SPECIFIC:
        if rule.specific_date is None:
            raise ValidationError(f"Rule {rule.id}: specific_date is required for date-specific availability")
    elif rule.kind == RuleKind.BLOCKED:
        if rule.specific_date is None and rule.day_of_week is None:
            raise ValidationError(f"Rule {rule.id}: blocked time needs specific_date or day_of_week")
        if rule.day_of_week is not None and not 0 <= rule.day_of_week <= 6:
            raise ValidationError(f"Rule {rule.id}: day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    else:
        raise ValidationError(f"Rule {rule.id}: unknown rule kind {rule.kind!r}")

    if rule.blocks_time and not (rule.block_reason or "").strip():
        raise ValidationError(f"Rule {rule.id}: block_reason is required for blocked time")


def day_of_week_index(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def rule_applies_on(rule: AvailabilityRule, day: date) -> bool:
    if rule.kind == RuleKind.RECURRING:
        return rule.day_of_week == day_of_week_index(day)
    if rule.kind == RuleKind.DATE_SPECIFIC:
        return rule.specific_date == day
    if rule.kind == RuleKind.BLOCKED:
        # A specific date takes precedence over a weekday.
        if rule.specific_date is not None:
            return rule.specific_date == day
        return rule.day_of_week == day_of_week_index(day)
    return False


def combine_local(day: date, wall_clock: str, tz: ZoneInfo) -> datetime:
    """Resolve a wall-clock time on a local date into an absolute UTC instant."""
    if (wall_clock or "").strip() == END_OF_DAY:
        local = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=tz)
    else:
        local = datetime.combine(day, parse_wall_clock(wall_clock), tzinfo=tz)
    return local.astimezone(timezone.utc)


def resolve_rule_interval(rule: AvailabilityRule, day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    return combine_local(day, rule.start_time, tz), combine_local(day, rule.end_time, tz)


def load_timezone(name: str | None, fallback: ZoneInfo | None = None) -> ZoneInfo:
    if not name:
        if fallback is None:
            raise ValidationError("A timezone is required")
        return fallback
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        if fallback is None:
            raise ValidationError(f"Invalid timezone: {name}")
        logger.warning("Unknown timezone, using fallback", extra={"error": name})
        return fallback


def ensure_aware(value: datetime, tz: ZoneInfo) -> datetime:
    """Naive datetimes are read as wall clock in tz."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def local_day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time(0, 0), tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=tz).astimezone(timezone.utc)
    return start, end
