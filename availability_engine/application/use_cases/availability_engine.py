from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from availability_engine.application.exceptions import ConfigurationError, ValidationError
from availability_engine.application.ports.availability_rules import AvailabilityRuleReaderPort
from availability_engine.application.ports.bookings import BookingReaderPort
from availability_engine.application.ports.host_profile import HostProfilePort
from availability_engine.application.use_cases.alternatives import AlternativeSuggester, validate_search_arguments
from availability_engine.application.use_cases.conflict_detection import ConflictDetector
from availability_engine.application.use_cases.local_conflicts import LocalConflictFilter
from availability_engine.application.utils.rule_resolution import (
    ensure_aware,
    load_timezone,
    local_day_bounds,
    resolve_rule_interval,
    rule_applies_on,
    validate_rule,
)
from availability_engine.application.utils.slot_generator import generate_slots, validate_slot_arguments
from availability_engine.domain.entities.availability_rule import AvailabilityRule
from availability_engine.domain.entities.booking import OCCUPYING_STATUSES, Booking
from availability_engine.domain.entities.business_hours import BusinessHours
from availability_engine.domain.entities.conflict import ConflictCheckResult
from availability_engine.domain.entities.time_slot import DateRange, TimeSlot

NO_AVAILABILITY_MESSAGE = (
    "No availability has been configured. "
    "Please set up your availability schedule first before accepting bookings."
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AvailabilityEngine:
    """
    Public entry point of the availability engine.

    compute_available_slots works from local data only (rules and bookings) and
    never calls external calendars. check_conflicts consults external calendars
    only. suggest_alternatives combines both over a forward search window.
    """

    def __init__(
        self,
        rules: AvailabilityRuleReaderPort,
        bookings: BookingReaderPort,
        detector: ConflictDetector,
        host_profiles: HostProfilePort | None = None,
        default_timezone: ZoneInfo | None = None,
        business_hours: BusinessHours | None = None,
        step_minutes: int = 30,
        max_range_days: int = 31,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._rules = rules
        self._bookings = bookings
        self._detector = detector
        self._host_profiles = host_profiles
        self._default_timezone = default_timezone or ZoneInfo("UTC")
        self._local_filter = LocalConflictFilter()
        self._suggester = AlternativeSuggester(
            detector=detector,
            business_hours=business_hours,
            step_minutes=step_minutes,
        )
        self._max_range_days = max_range_days
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def host_timezone(self, host_id: str) -> ZoneInfo:
        name = self._host_profiles.read_timezone(host_id) if self._host_profiles else None
        return load_timezone(name, fallback=self._default_timezone)

    def compute_available_slots(
        self,
        host_id: str,
        day: date,
        duration_minutes: int,
        buffer_minutes: int = 0,
    ) -> list[TimeSlot]:
        validate_slot_arguments(duration_minutes, buffer_minutes)
        day = _as_date(day)
        tz = self.host_timezone(host_id)

        rules = self._load_rules(host_id, DateRange(day, day))
        slots = self._slots_for_day(host_id, day, rules, tz, duration_minutes, buffer_minutes)
        self._logger.info(
            "Available slots computed",
            extra={"host_id": host_id, "date": day.isoformat(), "slot_count": len(slots)},
        )
        return slots

    def compute_available_slots_in_range(
        self,
        host_id: str,
        start_day: date,
        end_day: date,
        duration_minutes: int,
        buffer_minutes: int = 0,
    ) -> dict[date, list[TimeSlot]]:
        validate_slot_arguments(duration_minutes, buffer_minutes)
        window = self._validated_range(_as_date(start_day), _as_date(end_day))
        tz = self.host_timezone(host_id)

        rules = self._load_rules(host_id, window)
        return {
            day: self._slots_for_day(host_id, day, rules, tz, duration_minutes, buffer_minutes)
            for day in window.days()
        }

    def next_available_slot(
        self,
        host_id: str,
        from_day: date,
        duration_minutes: int,
        buffer_minutes: int = 0,
        horizon_days: int = 14,
    ) -> TimeSlot | None:
        if horizon_days is None or horizon_days <= 0:
            raise ValidationError("horizon_days must be greater than 0")
        start_day = _as_date(from_day)
        by_day = self.compute_available_slots_in_range(
            host_id,
            start_day,
            start_day + timedelta(days=horizon_days - 1),
            duration_minutes,
            buffer_minutes,
        )
        now = self._clock()
        for day in sorted(by_day):
            for slot in by_day[day]:
                if slot.start >= now:
                    return slot
        return None

    def check_conflicts(
        self,
        host_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None = None,
    ) -> ConflictCheckResult:
        start, end = self._aware_window(host_id, start, end)
        return self._detector.check_conflicts(host_id, start, end, exclude_booking_id)

    def is_time_slot_available(
        self,
        host_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None = None,
    ) -> bool:
        """Free locally (blocked time, occupying bookings) and in every external calendar."""
        start, end = self._aware_window(host_id, start, end)
        local_check = self._local_window_check(host_id, start, end, exclude_booking_id)
        if not local_check(start, end):
            return False
        return self._detector.is_time_slot_available(host_id, start, end, exclude_booking_id)

    def suggest_alternatives(
        self,
        host_id: str,
        preferred_start: datetime,
        duration_minutes: int,
        search_days: int = 7,
        max_suggestions: int = 5,
    ) -> list[datetime]:
        validate_search_arguments(duration_minutes, search_days, max_suggestions)
        tz = self.host_timezone(host_id)
        preferred_start = ensure_aware(preferred_start, tz)

        # One snapshot of local busy time covers the whole search horizon.
        horizon_end = preferred_start + timedelta(days=search_days, minutes=duration_minutes)
        local_check = self._local_window_check(host_id, preferred_start, horizon_end)

        return self._suggester.suggest(
            host_id,
            preferred_start,
            duration_minutes,
            tz,
            local_check,
            search_days=search_days,
            max_suggestions=max_suggestions,
        )

    def _load_rules(self, host_id: str, window: DateRange) -> list[AvailabilityRule]:
        rules = self._rules.read_availability_rules(host_id, window)
        if not rules and not self._rules.read_availability_rules(host_id, None):
            self._logger.warning("Host has no availability configured", extra={"host_id": host_id})
            raise ConfigurationError(NO_AVAILABILITY_MESSAGE)
        for rule in rules:
            validate_rule(rule)
        return rules

    def _slots_for_day(
        self,
        host_id: str,
        day: date,
        rules: Sequence[AvailabilityRule],
        tz: ZoneInfo,
        duration_minutes: int,
        buffer_minutes: int,
    ) -> list[TimeSlot]:
        todays = [r for r in rules if rule_applies_on(r, day)]

        candidates: list[TimeSlot] = []
        for rule in todays:
            self._logger.debug(
                "Applying availability rule",
                extra={"host_id": host_id, "rule_id": rule.id, "kind": rule.kind_label},
            )
            if rule.blocks_time:
                continue
            start, end = resolve_rule_interval(rule, day, tz)
            candidates.extend(generate_slots(start, end, duration_minutes, buffer_minutes))

        unique: dict[datetime, TimeSlot] = {}
        for slot in candidates:
            unique.setdefault(slot.start, slot)
        ordered = sorted(unique.values(), key=lambda s: s.start)
        if not ordered:
            return []

        blocked = [resolve_rule_interval(r, day, tz) for r in todays if r.blocks_time]
        day_start, day_end = local_day_bounds(day, tz)
        bookings = self._occupying_bookings(host_id, min(day_start, ordered[0].start), max(day_end, ordered[-1].end))
        return self._local_filter.filter(ordered, blocked, bookings)

    def _local_window_check(
        self,
        host_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None = None,
    ) -> Callable[[datetime, datetime], bool]:
        """Snapshot blocked time and bookings covering [start, end) into a reusable check."""
        tz = self.host_timezone(host_id)
        local_days = DateRange(start.astimezone(tz).date(), end.astimezone(tz).date())

        rules = self._rules.read_availability_rules(host_id, local_days)
        blocked: list[tuple[datetime, datetime]] = []
        for rule in rules:
            if not rule.blocks_time:
                continue
            validate_rule(rule)
            for day in local_days.days():
                if rule_applies_on(rule, day):
                    blocked.append(resolve_rule_interval(rule, day, tz))

        bookings = [
            b for b in self._occupying_bookings(host_id, start, end)
            if not exclude_booking_id or b.id != exclude_booking_id
        ]

        def check(window_start: datetime, window_end: datetime) -> bool:
            return self._local_filter.is_free(window_start, window_end, blocked, bookings)

        return check

    def _occupying_bookings(self, host_id: str, start: datetime, end: datetime) -> list[Booking]:
        return self._bookings.read_bookings(host_id, start, end, OCCUPYING_STATUSES)

    def _aware_window(self, host_id: str, start: datetime, end: datetime) -> tuple[datetime, datetime]:
        tz = self.host_timezone(host_id)
        start, end = ensure_aware(start, tz), ensure_aware(end, tz)
        if start >= end:
            raise ValidationError("start must be before end")
        return start, end

    def _validated_range(self, start_day: date, end_day: date) -> DateRange:
        if end_day < start_day:
            raise ValidationError("end date must not be before start date")
        if (end_day - start_day).days + 1 > self._max_range_days:
            raise ValidationError(f"date range cannot exceed {self._max_range_days} days")
        return DateRange(start_day, end_day)


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
