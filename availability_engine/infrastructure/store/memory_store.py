from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from availability_engine.application.ports.availability_rules import AvailabilityRuleReaderPort
from availability_engine.application.ports.bookings import BookingReaderPort
from availability_engine.application.ports.host_profile import HostProfilePort
from availability_engine.application.ports.integrations import IntegrationReaderPort
from availability_engine.application.utils.intervals import overlaps
from availability_engine.domain.entities.availability_rule import AvailabilityRule
from availability_engine.domain.entities.booking import Booking, BookingStatus
from availability_engine.domain.entities.calendar_integration import CalendarIntegration
from availability_engine.domain.entities.time_slot import DateRange


class MemoryScheduleStore(
    AvailabilityRuleReaderPort,
    BookingReaderPort,
    IntegrationReaderPort,
    HostProfilePort,
):
    def __init__(self) -> None:
        self._rules: dict[str, list[AvailabilityRule]] = {}
        self._bookings: dict[str, list[Booking]] = {}
        self._integrations: dict[str, list[CalendarIntegration]] = {}
        self._timezones: dict[str, str] = {}

    def add_rule(self, rule: AvailabilityRule) -> None:
        self._rules.setdefault(rule.owner_id, []).append(rule)

    def add_booking(self, booking: Booking) -> None:
        self._bookings.setdefault(booking.host_id, []).append(booking)

    def add_integration(self, integration: CalendarIntegration) -> None:
        self._integrations.setdefault(integration.owner_id, []).append(integration)

    def set_timezone(self, host_id: str, timezone: str) -> None:
        self._timezones[host_id] = timezone

    def read_availability_rules(self, owner_id: str, window: DateRange | None = None) -> list[AvailabilityRule]:
        return filter_rules(self._rules.get(owner_id, []), window)

    def read_bookings(
        self,
        host_id: str,
        start: datetime,
        end: datetime,
        statuses: Iterable[BookingStatus],
    ) -> list[Booking]:
        return filter_bookings(self._bookings.get(host_id, []), start, end, statuses)

    def read_active_integrations(self, owner_id: str) -> list[CalendarIntegration]:
        return [i for i in self._integrations.get(owner_id, []) if i.is_active]

    def read_timezone(self, host_id: str) -> str | None:
        return self._timezones.get(host_id)


def filter_rules(rules: Iterable[AvailabilityRule], window: DateRange | None) -> list[AvailabilityRule]:
    if window is None:
        return list(rules)
    return [
        r
        for r in rules
        if r.specific_date is None or window.start <= r.specific_date <= window.end
    ]


def filter_bookings(
    bookings: Iterable[Booking],
    start: datetime,
    end: datetime,
    statuses: Iterable[BookingStatus],
) -> list[Booking]:
    wanted = set(statuses)
    return [
        b for b in bookings
        if b.status in wanted and overlaps(start, end, b.start, b.end)
    ]
