from __future__ import annotations

import threading
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from availability_engine.application.exceptions import IntegrationError
from availability_engine.application.ports.calendar_provider import CalendarProviderPort
from availability_engine.application.use_cases.availability_engine import AvailabilityEngine
from availability_engine.application.use_cases.conflict_detection import ConflictDetector
from availability_engine.domain.entities.availability_rule import AvailabilityRule, RuleKind
from availability_engine.domain.entities.booking import Booking, BookingStatus
from availability_engine.domain.entities.calendar_integration import CalendarIntegration, CalendarProvider
from availability_engine.domain.entities.conflict import NormalizedEvent
from availability_engine.infrastructure.calendar.mock_calendar import MockCalendar
from availability_engine.infrastructure.crypto.plaintext_cipher import PlaintextCredentialCipher
from availability_engine.infrastructure.store.memory_store import MemoryScheduleStore

HOST = "host_1"
# Monday
MONDAY = date(2026, 3, 2)


def utc(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def recurring(rule_id: str, day_of_week: int, start: str, end: str, owner_id: str = HOST, **kwargs) -> AvailabilityRule:
    return AvailabilityRule(
        id=rule_id,
        owner_id=owner_id,
        kind=RuleKind.RECURRING,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        **kwargs,
    )


def date_specific(rule_id: str, day: date, start: str, end: str, owner_id: str = HOST, **kwargs) -> AvailabilityRule:
    return AvailabilityRule(
        id=rule_id,
        owner_id=owner_id,
        kind=RuleKind.DATE_SPECIFIC,
        specific_date=day,
        start_time=start,
        end_time=end,
        **kwargs,
    )


def blocked(rule_id: str, start: str, end: str, reason: str = "Busy", owner_id: str = HOST, **kwargs) -> AvailabilityRule:
    return AvailabilityRule(
        id=rule_id,
        owner_id=owner_id,
        kind=RuleKind.BLOCKED,
        start_time=start,
        end_time=end,
        block_reason=reason,
        **kwargs,
    )


def booking(
    booking_id: str,
    start: datetime,
    end: datetime,
    status: BookingStatus = BookingStatus.CONFIRMED,
    host_id: str = HOST,
) -> Booking:
    return Booking(id=booking_id, host_id=host_id, start=start, end=end, status=status)


def integration(
    integration_id: str,
    provider: CalendarProvider | str = CalendarProvider.MOCK,
    credential: str = "token",
    calendar_id: str | None = None,
    owner_id: str = HOST,
    **kwargs,
) -> CalendarIntegration:
    return CalendarIntegration(
        id=integration_id,
        owner_id=owner_id,
        name=f"Calendar {integration_id}",
        provider=provider,
        encrypted_credential=credential,
        calendar_id=calendar_id,
        **kwargs,
    )


def event(event_id: str, start: datetime, end: datetime, **kwargs) -> NormalizedEvent:
    return NormalizedEvent(id=event_id, title=kwargs.pop("title", f"Event {event_id}"), start=start, end=end, **kwargs)


class FailingCalendar(CalendarProviderPort):
    def __init__(self, message: str = "provider timeout") -> None:
        self.message = message
        self.calls = 0

    def list_events(self, credential, calendar_id, start_iso, end_iso):
        self.calls += 1
        raise IntegrationError(self.message)


class RecordingCalendar(MockCalendar):
    """MockCalendar that records credentials and calling threads."""

    def __init__(self, events=None) -> None:
        super().__init__(events)
        self.credentials: list[str] = []
        self.threads: set[str] = set()

    def list_events(self, credential, calendar_id, start_iso, end_iso):
        self.credentials.append(credential)
        self.threads.add(threading.current_thread().name)
        return super().list_events(credential, calendar_id, start_iso, end_iso)


@pytest.fixture
def store() -> MemoryScheduleStore:
    return MemoryScheduleStore()


@pytest.fixture
def calendar() -> RecordingCalendar:
    return RecordingCalendar()


@pytest.fixture
def detector(store, calendar) -> ConflictDetector:
    return ConflictDetector(
        integrations=store,
        cipher=PlaintextCredentialCipher(),
        providers={CalendarProvider.MOCK: calendar},
    )


@pytest.fixture
def engine(store, detector) -> AvailabilityEngine:
    return AvailabilityEngine(
        rules=store,
        bookings=store,
        detector=detector,
        host_profiles=store,
        default_timezone=ZoneInfo("UTC"),
    )
