"""
Tests for external calendar conflict detection.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from availability_engine.application.exceptions import IntegrationError, ValidationError
from availability_engine.application.ports.credential_cipher import CredentialCipherPort
from availability_engine.application.use_cases.conflict_detection import (
    ConflictDetector,
    is_conflicting,
    matches_excluded_booking,
)
from availability_engine.domain.entities.calendar_integration import CalendarProvider
from availability_engine.infrastructure.crypto.plaintext_cipher import PlaintextCredentialCipher
from conftest import FailingCalendar, RecordingCalendar, event, integration, utc

START = utc(2026, 3, 2, 10)
END = utc(2026, 3, 2, 11)


class RejectingCipher(CredentialCipherPort):
    def decrypt(self, ciphertext):
        if ciphertext == "broken":
            raise IntegrationError("Failed to decrypt credential")
        return ciphertext


def test_no_integrations_returns_empty_result(store, detector, calendar):
    result = detector.check_conflicts("host_1", START, END)

    assert result.has_conflicts is False
    assert result.conflicts == []
    assert result.checked_integrations == []
    assert calendar.credentials == []


def test_inactive_and_disabled_integrations_are_not_checked(store, detector, calendar):
    store.add_integration(integration("i1", is_active=False))
    store.add_integration(integration("i2", conflict_detection_enabled=False))
    store.add_integration(integration("i3", credential=""))

    result = detector.check_conflicts("host_1", START, END)

    assert result.checked_integrations == []
    assert calendar.credentials == []


def test_overlapping_event_is_reported(store, detector, calendar):
    store.add_integration(integration("i1"))
    calendar.add_event(event("e1", utc(2026, 3, 2, 10, 30), utc(2026, 3, 2, 11, 30), location="Room 4"))

    result = detector.check_conflicts("host_1", START, END)

    assert result.has_conflicts is True
    assert len(result.conflicts) == 1
    conflict = result.conflicts[0]
    assert conflict.external_event_id == "e1"
    assert conflict.provider == "MOCK"
    assert conflict.calendar_name == "Calendar i1"
    assert conflict.location == "Room 4"
    assert [c.success for c in result.checked_integrations] == [True]


def test_touching_event_is_not_a_conflict(store, detector, calendar):
    store.add_integration(integration("i1"))
    calendar.add_event(event("e1", utc(2026, 3, 2, 9), START))
    calendar.add_event(event("e2", END, utc(2026, 3, 2, 12)))

    assert detector.check_conflicts("host_1", START, END).has_conflicts is False


def test_cancelled_and_transparent_events_are_ignored(store, detector, calendar):
    store.add_integration(integration("i1"))
    calendar.add_event(event("e1", START, END, status="cancelled"))
    calendar.add_event(event("e2", START, END, transparency="transparent"))

    assert detector.check_conflicts("host_1", START, END).has_conflicts is False


def test_excluded_booking_matched_by_metadata(store, detector, calendar):
    store.add_integration(integration("i1"))
    calendar.add_event(event("e1", START, END, booking_id="bk_42"))

    assert detector.check_conflicts("host_1", START, END, exclude_booking_id="bk_42").has_conflicts is False
    assert detector.check_conflicts("host_1", START, END, exclude_booking_id="bk_7").has_conflicts is True


def test_excluded_booking_matched_by_description(store, detector, calendar):
    store.add_integration(integration("i1"))
    calendar.add_event(event("e1", START, END, description="Booking ID: bk_42"))

    assert detector.check_conflicts("host_1", START, END, exclude_booking_id="bk_42").has_conflicts is False


def test_one_failing_integration_does_not_hide_the_others(store, calendar):
    store.add_integration(integration("i1", provider=CalendarProvider.GOOGLE))
    store.add_integration(integration("i2", provider=CalendarProvider.MOCK))
    calendar.add_event(event("e1", START, END))
    failing = FailingCalendar("Google Calendar request timed out")
    detector = ConflictDetector(
        integrations=store,
        cipher=PlaintextCredentialCipher(),
        providers={CalendarProvider.GOOGLE: failing, CalendarProvider.MOCK: calendar},
    )

    result = detector.check_conflicts("host_1", START, END)

    assert failing.calls == 1
    assert result.has_conflicts is True
    assert [c.external_event_id for c in result.conflicts] == ["e1"]
    assert [(c.integration_id, c.success) for c in result.checked_integrations] == [("i1", False), ("i2", True)]
    assert result.checked_integrations[0].error == "Google Calendar request timed out"
    assert [f.integration_id for f in result.failed_integrations] == ["i1"]


def test_all_integrations_failing_reports_no_conflicts(store):
    store.add_integration(integration("i1", provider=CalendarProvider.GOOGLE))
    store.add_integration(integration("i2", provider=CalendarProvider.OUTLOOK))
    detector = ConflictDetector(
        integrations=store,
        cipher=PlaintextCredentialCipher(),
        providers={CalendarProvider.GOOGLE: FailingCalendar(), CalendarProvider.OUTLOOK: FailingCalendar()},
    )

    result = detector.check_conflicts("host_1", START, END)

    assert result.has_conflicts is False
    assert len(result.failed_integrations) == 2


def test_unknown_provider_is_reported_as_failed(store, detector):
    store.add_integration(integration("i1", provider="EXCHANGE"))

    result = detector.check_conflicts("host_1", START, END)

    assert result.checked_integrations[0].success is False
    assert "EXCHANGE" in result.checked_integrations[0].error


def test_decrypt_failure_is_reported_per_integration(store, calendar):
    store.add_integration(integration("i1", credential="broken"))
    store.add_integration(integration("i2", credential="good"))
    calendar.add_event(event("e1", START, END))
    detector = ConflictDetector(
        integrations=store,
        cipher=RejectingCipher(),
        providers={CalendarProvider.MOCK: calendar},
    )

    result = detector.check_conflicts("host_1", START, END)

    assert [c.success for c in result.checked_integrations] == [False, True]
    assert result.checked_integrations[0].error == "Failed to decrypt credential"
    assert calendar.credentials == ["good"]
    assert result.has_conflicts is True


def test_integrations_are_checked_on_worker_threads(store, detector, calendar):
    store.add_integration(integration("i1"))
    store.add_integration(integration("i2"))

    detector.check_conflicts("host_1", START, END)

    assert sorted(calendar.credentials) == ["token", "token"]
    assert all(name.startswith("conflict-check") for name in calendar.threads)


def test_start_must_be_before_end(detector):
    with pytest.raises(ValidationError):
        detector.check_conflicts("host_1", END, START)


def test_naive_datetimes_are_read_as_utc(store, detector, calendar):
    store.add_integration(integration("i1"))
    calendar.add_event(event("e1", START, END))

    assert detector.check_conflicts("host_1", datetime(2026, 3, 2, 10), datetime(2026, 3, 2, 11)).has_conflicts


def test_is_time_slot_available(store, detector, calendar):
    store.add_integration(integration("i1"))
    calendar.add_event(event("e1", START, END))

    assert detector.is_time_slot_available("host_1", START, END) is False
    assert detector.is_time_slot_available("host_1", END, utc(2026, 3, 2, 12)) is True


def test_matches_excluded_booking_without_id():
    assert matches_excluded_booking(event("e1", START, END, booking_id="bk_1"), None) is False


def test_is_conflicting_checks_overlap():
    busy = event("e1", START, END)
    assert is_conflicting(busy, utc(2026, 3, 2, 10, 59), utc(2026, 3, 2, 12))
    assert not is_conflicting(busy, END, utc(2026, 3, 2, 12))
