"""
Tests for the JSON owner snapshot store.
"""

from __future__ import annotations

import json
import tempfile
from datetime import date
from pathlib import Path

import pytest

from availability_engine.domain.entities.availability_rule import RuleKind
from availability_engine.domain.entities.booking import OCCUPYING_STATUSES, BookingStatus
from availability_engine.domain.entities.calendar_integration import CalendarProvider
from availability_engine.domain.entities.time_slot import DateRange
from availability_engine.application.use_cases.availability_engine import AvailabilityEngine
from availability_engine.application.use_cases.conflict_detection import ConflictDetector
from availability_engine.infrastructure.crypto.plaintext_cipher import PlaintextCredentialCipher
from availability_engine.infrastructure.store.json_store import JsonScheduleStore
from conftest import utc

SNAPSHOT = {
    "timezone": "Europe/Berlin",
    "rules": [
        {"id": "r1", "kind": "recurring", "day_of_week": 1, "start_time": "09:00", "end_time": "17:00"},
        {"id": "d1", "kind": "DATE_SPECIFIC", "specific_date": "2026-03-04", "start_time": "10:00", "end_time": "12:00"},
        {
            "id": "b1",
            "kind": "DATE_SPECIFIC",
            "specific_date": "2026-03-20",
            "start_time": "12:00",
            "end_time": "13:00",
            "is_blocked": True,
            "block_reason": "Lunch",
        },
    ],
    "bookings": [
        {"id": "bk1", "start": "2026-03-02T09:00:00Z", "end": "2026-03-02T10:00:00Z", "status": "confirmed"},
        {"id": "bk2", "start": "2026-03-02T11:00:00Z", "end": "2026-03-02T12:00:00Z", "status": "PENDING"},
    ],
    "integrations": [
        {"id": "i1", "provider": "google", "encrypted_credential": "aa:bb:cc"},
        {"id": "i2", "provider": "outlook", "encrypted_credential": "aa:bb:cc", "is_active": False},
        {"id": "i3", "provider": "exchange", "encrypted_credential": "aa:bb:cc"},
    ],
}


def _write_snapshot(tmpdir: str, owner_id: str, data) -> None:
    with open(Path(tmpdir) / f"{owner_id}.json", "w", encoding="utf-8") as f:
        json.dump(data, f)


def test_reads_owner_snapshot():
    with tempfile.TemporaryDirectory() as tmpdir:
        _write_snapshot(tmpdir, "host_1", SNAPSHOT)
        store = JsonScheduleStore(data_dir=tmpdir)

        rules = store.read_availability_rules("host_1")

        assert store.read_timezone("host_1") == "Europe/Berlin"
        assert [r.id for r in rules] == ["r1", "d1", "b1"]
        assert rules[0].kind == RuleKind.RECURRING
        assert rules[0].owner_id == "host_1"
        assert rules[1].specific_date == date(2026, 3, 4)
        assert rules[2].is_blocked and rules[2].block_reason == "Lunch"


def test_rules_are_filtered_by_window():
    with tempfile.TemporaryDirectory() as tmpdir:
        _write_snapshot(tmpdir, "host_1", SNAPSHOT)
        store = JsonScheduleStore(data_dir=tmpdir)

        rules = store.read_availability_rules("host_1", DateRange(date(2026, 3, 2), date(2026, 3, 8)))

        assert [r.id for r in rules] == ["r1", "d1"]


def test_bookings_are_filtered_by_status_and_window():
    with tempfile.TemporaryDirectory() as tmpdir:
        _write_snapshot(tmpdir, "host_1", SNAPSHOT)
        store = JsonScheduleStore(data_dir=tmpdir)

        occupying = store.read_bookings("host_1", utc(2026, 3, 2, 0), utc(2026, 3, 3, 0), OCCUPYING_STATUSES)
        later = store.read_bookings("host_1", utc(2026, 3, 2, 10), utc(2026, 3, 2, 11), OCCUPYING_STATUSES)

        assert [b.id for b in occupying] == ["bk1"]
        assert occupying[0].status == BookingStatus.CONFIRMED
        assert occupying[0].host_id == "host_1"
        assert later == []


def test_only_active_integrations_are_returned():
    with tempfile.TemporaryDirectory() as tmpdir:
        _write_snapshot(tmpdir, "host_1", SNAPSHOT)
        store = JsonScheduleStore(data_dir=tmpdir)

        integrations = store.read_active_integrations("host_1")

        assert [i.id for i in integrations] == ["i1", "i3"]
        assert integrations[0].provider == CalendarProvider.GOOGLE
        # Unknown providers are kept as plain strings.
        assert integrations[1].provider == "EXCHANGE"


def test_missing_owner_is_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonScheduleStore(data_dir=tmpdir)

        assert store.read_availability_rules("nobody") == []
        assert store.read_active_integrations("nobody") == []
        assert store.read_timezone("nobody") is None


def test_corrupt_snapshot_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "host_1.json").write_text("{not json", encoding="utf-8")
        store = JsonScheduleStore(data_dir=tmpdir)

        with pytest.raises(json.JSONDecodeError):
            store.read_availability_rules("host_1")


def test_snapshot_must_be_an_object():
    with tempfile.TemporaryDirectory() as tmpdir:
        _write_snapshot(tmpdir, "host_1", [1, 2, 3])
        store = JsonScheduleStore(data_dir=tmpdir)

        with pytest.raises(ValueError):
            store.read_timezone("host_1")


def test_blocked_kind_rule_in_snapshot_removes_slots():
    snapshot = {
        "rules": [
            {"id": "mon", "kind": "RECURRING", "day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
            {
                "id": "dentist",
                "kind": "BLOCKED",
                "specific_date": "2026-03-02",
                "start_time": "10:00",
                "end_time": "11:00",
                "is_blocked": True,
                "block_reason": "dentist",
            },
        ],
    }
    with tempfile.TemporaryDirectory() as tmpdir:
        _write_snapshot(tmpdir, "host_1", snapshot)
        store = JsonScheduleStore(data_dir=tmpdir)
        detector = ConflictDetector(integrations=store, cipher=PlaintextCredentialCipher(), providers={})
        engine = AvailabilityEngine(rules=store, bookings=store, detector=detector, host_profiles=store)

        slots = engine.compute_available_slots("host_1", date(2026, 3, 2), 60)

        assert store.read_availability_rules("host_1")[1].kind == RuleKind.BLOCKED
        assert [s.start for s in slots] == [utc(2026, 3, 2, 9), utc(2026, 3, 2, 11)]


def test_snapshot_with_only_blocked_time_returns_no_slots():
    snapshot = {
        "rules": [
            {"id": "off", "kind": "BLOCKED", "day_of_week": 1, "start_time": "00:00", "end_time": "24:00",
             "block_reason": "Day off"},
        ],
    }
    with tempfile.TemporaryDirectory() as tmpdir:
        _write_snapshot(tmpdir, "host_1", snapshot)
        store = JsonScheduleStore(data_dir=tmpdir)
        detector = ConflictDetector(integrations=store, cipher=PlaintextCredentialCipher(), providers={})
        engine = AvailabilityEngine(rules=store, bookings=store, detector=detector, host_profiles=store)

        assert engine.compute_available_slots("host_1", date(2026, 3, 2), 30) == []
