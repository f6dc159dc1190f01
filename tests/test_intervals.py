"""
Tests for the half-open interval overlap predicate.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from availability_engine.application.utils.intervals import overlaps, overlaps_any

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _t(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def test_partial_overlap_is_detected_both_ways():
    """Overlap is symmetric."""
    assert overlaps(_t(0), _t(30), _t(15), _t(45)) is True
    assert overlaps(_t(15), _t(45), _t(0), _t(30)) is True


def test_touching_endpoints_do_not_overlap():
    """[a, b) and [b, c) share no time."""
    assert overlaps(_t(0), _t(30), _t(30), _t(60)) is False
    assert overlaps(_t(30), _t(60), _t(0), _t(30)) is False


def test_containment_and_identity_overlap():
    assert overlaps(_t(0), _t(60), _t(15), _t(30)) is True
    assert overlaps(_t(15), _t(30), _t(0), _t(60)) is True
    assert overlaps(_t(0), _t(30), _t(0), _t(30)) is True


def test_disjoint_intervals_do_not_overlap():
    assert overlaps(_t(0), _t(30), _t(45), _t(60)) is False
    assert overlaps(_t(45), _t(60), _t(0), _t(30)) is False


def test_overlaps_any():
    busy = [(_t(60), _t(90)), (_t(120), _t(150))]
    assert overlaps_any(_t(80), _t(100), busy) is True
    assert overlaps_any(_t(90), _t(120), busy) is False
    assert overlaps_any(_t(0), _t(30), []) is False
