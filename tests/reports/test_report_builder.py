from __future__ import annotations

from datetime import timedelta

import pytest

from src.break_tracker.break_tracker.core.exceptions import ValidationError
from src.break_tracker.break_tracker.intervals.model import Interval
from src.break_tracker.break_tracker.members.model import Member
from src.break_tracker.break_tracker.reports.builder import build
from tests.fakes import T0

START = T0
END = T0 + timedelta(days=1)
MEMBERS = [Member(1, "Ana", "ana@example.com"), Member(2, "Bo", None)]


def test_window_is_inclusive_at_start_and_exclusive_at_end():
    intervals = [
        Interval(1, 1, START, START + timedelta(minutes=5)),
        Interval(2, 1, END, END + timedelta(minutes=5)),
        Interval(3, 1, START - timedelta(seconds=1), START + timedelta(minutes=1)),
    ]

    rows = build(START, END, MEMBERS, intervals)

    assert [r.interval_id for r in rows] == [1]


def test_rows_resolve_current_member_identity():
    rows = build(START, END, MEMBERS, [Interval(1, 2, START, START + timedelta(minutes=1), member_name="Old")])

    assert rows[0].name == "Bo"
    assert rows[0].email == ""


def test_removed_member_falls_back_to_snapshot_then_empty():
    intervals = [
        Interval(1, 9, START, START + timedelta(minutes=1), member_name="Gone", member_email="gone@example.com"),
        Interval(2, 8, START + timedelta(minutes=2), START + timedelta(minutes=3)),
    ]

    rows = build(START, END, MEMBERS, intervals)

    assert (rows[0].name, rows[0].email) == ("Gone", "gone@example.com")
    assert (rows[1].name, rows[1].email) == ("", "")


def test_rows_are_ordered_by_punch_in_then_interval_id():
    intervals = [
        Interval(5, 1, START + timedelta(hours=1)),
        Interval(3, 2, START + timedelta(hours=1)),
        Interval(4, 1, START, START + timedelta(minutes=1)),
    ]

    rows = build(START, END, MEMBERS, intervals, now=END)

    assert [r.interval_id for r in rows] == [4, 3, 5]


def test_open_interval_measured_at_now_or_window_end():
    intervals = [Interval(1, 1, START)]

    at_now = build(START, END, MEMBERS, intervals, now=START + timedelta(minutes=10))
    at_end = build(START, END, MEMBERS, intervals)

    assert at_now[0].duration_ms == 600000
    assert at_end[0].duration_ms == 86400000
    assert at_now[0].punch_out is None


def test_created_at_defaults_to_punch_in():
    created = START + timedelta(seconds=2)
    rows = build(
        START,
        END,
        MEMBERS,
        [Interval(1, 1, START, START + timedelta(minutes=1)), Interval(2, 1, START + timedelta(hours=2), created_at=created)],
        now=END,
    )

    assert rows[0].created_at == START
    assert rows[1].created_at == created


def test_empty_or_inverted_window_is_rejected():
    with pytest.raises(ValidationError):
        build(END, START, MEMBERS, [])
    with pytest.raises(ValidationError):
        build(START, START, MEMBERS, [])
