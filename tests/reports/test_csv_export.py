from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from src.break_tracker.break_tracker.core.exceptions import ValidationError
from src.break_tracker.break_tracker.reports.builder import ReportRow
from src.break_tracker.break_tracker.reports.csv_export import render_csv

T = datetime(2026, 1, 5, 23, 30, tzinfo=timezone.utc)


def _row(**kwargs) -> ReportRow:
    values = dict(
        interval_id=1,
        member_id=1,
        name="Ana",
        email="ana@example.com",
        punch_in=T,
        punch_out=T + timedelta(minutes=15),
        created_at=T,
        duration_ms=900000,
    )
    values.update(kwargs)
    return ReportRow(**values)


def test_header_is_bare_and_fields_are_quoted():
    text = render_csv([_row()], timezone.utc)

    assert text.splitlines() == [
        "Name,Email,Punch In,Punch Out,Created At",
        '"Ana","ana@example.com","05/01/2026 23:30","05/01/2026 23:45","05/01/2026 23:30"',
    ]


def test_open_interval_has_empty_punch_out():
    text = render_csv([_row(punch_out=None)], timezone.utc)

    assert text.splitlines()[1] == '"Ana","ana@example.com","05/01/2026 23:30","","05/01/2026 23:30"'


def test_inner_quotes_are_doubled():
    text = render_csv([_row(name='Ana "The Boss" Lee', email="")], timezone.utc, columns=["Name", "Email"])

    assert text.splitlines()[1] == '"Ana ""The Boss"" Lee",""'


def test_timestamps_use_display_timezone():
    text = render_csv([_row()], ZoneInfo("Asia/Ho_Chi_Minh"), columns=["Punch In"])

    assert text == "Punch In\n\"06/01/2026 06:30\"\n"


def test_duration_column_and_empty_report():
    assert render_csv([_row()], timezone.utc, columns=["Name", "Duration"]).splitlines()[1] == '"Ana","00:15:00"'
    assert render_csv([], timezone.utc) == "Name,Email,Punch In,Punch Out,Created At\n"


def test_unknown_column_is_rejected():
    with pytest.raises(ValidationError):
        render_csv([_row()], timezone.utc, columns=["Name", "Salary"])
