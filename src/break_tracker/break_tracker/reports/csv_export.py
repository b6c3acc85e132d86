from __future__ import annotations

import csv
import io
from datetime import datetime, tzinfo
from typing import Callable, Iterable, Optional, Sequence

from ..core.constants import DEFAULT_REPORT_COLUMNS, REPORT_TIMESTAMP_FORMAT
from ..core.exceptions import ValidationError
from ..intervals.clock import format_hms
from .builder import ReportRow

DEFAULT_COLUMNS: tuple[str, ...] = DEFAULT_REPORT_COLUMNS


def _timestamp(value: Optional[datetime], tz: tzinfo) -> str:
    if value is None:
        return ""
    return value.astimezone(tz).strftime(REPORT_TIMESTAMP_FORMAT)


_COLUMN_VALUES: dict[str, Callable[[ReportRow, tzinfo], str]] = {
    "Name": lambda row, tz: row.name,
    "Email": lambda row, tz: row.email,
    "Punch In": lambda row, tz: _timestamp(row.punch_in, tz),
    "Punch Out": lambda row, tz: _timestamp(row.punch_out, tz),
    "Created At": lambda row, tz: _timestamp(row.created_at, tz),
    "Duration": lambda row, tz: format_hms(row.duration_ms),
}

AVAILABLE_COLUMNS: tuple[str, ...] = tuple(_COLUMN_VALUES)


def validate_columns(columns: Sequence[str]) -> tuple[str, ...]:
    cols = tuple(c.strip() for c in columns if c and c.strip())
    if not cols:
        raise ValidationError("At least one report column is required")
    unknown = [c for c in cols if c not in _COLUMN_VALUES]
    if unknown:
        raise ValidationError(f"Unknown report column(s): {', '.join(unknown)}")
    return cols


def render_csv(rows: Iterable[ReportRow], tz: tzinfo, *, columns: Sequence[str] = DEFAULT_COLUMNS) -> str:
    """Export rows as CSV text.

    Header is written bare; every data field is double-quoted with inner
    quotes doubled. Timestamps use DD/MM/YYYY HH:mm in `tz`.
    """
    cols = validate_columns(columns)

    out = io.StringIO()
    out.write(",".join(cols) + "\n")
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow([_COLUMN_VALUES[c](row, tz) for c in cols])
    return out.getvalue()
