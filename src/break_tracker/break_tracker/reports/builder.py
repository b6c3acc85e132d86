from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..core.exceptions import ValidationError
from ..intervals.clock import elapsed
from ..intervals.model import Interval, IntervalFilter
from ..members.model import Member


@dataclass(frozen=True)
class ReportRow:
    """Read-model for one exported interval (identity already resolved)."""

    interval_id: int
    member_id: int
    name: str
    email: str
    punch_in: datetime
    punch_out: Optional[datetime]
    created_at: datetime
    duration_ms: int


def build(
    window_start: datetime,
    window_end: datetime,
    members: Iterable[Member],
    intervals: Iterable[Interval],
    *,
    now: Optional[datetime] = None,
) -> list[ReportRow]:
    """Rows for intervals with window_start <= punch_in < window_end.

    Removed members keep their rows: identity falls back to the snapshot on
    the interval, then to empty strings. Open intervals are measured at
    `now` when given (export time), otherwise at window_end.
    """
    if window_end <= window_start:
        raise ValidationError("Report window end must be after its start")

    by_id = {m.member_id: m for m in members}
    window = IntervalFilter(since=window_start, until=window_end)
    reference = now if now is not None else window_end

    selected = sorted(
        (i for i in intervals if window.matches(i)),
        key=lambda i: (i.punch_in, i.interval_id),
    )

    rows: list[ReportRow] = []
    for interval in selected:
        member = by_id.get(interval.member_id)
        if member is not None:
            name, email = member.name, member.email or ""
        else:
            name, email = interval.member_name or "", interval.member_email or ""

        rows.append(
            ReportRow(
                interval_id=interval.interval_id,
                member_id=interval.member_id,
                name=name,
                email=email,
                punch_in=interval.punch_in,
                punch_out=interval.punch_out,
                created_at=interval.created,
                duration_ms=elapsed(interval, reference),
            )
        )
    return rows
