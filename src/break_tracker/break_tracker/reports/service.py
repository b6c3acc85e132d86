from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import day_window, now_utc
from ..core.exceptions import AuthorizationError
from ..intervals.model import IntervalFilter
from ..intervals.repository import IntervalRepository
from ..members.repository import MemberRepository
from .builder import ReportRow, build
from .csv_export import DEFAULT_COLUMNS, render_csv, validate_columns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportData:
    window_start: datetime
    window_end: datetime
    rows: list[ReportRow]


class ExportService:
    def __init__(
        self,
        intervals: IntervalRepository,
        members: MemberRepository,
        *,
        display_tz: tzinfo,
        columns: Sequence[str] = DEFAULT_COLUMNS,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._intervals = intervals
        self._members = members
        self._tz = display_tz
        self._columns = validate_columns(columns)
        self._clock = clock

    @property
    def display_tz(self) -> tzinfo:
        return self._tz

    async def build_report(self, *, actor_is_admin: bool, start: date, end: date) -> ReportData:
        """Report for inclusive local dates, i.e. the window [start 00:00, end+1 00:00)."""
        if not actor_is_admin:
            raise AuthorizationError("Only administrators can export reports")

        window_start, window_end = day_window(start, end, self._tz)
        members = await self._members.list_members()
        intervals = await self._intervals.list_intervals(IntervalFilter(since=window_start, until=window_end))

        rows = build(window_start, window_end, members, intervals, now=self._clock())
        logger.info("Report built: %d rows for %s..%s", len(rows), start, end)
        return ReportData(window_start=window_start, window_end=window_end, rows=rows)

    async def export_csv(
        self,
        *,
        actor_is_admin: bool,
        start: date,
        end: date,
        columns: Optional[Sequence[str]] = None,
    ) -> str:
        data = await self.build_report(actor_is_admin=actor_is_admin, start=start, end=end)
        return render_csv(data.rows, self._tz, columns=columns or self._columns)
