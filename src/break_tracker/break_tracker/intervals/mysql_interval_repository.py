from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import ensure_utc, to_naive_utc
from ..core.enums import ChangeKind
from ..core.exceptions import ConflictError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, run_blocking, transport_errors
from .model import Interval, IntervalFilter
from .repository import IntervalRepository

_INTERVAL_COLUMNS = "interval_id, member_id, member_name, member_email, punch_in, punch_out, created_at"


def row_to_interval(row: Dict[str, Any]) -> Interval:
    punch_out = row.get("punch_out")
    created_at = row.get("created_at")
    return Interval(
        interval_id=int(row["interval_id"]),
        member_id=int(row["member_id"]),
        punch_in=ensure_utc(row["punch_in"]),
        punch_out=ensure_utc(punch_out) if punch_out else None,
        member_name=row.get("member_name"),
        member_email=row.get("member_email"),
        created_at=ensure_utc(created_at) if created_at else None,
    )


def _record_event(cur, kind: ChangeKind, interval: Interval) -> None:
    """Append to the outbox in the caller's transaction; the change feed tails this table."""
    cur.execute(
        """
        INSERT INTO interval_events(
            kind, interval_id, member_id, member_name, member_email,
            punch_in, punch_out, interval_created_at
        )
        VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
        """,
        (
            kind.value,
            interval.interval_id,
            interval.member_id,
            interval.member_name,
            interval.member_email,
            to_naive_utc(interval.punch_in),
            to_naive_utc(interval.punch_out) if interval.punch_out else None,
            to_naive_utc(interval.created) if interval.created_at else None,
        ),
    )


class MySQLIntervalRepository(IntervalRepository):
    """Intervals in MySQL.

    The `open_member_id` generated column carries a UNIQUE key, so a second
    open interval for the same member fails with a duplicate-key error at
    insert time no matter how many sessions race.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    async def create_interval(self, member_id: int, *, punch_in: datetime) -> Interval:
        return await run_blocking(self._create_interval, int(member_id), punch_in)

    async def close_interval(self, interval_id: int, *, punch_out: datetime) -> Interval:
        return await run_blocking(self._close_interval, int(interval_id), punch_out)

    async def list_intervals(self, interval_filter: IntervalFilter) -> Sequence[Interval]:
        return await run_blocking(self._list_intervals, interval_filter)

    def _select_interval(self, cur, interval_id: int) -> Optional[Interval]:
        cur.execute(f"SELECT {_INTERVAL_COLUMNS} FROM break_intervals WHERE interval_id=%s", (interval_id,))
        row = fetchone(cur)
        return row_to_interval(row) if row else None

    def _create_interval(self, member_id: int, punch_in: datetime) -> Interval:
        with transport_errors("create_interval"):
            try:
                with db_cursor(self._conn_factory) as (_, cur):
                    cur.execute("SELECT name, email FROM team_members WHERE member_id=%s", (member_id,))
                    member = fetchone(cur)
                    if not member:
                        raise NotFoundError("Member not found")

                    cur.execute(
                        """
                        INSERT INTO break_intervals(member_id, member_name, member_email, punch_in)
                        VALUES(%s,%s,%s,%s)
                        """,
                        (member_id, member["name"], member.get("email"), to_naive_utc(punch_in)),
                    )
                    created = self._select_interval(cur, int(cur.lastrowid))
                    if created is None:
                        raise NotFoundError("Interval vanished after insert")
                    _record_event(cur, ChangeKind.INSERT, created)
                    return created
            except mysql.connector.IntegrityError as exc:
                raise ConflictError("Member is already on break") from exc

    def _close_interval(self, interval_id: int, punch_out: datetime) -> Interval:
        with transport_errors("close_interval"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE break_intervals
                SET punch_out=GREATEST(%s, punch_in)
                WHERE interval_id=%s AND punch_out IS NULL
                """,
                (to_naive_utc(punch_out), interval_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError("No active interval")

            closed = self._select_interval(cur, interval_id)
            if closed is None:
                raise NotFoundError("No active interval")
            _record_event(cur, ChangeKind.UPDATE, closed)
            return closed

    def _list_intervals(self, interval_filter: IntervalFilter) -> Sequence[Interval]:
        window: list[str] = []
        params: list[object] = []

        if interval_filter.since is not None:
            window.append("punch_in >= %s")
            params.append(to_naive_utc(interval_filter.since))
        if interval_filter.until is not None:
            window.append("punch_in < %s")
            params.append(to_naive_utc(interval_filter.until))

        clauses: list[str] = []
        if window:
            window_sql = " AND ".join(window)
            if interval_filter.include_open:
                window_sql = f"(punch_out IS NULL OR ({window_sql}))"
            clauses.append(window_sql)
        if interval_filter.member_id is not None:
            clauses.append("member_id=%s")
            params.append(int(interval_filter.member_id))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with transport_errors("list_intervals"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_INTERVAL_COLUMNS}
                FROM break_intervals
                {where}
                ORDER BY punch_in ASC, interval_id ASC
                """,
                tuple(params),
            )
            return [row_to_interval(r) for r in fetchall(cur)]
