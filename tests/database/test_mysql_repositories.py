from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import mysql.connector
import pytest

from src.break_tracker.break_tracker.core.enums import ChangeKind
from src.break_tracker.break_tracker.core.exceptions import ConflictError, NotFoundError, TransportError
from src.break_tracker.break_tracker.intervals.model import IntervalFilter
from src.break_tracker.break_tracker.intervals.mysql_interval_repository import MySQLIntervalRepository
from src.break_tracker.break_tracker.members.mysql_member_repository import MySQLMemberRepository
from src.break_tracker.break_tracker.sync.mysql_change_log import MySQLChangeLog

NAIVE_IN = datetime(2026, 3, 2, 9, 0)
NAIVE_OUT = datetime(2026, 3, 2, 9, 12)


def _factory(cursor):
    conn = MagicMock()
    conn.cursor.return_value = cursor
    factory = MagicMock()
    factory.connect.return_value = conn
    return factory, conn


def _row(punch_out=None, **extra):
    row = {
        "interval_id": 7,
        "member_id": 3,
        "member_name": "Ana",
        "member_email": "ana@example.com",
        "punch_in": NAIVE_IN,
        "punch_out": punch_out,
        "created_at": NAIVE_IN,
    }
    row.update(extra)
    return row


@pytest.mark.asyncio
async def test_create_interval_snapshots_member_and_records_event():
    cur = MagicMock()
    cur.fetchone.side_effect = [{"name": "Ana", "email": "ana@example.com"}, _row()]
    cur.lastrowid = 7
    factory, conn = _factory(cur)

    created = await MySQLIntervalRepository(factory).create_interval(3, punch_in=NAIVE_IN.replace(tzinfo=timezone.utc))

    assert created.interval_id == 7
    assert created.punch_in == NAIVE_IN.replace(tzinfo=timezone.utc)
    assert created.member_name == "Ana"
    insert_sql, insert_params = cur.execute.call_args_list[1].args
    assert "INSERT INTO break_intervals" in insert_sql
    assert insert_params == (3, "Ana", "ana@example.com", NAIVE_IN)
    event_sql, event_params = cur.execute.call_args_list[-1].args
    assert "INSERT INTO interval_events" in event_sql
    assert event_params[:3] == ("insert", 7, 3)
    conn.commit.assert_called_once()


@pytest.mark.asyncio
async def test_duplicate_open_interval_maps_to_conflict():
    cur = MagicMock()
    cur.fetchone.return_value = {"name": "Ana", "email": None}
    cur.execute.side_effect = [None, mysql.connector.IntegrityError(msg="Duplicate entry '3' for key 'uq_break_intervals_open_member'")]
    factory, conn = _factory(cur)

    with pytest.raises(ConflictError):
        await MySQLIntervalRepository(factory).create_interval(3, punch_in=NAIVE_IN.replace(tzinfo=timezone.utc))

    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()


@pytest.mark.asyncio
async def test_create_interval_for_unknown_member_is_not_found():
    cur = MagicMock()
    cur.fetchone.return_value = None
    factory, conn = _factory(cur)

    with pytest.raises(NotFoundError):
        await MySQLIntervalRepository(factory).create_interval(99, punch_in=NAIVE_IN.replace(tzinfo=timezone.utc))

    assert cur.execute.call_count == 1


@pytest.mark.asyncio
async def test_close_interval_already_closed_is_not_found():
    cur = MagicMock()
    cur.rowcount = 0
    factory, conn = _factory(cur)

    with pytest.raises(NotFoundError, match="No active interval"):
        await MySQLIntervalRepository(factory).close_interval(7, punch_out=NAIVE_OUT.replace(tzinfo=timezone.utc))

    conn.rollback.assert_called_once()


@pytest.mark.asyncio
async def test_close_interval_records_update_event():
    cur = MagicMock()
    cur.rowcount = 1
    cur.fetchone.return_value = _row(punch_out=NAIVE_OUT)
    factory, _ = _factory(cur)

    closed = await MySQLIntervalRepository(factory).close_interval(7, punch_out=NAIVE_OUT.replace(tzinfo=timezone.utc))

    assert closed.punch_out == NAIVE_OUT.replace(tzinfo=timezone.utc)
    update_sql, update_params = cur.execute.call_args_list[0].args
    assert "punch_out IS NULL" in update_sql
    assert update_params == (NAIVE_OUT, 7)
    assert cur.execute.call_args_list[-1].args[1][0] == "update"


@pytest.mark.asyncio
async def test_list_intervals_keeps_open_intervals_outside_window():
    cur = MagicMock()
    cur.fetchall.return_value = [_row()]
    factory, _ = _factory(cur)
    since = datetime(2026, 3, 1, tzinfo=timezone.utc)

    rows = await MySQLIntervalRepository(factory).list_intervals(IntervalFilter(since=since, include_open=True, member_id=3))

    sql, params = cur.execute.call_args.args
    assert "(punch_out IS NULL OR (punch_in >= %s))" in sql
    assert "member_id=%s" in sql
    assert params == (datetime(2026, 3, 1), 3)
    assert rows[0].is_open


@pytest.mark.asyncio
async def test_driver_failure_becomes_transport_error():
    cur = MagicMock()
    cur.execute.side_effect = mysql.connector.OperationalError(msg="Lost connection")
    factory, _ = _factory(cur)

    with pytest.raises(TransportError):
        await MySQLIntervalRepository(factory).list_intervals(IntervalFilter())


@pytest.mark.asyncio
async def test_change_log_reads_events_after_cursor():
    cur = MagicMock()
    cur.fetchall.return_value = [dict(_row(punch_out=NAIVE_OUT), event_id=12, kind="update")]
    factory, _ = _factory(cur)

    events = await MySQLChangeLog(factory).events_after(11, limit=50)

    assert cur.execute.call_args.args[1] == (11, 50)
    event_id, event = events[0]
    assert event_id == 12
    assert event.kind == ChangeKind.UPDATE
    assert event.interval.punch_out == NAIVE_OUT.replace(tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_delete_member_reports_missing_row():
    cur = MagicMock()
    cur.rowcount = 0
    factory, _ = _factory(cur)

    assert await MySQLMemberRepository(factory).delete_member(5) is False
