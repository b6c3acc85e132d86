from __future__ import annotations

from typing import Sequence

from ..core.enums import ChangeKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, run_blocking, transport_errors
from ..intervals.model import ReconciliationEvent
from ..intervals.mysql_interval_repository import row_to_interval
from .feed import ChangeLog


class MySQLChangeLog(ChangeLog):
    """Reads the `interval_events` outbox written by MySQLIntervalRepository."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    async def latest_event_id(self) -> int:
        return await run_blocking(self._latest_event_id)

    async def events_after(self, event_id: int, *, limit: int) -> Sequence[tuple[int, ReconciliationEvent]]:
        return await run_blocking(self._events_after, int(event_id), int(limit))

    def _latest_event_id(self) -> int:
        with transport_errors("latest_event_id"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COALESCE(MAX(event_id), 0) AS last_id FROM interval_events")
            row = fetchone(cur)
            return int(row["last_id"]) if row else 0

    def _events_after(self, event_id: int, limit: int) -> Sequence[tuple[int, ReconciliationEvent]]:
        with transport_errors("events_after"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT event_id, kind, interval_id, member_id, member_name, member_email,
                       punch_in, punch_out, interval_created_at AS created_at
                FROM interval_events
                WHERE event_id > %s
                ORDER BY event_id ASC
                LIMIT %s
                """,
                (event_id, limit),
            )
            return [
                (int(r["event_id"]), ReconciliationEvent(kind=ChangeKind(r["kind"]), interval=row_to_interval(r)))
                for r in fetchall(cur)
            ]
