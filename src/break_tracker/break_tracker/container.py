from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Any

from .common.datetime_utils import get_zone
from .core import constants
from .database.connection import DatabaseConnection, DBConfig
from .intervals.mysql_interval_repository import MySQLIntervalRepository
from .members.mysql_member_repository import MySQLMemberRepository
from .members.service import RosterService
from .reports.service import ExportService
from .session import SessionFactory
from .sync.feed import PollingChangeFeed
from .sync.mysql_change_log import MySQLChangeLog


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    members_repo: MySQLMemberRepository
    intervals_repo: MySQLIntervalRepository
    change_log: MySQLChangeLog
    feed: PollingChangeFeed

    roster_service: RosterService
    export_service: ExportService
    sessions: SessionFactory
    display_tz: tzinfo


def _setting(settings: Any, name: str, default: Any) -> Any:
    return getattr(settings, name, default) if settings is not None else default


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))
    display_tz = get_zone(str(_setting(settings, "DISPLAY_TIMEZONE", constants.DEFAULT_DISPLAY_TIMEZONE)))

    members_repo = MySQLMemberRepository(conn)
    intervals_repo = MySQLIntervalRepository(conn)
    change_log = MySQLChangeLog(conn)
    feed = PollingChangeFeed(
        change_log,
        poll_seconds=float(_setting(settings, "FEED_POLL_SECONDS", constants.DEFAULT_FEED_POLL_SECONDS)),
        batch_size=int(_setting(settings, "FEED_BATCH_SIZE", constants.DEFAULT_FEED_BATCH_SIZE)),
        lookback=int(_setting(settings, "FEED_LOOKBACK_EVENTS", constants.DEFAULT_FEED_LOOKBACK_EVENTS)),
    )

    roster_service = RosterService(members_repo)
    export_service = ExportService(
        intervals_repo,
        members_repo,
        display_tz=display_tz,
        columns=_setting(settings, "REPORT_COLUMNS", None) or constants.DEFAULT_REPORT_COLUMNS,
    )
    sessions = SessionFactory(
        intervals=intervals_repo,
        feed=feed,
        window_days=int(_setting(settings, "VISIBLE_WINDOW_DAYS", constants.DEFAULT_VISIBLE_WINDOW_DAYS)),
        tick_seconds=float(_setting(settings, "DURATION_TICK_SECONDS", constants.DEFAULT_DURATION_TICK_SECONDS)),
        retry_seconds=float(_setting(settings, "RESYNC_RETRY_SECONDS", constants.DEFAULT_RESYNC_RETRY_SECONDS)),
        max_retry_seconds=float(
            _setting(settings, "RESYNC_MAX_RETRY_SECONDS", constants.DEFAULT_RESYNC_MAX_RETRY_SECONDS)
        ),
    )

    return Container(
        conn=conn,
        members_repo=members_repo,
        intervals_repo=intervals_repo,
        change_log=change_log,
        feed=feed,
        roster_service=roster_service,
        export_service=export_service,
        sessions=sessions,
        display_tz=display_tz,
    )
