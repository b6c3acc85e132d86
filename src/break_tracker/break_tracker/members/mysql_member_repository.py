from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, run_blocking, transport_errors
from .model import Member
from .repository import MemberRepository


def _to_member(row: Dict[str, Any]) -> Member:
    return Member(
        member_id=int(row["member_id"]),
        name=row["name"],
        email=row.get("email"),
        is_admin=bool(row.get("is_admin", False)),
    )


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    async def list_members(self) -> Sequence[Member]:
        return await run_blocking(self._list_members)

    async def get_member(self, member_id: int) -> Optional[Member]:
        return await run_blocking(self._get_member, int(member_id))

    async def create_member(self, *, name: str, email: Optional[str], is_admin: bool) -> Member:
        return await run_blocking(self._create_member, name, email, bool(is_admin))

    async def delete_member(self, member_id: int) -> bool:
        return await run_blocking(self._delete_member, int(member_id))

    def _list_members(self) -> Sequence[Member]:
        with transport_errors("list_members"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT member_id, name, email, is_admin
                FROM team_members
                ORDER BY name ASC, member_id ASC
                """
            )
            return [_to_member(r) for r in fetchall(cur)]

    def _get_member(self, member_id: int) -> Optional[Member]:
        with transport_errors("get_member"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT member_id, name, email, is_admin FROM team_members WHERE member_id=%s",
                (member_id,),
            )
            row = fetchone(cur)
            return _to_member(row) if row else None

    def _create_member(self, name: str, email: Optional[str], is_admin: bool) -> Member:
        with transport_errors("create_member"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO team_members(name, email, is_admin) VALUES(%s,%s,%s)",
                (name, email, int(is_admin)),
            )
            return Member(member_id=int(cur.lastrowid), name=name, email=email, is_admin=is_admin)

    def _delete_member(self, member_id: int) -> bool:
        # Intervals keep member_id and their identity snapshot; history is not cascaded.
        with transport_errors("delete_member"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM team_members WHERE member_id=%s", (member_id,))
            return cur.rowcount > 0
