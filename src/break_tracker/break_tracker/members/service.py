from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import require_email, require_non_empty
from ..core.exceptions import AuthorizationError, NotFoundError
from .model import Member
from .repository import MemberRepository

logger = logging.getLogger(__name__)


class RosterService:
    """Use case: read and maintain the team roster.

    The privileged flag comes from the caller (login is external); this
    service only checks it.
    """

    def __init__(self, members: MemberRepository):
        self._members = members

    async def list_members(self) -> Sequence[Member]:
        return await self._members.list_members()

    async def add_member(
        self,
        *,
        actor_is_admin: bool,
        name: str,
        email: Optional[str] = None,
        is_admin: bool = False,
    ) -> Member:
        if not actor_is_admin:
            raise AuthorizationError("Only administrators can add members")

        clean_name = require_non_empty(name, "Name")
        clean_email = require_email(email)
        member = await self._members.create_member(name=clean_name, email=clean_email, is_admin=bool(is_admin))
        logger.info("Member added: member_id=%s", member.member_id)
        return member

    async def remove_member(self, *, actor_is_admin: bool, member_id: int) -> None:
        if not actor_is_admin:
            raise AuthorizationError("Only administrators can remove members")

        removed = await self._members.delete_member(int(member_id))
        if not removed:
            raise NotFoundError("Member already removed")
        logger.info("Member removed: member_id=%s", member_id)
