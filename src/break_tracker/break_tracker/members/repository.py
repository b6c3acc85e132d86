from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Member


class MemberRepository(Protocol):
    """Roster persistence interface.

    Note (DIP): services depend on this interface, not on a concrete database.
    Every call may suspend on the network.
    """

    async def list_members(self) -> Sequence[Member]:
        raise NotImplementedError

    async def get_member(self, member_id: int) -> Optional[Member]:
        raise NotImplementedError

    async def create_member(self, *, name: str, email: Optional[str], is_admin: bool) -> Member:
        raise NotImplementedError

    async def delete_member(self, member_id: int) -> bool:
        raise NotImplementedError
