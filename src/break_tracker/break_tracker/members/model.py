from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Member:
    """Domain entity: a team member on the roster.

    Note: Plain data object (no DB access). Immutable during a session; the
    roster only adds or removes members.
    """

    member_id: int
    name: str
    email: Optional[str] = None
    is_admin: bool = False
