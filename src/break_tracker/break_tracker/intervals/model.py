from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ChangeKind


@dataclass(frozen=True)
class Interval:
    """Domain entity: one break period of a member.

    `punch_out is None` means the interval is still open. `member_name` and
    `member_email` are the identity captured when the interval was created,
    so reports survive the member being removed from the roster.
    """

    interval_id: int
    member_id: int
    punch_in: datetime
    punch_out: Optional[datetime] = None
    member_name: Optional[str] = None
    member_email: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.punch_out is None

    @property
    def created(self) -> datetime:
        return self.created_at or self.punch_in


@dataclass(frozen=True)
class IntervalFilter:
    """Half-open window on punch_in: since <= punch_in < until.

    With `include_open`, open intervals match whatever their punch_in, so a
    break that started before the visible window is still seen.
    """

    since: Optional[datetime] = None
    until: Optional[datetime] = None
    member_id: Optional[int] = None
    include_open: bool = False

    def matches(self, interval: Interval) -> bool:
        if self.member_id is not None and interval.member_id != self.member_id:
            return False
        if self.include_open and interval.is_open:
            return True
        if self.since is not None and interval.punch_in < self.since:
            return False
        if self.until is not None and interval.punch_in >= self.until:
            return False
        return True


@dataclass(frozen=True)
class ReconciliationEvent:
    """A remote insert/update/delete of an interval, as delivered by the change feed."""

    kind: ChangeKind
    interval: Interval
