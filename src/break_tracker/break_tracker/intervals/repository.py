from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import Interval, IntervalFilter


class IntervalRepository(Protocol):
    """Authoritative interval storage shared by every session.

    Implementations must enforce at most one open interval per member at
    write time and raise ConflictError when it would be violated; that
    constraint, not the caller's local check, is the real arbiter.
    """

    async def create_interval(self, member_id: int, *, punch_in: datetime) -> Interval:
        """Create an open interval. Raises ConflictError, NotFoundError (unknown member), TransportError."""

        raise NotImplementedError

    async def close_interval(self, interval_id: int, *, punch_out: datetime) -> Interval:
        """Set punch_out on an open interval. Raises NotFoundError when it is absent or already closed."""

        raise NotImplementedError

    async def list_intervals(self, interval_filter: IntervalFilter) -> Sequence[Interval]:
        raise NotImplementedError
