from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from ..common.datetime_utils import now_utc
from ..core.exceptions import ConflictError, NotFoundError
from .model import Interval
from .repository import IntervalRepository
from .store import IntervalStore

logger = logging.getLogger(__name__)

PunchError = Union[ConflictError, NotFoundError]


@dataclass(frozen=True)
class PunchOutcome:
    """Result of a punch: either the interval written, or the business error.

    Expected conditions (already on break, nothing to close) come back here
    instead of being raised.
    """

    interval: Optional[Interval] = None
    error: Optional[PunchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        return str(self.error) if self.error else ""


class PunchEngine:
    """Applies punch-in / punch-out for one session.

    Writes go to the repository first; the returned record is then upserted
    into the local store (optimistic write). The change feed later delivers
    the same record to every session, including this one, where it replaces
    the local copy with identical content.
    """

    def __init__(
        self,
        store: IntervalStore,
        intervals: IntervalRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._store = store
        self._intervals = intervals
        self._clock = clock
        self._locks: dict[int, asyncio.Lock] = {}

    def _lock_for(self, member_id: int) -> asyncio.Lock:
        lock = self._locks.get(member_id)
        if lock is None:
            lock = self._locks[member_id] = asyncio.Lock()
        return lock

    async def punch_in(self, member_id: int) -> PunchOutcome:
        async with self._lock_for(member_id):
            if self._store.open_interval_for(member_id) is not None:
                return PunchOutcome(error=ConflictError("Member is already on break"))

            try:
                created = await self._intervals.create_interval(member_id, punch_in=self._clock())
            except (ConflictError, NotFoundError) as exc:
                logger.info("Punch-in rejected by storage: %s", exc, extra={"member_id": member_id})
                return PunchOutcome(error=exc)

            self._store.upsert(created)
            logger.info(
                "Punch-in: member=%s interval=%s",
                member_id,
                created.interval_id,
                extra={"member_id": member_id, "interval_id": created.interval_id},
            )
            return PunchOutcome(interval=created)

    async def punch_out(self, member_id: int) -> PunchOutcome:
        async with self._lock_for(member_id):
            current = self._store.open_interval_for(member_id)
            if current is None:
                return PunchOutcome(error=NotFoundError("No active interval"))

            punch_out = max(self._clock(), current.punch_in)
            try:
                closed = await self._intervals.close_interval(current.interval_id, punch_out=punch_out)
            except NotFoundError as exc:
                logger.info("Punch-out rejected by storage: %s", exc, extra={"member_id": member_id})
                return PunchOutcome(error=exc)

            self._store.upsert(closed)
            logger.info(
                "Punch-out: member=%s interval=%s",
                member_id,
                closed.interval_id,
                extra={"member_id": member_id, "interval_id": closed.interval_id},
            )
            return PunchOutcome(interval=closed)

    async def toggle(self, member_id: int) -> PunchOutcome:
        """Punch out when on break, otherwise punch in (the board's single button)."""
        if self._store.open_interval_for(member_id) is not None:
            return await self.punch_out(member_id)
        return await self.punch_in(member_id)
