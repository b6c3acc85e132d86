from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .common.datetime_utils import now_utc
from .core.constants import (
    DEFAULT_DURATION_TICK_SECONDS,
    DEFAULT_RESYNC_MAX_RETRY_SECONDS,
    DEFAULT_RESYNC_RETRY_SECONDS,
    DEFAULT_VISIBLE_WINDOW_DAYS,
)
from .core.enums import ConnectionState, PresenceStatus
from .core.exceptions import TransportError
from .intervals.clock import DurationTicker, elapsed
from .intervals.engine import PunchEngine, PunchOutcome
from .intervals.model import Interval, IntervalFilter
from .intervals.repository import IntervalRepository
from .intervals.store import IntervalStore
from .sync.feed import ChangeFeed
from .sync.reconciler import Reconciler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresenceView:
    """What the board shows for one member at a given instant."""

    member_id: int
    status: PresenceStatus
    interval: Optional[Interval]
    elapsed_ms: int


def visible_window(days: int, clock: Callable[[], datetime] = now_utc) -> Callable[[], IntervalFilter]:
    """Sliding window: the last `days` days plus every open interval."""

    def window() -> IntervalFilter:
        return IntervalFilter(since=clock() - timedelta(days=days), include_open=True)

    return window


class ClientSession:
    """Everything one connected viewer owns.

    A session has its own IntervalStore, PunchEngine and Reconciler, and the
    tickers started through it. Use `async with`: entering connects and
    resyncs, leaving stops every ticker and disconnects.
    """

    def __init__(
        self,
        intervals: IntervalRepository,
        feed: ChangeFeed,
        *,
        window_days: int = DEFAULT_VISIBLE_WINDOW_DAYS,
        tick_seconds: float = DEFAULT_DURATION_TICK_SECONDS,
        retry_seconds: float = DEFAULT_RESYNC_RETRY_SECONDS,
        max_retry_seconds: float = DEFAULT_RESYNC_MAX_RETRY_SECONDS,
        clock: Callable[[], datetime] = now_utc,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._clock = clock
        self._tick_seconds = float(tick_seconds)
        self._tickers: list[DurationTicker] = []

        self.store = IntervalStore()
        self.engine = PunchEngine(self.store, intervals, clock=clock)
        self.reconciler = Reconciler(
            self.store,
            intervals,
            feed,
            window=visible_window(window_days, clock),
            retry_seconds=retry_seconds,
            max_retry_seconds=max_retry_seconds,
            on_change=on_change,
        )

    @property
    def state(self) -> ConnectionState:
        return self.reconciler.state

    async def open(self) -> "ClientSession":
        await self.reconciler.connect()
        return self

    async def close(self) -> None:
        tickers, self._tickers = self._tickers, []
        for ticker in tickers:
            await ticker.stop()
        await self.reconciler.disconnect()

    def ensure_synced(self) -> "ClientSession":
        """For one-shot callers (HTTP requests) that cannot wait for a recovery."""
        if self.state != ConnectionState.SYNCED:
            raise TransportError(f"Attendance data unavailable (connection {self.state.value})")
        return self

    async def __aenter__(self) -> "ClientSession":
        return await self.open()

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def punch_in(self, member_id: int) -> PunchOutcome:
        return await self.engine.punch_in(member_id)

    async def punch_out(self, member_id: int) -> PunchOutcome:
        return await self.engine.punch_out(member_id)

    def open_interval_for(self, member_id: int) -> Optional[Interval]:
        return self.store.open_interval_for(member_id)

    def presence(self, member_id: int, *, at: Optional[datetime] = None) -> PresenceView:
        reference = at or self._clock()
        current = self.store.open_interval_for(member_id)
        if current is None:
            return PresenceView(member_id=member_id, status=PresenceStatus.AVAILABLE, interval=None, elapsed_ms=0)
        return PresenceView(
            member_id=member_id,
            status=PresenceStatus.ON_BREAK,
            interval=current,
            elapsed_ms=elapsed(current, reference),
        )

    def start_ticker(self, on_tick: Callable[[datetime], None]) -> DurationTicker:
        """Start a duration ticker owned by this session; it stops when the session closes."""
        ticker = DurationTicker(on_tick, interval_seconds=self._tick_seconds, clock=self._clock)
        self._tickers.append(ticker)
        return ticker.start()


@dataclass(frozen=True)
class SessionFactory:
    """Creates sessions bound to the shared collaborators and settings."""

    intervals: IntervalRepository
    feed: ChangeFeed
    window_days: int = DEFAULT_VISIBLE_WINDOW_DAYS
    tick_seconds: float = DEFAULT_DURATION_TICK_SECONDS
    retry_seconds: float = DEFAULT_RESYNC_RETRY_SECONDS
    max_retry_seconds: float = DEFAULT_RESYNC_MAX_RETRY_SECONDS
    clock: Callable[[], datetime] = now_utc

    def __call__(self, *, on_change: Optional[Callable[[], None]] = None) -> ClientSession:
        return ClientSession(
            self.intervals,
            self.feed,
            window_days=self.window_days,
            tick_seconds=self.tick_seconds,
            retry_seconds=self.retry_seconds,
            max_retry_seconds=self.max_retry_seconds,
            clock=self.clock,
            on_change=on_change,
        )
