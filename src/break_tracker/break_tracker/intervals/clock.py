from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from .model import Interval

logger = logging.getLogger(__name__)

_ONE_MS = timedelta(milliseconds=1)


def elapsed(interval: Interval, reference_time: datetime) -> int:
    """Duration of an interval in milliseconds.

    Closed intervals return punch_out - punch_in whatever the reference is;
    open ones are measured up to `reference_time`, never below zero.
    """
    end = interval.punch_out if interval.punch_out is not None else reference_time
    return max(0, (end - interval.punch_in) // _ONE_MS)


def format_hms(milliseconds: int) -> str:
    """65000 -> '00:01:05'. Hours are not wrapped at 24."""
    total = max(0, int(milliseconds)) // 1000
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_hm(milliseconds: int) -> str:
    """65000 -> '0h 1m'."""
    total_minutes = max(0, int(milliseconds)) // 60000
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"


class DurationTicker:
    """Periodic re-read trigger for live durations.

    Calls `on_tick(now)` every `interval_seconds` until cancelled. It owns a
    single task; use it as an async context manager so the task is always
    cancelled on exit.
    """

    def __init__(
        self,
        on_tick: Callable[[datetime], None],
        *,
        interval_seconds: float,
        clock: Callable[[], datetime] = now_utc,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._on_tick = on_tick
        self._interval = float(interval_seconds)
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> "DurationTicker":
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._on_tick(self._clock())
            except Exception:
                logger.exception("Duration tick callback failed")

    async def __aenter__(self) -> "DurationTicker":
        return self.start()

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
