from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional, Union

from ..core.constants import DEFAULT_RESYNC_MAX_RETRY_SECONDS, DEFAULT_RESYNC_RETRY_SECONDS
from ..core.enums import ChangeKind, ConnectionState
from ..core.exceptions import TransportError
from ..intervals.model import IntervalFilter, ReconciliationEvent
from ..intervals.repository import IntervalRepository
from ..intervals.store import IntervalStore
from .feed import ChangeFeed, Unsubscribe

logger = logging.getLogger(__name__)

Message = Union[ReconciliationEvent, TransportError]

_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.DISCONNECTED: frozenset({ConnectionState.CONNECTING}),
    ConnectionState.CONNECTING: frozenset(
        {ConnectionState.SYNCED, ConnectionState.DEGRADED, ConnectionState.DISCONNECTED}
    ),
    ConnectionState.SYNCED: frozenset({ConnectionState.DEGRADED, ConnectionState.DISCONNECTED}),
    ConnectionState.DEGRADED: frozenset({ConnectionState.SYNCED, ConnectionState.DISCONNECTED}),
}


class Reconciler:
    """Keeps one session's IntervalStore converged with authoritative storage.

    DISCONNECTED -> CONNECTING -> SYNCED -> (DEGRADED on error) -> SYNCED | DISCONNECTED

    The change feed writes into an asyncio.Queue; a single pump task reads
    it and applies events in arrival order. A TransportError on the queue
    (or from a fetch) moves the connection to DEGRADED, and the only way back
    to SYNCED is a fresh bulk resync. No event log is replayed.
    """

    def __init__(
        self,
        store: IntervalStore,
        intervals: IntervalRepository,
        feed: ChangeFeed,
        *,
        window: Callable[[], IntervalFilter],
        retry_seconds: float = DEFAULT_RESYNC_RETRY_SECONDS,
        max_retry_seconds: float = DEFAULT_RESYNC_MAX_RETRY_SECONDS,
        on_state_change: Optional[Callable[[ConnectionState, ConnectionState], None]] = None,
        on_change: Optional[Callable[[], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._store = store
        self._intervals = intervals
        self._feed = feed
        self._window = window
        self._retry_seconds = float(retry_seconds)
        self._max_retry_seconds = max(float(max_retry_seconds), self._retry_seconds)
        self._on_state_change = on_state_change
        self._on_change = on_change
        self._sleep = sleep

        self._state = ConnectionState.DISCONNECTED
        self._queue: Optional[asyncio.Queue[Message]] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._pump: Optional[asyncio.Task] = None
        self._synced = asyncio.Event()

    @property
    def state(self) -> ConnectionState:
        return self._state

    def _set_state(self, new: ConnectionState) -> None:
        old = self._state
        if new == old:
            return
        if new not in _TRANSITIONS[old]:
            raise RuntimeError(f"Illegal reconciler transition {old.value} -> {new.value}")
        self._state = new
        if new == ConnectionState.SYNCED:
            self._synced.set()
        else:
            self._synced.clear()
        logger.info("Reconciler %s -> %s", old.value, new.value, extra={"state": new.value})
        if self._on_state_change:
            self._on_state_change(old, new)

    async def wait_synced(self) -> None:
        await self._synced.wait()

    async def connect(self) -> None:
        if self._state != ConnectionState.DISCONNECTED:
            return

        self._set_state(ConnectionState.CONNECTING)
        queue: asyncio.Queue[Message] = asyncio.Queue()
        self._queue = queue
        # Subscribe before the first fetch so nothing committed in between is missed.
        self._unsubscribe = self._feed.subscribe(queue.put_nowait, queue.put_nowait)

        try:
            await self.resync()
        except TransportError as exc:
            logger.warning("Initial resync failed: %s", exc)
            self._set_state(ConnectionState.DEGRADED)
            queue.put_nowait(exc)
        except Exception:
            logger.exception("Initial resync failed unexpectedly")
            self._unsubscribe()
            self._unsubscribe = None
            self._queue = None
            self._set_state(ConnectionState.DISCONNECTED)
            raise
        else:
            self._set_state(ConnectionState.SYNCED)

        self._pump = asyncio.get_running_loop().create_task(self._run())

    async def disconnect(self) -> None:
        if self._state == ConnectionState.DISCONNECTED:
            return

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        pump, self._pump = self._pump, None
        if pump is not None:
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump

        self._queue = None
        self._set_state(ConnectionState.DISCONNECTED)

    async def resync(self) -> int:
        """Fetch everything in the visible window and make the store match it."""
        window = self._window()
        intervals = await self._intervals.list_intervals(window)

        for interval in intervals:
            self._store.upsert(interval)
        pruned = self._store.prune((i.interval_id for i in intervals), within=window)

        logger.info("Resync: fetched=%d pruned=%d", len(intervals), len(pruned))
        self._notify_change()
        return len(intervals)

    def apply(self, event: ReconciliationEvent) -> bool:
        """Fold one remote change into the store. Returns True when the store changed."""
        interval = event.interval
        if event.kind == ChangeKind.DELETE:
            changed = self._store.remove(interval.interval_id)
        else:
            current = self._store.get(interval.interval_id)
            if current is not None and not current.is_open and interval.is_open:
                # An interval is closed exactly once, so an open copy is an older version.
                logger.debug("Ignoring stale %s for closed interval %s", event.kind.value, interval.interval_id)
                return False
            changed = self._store.upsert(interval)

        if changed:
            self._notify_change()
        return changed

    def _notify_change(self) -> None:
        if self._on_change:
            self._on_change()

    def _drain(self) -> int:
        """Drop queued messages; a resync that starts afterwards covers them."""
        dropped = 0
        queue = self._queue
        while queue is not None and not queue.empty():
            queue.get_nowait()
            dropped += 1
        return dropped

    async def _run(self) -> None:
        queue = self._queue
        if queue is None:
            return
        while True:
            message = await queue.get()
            if isinstance(message, TransportError):
                await self._recover(message)
            elif self._state == ConnectionState.SYNCED:
                try:
                    self.apply(message)
                except Exception as exc:
                    logger.exception("Applying %s event failed", message.kind.value)
                    await self._recover(exc)

    async def _recover(self, error: Exception) -> None:
        """Stay DEGRADED until a resync succeeds; every failure is logged and retried with backoff."""
        if self._state == ConnectionState.SYNCED:
            logger.warning("Reconciliation interrupted: %s", error)
            self._set_state(ConnectionState.DEGRADED)

        delay = self._retry_seconds
        while True:
            self._drain()
            try:
                await self.resync()
            except TransportError as exc:
                logger.warning("Resync failed, retrying in %.1fs: %s", delay, exc)
            except Exception:
                logger.exception("Resync failed unexpectedly, retrying in %.1fs", delay)
            else:
                self._set_state(ConnectionState.SYNCED)
                return
            await self._sleep(delay)
            delay = min(delay * 2, self._max_retry_seconds)
