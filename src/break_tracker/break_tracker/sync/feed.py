from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_FEED_BATCH_SIZE, DEFAULT_FEED_LOOKBACK_EVENTS, DEFAULT_FEED_POLL_SECONDS
from ..core.exceptions import TransportError
from ..intervals.model import ReconciliationEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[ReconciliationEvent], None]
ErrorHandler = Callable[[TransportError], None]
Unsubscribe = Callable[[], None]


class ChangeFeed(Protocol):
    """Change notification collaborator.

    `on_event` receives remote changes, possibly duplicated and out of order;
    `on_error` is told when the channel breaks. Both are called on the
    subscriber's event loop. The returned callable ends the subscription.
    """

    def subscribe(self, on_event: EventHandler, on_error: ErrorHandler) -> Unsubscribe:
        raise NotImplementedError


class ChangeLog(Protocol):
    """Ordered, append-only source of events (the transactional outbox)."""

    async def latest_event_id(self) -> int:
        raise NotImplementedError

    async def events_after(self, event_id: int, *, limit: int) -> Sequence[tuple[int, ReconciliationEvent]]:
        raise NotImplementedError


class PollingChangeFeed(ChangeFeed):
    """Tails a ChangeLog and pushes what it finds to each subscriber.

    Every subscription owns one polling task bound to the loop that
    subscribed. A failed poll is reported through `on_error` and retried on
    the next round.

    Event ids are allocated at insert but become visible at commit, so a
    lower id can show up after a higher one was delivered. Each poll
    therefore re-reads the last `lookback` ids behind the newest delivered
    one and hands over every id it has not delivered yet. Delivery is
    at-least-once and not necessarily in id order; the store's idempotent
    upsert absorbs both.

    A new subscription starts `replay_overlap` events behind the head of the
    log. The subscriber's first resync may run concurrently with the first
    poll; replaying a few already-seen events is harmless, missing one is not.
    """

    def __init__(
        self,
        log: ChangeLog,
        *,
        poll_seconds: float = DEFAULT_FEED_POLL_SECONDS,
        batch_size: int = DEFAULT_FEED_BATCH_SIZE,
        replay_overlap: int = DEFAULT_FEED_BATCH_SIZE,
        lookback: int = DEFAULT_FEED_LOOKBACK_EVENTS,
    ):
        self._log = log
        self._poll_seconds = float(poll_seconds)
        self._batch_size = max(1, int(batch_size))
        self._replay_overlap = max(0, int(replay_overlap))
        self._lookback = max(0, int(lookback))

    def subscribe(self, on_event: EventHandler, on_error: ErrorHandler) -> Unsubscribe:
        task = asyncio.get_running_loop().create_task(self._poll(on_event, on_error))

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def _unseen_since(self, floor: int, delivered: set[int]) -> list[tuple[int, ReconciliationEvent]]:
        """Every visible event with id > floor that is not in `delivered`, paging by batch_size."""
        found: list[tuple[int, ReconciliationEvent]] = []
        cursor = floor
        while True:
            batch = await self._log.events_after(cursor, limit=self._batch_size)
            found.extend(item for item in batch if item[0] not in delivered)
            if len(batch) < self._batch_size:
                return found
            cursor = batch[-1][0]

    async def _poll(self, on_event: EventHandler, on_error: ErrorHandler) -> None:
        start: Optional[int] = None
        newest = 0
        delivered: set[int] = set()
        while True:
            try:
                if start is None:
                    start = max(0, await self._log.latest_event_id() - self._replay_overlap)
                    newest = start
                fresh = await self._unseen_since(max(start, newest - self._lookback), delivered)
            except TransportError as exc:
                on_error(exc)
                await asyncio.sleep(self._poll_seconds)
                continue

            for event_id, event in fresh:
                on_event(event)
                delivered.add(event_id)
                newest = max(newest, event_id)

            floor = newest - self._lookback
            delivered = {event_id for event_id in delivered if event_id > floor}
            await asyncio.sleep(self._poll_seconds)


class LocalChangeFeed(ChangeFeed):
    """In-process fan-out, used when writer and viewers share one process.

    `publish` may be called from any thread; each subscriber is invoked on
    its own loop via call_soon_threadsafe.
    """

    def __init__(self) -> None:
        self._subscribers: dict[int, tuple[asyncio.AbstractEventLoop, EventHandler, ErrorHandler]] = {}
        self._next_key = 0

    def subscribe(self, on_event: EventHandler, on_error: ErrorHandler) -> Unsubscribe:
        loop = asyncio.get_running_loop()
        key = self._next_key
        self._next_key += 1
        self._subscribers[key] = (loop, on_event, on_error)

        def unsubscribe() -> None:
            self._subscribers.pop(key, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: ReconciliationEvent) -> None:
        for loop, on_event, _ in list(self._subscribers.values()):
            with contextlib.suppress(RuntimeError):
                # RuntimeError: the subscriber's loop is already closed.
                loop.call_soon_threadsafe(on_event, event)

    def fail(self, error: TransportError) -> None:
        for loop, _, on_error in list(self._subscribers.values()):
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(on_error, error)
