from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from src.break_tracker.break_tracker.core.enums import ChangeKind
from src.break_tracker.break_tracker.core.exceptions import TransportError
from src.break_tracker.break_tracker.intervals.model import Interval, ReconciliationEvent
from src.break_tracker.break_tracker.sync.feed import LocalChangeFeed, PollingChangeFeed
from tests.fakes import T0, wait_until


def _event(interval_id: int) -> ReconciliationEvent:
    return ReconciliationEvent(
        kind=ChangeKind.INSERT,
        interval=Interval(interval_id=interval_id, member_id=1, punch_in=T0 + timedelta(minutes=interval_id)),
    )


class FakeChangeLog:
    def __init__(self, count: int = 0):
        self.events: list[tuple[int, ReconciliationEvent]] = []
        self.fail_next = 0
        for _ in range(count):
            self.append()

    def append(self) -> int:
        event_id = len(self.events) + 1
        self.events.append((event_id, _event(event_id)))
        return event_id

    async def latest_event_id(self) -> int:
        return self.events[-1][0] if self.events else 0

    async def events_after(self, event_id: int, *, limit: int):
        if self.fail_next > 0:
            self.fail_next -= 1
            raise TransportError("outbox read failed")
        return [e for e in self.events if e[0] > event_id][:limit]


class CommitOrderLog:
    """Ids are reserved up front; rows only become readable once committed."""

    def __init__(self):
        self.committed: dict[int, ReconciliationEvent] = {}

    def commit(self, event_id: int) -> None:
        self.committed[event_id] = _event(event_id)

    async def latest_event_id(self) -> int:
        return max(self.committed, default=0)

    async def events_after(self, event_id: int, *, limit: int):
        return [(i, self.committed[i]) for i in sorted(self.committed) if i > event_id][:limit]


@pytest.mark.asyncio
async def test_polling_feed_delivers_event_committed_after_a_higher_id():
    log = CommitOrderLog()
    feed = PollingChangeFeed(log, poll_seconds=0.005, batch_size=10, replay_overlap=0, lookback=50)
    seen: list[int] = []

    unsubscribe = feed.subscribe(lambda e: seen.append(e.interval.interval_id), lambda err: None)
    try:
        await asyncio.sleep(0.01)
        log.commit(2)
        await wait_until(lambda: seen == [2])
        log.commit(1)
        await wait_until(lambda: seen == [2, 1])
        await asyncio.sleep(0.03)
    finally:
        unsubscribe()

    assert seen == [2, 1]


@pytest.mark.asyncio
async def test_polling_feed_pages_past_already_delivered_events():
    log = CommitOrderLog()
    for event_id in (1, 2, 3, 5, 6, 7):
        log.commit(event_id)
    feed = PollingChangeFeed(log, poll_seconds=0.005, batch_size=2, replay_overlap=10, lookback=10)
    seen: list[int] = []

    unsubscribe = feed.subscribe(lambda e: seen.append(e.interval.interval_id), lambda err: None)
    try:
        await wait_until(lambda: len(seen) == 6)
        log.commit(4)
        await wait_until(lambda: len(seen) == 7)
        await asyncio.sleep(0.03)
    finally:
        unsubscribe()

    assert seen == [1, 2, 3, 5, 6, 7, 4]


@pytest.mark.asyncio
async def test_polling_feed_delivers_new_events_in_order():
    log = FakeChangeLog(count=3)
    feed = PollingChangeFeed(log, poll_seconds=0.005, batch_size=2, replay_overlap=0)
    seen: list[int] = []

    unsubscribe = feed.subscribe(lambda e: seen.append(e.interval.interval_id), lambda err: None)
    try:
        await asyncio.sleep(0.02)
        log.append()
        log.append()
        await wait_until(lambda: len(seen) == 2)
    finally:
        unsubscribe()

    assert seen == [4, 5]


@pytest.mark.asyncio
async def test_polling_feed_replays_overlap_on_subscribe():
    log = FakeChangeLog(count=5)
    feed = PollingChangeFeed(log, poll_seconds=0.005, batch_size=10, replay_overlap=2)
    seen: list[int] = []

    unsubscribe = feed.subscribe(lambda e: seen.append(e.interval.interval_id), lambda err: None)
    try:
        await wait_until(lambda: len(seen) == 2)
    finally:
        unsubscribe()

    assert seen == [4, 5]


@pytest.mark.asyncio
async def test_polling_feed_reports_errors_and_keeps_polling():
    log = FakeChangeLog()
    log.fail_next = 1
    feed = PollingChangeFeed(log, poll_seconds=0.005, batch_size=10, replay_overlap=0)
    seen: list[int] = []
    errors: list[TransportError] = []

    unsubscribe = feed.subscribe(lambda e: seen.append(e.interval.interval_id), errors.append)
    try:
        await wait_until(lambda: len(errors) == 1)
        log.append()
        await wait_until(lambda: seen == [1])
    finally:
        unsubscribe()

    assert str(errors[0]) == "outbox read failed"


@pytest.mark.asyncio
async def test_polling_feed_stops_after_unsubscribe():
    log = FakeChangeLog()
    feed = PollingChangeFeed(log, poll_seconds=0.005, replay_overlap=0)
    seen: list[int] = []

    unsubscribe = feed.subscribe(lambda e: seen.append(e.interval.interval_id), lambda err: None)
    await asyncio.sleep(0.01)
    unsubscribe()
    log.append()
    await asyncio.sleep(0.03)

    assert seen == []


@pytest.mark.asyncio
async def test_local_feed_fans_out_to_every_subscriber():
    feed = LocalChangeFeed()
    a: list[int] = []
    b: list[int] = []
    errors: list[TransportError] = []

    unsubscribe_a = feed.subscribe(lambda e: a.append(e.interval.interval_id), errors.append)
    feed.subscribe(lambda e: b.append(e.interval.interval_id), errors.append)

    feed.publish(_event(1))
    await wait_until(lambda: len(a) == 1 and len(b) == 1)

    unsubscribe_a()
    feed.publish(_event(2))
    feed.fail(TransportError("down"))
    await wait_until(lambda: len(b) == 2 and len(errors) == 1)

    assert a == [1]
    assert b == [1, 2]
    assert feed.subscriber_count == 1
