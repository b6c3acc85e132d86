from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from .model import Interval, IntervalFilter

logger = logging.getLogger(__name__)


def _order_key(interval: Interval):
    return (interval.punch_in, interval.interval_id)


class IntervalStore:
    """Local, writable copy of the intervals a connected session can see.

    One instance per session; nothing here is shared between sessions.
    Mutations are full-record replacements keyed by interval id, so applying
    the same record twice is a no-op.
    """

    def __init__(self, intervals: Iterable[Interval] = ()):
        self._by_id: dict[int, Interval] = {}
        for interval in intervals:
            self.upsert(interval)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, interval_id: object) -> bool:
        return interval_id in self._by_id

    def __iter__(self) -> Iterator[Interval]:
        return iter(self.all())

    def get(self, interval_id: int) -> Optional[Interval]:
        return self._by_id.get(interval_id)

    def upsert(self, interval: Interval) -> bool:
        """Insert or replace by id. Returns True when the stored content changed."""
        current = self._by_id.get(interval.interval_id)
        if current == interval:
            return False
        self._by_id[interval.interval_id] = interval
        return True

    def remove(self, interval_id: int) -> bool:
        """Drop an interval; unknown ids are ignored. Returns True when something was removed."""
        return self._by_id.pop(interval_id, None) is not None

    def open_interval_for(self, member_id: int) -> Optional[Interval]:
        candidates = [i for i in self._by_id.values() if i.member_id == member_id and i.is_open]
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.warning(
                "Inconsistent store: %d open intervals for member %s (ids=%s); using the latest",
                len(candidates),
                member_id,
                sorted(i.interval_id for i in candidates),
                extra={"member_id": member_id},
            )
        return max(candidates, key=_order_key)

    def open_intervals(self) -> list[Interval]:
        """Open intervals, one per member (latest punch_in wins when duplicated)."""
        members = {i.member_id for i in self._by_id.values() if i.is_open}
        found = (self.open_interval_for(m) for m in members)
        return sorted((i for i in found if i is not None), key=_order_key)

    def all(self) -> list[Interval]:
        return sorted(self._by_id.values(), key=_order_key)

    def prune(self, keep_ids: Iterable[int], *, within: IntervalFilter) -> list[int]:
        """Remove intervals matching `within` whose id is not in `keep_ids`."""
        keep = set(keep_ids)
        stale = [i.interval_id for i in self._by_id.values() if within.matches(i) and i.interval_id not in keep]
        for interval_id in stale:
            del self._by_id[interval_id]
        return stale
