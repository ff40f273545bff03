"""
Completion Barrier and Per-Cycle Bookkeeping.

A gather cycle dispatches N requests and waits for N arrivals. Each
category arrives exactly once, whether its response decoded, failed,
or could not be dispatched at all; duplicate or late arrivals are
ignored so a stale callback can never release a later cycle.
"""

from __future__ import annotations

import threading
import time
from typing import Iterable, List, Optional, Set, Tuple

from voltdb_prometheus.domain.entities import StatsSelector


class CompletionBarrier:
    """Countdown latch with an optional deadline on wait."""

    def __init__(self, count: int) -> None:
        if count < 0:
            raise ValueError("count must be >= 0")
        self._remaining = count
        self._cond = threading.Condition()

    @property
    def remaining(self) -> int:
        with self._cond:
            return self._remaining

    def arrive(self) -> None:
        """Count one arrival; extra arrivals past zero are ignored."""
        with self._cond:
            if self._remaining > 0:
                self._remaining -= 1
                if self._remaining == 0:
                    self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every arrival is counted.

        Args:
            timeout: Seconds to wait, or None to wait without limit

        Returns:
            True if the count reached zero, False on timeout
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._remaining == 0, timeout)


class GatherCycle:
    """
    Mutable state of one in-flight gather cycle.

    Updated concurrently by response callbacks; all counters are guarded
    by a lock and every category settles at most once.
    """

    def __init__(self, cycle_id: str, categories: Iterable[StatsSelector]) -> None:
        self.cycle_id = cycle_id
        self.started_at = time.monotonic()
        self.categories: Tuple[StatsSelector, ...] = tuple(categories)
        self.barrier = CompletionBarrier(len(self.categories))
        self._lock = threading.Lock()
        self._pending: Set[StatsSelector] = set(self.categories)
        self.values_reported = 0
        self.decode_errors = 0
        self.failed: List[StatsSelector] = []
        self.transport_failure = False

    @property
    def pending(self) -> Set[StatsSelector]:
        with self._lock:
            return set(self._pending)

    def complete(
        self,
        selector: StatsSelector,
        values: int = 0,
        failed: bool = False,
        decode_error: bool = False,
        transport_failure: bool = False,
    ) -> bool:
        """
        Settle one category and count its barrier arrival.

        Returns:
            False if the category had already settled (the call is ignored)
        """
        with self._lock:
            if selector not in self._pending:
                return False
            self._pending.discard(selector)
            self.values_reported += values
            if decode_error:
                self.decode_errors += 1
            if failed:
                self.failed.append(selector)
            if transport_failure:
                self.transport_failure = True
        self.barrier.arrive()
        return True

    def mark_transport_failure(self) -> None:
        """Taint the connection without settling a category."""
        with self._lock:
            self.transport_failure = True

    def expire_pending(self) -> List[StatsSelector]:
        """
        Settle every still-pending category as a timed-out failure.

        Returns:
            The categories that were expired
        """
        pending = sorted(self.pending, key=self.categories.index)
        return [
            selector
            for selector in pending
            if self.complete(selector, failed=True, transport_failure=True)
        ]

    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.started_at
