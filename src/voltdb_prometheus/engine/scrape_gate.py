"""
Scrape Gate - Throttled, Serialized Access to the Gather Coordinator.

The coordinator is not reentrant, so scrape requests are serialized.
To avoid request storms against the database, and to avoid incurring a
full connect timeout on every scrape during an outage, a request that
arrives within the minimum gather interval of the previous cycle
replays that cycle's outcome with the current registry contents.

Design Notes:
    - The last outcome is cached like a TTL cache entry
    - Waiting requests queue on the gate lock and then find a fresh entry
    - "Upstream unavailable" only when nothing has ever been recorded
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from voltdb_prometheus.domain.entities import GatherOutcome, GatherResult
from voltdb_prometheus.registry.gauge_registry import GaugeRegistry

logger = logging.getLogger(__name__)

DEFAULT_MIN_GATHER_INTERVAL_SECONDS = 1.5


class GatherCoordinatorProtocol(Protocol):
    """Protocol for the gather coordinator."""

    def gather(self) -> GatherResult:
        ...


@dataclass
class CachedOutcome:
    """Outcome of the last completed gather cycle."""

    result: GatherResult
    completed_at: float

    def is_fresh(self, now: float, interval: float) -> bool:
        """True if a new cycle must not be started yet."""
        # a clock that went backwards invalidates the entry
        return self.completed_at <= now < self.completed_at + interval


@dataclass(frozen=True)
class ScrapeResult:
    """What the HTTP layer needs to answer one scrape."""

    outcome: GatherOutcome
    payload: bytes
    content_type: str
    upstream_available: bool
    gathered: bool
    gather_result: GatherResult


class ScrapeGate:
    """
    Serializes and throttles scrape requests.

    Features:
        - Mutual exclusion around the coordinator
        - Minimum interval between gather cycles
        - Exposition restricted to registered gauges
    """

    def __init__(
        self,
        coordinator: GatherCoordinatorProtocol,
        registry: GaugeRegistry,
        min_gather_interval_seconds: float = DEFAULT_MIN_GATHER_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize scrape gate.

        Args:
            coordinator: Runs gather cycles
            registry: Gauge registry rendered for each scrape
            min_gather_interval_seconds: Minimum time between cycles
            clock: Monotonic time source
        """
        self.coordinator = coordinator
        self.registry = registry
        self.min_gather_interval_seconds = min_gather_interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last: Optional[CachedOutcome] = None
        self._gather_count = 0

    @property
    def gather_count(self) -> int:
        """Number of gather cycles started through this gate."""
        with self._lock:
            return self._gather_count

    @property
    def last_result(self) -> Optional[GatherResult]:
        with self._lock:
            return self._last.result if self._last else None

    def handle_scrape_request(self) -> ScrapeResult:
        """
        Answer one scrape, gathering first unless throttled.

        Returns:
            ScrapeResult with the outcome and the rendered exposition
        """
        with self._lock:
            now = self._clock()
            gathered = False
            if self._last is None or not self._last.is_fresh(now, self.min_gather_interval_seconds):
                result = self.coordinator.gather()
                self._last = CachedOutcome(result=result, completed_at=self._clock())
                self._gather_count += 1
                gathered = True
            else:
                logger.debug("Scrape within minimum gather interval, replaying last outcome")

            result = self._last.result
            upstream_available = result.outcome.published or self.registry.has_values
            if not upstream_available:
                logger.warning("No statistics have been obtained from VoltDB yet")

            return ScrapeResult(
                outcome=result.outcome,
                payload=self.registry.render(),
                content_type=self.registry.content_type,
                upstream_available=upstream_available,
                gathered=gathered,
                gather_result=result,
            )
