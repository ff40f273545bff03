"""
Engine Package - Gathering and Scrape Handling.

Components:
    - GatherCoordinator: One polling cycle over a shared connection
    - CompletionBarrier / GatherCycle: Fan-in of asynchronous responses
    - ScrapeGate: Serialized, throttled access for scrape requests
"""

from voltdb_prometheus.engine.barrier import CompletionBarrier, GatherCycle
from voltdb_prometheus.engine.gather_coordinator import (
    STATISTICS_PROCEDURE,
    GatherCoordinator,
    GatherState,
)
from voltdb_prometheus.engine.scrape_gate import ScrapeGate, ScrapeResult

__all__ = [
    "STATISTICS_PROCEDURE",
    "CompletionBarrier",
    "GatherCoordinator",
    "GatherCycle",
    "GatherState",
    "ScrapeGate",
    "ScrapeResult",
]
