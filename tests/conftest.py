"""
Pytest Configuration and Shared Fixtures.

This module contains fixtures available to all tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Optional

import pytest

from voltdb_prometheus.adapters.mock_client import MockStatsClient
from voltdb_prometheus.config.models import AgentConfig
from voltdb_prometheus.domain.entities import StatsSelector, StatsTable
from voltdb_prometheus.engine.gather_coordinator import GatherCoordinator
from voltdb_prometheus.mappers import build_mappers
from voltdb_prometheus.observability.observability_manager import ObservabilityManager
from voltdb_prometheus.registry.gauge_registry import GaugeRegistry

QUEUE_COLUMNS = ["HOSTNAME", "SITE_ID", "CURRENT_DEPTH", "POLL_COUNT", "AVG_WAIT", "MAX_WAIT"]
CPU_COLUMNS = ["HOSTNAME", "PERCENT_USED"]


@pytest.fixture
def sample_config_path() -> Path:
    """Path to sample configuration file."""
    return Path(__file__).parent / "fixtures" / "sample_config.yaml"


@pytest.fixture
def registry() -> GaugeRegistry:
    """Fresh gauge registry with a private collector registry."""
    return GaugeRegistry()


@pytest.fixture
def queue_table() -> StatsTable:
    """QUEUE result with one site on host h1."""
    return StatsTable(
        columns=QUEUE_COLUMNS,
        rows=[("h1", 3, 7, 120, 2500, 9000)],
    )


@pytest.fixture
def cpu_table() -> StatsTable:
    """CPU result for two hosts."""
    return StatsTable(
        columns=CPU_COLUMNS,
        rows=[("h1", 42), ("h2", 17)],
    )


@pytest.fixture
def mock_client(queue_table: StatsTable, cpu_table: StatsTable) -> MockStatsClient:
    """Mock client serving the QUEUE and CPU tables."""
    return MockStatsClient(tables={"QUEUE": queue_table, "CPU": cpu_table})


@pytest.fixture
def observability() -> ObservabilityManager:
    """Observability manager with an empty event history."""
    return ObservabilityManager()


@pytest.fixture
def make_coordinator(
    registry: GaugeRegistry,
    mock_client: MockStatsClient,
    observability: ObservabilityManager,
) -> Callable[..., GatherCoordinator]:
    """Factory for coordinators polling QUEUE and CPU from the mock client."""

    def _make(
        selectors: Iterable[StatsSelector] = (StatsSelector.CPU, StatsSelector.QUEUE),
        gather_timeout_seconds: Optional[float] = 5.0,
        **kwargs,
    ) -> GatherCoordinator:
        return GatherCoordinator(
            client_factory=kwargs.pop("client_factory", mock_client),
            mappers=build_mappers(selectors, registry),
            servers=kwargs.pop("servers", ["h1", "h2"]),
            port=kwargs.pop("port", 21211),
            gather_timeout_seconds=gather_timeout_seconds,
            observability=observability,
            **kwargs,
        )

    return _make


@pytest.fixture
def agent_config() -> AgentConfig:
    """Configuration polling only QUEUE and CPU."""
    return AgentConfig(servers=["h1", "h2"], port=21211, stats=["CPU", "QUEUE"])
