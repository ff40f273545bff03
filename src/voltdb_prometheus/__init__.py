"""
VoltDB Prometheus Agent - Statistics Exporter.

Polls a running VoltDB cluster through the @Statistics system procedure
and republishes the results as Prometheus gauges on a scrape endpoint.

Architecture:
    - Hexagonal Architecture (Ports & Adapters)
    - Dependency Injection for testability
    - One statistics mapper per @Statistics selector
    - Configuration-driven category selection via YAML / CLI

Main Components:
    - domain: Core entities (StatsSelector, Metric, GatherResult, etc.)
    - interfaces: Protocols for the database client
    - mappers: Column-to-metric tables and result decoding
    - registry: Gauge registry backed by prometheus_client
    - engine: Gather coordinator and scrape gate
    - adapters: Database client implementations (voltdbclient, mock)
    - web: HTTP front end
    - config: Configuration models and loaders

Example:
    >>> from voltdb_prometheus.cli import build_gate
    >>> gate = build_gate(config, client_factory)
    >>> result = gate.handle_scrape_request()
    >>> print(result.payload.decode())

"""

import logging

__version__ = "0.4.0"


def configure_logging(
    level: int = logging.INFO,
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
) -> None:
    """
    Configure logging for the agent.

    Call this at application startup to see log messages.
    By default, only WARNING and above are visible.

    Args:
        level: Logging level (default: INFO)
        format: Log message format

    Example:
        >>> import voltdb_prometheus
        >>> voltdb_prometheus.configure_logging(logging.DEBUG)
    """
    logging.basicConfig(
        level=level,
        format=format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("voltdb_prometheus").setLevel(level)
