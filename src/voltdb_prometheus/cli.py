"""
Command Line Entry Point.

Usage:
    voltdb-prometheus --servers db1,db2 --port 21211 --webserverport 1234
    voltdb-prometheus --config agent.yaml --skipstats INITIATOR
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import uvicorn

import voltdb_prometheus
from voltdb_prometheus.config.loader import ConfigLoader
from voltdb_prometheus.config.models import AgentConfig
from voltdb_prometheus.domain.errors import ConfigError
from voltdb_prometheus.engine.gather_coordinator import GatherCoordinator
from voltdb_prometheus.engine.scrape_gate import ScrapeGate
from voltdb_prometheus.interfaces.stats_client import StatsClientFactory
from voltdb_prometheus.mappers import build_mappers
from voltdb_prometheus.observability.observability_manager import (
    ObservabilityManager,
    configure_structlog,
)
from voltdb_prometheus.registry.gauge_registry import GaugeRegistry
from voltdb_prometheus.web.app import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voltdb-prometheus",
        description="Publish VoltDB @Statistics as Prometheus metrics",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--servers", help="comma-separated list of VoltDB servers")
    parser.add_argument("--port", type=int, help="VoltDB client port")
    parser.add_argument("--webserverport", type=int, dest="webserver_port",
                        help="port to serve metrics on")
    parser.add_argument("--user", help="VoltDB user name")
    parser.add_argument("--password", help="VoltDB password")
    parser.add_argument("--credentials", dest="credentials_file",
                        help="file holding username and password properties")
    parser.add_argument("--stats", help="comma-separated statistics to poll")
    parser.add_argument("--skipstats", dest="skip_stats",
                        help="comma-separated statistics to skip")
    parser.add_argument("--delta", action="store_true", default=None,
                        help="report changes since the previous poll")
    parser.add_argument("--ssl", nargs="?", const="", default=None, metavar="FILE",
                        help="enable TLS, optionally with a configuration file")
    parser.add_argument("--log-level", dest="log_level", help="logging level")
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Turn parsed arguments into config overrides; unset options are None."""
    overrides = {
        "servers": args.servers,
        "port": args.port,
        "webserver_port": args.webserver_port,
        "user": args.user,
        "password": args.password,
        "credentials_file": args.credentials_file,
        "stats": args.stats,
        "skip_stats": args.skip_stats,
        "delta": args.delta,
        "log_level": args.log_level,
    }
    if args.ssl is not None:
        overrides["ssl_enabled"] = True
        overrides["ssl_config_file"] = args.ssl or None
    return overrides


def build_gate(
    config: AgentConfig,
    client_factory: StatsClientFactory,
    observability: Optional[ObservabilityManager] = None,
) -> ScrapeGate:
    """Wire registry, mappers, coordinator and gate together."""
    registry = GaugeRegistry()
    mappers = build_mappers(config.enabled_selectors(), registry)
    coordinator = GatherCoordinator.from_config(config, client_factory, mappers, observability)
    return ScrapeGate(
        coordinator,
        registry,
        min_gather_interval_seconds=config.min_gather_interval_seconds,
    )


def banner(config: AgentConfig) -> str:
    stats = ", ".join(s.value for s in config.enabled_selectors())
    delta = " delta" if config.delta else ""
    ssl = " (SSL enabled)" if config.ssl_enabled else ""
    return (
        f"Serving [{stats}]{delta} metrics\n"
        f"From VoltDB at {','.join(config.servers)} port {config.port}{ssl}\n"
        f"Listening for connections on port {config.webserver_port}\n"
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ConfigLoader().load(args.config, overrides_from_args(args))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    level = getattr(logging, config.log_level)
    voltdb_prometheus.configure_logging(level)
    configure_structlog(use_json=config.log_json, log_level=level)

    try:
        from voltdb_prometheus.adapters.voltdb_client import VoltDBClientFactory
    except ImportError as e:
        print(f"Error: voltdbclient is not installed ({e}); "
              f"install with 'pip install voltdb-prometheus[voltdb]'", file=sys.stderr)
        return 1

    gate = build_gate(
        config, VoltDBClientFactory(call_timeout_seconds=config.gather_timeout_seconds)
    )
    app = create_app(gate, config)

    print(banner(config))
    uvicorn.run(app, host="0.0.0.0", port=config.webserver_port, log_level=config.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
