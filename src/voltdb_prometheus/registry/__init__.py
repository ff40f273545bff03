"""
Registry Module - Published Gauge Management.

This module provides the registry of gauges exposed on the scrape
endpoint.

Components:
    - GaugeRegistry: Thread-safe gauge registry
    - GaugeInfo: Metadata about registered gauges
"""

from voltdb_prometheus.registry.gauge_registry import (
    GaugeInfo,
    GaugeRegistry,
    GaugeRegistryProtocol,
)

__all__ = [
    "GaugeInfo",
    "GaugeRegistry",
    "GaugeRegistryProtocol",
]
