"""
Mappers Package - One Statistics Mapper Per Selector.

Each mapper declares the column-to-gauge table for one @Statistics
selector and decodes its result tables into the gauge registry.

The mapping from selector to mapper type is a closed, explicit table.
``build_mappers`` instantiates the enabled subset once at startup; the
result is handed to the gather coordinator.
"""

from __future__ import annotations

from typing import Dict, Iterable, Type

from voltdb_prometheus.domain.entities import StatsSelector
from voltdb_prometheus.mappers.base import LabelColumn, StatsMapper
from voltdb_prometheus.mappers.catalog import (
    ExportMapper,
    IndexMapper,
    InitiatorMapper,
    ProcedureMapper,
    TableMapper,
)
from voltdb_prometheus.mappers.host import (
    CommandLogMapper,
    CpuMapper,
    GcMapper,
    IoStatsMapper,
    LatencyMapper,
    LiveClientsMapper,
    MemoryMapper,
)
from voltdb_prometheus.mappers.sites import IdletimeMapper, QueueMapper, QueuePriorityMapper
from voltdb_prometheus.registry.gauge_registry import GaugeRegistryProtocol

MAPPER_TYPES: Dict[StatsSelector, Type[StatsMapper]] = {
    StatsSelector.COMMANDLOG: CommandLogMapper,
    StatsSelector.CPU: CpuMapper,
    StatsSelector.EXPORT: ExportMapper,
    StatsSelector.GC: GcMapper,
    StatsSelector.IDLETIME: IdletimeMapper,
    StatsSelector.INDEX: IndexMapper,
    StatsSelector.INITIATOR: InitiatorMapper,
    StatsSelector.IOSTATS: IoStatsMapper,
    StatsSelector.LATENCY: LatencyMapper,
    StatsSelector.LIVECLIENTS: LiveClientsMapper,
    StatsSelector.MEMORY: MemoryMapper,
    StatsSelector.PROCEDURE: ProcedureMapper,
    StatsSelector.QUEUE: QueueMapper,
    StatsSelector.QUEUEPRIORITY: QueuePriorityMapper,
    StatsSelector.TABLE: TableMapper,
}


def build_mappers(
    selectors: Iterable[StatsSelector],
    registry: GaugeRegistryProtocol,
) -> Dict[StatsSelector, StatsMapper]:
    """
    Create mappers for the enabled selectors, registering their gauges.

    Args:
        selectors: Enabled statistics selectors
        registry: Registry receiving the gauge declarations

    Returns:
        Selector-to-mapper table, in selector declaration order
    """
    wanted = set(selectors)
    return {
        selector: MAPPER_TYPES[selector](registry)
        for selector in StatsSelector
        if selector in wanted
    }


__all__ = [
    "MAPPER_TYPES",
    "LabelColumn",
    "StatsMapper",
    "build_mappers",
    "CommandLogMapper",
    "CpuMapper",
    "ExportMapper",
    "GcMapper",
    "IdletimeMapper",
    "IndexMapper",
    "InitiatorMapper",
    "IoStatsMapper",
    "LatencyMapper",
    "LiveClientsMapper",
    "MemoryMapper",
    "ProcedureMapper",
    "QueueMapper",
    "QueuePriorityMapper",
    "TableMapper",
]
