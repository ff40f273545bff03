"""
Host-Level Mappers - Statistics Reported Once Per Host.

Provides mappers for selectors whose rows are keyed by host (and, for
connection statistics, by the remote connection):
    - CommandLogMapper, CpuMapper, GcMapper, MemoryMapper, LatencyMapper
    - IoStatsMapper, LiveClientsMapper
"""

from __future__ import annotations

from voltdb_prometheus.domain.entities import StatsSelector
from voltdb_prometheus.mappers.base import (
    HOSTNAME,
    KILOBYTES,
    MICROS,
    MILLIS,
    LabelColumn,
    StatsMapper,
)


class CommandLogMapper(StatsMapper):
    """@Statistics COMMANDLOG."""

    selector = StatsSelector.COMMANDLOG

    def declare_metrics(self) -> None:
        self.add_metric("OUTSTANDING_BYTES", "outstanding", "bytes")
        self.add_metric("OUTSTANDING_TXNS", "outstanding", "txns")
        self.add_metric("IN_USE_SEGMENT_COUNT", "in_use_segments")
        self.add_metric("SEGMENT_COUNT", "segments")
        self.add_metric("FSYNC_INTERVAL", "fsync_interval", "seconds", MILLIS)


class CpuMapper(StatsMapper):
    """@Statistics CPU."""

    selector = StatsSelector.CPU

    def declare_metrics(self) -> None:
        self.add_metric("PERCENT_USED", "usage", "percent")


class GcMapper(StatsMapper):
    """@Statistics GC; GC times are reported in milliseconds."""

    selector = StatsSelector.GC

    def declare_metrics(self) -> None:
        self.add_metric("NEWGEN_GC_COUNT", "newgen_gc_count")
        self.add_metric("NEWGEN_AVG_GC_TIME", "newgen_avg_gc_time", "seconds", MILLIS)
        self.add_metric("OLDGEN_GC_COUNT", "oldgen_gc_count")
        self.add_metric("OLDGEN_AVG_GC_TIME", "oldgen_avg_gc_time", "seconds", MILLIS)


class MemoryMapper(StatsMapper):
    """
    @Statistics MEMORY.

    Memory statistics are measured in kilobytes; every column except the
    tuple count is published in bytes under its lowercased column name.
    """

    selector = StatsSelector.MEMORY

    COLUMNS = (
        "RSS",
        "JAVAUSED",
        "JAVAUNUSED",
        "TUPLEDATA",
        "TUPLEALLOCATED",
        "INDEXMEMORY",
        "STRINGMEMORY",
        "TUPLECOUNT",
        "POOLEDMEMORY",
        "PHYSICALMEMORY",
        "JAVAMAXHEAP",
    )

    def declare_metrics(self) -> None:
        for column in self.COLUMNS:
            if column == "TUPLECOUNT":
                self.add_metric(column, column.lower())
            else:
                self.add_metric(column, column.lower(), "bytes", KILOBYTES)


class LatencyMapper(StatsMapper):
    """@Statistics LATENCY; percentiles are reported in microseconds."""

    selector = StatsSelector.LATENCY

    def declare_metrics(self) -> None:
        self.add_metric("TPS", "tps")
        self.add_metric("P50", "median", "seconds", MICROS)
        self.add_metric("P95", "95th", "seconds", MICROS)
        self.add_metric("P99", "99th", "seconds", MICROS)
        self.add_metric("P99.9", "three_nines", "seconds", MICROS)
        self.add_metric("P99.99", "four_nines", "seconds", MICROS)
        self.add_metric("P99.999", "five_nines", "seconds", MICROS)
        self.add_metric("MAX", "max", "seconds", MICROS)


class IoStatsMapper(StatsMapper):
    """@Statistics IOSTATS, one row per client connection."""

    selector = StatsSelector.IOSTATS
    labels = (HOSTNAME, LabelColumn("CONNECTION_HOSTNAME", "cnxhostname"))

    def declare_metrics(self) -> None:
        self.add_metric("BYTES_READ", "received", "bytes")
        self.add_metric("MESSAGES_READ", "received_messages")
        self.add_metric("BYTES_WRITTEN", "sent", "bytes")
        self.add_metric("MESSAGES_WRITTEN", "sent_messages")


class LiveClientsMapper(StatsMapper):
    """@Statistics LIVECLIENTS."""

    selector = StatsSelector.LIVECLIENTS
    labels = (
        HOSTNAME,
        LabelColumn("CLIENT_HOSTNAME", "cnxhostname"),
        LabelColumn("ADMIN", "admin", numeric=True),
    )

    def declare_metrics(self) -> None:
        self.add_metric("OUTSTANDING_REQUEST_BYTES", "outstanding_request", "bytes")
        # metric name spelling is published as-is; dashboards depend on it
        self.add_metric("OUTSTANDING_RESPONSE_MESSAGES", "outstanding_reponse_messages")
        self.add_metric("OUTSTANDING_TRANSACTIONS", "outstanding_txns")
