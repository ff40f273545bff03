"""
Catalog-Level Mappers - Statistics Keyed by Schema Objects.

Provides mappers for selectors whose rows describe tables, indexes,
procedures and export streams:
    - TableMapper, IndexMapper (memory in kilobytes)
    - ProcedureMapper (times in nanoseconds)
    - InitiatorMapper, ExportMapper (times in milliseconds)
"""

from __future__ import annotations

from voltdb_prometheus.domain.entities import ColumnKind, StatsSelector
from voltdb_prometheus.mappers.base import (
    HOSTNAME,
    KILOBYTES,
    MILLIS,
    NANOS,
    PARTITION_ID,
    LabelColumn,
    StatsMapper,
)


class TableMapper(StatsMapper):
    """@Statistics TABLE."""

    selector = StatsSelector.TABLE
    labels = (
        HOSTNAME,
        PARTITION_ID,
        LabelColumn("TABLE_NAME", "tablename"),
        LabelColumn("TABLE_TYPE", "type"),
    )

    def declare_metrics(self) -> None:
        self.add_metric("TUPLE_COUNT", "tuple_count")
        self.add_metric("TUPLE_ALLOCATED_MEMORY", "tuple_allocated_memory", "bytes", KILOBYTES)
        self.add_metric("TUPLE_DATA_MEMORY", "inline_tuple", "bytes", KILOBYTES)
        self.add_metric("STRING_DATA_MEMORY", "non_inline_data", "bytes", KILOBYTES)


class IndexMapper(StatsMapper):
    """@Statistics INDEX."""

    selector = StatsSelector.INDEX
    labels = (
        HOSTNAME,
        PARTITION_ID,
        LabelColumn("INDEX_NAME", "indexname"),
        LabelColumn("TABLE_NAME", "tablename"),
        LabelColumn("INDEX_TYPE", "indextype"),
    )

    def declare_metrics(self) -> None:
        self.add_metric("ENTRY_COUNT", "entries_count")
        self.add_metric("MEMORY_ESTIMATE", "memory_estimate", "bytes", KILOBYTES)


class ProcedureMapper(StatsMapper):
    """@Statistics PROCEDURE."""

    selector = StatsSelector.PROCEDURE
    labels = (HOSTNAME, PARTITION_ID, LabelColumn("PROCEDURE", "procedure"))

    def declare_metrics(self) -> None:
        self.add_metric("INVOCATIONS", "invocations")
        for stat in ("MIN", "MAX", "AVG"):
            prefix = stat.lower()
            self.add_metric(f"{stat}_EXECUTION_TIME", f"{prefix}_execution_time", "seconds", NANOS)
        for stat in ("MIN", "MAX", "AVG"):
            prefix = stat.lower()
            self.add_metric(f"{stat}_RESULT_SIZE", f"{prefix}_result_size", "bytes")
            self.add_metric(f"{stat}_PARAMETER_SET_SIZE", f"{prefix}_parameter_size", "bytes")
        self.add_metric("ABORTS", "aborts")
        self.add_metric("FAILURES", "failures")


class InitiatorMapper(StatsMapper):
    """@Statistics INITIATOR."""

    selector = StatsSelector.INITIATOR
    labels = (
        HOSTNAME,
        LabelColumn("CONNECTION_HOSTNAME", "cnxhostname"),
        LabelColumn("PROCEDURE_NAME", "procname"),
    )

    def declare_metrics(self) -> None:
        self.add_metric("INVOCATIONS", "invocations")
        self.add_metric("AVG_EXECUTION_TIME", "execution_time", "seconds", MILLIS)
        self.add_metric("MIN_EXECUTION_TIME", "min_execution_time", "seconds", MILLIS)
        self.add_metric("MAX_EXECUTION_TIME", "max_execution_time", "seconds", MILLIS)
        self.add_metric("ABORTS", "aborts")
        self.add_metric("FAILURES", "failures")


class ExportMapper(StatsMapper):
    """@Statistics EXPORT."""

    selector = StatsSelector.EXPORT
    labels = (
        HOSTNAME,
        PARTITION_ID,
        LabelColumn("SOURCE", "source"),
        LabelColumn("TARGET", "target"),
    )

    def declare_metrics(self) -> None:
        self.add_metric("TUPLE_COUNT", "total_queued_tuples_count")
        self.add_metric("TUPLE_PENDING", "pending_tuples_count")
        self.add_metric("LAST_QUEUED_TIMESTAMP", "last_queued_timestamp", kind=ColumnKind.TIMESTAMP)
        self.add_metric("LAST_ACKED_TIMESTAMP", "last_acked_timestamp", kind=ColumnKind.TIMESTAMP)
        self.add_metric("AVERAGE_LATENCY", "avg_latency", "seconds", MILLIS)
        self.add_metric("MAX_LATENCY", "max_latency", "seconds", MILLIS)
        self.add_metric("QUEUE_GAP", "missing_tuples_count")
