"""
Site-Level Mappers - Statistics Reported Per Execution Site.

Wait times for these selectors are reported in microseconds.
"""

from __future__ import annotations

from voltdb_prometheus.domain.entities import ColumnKind, StatsSelector
from voltdb_prometheus.mappers.base import (
    HOSTNAME,
    MICROS,
    SITE_ID,
    LabelColumn,
    StatsMapper,
)


class IdletimeMapper(StatsMapper):
    """@Statistics IDLETIME."""

    selector = StatsSelector.IDLETIME
    labels = (HOSTNAME, SITE_ID)

    def declare_metrics(self) -> None:
        self.add_metric("COUNT", "queue_empty_count")
        self.add_metric("PERCENT", "idle_ratio", kind=ColumnKind.FLOAT)
        self.add_metric("AVG", "avg_wait_time", "seconds", MICROS)
        self.add_metric("MIN", "min_wait_time", "seconds", MICROS)
        self.add_metric("MAX", "max_wait_time", "seconds", MICROS)
        self.add_metric("STDDEV", "stddev_wait_time", "seconds", MICROS)


class QueueMapper(StatsMapper):
    """@Statistics QUEUE."""

    selector = StatsSelector.QUEUE
    labels = (HOSTNAME, SITE_ID)

    def declare_metrics(self) -> None:
        self.add_metric("CURRENT_DEPTH", "depth")
        self.add_metric("POLL_COUNT", "poll_count")
        self.add_metric("AVG_WAIT", "avg_wait", "seconds", MICROS)
        self.add_metric("MAX_WAIT", "max_wait", "seconds", MICROS)


class QueuePriorityMapper(QueueMapper):
    """@Statistics QUEUEPRIORITY: QUEUE columns, split by priority."""

    selector = StatsSelector.QUEUEPRIORITY
    labels = (HOSTNAME, SITE_ID, LabelColumn("PRIORITY", "priority", numeric=True))
