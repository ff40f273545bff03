"""
Statistics Mapper Base - Column-to-Gauge Decoding.

Every @Statistics selector has one mapper. A mapper declares, in its
constructor, which columns are published as gauges (with unit and
scale) and which columns become label values. It then decodes result
tables by pushing scaled values into the gauge registry.

Design Notes:
    - Declarations happen once at startup; gauges are registered then
    - A row with a missing value is skipped, the rest of the table is kept
    - A column missing from the table schema fails the whole category
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple

from voltdb_prometheus.domain.entities import ColumnKind, Metric, StatsSelector, StatsTable
from voltdb_prometheus.domain.errors import DecodeError
from voltdb_prometheus.registry.gauge_registry import GaugeRegistryProtocol

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MICROSECOND = timedelta(microseconds=1)

# Common unit conversions
MILLIS = 0.001
MICROS = 0.000_001
NANOS = 0.000_000_001
KILOBYTES = 1024


@dataclass(frozen=True)
class LabelColumn:
    """A result column used as a label value rather than a metric."""

    column: str
    label: str
    numeric: bool = False

    def extract(self, value: Any) -> str:
        """Render a raw column value as a label value."""
        if value is None:
            raise DecodeError(f"Null label column {self.column}")
        if self.numeric:
            try:
                return str(int(value))
            except (TypeError, ValueError) as e:
                raise DecodeError(f"Bad label column {self.column}: {e}") from e
        return str(value)


HOSTNAME = LabelColumn("HOSTNAME", "hostname")
PARTITION_ID = LabelColumn("PARTITION_ID", "partitionid", numeric=True)
SITE_ID = LabelColumn("SITE_ID", "siteid", numeric=True)


def coerce(value: Any, kind: ColumnKind) -> float:
    """
    Convert a raw column value to a number before scaling.

    Integer columns are truncated the way the database client's
    ``getLong`` does; timestamps become integer microseconds since epoch.

    Raises:
        DecodeError: If the value is null or cannot be converted
    """
    if value is None:
        raise DecodeError("Null value")
    try:
        if kind is ColumnKind.FLOAT:
            return float(value)
        if kind is ColumnKind.TIMESTAMP and isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return (value - _EPOCH) // _ONE_MICROSECOND
        return int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise DecodeError(f"Cannot convert {value!r} to {kind.value}: {e}") from e


class StatsMapper:
    """
    Base class for all statistics mappers.

    Subclasses must:

    1. Set ``selector`` and ``labels`` (ordered label columns).
    2. Implement ``declare_metrics`` and call ``add_metric`` for each
       published column.
    """

    selector: ClassVar[StatsSelector]
    labels: ClassVar[Tuple[LabelColumn, ...]] = (HOSTNAME,)

    def __init__(self, registry: GaugeRegistryProtocol) -> None:
        """
        Declare metrics and register their gauges.

        Args:
            registry: Gauge registry shared by all mappers
        """
        self._registry = registry
        self._metrics: Dict[str, Metric] = {}
        self.rows_skipped = 0
        self.declare_metrics()
        self.register_all()

    @property
    def namespace(self) -> str:
        """Metric name prefix, e.g. ``voltdb_queue``."""
        return f"voltdb_{self.selector.value.lower()}"

    @property
    def label_names(self) -> Tuple[str, ...]:
        """Label names in declared order."""
        return tuple(lc.label for lc in self.labels)

    @property
    def metrics(self) -> List[Metric]:
        """Declared metrics in declaration order."""
        return list(self._metrics.values())

    def declare_metrics(self) -> None:
        """Declare the published columns via add_metric."""
        raise NotImplementedError

    def add_metric(
        self,
        column: str,
        key: str,
        unit: Optional[str] = None,
        multiplier: float = 1.0,
        kind: ColumnKind = ColumnKind.INT,
    ) -> Metric:
        """
        Declare one column as a published gauge.

        Args:
            column: Statistics column name
            key: Metric name part, need not match the column name
            unit: Optional unit suffix; prefer "bytes", "seconds", "ratio"
            multiplier: Factor normalizing the database unit to ``unit``
            kind: Coercion applied to the raw value
        """
        name = Metric.make_name(self.namespace, key, unit)
        help_text = f"{self.selector.value} statistics column {column}"
        if unit:
            help_text += f", in {unit}"
        metric = Metric(
            column=column,
            name=name,
            multiplier=multiplier,
            kind=kind,
            help_text=help_text,
        )
        self._metrics[column] = metric
        return metric

    def register_all(self) -> None:
        """Register a gauge for every declared metric."""
        for metric in self._metrics.values():
            self._registry.register(metric.name, self.label_names, metric.help_text)

    def decode(self, tables: Sequence[StatsTable]) -> int:
        """
        Push the values of a @Statistics result into the registry.

        Args:
            tables: Result tables; only the first one is used

        Returns:
            Number of values reported

        Raises:
            DecodeError: If the result has no table or lacks a declared column
        """
        if not tables:
            raise DecodeError(f"{self.selector.value}: no result tables")

        table = tables[0]
        label_idx = [table.column_index(lc.column) for lc in self.labels]
        metric_idx = [
            (metric, table.column_index(metric.column))
            for metric in self._metrics.values()
        ]

        reported = 0
        for row_no, row in enumerate(table.rows):
            try:
                if len(row) < len(table.columns):
                    raise DecodeError(
                        f"row has {len(row)} values, expected {len(table.columns)}"
                    )
                label_values = [
                    lc.extract(row[i]) for lc, i in zip(self.labels, label_idx)
                ]
                values = [
                    (metric, coerce(row[i], metric.kind) * metric.multiplier)
                    for metric, i in metric_idx
                ]
            except DecodeError as e:
                self.rows_skipped += 1
                logger.warning(
                    f"{self.selector.value}: skipping row {row_no}: {e}"
                )
                continue

            for metric, value in values:
                if self._registry.set_value(metric.name, value, *label_values):
                    reported += 1

        return reported
