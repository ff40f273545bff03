"""
Gauge Registry - Published Metric Management.

This module provides a thread-safe registry of the gauges published by
the agent. Gauges are registered once at startup (one per declared
statistics column) and their values overwritten on every gather cycle.

Only gauges are used. Counters might seem plausible, but there is no
way to transfer the current value from the database statistics into a
counter: the statistics can be reset, and counters cannot decrease.

Usage:
    registry = GaugeRegistry()
    registry.register("voltdb_queue_depth", ("hostname", "siteid"))
    registry.set_value("voltdb_queue_depth", 7, "h1", "3")

    body = registry.render()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Dict, Iterable, Optional, Protocol, Set, Tuple

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

from voltdb_prometheus.domain.errors import MetricSchemaConflict

logger = logging.getLogger(__name__)


@dataclass
class GaugeInfo:
    """Metadata about a registered gauge."""

    name: str
    label_names: Tuple[str, ...]
    help_text: str
    gauge: Gauge


class GaugeRegistryProtocol(Protocol):
    """Protocol for gauge registry implementations."""

    def register(
        self,
        name: str,
        label_names: Iterable[str] = (),
        help_text: Optional[str] = None,
    ) -> bool:
        """Register a gauge; idempotent for an identical label schema."""
        ...

    def set_value(self, name: str, value: float, *label_values: str) -> bool:
        """Set the value of one labelled gauge child."""
        ...

    def snapshot_names(self) -> Set[str]:
        """Names of all registered gauges."""
        ...


class GaugeRegistry:
    """
    Thread-safe registry of published gauges.

    Supports:
        - Idempotent registration with label-schema conflict detection
        - Concurrent value updates from independent response threads
        - Exposition restricted to the names registered here
    """

    def __init__(self, collector_registry: Optional[CollectorRegistry] = None) -> None:
        """
        Initialize empty registry.

        Args:
            collector_registry: prometheus_client registry to register into.
                A private one is created by default so that no samples from
                unrelated collectors leak into the exposition.
        """
        self._collector_registry = collector_registry or CollectorRegistry()
        self._gauges: Dict[str, GaugeInfo] = {}
        self._lock = RLock()
        self._values_recorded = 0
        logger.debug("GaugeRegistry initialized")

    def register(
        self,
        name: str,
        label_names: Iterable[str] = (),
        help_text: Optional[str] = None,
    ) -> bool:
        """
        Register a gauge with the registry.

        Args:
            name: Fully-qualified metric name
            label_names: Ordered label names, fixed for the gauge's lifetime
            help_text: Help text; defaults to the metric name

        Returns:
            True if a new gauge was created, False if it already existed

        Raises:
            MetricSchemaConflict: If the name exists with other label names
        """
        labels = tuple(label_names)
        with self._lock:
            info = self._gauges.get(name)
            if info is not None:
                if info.label_names != labels:
                    raise MetricSchemaConflict(
                        f"Metric '{name}' already registered with labels "
                        f"{list(info.label_names)}, not {list(labels)}"
                    )
                return False

            text = help_text or name
            gauge = Gauge(
                name,
                text,
                labelnames=labels,
                registry=self._collector_registry,
            )
            self._gauges[name] = GaugeInfo(
                name=name,
                label_names=labels,
                help_text=text,
                gauge=gauge,
            )
            logger.debug(f"Adding metric {name}")
            return True

    def set_value(self, name: str, value: float, *label_values: str) -> bool:
        """
        Set the current value of a gauge.

        Unknown names are ignored: a late report for a category that is
        not enabled must not break the gather cycle.

        Args:
            name: Registered metric name
            value: Value, already converted to the published unit
            *label_values: Label values in registration order

        Returns:
            True if a value was recorded, False if the name is unknown

        Raises:
            ValueError: If the number of label values does not match
        """
        with self._lock:
            info = self._gauges.get(name)
        if info is None:
            logger.debug(f"Couldn't find metric: {name}")
            return False

        if len(label_values) != len(info.label_names):
            raise ValueError(
                f"Metric '{name}' expects {len(info.label_names)} label values, "
                f"got {len(label_values)}"
            )

        if info.label_names:
            info.gauge.labels(*label_values).set(value)
        else:
            info.gauge.set(value)

        with self._lock:
            self._values_recorded += 1
        logger.debug(f"{name} = {value}")
        return True

    def get_value(self, name: str, *label_values: str) -> Optional[float]:
        """Current value of a labelled gauge child, or None if never set."""
        with self._lock:
            info = self._gauges.get(name)
        if info is None:
            return None
        labels = dict(zip(info.label_names, label_values))
        return self._collector_registry.get_sample_value(name, labels)

    def get_info(self, name: str) -> Optional[GaugeInfo]:
        """Registration metadata for a gauge."""
        with self._lock:
            return self._gauges.get(name)

    def snapshot_names(self) -> Set[str]:
        """
        Names of every registered gauge.

        Used to restrict exposition output to metrics known to this
        registry.
        """
        with self._lock:
            return set(self._gauges)

    def render(self) -> bytes:
        """Serialize registered gauges in the text exposition format."""
        names = self.snapshot_names()
        return generate_latest(self._collector_registry.restricted_registry(names))

    @property
    def content_type(self) -> str:
        """Content type of the rendered exposition."""
        return CONTENT_TYPE_LATEST

    @property
    def has_values(self) -> bool:
        """True once any value has ever been recorded."""
        with self._lock:
            return self._values_recorded > 0

    @property
    def registered_count(self) -> int:
        """Total number of registered gauges."""
        with self._lock:
            return len(self._gauges)
