"""
Unit Tests for GaugeRegistry.

Tests:
    - Idempotent registration and label-schema conflicts
    - Value updates for labelled and unlabelled gauges
    - Exposition restricted to registered gauges
    - Thread-safety
"""

from __future__ import annotations

import threading

import pytest
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge

from voltdb_prometheus.domain.errors import MetricSchemaConflict
from voltdb_prometheus.registry.gauge_registry import GaugeRegistry


class TestGaugeRegistryRegistration:
    """Tests for gauge registration."""

    def test_register_new_gauge(self) -> None:
        """Successfully register a new gauge."""
        registry = GaugeRegistry()

        created = registry.register("voltdb_cpu_usage_percent", ("hostname",))

        assert created is True
        assert registry.registered_count == 1
        assert "voltdb_cpu_usage_percent" in registry.snapshot_names()

    def test_register_same_schema_is_idempotent(self) -> None:
        """Registering the same name and labels again is a no-op."""
        registry = GaugeRegistry()
        registry.register("voltdb_queue_depth", ("hostname", "siteid"))

        created = registry.register("voltdb_queue_depth", ("hostname", "siteid"))

        assert created is False
        assert registry.registered_count == 1

    def test_register_conflicting_labels_raises(self) -> None:
        """Re-registering with other label names raises."""
        registry = GaugeRegistry()
        registry.register("voltdb_queue_depth", ("hostname", "siteid"))

        with pytest.raises(MetricSchemaConflict, match="already registered"):
            registry.register("voltdb_queue_depth", ("hostname",))

    def test_schema_conflict_is_value_error(self) -> None:
        """Callers catching ValueError also see schema conflicts."""
        registry = GaugeRegistry()
        registry.register("voltdb_gc_newgen_gc_count", ("hostname",))

        with pytest.raises(ValueError):
            registry.register("voltdb_gc_newgen_gc_count", ())

    def test_help_text_defaults_to_name(self) -> None:
        """Missing help text falls back to the metric name."""
        registry = GaugeRegistry()
        registry.register("voltdb_cpu_usage_percent", ("hostname",))

        info = registry.get_info("voltdb_cpu_usage_percent")

        assert info is not None
        assert info.help_text == "voltdb_cpu_usage_percent"
        assert info.label_names == ("hostname",)


class TestGaugeRegistryValues:
    """Tests for setting and reading values."""

    def test_set_labelled_value(self) -> None:
        """Value is recorded per label combination."""
        registry = GaugeRegistry()
        registry.register("voltdb_queue_depth", ("hostname", "siteid"))

        assert registry.set_value("voltdb_queue_depth", 7, "h1", "3") is True
        registry.set_value("voltdb_queue_depth", 2, "h1", "4")

        assert registry.get_value("voltdb_queue_depth", "h1", "3") == 7
        assert registry.get_value("voltdb_queue_depth", "h1", "4") == 2

    def test_set_overwrites_previous_value(self) -> None:
        """Gauges hold the last value set."""
        registry = GaugeRegistry()
        registry.register("voltdb_cpu_usage_percent", ("hostname",))
        registry.set_value("voltdb_cpu_usage_percent", 80, "h1")

        registry.set_value("voltdb_cpu_usage_percent", 12, "h1")

        assert registry.get_value("voltdb_cpu_usage_percent", "h1") == 12

    def test_set_unlabelled_value(self) -> None:
        """Gauges without labels are set directly."""
        registry = GaugeRegistry()
        registry.register("voltdb_agent_info")

        registry.set_value("voltdb_agent_info", 1)

        assert registry.get_value("voltdb_agent_info") == 1

    def test_unknown_name_is_ignored(self) -> None:
        """Setting an unregistered name records nothing."""
        registry = GaugeRegistry()

        assert registry.set_value("voltdb_nope", 1, "h1") is False
        assert registry.has_values is False

    def test_wrong_label_count_raises(self) -> None:
        """Label values must match the registered label names."""
        registry = GaugeRegistry()
        registry.register("voltdb_queue_depth", ("hostname", "siteid"))

        with pytest.raises(ValueError, match="expects 2 label values"):
            registry.set_value("voltdb_queue_depth", 1, "h1")

    def test_has_values_after_first_set(self) -> None:
        """has_values flips once any value was recorded."""
        registry = GaugeRegistry()
        registry.register("voltdb_cpu_usage_percent", ("hostname",))
        assert registry.has_values is False

        registry.set_value("voltdb_cpu_usage_percent", 5, "h1")

        assert registry.has_values is True

    def test_get_value_never_set_is_none(self) -> None:
        registry = GaugeRegistry()
        registry.register("voltdb_cpu_usage_percent", ("hostname",))

        assert registry.get_value("voltdb_cpu_usage_percent", "h9") is None
        assert registry.get_value("voltdb_unknown") is None


class TestGaugeRegistryExposition:
    """Tests for rendering."""

    def test_render_contains_samples(self) -> None:
        """Rendered output carries help, type and samples."""
        registry = GaugeRegistry()
        registry.register(
            "voltdb_queue_depth",
            ("hostname", "siteid"),
            "QUEUE statistics column CURRENT_DEPTH",
        )
        registry.set_value("voltdb_queue_depth", 7, "h1", "3")

        body = registry.render().decode()

        assert "# HELP voltdb_queue_depth QUEUE statistics column CURRENT_DEPTH" in body
        assert "# TYPE voltdb_queue_depth gauge" in body
        assert 'voltdb_queue_depth{hostname="h1",siteid="3"} 7.0' in body

    def test_render_excludes_foreign_collectors(self) -> None:
        """Only names registered here are rendered, even on a shared registry."""
        shared = CollectorRegistry()
        foreign = Gauge("other_gauge", "not ours", registry=shared)
        foreign.set(1)
        registry = GaugeRegistry(collector_registry=shared)
        registry.register("voltdb_cpu_usage_percent", ("hostname",))
        registry.set_value("voltdb_cpu_usage_percent", 3, "h1")

        body = registry.render().decode()

        assert "voltdb_cpu_usage_percent" in body
        assert "other_gauge" not in body

    def test_content_type(self) -> None:
        assert GaugeRegistry().content_type == CONTENT_TYPE_LATEST


class TestGaugeRegistryThreadSafety:
    """Thread-safety tests."""

    def test_concurrent_set_value(self) -> None:
        """Concurrent updates from response threads are all counted."""
        registry = GaugeRegistry()
        registry.register("voltdb_queue_depth", ("hostname", "siteid"))
        errors = []

        def writer(site: int) -> None:
            try:
                for i in range(100):
                    registry.set_value("voltdb_queue_depth", i, "h1", str(site))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(s,)) for s in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        for site in range(8):
            assert registry.get_value("voltdb_queue_depth", "h1", str(site)) == 99

    def test_concurrent_register_same_name(self) -> None:
        """Racing identical registrations create exactly one gauge."""
        registry = GaugeRegistry()
        results = []

        def register() -> None:
            results.append(registry.register("voltdb_cpu_usage_percent", ("hostname",)))

        threads = [threading.Thread(target=register) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert registry.registered_count == 1
