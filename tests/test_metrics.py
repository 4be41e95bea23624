"""Tests for the name-keyed metric registry."""

from __future__ import annotations

from threading import Thread
from typing import Any

import pytest
from opentelemetry.metrics import Observation
from opentelemetry.sdk.metrics import MeterProvider as SDKMeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from structlog.testing import capture_logs

from otelbridge._internal.enums import MetricType
from otelbridge._internal.exceptions import InvalidMetricTypeError
from otelbridge._internal.meter import ProxyMeterProvider
from otelbridge._internal.metrics import MetricRegistry


def _make_registry() -> tuple[MetricRegistry, InMemoryMetricReader]:
    reader = InMemoryMetricReader()
    provider = SDKMeterProvider(metric_readers=[reader])
    return MetricRegistry(provider.get_meter("test")), reader


def _points(reader: InMemoryMetricReader, name: str) -> list[Any]:
    data = reader.get_metrics_data()
    if data is None:
        return []
    return [
        point
        for resource_metrics in data.resource_metrics
        for scope_metrics in resource_metrics.scope_metrics
        for metric in scope_metrics.metrics
        if metric.name == name
        for point in metric.data.data_points
    ]


# =============================================================================
# Registration Tests
# =============================================================================


class TestCreateMetric:
    """Tests for MetricRegistry.create_metric."""

    def test_registers_by_name(self) -> None:
        """Test that a created metric is stored under its name."""
        registry, _ = _make_registry()
        registry.create_metric("frames_rendered", "counter", unit="{frame}", description="Frames drawn")

        handle = registry.get("frames_rendered")
        assert handle is not None
        assert handle.kind is MetricType.COUNTER
        assert handle.unit == "{frame}"
        assert handle.description == "Frames drawn"
        assert "frames_rendered" in registry

    def test_first_registration_wins(self) -> None:
        """Test that re-creating a name keeps the original kind."""
        registry, _ = _make_registry()
        registry.create_metric("latency", "counter")
        registry.create_metric("latency", "histogram")

        assert len(registry) == 1
        handle = registry.get("latency")
        assert handle is not None
        assert handle.kind is MetricType.COUNTER

    def test_invalid_type_raises_and_registers_nothing(self) -> None:
        """Test that an unknown kind raises for a new name."""
        registry, _ = _make_registry()
        with pytest.raises(InvalidMetricTypeError):
            registry.create_metric("latency", "summary")

        assert "latency" not in registry

    def test_invalid_type_for_existing_name_is_ignored(self) -> None:
        """Test that an existing name short-circuits before parsing the kind."""
        registry, _ = _make_registry()
        registry.create_metric("latency", "histogram")
        registry.create_metric("latency", "summary")

        handle = registry.get("latency")
        assert handle is not None
        assert handle.kind is MetricType.HISTOGRAM

    def test_backend_rejection_is_logged(self) -> None:
        """Test that a name the backend rejects is logged and not stored."""
        registry, _ = _make_registry()
        with capture_logs() as logs:
            registry.create_metric("1-not-a-valid-name", "counter")

        assert "1-not-a-valid-name" not in registry
        assert any(entry["event"] == "telemetry_call_failed" for entry in logs)

    def test_names_in_registration_order(self) -> None:
        """Test that names() lists metrics as they were registered."""
        registry, _ = _make_registry()
        for name in ("b_metric", "a_metric", "c_metric"):
            registry.create_metric(name, "counter")

        assert registry.names() == ["b_metric", "a_metric", "c_metric"]

    def test_concurrent_create_same_name(self) -> None:
        """Test that concurrent creation leaves one instrument that sees every add."""
        registry, reader = _make_registry()
        errors: list[Exception] = []

        def create_and_add() -> None:
            try:
                registry.create_metric("shared", "counter")
                registry.add_to_metric("shared", 1)
            except Exception as e:
                errors.append(e)

        threads = [Thread(target=create_and_add) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert len(registry) == 1
        points = _points(reader, "shared")
        assert len(points) == 1
        assert points[0].value == 16


# =============================================================================
# Update Tests
# =============================================================================


class TestUpdateMetric:
    """Tests for add_to_metric and record_to_histogram."""

    def test_counter_accumulates_with_tags(self) -> None:
        """Test that adds with the same tags land on one point."""
        registry, reader = _make_registry()
        registry.create_metric("hits", "counter")
        registry.add_to_metric("hits", 1, (("zone", "hub"),))
        registry.add_to_metric("hits", 2, (("zone", "hub"),))

        points = _points(reader, "hits")
        assert len(points) == 1
        assert points[0].value == 3
        assert dict(points[0].attributes) == {"zone": "hub"}

    def test_up_down_counter_accepts_negative(self) -> None:
        """Test that an up-down counter can go down."""
        registry, reader = _make_registry()
        registry.create_metric("players_online", "updowncounter")
        registry.add_to_metric("players_online", 5)
        registry.add_to_metric("players_online", -2)

        points = _points(reader, "players_online")
        assert points[0].value == 3

    def test_histogram_records(self) -> None:
        """Test that histogram values are recorded."""
        registry, reader = _make_registry()
        registry.create_metric("frame_time", "histogram", unit="ms")
        registry.record_to_histogram("frame_time", 2.5)
        registry.record_to_histogram("frame_time", 5.0)

        points = _points(reader, "frame_time")
        assert len(points) == 1
        assert points[0].count == 2
        assert points[0].sum == 7.5

    def test_add_to_unknown_name_is_logged(self) -> None:
        """Test that updating an unknown name logs and does not raise."""
        registry, _ = _make_registry()
        with capture_logs() as logs:
            registry.add_to_metric("missing", 1)
            registry.record_to_histogram("missing", 1.0)

        events = [entry["event"] for entry in logs]
        assert events == ["metric_not_found", "metric_not_found"]
        assert logs[0]["log_level"] == "error"
        assert logs[0]["metric"] == "missing"

    def test_record_to_counter_is_kind_mismatch(self) -> None:
        """Test that recording to a non-histogram is rejected."""
        registry, reader = _make_registry()
        registry.create_metric("latency", "counter")
        with capture_logs() as logs:
            registry.record_to_histogram("latency", 12.0)

        assert logs[0]["event"] == "metric_kind_mismatch"
        assert logs[0]["kind"] == "counter"
        assert _points(reader, "latency") == []

    def test_add_to_histogram_is_kind_mismatch(self) -> None:
        """Test that adding to a histogram is rejected."""
        registry, _ = _make_registry()
        registry.create_metric("latency", "histogram")
        with capture_logs() as logs:
            registry.add_to_metric("latency", 1)

        assert logs[0]["event"] == "metric_kind_mismatch"
        assert logs[0]["expected"] == "counter or updowncounter"

    def test_add_to_observable_is_kind_mismatch(self) -> None:
        """Test that observable kinds cannot be updated directly."""
        registry, _ = _make_registry()
        registry.create_metric("memory", "gauge")
        with capture_logs() as logs:
            registry.add_to_metric("memory", 1)

        assert logs[0]["event"] == "metric_kind_mismatch"


# =============================================================================
# Observable Instrument Tests
# =============================================================================


class TestObservableMetrics:
    """Tests for callback-driven instruments."""

    def test_gauge_uses_double_callback(self) -> None:
        """Test that the gauge reports the double producer's value."""
        registry, reader = _make_registry()
        registry.create_metric("memory_mb", "gauge", double_callback=lambda: 512.5)

        points = _points(reader, "memory_mb")
        assert points[0].value == 512.5

    def test_observable_counter_uses_long_callback(self) -> None:
        """Test that an observable counter reports the long producer's value."""
        registry, reader = _make_registry()
        registry.create_metric("entities_spawned", "observablecounter", long_callback=lambda: 42)

        points = _points(reader, "entities_spawned")
        assert points[0].value == 42

    def test_observable_without_callback_reports_zero(self) -> None:
        """Test that a missing producer reports 0."""
        registry, reader = _make_registry()
        registry.create_metric("queued_jobs", "observableupdowncounter")

        points = _points(reader, "queued_jobs")
        assert points[0].value == 0

    def test_producer_may_return_observation(self) -> None:
        """Test that a producer can attach attributes through an Observation."""
        registry, reader = _make_registry()
        registry.create_metric("zone_load", "gauge", double_callback=lambda: Observation(0.75, {"zone": "hub"}))

        points = _points(reader, "zone_load")
        assert points[0].value == 0.75
        assert dict(points[0].attributes) == {"zone": "hub"}

    def test_gauge_ignores_long_callback(self) -> None:
        """Test that the gauge reads only the double producer."""
        registry, reader = _make_registry()
        registry.create_metric("cpu", "gauge", long_callback=lambda: 99)

        points = _points(reader, "cpu")
        assert points[0].value == 0


# =============================================================================
# Rebind Tests
# =============================================================================


class TestRebind:
    """Tests for MetricRegistry.rebind."""

    def test_metrics_created_before_provider_swap_start_recording(self) -> None:
        """Test that instruments are rebuilt on the real provider."""
        proxy = ProxyMeterProvider()
        registry = MetricRegistry(proxy.get_meter("test"))
        registry.create_metric("early", "counter")
        registry.add_to_metric("early", 100)

        reader = InMemoryMetricReader()
        proxy.set_provider(SDKMeterProvider(metric_readers=[reader]))
        registry.rebind()
        registry.add_to_metric("early", 2)

        points = _points(reader, "early")
        assert points[0].value == 2

    def test_rebind_to_explicit_meter(self) -> None:
        """Test that rebind can move instruments to another meter."""
        registry, _ = _make_registry()
        registry.create_metric("moved", "histogram")

        reader = InMemoryMetricReader()
        registry.rebind(SDKMeterProvider(metric_readers=[reader]).get_meter("other"))
        registry.record_to_histogram("moved", 1.0)

        assert _points(reader, "moved")[0].count == 1
