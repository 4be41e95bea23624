"""Test utilities for otelbridge.

Captures spans, metric points and log records in memory so code that uses
the bridge can be tested without a collector.

Example:
    >>> from otelbridge.testing import InMemoryTelemetry
    >>> telemetry = InMemoryTelemetry()
    >>> bridge = telemetry.create_bridge()
    >>> bridge.stop_activity(bridge.start_activity("load_zone"))
    >>> assert telemetry.get_finished_spans()[0].name == "load_zone"
"""

from __future__ import annotations

import logging
import threading
from typing import Any
from uuid import uuid4

from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from otelbridge._internal.bootstrap import TelemetryExporters
from otelbridge._internal.config import TelemetryConfig
from otelbridge._internal.main import TelemetryBridge


class CapturingLogHandler(logging.Handler):
    """Logging handler that keeps every record it receives."""

    def __init__(self, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.records: list[logging.LogRecord] = []
        self._records_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        with self._records_lock:
            self.records.append(record)

    def clear(self) -> None:
        with self._records_lock:
            self.records.clear()


class InMemoryTelemetry:
    """In-memory export pipeline for one bridge.

    A metric reader can only be registered with one meter provider, so use a
    fresh instance per bridge.
    """

    def __init__(self) -> None:
        self.span_exporter = InMemorySpanExporter()
        self.metric_reader = InMemoryMetricReader()
        self.log_handler = CapturingLogHandler()

    def exporters(self, config: TelemetryConfig, resource: Resource) -> TelemetryExporters:
        """Exporters factory for TelemetryBridge and build_backend."""
        return TelemetryExporters(
            span_processor=SimpleSpanProcessor(self.span_exporter),
            metric_reader=self.metric_reader,
            log_handler=self.log_handler,
        )

    def create_bridge(
        self,
        records_logger: logging.Logger | None = None,
        **overrides: Any,
    ) -> TelemetryBridge:
        """Create an enabled bridge exporting here and run bootstrap on it.

        Args:
            records_logger: Stdlib logger for application records. Defaults
                to a fresh logger so bridges do not share handlers.
            **overrides: TelemetryConfig field values.
        """
        if records_logger is None:
            records_logger = logging.getLogger(f"otelbridge.testing.{uuid4().hex}")
            records_logger.propagate = False
        config = TelemetryConfig(enabled=True, collector_host="http://localhost:4318").merge_with(**overrides)
        bridge = TelemetryBridge(config, exporters_factory=self.exporters, records_logger=records_logger)
        bridge.on_ready()
        return bridge

    def get_finished_spans(self) -> list[ReadableSpan]:
        return list(self.span_exporter.get_finished_spans())

    def get_log_records(self) -> list[logging.LogRecord]:
        return list(self.log_handler.records)

    def get_metric_points(self, name: str) -> list[Any]:
        """Collect and return the data points recorded for metric ``name``."""
        data = self.metric_reader.get_metrics_data()
        if data is None:
            return []
        points: list[Any] = []
        for resource_metrics in data.resource_metrics:
            for scope_metrics in resource_metrics.scope_metrics:
                for metric in scope_metrics.metrics:
                    if metric.name == name:
                        points.extend(metric.data.data_points)
        return points

    def clear(self) -> None:
        self.span_exporter.clear()
        self.log_handler.clear()


__all__ = ["CapturingLogHandler", "InMemoryTelemetry"]
