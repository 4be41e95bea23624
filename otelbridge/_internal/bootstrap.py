"""Backend resource construction and teardown.

Bootstrap turns a TelemetryConfig into SDK providers wired to exporters.
The exporters themselves are an opaque collaborator: the default factory
builds the OTLP/HTTP pipeline, tests pass an in-memory one instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock

import structlog
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider as SDKMeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor
from opentelemetry.sdk.trace import TracerProvider as SDKTracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBasedTraceIdRatio

from otelbridge._internal import constants
from otelbridge._internal.config import TelemetryConfig
from otelbridge._internal.exceptions import ConfigurationError

logger = structlog.get_logger("otelbridge")


@dataclass
class TelemetryExporters:
    """What the backend exports through.

    Attributes:
        span_processor: Processor added to the tracer provider.
        metric_reader: Reader registered with the meter provider.
        log_handler: Handler attached to the records logger.
        logger_provider: Logs SDK provider behind ``log_handler``, if any.
    """

    span_processor: SpanProcessor
    metric_reader: MetricReader
    log_handler: logging.Handler
    logger_provider: LoggerProvider | None = None


ExportersFactory = Callable[[TelemetryConfig, Resource], TelemetryExporters]


def otlp_exporters(config: TelemetryConfig, resource: Resource) -> TelemetryExporters:
    """Build the OTLP/HTTP export pipeline for all three signals.

    Raises:
        ConfigurationError: If the collector host is unusable.
    """
    timeout_seconds = constants.EXPORT_TIMEOUT_MILLIS // 1000
    # Resolve every endpoint before any exporter starts its worker thread.
    traces_endpoint = config.otlp_endpoint(constants.TRACES_PATH)
    metrics_endpoint = config.otlp_endpoint(constants.METRICS_PATH)
    logs_endpoint = config.otlp_endpoint(constants.LOGS_PATH)

    span_processor = BatchSpanProcessor(
        OTLPSpanExporter(endpoint=traces_endpoint, timeout=timeout_seconds),
        max_export_batch_size=constants.MAX_EXPORT_BATCH_SIZE,
        schedule_delay_millis=constants.SCHEDULED_DELAY_MILLIS,
        export_timeout_millis=constants.EXPORT_TIMEOUT_MILLIS,
    )

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint, timeout=timeout_seconds),
        export_interval_millis=constants.METRIC_EXPORT_INTERVAL_MILLIS,
        export_timeout_millis=constants.EXPORT_TIMEOUT_MILLIS,
    )

    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(
        BatchLogRecordProcessor(
            OTLPLogExporter(endpoint=logs_endpoint, timeout=timeout_seconds),
            max_export_batch_size=constants.MAX_EXPORT_BATCH_SIZE,
            schedule_delay_millis=constants.SCHEDULED_DELAY_MILLIS,
            export_timeout_millis=constants.EXPORT_TIMEOUT_MILLIS,
        )
    )

    return TelemetryExporters(
        span_processor=span_processor,
        metric_reader=metric_reader,
        log_handler=LoggingHandler(level=logging.NOTSET, logger_provider=logger_provider),
        logger_provider=logger_provider,
    )


@dataclass
class BackendResources:
    """SDK providers owned by the bridge between bootstrap and teardown."""

    tracer_provider: SDKTracerProvider
    meter_provider: SDKMeterProvider
    log_handler: logging.Handler
    logger_provider: LoggerProvider | None = None

    _closed: bool = field(default=False, repr=False)
    _lock: Lock = field(default_factory=Lock, repr=False)

    @property
    def is_closed(self) -> bool:
        """Check if the resources have been released."""
        return self._closed

    def force_flush(self, timeout_millis: int = constants.EXPORT_TIMEOUT_MILLIS) -> bool:
        """Force flush all pending telemetry.

        Returns:
            True if every provider flushed, False otherwise.
        """
        if self._closed:
            return True
        success = self.tracer_provider.force_flush(timeout_millis)
        success = self.meter_provider.force_flush(timeout_millis) and success
        if self.logger_provider is not None:
            success = self.logger_provider.force_flush(timeout_millis) and success
        return success

    def shutdown(self) -> None:
        """Flush and release every provider. Later calls do nothing."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        try:
            self.tracer_provider.shutdown()
        finally:
            try:
                self.meter_provider.shutdown()
            finally:
                try:
                    if self.logger_provider is not None:
                        self.logger_provider.shutdown()
                finally:
                    self.log_handler.close()


def _release_exporters(
    exporters: TelemetryExporters,
    tracer_provider: SDKTracerProvider | None,
) -> None:
    """Stop every exporter worker after a partial build."""
    try:
        if tracer_provider is not None:
            tracer_provider.shutdown()
        else:
            exporters.span_processor.shutdown()
    finally:
        try:
            exporters.metric_reader.shutdown()
        finally:
            try:
                if exporters.logger_provider is not None:
                    exporters.logger_provider.shutdown()
            finally:
                exporters.log_handler.close()


def build_backend(
    config: TelemetryConfig,
    exporters_factory: ExportersFactory = otlp_exporters,
) -> BackendResources:
    """Build SDK providers for ``config``.

    Everything the factory started is shut down again if a later step
    fails, so a failed build leaves no exporter threads behind.

    Args:
        config: Bridge configuration; ``enabled`` is not checked here.
        exporters_factory: Builds the export pipeline.

    Returns:
        The providers, ready to be swapped into the proxies.

    Raises:
        ConfigurationError: If the configuration cannot be used.
        Exception: Whatever the exporter factory or SDK raises.
    """
    if not 0.0 <= config.sample_rate <= 1.0:
        raise ConfigurationError(
            "sampleRate must be between 0.0 and 1.0.",
            details={"sampleRate": config.sample_rate},
        )

    resource = config.create_resource()
    exporters = exporters_factory(config, resource)

    tracer_provider: SDKTracerProvider | None = None
    try:
        sdk_tracer_provider = SDKTracerProvider(
            resource=resource,
            sampler=ParentBasedTraceIdRatio(config.sample_rate),
        )
        sdk_tracer_provider.add_span_processor(exporters.span_processor)
        tracer_provider = sdk_tracer_provider
        meter_provider = SDKMeterProvider(resource=resource, metric_readers=[exporters.metric_reader])
    except Exception:
        _release_exporters(exporters, tracer_provider)
        raise

    logger.info(
        "telemetry_backend_built",
        service=config.service_name,
        collector=config.collector_host,
        environment=config.environment,
    )
    return BackendResources(
        tracer_provider=sdk_tracer_provider,
        meter_provider=meter_provider,
        log_handler=exporters.log_handler,
        logger_provider=exporters.logger_provider,
    )
