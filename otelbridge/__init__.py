"""otelbridge - OpenTelemetry bridge for game engine hosts.

Host scripts cannot hold OpenTelemetry objects, so the bridge exposes metrics,
activities (spans) and structured logs through plain strings, numbers and tag
dictionaries, and exports everything to an OTLP/HTTP collector.

Example:
    >>> import otelbridge
    >>> otelbridge.on_ready(otelbridge.TelemetryConfig.from_mapping(settings["observability"]))
    >>> otelbridge.create_metric("frames_rendered", "counter")
    >>> otelbridge.add_to_metric("frames_rendered", 1, {"scene": "hangar"})
    >>> session_id = otelbridge.start_activity("load_zone", {"zone": "hub"})
    >>> otelbridge.stop_activity(session_id)
    >>> otelbridge.log_warning("network", "packet dropped", {"peer": 7})
    >>> otelbridge.on_shutdown()

Configuration:
    The bridge can be configured via:
    1. A TelemetryConfig passed to on_ready()
    2. Environment variables (OTELBRIDGE_*, OTEL_*)
    3. Default values (telemetry disabled)

    Environment variables:
        OTELBRIDGE_ENABLED: Build the OTLP backend (true/false)
        OTELBRIDGE_COLLECTOR_HOST / OTEL_EXPORTER_OTLP_ENDPOINT: Collector URL
        OTELBRIDGE_LEVEL: Minimum log level (Trace ... Critical)
        OTELBRIDGE_ENVIRONMENT: Deployment environment
        OTELBRIDGE_SERVICE_NAME / OTEL_SERVICE_NAME: Service name
        OTELBRIDGE_SERVICE_NAMESPACE: Service namespace
        OTELBRIDGE_SERVER: Dedicated server process (true/false)
        OTELBRIDGE_SAMPLE_RATE / OTEL_TRACES_SAMPLER_ARG: Sample rate
"""

from otelbridge._internal.bootstrap import BackendResources, TelemetryExporters, build_backend, otlp_exporters
from otelbridge._internal.config import TelemetryConfig
from otelbridge._internal.enums import TRACE, LogLevelType, MetricType, parse_log_level, parse_metric_type
from otelbridge._internal.exceptions import ConfigurationError, InvalidMetricTypeError, TelemetryError
from otelbridge._internal.main import (
    TelemetryBridge,
    add_tags_to_activity,
    add_to_metric,
    create_metric,
    get_current_log_level,
    get_default_instance,
    log,
    log_critical,
    log_debug,
    log_error,
    log_information,
    log_trace,
    log_warning,
    log_with_level,
    on_ready,
    on_shutdown,
    record_to_histogram,
    start_activity,
    stop_activity,
)
from otelbridge._internal.version import __version__

__all__ = [
    "TRACE",
    "BackendResources",
    "ConfigurationError",
    "InvalidMetricTypeError",
    "LogLevelType",
    "MetricType",
    "TelemetryBridge",
    "TelemetryConfig",
    "TelemetryError",
    "TelemetryExporters",
    "__version__",
    "add_tags_to_activity",
    "add_to_metric",
    "build_backend",
    "create_metric",
    "get_current_log_level",
    "get_default_instance",
    "log",
    "log_critical",
    "log_debug",
    "log_error",
    "log_information",
    "log_trace",
    "log_warning",
    "log_with_level",
    "on_ready",
    "on_shutdown",
    "otlp_exporters",
    "parse_log_level",
    "parse_metric_type",
    "record_to_histogram",
    "start_activity",
    "stop_activity",
]
