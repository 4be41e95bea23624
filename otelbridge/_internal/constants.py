"""Attribute keys and defaults for otelbridge.

This module defines the resource attribute keys, tag keys and export
parameters used across the bridge, following OTEL Semantic Conventions
where one exists.
"""

from __future__ import annotations

# Service identity defaults
DEFAULT_SERVICE_NAME = "DyingStar"
DEFAULT_SERVICE_NAMESPACE = "GameEngine"

# Instrumentation scope used for the bridge's tracer and meter
INSTRUMENTATION_SCOPE = "otelbridge"

# OTEL Semantic Convention resource attributes
SERVICE_NAME = "service.name"
SERVICE_NAMESPACE = "service.namespace"
SERVICE_INSTANCE_ID = "service.instance.id"
DEPLOYMENT_ENVIRONMENT = "deployment.environment.name"
TELEMETRY_SDK_NAME = "telemetry.sdk.name"
TELEMETRY_SDK_VERSION = "telemetry.sdk.version"
TELEMETRY_SDK_LANGUAGE = "telemetry.sdk.language"
PROCESS_PID = "process.pid"

# Host-specific resource attributes
ORIGIN = "origin"
ORIGIN_SERVER = "server"
ORIGIN_CLIENT = "client"
ENVIRONMENT = "environment"

# Tag injected into every log scope
SECTION_TAG = "section"

# Prefix for log tags that clash with reserved logging.LogRecord attributes
RESERVED_TAG_PREFIX = "tag."

# Stdlib logger that carries application records to the backend
RECORDS_LOGGER_NAME = "otelbridge.records"

# OTLP/HTTP signal paths appended to the collector host
TRACES_PATH = "/v1/traces"
METRICS_PATH = "/v1/metrics"
LOGS_PATH = "/v1/logs"

# Batch export parameters
MAX_EXPORT_BATCH_SIZE = 512
SCHEDULED_DELAY_MILLIS = 5000
EXPORT_TIMEOUT_MILLIS = 30000
METRIC_EXPORT_INTERVAL_MILLIS = 5000

__all__ = [
    "DEFAULT_SERVICE_NAME",
    "DEFAULT_SERVICE_NAMESPACE",
    "DEPLOYMENT_ENVIRONMENT",
    "ENVIRONMENT",
    "EXPORT_TIMEOUT_MILLIS",
    "INSTRUMENTATION_SCOPE",
    "LOGS_PATH",
    "MAX_EXPORT_BATCH_SIZE",
    "METRICS_PATH",
    "METRIC_EXPORT_INTERVAL_MILLIS",
    "ORIGIN",
    "ORIGIN_CLIENT",
    "ORIGIN_SERVER",
    "PROCESS_PID",
    "RECORDS_LOGGER_NAME",
    "RESERVED_TAG_PREFIX",
    "SCHEDULED_DELAY_MILLIS",
    "SECTION_TAG",
    "SERVICE_INSTANCE_ID",
    "SERVICE_NAME",
    "SERVICE_NAMESPACE",
    "TELEMETRY_SDK_LANGUAGE",
    "TELEMETRY_SDK_NAME",
    "TELEMETRY_SDK_VERSION",
    "TRACES_PATH",
]
