"""Configuration management for otelbridge.

This module handles bridge configuration from multiple sources:
- A key/value mapping, such as the ``observability`` section of the host's
  settings file
- Environment variables (OTELBRIDGE_*, OTEL_*)
- Default values

Configuration follows a priority order:
1. Explicit overrides via merge_with() (highest)
2. Mapping or environment variables
3. Default values (lowest)

Reading settings files is the host's job; the bridge only sees the values.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any
from urllib.parse import urlsplit
from uuid import uuid4

from opentelemetry.sdk.resources import Resource

from otelbridge._internal import constants
from otelbridge._internal.enums import LogLevelType, parse_log_level
from otelbridge._internal.exceptions import ConfigurationError
from otelbridge._internal.version import __version__


def _get_env(
    *keys: str,
    default: str | None = None,
) -> str | None:
    """Get the first non-empty environment variable from the given keys.

    Args:
        *keys: Environment variable names to check in order.
        default: Default value if none found.

    Returns:
        The first non-empty value found, or the default.
    """
    for key in keys:
        value = os.environ.get(key)
        if value:
            return value
    return default


def _to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def _get_env_bool(
    *keys: str,
    default: bool = False,
) -> bool:
    """Get a boolean from environment variables.

    Args:
        *keys: Environment variable names to check in order.
        default: Default value if none found.

    Returns:
        True if value is 'true', '1', 'yes' or 'on'; False otherwise.
    """
    return _to_bool(_get_env(*keys), default=default)


def _to_float(value: Any, default: float = 1.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_sample_rate(value: Any) -> float:
    """Parse a sampling rate; missing, invalid or out-of-range values mean 1.0."""
    rate = _to_float(value, default=1.0)
    if not 0.0 <= rate <= 1.0:
        return 1.0
    return rate


@dataclass
class TelemetryConfig:
    """Configuration for the telemetry bridge.

    Attributes:
        enabled: Build the OTLP backend at bootstrap.
        collector_host: Base URL of the OTLP/HTTP collector.
        level: Minimum log severity.
        environment: Deployment environment name.
        service_name: Service name reported on every signal.
        service_namespace: Service namespace reported on every signal.
        is_server: Whether this process is a dedicated server (origin attribute).
        sample_rate: Trace sampling rate (0.0 to 1.0).
    """

    enabled: bool = False
    collector_host: str | None = None
    level: LogLevelType = LogLevelType.INFORMATION
    environment: str | None = None
    service_name: str = constants.DEFAULT_SERVICE_NAME
    service_namespace: str = constants.DEFAULT_SERVICE_NAMESPACE
    is_server: bool = False
    sample_rate: float = 1.0

    _instance_id: str = field(default_factory=lambda: uuid4().hex, repr=False, compare=False)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> TelemetryConfig:
        """Create configuration from a key/value source.

        Recognized keys: ``enabled``, ``collectorHost``, ``level``,
        ``environment`` (``environnement`` is accepted too), ``serviceName``,
        ``serviceNamespace``, ``server`` and ``sampleRate``. Unknown keys are
        ignored; an unparseable level means Information and a sample rate
        outside 0.0 to 1.0 means 1.0.

        Args:
            values: The observability settings.

        Returns:
            A new TelemetryConfig.
        """
        environment = values.get("environment", values.get("environnement"))
        return cls(
            enabled=_to_bool(values.get("enabled")),
            collector_host=_optional_str(values.get("collectorHost")),
            level=parse_log_level(values.get("level")),
            environment=_optional_str(environment),
            service_name=_optional_str(values.get("serviceName")) or constants.DEFAULT_SERVICE_NAME,
            service_namespace=_optional_str(values.get("serviceNamespace")) or constants.DEFAULT_SERVICE_NAMESPACE,
            is_server=_to_bool(values.get("server")),
            sample_rate=_to_sample_rate(values.get("sampleRate")),
        )

    @classmethod
    def from_environment(cls) -> TelemetryConfig:
        """Create configuration from environment variables.

        Environment variables (in priority order):
            OTELBRIDGE_ENABLED: Build the OTLP backend (true/false)
            OTELBRIDGE_COLLECTOR_HOST / OTEL_EXPORTER_OTLP_ENDPOINT: Collector URL
            OTELBRIDGE_LEVEL: Minimum log level name
            OTELBRIDGE_ENVIRONMENT: Deployment environment
            OTELBRIDGE_SERVICE_NAME / OTEL_SERVICE_NAME: Service name
            OTELBRIDGE_SERVICE_NAMESPACE: Service namespace
            OTELBRIDGE_SERVER: Dedicated server process (true/false)
            OTELBRIDGE_SAMPLE_RATE / OTEL_TRACES_SAMPLER_ARG: Sample rate

        Returns:
            A new TelemetryConfig populated from environment variables.
        """
        return cls(
            enabled=_get_env_bool("OTELBRIDGE_ENABLED", default=False),
            collector_host=_get_env("OTELBRIDGE_COLLECTOR_HOST", "OTEL_EXPORTER_OTLP_ENDPOINT"),
            level=parse_log_level(_get_env("OTELBRIDGE_LEVEL")),
            environment=_get_env("OTELBRIDGE_ENVIRONMENT"),
            service_name=_get_env(
                "OTELBRIDGE_SERVICE_NAME",
                "OTEL_SERVICE_NAME",
                default=constants.DEFAULT_SERVICE_NAME,
            )
            or constants.DEFAULT_SERVICE_NAME,
            service_namespace=_get_env(
                "OTELBRIDGE_SERVICE_NAMESPACE",
                default=constants.DEFAULT_SERVICE_NAMESPACE,
            )
            or constants.DEFAULT_SERVICE_NAMESPACE,
            is_server=_get_env_bool("OTELBRIDGE_SERVER", default=False),
            sample_rate=_to_sample_rate(_get_env("OTELBRIDGE_SAMPLE_RATE", "OTEL_TRACES_SAMPLER_ARG")),
        )

    def merge_with(self, **overrides: Any) -> TelemetryConfig:
        """Create a new config by merging explicit values with this config.

        Non-None overrides replace existing values.

        Raises:
            TypeError: If an override does not name a config field.
        """
        known = {f.name for f in fields(self) if not f.name.startswith("_")}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown configuration fields: {sorted(unknown)}")
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})

    def otlp_endpoint(self, signal_path: str) -> str:
        """Build the OTLP/HTTP endpoint for one signal.

        Args:
            signal_path: One of the ``/v1/...`` signal paths.

        Returns:
            The collector host joined with ``signal_path``.

        Raises:
            ConfigurationError: If the collector host is missing or is not
                an absolute http(s) URL.
        """
        host = self.collector_host
        if not host:
            raise ConfigurationError("collectorHost is not configured.")
        try:
            parts = urlsplit(host)
        except ValueError as e:
            raise ConfigurationError("collectorHost is not a valid URL.", details={"collectorHost": host}) from e
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ConfigurationError(
                "collectorHost must be an absolute http(s) URL.",
                details={"collectorHost": host},
            )
        return f"{host.rstrip('/')}{signal_path}"

    def create_resource(self) -> Resource:
        """Create an OTEL Resource from this configuration.

        Returns:
            A Resource with service identity, origin and environment attributes.
        """
        attributes: dict[str, str | int] = {
            constants.SERVICE_NAME: self.service_name,
            constants.SERVICE_NAMESPACE: self.service_namespace,
            constants.SERVICE_INSTANCE_ID: self._instance_id,
            constants.TELEMETRY_SDK_NAME: "otelbridge",
            constants.TELEMETRY_SDK_VERSION: __version__,
            constants.TELEMETRY_SDK_LANGUAGE: "python",
            constants.PROCESS_PID: os.getpid(),
            constants.ORIGIN: constants.ORIGIN_SERVER if self.is_server else constants.ORIGIN_CLIENT,
        }

        if self.environment:
            attributes[constants.ENVIRONMENT] = self.environment
            attributes[constants.DEPLOYMENT_ENVIRONMENT] = self.environment

        return Resource.create(attributes)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = ["TelemetryConfig"]
