"""Custom exceptions for otelbridge."""

from __future__ import annotations

from typing import Any


class TelemetryError(Exception):
    """Base exception for all telemetry bridge errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidMetricTypeError(TelemetryError, ValueError):
    """Metric type string does not name a known instrument kind."""

    def __init__(self, metric_type: Any) -> None:
        super().__init__(
            f"Invalid metric type: {metric_type}",
            details={"metric_type": metric_type},
        )
        self.metric_type = metric_type


class ConfigurationError(TelemetryError):
    """Configuration values cannot be used to build the backend."""

    pass


__all__ = [
    "ConfigurationError",
    "InvalidMetricTypeError",
    "TelemetryError",
]
