"""Internal implementation details for otelbridge.

WARNING: This module is internal and should not be imported directly.
All public API is exported from the top-level otelbridge package.

The internal structure:
- main.py: TelemetryBridge service object and the default instance
- bootstrap.py: Backend resource construction and teardown
- config.py: Configuration management
- tracer.py: Proxy TracerProvider
- meter.py: Proxy MeterProvider
- metrics.py: Name-keyed metric registry
- activities.py: Activity (span) session manager
- logs.py: Severity gate and log emitter
- enums.py: Metric type and log level registry
- tags.py: Host tag map adapter
- constants.py: Attribute keys and export defaults
- exceptions.py: Exception hierarchy
"""

from __future__ import annotations

__all__: list[str] = []
