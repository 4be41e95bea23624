"""Metric type and log level registry.

Translates the free-form strings handed over by the host into the closed
sets the bridge works with. Metric type parsing is strict; log level parsing
falls back to a default.
"""

from __future__ import annotations

import logging
from enum import Enum, IntEnum

from otelbridge._internal.exceptions import InvalidMetricTypeError

# Stdlib has no level below DEBUG; TRACE sits halfway to NOTSET.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class MetricType(Enum):
    """Instrument kinds a metric name can be bound to."""

    COUNTER = "counter"
    UP_DOWN_COUNTER = "updowncounter"
    HISTOGRAM = "histogram"
    OBSERVABLE_GAUGE = "gauge"
    OBSERVABLE_COUNTER = "observablecounter"
    OBSERVABLE_UP_DOWN_COUNTER = "observableupdowncounter"

    @property
    def is_observable(self) -> bool:
        """Check if instruments of this kind report through a callback."""
        return self in _OBSERVABLE_KINDS

    @property
    def is_additive(self) -> bool:
        """Check if instruments of this kind accept ``add``."""
        return self in (MetricType.COUNTER, MetricType.UP_DOWN_COUNTER)


_OBSERVABLE_KINDS = frozenset(
    {
        MetricType.OBSERVABLE_GAUGE,
        MetricType.OBSERVABLE_COUNTER,
        MetricType.OBSERVABLE_UP_DOWN_COUNTER,
    }
)


class LogLevelType(IntEnum):
    """Totally ordered log severities, lowest first."""

    TRACE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    CRITICAL = 5

    @property
    def stdlib_level(self) -> int:
        """Get the matching stdlib logging level."""
        return _STDLIB_LEVELS[self]


_STDLIB_LEVELS = {
    LogLevelType.TRACE: TRACE,
    LogLevelType.DEBUG: logging.DEBUG,
    LogLevelType.INFORMATION: logging.INFO,
    LogLevelType.WARNING: logging.WARNING,
    LogLevelType.ERROR: logging.ERROR,
    LogLevelType.CRITICAL: logging.CRITICAL,
}


def parse_metric_type(metric_type: str) -> MetricType:
    """Resolve a metric type name, ignoring case.

    Args:
        metric_type: One of counter, updowncounter, histogram, gauge,
            observablecounter or observableupdowncounter.

    Returns:
        The matching MetricType.

    Raises:
        InvalidMetricTypeError: If the name is not a known kind.
    """
    if not isinstance(metric_type, str):
        raise InvalidMetricTypeError(metric_type)
    try:
        return MetricType(metric_type.lower())
    except ValueError:
        raise InvalidMetricTypeError(metric_type) from None


def parse_log_level(
    level: str | int | None,
    default: LogLevelType = LogLevelType.INFORMATION,
) -> LogLevelType:
    """Resolve a log level name, falling back to ``default``.

    Names match member names case-insensitively (``warning``, ``Error``).
    Ordinals are accepted as ints or digit strings.

    Args:
        level: Level name or ordinal.
        default: Level returned when ``level`` cannot be resolved.

    Returns:
        The matching LogLevelType, or ``default``.
    """
    if isinstance(level, LogLevelType):
        return level
    if isinstance(level, bool) or level is None:
        return default
    if isinstance(level, str):
        name = level.strip()
        if name.isdigit():
            level = int(name)
        else:
            return LogLevelType.__members__.get(name.upper(), default)
    try:
        return LogLevelType(level)
    except ValueError:
        return default


__all__ = [
    "TRACE",
    "LogLevelType",
    "MetricType",
    "parse_log_level",
    "parse_metric_type",
]
