"""Public type definitions for otelbridge.

This module contains the public types users can import for type hints.

Example:
    >>> from otelbridge.types import HostTags
    >>> def emit(tags: HostTags | None = None) -> None:
    ...     pass
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from opentelemetry.metrics import Observation

# Tags as the host hands them over: a mapping, a dict-like object or pairs
HostTags = Mapping[Any, Any] | Iterable[tuple[Any, Any]]

# Tags after conversion at the boundary
TagPairs = tuple[tuple[str, Any], ...]

# Zero-argument producers for observable instruments
LongProducer = Callable[[], int | Observation]
DoubleProducer = Callable[[], float | int | Observation]

__all__ = [
    "DoubleProducer",
    "HostTags",
    "LongProducer",
    "TagPairs",
]
