"""Host tag map adapter.

The host hands tags over as loosely typed dictionaries. This module is the
single place where those are turned into the ordered ``(key, value)`` pairs
the registries and the log emitter work with.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from otelbridge.types import HostTags, TagPairs


def convert_tags(tags: HostTags | None) -> TagPairs:
    """Convert a host tag map into ordered ``(str, value)`` pairs.

    Accepts a Mapping, any object exposing ``keys()`` and ``__getitem__``
    (host dictionary types), or an iterable of pairs. ``None`` yields an
    empty tuple.

    Args:
        tags: The host-supplied tags.

    Returns:
        Pairs in insertion order, keys coerced to ``str``.
    """
    if tags is None:
        return ()
    if isinstance(tags, Mapping):
        return tuple((str(key), value) for key, value in tags.items())
    if hasattr(tags, "keys") and hasattr(tags, "__getitem__"):
        return tuple((str(key), tags[key]) for key in tags.keys())
    if isinstance(tags, Iterable) and not isinstance(tags, (str, bytes)):
        return tuple((str(key), value) for key, value in tags)
    raise TypeError(f"Unsupported tag container: {type(tags).__name__}")


def tags_to_attributes(pairs: TagPairs) -> dict[str, Any]:
    """Build the attribute dict handed to the backend.

    A repeated key keeps its first position and takes its last value.
    """
    attributes: dict[str, Any] = {}
    for key, value in pairs:
        attributes[key] = value
    return attributes


__all__ = ["convert_tags", "tags_to_attributes"]
