"""Activity (span) session manager.

Host code cannot hold span objects, so a started span is stored under an
opaque session id that the host passes back to add tags and to stop it.
A session id is single use: stopping removes it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from typing import Any
from uuid import uuid4

import structlog
from opentelemetry.trace import Span, SpanKind, Tracer

from otelbridge._internal.tags import tags_to_attributes
from otelbridge.types import TagPairs

logger = structlog.get_logger("otelbridge")


@dataclass
class ActivitySession:
    """An in-flight span and the tags attached to it so far."""

    session_id: str
    name: str
    span: Span = field(repr=False)
    tags: dict[str, Any] = field(default_factory=dict)

    def add_tags(self, tags: TagPairs) -> None:
        attributes = tags_to_attributes(tags)
        if not attributes:
            return
        self.span.set_attributes(attributes)
        self.tags.update(attributes)


class ActivitySessionManager:
    """Thread-safe table of open activity sessions.

    Example:
        >>> sessions = ActivitySessionManager(tracer)
        >>> session_id = sessions.start_activity("load_zone", (("zone", "hub"),))
        >>> sessions.add_tags_to_activity(session_id, (("chunks", 12),))
        >>> sessions.stop_activity(session_id)
    """

    def __init__(self, tracer: Tracer) -> None:
        self._tracer = tracer
        self._lock = Lock()
        self._sessions: dict[str, ActivitySession] = {}

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    @property
    def active_count(self) -> int:
        """Number of sessions started and not yet stopped."""
        with self._lock:
            return len(self._sessions)

    def get(self, session_id: str) -> ActivitySession | None:
        """Get the open session for ``session_id``."""
        with self._lock:
            return self._sessions.get(session_id)

    def start_activity(self, name: str, tags: TagPairs = ()) -> str:
        """Start a span named ``name`` and return its session id.

        Returns an empty string when the backend declines to record the
        span (not bootstrapped, disabled or sampled out); nothing is stored
        in that case.
        """
        try:
            span = self._tracer.start_span(name, kind=SpanKind.INTERNAL)
        except Exception as e:
            logger.error("telemetry_call_failed", activity=name, operation="start", error=str(e))
            return ""
        if not span.is_recording():
            span.end()
            return ""

        session = ActivitySession(session_id=str(uuid4()), name=name, span=span)
        try:
            session.add_tags(tags)
        except Exception as e:
            logger.error("telemetry_call_failed", activity=name, operation="tag", error=str(e))

        with self._lock:
            self._sessions[session.session_id] = session
        return session.session_id

    def stop_activity(self, session_id: str) -> None:
        """End the span for ``session_id``. Unknown ids are ignored."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return
        try:
            session.span.end()
        except Exception as e:
            logger.error("telemetry_call_failed", activity=session.name, operation="stop", error=str(e))

    def add_tags_to_activity(self, session_id: str, tags: TagPairs) -> None:
        """Attach tags to the open span for ``session_id``. Unknown ids are ignored."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return
            try:
                session.add_tags(tags)
            except Exception as e:
                logger.error("telemetry_call_failed", activity=session.name, operation="tag", error=str(e))
