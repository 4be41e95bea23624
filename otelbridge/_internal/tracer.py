"""Proxy TracerProvider for otelbridge.

The activity session manager is built before the host runs bootstrap, so it
holds a proxy tracer. Bootstrap swaps the real SDK provider in and teardown
swaps it back out.

Architecture:
    ProxyTracerProvider -> SDK TracerProvider -> BatchSpanProcessor -> OTLP
                       └-> NoOpTracerProvider before bootstrap and after teardown
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from threading import Lock
from typing import TYPE_CHECKING
from weakref import WeakKeyDictionary

from opentelemetry import context as otel_context
from opentelemetry.trace import (
    Link,
    Span,
    SpanKind,
    Tracer,
    TracerProvider,
)
from opentelemetry.trace import (
    NoOpTracerProvider as OTELNoOpTracerProvider,
)
from opentelemetry.util.types import Attributes

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import TracerProvider as SDKTracerProvider


class NoOpTracerProvider(OTELNoOpTracerProvider):
    """Provider in place until bootstrap succeeds.

    Its spans are never recording, which the session manager reads as the
    backend declining to trace.
    """

    pass


class ProxyTracer(Tracer):
    """Tracer that delegates to whichever tracer the provider currently holds."""

    def __init__(self, tracer: Tracer, instrumenting_module_name: str) -> None:
        self._tracer = tracer
        self._instrumenting_module_name = instrumenting_module_name

    @property
    def instrumenting_module_name(self) -> str:
        """Get the instrumenting module name."""
        return self._instrumenting_module_name

    def set_tracer(self, tracer: Tracer) -> None:
        """Update the underlying tracer."""
        self._tracer = tracer

    def start_span(
        self,
        name: str,
        context: otel_context.Context | None = None,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: Attributes = None,
        links: Sequence[Link] | None = None,
        start_time: int | None = None,
        record_exception: bool = True,
        set_status_on_exception: bool = True,
    ) -> Span:
        return self._tracer.start_span(
            name=name,
            context=context,
            kind=kind,
            attributes=attributes,
            links=links,
            start_time=start_time,
            record_exception=record_exception,
            set_status_on_exception=set_status_on_exception,
        )

    def start_as_current_span(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        return self._tracer.start_as_current_span(*args, **kwargs)


class ProxyTracerProvider(TracerProvider):
    """Proxy TracerProvider that wraps the real OTEL TracerProvider.

    Tracers handed out are remembered together with a factory, so every one
    of them is rebuilt against the new provider on swap. A WeakKeyDictionary
    lets unused tracers be garbage collected.
    """

    def __init__(self, provider: TracerProvider | None = None) -> None:
        """Initialize proxy provider.

        Args:
            provider: Initial provider to wrap. Defaults to NoOpTracerProvider.
        """
        self._provider: TracerProvider = provider or NoOpTracerProvider()
        self._lock = Lock()
        self._tracers: WeakKeyDictionary[ProxyTracer, Callable[[], Tracer]] = WeakKeyDictionary()

    @property
    def provider(self) -> TracerProvider:
        """Get the underlying provider."""
        return self._provider

    def set_provider(self, provider: SDKTracerProvider | TracerProvider) -> None:
        """Swap the underlying provider and rebuild every handed-out tracer.

        Args:
            provider: The OTEL TracerProvider to delegate to.
        """
        with self._lock:
            self._provider = provider
            for proxy_tracer, factory in list(self._tracers.items()):
                proxy_tracer.set_tracer(factory())

    def reset(self) -> None:
        """Fall back to the no-op provider."""
        self.set_provider(NoOpTracerProvider())

    def get_tracer(
        self,
        instrumenting_module_name: str,
        instrumenting_library_version: str | None = None,
        schema_url: str | None = None,
        attributes: Attributes = None,
    ) -> ProxyTracer:
        """Get a tracer that follows provider swaps.

        Args:
            instrumenting_module_name: Name of the instrumenting module.
            instrumenting_library_version: Version of the instrumenting library.
            schema_url: Schema URL for the instrumentation.
            attributes: Additional attributes for the tracer.

        Returns:
            A ProxyTracer instance that delegates to the real tracer.
        """
        with self._lock:

            def tracer_factory() -> Tracer:
                return self._provider.get_tracer(
                    instrumenting_module_name,
                    instrumenting_library_version,
                    schema_url,
                    attributes,
                )

            proxy_tracer = ProxyTracer(tracer_factory(), instrumenting_module_name)
            self._tracers[proxy_tracer] = tracer_factory
            return proxy_tracer
