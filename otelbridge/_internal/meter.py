"""Proxy MeterProvider for otelbridge.

Similar to ProxyTracerProvider, it lets the metric registry hold a meter
before bootstrap. After a swap the proxy meter creates instruments on the
real meter; instruments created earlier are rebuilt by the registry.

Architecture:
    ProxyMeterProvider -> SDK MeterProvider -> PeriodicExportingMetricReader -> OTLP
                      └-> NoOpMeterProvider before bootstrap and after teardown
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from threading import Lock
from typing import Any
from weakref import WeakSet

from opentelemetry.metrics import (
    CallbackT,
    Counter,
    Histogram,
    Meter,
    MeterProvider,
    ObservableCounter,
    ObservableGauge,
    ObservableUpDownCounter,
    UpDownCounter,
)
from opentelemetry.metrics import (
    NoOpMeterProvider as OTELNoOpMeterProvider,
)


class NoOpMeterProvider(OTELNoOpMeterProvider):
    """Provider in place until bootstrap succeeds."""

    pass


class ProxyMeter(Meter):
    """Meter that delegates to whichever meter the provider currently holds."""

    def __init__(self, meter: Meter, name: str) -> None:
        self._meter = meter
        self._name = name

    @property
    def name(self) -> str:
        """Get the meter name."""
        return self._name

    def set_meter(self, meter: Meter) -> None:
        """Update the underlying meter."""
        self._meter = meter

    def create_counter(self, name: str, unit: str = "", description: str = "") -> Counter:
        return self._meter.create_counter(name, unit=unit, description=description)

    def create_up_down_counter(self, name: str, unit: str = "", description: str = "") -> UpDownCounter:
        return self._meter.create_up_down_counter(name, unit=unit, description=description)

    def create_histogram(self, name: str, unit: str = "", description: str = "", **kwargs: Any) -> Histogram:
        return self._meter.create_histogram(name, unit=unit, description=description, **kwargs)

    def create_observable_counter(
        self,
        name: str,
        callbacks: Sequence[CallbackT] | None = None,
        unit: str = "",
        description: str = "",
    ) -> ObservableCounter:
        return self._meter.create_observable_counter(name, callbacks=callbacks, unit=unit, description=description)

    def create_observable_up_down_counter(
        self,
        name: str,
        callbacks: Sequence[CallbackT] | None = None,
        unit: str = "",
        description: str = "",
    ) -> ObservableUpDownCounter:
        return self._meter.create_observable_up_down_counter(
            name, callbacks=callbacks, unit=unit, description=description
        )

    def create_observable_gauge(
        self,
        name: str,
        callbacks: Sequence[CallbackT] | None = None,
        unit: str = "",
        description: str = "",
    ) -> ObservableGauge:
        return self._meter.create_observable_gauge(name, callbacks=callbacks, unit=unit, description=description)


class ProxyMeterProvider(MeterProvider):
    """Proxy MeterProvider that wraps the real OTEL MeterProvider.

    Meters are tracked in a WeakSet with one factory per meter name; the
    lock makes provider swaps safe against concurrent ``get_meter`` calls.
    """

    def __init__(self, provider: MeterProvider | None = None) -> None:
        """Initialize proxy provider.

        Args:
            provider: Initial provider to wrap. Defaults to NoOpMeterProvider.
        """
        self._provider: MeterProvider = provider or NoOpMeterProvider()
        self._lock = Lock()
        self._meters: WeakSet[ProxyMeter] = WeakSet()
        self._meter_factories: dict[str, Callable[[], Meter]] = {}

    @property
    def provider(self) -> MeterProvider:
        """Get the underlying provider."""
        return self._provider

    def set_provider(self, provider: MeterProvider) -> None:
        """Swap the underlying provider and repoint every proxy meter.

        Args:
            provider: The OTEL MeterProvider to delegate to.
        """
        with self._lock:
            self._provider = provider
            for proxy_meter in list(self._meters):
                factory = self._meter_factories.get(proxy_meter.name)
                if factory is not None:
                    proxy_meter.set_meter(factory())

    def reset(self) -> None:
        """Fall back to the no-op provider."""
        self.set_provider(NoOpMeterProvider())

    def get_meter(
        self,
        name: str,
        version: str | None = None,
        schema_url: str | None = None,
        attributes: Any = None,
    ) -> ProxyMeter:
        """Get a meter that follows provider swaps.

        Args:
            name: Name of the meter.
            version: Version of the meter.
            schema_url: Schema URL for the meter.
            attributes: Scope attributes for the meter.

        Returns:
            A ProxyMeter instance that delegates to the real meter.
        """
        with self._lock:

            def meter_factory() -> Meter:
                return self._provider.get_meter(name, version=version, schema_url=schema_url)

            proxy_meter = ProxyMeter(meter_factory(), name)
            self._meter_factories[name] = meter_factory
            self._meters.add(proxy_meter)
            return proxy_meter
