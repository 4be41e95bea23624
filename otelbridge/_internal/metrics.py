"""Name-keyed metric registry.

Callers create instruments by string name and kind and update them by name
later. The registry keeps at most one instrument per name (first
registration wins) and checks the stored kind on every update, so a value is
never applied to an instrument of the wrong kind.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

import structlog
from opentelemetry.metrics import CallbackOptions, Meter, Observation

from otelbridge._internal.enums import MetricType, parse_metric_type
from otelbridge._internal.tags import tags_to_attributes
from otelbridge.types import DoubleProducer, LongProducer, TagPairs

logger = structlog.get_logger("otelbridge")


def _default_producer() -> int:
    return 0


@dataclass
class MetricHandle:
    """A registered instrument and what is needed to rebuild it.

    Attributes:
        name: Registry key and instrument name.
        kind: Instrument kind, fixed at registration.
        unit: Instrument unit.
        description: Instrument description.
        producer: Zero-argument callback for observable kinds.
        instrument: The backend instrument.
    """

    name: str
    kind: MetricType
    unit: str = ""
    description: str = ""
    producer: Callable[[], Any] | None = field(default=None, repr=False)
    instrument: Any = field(default=None, repr=False)

    def build(self, meter: Meter) -> None:
        """Create the backend instrument for this handle on ``meter``."""
        if self.kind is MetricType.COUNTER:
            self.instrument = meter.create_counter(self.name, unit=self.unit, description=self.description)
        elif self.kind is MetricType.UP_DOWN_COUNTER:
            self.instrument = meter.create_up_down_counter(self.name, unit=self.unit, description=self.description)
        elif self.kind is MetricType.HISTOGRAM:
            self.instrument = meter.create_histogram(self.name, unit=self.unit, description=self.description)
        elif self.kind is MetricType.OBSERVABLE_GAUGE:
            self.instrument = meter.create_observable_gauge(
                self.name, callbacks=[self._observe(float)], unit=self.unit, description=self.description
            )
        elif self.kind is MetricType.OBSERVABLE_COUNTER:
            self.instrument = meter.create_observable_counter(
                self.name, callbacks=[self._observe(int)], unit=self.unit, description=self.description
            )
        elif self.kind is MetricType.OBSERVABLE_UP_DOWN_COUNTER:
            self.instrument = meter.create_observable_up_down_counter(
                self.name, callbacks=[self._observe(int)], unit=self.unit, description=self.description
            )

    def _observe(self, cast: Callable[[Any], int | float]) -> Callable[[CallbackOptions], Iterable[Observation]]:
        producer = self.producer or _default_producer

        def callback(options: CallbackOptions) -> Iterable[Observation]:
            value = producer()
            if isinstance(value, Observation):
                return [Observation(cast(value.value), value.attributes)]
            return [Observation(cast(value))]

        return callback


class MetricRegistry:
    """Thread-safe store of dynamically created metric instruments.

    Example:
        >>> registry = MetricRegistry(meter)
        >>> registry.create_metric("players_online", "updowncounter")
        >>> registry.add_to_metric("players_online", 1, (("zone", "hub"),))
    """

    def __init__(self, meter: Meter) -> None:
        self._meter = meter
        self._lock = Lock()
        self._handles: dict[str, MetricHandle] = {}

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def names(self) -> list[str]:
        """Registered metric names in registration order."""
        with self._lock:
            return list(self._handles)

    def get(self, name: str) -> MetricHandle | None:
        """Get the handle registered under ``name``."""
        with self._lock:
            return self._handles.get(name)

    def create_metric(
        self,
        name: str,
        metric_type: str,
        unit: str | None = None,
        description: str | None = None,
        long_callback: LongProducer | None = None,
        double_callback: DoubleProducer | None = None,
    ) -> None:
        """Register an instrument under ``name`` unless one already exists.

        Observable kinds report through a zero-argument producer: the gauge
        uses ``double_callback``, observable counters use ``long_callback``.
        Without one, the instrument reports ``0``.

        Args:
            name: Metric name.
            metric_type: Kind name, see ``parse_metric_type``.
            unit: Instrument unit.
            description: Instrument description.
            long_callback: Producer for observable counters.
            double_callback: Producer for the observable gauge.

        Raises:
            InvalidMetricTypeError: If ``metric_type`` is not a known kind
                and ``name`` is not registered yet.
        """
        with self._lock:
            if name in self._handles:
                return

            kind = parse_metric_type(metric_type)
            producer: Callable[[], Any] | None = None
            if kind is MetricType.OBSERVABLE_GAUGE:
                producer = double_callback
            elif kind.is_observable:
                producer = long_callback

            handle = MetricHandle(
                name=name,
                kind=kind,
                unit=unit or "",
                description=description or "",
                producer=producer,
            )
            try:
                handle.build(self._meter)
            except Exception as e:
                logger.error("telemetry_call_failed", metric=name, operation="create", error=str(e))
                return
            self._handles[name] = handle

        logger.debug("metric_created", metric=name, kind=kind.value)

    def add_to_metric(self, name: str, value: int | float, tags: TagPairs = ()) -> None:
        """Add ``value`` to a counter or up-down counter.

        Unknown names and other kinds are logged and ignored.
        """
        handle = self.get(name)
        if handle is None:
            logger.error("metric_not_found", metric=name, operation="add")
            return
        if not handle.kind.is_additive:
            logger.error(
                "metric_kind_mismatch",
                metric=name,
                operation="add",
                kind=handle.kind.value,
                expected="counter or updowncounter",
            )
            return
        try:
            handle.instrument.add(value, attributes=tags_to_attributes(tags))
        except Exception as e:
            logger.error("telemetry_call_failed", metric=name, operation="add", error=str(e))

    def record_to_histogram(self, name: str, value: int | float, tags: TagPairs = ()) -> None:
        """Record ``value`` on a histogram.

        Unknown names and other kinds are logged and ignored.
        """
        handle = self.get(name)
        if handle is None:
            logger.error("metric_not_found", metric=name, operation="record")
            return
        if handle.kind is not MetricType.HISTOGRAM:
            logger.error(
                "metric_kind_mismatch",
                metric=name,
                operation="record",
                kind=handle.kind.value,
                expected="histogram",
            )
            return
        try:
            handle.instrument.record(value, attributes=tags_to_attributes(tags))
        except Exception as e:
            logger.error("telemetry_call_failed", metric=name, operation="record", error=str(e))

    def rebind(self, meter: Meter | None = None) -> None:
        """Rebuild every instrument, optionally on a different meter.

        Instruments created before bootstrap belong to the no-op meter;
        bootstrap calls this once the real provider is in place.
        """
        with self._lock:
            if meter is not None:
                self._meter = meter
            for handle in self._handles.values():
                try:
                    handle.build(self._meter)
                except Exception as e:
                    logger.error("telemetry_call_failed", metric=handle.name, operation="rebind", error=str(e))
