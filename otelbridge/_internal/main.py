"""TelemetryBridge - the service object behind every entry point.

One bridge owns the metric registry, the activity session table and the log
gate, plus the backend resources built at bootstrap. Host code either holds
a bridge or goes through the module-level functions, which use the process
default instance.

Architecture:
- Registries are built at construction on proxy providers
- on_ready() runs bootstrap once and swaps the real providers in
- on_shutdown() swaps them back out and releases the backend once
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import structlog

from otelbridge._internal import constants
from otelbridge._internal.activities import ActivitySessionManager
from otelbridge._internal.bootstrap import BackendResources, ExportersFactory, build_backend, otlp_exporters
from otelbridge._internal.config import TelemetryConfig
from otelbridge._internal.enums import LogLevelType
from otelbridge._internal.logs import LogGate
from otelbridge._internal.meter import ProxyMeterProvider
from otelbridge._internal.metrics import MetricRegistry
from otelbridge._internal.tags import convert_tags
from otelbridge._internal.tracer import ProxyTracerProvider
from otelbridge._internal.version import __version__

if TYPE_CHECKING:
    import logging

    from otelbridge.types import DoubleProducer, HostTags, LongProducer, TagPairs

logger = structlog.get_logger("otelbridge")


class TelemetryBridge:
    """Process-wide telemetry facade.

    Example:
        >>> bridge = TelemetryBridge(TelemetryConfig.from_mapping(settings))
        >>> bridge.on_ready()
        >>> bridge.create_metric("frames_rendered", "counter")
        >>> bridge.add_to_metric("frames_rendered", 1, {"scene": "hangar"})
        >>> bridge.log_warning("network", "packet dropped", {"peer": 7})
        >>> bridge.on_shutdown()
    """

    def __init__(
        self,
        config: TelemetryConfig | None = None,
        *,
        exporters_factory: ExportersFactory = otlp_exporters,
        records_logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the bridge without touching the backend.

        Args:
            config: Configuration used by bootstrap. Defaults to the environment.
            exporters_factory: Builds the export pipeline at bootstrap.
            records_logger: Stdlib logger application records go through.
        """
        self._config = config or TelemetryConfig.from_environment()
        self._exporters_factory = exporters_factory
        self._tracer_provider = ProxyTracerProvider()
        self._meter_provider = ProxyMeterProvider()
        self._metrics = MetricRegistry(
            self._meter_provider.get_meter(constants.INSTRUMENTATION_SCOPE, version=__version__)
        )
        self._activities = ActivitySessionManager(
            self._tracer_provider.get_tracer(constants.INSTRUMENTATION_SCOPE, __version__)
        )
        self._logs = LogGate(records_logger)
        self._lifecycle_lock = threading.Lock()
        self._backend: BackendResources | None = None
        self._bootstrapped = False
        self._enabled = False

    @property
    def config(self) -> TelemetryConfig:
        """Get the current configuration."""
        return self._config

    @property
    def enabled(self) -> bool:
        """Check if the backend was built and is still running."""
        return self._enabled

    @property
    def is_bootstrapped(self) -> bool:
        """Check if bootstrap has run, successfully or not."""
        return self._bootstrapped

    @property
    def metrics(self) -> MetricRegistry:
        return self._metrics

    @property
    def activities(self) -> ActivitySessionManager:
        return self._activities

    @property
    def logs(self) -> LogGate:
        return self._logs

    @property
    def tracer_provider(self) -> ProxyTracerProvider:
        return self._tracer_provider

    @property
    def meter_provider(self) -> ProxyMeterProvider:
        return self._meter_provider

    # Lifecycle

    def on_ready(
        self,
        config: TelemetryConfig | None = None,
        *,
        background: bool = False,
    ) -> threading.Thread | None:
        """Host startup hook: run bootstrap.

        Args:
            config: Replaces the configuration given at construction.
            background: Run bootstrap on a daemon thread and return it.

        Returns:
            The bootstrap thread when ``background`` is set, else None.
        """
        if not background:
            self.bootstrap(config)
            return None
        thread = threading.Thread(target=self.bootstrap, args=(config,), name="otelbridge-bootstrap", daemon=True)
        thread.start()
        return thread

    def bootstrap(self, config: TelemetryConfig | None = None) -> bool:
        """Build the backend and wire the registries to it. Runs once.

        Failures are logged and leave the bridge running without a backend.

        Args:
            config: Replaces the configuration given at construction.

        Returns:
            True if the backend is enabled.
        """
        with self._lifecycle_lock:
            if self._bootstrapped:
                return self._enabled
            self._bootstrapped = True
            if config is not None:
                self._config = config

            self._logs.current_log_level = self._config.level
            if not self._config.enabled:
                logger.info("telemetry_disabled", service=self._config.service_name)
                return False

            try:
                backend = build_backend(self._config, self._exporters_factory)
            except Exception as e:
                logger.error(
                    "telemetry_bootstrap_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    collector=self._config.collector_host,
                )
                self._enabled = False
                return False

            self._backend = backend
            self._tracer_provider.set_provider(backend.tracer_provider)
            self._meter_provider.set_provider(backend.meter_provider)
            self._metrics.rebind()
            self._logs.records_logger.addHandler(backend.log_handler)
            self._enabled = True

        logger.info("telemetry_enabled", service=self._config.service_name, level=self._config.level.name)
        return True

    def on_shutdown(self) -> None:
        """Host teardown hook: release the backend. Later calls do nothing."""
        with self._lifecycle_lock:
            backend, self._backend = self._backend, None
            self._enabled = False
            if backend is None:
                return
            self._logs.records_logger.removeHandler(backend.log_handler)
            self._tracer_provider.reset()
            self._meter_provider.reset()
            self._metrics.rebind()

        try:
            backend.shutdown()
        except Exception as e:
            logger.error("telemetry_shutdown_failed", error=str(e))
        else:
            logger.info("telemetry_shutdown")

    def force_flush(self, timeout_millis: int = constants.EXPORT_TIMEOUT_MILLIS) -> bool:
        """Force flush all pending telemetry.

        Returns:
            True if flush succeeded or there is nothing to flush.
        """
        backend = self._backend
        if backend is None:
            return True
        return backend.force_flush(timeout_millis)

    # Metrics

    def create_metric(
        self,
        name: str,
        metric_type: str,
        unit: str | None = None,
        description: str | None = None,
        long_callback: LongProducer | None = None,
        double_callback: DoubleProducer | None = None,
    ) -> None:
        """Register a metric instrument by name. See MetricRegistry.create_metric.

        Raises:
            InvalidMetricTypeError: If ``metric_type`` is not a known kind.
        """
        self._metrics.create_metric(name, metric_type, unit, description, long_callback, double_callback)

    def add_to_metric(self, name: str, value: int | float, tags: HostTags | None = None) -> None:
        self._metrics.add_to_metric(name, value, self._convert(tags))

    def record_to_histogram(self, name: str, value: int | float, tags: HostTags | None = None) -> None:
        self._metrics.record_to_histogram(name, value, self._convert(tags))

    # Activities

    def start_activity(self, name: str, tags: HostTags | None = None) -> str:
        """Start a span and return its session id, or ``""`` if none was started."""
        return self._activities.start_activity(name, self._convert(tags))

    def stop_activity(self, session_id: str) -> None:
        self._activities.stop_activity(session_id)

    def add_tags_to_activity(self, session_id: str, tags: HostTags | None) -> None:
        self._activities.add_tags_to_activity(session_id, self._convert(tags))

    # Logs

    def log_with_level(
        self,
        level: LogLevelType,
        section: str,
        message: str,
        tags: HostTags | None = None,
        error: BaseException | None = None,
    ) -> None:
        self._logs.log_with_level(level, section, message, self._convert(tags), error)

    def log(self, level: str | int | None, section: str, message: str, tags: HostTags | None = None) -> None:
        """Log at a level given by name, defaulting to Information."""
        self._logs.log(level, section, message, self._convert(tags))

    def log_trace(self, section: str, message: str, tags: HostTags | None = None) -> None:
        self._logs.log_trace(section, message, self._convert(tags))

    def log_debug(self, section: str, message: str, tags: HostTags | None = None) -> None:
        self._logs.log_debug(section, message, self._convert(tags))

    def log_information(self, section: str, message: str, tags: HostTags | None = None) -> None:
        self._logs.log_information(section, message, self._convert(tags))

    def log_warning(self, section: str, message: str, tags: HostTags | None = None) -> None:
        self._logs.log_warning(section, message, self._convert(tags))

    def log_error(self, section: str, message: str, tags: HostTags | None = None) -> None:
        self._logs.log_error(section, message, self._convert(tags))

    def log_critical(self, section: str, message: str, tags: HostTags | None = None) -> None:
        self._logs.log_critical(section, message, self._convert(tags))

    def get_current_log_level(self) -> int:
        return self._logs.get_current_log_level()

    @staticmethod
    def _convert(tags: HostTags | None) -> TagPairs:
        try:
            return convert_tags(tags)
        except (TypeError, ValueError) as e:
            logger.error("invalid_tags", error=str(e))
            return ()


# Global singleton instance
_default_instance: TelemetryBridge | None = None
_default_lock = threading.Lock()


def get_default_instance() -> TelemetryBridge:
    """Get the process default TelemetryBridge.

    Creates the instance lazily on first access, configured from the
    environment.
    """
    global _default_instance
    if _default_instance is None:
        with _default_lock:
            if _default_instance is None:
                _default_instance = TelemetryBridge()
    return _default_instance


def on_ready(config: TelemetryConfig | None = None, *, background: bool = False) -> threading.Thread | None:
    """Run bootstrap on the default instance.

    Example:
        >>> import otelbridge
        >>> otelbridge.on_ready(otelbridge.TelemetryConfig.from_mapping(settings))
    """
    return get_default_instance().on_ready(config, background=background)


def on_shutdown() -> None:
    get_default_instance().on_shutdown()


def create_metric(
    name: str,
    metric_type: str,
    unit: str | None = None,
    description: str | None = None,
    long_callback: LongProducer | None = None,
    double_callback: DoubleProducer | None = None,
) -> None:
    get_default_instance().create_metric(name, metric_type, unit, description, long_callback, double_callback)


def add_to_metric(name: str, value: int | float, tags: HostTags | None = None) -> None:
    get_default_instance().add_to_metric(name, value, tags)


def record_to_histogram(name: str, value: int | float, tags: HostTags | None = None) -> None:
    get_default_instance().record_to_histogram(name, value, tags)


def start_activity(name: str, tags: HostTags | None = None) -> str:
    return get_default_instance().start_activity(name, tags)


def stop_activity(session_id: str) -> None:
    get_default_instance().stop_activity(session_id)


def add_tags_to_activity(session_id: str, tags: HostTags | None) -> None:
    get_default_instance().add_tags_to_activity(session_id, tags)


def log_with_level(
    level: LogLevelType,
    section: str,
    message: str,
    tags: HostTags | None = None,
    error: BaseException | None = None,
) -> None:
    get_default_instance().log_with_level(level, section, message, tags, error)


def log(level: str | int | None, section: str, message: str, tags: HostTags | None = None) -> None:
    get_default_instance().log(level, section, message, tags)


def log_trace(section: str, message: str, tags: HostTags | None = None) -> None:
    get_default_instance().log_trace(section, message, tags)


def log_debug(section: str, message: str, tags: HostTags | None = None) -> None:
    get_default_instance().log_debug(section, message, tags)


def log_information(section: str, message: str, tags: HostTags | None = None) -> None:
    get_default_instance().log_information(section, message, tags)


def log_warning(section: str, message: str, tags: HostTags | None = None) -> None:
    get_default_instance().log_warning(section, message, tags)


def log_error(section: str, message: str, tags: HostTags | None = None) -> None:
    get_default_instance().log_error(section, message, tags)


def log_critical(section: str, message: str, tags: HostTags | None = None) -> None:
    get_default_instance().log_critical(section, message, tags)


def get_current_log_level() -> int:
    return get_default_instance().get_current_log_level()
