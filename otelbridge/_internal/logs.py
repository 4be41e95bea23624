"""Severity gate and log emitter.

Records below the current level are dropped before anything else happens.
Records that pass are emitted inside a logging scope that carries the
caller's tags plus a ``section`` tag; the scope is a set of structlog
context variables, so scopes opened by the host around a call are carried
along as well.

Emission goes through a stdlib logger. Bootstrap attaches the OpenTelemetry
``LoggingHandler`` to it, which turns the record's extra fields into log
record attributes.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.contextvars import bound_contextvars, get_contextvars

from otelbridge._internal.constants import RECORDS_LOGGER_NAME, RESERVED_TAG_PREFIX, SECTION_TAG
from otelbridge._internal.enums import TRACE, LogLevelType, parse_log_level
from otelbridge._internal.tags import tags_to_attributes
from otelbridge.types import TagPairs

logger = structlog.get_logger("otelbridge")

# Attribute names a logging.LogRecord already owns; ``extra`` may not reuse them.
_RESERVED_RECORD_KEYS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _record_key(key: str) -> str:
    if key in _RESERVED_RECORD_KEYS:
        return f"{RESERVED_TAG_PREFIX}{key}"
    return key


def _caller_stacklevel() -> int:
    """Count the stack levels from the calling frame up to the first frame outside otelbridge."""
    frame = sys._getframe(1)
    stacklevel = 1
    while frame.f_back is not None:
        module = frame.f_globals.get("__name__", "")
        if module != "otelbridge" and not module.startswith("otelbridge."):
            break
        frame = frame.f_back
        stacklevel += 1
    return stacklevel


class LogGate:
    """Level-gated structured log emitter.

    Args:
        records_logger: Stdlib logger records are emitted on. Defaults to
            the ``otelbridge.records`` logger.
        level: Initial minimum severity.
    """

    def __init__(
        self,
        records_logger: logging.Logger | None = None,
        level: LogLevelType = LogLevelType.TRACE,
    ) -> None:
        if records_logger is None:
            records_logger = logging.getLogger(RECORDS_LOGGER_NAME)
            records_logger.propagate = False
        # The gate does the filtering; the logger must let everything through.
        records_logger.setLevel(TRACE)
        self._records = records_logger
        self._level = level

    @property
    def records_logger(self) -> logging.Logger:
        """Get the stdlib logger records are emitted on."""
        return self._records

    @property
    def current_log_level(self) -> LogLevelType:
        """Get the minimum severity that is emitted."""
        return self._level

    @current_log_level.setter
    def current_log_level(self, level: LogLevelType) -> None:
        self._level = level

    def get_current_log_level(self) -> int:
        """Get the ordinal of the current minimum severity."""
        return int(self._level)

    def is_enabled_for(self, level: LogLevelType) -> bool:
        """Check if records at ``level`` pass the gate."""
        return level >= self._level

    def log_with_level(
        self,
        level: LogLevelType,
        section: str,
        message: str,
        tags: TagPairs = (),
        error: BaseException | None = None,
    ) -> None:
        """Emit ``message`` at ``level`` inside a scope carrying ``tags`` and ``section``.

        Args:
            level: Record severity.
            section: Area of the application the record belongs to.
            message: Record body.
            tags: Converted tag pairs; a ``section`` key is overridden.
            error: Exception attached to the record.
        """
        if not self.is_enabled_for(level):
            return

        scope = tags_to_attributes(tags)
        scope[SECTION_TAG] = section
        try:
            with bound_contextvars(**scope):
                self._emit(level, message, error)
        except Exception as e:
            logger.error("telemetry_call_failed", section=section, operation="log", error=str(e))

    def _emit(self, level: LogLevelType, message: str, error: BaseException | None) -> None:
        extra: dict[str, Any] = {_record_key(key): value for key, value in get_contextvars().items()}
        self._records.log(
            level.stdlib_level,
            message,
            exc_info=error,
            extra=extra,
            stacklevel=_caller_stacklevel(),
        )

    def log(self, level: str | int | None, section: str, message: str, tags: TagPairs = ()) -> None:
        """Emit at a level given by name; unknown names mean Information."""
        self.log_with_level(parse_log_level(level), section, message, tags)

    def log_trace(self, section: str, message: str, tags: TagPairs = ()) -> None:
        self.log_with_level(LogLevelType.TRACE, section, message, tags)

    def log_debug(self, section: str, message: str, tags: TagPairs = ()) -> None:
        self.log_with_level(LogLevelType.DEBUG, section, message, tags)

    def log_information(self, section: str, message: str, tags: TagPairs = ()) -> None:
        self.log_with_level(LogLevelType.INFORMATION, section, message, tags)

    def log_warning(self, section: str, message: str, tags: TagPairs = ()) -> None:
        self.log_with_level(LogLevelType.WARNING, section, message, tags)

    def log_error(self, section: str, message: str, tags: TagPairs = ()) -> None:
        self.log_with_level(LogLevelType.ERROR, section, message, tags)

    def log_critical(self, section: str, message: str, tags: TagPairs = ()) -> None:
        self.log_with_level(LogLevelType.CRITICAL, section, message, tags)
