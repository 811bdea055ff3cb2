"""Structured logging for source loading, merging and expression evaluation.

Purpose
    Every diagnostic ``lib_rconfig`` emits goes through this module under one
    of the names in :class:`Event`, with a ``context`` dict that carries the
    source ``kind``, its ``token`` (path, URL or literal text) and the active
    trace id. The package logger stays silent until the host attaches a handler.

Contents
    - ``Event``: the closed set of event names.
    - ``TRACE_ID``: context variable holding the trace id of the current call.
    - ``get_logger`` / ``bind_trace_id``.
    - ``log_debug`` / ``log_info`` / ``log_error``.

System Integration
    Adapters and ``core`` log; ``domain`` (merge, flatten) does not.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from enum import Enum
from typing import Any, Final, Mapping


class Event(str, Enum):
    """Names of the log records emitted by the package."""

    SETTINGS_RESOLVED = "settings_resolved"
    ARGUMENTS_SPLIT = "arguments_split"
    DEFAULT_FILE_MISSING = "default_file_missing"
    CONFIG_FILE_READ = "config_file_read"
    CONFIG_FILE_LOADED = "config_file_loaded"
    CONFIG_FILE_INVALID = "config_file_invalid"
    CONFIG_URL_FAILED = "config_url_failed"
    EXPRESSION_EVALUATED = "expression_evaluated"
    EXPRESSION_REJECTED = "expression_rejected"
    EXPRESSION_FAILED = "expression_failed"
    SOURCE_LOADED = "source_loaded"
    SOURCE_ERROR = "source_error"
    CONFIGURATION_MERGED = "configuration_merged"
    CONFIGURATION_EMPTY = "configuration_empty"


TRACE_ID: ContextVar[str | None] = ContextVar("lib_rconfig_trace_id", default=None)

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_rconfig")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the package logger so applications can attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the trace id attached to subsequent records.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(event: Event, **fields: Any) -> None:
    _emit(logging.DEBUG, event, fields)


def log_info(event: Event, **fields: Any) -> None:
    _emit(logging.INFO, event, fields)


def log_error(event: Event, **fields: Any) -> None:
    _emit(logging.ERROR, event, fields)


def _emit(level: int, event: Event, fields: Mapping[str, Any]) -> None:
    """Log *event* by its plain name with ``fields`` plus the trace id as context."""

    context: dict[str, Any] = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    _LOGGER.log(level, event.value, extra={"context": context})
