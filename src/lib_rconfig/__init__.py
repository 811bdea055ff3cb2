"""Public package surface of ``lib_rconfig``.

``rconfig()`` merges the default file, command-line JSON strings, files and
hierarchical flags, explicit files and an explicit mapping into one immutable
:class:`RConfig`. The flatten/nest transform, the merge helpers, the behavior
flag resolvers and the error taxonomy are re-exported for tooling.
"""

from __future__ import annotations

from .adapters.env.default import override_environ
from .application.merge import build_trace, deep_merge, merge_sources
from .core import SourceLoadError, config_list, load_source, rconfig
from .domain.config import EMPTY_CONFIG, RConfig, SourceDescriptor, SourceKind, Trace
from .domain.errors import ConfigError, ConsistencyError, ExpressionError, NamingError, NotFound, SourceError
from .domain.flatten import flatten, nest
from .domain.settings import Settings, resolve_flag, resolve_settings
from .observability import Event, bind_trace_id, get_logger
from .options import get_option, option_context, reset_option, set_option

__all__ = [
    "ConfigError",
    "ConsistencyError",
    "EMPTY_CONFIG",
    "Event",
    "ExpressionError",
    "NamingError",
    "NotFound",
    "RConfig",
    "Settings",
    "SourceDescriptor",
    "SourceError",
    "SourceKind",
    "SourceLoadError",
    "Trace",
    "bind_trace_id",
    "build_trace",
    "config_list",
    "deep_merge",
    "flatten",
    "get_logger",
    "get_option",
    "load_source",
    "merge_sources",
    "nest",
    "option_context",
    "override_environ",
    "rconfig",
    "reset_option",
    "resolve_flag",
    "resolve_settings",
    "set_option",
]
