"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by adapters, the composition root, and
consuming applications. The hierarchy lives in the domain layer so the
flatten/nest transform and the merge policy can raise it without importing any
adapter.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration-related
  issues.
* :class:`NamingError` – missing, duplicated, dotted, or conflicting names.
* :class:`ConsistencyError` – the flatten → nest round trip did not reproduce
  the input.
* :class:`SourceError` – a file, URL, or string failed to parse.
* :class:`ExpressionError` – an ``!expr`` leaf failed to evaluate.
* :class:`NotFound` – raised when an optional configuration resource is missing.

System Role
-----------
Adapters raise :class:`SourceError` / :class:`NotFound`; the composition root
wraps them in :class:`lib_rconfig.core.SourceLoadError` with the offending
source attached. Callers catch :class:`ConfigError` to handle all library
failures uniformly.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_rconfig``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class NamingError(ConfigError):
    """Raised when configuration keys cannot be represented unambiguously.

    Typical Sources
    ---------------
    Empty or non-string keys, keys containing the ``.`` separator, duplicated
    top-level names in an explicit mapping, and flat keys that imply
    conflicting structure when nested.
    """


class ConsistencyError(ConfigError):
    """Signals that flattening and re-nesting did not reproduce the input.

    Why
    ----
    The flatten transform verifies itself; a mismatch means the input hit a
    known limitation (empty containers, sequences of mappings, name
    collisions below the top level) and must not be returned half-correct.
    """


class SourceError(ConfigError):
    """Raised when an input artifact cannot be parsed into structured data.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`json`, :mod:`yaml`, the delimited text
    parser), URL fetching, and inline JSON strings.
    """


class ExpressionError(SourceError):
    """Raised when an ``!expr`` leaf cannot be evaluated."""


class NotFound(ConfigError):
    """Represents missing-but-optional resources (files, URLs).

    Why
    ----
    Allow adapters to signal absence without deciding whether it is fatal. The
    composition root skips a missing default file and rejects any other.
    """
