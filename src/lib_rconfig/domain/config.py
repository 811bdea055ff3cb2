"""Domain-level configuration value objects.

Purpose
-------
Anchor the immutable :class:`RConfig` result and the per-source descriptors
that flow through the merge pipeline. This module belongs to the domain layer
and contains no I/O.

Contents
--------
* :class:`SourceKind` – the five kinds of configuration source, in precedence
  order.
* :class:`Trace` – provenance record of one source (or of a merge).
* :class:`SourceDescriptor` – one ordered, provenance-tagged unit of parsed
  configuration.
* :class:`RConfig` – ``Mapping`` implementation returned to callers, carrying
  an optional trace.
* :func:`_deepcopy_mapping` / :func:`_deepcopy_value` – helpers that clone
  nested mappings without relying on ``copy.deepcopy`` (which does not handle
  ``mappingproxy`` objects).
* :data:`EMPTY_CONFIG` – canonical empty instance.

System Role
-----------
:func:`lib_rconfig.core.config_list` produces :class:`SourceDescriptor`
instances, :mod:`lib_rconfig.application.merge` folds them, and
:func:`lib_rconfig.core.rconfig` wraps the outcome in :class:`RConfig`.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, TypedDict, TypeVar, Union, overload


class SourceKind(str, Enum):
    """Kinds of configuration source, listed from lowest to highest precedence."""

    DEFAULT_FILE = "default-file"
    INLINE_STRING = "inline-string"
    FILE = "file"
    CLI_DERIVED = "cli-derived"
    EXPLICIT_MAPPING = "explicit-mapping"


class Trace(TypedDict):
    """Describe where configuration came from.

    Attributes
    ----------
    kind:
        ``"file"`` (value is the path or URL), ``"json"`` (value is the JSON
        text), ``"args"`` (value is the consumed command-line text), ``"list"``
        (explicit mapping, value is ``None``) or ``"merged"`` (value lists the
        child traces in application order).
    value:
        Kind-specific payload, see above.
    """

    kind: str
    value: Union[str, list["Trace"], None]


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """One parsed configuration source.

    Attributes
    ----------
    kind:
        Logical source kind; also fixes its precedence slot.
    data:
        Nested mapping the source parsed to.
    trace:
        Provenance token recorded when debug mode is on.

    Examples
    --------
    >>> source = SourceDescriptor(SourceKind.FILE, {"a": 1}, {"kind": "file", "value": "a.yml"})
    >>> source.kind.value, source.trace["value"]
    ('file', 'a.yml')
    """

    kind: SourceKind
    data: Mapping[str, Any]
    trace: Trace = field(default_factory=lambda: Trace(kind="list", value=None))


T = TypeVar("T")


@dataclass(frozen=True, slots=True, eq=False)
class RConfig(MappingABC[str, Any]):
    """Immutable mapping returned by :func:`lib_rconfig.core.rconfig`.

    Why
    ----
    Callers require a read-only structure that behaves like a dictionary yet
    can explain, in debug mode, which sources produced it.

    Parameters
    ----------
    _data:
        Merged (and possibly flattened) mapping. Wrapped in a ``mappingproxy``
        during initialisation.
    trace:
        Provenance of the merge when debug mode was on, otherwise ``None``.

    Examples
    --------
    >>> cfg = RConfig({"db": {"host": "b", "port": 5432}})
    >>> cfg.get("db.port")
    5432
    >>> cfg.trace is None
    True
    >>> RConfig({"db.port": 5432}).get("db.port")
    5432
    """

    _data: Mapping[str, Any]
    trace: Trace | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "_data", _freeze_mapping(self._data))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def as_dict(self) -> dict[str, Any]:
        """Construct a deep (mutable) ``dict`` copy of the configuration tree.

        Examples
        --------
        >>> cfg = RConfig({"service": {"timeout": 5}})
        >>> clone = cfg.as_dict()
        >>> clone["service"]["timeout"] = 10
        >>> cfg.get("service.timeout")
        5
        """

        return _deepcopy_mapping(self._data)

    def to_json(self, *, indent: int | None = None, include_trace: bool = False) -> str:
        """Serialise the configuration to JSON.

        Parameters
        ----------
        indent:
            Optional indentation size passed to :func:`json.dumps`.
        include_trace:
            When ``True`` emit ``{"config": ..., "trace": ...}`` instead of the
            bare configuration.

        Examples
        --------
        >>> RConfig({"service": {"timeout": 5}}).to_json()
        '{"service":{"timeout":5}}'
        >>> RConfig({"a": 1}, {"kind": "list", "value": None}).to_json(include_trace=True)
        '{"config":{"a":1},"trace":{"kind":"list","value":null}}'
        """

        import json

        payload: Any = self.as_dict()
        if include_trace:
            payload = {"config": payload, "trace": self.trace}
        return json.dumps(payload, indent=indent, separators=(",", ":"), ensure_ascii=False)

    @overload
    def get(self, key: str, *, default: T) -> Any | T:  # type: ignore[override]
        ...

    @overload
    def get(self, key: str, *, default: None = ...) -> Any | None:  # type: ignore[override]
        ...

    def get(self, key: str, *, default: Any = None) -> Any:
        """Return the value stored under *key*, falling back to a dotted path.

        Flattened results hold dotted keys directly; nested results are
        walked segment by segment.

        Examples
        --------
        >>> cfg = RConfig({"service": {"timeout": 5}})
        >>> cfg.get("service.timeout")
        5
        >>> cfg.get("missing.path", default="fallback")
        'fallback'
        """

        if key in self._data:
            return self._data[key]
        return _resolve_dotted_path(self._data, key, default)


def _freeze_mapping(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return an immutable proxy around *mapping*."""

    return MappingProxyType(dict(mapping))


def _resolve_dotted_path(source: Mapping[str, Any], dotted: str, default: Any) -> Any:
    """Resolve *dotted* within *source*, returning *default* when missing."""

    current: Any = source
    for part in dotted.split("."):
        if not isinstance(current, MappingABC) or part not in current:
            return default
        current = current[part]
    return current


def _deepcopy_mapping(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively clone a mapping so callers receive a mutable copy.

    Examples
    --------
    >>> _deepcopy_mapping({"a": {"b": 1}})["a"]["b"]
    1
    """

    return {key: _deepcopy_value(value) for key, value in mapping.items()}


def _deepcopy_value(value: Any) -> Any:
    """Clone nested values while preserving container types where practical.

    Examples
    --------
    >>> _deepcopy_value({"nested": [1, 2]})
    {'nested': [1, 2]}
    >>> _deepcopy_value(("a", "b"))
    ('a', 'b')
    """

    if isinstance(value, MappingABC):
        return _deepcopy_mapping(value)
    if isinstance(value, list):
        return [_deepcopy_value(item) for item in value]
    if isinstance(value, (set, tuple)):
        return type(value)(_deepcopy_value(item) for item in value)
    return value


#: Shared empty configuration returned when no source produced content.
EMPTY_CONFIG = RConfig(MappingProxyType({}))
"""Canonical empty configuration returned by :func:`lib_rconfig.core.rconfig`."""
