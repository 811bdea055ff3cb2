"""Application-layer merge policy.

Purpose
-------
Fold an ordered sequence of source payloads into a single configuration
mapping and describe which sources took part. Free of I/O so it can be reused
in alternative composition roots.

Contents
    - ``merge_sources``: public entry point driven by a simple loop.
    - ``deep_merge``: merge one mapping over another without mutating either.
    - ``build_trace``: provenance record for the merged sources.
    - ``_merge_mapping`` / ``_merge_branch``: recursive stanzas that keep the
      override rules readable.

System Role
-----------
Receives :class:`~lib_rconfig.domain.config.SourceDescriptor` instances from
:func:`lib_rconfig.core.config_list` in precedence order (default file → JSON
and file flags → other flags → ``file`` argument → explicit mapping) and
returns the data wrapped by :class:`~lib_rconfig.domain.config.RConfig`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, Sequence

from ..domain.config import SourceDescriptor, Trace, _deepcopy_mapping


def merge_sources(sources: Iterable[SourceDescriptor | Mapping[str, Any]]) -> dict[str, Any]:
    """Merge *sources* left to right; later sources win key by key.

    Why
    ----
    Centralising merge semantics keeps precedence deterministic regardless of
    how the sources were produced.

    What
    ----
    Starts from an empty mapping and applies :func:`deep_merge` for each
    source. Accepts descriptors or plain mappings.

    Examples
    --------
    >>> merge_sources([{"db": {"host": "a"}}, {"db": {"port": 5432}}, {"db": {"host": "b"}}])
    {'db': {'host': 'b', 'port': 5432}}
    >>> merge_sources([{"a": [1, 2]}, {"a": [3]}])
    {'a': [3]}
    """

    merged: dict[str, Any] = {}
    for source in sources:
        payload = source.data if isinstance(source, SourceDescriptor) else source
        merged = deep_merge(merged, payload)
    return merged


def deep_merge(base: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """Return *base* updated recursively with *incoming*.

    Both sides being mappings at a key triggers recursion; anything else is a
    wholesale replacement (sequences are never concatenated). Keys missing
    from *incoming* keep their *base* value. Neither argument is mutated.

    Examples
    --------
    >>> deep_merge({"a": 1, "n": {"x": 1}}, {"b": 2, "n": {"y": 2}})
    {'a': 1, 'n': {'x': 1, 'y': 2}, 'b': 2}
    >>> deep_merge({"n": {"x": 1}}, {"n": 3})
    {'n': 3}
    """

    target = _deepcopy_mapping(base)
    _merge_mapping(target, _deepcopy_mapping(incoming))
    return target


def _merge_mapping(target: dict[str, Any], incoming: Mapping[str, Any]) -> None:
    """Recursively merge ``incoming`` into ``target``."""

    for key, value in incoming.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), Mapping):
            _merge_branch(target, key, value)
        else:
            target[key] = value


def _merge_branch(target: dict[str, Any], key: str, value: Mapping[str, Any]) -> None:
    """Merge mapping ``value`` into the existing mapping at ``target[key]``."""

    container = dict(target[key])
    _merge_mapping(container, value)
    target[key] = container


def build_trace(sources: Sequence[SourceDescriptor]) -> Trace | None:
    """Describe which sources contributed, in application order.

    Returns ``None`` without sources, the source's own trace for a single
    source, and a ``merged`` node listing child traces otherwise.

    Examples
    --------
    >>> from lib_rconfig.domain.config import SourceKind
    >>> first = SourceDescriptor(SourceKind.FILE, {"a": 1}, {"kind": "file", "value": "a.yml"})
    >>> second = SourceDescriptor(SourceKind.EXPLICIT_MAPPING, {"a": 2})
    >>> build_trace([first])
    {'kind': 'file', 'value': 'a.yml'}
    >>> build_trace([first, second])
    {'kind': 'merged', 'value': [{'kind': 'file', 'value': 'a.yml'}, {'kind': 'list', 'value': None}]}
    """

    if not sources:
        return None
    if len(sources) == 1:
        return sources[0].trace
    return Trace(kind="merged", value=[source.trace for source in sources])


__all__ = ["build_trace", "deep_merge", "merge_sources"]
