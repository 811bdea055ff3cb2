"""Composition root for ``lib_rconfig``.

Purpose
-------
Provide the single entry point that orchestrates flag resolution, source
loading, expression evaluation, merge policy enforcement and the optional
flatten step. It wires the adapters to the domain value objects and exports
only stable, consumer-ready APIs.

Contents
--------
* :class:`SourceLoadError` – error raised when a source fails to materialise.
* :func:`rconfig` – high-level API returning an :class:`RConfig` instance.
* :func:`config_list` – lower-level API returning the ordered source
  descriptors.
* :func:`load_source` – load one file or URL in isolation.
* :func:`_load_file` / :func:`_explicit_mapping` – internal helpers used by the
  composition flow.

System Role
-----------
This module connects adapters (files, URLs, command-line arguments, the
environment) with the domain while emitting structured observability signals.
It is the canonical location for adjusting precedence rules or wiring new
adapters.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Union

from .adapters.cli_args.default import DefaultArgumentSplitter
from .adapters.env.default import current_settings, default_config_file
from .adapters.expressions.default import DefaultExpressionEvaluator
from .adapters.file_loaders.structured import JSONFileLoader, loader_for
from .application.merge import build_trace, merge_sources
from .application.ports import ArgumentSplitter, ExpressionEvaluator, TextLoader
from .domain.config import EMPTY_CONFIG, RConfig, SourceDescriptor, SourceKind, Trace
from .domain.errors import ConfigError, NamingError, NotFound, SourceError
from .domain.flatten import flatten as flatten_mapping
from .domain.settings import Settings
from .observability import Event, bind_trace_id, log_debug, log_error, log_info

PathInput = Union[str, "os.PathLike[str]"]
MappingInput = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]

_SPLITTER: ArgumentSplitter = DefaultArgumentSplitter()
_EVALUATOR: ExpressionEvaluator = DefaultExpressionEvaluator()
_JSON_LOADER: TextLoader = JSONFileLoader()


class SourceLoadError(SourceError):
    """Raised when a configuration source cannot be materialised.

    Why
    ----
    The composition root needs to surface adapter failures using the domain
    error taxonomy so callers can catch a single exception family while still
    learning which source broke.

    What
    -----
    Wraps :class:`SourceError` or :class:`NotFound` raised by an adapter and
    records the source ``kind`` and its ``token`` (path, URL or JSON text).

    Examples
    --------
    >>> error = SourceLoadError(SourceKind.FILE, "app.yml", "broken")
    >>> error.kind, error.token, str(error)
    ('file', 'app.yml', 'Failed to load file source app.yml: broken')
    """

    def __init__(self, kind: SourceKind, token: str, reason: str) -> None:
        super().__init__(f"Failed to load {kind.value} source {token}: {reason}")
        self.kind = kind.value
        self.token = token


def rconfig(
    file: PathInput | Sequence[PathInput] | None = None,
    mapping: MappingInput | None = None,
    *,
    evaluate: Any = None,
    flatten: Any = None,
    debug: Any = None,
    sep: Any = None,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    encoding: str = "utf-8",
) -> RConfig:
    """Return the merged configuration as an :class:`RConfig` value object.

    Why
    ----
    Consumers need one call that collects every configured source, applies
    the precedence rules and hands back an immutable mapping.

    What
    ----
    Resolves the behavior flags, builds the ordered sources with
    :func:`config_list`, deep merges them, flattens the result when requested
    and attaches a provenance trace in debug mode. Returns
    :data:`EMPTY_CONFIG` when no source produced content.

    Parameters
    ----------
    file:
        One path/URL or a sequence of them, applied after the command-line
        sources in the given order.
    mapping:
        Mapping (or ``(key, value)`` pairs) applied last.
    evaluate / flatten / debug / sep:
        Call-time overrides of the behavior flags; ``None`` defers to
        ``R_RCONFIG_*`` variables, then to :mod:`lib_rconfig.options`.
    argv:
        Command-line arguments to read ``-j``/``-f``/``--a.b`` flags from.
        Defaults to ``sys.argv[1:]``.
    environ:
        Environment mapping to read. Defaults to :data:`os.environ`; it is
        only read, never written.
    encoding:
        Text encoding for files and URLs.

    Side Effects
    ------------
    Emits structured logging events for each loaded source and resets the
    active trace identifier via :func:`bind_trace_id`.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> base = Path(tmp.name) / "rconfig.yml"
    >>> _ = base.write_text("db:\\n  host: a\\n  port: 5432\\n", encoding="utf-8")
    >>> cfg = rconfig(mapping={"db": {"host": "b"}}, argv=[], environ={"R_RCONFIG_FILE": str(base)})
    >>> cfg.as_dict()
    {'db': {'host': 'b', 'port': 5432}}
    >>> rconfig(argv=["--db.host", "c"], environ={"R_RCONFIG_FILE": str(base)}, flatten=True).as_dict()
    {'db.host': 'c', 'db.port': 5432}
    >>> tmp.cleanup()
    """

    bind_trace_id(None)
    settings = current_settings(environ=environ, evaluate=evaluate, flatten=flatten, debug=debug, sep=sep)
    sources = config_list(file, mapping, settings=settings, argv=argv, environ=environ, encoding=encoding)
    if not sources:
        log_info(Event.CONFIGURATION_EMPTY, kind="none", token=None)
        return EMPTY_CONFIG

    merged = merge_sources(sources)
    if settings.flatten:
        merged = flatten_mapping(merged)
    trace = build_trace(sources) if settings.debug else None
    log_info(Event.CONFIGURATION_MERGED, kind="merged", token=None, total_sources=len(sources), flattened=settings.flatten)
    return RConfig(merged, trace)


def config_list(
    file: PathInput | Sequence[PathInput] | None = None,
    mapping: MappingInput | None = None,
    *,
    settings: Settings,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    encoding: str = "utf-8",
) -> list[SourceDescriptor]:
    """Return the non-empty configuration sources in precedence order.

    Why
    ----
    Tooling sometimes needs the individual sources (for diagnostics or custom
    merging) rather than the merged :class:`RConfig`.

    What
    ----
    Loads, in order: the default file, each ``-j``/``-f`` argument, the
    remaining hierarchical flags as one source, each ``file`` entry, and
    ``mapping``. Expressions are evaluated per source when
    ``settings.evaluate`` is on; empty sources are dropped.

    Raises
    ------
    SourceLoadError
        A source failed to load, parse or evaluate (a missing default file is
        skipped instead).
    NamingError
        ``mapping`` repeats a key, or command-line flags conflict.

    Examples
    --------
    >>> sources = config_list(
    ...     mapping={"a": 1},
    ...     settings=Settings(),
    ...     argv=["-j", '{"a": 0, "b": 2}'],
    ...     environ={"R_RCONFIG_FILE": "missing.yml"},
    ... )
    >>> [(source.kind.value, source.trace["kind"]) for source in sources]
    [('inline-string', 'json'), ('explicit-mapping', 'list')]
    """

    arguments = list(sys.argv[1:] if argv is None else argv)
    collected: list[SourceDescriptor] = []

    default_path = default_config_file(environ)
    try:
        default_data = _load_file(SourceKind.DEFAULT_FILE, default_path, settings=settings, encoding=encoding)
    except NotFound:
        log_debug(Event.DEFAULT_FILE_MISSING, kind=SourceKind.DEFAULT_FILE.value, token=default_path)
    else:
        collected.append(_descriptor(SourceKind.DEFAULT_FILE, default_data, Trace(kind="file", value=default_path)))

    items, flags, flag_text = _SPLITTER.split(arguments)
    for flag_kind, value in items:
        if flag_kind == "json":
            data = _load_json(value, settings=settings)
            collected.append(_descriptor(SourceKind.INLINE_STRING, data, Trace(kind="json", value=value)))
        else:
            data = _load_required(SourceKind.FILE, value, settings=settings, encoding=encoding)
            collected.append(_descriptor(SourceKind.FILE, data, Trace(kind="file", value=value)))

    if flags:
        data = _evaluate(SourceKind.CLI_DERIVED, flag_text, flags, settings)
        collected.append(_descriptor(SourceKind.CLI_DERIVED, data, Trace(kind="args", value=flag_text)))

    for path in _file_arguments(file):
        data = _load_required(SourceKind.FILE, path, settings=settings, encoding=encoding)
        collected.append(_descriptor(SourceKind.FILE, data, Trace(kind="file", value=path)))

    if mapping is not None:
        data = _evaluate(SourceKind.EXPLICIT_MAPPING, "mapping", _explicit_mapping(mapping), settings)
        collected.append(_descriptor(SourceKind.EXPLICIT_MAPPING, data, Trace(kind="list", value=None)))

    sources = [source for source in collected if source.data]
    for source in sources:
        log_debug(Event.SOURCE_LOADED, kind=source.kind.value, token=_token(source.trace), keys=len(source.data))
    return sources


def load_source(path: PathInput, *, settings: Settings | None = None, encoding: str = "utf-8") -> dict[str, Any]:
    """Load a single file or URL with the loader matching its suffix.

    Used by tooling that inspects one source in isolation (the ``flatten`` and
    ``nest`` CLI commands). Expressions are evaluated per *settings*, which
    default to the current environment.

    Raises
    ------
    SourceLoadError
        The source is missing or cannot be parsed.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / "app.json"
    >>> _ = target.write_text('{"db.host": "a"}', encoding="utf-8")
    >>> load_source(target, settings=Settings())
    {'db.host': 'a'}
    >>> tmp.cleanup()
    """

    effective = current_settings() if settings is None else settings
    data = _load_required(SourceKind.FILE, os.fspath(path), settings=effective, encoding=encoding)
    return dict(data)


def _descriptor(kind: SourceKind, data: Mapping[str, Any], trace: Trace) -> SourceDescriptor:
    return SourceDescriptor(kind, data, trace)


def _token(trace: Trace) -> str | None:
    value = trace["value"]
    return value if isinstance(value, str) else None


def _load_file(kind: SourceKind, path: str, *, settings: Settings, encoding: str) -> Mapping[str, Any]:
    """Load and evaluate *path*; ``NotFound`` propagates, other failures are wrapped.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / "app.txt"
    >>> _ = target.write_text("service.cores: !expr 1 + 1\\n", encoding="utf-8")
    >>> _load_file(SourceKind.FILE, str(target), settings=Settings(sep=":"), encoding="utf-8")
    {'service': {'cores': 2}}
    >>> tmp.cleanup()
    """

    loader = loader_for(path, sep=settings.sep, encoding=encoding)
    try:
        data = loader.load(path)
    except SourceError as exc:
        log_error(Event.SOURCE_ERROR, kind=kind.value, token=path, error=str(exc))
        raise SourceLoadError(kind, path, str(exc)) from exc
    return _evaluate(kind, path, data, settings)


def _load_required(kind: SourceKind, path: str, *, settings: Settings, encoding: str) -> Mapping[str, Any]:
    """Load an explicitly requested file; absence is an error."""

    try:
        return _load_file(kind, path, settings=settings, encoding=encoding)
    except NotFound as exc:
        log_error(Event.SOURCE_ERROR, kind=kind.value, token=path, error=str(exc))
        raise SourceLoadError(kind, path, str(exc)) from exc


def _load_json(text: str, *, settings: Settings) -> Mapping[str, Any]:
    try:
        data = _JSON_LOADER.loads(text)
    except SourceError as exc:
        log_error(Event.SOURCE_ERROR, kind=SourceKind.INLINE_STRING.value, token=text, error=str(exc))
        raise SourceLoadError(SourceKind.INLINE_STRING, text, str(exc)) from exc
    return _evaluate(SourceKind.INLINE_STRING, text, data, settings)


def _evaluate(kind: SourceKind, token: str, data: Mapping[str, Any], settings: Settings) -> Mapping[str, Any]:
    try:
        return _EVALUATOR.evaluate(data, enabled=settings.evaluate)
    except SourceError as exc:
        raise SourceLoadError(kind, token, str(exc)) from exc


def _file_arguments(file: PathInput | Sequence[PathInput] | None) -> list[str]:
    """Normalise the ``file`` argument to a list of strings.

    Examples
    --------
    >>> _file_arguments(None), _file_arguments("a.yml"), _file_arguments(["a.yml", "b.json"])
    ([], ['a.yml'], ['a.yml', 'b.json'])
    """

    if file is None:
        return []
    if isinstance(file, (str, os.PathLike)):
        return [os.fspath(file)]
    return [os.fspath(entry) for entry in file]


def _explicit_mapping(mapping: MappingInput) -> dict[str, Any]:
    """Return *mapping* as a dict, rejecting repeated keys in pair input.

    Examples
    --------
    >>> _explicit_mapping([("a", 1), ("b", 2)])
    {'a': 1, 'b': 2}
    >>> _explicit_mapping([("a", 1), ("a", 2)])
    Traceback (most recent call last):
    ...
    lib_rconfig.domain.errors.NamingError: Names not unique: 'a'
    """

    if isinstance(mapping, Mapping):
        return dict(mapping)
    result: dict[str, Any] = {}
    duplicated: list[str] = []
    for key, value in mapping:
        if key in result:
            duplicated.append(key)
        result[key] = value
    if duplicated:
        raise NamingError(f"Names not unique: {', '.join(map(repr, duplicated))}")
    return result


__all__ = [
    "ConfigError",
    "RConfig",
    "SourceLoadError",
    "config_list",
    "load_source",
    "rconfig",
]
