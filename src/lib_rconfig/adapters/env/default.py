"""Environment adapter.

Purpose
-------
Read the process environment and process options that steer ``lib_rconfig``
and turn them into a :class:`~lib_rconfig.domain.settings.Settings` value for a
single call. Also hosts the textual value coercion shared by the command-line
and delimited-text adapters.

Key behaviours
--------------
* Snapshots ``os.environ`` (or an injected mapping) and
  :func:`lib_rconfig.options.snapshot` once per call; nothing is written.
* Locates the default configuration file via ``R_RCONFIG_FILE``.
* :func:`override_environ` offers scoped environment overrides restored on
  every exit path, for callers that want process-level defaults across calls.
* Performs light type coercion for common scalar types (bools, ints, floats,
  ``null``/``none``).
"""

from __future__ import annotations

import os
import re
from contextlib import contextmanager
from typing import Any, Final, Iterator, Mapping

from ... import options as _options
from ...domain.settings import DEFAULT_FILE, FILE_ENV, FLAGS, Settings, resolve_settings
from ...observability import Event, log_debug

_INT_PATTERN: Final[re.Pattern[str]] = re.compile(r"[-+]?[0-9]+")
_FLOAT_PATTERN: Final[re.Pattern[str]] = re.compile(r"[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?")


def current_settings(
    *,
    environ: Mapping[str, str] | None = None,
    evaluate: Any = None,
    flatten: Any = None,
    debug: Any = None,
    sep: Any = None,
) -> Settings:
    """Return the effective settings for one call.

    Why
    ----
    Call-time overrides must not leak into the process; resolving from
    snapshots keeps each call self-contained.

    Parameters
    ----------
    environ:
        Mapping to read from. Defaults to :data:`os.environ`.
    evaluate / flatten / debug / sep:
        Call-time overrides; ``None`` defers to the environment, then options.

    Side Effects
    ------------
    Emits a ``settings_resolved`` debug event.

    Examples
    --------
    >>> current_settings(environ={"R_RCONFIG_FLATTEN": "true"}, debug=True)
    Settings(evaluate=True, flatten=True, debug=True, sep='=')
    """

    source = os.environ if environ is None else environ
    settings = resolve_settings(
        environ=dict(source),
        options=_options.snapshot(),
        evaluate=evaluate,
        flatten=flatten,
        debug=debug,
        sep=sep,
    )
    log_debug(Event.SETTINGS_RESOLVED, kind="settings", token=None, **settings.as_dict())
    return settings


def default_config_file(environ: Mapping[str, str] | None = None) -> str:
    """Return the default configuration file name or URL.

    Examples
    --------
    >>> default_config_file({})
    'rconfig.yml'
    >>> default_config_file({"R_RCONFIG_FILE": "conf/app.json"})
    'conf/app.json'
    """

    source = os.environ if environ is None else environ
    return source.get(FILE_ENV) or DEFAULT_FILE


@contextmanager
def override_environ(*, environ: dict[str, str] | None = None, **flags: Any) -> Iterator[None]:
    """Temporarily export behavior flags as environment variables.

    Each keyword names a flag (``evaluate``, ``flatten``, ``debug``, ``sep``);
    ``None`` values are ignored. On exit, normal or not, every touched
    variable is restored to its previous value or removed when it was absent.

    Examples
    --------
    >>> env: dict[str, str] = {}
    >>> with override_environ(environ=env, debug=True):
    ...     env["R_RCONFIG_DEBUG"]
    'true'
    >>> env
    {}
    """

    target: Any = os.environ if environ is None else environ
    unknown = sorted(set(flags) - set(FLAGS))
    if unknown:
        raise TypeError(f"Unknown behavior flags: {', '.join(unknown)}")
    previous: dict[str, str | None] = {}
    try:
        for name, value in flags.items():
            if value is None:
                continue
            variable = FLAGS[name].env
            previous[variable] = target.get(variable)
            target[variable] = _export(value)
        yield
    finally:
        for variable, value in previous.items():
            if value is None:
                target.pop(variable, None)
            else:
                target[variable] = value


def _export(value: Any) -> str:
    """Render *value* the way the resolver reads it back."""

    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def coerce_value(value: str) -> object:
    """Coerce textual values to Python primitives where possible.

    Why
    ----
    Convert human-friendly strings (``true``, ``5``, ``3.14``) into their Python
    equivalents before merging. Only plain decimal or exponent literals become
    numbers; words such as ``nan`` or ``inf`` and ``1_000`` stay strings.

    Returns
    -------
    object
        Parsed primitive or original string when coercion is not possible.

    Examples
    --------
    >>> coerce_value('true'), coerce_value('10'), coerce_value('3.5'), coerce_value('hello')
    (True, 10, 3.5, 'hello')
    """

    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    if _INT_PATTERN.fullmatch(value):
        return int(value)
    if _FLOAT_PATTERN.fullmatch(value):
        return float(value)
    return value
