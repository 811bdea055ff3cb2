"""Process-wide options consulted after environment variables.

Purpose
    Offer an in-process place to set behavior defaults (``rconfig.debug`` and
    friends) without exporting environment variables, and a way to expose
    values to ``!expr`` expressions through ``get_option``.

Contents
    - ``set_option`` / ``get_option`` / ``reset_option``: module-level registry.
    - ``option_context``: scoped assignment restored on exit.
    - ``snapshot``: read-only copy used when resolving settings.

System Integration
    :func:`lib_rconfig.adapters.env.default.current_settings` reads
    :func:`snapshot` once per call. The registry is shared by the whole
    process; concurrent callers that change options must serialise access.
"""

from __future__ import annotations

from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Iterator, Mapping

_OPTIONS: dict[str, Any] = {}
_UNSET = object()


def set_option(name: str, value: Any) -> None:
    """Set option *name* to *value*; ``None`` removes it.

    Examples
    --------
    >>> set_option("rconfig.debug", True)
    >>> get_option("rconfig.debug")
    True
    >>> set_option("rconfig.debug", None)
    >>> get_option("rconfig.debug") is None
    True
    """

    if value is None:
        _OPTIONS.pop(name, None)
    else:
        _OPTIONS[name] = value


def get_option(name: str, default: Any = None) -> Any:
    """Return option *name* or *default* when it is not set."""

    return _OPTIONS.get(name, default)


def reset_option(name: str) -> None:
    """Remove option *name* if present."""

    _OPTIONS.pop(name, None)


def snapshot() -> Mapping[str, Any]:
    """Return a read-only copy of the current options."""

    return MappingProxyType(dict(_OPTIONS))


@contextmanager
def option_context(**options: Any) -> Iterator[None]:
    """Temporarily set options, restoring previous values on every exit path.

    Keyword names use ``_`` in place of ``.`` (``rconfig_debug`` sets
    ``rconfig.debug``).

    Examples
    --------
    >>> with option_context(rconfig_flatten=True):
    ...     get_option("rconfig.flatten")
    True
    >>> get_option("rconfig.flatten") is None
    True
    """

    names = {key.replace("_", ".", 1): value for key, value in options.items()}
    previous = {name: _OPTIONS.get(name, _UNSET) for name in names}
    try:
        for name, value in names.items():
            set_option(name, value)
        yield
    finally:
        for name, value in previous.items():
            if value is _UNSET:
                _OPTIONS.pop(name, None)
            else:
                _OPTIONS[name] = value


__all__ = ["get_option", "option_context", "reset_option", "set_option", "snapshot"]
