"""Behavior flags and their resolution rules.

Purpose
-------
Describe the four toggles that steer a configuration call (expression
evaluation, output flattening, debug tracing, text separator) and resolve them
from explicit inputs. The module is pure: environment and option snapshots are
passed in, nothing global is read or written here.

Contents
--------
* :class:`FlagSpec` – name, environment variable, option name, default.
* :data:`FLAGS` – the supported flags keyed by name.
* :class:`Settings` – effective values for one call.
* :func:`resolve_flag` / :func:`resolve_settings` – precedence
  ``override > environment > option > default``.
* :func:`coerce_bool` – lenient boolean parsing that never raises.

System Role
-----------
:mod:`lib_rconfig.adapters.env.default` snapshots ``os.environ`` and the
process options and hands them to :func:`resolve_settings`; the composition
root then threads the resulting :class:`Settings` through every loader.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Mapping

_TRUE: Final[frozenset[str]] = frozenset({"true", "t", "yes", "on", "1"})
_FALSE: Final[frozenset[str]] = frozenset({"false", "f", "no", "off", "0"})


@dataclass(frozen=True, slots=True)
class FlagSpec:
    """Static description of a behavior flag.

    Attributes
    ----------
    name:
        Attribute name on :class:`Settings`.
    env:
        Environment variable consulted second.
    option:
        Process option consulted third (see :mod:`lib_rconfig.options`).
    default:
        Built-in value used when nothing else is set; its type selects the
        coercion (``bool`` or ``str``).
    """

    name: str
    env: str
    option: str
    default: bool | str

    def coerce(self, value: Any) -> bool | str | None:
        """Coerce *value* to the flag type, ``None`` meaning "unset"."""

        if isinstance(self.default, bool):
            return coerce_bool(value)
        return coerce_str(value)


FLAGS: Final[dict[str, FlagSpec]] = {
    "evaluate": FlagSpec("evaluate", "R_RCONFIG_EVAL", "rconfig.eval", True),
    "flatten": FlagSpec("flatten", "R_RCONFIG_FLATTEN", "rconfig.flatten", False),
    "debug": FlagSpec("debug", "R_RCONFIG_DEBUG", "rconfig.debug", False),
    "sep": FlagSpec("sep", "R_RCONFIG_SEP", "rconfig.sep", "="),
}
"""Supported behavior flags keyed by :attr:`FlagSpec.name`."""

FILE_ENV: Final[str] = "R_RCONFIG_FILE"
"""Environment variable naming the default configuration file."""

DEFAULT_FILE: Final[str] = "rconfig.yml"
"""Default configuration file looked up in the working directory."""


@dataclass(frozen=True, slots=True)
class Settings:
    """Effective behavior flags for a single configuration call.

    Examples
    --------
    >>> Settings()
    Settings(evaluate=True, flatten=False, debug=False, sep='=')
    """

    evaluate: bool = True
    flatten: bool = False
    debug: bool = False
    sep: str = "="

    def as_dict(self) -> dict[str, bool | str]:
        return {"evaluate": self.evaluate, "flatten": self.flatten, "debug": self.debug, "sep": self.sep}


def coerce_bool(value: Any) -> bool | None:
    """Return *value* as ``bool`` or ``None`` when it cannot be interpreted.

    Examples
    --------
    >>> coerce_bool("TRUE"), coerce_bool("f"), coerce_bool(0), coerce_bool("maybe")
    (True, False, False, None)
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    return None


def coerce_str(value: Any) -> str | None:
    """Return *value* as a non-empty string or ``None``."""

    if value is None:
        return None
    text = str(value)
    return text if text else None


def resolve_flag(
    name: str,
    override: Any = None,
    *,
    environ: Mapping[str, str],
    options: Mapping[str, Any],
) -> bool | str:
    """Resolve flag *name* honouring ``override > environ > options > default``.

    Why
    ----
    A flag may be set per call, per shell, or per process; the most specific
    setting wins and unparseable values quietly fall through.

    Examples
    --------
    >>> resolve_flag("debug", environ={"R_RCONFIG_DEBUG": "yes"}, options={})
    True
    >>> resolve_flag("debug", False, environ={"R_RCONFIG_DEBUG": "yes"}, options={})
    False
    >>> resolve_flag("flatten", environ={"R_RCONFIG_FLATTEN": "??"}, options={"rconfig.flatten": 1})
    True
    >>> resolve_flag("sep", environ={}, options={})
    '='
    """

    spec = FLAGS[name]
    for candidate in (override, environ.get(spec.env), options.get(spec.option)):
        value = spec.coerce(candidate)
        if value is not None:
            return value
    return spec.default


def resolve_settings(
    *,
    environ: Mapping[str, str],
    options: Mapping[str, Any],
    evaluate: Any = None,
    flatten: Any = None,
    debug: Any = None,
    sep: Any = None,
) -> Settings:
    """Build the :class:`Settings` for one call from explicit snapshots."""

    overrides = {"evaluate": evaluate, "flatten": flatten, "debug": debug, "sep": sep}
    values = {name: resolve_flag(name, overrides[name], environ=environ, options=options) for name in FLAGS}
    return Settings(**values)  # type: ignore[arg-type]
