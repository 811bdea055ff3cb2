"""``!expr`` evaluation adapter.

Purpose
-------
Implement :class:`lib_rconfig.application.ports.ExpressionEvaluator`: walk a
parsed mapping and replace string leaves that start with ``"!expr "`` by the
value of the expression that follows.

Key behaviours
--------------
* Expressions run through :class:`simpleeval.EvalWithCompoundTypes`, so only
  literals, operators, comprehensions and the whitelisted callables below are
  available. Attribute names starting with ``_`` are rejected, which closes
  the ``().__class__`` escape route.
* Callables: a handful of pure builtins plus ``getenv`` (``os.environ.get``),
  ``get_option`` and ``cpu_count``. ``math`` exposes the public functions and
  constants of the standard module as attributes (``math.floor(2.7)``).
* With evaluation disabled the marked string is returned unchanged.
* Failures raise :class:`~lib_rconfig.domain.errors.ExpressionError` naming the
  expression text.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from types import SimpleNamespace
from typing import Any, Callable, Final

from simpleeval import EvalWithCompoundTypes, InvalidExpression

from ... import options as _options
from ...domain.errors import ExpressionError
from ...observability import Event, log_debug, log_error

EXPR_PREFIX: Final[str] = "!expr "
"""Marker prefix of string leaves holding an expression."""

SAFE_FUNCTIONS: Final[Mapping[str, Callable[..., Any]]] = {
    "abs": abs, "all": all, "any": any, "bool": bool, "dict": dict, "divmod": divmod,
    "float": float, "int": int, "len": len, "list": list, "max": max, "min": min,
    "pow": pow, "range": range, "reversed": reversed, "round": round, "sorted": sorted,
    "str": str, "sum": sum, "tuple": tuple, "zip": zip,
    "getenv": os.environ.get,
    "get_option": _options.get_option,
    "cpu_count": os.cpu_count,
}  # fmt: skip
"""Only these callables may be invoked by name inside an expression."""

_MATH: Final[SimpleNamespace] = SimpleNamespace(
    **{name: getattr(math, name) for name in dir(math) if not name.startswith("_")}
)


def _evaluator() -> EvalWithCompoundTypes:
    """Return a fresh evaluator bound to the fixed names and functions."""

    return EvalWithCompoundTypes(names={"math": _MATH}, functions=dict(SAFE_FUNCTIONS))


def is_expression(value: Any) -> bool:
    """Return ``True`` when *value* is a string carrying the ``!expr`` marker.

    Examples
    --------
    >>> is_expression("!expr 1 + 1"), is_expression("1 + 1"), is_expression(3)
    (True, False, False)
    """

    return isinstance(value, str) and value.startswith(EXPR_PREFIX)


def evaluate_expression(text: str) -> Any:
    """Evaluate *text* (without the marker) with the restricted evaluator.

    Examples
    --------
    >>> evaluate_expression("2 * 21")
    42
    >>> evaluate_expression("max(1, 5)")
    5
    """

    try:
        return _evaluator().eval(text.strip())
    except InvalidExpression as exc:
        log_error(Event.EXPRESSION_REJECTED, kind="expression", token=text, error=str(exc))
        raise ExpressionError(f"Cannot evaluate expression {text!r}: {exc}") from exc
    except Exception as exc:  # noqa: BLE001 - syntax and runtime errors alike
        log_error(Event.EXPRESSION_FAILED, kind="expression", token=text, error=str(exc))
        raise ExpressionError(f"Cannot evaluate expression {text!r}: {exc}") from exc


class DefaultExpressionEvaluator:
    """Replace ``!expr`` leaves throughout a nested mapping."""

    def evaluate(self, data: Mapping[str, Any], *, enabled: bool) -> dict[str, Any]:
        """Return a copy of *data* with expressions evaluated when *enabled*.

        Examples
        --------
        >>> evaluator = DefaultExpressionEvaluator()
        >>> evaluator.evaluate({"cores": "!expr 2 + 2", "raw": ["!expr 1"]}, enabled=True)
        {'cores': 4, 'raw': [1]}
        >>> evaluator.evaluate({"cores": "!expr 2 + 2"}, enabled=False)
        {'cores': '!expr 2 + 2'}
        """

        return _walk(data, enabled)  # type: ignore[no-any-return]


def _walk(value: Any, enabled: bool) -> Any:
    if isinstance(value, Mapping):
        return {key: _walk(child, enabled) for key, child in value.items()}
    if isinstance(value, list):
        return [_walk(item, enabled) for item in value]
    if isinstance(value, tuple):
        return tuple(_walk(item, enabled) for item in value)
    if enabled and is_expression(value):
        text = value[len(EXPR_PREFIX) :]
        result = evaluate_expression(text)
        log_debug(Event.EXPRESSION_EVALUATED, kind="expression", token=text)
        return result
    return value
