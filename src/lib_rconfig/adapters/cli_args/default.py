"""Command-line argument adapter.

Purpose
-------
Implement :class:`lib_rconfig.application.ports.ArgumentSplitter`: separate the
``-j/--json`` and ``-f/--file`` occurrences (kept in order, each one its own
source) from the remaining ``--a.b.c value ...`` flags, which together form a
single nested mapping.

Key behaviours
--------------
* A JSON/file flag consumes exactly the next token; a trailing flag without a
  value is dropped.
* Hierarchical flags start with ``--``; following tokens (split on whitespace)
  are its values: none → ``True``, one → scalar, several → list.
* Tokens before the first hierarchical flag are ignored; a repeated flag keeps
  its last values.
* A bare ``--`` closes the current flag; tokens after it are ignored until the
  next ``--key``.
* Values are coerced with :func:`lib_rconfig.adapters.env.default.coerce_value`.
"""

from __future__ import annotations

from typing import Final, Sequence

from ...domain.flatten import nest
from ...observability import Event, log_debug
from ..env.default import coerce_value

JSON_FLAGS: Final[frozenset[str]] = frozenset({"-j", "--json"})
FILE_FLAGS: Final[frozenset[str]] = frozenset({"-f", "--file"})


class DefaultArgumentSplitter:
    """Split argv into ordered JSON/file items and hierarchical flags."""

    def split(self, argv: Sequence[str]) -> tuple[list[tuple[str, str]], dict[str, object], str]:
        """Return ``(items, flags, text)`` for *argv*.

        ``items`` holds ``("json" | "file", value)`` pairs in order of
        appearance, ``flags`` the nested mapping built from the remaining
        ``--`` flags, and ``text`` the remaining tokens joined by spaces (empty
        when there are no flags).

        Examples
        --------
        >>> splitter = DefaultArgumentSplitter()
        >>> items, flags, text = splitter.split(
        ...     ["-f", "a.yml", "--db.port", "5432", "-j", '{"x": 1}', "--tags", "a", "b", "--verbose"]
        ... )
        >>> items
        [('file', 'a.yml'), ('json', '{"x": 1}')]
        >>> flags
        {'db': {'port': 5432}, 'tags': ['a', 'b'], 'verbose': True}
        >>> text
        '--db.port 5432 --tags a b --verbose'
        """

        items, rest = self._extract_items(argv)
        flags = self._parse_flags(rest)
        text = " ".join(rest) if flags else ""
        log_debug(Event.ARGUMENTS_SPLIT, kind="cli-derived", token=text or None, items=len(items), flags=len(flags))
        return items, nest(flags) if flags else {}, text

    @staticmethod
    def _extract_items(argv: Sequence[str]) -> tuple[list[tuple[str, str]], list[str]]:
        items: list[tuple[str, str]] = []
        rest: list[str] = []
        index = 0
        while index < len(argv):
            token = argv[index]
            if token in JSON_FLAGS or token in FILE_FLAGS:
                if index + 1 < len(argv):
                    items.append(("json" if token in JSON_FLAGS else "file", argv[index + 1]))
                index += 2
                continue
            rest.append(token)
            index += 1
        return items, rest

    @staticmethod
    def _parse_flags(tokens: Sequence[str]) -> dict[str, object]:
        """Map each ``--key`` to its coerced value(s)."""

        collected: dict[str, list[str]] = {}
        current: list[str] | None = None
        for token in tokens:
            if token == "--":
                current = None
            elif token.startswith("--"):
                current = collected[token[2:]] = []
            elif current is not None:
                current.extend(token.split())
        return {key: _value(values) for key, values in collected.items()}


def _value(values: list[str]) -> object:
    """Collapse raw flag values into ``True``, a scalar, or a list.

    Examples
    --------
    >>> _value([]), _value(["5"]), _value(["1", "x"])
    (True, 5, [1, 'x'])
    """

    if not values:
        return True
    if len(values) == 1:
        return coerce_value(values[0])
    return [coerce_value(value) for value in values]
