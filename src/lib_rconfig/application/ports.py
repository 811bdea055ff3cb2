"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts that adapters must satisfy so the composition
root can orchestrate sources without depending on concrete parsers.

Contents
--------
* :class:`FileLoader` – parses a file or URL into a mapping.
* :class:`TextLoader` – parses an inline string into a mapping.
* :class:`ArgumentSplitter` – separates JSON/file flags from hierarchical
  command-line flags.
* :class:`ExpressionEvaluator` – replaces ``!expr`` leaves.

System Role
-----------
These protocols enforce Dependency Inversion. Each adapter implements one
protocol; the contract tests in ``tests/adapters`` check the defaults against
them.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence, runtime_checkable


@runtime_checkable
class FileLoader(Protocol):
    """Parse a structured configuration file (or URL) into a mapping.

    Why
    ----
    Segregate parsing concerns (YAML/JSON/delimited text) from orchestration
    logic.
    """

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping or raise ``SourceError``/``NotFound``."""


@runtime_checkable
class TextLoader(Protocol):
    """Parse configuration text handed over directly (``-j '{...}'``)."""

    def loads(self, text: str) -> Mapping[str, object]:
        """Return the mapping encoded in *text* or raise ``SourceError``."""


@runtime_checkable
class ArgumentSplitter(Protocol):
    """Split command-line arguments into ordered sources.

    Why
    ----
    Tokenising argv is a presentation concern; the composition root only needs
    the ordered ``(flag kind, value)`` pairs and the remaining flag mapping.
    """

    def split(self, argv: Sequence[str]) -> tuple[list[tuple[str, str]], Mapping[str, object], str]:
        """Return ``(json/file items, hierarchical flags, consumed flag text)``."""


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """Replace ``!expr`` leaves with their evaluated value."""

    def evaluate(self, data: Mapping[str, Any], *, enabled: bool) -> Mapping[str, Any]:
        """Return *data* with expressions evaluated when *enabled*."""
