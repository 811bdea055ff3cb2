"""Example configuration asset generation helpers.

Purpose
-------
Produce a reproducible set of configuration files that exercise every loader
(YAML with an ``!expr`` tag, JSON, separator-delimited text). This module
belongs to the outer ring of the architecture and has no runtime coupling to
the composition root.

Contents
    - ``ExampleSpec``: dataclass capturing a relative path and text content.
    - ``generate_examples``: public orchestration expressed through helper
      verbs.
    - ``_build_specs``: yields the example specifications.
    - ``_write_spec`` / ``_should_write`` / ``_ensure_parent``: tiny filesystem
      helpers that narrate how files are written.

System Role
-----------
Backs the ``generate-examples`` CLI command. The generated directory can be
used directly: ``rconfig.yml`` is picked up as the default file when the
directory is the working directory, the other files via ``-f``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator


@dataclass(slots=True)
class ExampleSpec:
    """Describe a single example file to be written to disk.

    Attributes
    ----------
    relative_path:
        Path relative to the destination directory where the example will be
        created.
    content:
        File contents (UTF-8 text) including explanatory comments.
    """

    relative_path: Path
    content: str


def generate_examples(destination: str | Path, *, sep: str = "=", force: bool = False) -> list[Path]:
    """Write the example configuration files under *destination*.

    Why
    ----
    Quickly bootstrap demos, tests, or documentation assets showing how the
    sources override each other.

    Parameters
    ----------
    destination:
        Directory that will receive the generated files.
    sep:
        Separator used in the delimited text example; keep it in sync with
        ``R_RCONFIG_SEP`` when reading the file back.
    force:
        When ``True`` existing files are overwritten; otherwise the function
        skips files that already exist.

    Returns
    -------
    list[Path]
        File paths written during this invocation.

    Side Effects
    ------------
    Creates directories and writes files under ``destination``.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> generated = generate_examples(tmp.name)
    >>> sorted(path.name for path in generated)
    ['rconfig-dev.json', 'rconfig-prod.txt', 'rconfig.yml']
    >>> generate_examples(tmp.name)
    []
    >>> tmp.cleanup()
    """

    dest = Path(destination)
    return _write_examples(dest, _build_specs(sep=sep), force)


def _write_examples(destination: Path, specs: Iterator[ExampleSpec], force: bool) -> list[Path]:
    """Write all ``specs`` under *destination* honouring the *force* flag."""

    written: list[Path] = []
    for spec in specs:
        path = destination / spec.relative_path
        if not _should_write(path, force):
            continue
        _ensure_parent(path)
        _write_spec(path, spec)
        written.append(path)
    return written


def _write_spec(path: Path, spec: ExampleSpec) -> None:
    """Persist ``spec`` content at *path* using UTF-8 encoding."""

    path.write_text(spec.content, encoding="utf-8")


def _should_write(path: Path, force: bool) -> bool:
    """Return ``True`` when *path* should be written respecting *force*."""

    return force or not path.exists()


def _ensure_parent(path: Path) -> None:
    """Create parent directories for *path* when missing."""

    path.parent.mkdir(parents=True, exist_ok=True)


def _build_specs(*, sep: str) -> Iterator[ExampleSpec]:
    """Yield :class:`ExampleSpec` instances for each example source.

    Examples
    --------
    >>> [spec.relative_path.as_posix() for spec in _build_specs(sep="=")]
    ['rconfig.yml', 'rconfig-dev.json', 'rconfig-prod.txt']
    """

    yield ExampleSpec(
        Path("rconfig.yml"),
        "# Default file, read from the working directory (override with R_RCONFIG_FILE)\n"
        "db:\n  host: localhost\n  port: 5432\n"
        "workers: !expr max(1, cpu_count() or 1)\n"
        "features:\n  - search\n  - export\n",
    )
    yield ExampleSpec(
        Path("rconfig-dev.json"),
        '{\n  "db": {"host": "dev.local"},\n  "debug": true\n}\n',
    )
    yield ExampleSpec(
        Path("rconfig-prod.txt"),
        f"# Delimited text: one key{sep}value per line, dotted keys nest\n"
        f"db.host{sep}prod.local\n"
        f"db.pool{sep}20\n"
        f"debug{sep}false\n",
    )
