"""CLI adapter for ``lib_rconfig`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose the configuration resolver via a first-class command line interface so
operators can inspect precedence outcomes, traces and flattened keys without
writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_read` – calls :func:`lib_rconfig.core.rconfig` and formats the
  result as JSON (optionally with the trace).
* :func:`cli_flatten` / :func:`cli_nest` – transform a single source.
* :func:`cli_settings` – prints the effective behavior flags.
* :func:`cli_generate_examples` – scaffolds example configuration files.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer of the Clean Architecture stack. It
invokes the composition root and never reaches into adapter implementation
details directly. ``lib_cli_exit_tools`` centralises the exit code strategy so
all commands behave consistently across shells and CI.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Final, Mapping, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.env.default import current_settings
from .core import load_source, rconfig
from .domain.flatten import flatten as flatten_mapping
from .domain.flatten import nest as nest_mapping
from .examples import generate_examples as _generate_examples

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DISTRIBUTION: Final[str] = "lib_rconfig"


def _resolve_version() -> str:
    """Return the installed package version with sensible fallbacks.

    Returns
    -------
    str
        Distribution version if available, otherwise ``"0.0.0"``.
    """

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Merge configuration from files, JSON strings, flags and mappings",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="lib_rconfig version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo("lib_rconfig (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")
    for entry in meta.get_all("Project-URL") or []:
        click.echo(f"  {entry}")


@cli.command(
    "read",
    context_settings={**CLICK_CONTEXT_SETTINGS, "ignore_unknown_options": True},
)
@click.option(
    "--file",
    "files",
    multiple=True,
    help="Configuration file or URL applied after the command-line sources (repeatable)",
)
@click.option("--mapping", default=None, help="JSON object applied last")
@click.option("--eval/--no-eval", "evaluate", default=None, help="Evaluate !expr values")
@click.option("--flatten/--no-flatten", "flatten", default=None, help="Flatten the result to dotted keys")
@click.option("--debug/--no-debug", "debug", default=None, help="Include the source trace in the output")
@click.option("--sep", default=None, help="Separator used by delimited text files")
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def cli_read(
    files: Sequence[str],
    mapping: Optional[str],
    evaluate: Optional[bool],
    flatten: Optional[bool],
    debug: Optional[bool],
    sep: Optional[str],
    indent: Optional[int],
    args: Sequence[str],
) -> None:
    """Merge all sources and print the result as JSON.

    ``ARGS`` are read like the command-line arguments of a script: ``-f PATH``,
    ``-j JSON`` and ``--a.b.c VALUE...``. Put them after ``--`` so they are not
    taken for options of this command. Unset behavior flags fall back to the
    ``R_RCONFIG_*`` environment variables. With debug on the output is
    ``{"config": ..., "trace": ...}``.
    """

    settings = current_settings(evaluate=evaluate, flatten=flatten, debug=debug, sep=sep)
    config = rconfig(
        list(files) or None,
        _parse_mapping(mapping),
        evaluate=settings.evaluate,
        flatten=settings.flatten,
        debug=settings.debug,
        sep=settings.sep,
        argv=list(args),
    )
    click.echo(config.to_json(indent=indent, include_trace=settings.debug))


@cli.command("flatten", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("source")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_flatten(source: str, indent: Optional[int]) -> None:
    """Load SOURCE and print it with dotted keys."""

    _echo_json(flatten_mapping(load_source(source)), indent)


@cli.command("nest", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("source")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_nest(source: str, indent: Optional[int]) -> None:
    """Load SOURCE and print it with dotted keys expanded into mappings."""

    _echo_json(nest_mapping(load_source(source)), indent)


@cli.command("settings", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_settings() -> None:
    """Print the effective behavior flags resolved from environment and options."""

    _echo_json(current_settings().as_dict(), 2)


@cli.command("generate-examples", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--destination",
    type=click.Path(path_type=Path, file_okay=False, dir_okay=True, resolve_path=True),
    required=True,
    help="Directory that will receive the example files",
)
@click.option("--sep", default="=", show_default=True, help="Separator used in the delimited text example")
@click.option(
    "--force/--no-force",
    default=False,
    help="Overwrite existing example files if set",
    show_default=True,
)
def cli_generate_examples(destination: Path, sep: str, force: bool) -> None:
    """Generate example configuration files under *destination*."""

    created = _generate_examples(destination, sep=sep, force=force)
    click.echo(json.dumps([str(path) for path in created], indent=2))


def _parse_mapping(value: Optional[str]) -> Optional[dict[str, Any]]:
    """Decode the ``--mapping`` JSON object or raise ``BadParameter``."""

    if value is None:
        return None
    try:
        data = json.loads(value)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"Invalid JSON: {exc}", param_hint="--mapping") from exc
    if not isinstance(data, dict):
        raise click.BadParameter("Expected a JSON object", param_hint="--mapping")
    return data


def _echo_json(payload: Mapping[str, Any], indent: Optional[int]) -> None:
    click.echo(json.dumps(payload, indent=indent, separators=(",", ":"), ensure_ascii=False))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
