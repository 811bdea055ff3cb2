"""End-to-end coverage for :func:`lib_rconfig.rconfig`.

Each test runs in an empty working directory (see ``conftest.py``) so the
default ``rconfig.yml`` only exists when a test writes it.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import httpx
import pytest

from lib_rconfig import (
    EMPTY_CONFIG,
    ConsistencyError,
    ExpressionError,
    NamingError,
    Settings,
    SourceLoadError,
    config_list,
    option_context,
    override_environ,
    rconfig,
)
from lib_rconfig.adapters.file_loaders import structured as structured_module


def _write(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_db_scenario(isolated_process: Path) -> None:
    _write(isolated_process / "rconfig.yml", "db:\n  host: a\n  port: 5432\n")
    config = rconfig(mapping={"db": {"host": "b"}}, argv=[])
    assert config.as_dict() == {"db": {"host": "b", "port": 5432}}
    assert config.trace is None


def test_flatten_scenario() -> None:
    config = rconfig(mapping={"user": {"name": "Jack", "roles": ["a", "b"]}}, argv=[], flatten=True)
    assert config.as_dict() == {"user.name": "Jack", "user.roles": ["a", "b"]}


def test_flatten_limitation_surfaces() -> None:
    with pytest.raises(ConsistencyError):
        rconfig(mapping={"a": [{"x": 1}], "b": 2}, argv=[], flatten=True)


def test_debug_trace_lists_every_source(isolated_process: Path) -> None:
    _write(isolated_process / "rconfig.yml", "a: 1\n")
    config = rconfig(mapping={"a": 2}, argv=[], debug=True)
    assert config["a"] == 2
    assert config.trace == {
        "kind": "merged",
        "value": [{"kind": "file", "value": "rconfig.yml"}, {"kind": "list", "value": None}],
    }


def test_debug_trace_for_single_source() -> None:
    config = rconfig(mapping={"a": 1}, argv=[], debug=True)
    assert config.trace == {"kind": "list", "value": None}


def test_call_overrides_do_not_leak() -> None:
    before = dict(os.environ)
    assert rconfig(mapping={"a": 1}, argv=[], debug=True, flatten=True).trace is not None
    assert dict(os.environ) == before
    assert rconfig(mapping={"a": 1}, argv=[]).trace is None


def test_scoped_environment_override_applies_and_restores() -> None:
    with override_environ(debug=True):
        assert rconfig(mapping={"a": 1}, argv=[]).trace is not None
    assert "R_RCONFIG_DEBUG" not in os.environ
    assert rconfig(mapping={"a": 1}, argv=[]).trace is None


def test_options_steer_behavior() -> None:
    with option_context(rconfig_debug=True):
        assert rconfig(mapping={"a": 1}, argv=[]).trace is not None


def test_full_precedence_chain(isolated_process: Path) -> None:
    _write(isolated_process / "rconfig.yml", "level: default\nonly_default: 1\n")
    flag_file = _write(isolated_process / "flag.json", '{"level": "flag-file", "only_flag_file": 1}')
    explicit = _write(isolated_process / "explicit.yml", "level: explicit-file\n")
    argv = ["-j", '{"level": "json", "only_json": 1}', "-f", str(flag_file), "--level", "cli", "--only_cli", "1"]

    assert rconfig(argv=argv)["level"] == "cli"
    assert rconfig(explicit, argv=argv)["level"] == "explicit-file"
    config = rconfig(explicit, {"level": "mapping"}, argv=argv, debug=True)
    assert config["level"] == "mapping"
    assert {key for key in config if key.startswith("only_")} == {
        "only_default",
        "only_json",
        "only_flag_file",
        "only_cli",
    }
    assert [child["kind"] for child in config.trace["value"]] == ["file", "json", "file", "args", "file", "list"]


def test_json_and_file_flags_apply_in_order_of_appearance(isolated_process: Path) -> None:
    first = _write(isolated_process / "first.yml", "x: from-file\n")
    assert rconfig(argv=["-f", str(first), "-j", '{"x": "from-json"}'])["x"] == "from-json"
    assert rconfig(argv=["-j", '{"x": "from-json"}', "-f", str(first)])["x"] == "from-file"


def test_cli_trace_records_consumed_arguments() -> None:
    config = rconfig(argv=["--db.port", "1", "--db.hosts", "a", "b"], debug=True)
    assert config.as_dict() == {"db": {"port": 1, "hosts": ["a", "b"]}}
    assert config.trace == {"kind": "args", "value": "--db.port 1 --db.hosts a b"}


def test_argv_defaults_to_script_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["app.py", "--mode", "fast"])
    assert rconfig().as_dict() == {"mode": "fast"}


def test_default_file_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = _write(tmp_path / "custom.json", '{"source": "env"}')
    monkeypatch.setenv("R_RCONFIG_FILE", str(target))
    assert rconfig(argv=[])["source"] == "env"


def test_missing_default_file_is_skipped() -> None:
    assert rconfig(argv=[], environ={"R_RCONFIG_FILE": "nowhere.yml"}) is EMPTY_CONFIG


def test_missing_explicit_file_is_an_error() -> None:
    with pytest.raises(SourceLoadError) as info:
        rconfig("nowhere.yml", argv=[])
    assert info.value.kind == "file"
    assert info.value.token == "nowhere.yml"


def test_missing_flag_file_is_an_error() -> None:
    with pytest.raises(SourceLoadError, match="nowhere.json"):
        rconfig(argv=["-f", "nowhere.json"])


def test_invalid_inline_json_is_an_error() -> None:
    with pytest.raises(SourceLoadError) as info:
        rconfig(argv=["-j", "{broken"])
    assert info.value.kind == "inline-string"


def test_invalid_default_file_is_an_error(isolated_process: Path) -> None:
    _write(isolated_process / "rconfig.yml", "a: [unclosed\n")
    with pytest.raises(SourceLoadError) as info:
        rconfig(argv=[])
    assert info.value.kind == "default-file"


def test_expressions_follow_the_eval_flag(isolated_process: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(isolated_process / "rconfig.yml", "cores: !expr 3 + 5\n")
    assert rconfig(argv=[])["cores"] == 8
    monkeypatch.setenv("R_RCONFIG_EVAL", "false")
    assert rconfig(argv=[])["cores"] == "!expr 3 + 5"
    assert rconfig(argv=[], evaluate=True)["cores"] == 8


def test_expression_failure_names_the_source(isolated_process: Path) -> None:
    _write(isolated_process / "rconfig.yml", "cores: !expr nope()\n")
    with pytest.raises(SourceLoadError) as info:
        rconfig(argv=[])
    assert isinstance(info.value.__cause__, ExpressionError)


def test_separator_for_text_files(isolated_process: Path) -> None:
    target = _write(isolated_process / "prod.txt", "db.host: prod\n")
    assert rconfig(target, argv=[], sep=":").get("db.host") == "prod"
    with option_context(rconfig_sep=":"):
        assert rconfig(target, argv=[]).get("db.host") == "prod"


def test_explicit_files_apply_in_order(isolated_process: Path) -> None:
    first = _write(isolated_process / "a.yml", "x: 1\ny: 1\n")
    second = _write(isolated_process / "b.json", '{"x": 2}')
    assert rconfig([first, second], argv=[]).as_dict() == {"x": 2, "y": 1}
    assert rconfig([second, first], argv=[]).as_dict() == {"x": 1, "y": 1}


def test_duplicate_mapping_pairs_are_rejected() -> None:
    with pytest.raises(NamingError, match="Names not unique"):
        rconfig(mapping=[("a", 1), ("a", 2)], argv=[])


def test_empty_sources_are_dropped(isolated_process: Path) -> None:
    _write(isolated_process / "rconfig.yml", "# nothing yet\n")
    sources = config_list(mapping={}, settings=Settings(), argv=["-j", "{}"])
    assert sources == []


def test_default_file_url_404_is_skipped(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_get(url: str, **_: object) -> httpx.Response:
        return httpx.Response(404, request=httpx.Request("GET", url))

    monkeypatch.setattr(structured_module.httpx, "get", fake_get)
    config = rconfig(mapping={"a": 1}, argv=[], environ={"R_RCONFIG_FILE": "https://example.com/rconfig.yml"})
    assert config.as_dict() == {"a": 1}


def test_default_file_url_is_loaded(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_get(url: str, **_: object) -> httpx.Response:
        return httpx.Response(200, content=b'{"remote": true}', request=httpx.Request("GET", url))

    monkeypatch.setattr(structured_module.httpx, "get", fake_get)
    config = rconfig(argv=[], debug=True, environ={"R_RCONFIG_FILE": "https://example.com/rconfig.json"})
    assert config["remote"] is True
    assert config.trace == {"kind": "file", "value": "https://example.com/rconfig.json"}


def test_result_is_immutable_and_detached() -> None:
    source = {"db": {"hosts": ["a"]}}
    config = rconfig(mapping=source, argv=[])
    with pytest.raises(TypeError):
        config["db"] = {}  # type: ignore[index]
    source["db"]["hosts"].append("b")
    assert config.get("db.hosts") == ["a"]
