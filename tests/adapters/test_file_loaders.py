from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from lib_rconfig.adapters.file_loaders import structured as structured_module
from lib_rconfig.adapters.file_loaders.structured import (
    JSONFileLoader,
    TextFileLoader,
    YAMLFileLoader,
    loader_for,
)
from lib_rconfig.domain.errors import NotFound, SourceError


def _serve(monkeypatch: pytest.MonkeyPatch, status: int, body: bytes = b"") -> list[str]:
    """Route ``httpx.get`` to a canned response and record requested URLs."""

    requested: list[str] = []

    def fake_get(url: str, **_: object) -> httpx.Response:
        requested.append(url)
        return httpx.Response(status, content=body, request=httpx.Request("GET", url))

    monkeypatch.setattr(structured_module.httpx, "get", fake_get)
    return requested


def test_yaml_loader(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("db:\n  port: 5432\n  tags: [a, b]\n", encoding="utf-8")
    data = YAMLFileLoader().load(str(path))
    assert data == {"db": {"port": 5432, "tags": ["a", "b"]}}


def test_yaml_loader_handles_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("# empty file\n")
    assert YAMLFileLoader().load(str(path)) == {}


def test_yaml_loader_marks_expr_tags(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("cores: !expr 2 + 2\n", encoding="utf-8")
    assert YAMLFileLoader().load(str(path)) == {"cores": "!expr 2 + 2"}


def test_yaml_loader_rejects_unknown_tags(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("value: !!python/object:os.system echo\n", encoding="utf-8")
    with pytest.raises(SourceError):
        YAMLFileLoader().load(str(path))


def test_yaml_loader_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(SourceError, match="did not produce a mapping"):
        YAMLFileLoader().load(str(path))


def test_yaml_loader_missing_file(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        YAMLFileLoader().load(str(tmp_path / "missing.yml"))


def test_json_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid}")
    with pytest.raises(SourceError):
        JSONFileLoader().load(str(path))


def test_json_loader_valid(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"feature": True}), encoding="utf-8")
    assert JSONFileLoader().load(str(path))["feature"] is True


def test_json_loads_inline_text() -> None:
    assert JSONFileLoader().loads('{"a": {"b": [1, 2]}}') == {"a": {"b": [1, 2]}}
    with pytest.raises(SourceError, match="JSON string"):
        JSONFileLoader().loads("[1, 2]")


def test_text_loader_nests_dotted_keys(tmp_path: Path) -> None:
    path = tmp_path / "rconfig-prod.txt"
    path.write_text("# comment\n\ndb.host = prod.local\ndb.port=5432\nratio=0.5\nname=a=b\n", encoding="utf-8")
    data = TextFileLoader().load(str(path))
    assert data == {"db": {"host": "prod.local", "port": 5432}, "ratio": 0.5, "name": "a=b"}


def test_text_loader_honours_separator(tmp_path: Path) -> None:
    path = tmp_path / "app.cfg"
    path.write_text("debug: true\nlevel: null\n", encoding="utf-8")
    assert TextFileLoader(sep=":").load(str(path)) == {"debug": True, "level": None}


def test_text_loader_rejects_lines_without_separator(tmp_path: Path) -> None:
    path = tmp_path / "app.txt"
    path.write_text("a=1\njust text\n", encoding="utf-8")
    with pytest.raises(SourceError, match="Line 2"):
        TextFileLoader().load(str(path))


def test_text_loader_rejects_conflicting_keys(tmp_path: Path) -> None:
    path = tmp_path / "app.txt"
    path.write_text("a=1\na.b=2\n", encoding="utf-8")
    with pytest.raises(SourceError, match="Invalid keys"):
        TextFileLoader().load(str(path))


def test_loader_rejects_undecodable_bytes(tmp_path: Path) -> None:
    path = tmp_path / "app.json"
    path.write_bytes(b"\xff\xfe{")
    with pytest.raises(SourceError, match="Cannot decode"):
        JSONFileLoader().load(str(path))


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("a.yml", YAMLFileLoader),
        ("a.YAML", YAMLFileLoader),
        ("a.json", JSONFileLoader),
        ("a.txt", TextFileLoader),
        ("a.toml", TextFileLoader),
        ("noext", TextFileLoader),
        ("https://example.com/conf/app.yml?ref=main", YAMLFileLoader),
    ],
)
def test_loader_for_picks_by_suffix(path: str, expected: type) -> None:
    assert type(loader_for(path)) is expected


def test_url_sources_are_fetched(monkeypatch: pytest.MonkeyPatch) -> None:
    requested = _serve(monkeypatch, 200, b"db:\n  host: remote\n")
    data = YAMLFileLoader().load("https://example.com/rconfig.yml")
    assert data == {"db": {"host": "remote"}}
    assert requested == ["https://example.com/rconfig.yml"]


def test_url_404_is_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    _serve(monkeypatch, 404)
    with pytest.raises(NotFound):
        JSONFileLoader().load("https://example.com/missing.json")


def test_url_server_error_is_source_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _serve(monkeypatch, 500)
    with pytest.raises(SourceError, match="HTTP 500"):
        JSONFileLoader().load("https://example.com/broken.json")


def test_url_transport_error_is_source_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(url: str, **_: object) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=httpx.Request("GET", url))

    monkeypatch.setattr(structured_module.httpx, "get", fail)
    with pytest.raises(SourceError, match="connection refused"):
        YAMLFileLoader().load("http://localhost:1/rconfig.yml")
