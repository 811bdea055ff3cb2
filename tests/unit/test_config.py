from __future__ import annotations

import json

import pytest

from lib_rconfig.domain.config import EMPTY_CONFIG, RConfig, SourceDescriptor, SourceKind


def make_config() -> RConfig:
    data = {"db": {"host": "localhost", "port": 5432}, "feature": True}
    trace = {"kind": "merged", "value": [{"kind": "file", "value": "rconfig.yml"}, {"kind": "list", "value": None}]}
    return RConfig(data, trace)  # type: ignore[arg-type]


def test_mapping_interface() -> None:
    config = make_config()
    assert config["feature"] is True
    assert "db" in config
    assert len(config) == 2
    assert list(config) == ["db", "feature"]


def test_get_dot_path() -> None:
    config = make_config()
    assert config.get("db.host") == "localhost"
    assert config.get("db.password") is None
    assert config.get("db.password", default="secret") == "secret"


def test_get_prefers_flat_keys() -> None:
    config = RConfig({"db.host": "flat", "db": {"host": "nested"}})
    assert config.get("db.host") == "flat"


def test_top_level_is_read_only() -> None:
    config = make_config()
    with pytest.raises(TypeError):
        config._data["feature"] = False  # type: ignore[index]


def test_as_dict_returns_deep_copy() -> None:
    config = make_config()
    dictionary = config.as_dict()
    dictionary["db"]["host"] = "remote"
    assert config["db"]["host"] == "localhost"


def test_to_json() -> None:
    config = make_config()
    payload = json.loads(config.to_json())
    assert payload["db"]["port"] == 5432


def test_to_json_with_trace() -> None:
    payload = json.loads(make_config().to_json(indent=2, include_trace=True))
    assert payload["config"]["feature"] is True
    assert payload["trace"]["kind"] == "merged"
    assert [child["kind"] for child in payload["trace"]["value"]] == ["file", "list"]


def test_empty_config() -> None:
    assert len(EMPTY_CONFIG) == 0
    assert EMPTY_CONFIG.trace is None
    assert EMPTY_CONFIG.to_json() == "{}"


def test_source_descriptor_defaults_to_list_trace() -> None:
    descriptor = SourceDescriptor(SourceKind.EXPLICIT_MAPPING, {"a": 1})
    assert descriptor.trace == {"kind": "list", "value": None}


def test_source_kinds_are_ordered_by_precedence() -> None:
    assert [kind.value for kind in SourceKind] == [
        "default-file",
        "inline-string",
        "file",
        "cli-derived",
        "explicit-mapping",
    ]
