from __future__ import annotations

import pytest

from lib_rconfig.domain.settings import FLAGS, Settings, coerce_bool, coerce_str, resolve_flag, resolve_settings


@pytest.mark.parametrize("raw", ["true", "T", "yes", "ON", "1", True, 1, 2.5])
def test_coerce_bool_truthy(raw: object) -> None:
    assert coerce_bool(raw) is True


@pytest.mark.parametrize("raw", ["false", "F", "no", "off", "0", False, 0])
def test_coerce_bool_falsy(raw: object) -> None:
    assert coerce_bool(raw) is False


@pytest.mark.parametrize("raw", [None, "", "maybe", [], object()])
def test_coerce_bool_unset(raw: object) -> None:
    assert coerce_bool(raw) is None


def test_coerce_str_treats_empty_as_unset() -> None:
    assert coerce_str("") is None
    assert coerce_str(None) is None
    assert coerce_str(":") == ":"


def test_defaults_apply_without_any_source() -> None:
    assert resolve_settings(environ={}, options={}) == Settings(evaluate=True, flatten=False, debug=False, sep="=")


def test_override_beats_environment_and_options() -> None:
    environ = {"R_RCONFIG_DEBUG": "false"}
    options = {"rconfig.debug": False}
    assert resolve_flag("debug", True, environ=environ, options=options) is True


def test_environment_beats_options() -> None:
    assert resolve_flag("flatten", environ={"R_RCONFIG_FLATTEN": "yes"}, options={"rconfig.flatten": False}) is True


def test_options_beat_default() -> None:
    assert resolve_flag("sep", environ={}, options={"rconfig.sep": ":"}) == ":"


def test_unparseable_values_fall_through() -> None:
    environ = {"R_RCONFIG_EVAL": "sometimes", "R_RCONFIG_SEP": ""}
    options = {"rconfig.eval": "off"}
    assert resolve_flag("evaluate", "perhaps", environ=environ, options=options) is False
    assert resolve_flag("sep", environ=environ, options={}) == "="


def test_flag_table_names_variables_and_options() -> None:
    assert {name: (spec.env, spec.option, spec.default) for name, spec in FLAGS.items()} == {
        "evaluate": ("R_RCONFIG_EVAL", "rconfig.eval", True),
        "flatten": ("R_RCONFIG_FLATTEN", "rconfig.flatten", False),
        "debug": ("R_RCONFIG_DEBUG", "rconfig.debug", False),
        "sep": ("R_RCONFIG_SEP", "rconfig.sep", "="),
    }


def test_resolve_settings_reads_nothing_global(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("R_RCONFIG_DEBUG", "true")
    assert resolve_settings(environ={}, options={}).debug is False


def test_settings_as_dict() -> None:
    assert Settings(sep=";").as_dict() == {"evaluate": True, "flatten": False, "debug": False, "sep": ";"}
