from __future__ import annotations

import pytest

from lib_rconfig import options


def test_set_get_reset_option() -> None:
    options.set_option("rconfig.sep", ":")
    assert options.get_option("rconfig.sep") == ":"
    options.reset_option("rconfig.sep")
    assert options.get_option("rconfig.sep", "=") == "="


def test_snapshot_is_read_only_copy() -> None:
    options.set_option("rconfig.debug", True)
    frozen = options.snapshot()
    options.set_option("rconfig.debug", False)
    assert frozen["rconfig.debug"] is True
    with pytest.raises(TypeError):
        frozen["rconfig.debug"] = False  # type: ignore[index]


def test_option_context_restores_previous_values() -> None:
    options.set_option("rconfig.flatten", False)
    with options.option_context(rconfig_flatten=True, rconfig_debug=True):
        assert options.get_option("rconfig.flatten") is True
        assert options.get_option("rconfig.debug") is True
    assert options.get_option("rconfig.flatten") is False
    assert options.get_option("rconfig.debug") is None


def test_option_context_restores_on_error() -> None:
    with pytest.raises(RuntimeError):
        with options.option_context(rconfig_sep=";"):
            raise RuntimeError("boom")
    assert options.get_option("rconfig.sep") is None
