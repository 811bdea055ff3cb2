"""Shared fixtures keeping every test independent of the host process state."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from lib_rconfig import options
from lib_rconfig.domain.settings import FILE_ENV, FLAGS


@pytest.fixture(autouse=True)
def isolated_process(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Run each test in an empty working directory without ``R_RCONFIG_*`` variables or options."""

    for variable in [FILE_ENV, *(spec.env for spec in FLAGS.values())]:
        monkeypatch.delenv(variable, raising=False)
    workdir = tmp_path / "workdir"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    saved = dict(options._OPTIONS)
    options._OPTIONS.clear()
    yield workdir
    options._OPTIONS.clear()
    options._OPTIONS.update(saved)
