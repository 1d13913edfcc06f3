from __future__ import annotations

import stat
import sys
from pathlib import Path

import pytest

from tests._fixtures.repo_builder import TreeBuilder

TESTS_DIR = Path(__file__).resolve().parent


@pytest.fixture
def tree_builder(tmp_path: Path) -> TreeBuilder:
    """Provide a reusable tree builder rooted at the pytest tmp_path."""
    return TreeBuilder(tmp_path)


@pytest.fixture
def fixture_tree() -> Path:
    """The checked-in sample tree used for discovery scenarios."""
    return TESTS_DIR / "test1"


@pytest.fixture
def quadlet_tree() -> Path:
    """The checked-in Quadlet tree used for rebuild scenarios."""
    return TESTS_DIR / "test07"


@pytest.fixture
def mock_podman(tmp_path: Path) -> Path:
    """An executable wrapper that runs tests/mock_podman.py with this interpreter."""
    wrapper = tmp_path / "podman"
    wrapper.write_text(
        f'#!/bin/sh\nexec "{sys.executable}" "{TESTS_DIR / "mock_podman.py"}" "$@"\n',
        encoding="utf-8",
    )
    wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return wrapper


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
