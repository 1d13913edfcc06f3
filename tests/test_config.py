"""Tests for podman_compose_mgr.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from podman_compose_mgr.config import (
    CONFIG_FILENAME,
    REBUILD_VIEW_LINE_BUFFER_DEFAULT,
    ConfigError,
    ManagerConfig,
    load_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ManagerConfig)
    assert config.root == tmp_path
    assert config.include == []
    assert config.exclude == []
    assert config.tick_ms == 250
    assert config.source is None
    assert config.rebuild.line_buffer_max == REBUILD_VIEW_LINE_BUFFER_DEFAULT
    assert config.rebuild.podman_bin is None
    assert config.rebuild.on_interrupt == "terminate"


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / CONFIG_FILENAME
    config_file.write_text(
        """
include:
  - "compose/"
exclude: "archive/"
tick_ms: 100
rebuild:
  build_args: ["HTTP_PROXY=http://proxy:3128"]
  podman_bin: /usr/local/bin/podman
  no_cache: "yes"
  line_buffer_max: 500
  prompt_width: 80
  on_interrupt: abandon
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.source == config_file
    assert config.include == ["compose/"]
    assert config.exclude == ["archive/"]
    assert config.tick_ms == 100
    assert config.rebuild.build_args == ["HTTP_PROXY=http://proxy:3128"]
    assert config.rebuild.podman_bin == "/usr/local/bin/podman"
    assert config.rebuild.no_cache is True
    assert config.rebuild.line_buffer_max == 500
    assert config.rebuild.prompt_width == 80
    assert config.rebuild.on_interrupt == "abandon"


def test_load_config_accepts_directory(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("exclude: [tmp]\n", encoding="utf-8")

    assert load_config(tmp_path).exclude == ["tmp"]


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).include == []


@pytest.mark.parametrize(
    "body, message",
    [
        ("rebuild:\n  line_buffer_max: 0\n", "at least 1"),
        ("rebuild:\n  line_buffer_max: lots\n", "must be an integer"),
        ("rebuild:\n  no_cache: maybe\n", "must be a boolean"),
        ("rebuild:\n  on_interrupt: panic\n", "must be one of"),
        ("include: {a: 1}\n", "must be a list of strings"),
        ("- just\n- a list\n", "mapping at the root"),
        ("include: [unclosed\n", "Failed to parse"),
        ("rebuild: fast\n", "rebuild must be a mapping"),
    ],
)
def test_invalid_config_raises(tmp_path: Path, body: str, message: str) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(body, encoding="utf-8")

    with pytest.raises(ConfigError, match=message):
        load_config(tmp_path)
