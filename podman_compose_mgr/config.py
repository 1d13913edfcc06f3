"""Configuration loading for podman-compose-mgr (.podman-compose-mgr.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".podman-compose-mgr.yml"
REBUILD_VIEW_LINE_BUFFER_DEFAULT = 10_000
TICK_MS_DEFAULT = 250
PROMPT_WIDTH_DEFAULT = 100
INTERRUPT_POLICIES = ("terminate", "abandon")


@dataclass
class RebuildConfig:
    """Settings for build and pull jobs."""

    build_args: List[str] = field(default_factory=list)
    podman_bin: Optional[str] = None
    no_cache: bool = False
    line_buffer_max: int = REBUILD_VIEW_LINE_BUFFER_DEFAULT
    prompt_width: int = PROMPT_WIDTH_DEFAULT
    on_interrupt: str = "terminate"


@dataclass
class ManagerConfig:
    """Represents the settings defined in .podman-compose-mgr.yml."""

    root: Path
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    rebuild: RebuildConfig = field(default_factory=RebuildConfig)
    tick_ms: int = TICK_MS_DEFAULT
    source: Optional[Path] = None


def load_config(config_path: Path) -> ManagerConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent

    if not config_file.exists():
        return ManagerConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    rebuild_data = _as_dict(data.get("rebuild"), "rebuild")
    rebuild = RebuildConfig(
        build_args=_as_str_list(rebuild_data.get("build_args"), "rebuild.build_args"),
        podman_bin=_as_str(rebuild_data.get("podman_bin"), "rebuild.podman_bin"),
        no_cache=_as_bool(rebuild_data.get("no_cache"), "rebuild.no_cache") or False,
    )

    line_buffer = _as_int(
        rebuild_data.get("line_buffer_max"), "rebuild.line_buffer_max"
    )
    if line_buffer is not None:
        if line_buffer < 1:
            raise ConfigError("rebuild.line_buffer_max must be at least 1")
        rebuild.line_buffer_max = line_buffer

    prompt_width = _as_int(rebuild_data.get("prompt_width"), "rebuild.prompt_width")
    if prompt_width is not None:
        rebuild.prompt_width = prompt_width

    policy = _as_str(rebuild_data.get("on_interrupt"), "rebuild.on_interrupt")
    if policy is not None:
        if policy not in INTERRUPT_POLICIES:
            allowed = ", ".join(INTERRUPT_POLICIES)
            raise ConfigError(f"rebuild.on_interrupt must be one of: {allowed}")
        rebuild.on_interrupt = policy

    tick_ms = _as_int(data.get("tick_ms"), "tick_ms")

    return ManagerConfig(
        root=root,
        include=_as_str_list(data.get("include"), "include"),
        exclude=_as_str_list(data.get("exclude"), "exclude"),
        rebuild=rebuild,
        tick_ms=tick_ms if tick_ms and tick_ms > 0 else TICK_MS_DEFAULT,
        source=config_file,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return config_path / CONFIG_FILENAME
    return config_path


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any, key: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    raise ConfigError(f"{key} must be a mapping")


def _as_str(value: Any, key: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value)
    raise ConfigError(f"{key} must be a string")


def _as_int(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise ConfigError(f"{key} must be an integer")


def _as_bool(value: Any, key: str) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    raise ConfigError(f"{key} must be a boolean")


def _as_str_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    raise ConfigError(f"{key} must be a list of strings")


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ManagerConfig",
    "REBUILD_VIEW_LINE_BUFFER_DEFAULT",
    "RebuildConfig",
    "load_config",
]
