"""Exception types shared across podman-compose-mgr components."""

from __future__ import annotations

from pathlib import Path


class ConfigError(RuntimeError):
    """Raised when configuration or scan options cannot be used."""


class PatternError(ConfigError):
    """Raised when an include/exclude pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid path pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class DiscoveryEntryError(RuntimeError):
    """A single file could not be turned into declarations; the scan carries on."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class QuadletError(DiscoveryEntryError):
    """Malformed Quadlet ``.container`` unit."""


class ComposeError(DiscoveryEntryError):
    """Unreadable or malformed compose file."""


class PodmanQueryError(RuntimeError):
    """A podman query failed for a reason other than the image being unknown."""


class DateParseError(ValueError):
    """A timestamp reported by podman did not match any supported shape."""


class JobCommandError(RuntimeError):
    """A rebuild command could not be spawned or exited unsuccessfully."""


class JobStateError(RuntimeError):
    """A rebuild job was asked to move backwards through its lifecycle."""


class TerminalError(RuntimeError):
    """The interactive terminal could not be acquired."""


__all__ = [
    "ComposeError",
    "ConfigError",
    "DateParseError",
    "DiscoveryEntryError",
    "JobCommandError",
    "JobStateError",
    "PatternError",
    "PodmanQueryError",
    "QuadletError",
    "TerminalError",
]
