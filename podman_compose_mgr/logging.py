"""Logging utilities for podman-compose-mgr commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "podman_compose_mgr"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the podman_compose_mgr hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def _level_for(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(
    *, verbose: int = 0, log_file: Path | None = None, console: bool = True
) -> logging.Logger:
    """Configure the package logger with console output and an optional file sink.

    ``console=False`` is used while the TUI owns the terminal so stray log
    lines cannot scribble over the alternate screen.
    """
    level = _level_for(verbose)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(
            logging.Formatter("[podman-compose-mgr] %(levelname)s %(message)s")
        )
        logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


__all__ = ["configure_logging", "get_logger"]
