"""Quadlet ``.container`` unit parsing."""

from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path

from ..errors import QuadletError


@dataclass(frozen=True)
class QuadletUnit:
    """Image and resolved container name declared by a unit file."""

    image: str
    container: str


def _new_parser() -> configparser.ConfigParser:
    # Units repeat keys (Volume=, Environment=) and carry literal '%' specifiers.
    parser = configparser.ConfigParser(
        strict=False,
        interpolation=None,
        allow_no_value=True,
        comment_prefixes=("#", ";"),
        delimiters=("=",),
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    return parser


def _get(parser: configparser.ConfigParser, section: str, key: str) -> str | None:
    if not parser.has_section(section):
        return None
    value = parser.get(section, key, fallback=None)
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_container_file(path: Path) -> QuadletUnit:
    """Parse ``path`` and resolve its container name.

    The name comes from ``ContainerName`` in ``[Container]``, then
    ``Description`` in ``[Unit]``, then the file stem.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise QuadletError(path, f"unreadable unit file: {exc}") from exc

    parser = _new_parser()
    try:
        parser.read_string(text, source=str(path))
    except configparser.Error as exc:
        raise QuadletError(path, f"malformed unit file: {exc}") from exc

    if not parser.has_section("Container"):
        raise QuadletError(path, "missing [Container] section")

    image = _get(parser, "Container", "Image")
    if image is None:
        raise QuadletError(path, "missing Image directive in [Container]")

    container = (
        _get(parser, "Container", "ContainerName")
        or _get(parser, "Unit", "Description")
        or path.stem
    )
    return QuadletUnit(image=image, container=container)


__all__ = ["QuadletUnit", "parse_container_file"]
