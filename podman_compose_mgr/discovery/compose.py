"""Compose file parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from ..errors import ComposeError


@dataclass(frozen=True)
class ComposeDeclarations:
    """Services of one compose file that name both an image and a container."""

    pairs: List[Tuple[str, str]] = field(default_factory=list)
    first_image: Optional[str] = None


def parse_compose_file(path: Path) -> ComposeDeclarations:
    """Return ``(image, container_name)`` pairs in service declaration order.

    Services missing either key contribute nothing, but the first ``image``
    seen is still recorded so Dockerfiles next to the file can be matched.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ComposeError(path, f"unreadable compose file: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ComposeError(path, f"invalid YAML: {exc}") from exc

    if data is None:
        return ComposeDeclarations()
    if not isinstance(data, dict):
        raise ComposeError(path, "compose file must contain a mapping at the root")

    services = data.get("services")
    if services is None:
        return ComposeDeclarations()
    if not isinstance(services, dict):
        raise ComposeError(path, "'services' must be a mapping")

    pairs: List[Tuple[str, str]] = []
    first_image: Optional[str] = None
    for service in services.values():
        if not isinstance(service, dict):
            continue
        image = service.get("image")
        if not isinstance(image, str) or not image.strip():
            continue
        image = image.strip()
        if first_image is None:
            first_image = image
        container = service.get("container_name")
        if isinstance(container, str) and container.strip():
            pairs.append((image, container.strip()))

    return ComposeDeclarations(pairs=pairs, first_image=first_image)


__all__ = ["ComposeDeclarations", "parse_compose_file"]
