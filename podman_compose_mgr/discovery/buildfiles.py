"""Helpers for Dockerfiles and Makefiles found next to declarations."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional, Set

DOCKERFILE_NAME = "Dockerfile"
MAKEFILE_NAME = "Makefile"

_MAKE_TARGET = re.compile(r"^([^:=#\s][^:=#]*?)\s*:(?![:=])")
_FROM_LINE = re.compile(r"^\s*FROM\s+(?P<rest>.+)$", re.IGNORECASE)


def is_dockerfile(name: str) -> bool:
    return name == DOCKERFILE_NAME or name.startswith(f"{DOCKERFILE_NAME}.")


def is_makefile(name: str) -> bool:
    return name == MAKEFILE_NAME


def parse_makefile_targets(text: str) -> List[str]:
    """Return the sorted, unique explicit targets defined in a Makefile body.

    Recipe lines, variable assignments (``:=``, ``::=``), special dot targets
    and pattern or variable targets are ignored.
    """
    targets: Set[str] = set()
    for raw in text.splitlines():
        if not raw or raw[0] in ("\t", " "):
            continue
        line = raw.split("#", 1)[0].rstrip()
        if not line or ":=" in line or "::=" in line:
            continue
        match = _MAKE_TARGET.match(line)
        if match is None:
            continue
        for name in match.group(1).split():
            if name.startswith(".") or "%" in name or "$" in name:
                continue
            targets.add(name)
    return sorted(targets)


def dockerfile_base_image(text: str) -> Optional[str]:
    """Return the first external image named by a ``FROM`` instruction.

    ``scratch``, references to earlier build stages and images built from
    unresolved ``ARG`` values are not pullable and are skipped.
    """
    stages: Set[str] = set()
    for raw in text.splitlines():
        match = _FROM_LINE.match(raw)
        if match is None:
            continue
        tokens = [token for token in match.group("rest").split() if not token.startswith("--")]
        if not tokens:
            continue
        image = tokens[0]
        if len(tokens) >= 3 and tokens[1].lower() == "as":
            stages.add(tokens[2].lower())
        if image.lower() == "scratch" or image.lower() in stages or "$" in image:
            continue
        return image
    return None


def dockerfile_candidates(entry_path: Path, source_dir: Path) -> List[Path]:
    """Ordered places a Dockerfile for ``entry_path`` may live.

    Quadlet units prefer ``Dockerfile.<stem>`` beside them; then a plain
    ``Dockerfile`` beside the entry, then one in ``source_dir``.
    """
    candidates: List[Path] = []
    parent = entry_path.parent
    if entry_path.suffix == ".container":
        candidates.append(parent / f"{DOCKERFILE_NAME}.{entry_path.stem}")
    candidates.append(parent / DOCKERFILE_NAME)
    candidates.append(source_dir / DOCKERFILE_NAME)
    return _unique(candidates)


def _unique(paths: Iterable[Path]) -> List[Path]:
    seen: Set[Path] = set()
    ordered: List[Path] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        ordered.append(path)
    return ordered


__all__ = [
    "DOCKERFILE_NAME",
    "MAKEFILE_NAME",
    "dockerfile_base_image",
    "dockerfile_candidates",
    "is_dockerfile",
    "is_makefile",
    "parse_makefile_targets",
]
