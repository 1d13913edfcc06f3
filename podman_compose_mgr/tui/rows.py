"""Project discovered images into list rows for a view mode.

Pure functions of ``(items, view mode, folder cursor)``; previewing another
view never touches the live model.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..models import DiscoveredImage
from .state import ItemRow, ViewMode


def _relative_parts(path: Path, base: Path) -> Optional[Tuple[str, ...]]:
    try:
        return path.relative_to(base).parts
    except ValueError:
        return None


def _folder_rows(items: Sequence[DiscoveredImage], current: Path) -> List[ItemRow]:
    subdirs: Set[str] = set()
    images: Dict[str, DiscoveredImage] = {}
    for item in items:
        parts = _relative_parts(item.source_dir, current)
        if parts is None:
            continue
        if parts:
            subdirs.add(parts[0])
        elif item.image not in images:
            images[item.image] = item

    rows = [
        ItemRow(image=f"{name}/", container=None, source_dir=current / name, is_dir=True)
        for name in sorted(subdirs)
    ]
    rows.extend(ItemRow.from_item(images[name]) for name in sorted(images))
    return rows


def build_rows(
    items: Sequence[DiscoveredImage],
    view_mode: ViewMode,
    root: Path,
    current_path: Optional[Path] = None,
) -> List[ItemRow]:
    if view_mode is ViewMode.BY_CONTAINER:
        return [ItemRow.from_item(item) for item in items]

    if view_mode is ViewMode.BY_IMAGE:
        seen: Set[str] = set()
        rows: List[ItemRow] = []
        for item in items:
            if item.image in seen:
                continue
            seen.add(item.image)
            rows.append(ItemRow.from_item(item))
        return rows

    return _folder_rows(items, current_path or root)


__all__ = ["build_rows"]
