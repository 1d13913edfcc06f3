"""Dry-run listing over a replayed podman snapshot."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from .models import DiscoveryResult
from .podman.dates import format_time_ago
from .ports import PodmanPort
from .tui.rows import build_rows
from .tui.state import ViewMode


def simulate_lines(
    result: DiscoveryResult,
    podman: PodmanPort,
    view_mode: ViewMode = ViewMode.BY_CONTAINER,
    now: Optional[datetime] = None,
) -> List[str]:
    """Deterministic text for golden-output tests; ``now`` pins the ages."""
    lines: List[str] = []
    for row in build_rows(result.images, view_mode, result.root):
        if row.is_dir:
            lines.append(f"[dry-run] folder {row.source_dir}")
            continue
        lines.append(
            f'[dry-run] image {row.image} (container "{row.container or ""}") from {row.source_dir}'
        )
        created = format_time_ago(podman.image_created(row.image), now)
        pulled = format_time_ago(podman.image_modified(row.image), now)
        lines.append(f"[dry-run]   created {created}, pulled {pulled}")
    return lines


__all__ = ["simulate_lines"]
