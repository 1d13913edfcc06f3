"""Application model for the interactive front end."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..config import REBUILD_VIEW_LINE_BUFFER_DEFAULT
from ..models import DiscoveredImage, DiscoveryResult
from ..rebuild.jobs import QueueResult, RebuildJob
from .search import SearchState

TITLE = "Podman Compose Manager"
SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
SIDEBAR_WIDTH = 30
# Header panel, footer line and the output panel border.
_CHROME_ROWS = 3 + 1 + 2


class UiState(Enum):
    SCANNING = "scanning"
    READY = "ready"
    REBUILDING = "rebuilding"


class ViewMode(Enum):
    BY_CONTAINER = "container"
    BY_IMAGE = "image"
    BY_FOLDER = "folder"

    @property
    def label(self) -> str:
        return _VIEW_LABELS[self]


_VIEW_LABELS = {
    ViewMode.BY_CONTAINER: "By container",
    ViewMode.BY_IMAGE: "By image",
    ViewMode.BY_FOLDER: "By folder",
}

VIEW_MODES: Tuple[ViewMode, ...] = (ViewMode.BY_CONTAINER, ViewMode.BY_IMAGE, ViewMode.BY_FOLDER)


@dataclass
class ItemRow:
    """One visible line of the item list; folder rows have ``is_dir`` set."""

    image: str
    container: Optional[str]
    source_dir: Path
    entry_path: Optional[Path] = None
    is_dir: bool = False
    checked: bool = False
    expanded: bool = False
    details: List[str] = field(default_factory=list)

    @property
    def key(self) -> Tuple[object, ...]:
        return (self.is_dir, self.image, self.container, self.source_dir)

    @classmethod
    def from_item(cls, item: DiscoveredImage) -> "ItemRow":
        return cls(
            image=item.image,
            container=item.container,
            source_dir=item.source_dir,
            entry_path=item.entry_path,
        )


@dataclass
class ViewPickerModal:
    selected_idx: int = 0


@dataclass
class WorkQueueModal:
    selected_idx: int = 0


@dataclass
class ExportLogModal:
    input: str = ""
    error: Optional[str] = None


Modal = Union[ViewPickerModal, WorkQueueModal, ExportLogModal]


def output_viewport(width: int, height: int) -> Tuple[int, int]:
    """Columns and rows available to the rebuild output pane."""
    return max(1, width - SIDEBAR_WIDTH - 2), max(1, height - _CHROME_ROWS)


@dataclass
class RebuildState:
    jobs: List[RebuildJob] = field(default_factory=list)
    active_idx: int = 0
    scroll_y: int = 0
    scroll_x: int = 0
    work_queue_selected: int = 0
    finished: bool = False
    result: Optional[QueueResult] = None
    auto_scroll: bool = True
    viewport_height: int = 20
    viewport_width: int = 80
    output_limit: int = REBUILD_VIEW_LINE_BUFFER_DEFAULT
    search: Optional[SearchState] = None

    @property
    def active_job(self) -> Optional[RebuildJob]:
        if 0 <= self.active_idx < len(self.jobs):
            return self.jobs[self.active_idx]
        return None

    def max_scroll(self) -> int:
        job = self.active_job
        if job is None:
            return 0
        return max(0, len(job) - self.viewport_height)


@dataclass
class Model:
    root_path: Path
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    title: str = TITLE
    should_quit: bool = False
    state: UiState = UiState.SCANNING
    rows: List[ItemRow] = field(default_factory=list)
    selected: int = 0
    spinner_idx: int = 0
    view_mode: ViewMode = ViewMode.BY_IMAGE
    modal: Optional[Modal] = None
    discovery: Optional[DiscoveryResult] = None
    current_path: Optional[Path] = None
    rebuild: Optional[RebuildState] = None
    auto_rebuild_all: bool = False
    auto_rebuild_triggered: bool = False
    output_limit: int = REBUILD_VIEW_LINE_BUFFER_DEFAULT
    width: int = 120
    height: int = 32
    status_message: Optional[str] = None

    @property
    def spinner(self) -> str:
        return SPINNER_FRAMES[self.spinner_idx % len(SPINNER_FRAMES)]

    @property
    def items(self) -> List[DiscoveredImage]:
        return self.discovery.images if self.discovery is not None else []

    @property
    def selected_row(self) -> Optional[ItemRow]:
        if 0 <= self.selected < len(self.rows):
            return self.rows[self.selected]
        return None


__all__ = [
    "ExportLogModal",
    "ItemRow",
    "Modal",
    "Model",
    "RebuildState",
    "SIDEBAR_WIDTH",
    "SPINNER_FRAMES",
    "TITLE",
    "UiState",
    "VIEW_MODES",
    "ViewMode",
    "ViewPickerModal",
    "WorkQueueModal",
    "output_viewport",
]
