"""Messages consumed by the update function and the commands it returns."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..models import DiscoveryResult
from ..rebuild.jobs import JobFinished, JobOutput, JobStarted, QueueFinished, RebuildJob
from .search import SearchDirection


@dataclass(frozen=True)
class Init:
    pass


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Interrupt:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class KeyPressed:
    """Raw key name from the input forwarder; mapped against the current model."""

    key: str


@dataclass(frozen=True)
class ScanFinished:
    result: Optional[DiscoveryResult] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DetailsReady:
    row_key: Tuple[object, ...]
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class ExportFinished:
    path: Path
    error: Optional[str] = None


# Row list navigation.
@dataclass(frozen=True)
class MoveUp:
    pass


@dataclass(frozen=True)
class MoveDown:
    pass


@dataclass(frozen=True)
class PageUp:
    pass


@dataclass(frozen=True)
class PageDown:
    pass


@dataclass(frozen=True)
class ToggleCheck:
    pass


@dataclass(frozen=True)
class ToggleCheckAll:
    pass


@dataclass(frozen=True)
class ExpandOrEnter:
    pass


@dataclass(frozen=True)
class CollapseOrBack:
    pass


@dataclass(frozen=True)
class OpenViewPicker:
    pass


@dataclass(frozen=True)
class ViewPickerUp:
    pass


@dataclass(frozen=True)
class ViewPickerDown:
    pass


@dataclass(frozen=True)
class ViewPickerAccept:
    pass


@dataclass(frozen=True)
class CloseModal:
    pass


@dataclass(frozen=True)
class StartRebuild:
    pass


@dataclass(frozen=True)
class ExitRebuild:
    pass


@dataclass(frozen=True)
class OpenWorkQueue:
    pass


@dataclass(frozen=True)
class WorkQueueUp:
    pass


@dataclass(frozen=True)
class WorkQueueDown:
    pass


@dataclass(frozen=True)
class WorkQueueSelect:
    pass


# Rebuild output scrolling.
@dataclass(frozen=True)
class ScrollUp:
    pass


@dataclass(frozen=True)
class ScrollDown:
    pass


@dataclass(frozen=True)
class ScrollPageUp:
    pass


@dataclass(frozen=True)
class ScrollPageDown:
    pass


@dataclass(frozen=True)
class ScrollTop:
    pass


@dataclass(frozen=True)
class ScrollBottom:
    pass


@dataclass(frozen=True)
class ScrollLeft:
    pass


@dataclass(frozen=True)
class ScrollRight:
    pass


# Search over the active job's output.
@dataclass(frozen=True)
class SearchStart:
    direction: SearchDirection = SearchDirection.FORWARD


@dataclass(frozen=True)
class SearchInput:
    text: str


@dataclass(frozen=True)
class SearchBackspace:
    pass


@dataclass(frozen=True)
class SearchSubmit:
    pass


@dataclass(frozen=True)
class SearchCancel:
    pass


@dataclass(frozen=True)
class SearchNext:
    pass


@dataclass(frozen=True)
class SearchPrev:
    pass


# Log export.
@dataclass(frozen=True)
class OpenExportLog:
    pass


@dataclass(frozen=True)
class ExportInput:
    text: str


@dataclass(frozen=True)
class ExportBackspace:
    pass


@dataclass(frozen=True)
class ExportSubmit:
    pass


# Commands: side effects requested by update, executed by the runtime.
@dataclass(frozen=True)
class ScanCommand:
    root: Path
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FetchDetailsCommand:
    row_key: Tuple[object, ...]
    image: str
    source_dir: Path
    entry_path: Optional[Path]


@dataclass(frozen=True)
class RebuildCommand:
    jobs: List[RebuildJob] = field(default_factory=list)
    start_idx: int = 0


@dataclass(frozen=True)
class CancelRebuildCommand:
    pass


@dataclass(frozen=True)
class ExportLogCommand:
    path: Path
    lines: Tuple[str, ...]


Command = Union[
    ScanCommand, FetchDetailsCommand, RebuildCommand, CancelRebuildCommand, ExportLogCommand
]

