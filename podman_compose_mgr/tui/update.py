"""The transition function: ``update(model, msg) -> (model, command)``.

``update`` only rearranges the model it is handed and describes side effects
as commands (scan, fetch details, start or cancel the rebuild queue, write a
log export). The runtime executes commands; nothing here touches processes,
files or the terminal, so every transition is testable on its own.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Type

from ..rebuild.jobs import (
    JobFinished,
    JobOutput,
    JobStarted,
    QueueFinished,
    RebuildJob,
    RebuildJobSpec,
)
from . import messages as m
from .keymap import map_key
from .rows import build_rows
from .search import SearchDirection, SearchState, normalize_line
from .state import (
    SPINNER_FRAMES,
    VIEW_MODES,
    ExportLogModal,
    Model,
    RebuildState,
    UiState,
    ViewMode,
    ViewPickerModal,
    WorkQueueModal,
    output_viewport,
)

Command = Optional[object]
Result = Tuple[Model, Command]

PAGE_STEP = 12
HORIZONTAL_STEP = 4
LOADING_DETAILS = "Loading details..."

_HANDLERS: Dict[Type[object], Callable[[Model, object], Command]] = {}


def _handles(*types: Type[object]):
    def register(func: Callable[[Model, object], Command]) -> Callable[[Model, object], Command]:
        for msg_type in types:
            _HANDLERS[msg_type] = func
        return func

    return register


def update(model: Model, msg: object) -> Result:
    handler = _HANDLERS.get(type(msg))
    if handler is None:
        return model, None
    return model, handler(model, msg)


# Lifecycle


@_handles(m.KeyPressed)
def _on_key(model: Model, msg: m.KeyPressed) -> Command:
    mapped = map_key(model, msg.key)
    if mapped is None:
        return None
    return update(model, mapped)[1]


@_handles(m.Init)
def _on_init(model: Model, msg: m.Init) -> Command:
    model.state = UiState.SCANNING
    model.status_message = None
    return m.ScanCommand(model.root_path, tuple(model.include), tuple(model.exclude))


@_handles(m.Tick)
def _on_tick(model: Model, msg: m.Tick) -> Command:
    model.spinner_idx = (model.spinner_idx + 1) % len(SPINNER_FRAMES)
    return None


@_handles(m.Resize)
def _on_resize(model: Model, msg: m.Resize) -> Command:
    model.width = msg.width
    model.height = msg.height
    if model.rebuild is not None:
        _fit_viewport(model, model.rebuild)
    return None


@_handles(m.Quit, m.Interrupt)
def _on_quit(model: Model, msg: object) -> Command:
    model.should_quit = True
    if model.rebuild is not None and not model.rebuild.finished:
        return m.CancelRebuildCommand()
    return None


@_handles(m.ScanFinished)
def _on_scan_finished(model: Model, msg: m.ScanFinished) -> Command:
    model.state = UiState.READY
    model.selected = 0
    if msg.error is not None or msg.result is None:
        model.discovery = None
        model.rows = []
        model.status_message = f"Scan failed: {msg.error}"
        return None

    model.discovery = msg.result
    model.current_path = model.root_path
    _refresh_rows(model)
    skipped = len(msg.result.skipped)
    model.status_message = f"{skipped} entries skipped (run with -v for details)" if skipped else None

    if model.auto_rebuild_all and not model.auto_rebuild_triggered:
        model.auto_rebuild_triggered = True
        for row in model.rows:
            if not row.is_dir:
                row.checked = True
        return _start_rebuild(model)
    return None


@_handles(m.DetailsReady)
def _on_details(model: Model, msg: m.DetailsReady) -> Command:
    for row in model.rows:
        if row.key == msg.row_key:
            row.details = list(msg.lines)
    return None


@_handles(m.ExportFinished)
def _on_export_finished(model: Model, msg: m.ExportFinished) -> Command:
    if msg.error is not None:
        model.status_message = f"Export failed: {msg.error}"
    else:
        model.status_message = f"Saved log to {msg.path}"
    return None


# Row list


def _refresh_rows(model: Model) -> None:
    model.rows = build_rows(model.items, model.view_mode, model.root_path, model.current_path)
    model.selected = min(model.selected, max(0, len(model.rows) - 1))


def _move(model: Model, delta: int) -> None:
    if not model.rows:
        model.selected = 0
        return
    model.selected = max(0, min(len(model.rows) - 1, model.selected + delta))


@_handles(m.MoveUp)
def _on_move_up(model: Model, msg: object) -> Command:
    _move(model, -1)
    return None


@_handles(m.MoveDown)
def _on_move_down(model: Model, msg: object) -> Command:
    _move(model, 1)
    return None


@_handles(m.PageUp)
def _on_page_up(model: Model, msg: object) -> Command:
    _move(model, -min(PAGE_STEP, max(1, len(model.rows))))
    return None


@_handles(m.PageDown)
def _on_page_down(model: Model, msg: object) -> Command:
    _move(model, min(PAGE_STEP, max(1, len(model.rows))))
    return None


@_handles(m.ToggleCheck)
def _on_toggle(model: Model, msg: object) -> Command:
    row = model.selected_row
    if row is not None and not row.is_dir:
        row.checked = not row.checked
    return None


@_handles(m.ToggleCheckAll)
def _on_toggle_all(model: Model, msg: object) -> Command:
    candidates = [row for row in model.rows if not row.is_dir]
    target = not all(row.checked for row in candidates)
    for row in candidates:
        row.checked = target
    return None


@_handles(m.ExpandOrEnter)
def _on_expand(model: Model, msg: object) -> Command:
    row = model.selected_row
    if row is None:
        return None
    if row.is_dir:
        model.current_path = row.source_dir
        model.selected = 0
        _refresh_rows(model)
        return None
    if row.expanded:
        return None
    row.expanded = True
    row.details = [LOADING_DETAILS]
    return m.FetchDetailsCommand(row.key, row.image, row.source_dir, row.entry_path)


@_handles(m.CollapseOrBack)
def _on_collapse(model: Model, msg: object) -> Command:
    row = model.selected_row
    if row is not None and row.expanded:
        row.expanded = False
        return None
    if model.view_mode is not ViewMode.BY_FOLDER:
        return None
    current = model.current_path or model.root_path
    if current == model.root_path:
        return None
    model.current_path = current.parent
    _refresh_rows(model)
    model.selected = next(
        (i for i, candidate in enumerate(model.rows) if candidate.is_dir and candidate.source_dir == current),
        0,
    )
    return None


# Modals


@_handles(m.OpenViewPicker)
def _on_open_view_picker(model: Model, msg: object) -> Command:
    model.modal = ViewPickerModal(selected_idx=VIEW_MODES.index(model.view_mode))
    return None


@_handles(m.ViewPickerUp, m.ViewPickerDown)
def _on_view_picker_move(model: Model, msg: object) -> Command:
    if isinstance(model.modal, ViewPickerModal):
        delta = -1 if isinstance(msg, m.ViewPickerUp) else 1
        model.modal.selected_idx = max(0, min(len(VIEW_MODES) - 1, model.modal.selected_idx + delta))
    return None


@_handles(m.ViewPickerAccept)
def _on_view_picker_accept(model: Model, msg: object) -> Command:
    if isinstance(model.modal, ViewPickerModal):
        model.view_mode = VIEW_MODES[model.modal.selected_idx]
        model.current_path = model.root_path
        model.selected = 0
        _refresh_rows(model)
    model.modal = None
    return None


@_handles(m.CloseModal)
def _on_close_modal(model: Model, msg: object) -> Command:
    model.modal = None
    return None


@_handles(m.OpenWorkQueue)
def _on_open_work_queue(model: Model, msg: object) -> Command:
    if model.rebuild is not None and model.rebuild.jobs:
        model.modal = WorkQueueModal(selected_idx=model.rebuild.active_idx)
    return None


@_handles(m.WorkQueueUp, m.WorkQueueDown)
def _on_work_queue_move(model: Model, msg: object) -> Command:
    if isinstance(model.modal, WorkQueueModal) and model.rebuild is not None:
        delta = -1 if isinstance(msg, m.WorkQueueUp) else 1
        last = len(model.rebuild.jobs) - 1
        model.modal.selected_idx = max(0, min(last, model.modal.selected_idx + delta))
    return None


@_handles(m.WorkQueueSelect)
def _on_work_queue_select(model: Model, msg: object) -> Command:
    rebuild = model.rebuild
    if isinstance(model.modal, WorkQueueModal) and rebuild is not None:
        rebuild.active_idx = model.modal.selected_idx
        rebuild.work_queue_selected = model.modal.selected_idx
        rebuild.scroll_x = 0
        rebuild.auto_scroll = True
        rebuild.scroll_y = rebuild.max_scroll()
        _refresh_search(rebuild, force=True)
    model.modal = None
    return None


# Rebuild queue


def _fit_viewport(model: Model, rebuild: RebuildState) -> None:
    rebuild.viewport_width, rebuild.viewport_height = output_viewport(model.width, model.height)
    if rebuild.auto_scroll:
        rebuild.scroll_y = rebuild.max_scroll()
    else:
        rebuild.scroll_y = min(rebuild.scroll_y, rebuild.max_scroll())


def _start_rebuild(model: Model) -> Command:
    if model.rebuild is not None and not model.rebuild.finished:
        model.status_message = "A rebuild is already running"
        return None

    targets = [row for row in model.rows if row.checked and not row.is_dir and row.entry_path is not None]
    if not targets:
        model.status_message = "Select at least one row to rebuild"
        return None

    jobs: List[RebuildJob] = []
    for row in targets:
        spec = RebuildJobSpec(
            image=row.image,
            container=row.container,
            entry_path=row.entry_path,  # type: ignore[arg-type]
            source_dir=row.source_dir,
        )
        jobs.append(RebuildJob(spec, model.output_limit))
        row.checked = False

    rebuild = RebuildState(jobs=jobs, output_limit=model.output_limit)
    _fit_viewport(model, rebuild)
    model.rebuild = rebuild
    model.state = UiState.REBUILDING
    model.modal = None
    model.status_message = None
    return m.RebuildCommand(jobs=rebuild.jobs, start_idx=0)


@_handles(m.StartRebuild)
def _on_start_rebuild(model: Model, msg: object) -> Command:
    return _start_rebuild(model)


@_handles(m.ExitRebuild)
def _on_exit_rebuild(model: Model, msg: object) -> Command:
    rebuild = model.rebuild
    if rebuild is not None and not rebuild.finished:
        model.status_message = "Rebuild still running; press q to quit"
        return None
    model.rebuild = None
    model.modal = None
    model.state = UiState.READY
    return None


@_handles(JobStarted)
def _on_job_started(model: Model, msg: JobStarted) -> Command:
    rebuild = model.rebuild
    if rebuild is None:
        return None
    rebuild.active_idx = msg.job_idx
    rebuild.scroll_y = 0
    rebuild.scroll_x = 0
    rebuild.auto_scroll = True
    _refresh_search(rebuild, force=True)
    return None


@_handles(JobOutput, JobFinished)
def _on_job_output(model: Model, msg: object) -> Command:
    rebuild = model.rebuild
    if rebuild is None or msg.job_idx != rebuild.active_idx:  # type: ignore[attr-defined]
        return None
    if rebuild.auto_scroll:
        rebuild.scroll_y = rebuild.max_scroll()
    _refresh_search(rebuild)
    return None


@_handles(QueueFinished)
def _on_queue_finished(model: Model, msg: QueueFinished) -> Command:
    if model.rebuild is not None:
        model.rebuild.finished = True
        model.rebuild.result = msg.result
    return None


# Scrolling


def _scroll_to(rebuild: RebuildState, line: int) -> None:
    rebuild.scroll_y = max(0, min(rebuild.max_scroll(), line))
    rebuild.auto_scroll = rebuild.scroll_y >= rebuild.max_scroll()


@_handles(m.ScrollUp)
def _on_scroll_up(model: Model, msg: object) -> Command:
    if model.rebuild is not None:
        _scroll_to(model.rebuild, model.rebuild.scroll_y - 1)
    return None


@_handles(m.ScrollDown)
def _on_scroll_down(model: Model, msg: object) -> Command:
    if model.rebuild is not None:
        _scroll_to(model.rebuild, model.rebuild.scroll_y + 1)
    return None


@_handles(m.ScrollPageUp)
def _on_scroll_page_up(model: Model, msg: object) -> Command:
    if model.rebuild is not None:
        _scroll_to(model.rebuild, model.rebuild.scroll_y - model.rebuild.viewport_height)
    return None


@_handles(m.ScrollPageDown)
def _on_scroll_page_down(model: Model, msg: object) -> Command:
    if model.rebuild is not None:
        _scroll_to(model.rebuild, model.rebuild.scroll_y + model.rebuild.viewport_height)
    return None


@_handles(m.ScrollTop)
def _on_scroll_top(model: Model, msg: object) -> Command:
    if model.rebuild is not None:
        _scroll_to(model.rebuild, 0)
    return None


@_handles(m.ScrollBottom)
def _on_scroll_bottom(model: Model, msg: object) -> Command:
    if model.rebuild is not None:
        _scroll_to(model.rebuild, model.rebuild.max_scroll())
    return None


@_handles(m.ScrollLeft, m.ScrollRight)
def _on_scroll_horizontal(model: Model, msg: object) -> Command:
    rebuild = model.rebuild
    if rebuild is None:
        return None
    if isinstance(msg, m.ScrollLeft):
        rebuild.scroll_x = max(0, rebuild.scroll_x - HORIZONTAL_STEP)
        return None
    job = rebuild.active_job
    widest = max((len(normalize_line(line.text)) for line in job.snapshot()), default=0) if job else 0
    limit = max(0, widest - rebuild.viewport_width)
    rebuild.scroll_x = min(limit, rebuild.scroll_x + HORIZONTAL_STEP)
    return None


# Search


def _job_lines(rebuild: RebuildState) -> List[str]:
    job = rebuild.active_job
    return [line.text for line in job.snapshot()] if job is not None else []


def _versioned_lines(rebuild: RebuildState) -> Tuple[List[str], int]:
    job = rebuild.active_job
    if job is None:
        return [], -1
    output, version = job.versioned_snapshot()
    return [line.text for line in output], version


def _refresh_search(rebuild: RebuildState, force: bool = False) -> None:
    search = rebuild.search
    job = rebuild.active_job
    if search is None or search.pattern is None or job is None:
        return
    if not force and search.version == job.version:
        return
    lines, version = _versioned_lines(rebuild)
    search.recompute(lines, rebuild.scroll_y, version)


def _reveal_active_match(rebuild: RebuildState) -> None:
    search = rebuild.search
    match = search.active_match if search is not None else None
    if match is None:
        return
    top = rebuild.scroll_y
    if not top <= match.line < top + rebuild.viewport_height:
        _scroll_to(rebuild, match.line - rebuild.viewport_height // 2)
    else:
        rebuild.auto_scroll = False
    if match.start < rebuild.scroll_x or match.end > rebuild.scroll_x + rebuild.viewport_width:
        rebuild.scroll_x = max(0, match.start - HORIZONTAL_STEP)


@_handles(m.SearchStart)
def _on_search_start(model: Model, msg: m.SearchStart) -> Command:
    if model.rebuild is not None:
        model.rebuild.search = SearchState(direction=msg.direction, editing=True)
    return None


def _edit_query(rebuild: RebuildState, query: str) -> None:
    search = rebuild.search
    if search is None:
        return
    search.query = query
    search.compile()
    lines, version = _versioned_lines(rebuild)
    search.recompute(lines, rebuild.scroll_y, version)


@_handles(m.SearchInput)
def _on_search_input(model: Model, msg: m.SearchInput) -> Command:
    rebuild = model.rebuild
    if rebuild is not None and rebuild.search is not None:
        _edit_query(rebuild, rebuild.search.query + msg.text)
    return None


@_handles(m.SearchBackspace)
def _on_search_backspace(model: Model, msg: object) -> Command:
    rebuild = model.rebuild
    if rebuild is not None and rebuild.search is not None:
        _edit_query(rebuild, rebuild.search.query[:-1])
    return None


@_handles(m.SearchSubmit)
def _on_search_submit(model: Model, msg: object) -> Command:
    rebuild = model.rebuild
    if rebuild is None or rebuild.search is None:
        return None
    search = rebuild.search
    search.editing = False
    if not search.query:
        rebuild.search = None
        return None
    _edit_query(rebuild, search.query)
    _reveal_active_match(rebuild)
    return None


@_handles(m.SearchCancel)
def _on_search_cancel(model: Model, msg: object) -> Command:
    if model.rebuild is not None:
        model.rebuild.search = None
    return None


@_handles(m.SearchNext, m.SearchPrev)
def _on_search_step(model: Model, msg: object) -> Command:
    rebuild = model.rebuild
    if rebuild is None or rebuild.search is None:
        return None
    search = rebuild.search
    forward = (search.direction is SearchDirection.FORWARD) == isinstance(msg, m.SearchNext)
    if forward:
        search.advance_next()
    else:
        search.advance_prev()
    _reveal_active_match(rebuild)
    return None


# Log export


@_handles(m.OpenExportLog)
def _on_open_export(model: Model, msg: object) -> Command:
    if model.rebuild is not None and model.rebuild.active_job is not None:
        model.modal = ExportLogModal()
    return None


@_handles(m.ExportInput)
def _on_export_input(model: Model, msg: m.ExportInput) -> Command:
    if isinstance(model.modal, ExportLogModal):
        model.modal.input += msg.text
        model.modal.error = None
    return None


@_handles(m.ExportBackspace)
def _on_export_backspace(model: Model, msg: object) -> Command:
    if isinstance(model.modal, ExportLogModal):
        model.modal.input = model.modal.input[:-1]
        model.modal.error = None
    return None


def validate_export_path(raw: str) -> Tuple[Optional[Path], Optional[str]]:
    name = raw.strip()
    if not name:
        return None, "Enter a file name"
    path = Path(name)
    if path.is_absolute() or ".." in path.parts:
        return None, "Use a relative path without '..'"
    return path, None


@_handles(m.ExportSubmit)
def _on_export_submit(model: Model, msg: object) -> Command:
    modal = model.modal
    rebuild = model.rebuild
    if not isinstance(modal, ExportLogModal) or rebuild is None or rebuild.active_job is None:
        model.modal = None
        return None
    path, error = validate_export_path(modal.input)
    if error is not None or path is None:
        modal.error = error
        return None
    model.modal = None
    return m.ExportLogCommand(path=path, lines=tuple(_job_lines(rebuild)))


__all__ = ["LOADING_DETAILS", "PAGE_STEP", "update", "validate_export_path"]
