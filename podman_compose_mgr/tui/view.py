"""Render the model into a rich renderable; reads the model, never changes it."""

from __future__ import annotations

from typing import List, Optional, Tuple

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..rebuild.jobs import OutputStream, QueueResult, RebuildStatus
from .search import SearchDirection, normalize_line
from .state import (
    SIDEBAR_WIDTH,
    VIEW_MODES,
    ExportLogModal,
    Model,
    RebuildState,
    UiState,
    ViewPickerModal,
    WorkQueueModal,
)

HEADER_HEIGHT = 3
FOOTER_HEIGHT = 1

_STATUS_MARKS = {
    RebuildStatus.PENDING: "·",
    RebuildStatus.RUNNING: "»",
    RebuildStatus.SUCCEEDED: "✔",
    RebuildStatus.FAILED: "✘",
}

LEGEND = (
    "↑/↓ scroll  PgUp/PgDn page",
    "←/→ pan  g/G top/bottom",
    "/ ? search  n/N next/prev",
    "w work queue  e export",
    "Esc back  q quit",
)

_READY_HINTS = "↑/↓ move  space check  a all  → details  v view  r rebuild  q quit"


def _body_height(model: Model) -> int:
    return max(3, model.height - HEADER_HEIGHT - FOOTER_HEIGHT)


def _header(model: Model) -> Panel:
    busy = model.state is UiState.SCANNING or (
        model.rebuild is not None and not model.rebuild.finished
    )
    text = Text()
    text.append(model.title, style="bold")
    if busy:
        text.append(f" {model.spinner}", style="cyan")
    text.append(f"  [{model.state.value}]", style="magenta")
    text.append(f"  View: {model.view_mode.label}")
    text.append(f"  Root: {model.root_path}", style="dim")
    return Panel(text, height=HEADER_HEIGHT, box=box.ROUNDED)


def _row_lines(model: Model) -> Tuple[List[Tuple[int, Tuple[str, str, str, str]]], int]:
    lines: List[Tuple[int, Tuple[str, str, str, str]]] = []
    selected_line = 0
    for index, row in enumerate(model.rows):
        if index == model.selected:
            selected_line = len(lines)
        if row.is_dir:
            cells = ("", f"▸ {row.image}", "", str(row.source_dir))
        else:
            mark = "[x]" if row.checked else "[ ]"
            cells = (mark, row.image, row.container or "", str(row.source_dir))
        lines.append((index, cells))
        if row.expanded:
            for detail in row.details:
                lines.append((index, ("", f"    {detail}", "", "")))
    return lines, selected_line


def _ready_body(model: Model, height: int) -> RenderableType:
    if not model.rows:
        message = "No images found" if model.discovery is not None else "Nothing scanned"
        return Panel(Text(message, style="dim"), height=height, title="Images")

    visible = max(1, height - 3)
    lines, selected_line = _row_lines(model)
    start = 0
    if selected_line >= visible:
        start = selected_line - visible + 1
    table = Table(box=None, expand=True, pad_edge=False)
    table.add_column("", width=3, no_wrap=True)
    table.add_column("Image", ratio=3, no_wrap=True, overflow="ellipsis")
    table.add_column("Container", ratio=2, no_wrap=True, overflow="ellipsis")
    table.add_column("Directory", ratio=3, no_wrap=True, overflow="ellipsis")
    for index, cells in lines[start : start + visible]:
        style = "reverse" if index == model.selected else None
        table.add_row(*(Text(cell) for cell in cells), style=style)
    return Panel(table, height=height, title=f"Images ({len(model.rows)})")


def _output_text(rebuild: RebuildState) -> Text:
    job = rebuild.active_job
    text = Text(no_wrap=True, overflow="crop")
    if job is None:
        return text
    snapshot = job.snapshot()
    window = snapshot[rebuild.scroll_y : rebuild.scroll_y + rebuild.viewport_height]
    search = rebuild.search
    active = search.active_match if search is not None else None
    for offset, line in enumerate(window):
        line_no = rebuild.scroll_y + offset
        visible = normalize_line(line.text)[rebuild.scroll_x : rebuild.scroll_x + rebuild.viewport_width]
        segment = Text(visible, style="red" if line.stream is OutputStream.STDERR else "")
        if search is not None:
            for match in search.matches_on_line(line_no):
                start = max(0, match.start - rebuild.scroll_x)
                end = min(len(visible), match.end - rebuild.scroll_x)
                if start < end:
                    style = "black on magenta" if match == active else "black on yellow"
                    segment.stylize(style, start, end)
        if offset:
            text.append("\n")
        text.append_text(segment)
    return text


def _queue_status(rebuild: RebuildState) -> str:
    if not rebuild.finished:
        return "Running"
    if rebuild.result is QueueResult.CANCELLED:
        return "Cancelled"
    return "Done"


def _sidebar(model: Model, rebuild: RebuildState, height: int) -> Panel:
    job = rebuild.active_job
    text = Text(no_wrap=True, overflow="ellipsis")
    text.append(f"Job: {rebuild.active_idx + 1}/{len(rebuild.jobs)}\n")
    text.append(f"Status: {_queue_status(rebuild)}\n")
    if job is not None:
        text.append(f"Image: {job.image}\n")
        text.append(f"Job status: {job.status.value}\n")
    text.append("\n")
    for index, queued in enumerate(rebuild.jobs):
        mark = _STATUS_MARKS[queued.status]
        if queued.status is RebuildStatus.RUNNING:
            mark = model.spinner
        style = "bold" if index == rebuild.active_idx else ""
        text.append(f"{mark} {queued.image}\n", style=style)
    text.append("\nLegend\n", style="bold underline")
    for entry in LEGEND:
        text.append(f"{entry}\n", style="dim")
    return Panel(text, width=SIDEBAR_WIDTH, height=height, title="Queue")


def _rebuild_body(model: Model, rebuild: RebuildState, height: int) -> RenderableType:
    job = rebuild.active_job
    title = f"Output: {job.image}" if job is not None else "Output"
    if rebuild.auto_scroll:
        title += " (following)"
    grid = Table.grid(expand=True)
    grid.add_column(ratio=1)
    grid.add_column(width=SIDEBAR_WIDTH)
    grid.add_row(
        Panel(_output_text(rebuild), title=title, height=height),
        _sidebar(model, rebuild, height),
    )
    return grid


def _modal(model: Model, height: int) -> Optional[Panel]:
    modal = model.modal
    if isinstance(modal, ViewPickerModal):
        text = Text()
        for index, mode in enumerate(VIEW_MODES):
            prefix = "▶ " if index == modal.selected_idx else "  "
            text.append(f"{prefix}{mode.label}\n", style="bold" if index == modal.selected_idx else "")
        return Panel(text, title="Select View (Enter=apply, Esc=cancel)", height=height)
    if isinstance(modal, WorkQueueModal) and model.rebuild is not None:
        text = Text()
        for index, job in enumerate(model.rebuild.jobs):
            prefix = "▶ " if index == modal.selected_idx else "  "
            text.append(f"{prefix}{job.image}  [{job.status.value}]\n")
        return Panel(text, title="Work Queue (Esc=close)", height=height)
    if isinstance(modal, ExportLogModal):
        text = Text(f"File: {modal.input}_\n")
        if modal.error:
            text.append(modal.error, style="red")
        return Panel(text, title="Export Log (Enter=save, Esc=cancel)", height=height)
    return None


def _footer(model: Model) -> Text:
    rebuild = model.rebuild
    if model.state is UiState.REBUILDING and rebuild is not None and rebuild.search is not None:
        search = rebuild.search
        marker = "/" if search.direction is SearchDirection.FORWARD else "?"
        if search.editing:
            return Text(f"{marker}{search.query}_")
        return Text(f"{marker}{search.query}  {search.status()}", style="red" if search.error else "")
    if model.status_message:
        return Text(model.status_message, style="yellow")
    if model.state is UiState.READY:
        return Text(_READY_HINTS, style="dim")
    return Text("")


def render(model: Model) -> RenderableType:
    """Project the model into one full-screen frame."""
    height = _body_height(model)
    body = _modal(model, height)
    if body is None:
        if model.state is UiState.SCANNING:
            body = Panel(
                Text(f"{model.spinner} Scanning {model.root_path}..."), height=height, title="Images"
            )
        elif model.state is UiState.REBUILDING and model.rebuild is not None:
            body = _rebuild_body(model, model.rebuild, height)
        else:
            body = _ready_body(model, height)
    return Group(_header(model), body, _footer(model))


__all__ = ["LEGEND", "render"]
