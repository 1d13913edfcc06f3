"""Tests for podman_compose_mgr.tui.update."""

from __future__ import annotations

from pathlib import Path

import pytest

from podman_compose_mgr.models import DiscoveredImage, DiscoveryResult
from podman_compose_mgr.rebuild import (
    JobFinished,
    JobOutput,
    JobStarted,
    OutputStream,
    QueueFinished,
    QueueResult,
    RebuildStatus,
)
from podman_compose_mgr.tui import messages as m
from podman_compose_mgr.tui.search import SearchDirection
from podman_compose_mgr.tui.state import (
    ExportLogModal,
    Model,
    UiState,
    ViewMode,
    ViewPickerModal,
    WorkQueueModal,
)
from podman_compose_mgr.tui.update import LOADING_DETAILS, update, validate_export_path

ROOT = Path("/srv")


def _item(image: str, container: str, directory: str) -> DiscoveredImage:
    source_dir = ROOT / directory
    return DiscoveredImage(image, container, source_dir, source_dir / "docker-compose.yml")


def _result() -> DiscoveryResult:
    return DiscoveryResult(
        root=ROOT,
        images=[
            _item("djf/a", "a1", "one"),
            _item("djf/a", "a2", "two"),
            _item("djf/b", "b1", "two"),
        ],
    )


def _ready(**kwargs) -> Model:
    model = Model(root_path=ROOT, **kwargs)
    update(model, m.ScanFinished(result=_result()))
    return model


def _rebuilding(rows: int = 2, height: int = 32) -> Model:
    model = _ready(height=height, output_limit=500)
    for row in model.rows[:rows]:
        row.checked = True
    _, command = update(model, m.StartRebuild())
    assert isinstance(command, m.RebuildCommand)
    return model


def _push(model: Model, idx: int, count: int, text: str = "line") -> None:
    job = model.rebuild.jobs[idx]
    for number in range(count):
        job.push_output(OutputStream.STDOUT, f"{text} {number}")
        update(model, JobOutput(idx))


def test_init_requests_scan() -> None:
    model = Model(root_path=ROOT, include=("x",), exclude=("y",))

    _, command = update(model, m.Init())

    assert command == m.ScanCommand(ROOT, ("x",), ("y",))
    assert model.state is UiState.SCANNING


def test_scan_finished_defaults_to_image_view() -> None:
    model = _ready()

    assert model.state is UiState.READY
    assert model.view_mode is ViewMode.BY_IMAGE
    assert [row.image for row in model.rows] == ["djf/a", "djf/b"]


def test_scan_error_is_reported() -> None:
    model = Model(root_path=ROOT)

    update(model, m.ScanFinished(error="Scan path not found: /srv"))

    assert model.state is UiState.READY
    assert model.rows == []
    assert model.status_message == "Scan failed: Scan path not found: /srv"


def test_tick_advances_spinner() -> None:
    model = Model(root_path=ROOT)

    update(model, m.Tick())

    assert model.spinner_idx == 1


def test_navigation_clamps() -> None:
    model = _ready()

    update(model, m.MoveUp())
    assert model.selected == 0
    update(model, m.PageDown())
    assert model.selected == 1
    update(model, m.MoveDown())
    assert model.selected == 1


def test_toggle_check_and_check_all() -> None:
    model = _ready()

    update(model, m.ToggleCheck())
    assert [row.checked for row in model.rows] == [True, False]
    update(model, m.ToggleCheckAll())
    assert [row.checked for row in model.rows] == [True, True]
    update(model, m.ToggleCheckAll())
    assert [row.checked for row in model.rows] == [False, False]


def test_expand_requests_details_once() -> None:
    model = _ready()

    _, command = update(model, m.ExpandOrEnter())
    row = model.rows[0]

    assert command == m.FetchDetailsCommand(row.key, "djf/a", ROOT / "one", ROOT / "one" / "docker-compose.yml")
    assert row.expanded
    assert row.details == [LOADING_DETAILS]
    assert update(model, m.ExpandOrEnter())[1] is None

    update(model, m.DetailsReady(row.key, ("Created: never",)))
    assert row.details == ["Created: never"]

    update(model, m.CollapseOrBack())
    assert not row.expanded


def test_view_picker_changes_mode() -> None:
    model = _ready()

    update(model, m.OpenViewPicker())
    assert isinstance(model.modal, ViewPickerModal)
    assert model.modal.selected_idx == 1
    update(model, m.ViewPickerUp())
    update(model, m.ViewPickerAccept())

    assert model.modal is None
    assert model.view_mode is ViewMode.BY_CONTAINER
    assert len(model.rows) == 3


def test_view_picker_cancel_keeps_mode() -> None:
    model = _ready()

    update(model, m.OpenViewPicker())
    update(model, m.ViewPickerDown())
    update(model, m.CloseModal())

    assert model.view_mode is ViewMode.BY_IMAGE


def test_folder_navigation_enters_and_leaves_directories() -> None:
    model = _ready(view_mode=ViewMode.BY_FOLDER)
    assert [row.image for row in model.rows] == ["one/", "two/"]

    update(model, m.MoveDown())
    update(model, m.ExpandOrEnter())
    assert model.current_path == ROOT / "two"
    assert [row.image for row in model.rows] == ["djf/a", "djf/b"]

    update(model, m.CollapseOrBack())
    assert model.current_path == ROOT
    assert model.selected == 1


def test_start_rebuild_requires_selection() -> None:
    model = _ready()

    _, command = update(model, m.StartRebuild())

    assert command is None
    assert model.state is UiState.READY
    assert model.status_message == "Select at least one row to rebuild"


def test_start_rebuild_builds_jobs_and_clears_checks() -> None:
    model = _rebuilding()

    assert model.state is UiState.REBUILDING
    assert [job.image for job in model.rebuild.jobs] == ["djf/a", "djf/b"]
    assert all(job.output_limit == 500 for job in model.rebuild.jobs)
    assert not any(row.checked for row in model.rows)


def test_auto_rebuild_all_starts_queue_after_scan() -> None:
    model = Model(root_path=ROOT, auto_rebuild_all=True)

    _, command = update(model, m.ScanFinished(result=_result()))

    assert isinstance(command, m.RebuildCommand)
    assert len(command.jobs) == 2
    assert model.auto_rebuild_triggered


def test_second_rebuild_refused_while_running() -> None:
    model = _rebuilding()
    model.rows[0].checked = True

    _, command = update(model, m.StartRebuild())

    assert command is None
    assert model.status_message == "A rebuild is already running"


def test_job_events_follow_output() -> None:
    model = _rebuilding(height=16)
    viewport = model.rebuild.viewport_height

    update(model, JobStarted(0))
    model.rebuild.jobs[0].mark_running()
    _push(model, 0, viewport + 5)

    assert model.rebuild.auto_scroll
    assert model.rebuild.scroll_y == 5


def test_scrolling_up_stops_following() -> None:
    model = _rebuilding(height=16)
    update(model, JobStarted(0))
    _push(model, 0, 40)

    update(model, m.ScrollUp())
    assert not model.rebuild.auto_scroll
    before = model.rebuild.scroll_y
    _push(model, 0, 3, text="late")
    assert model.rebuild.scroll_y == before

    update(model, m.ScrollBottom())
    assert model.rebuild.auto_scroll


def test_horizontal_scroll_bounded_by_widest_line() -> None:
    model = _rebuilding()
    update(model, JobStarted(0))
    width = model.rebuild.viewport_width
    model.rebuild.jobs[0].push_output(OutputStream.STDOUT, "x" * (width + 6))

    for _ in range(5):
        update(model, m.ScrollRight())
    assert model.rebuild.scroll_x == 6
    update(model, m.ScrollLeft())
    assert model.rebuild.scroll_x == 2


def test_job_started_switches_active_job() -> None:
    model = _rebuilding()

    update(model, JobStarted(1))

    assert model.rebuild.active_idx == 1
    assert model.rebuild.scroll_y == 0


def test_exit_rebuild_only_after_queue_finished() -> None:
    model = _rebuilding()

    update(model, m.ExitRebuild())
    assert model.state is UiState.REBUILDING

    update(model, JobFinished(1, RebuildStatus.SUCCEEDED))
    update(model, QueueFinished(QueueResult.COMPLETED))
    update(model, m.ExitRebuild())

    assert model.state is UiState.READY
    assert model.rebuild is None


def test_quit_while_rebuilding_cancels_queue() -> None:
    model = _rebuilding()

    _, command = update(model, m.Quit())

    assert model.should_quit
    assert command == m.CancelRebuildCommand()


def test_interrupt_when_idle_just_quits() -> None:
    model = _ready()

    _, command = update(model, m.Interrupt())

    assert model.should_quit
    assert command is None


def test_search_flow() -> None:
    model = _rebuilding()
    update(model, JobStarted(0))
    _push(model, 0, 30)

    update(model, m.SearchStart(SearchDirection.FORWARD))
    for char in "line 2":
        update(model, m.SearchInput(char))
    update(model, m.SearchSubmit())

    search = model.rebuild.search
    assert search is not None
    assert not search.editing
    assert len(search.matches) == 11
    first = search.active_match
    update(model, m.SearchNext())
    assert search.active_match != first

    update(model, m.SearchCancel())
    assert model.rebuild.search is None


def test_search_refreshes_as_output_arrives() -> None:
    model = _rebuilding()
    update(model, JobStarted(0))
    _push(model, 0, 3)
    update(model, m.SearchStart(SearchDirection.FORWARD))
    update(model, m.SearchInput("l"))
    update(model, m.SearchSubmit())
    assert len(model.rebuild.search.matches) == 3

    _push(model, 0, 2, text="log")

    assert len(model.rebuild.search.matches) == 5


def test_work_queue_switches_job() -> None:
    model = _rebuilding()

    update(model, m.OpenWorkQueue())
    assert isinstance(model.modal, WorkQueueModal)
    update(model, m.WorkQueueDown())
    update(model, m.WorkQueueSelect())

    assert model.modal is None
    assert model.rebuild.active_idx == 1


def test_export_log_flow() -> None:
    model = _rebuilding()
    update(model, JobStarted(0))
    _push(model, 0, 2)

    update(model, m.OpenExportLog())
    assert isinstance(model.modal, ExportLogModal)
    update(model, m.ExportSubmit())
    assert model.modal.error == "Enter a file name"

    for char in "out.log":
        update(model, m.ExportInput(char))
    update(model, m.ExportBackspace())
    update(model, m.ExportInput("g"))
    _, command = update(model, m.ExportSubmit())

    assert command == m.ExportLogCommand(Path("out.log"), ("line 0", "line 1"))
    assert model.modal is None

    update(model, m.ExportFinished(Path("out.log")))
    assert model.status_message == "Saved log to out.log"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", (None, "Enter a file name")),
        ("../escape.log", (None, "Use a relative path without '..'")),
        ("/tmp/abs.log", (None, "Use a relative path without '..'")),
        (" logs/run.log ", (Path("logs/run.log"), None)),
    ],
)
def test_validate_export_path(raw: str, expected) -> None:
    assert validate_export_path(raw) == expected


def test_key_pressed_is_mapped_through_keymap() -> None:
    model = _ready()

    update(model, m.KeyPressed("j"))
    assert model.selected == 1
    update(model, m.KeyPressed("q"))
    assert model.should_quit


def test_unknown_message_is_ignored() -> None:
    model = _ready()

    returned, command = update(model, object())

    assert returned is model
    assert command is None


def test_resize_updates_viewport() -> None:
    model = _rebuilding()

    update(model, m.Resize(100, 40))

    assert (model.width, model.height) == (100, 40)
    assert model.rebuild.viewport_height == 34
    assert model.rebuild.viewport_width == 68


def test_search_selection_survives_ring_buffer_eviction() -> None:
    model = _ready(height=32, output_limit=3)
    model.rows[0].checked = True
    update(model, m.StartRebuild())
    update(model, JobStarted(0))
    job = model.rebuild.jobs[0]
    for text in ("x err", "y err", "z err"):
        job.push_output(OutputStream.STDOUT, text)
        update(model, JobOutput(0))

    update(model, m.SearchStart(SearchDirection.FORWARD))
    for char in "err":
        update(model, m.SearchInput(char))
    update(model, m.SearchSubmit())
    search = model.rebuild.search
    for _ in range(3):
        if job.snapshot()[search.active_match.line].text == "y err":
            break
        update(model, m.SearchNext())
    assert job.snapshot()[search.active_match.line].text == "y err"

    job.push_output(OutputStream.STDOUT, "w err")
    update(model, JobOutput(0))

    assert [line.text for line in job.snapshot()] == ["y err", "z err", "w err"]
    assert job.snapshot()[search.active_match.line].text == "y err"
