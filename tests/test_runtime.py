"""Tests for the interactive loop plumbing in podman_compose_mgr.tui."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from podman_compose_mgr.errors import PodmanQueryError
from podman_compose_mgr.interrupt import ManualInterrupt
from podman_compose_mgr.models import DiscoveredImage, DiscoveryResult, ImageDetails
from podman_compose_mgr.ports import OneShot
from podman_compose_mgr.rebuild import BuildPlanner, RebuildOrchestrator
from podman_compose_mgr.tui import messages as m
from podman_compose_mgr.tui.channels import Inbox, tick_source
from podman_compose_mgr.tui.runtime import CommandExecutor, LoopSettings, TuiApp, run_loop
from podman_compose_mgr.tui.state import Model, UiState

ROOT = Path("/srv")


def _result() -> DiscoveryResult:
    items = [
        DiscoveredImage("djf/a", "a", ROOT / "a", ROOT / "a" / "docker-compose.yml"),
        DiscoveredImage("djf/b", "b", ROOT / "b", ROOT / "b" / "docker-compose.yml"),
    ]
    return DiscoveryResult(root=ROOT, images=items)


class FakeCore:
    """Stands in for AppCore with canned answers."""

    def __init__(self, scan_error: Exception | None = None, details_error: Exception | None = None) -> None:
        self.scan_error = scan_error
        self.details_error = details_error

    def scan_images(self, root, include=(), exclude=()):
        if self.scan_error is not None:
            raise self.scan_error
        return _result()

    def image_details(self, image, source_dir, entry_path=None):
        if self.details_error is not None:
            raise self.details_error
        return ImageDetails(image, None, None, "never", "never")


class RecordingOrchestrator:
    """Records start/cancel calls instead of spawning processes."""

    def __init__(self) -> None:
        self.started: list[tuple[object, int]] = []
        self.cancelled = 0
        self.running = False

    def start(self, jobs, start_idx=0):
        self.started.append((jobs, start_idx))

    def cancel(self):
        self.cancelled += 1


class FakeTerminal:
    """Context-managed terminal double that replays keys once."""

    def __init__(self, keys: list[str]) -> None:
        self.keys = list(keys)
        self.frames: list[object] = []
        self.entered = False
        self.exited = False

    def __enter__(self):
        self.entered = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exited = True

    def size(self):
        return (100, 30)

    def draw(self, frame):
        self.frames.append(frame)

    def read_keys(self, timeout):
        if self.keys:
            keys, self.keys = self.keys, []
            return keys
        time.sleep(timeout)
        return []


def test_inbox_receive_times_out_and_wakes() -> None:
    inbox = Inbox()
    interrupt = OneShot()

    assert inbox.receive(interrupt, timeout=0.01) is None
    inbox.wake()
    assert inbox.receive(interrupt, timeout=0.01) is None


def test_inbox_interrupt_wins_over_queued_messages() -> None:
    inbox = Inbox()
    interrupt = OneShot()
    inbox.send(m.Tick())
    interrupt.fire()

    assert inbox.receive(interrupt, timeout=0.01) == m.Interrupt()
    assert inbox.drain(interrupt, 10) == [m.Interrupt()]


def test_inbox_drain_preserves_order_and_limit() -> None:
    inbox = Inbox()
    interrupt = OneShot()
    for _ in range(3):
        inbox.send(m.MoveDown())
    inbox.send(m.Quit())

    assert inbox.drain(interrupt, 2) == [m.MoveDown(), m.MoveDown()]
    assert inbox.drain(interrupt, 10) == [m.MoveDown(), m.Quit()]


def test_tick_source_sends_ticks() -> None:
    inbox = Inbox()
    producer = tick_source(inbox, 0.01).start()
    try:
        assert inbox.receive(OneShot(), timeout=2) == m.Tick()
    finally:
        producer.stop()


def test_run_loop_applies_messages_in_order() -> None:
    inbox = Inbox()
    frames: list[object] = []
    commands: list[object] = []
    for msg in (m.ScanFinished(result=_result()), m.KeyPressed("j"), m.KeyPressed("q")):
        inbox.send(msg)

    model = run_loop(Model(root_path=ROOT), inbox, OneShot(), commands.append, frames.append)

    assert model.state is UiState.READY
    assert model.selected == 1
    assert model.should_quit
    assert commands == []
    assert len(frames) >= 2


def test_run_loop_resizes_on_tick() -> None:
    inbox = Inbox()
    inbox.send(m.Tick())
    inbox.send(m.Quit())

    model = run_loop(Model(root_path=ROOT), inbox, OneShot(), lambda c: None, lambda f: None, lambda: (90, 25))

    assert (model.width, model.height) == (90, 25)


def test_run_loop_stops_on_interrupt() -> None:
    interrupt = OneShot()
    interrupt.fire()

    model = run_loop(Model(root_path=ROOT), Inbox(), interrupt, lambda c: None, lambda f: None)

    assert model.should_quit


def test_run_loop_executes_commands() -> None:
    inbox = Inbox()
    commands: list[object] = []
    inbox.send(m.Init())
    inbox.send(m.Quit())

    run_loop(Model(root_path=ROOT), inbox, OneShot(), commands.append, lambda f: None)

    assert commands == [m.ScanCommand(ROOT, (), ())]


def test_executor_scan_error_becomes_message() -> None:
    inbox = Inbox()
    executor = CommandExecutor(FakeCore(scan_error=FileNotFoundError("Scan path not found: /srv")), RecordingOrchestrator(), inbox)

    executor.execute(m.ScanCommand(ROOT))

    assert inbox.receive(OneShot(), timeout=5) == m.ScanFinished(error="Scan path not found: /srv")


def test_executor_details_error_becomes_line() -> None:
    inbox = Inbox()
    executor = CommandExecutor(FakeCore(details_error=PodmanQueryError("storage broken")), RecordingOrchestrator(), inbox)

    executor.execute(m.FetchDetailsCommand(("k",), "djf/a", ROOT / "a", None))

    assert inbox.receive(OneShot(), timeout=5) == m.DetailsReady(("k",), ("Error: storage broken",))


def test_executor_details_success() -> None:
    inbox = Inbox()
    executor = CommandExecutor(FakeCore(), RecordingOrchestrator(), inbox)

    executor.execute(m.FetchDetailsCommand(("k",), "djf/a", ROOT / "a", None))

    msg = inbox.receive(OneShot(), timeout=5)
    assert isinstance(msg, m.DetailsReady)
    assert msg.lines[0] == "Created: never"


def test_executor_routes_rebuild_commands() -> None:
    orchestrator = RecordingOrchestrator()
    executor = CommandExecutor(FakeCore(), orchestrator, Inbox())

    executor.execute(m.RebuildCommand(jobs=[], start_idx=0))
    executor.execute(m.CancelRebuildCommand())

    assert orchestrator.started == [([], 0)]
    assert orchestrator.cancelled == 1


def test_executor_exports_log(tmp_path: Path) -> None:
    inbox = Inbox()
    executor = CommandExecutor(FakeCore(), RecordingOrchestrator(), inbox)
    target = tmp_path / "logs" / "job.log"

    executor.execute(m.ExportLogCommand(target, ("one", "two")))

    assert target.read_text(encoding="utf-8") == "one\ntwo\n"
    assert inbox.receive(OneShot(), timeout=1) == m.ExportFinished(target)


def test_executor_rejects_unknown_command() -> None:
    executor = CommandExecutor(FakeCore(), RecordingOrchestrator(), Inbox())

    with pytest.raises(TypeError):
        executor.execute(object())


def test_tui_app_runs_until_quit() -> None:
    terminal = FakeTerminal(["q"])
    interrupt = ManualInterrupt()
    app = TuiApp(
        FakeCore(),
        lambda notify: RebuildOrchestrator(BuildPlanner(), notify),
        interrupt,
        LoopSettings(root=ROOT, tick_interval=0.01),
        terminal_factory=lambda: terminal,
    )

    model = app.run()

    assert model.should_quit
    assert terminal.entered and terminal.exited
    assert terminal.frames
    with pytest.raises(RuntimeError):
        interrupt.subscribe()


def test_tui_app_stops_on_interrupt() -> None:
    terminal = FakeTerminal([])
    interrupt = ManualInterrupt()
    app = TuiApp(
        FakeCore(),
        lambda notify: RebuildOrchestrator(BuildPlanner(), notify),
        interrupt,
        LoopSettings(root=ROOT, tick_interval=0.01),
        terminal_factory=lambda: terminal,
    )
    timer = threading.Timer(0.2, interrupt.trigger)
    timer.start()
    try:
        model = app.run()
    finally:
        timer.cancel()

    assert model.should_quit
    assert terminal.exited
