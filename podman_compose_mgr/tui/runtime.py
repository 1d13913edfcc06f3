"""The interactive loop: producers feed one consumer that owns the model."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from rich.console import RenderableType

from ..errors import ConfigError, DateParseError, PodmanQueryError
from ..logging import get_logger
from ..ports import InterruptPort, OneShot
from ..rebuild.orchestrator import RebuildOrchestrator
from ..service import AppCore
from . import messages as m
from .channels import Inbox, Producer, tick_source
from .state import Model
from .terminal import Terminal
from .update import update
from .view import render

# Messages applied per frame before redrawing; keeps chatty builds from
# forcing a full redraw for every output line.
MAX_BATCH = 256


@dataclass
class LoopSettings:
    root: Path
    include: Sequence[str] = ()
    exclude: Sequence[str] = ()
    output_limit: int = 10_000
    auto_rebuild_all: bool = False
    tick_interval: float = 0.25


class CommandExecutor:
    """Carries out the commands ``update`` returns, reporting back via the inbox."""

    def __init__(self, core: AppCore, orchestrator: RebuildOrchestrator, inbox: Inbox) -> None:
        self.core = core
        self.orchestrator = orchestrator
        self.inbox = inbox
        self.logger = get_logger("tui")

    def execute(self, command: object) -> None:
        if isinstance(command, m.ScanCommand):
            self._spawn("tui-scan", self._scan, command)
        elif isinstance(command, m.FetchDetailsCommand):
            self._spawn("tui-details", self._details, command)
        elif isinstance(command, m.RebuildCommand):
            self.orchestrator.start(command.jobs, command.start_idx)
        elif isinstance(command, m.CancelRebuildCommand):
            self.orchestrator.cancel()
        elif isinstance(command, m.ExportLogCommand):
            self._export(command)
        else:
            raise TypeError(f"Unknown command: {command!r}")

    def _spawn(self, name: str, target: Callable[[object], None], command: object) -> None:
        threading.Thread(target=target, args=(command,), name=name, daemon=True).start()

    def _scan(self, command: m.ScanCommand) -> None:
        try:
            result = self.core.scan_images(command.root, command.include, command.exclude)
        except (ConfigError, OSError) as exc:
            self.logger.error("Scan failed: %s", exc)
            self.inbox.send(m.ScanFinished(error=str(exc)))
            return
        self.inbox.send(m.ScanFinished(result=result))

    def _details(self, command: m.FetchDetailsCommand) -> None:
        try:
            details = self.core.image_details(command.image, command.source_dir, command.entry_path)
            lines: Tuple[str, ...] = tuple(details.lines())
        except (PodmanQueryError, DateParseError, OSError) as exc:
            self.logger.warning("Details for %s failed: %s", command.image, exc)
            lines = (f"Error: {exc}",)
        self.inbox.send(m.DetailsReady(command.row_key, lines))

    def _export(self, command: m.ExportLogCommand) -> None:
        try:
            command.path.parent.mkdir(parents=True, exist_ok=True)
            command.path.write_text("\n".join(command.lines) + "\n", encoding="utf-8")
        except OSError as exc:
            self.inbox.send(m.ExportFinished(command.path, error=str(exc)))
            return
        self.inbox.send(m.ExportFinished(command.path))


def run_loop(
    model: Model,
    inbox: Inbox,
    interrupt: OneShot,
    execute: Callable[[object], None],
    draw: Callable[[RenderableType], None],
    size: Optional[Callable[[], Tuple[int, int]]] = None,
) -> Model:
    """Receive, update, execute, draw; the only caller of ``update``."""
    draw(render(model))
    while not model.should_quit:
        first = inbox.receive(interrupt, timeout=1.0)
        batch: List[object] = [] if first is None else [first]
        batch.extend(inbox.drain(interrupt, MAX_BATCH))
        for msg in batch:
            if isinstance(msg, m.Tick) and size is not None:
                width, height = size()
                if (width, height) != (model.width, model.height):
                    model, command = update(model, m.Resize(width, height))
            model, command = update(model, msg)
            if command is not None:
                execute(command)
            if model.should_quit:
                break
        draw(render(model))
    return model


class TuiApp:
    """Wires the terminal, producers, orchestrator and loop together."""

    def __init__(
        self,
        core: AppCore,
        orchestrator_factory: Callable[[Callable[[object], None]], RebuildOrchestrator],
        interrupt: InterruptPort,
        settings: LoopSettings,
        terminal_factory: Callable[[], Terminal] | None = None,
    ) -> None:
        self.core = core
        self.orchestrator_factory = orchestrator_factory
        self.interrupt = interrupt
        self.settings = settings
        self.terminal_factory = terminal_factory or Terminal
        self.logger = get_logger("tui")

    def initial_model(self) -> Model:
        settings = self.settings
        return Model(
            root_path=settings.root,
            include=tuple(settings.include),
            exclude=tuple(settings.exclude),
            output_limit=settings.output_limit,
            auto_rebuild_all=settings.auto_rebuild_all,
        )

    def run(self) -> Model:
        inbox = Inbox()
        receiver = self.interrupt.subscribe()
        receiver.on_fire(inbox.wake)
        orchestrator = self.orchestrator_factory(inbox.send)
        executor = CommandExecutor(self.core, orchestrator, inbox)
        model = self.initial_model()
        try:
            with self.terminal_factory() as terminal:
                model.width, model.height = terminal.size()

                def _forward_keys(stop: threading.Event) -> None:
                    for key in terminal.read_keys(0.1):
                        inbox.send(m.KeyPressed(key))

                producers = [
                    tick_source(inbox, self.settings.tick_interval).start(),
                    Producer("tui-keys", _forward_keys).start(),
                ]
                try:
                    inbox.send(m.Init())
                    model = run_loop(
                        model, inbox, receiver, executor.execute, terminal.draw, terminal.size
                    )
                finally:
                    for producer in producers:
                        producer.stop()
        finally:
            if orchestrator.running:
                orchestrator.cancel()
            self.interrupt.close()
        self.logger.info("Interactive session ended")
        return model


__all__ = ["CommandExecutor", "LoopSettings", "MAX_BATCH", "TuiApp", "run_loop"]
