"""One-shot prompt walk: ask about each discovered image in turn."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence, Set

from .errors import DateParseError, JobCommandError, PodmanQueryError
from .logging import get_logger
from .models import DiscoveredImage
from .prompting.grammar import format_fragments, render_fragments
from .prompting.rebuild_prompt import build_rebuild_fragments, choice_help, resolve_choice
from .rebuild.jobs import RebuildJobSpec
from .rebuild.planner import BuildPlan, BuildPlanner
from .service import AppCore

Reader = Callable[[str], str]
Writer = Callable[[str], None]
Runner = Callable[[Sequence[str]], int]


def _run_streaming(argv: Sequence[str]) -> int:
    return subprocess.run(list(argv), check=False).returncode


def terminal_prompt_width() -> int:
    # One column of slack so typed input does not wrap.
    return max(1, shutil.get_terminal_size().columns - 1)


class PromptWalker:
    """Walks the scan result and acts on one typed choice per image."""

    def __init__(
        self,
        core: AppCore,
        planner: BuildPlanner,
        *,
        reader: Reader = input,
        writer: Writer = print,
        runner: Runner | None = None,
        width: Optional[int] = None,
    ) -> None:
        self.core = core
        self.planner = planner
        self._reader = reader
        self._writer = writer
        self._runner = runner or _run_streaming
        self._width = width
        self.logger = get_logger("walk")

    def prompt_for(self, item: DiscoveredImage) -> str:
        width = self._width if self._width is not None else terminal_prompt_width()
        fragments = build_rebuild_fragments(item.image, item.container, item.entry_path)
        return render_fragments(format_fragments(fragments, width))

    def run(self, root: Path, include: Sequence[str] = (), exclude: Sequence[str] = ()) -> int:
        result = self.core.scan_images(root, include, exclude)
        for path, message in result.skipped:
            self.logger.info("Skipped %s: %s", path, message)

        skipped_images: Set[str] = set()
        for item in result.images:
            if item.image in skipped_images:
                continue
            try:
                self._ask(item, skipped_images)
            except EOFError:
                self._writer("")
                break
        return 0

    def _ask(self, item: DiscoveredImage, skipped_images: Set[str]) -> None:
        prompt = self.prompt_for(item)
        while True:
            choice = resolve_choice(self._reader(prompt))
            if choice == "p":
                self._execute(self.planner.plan_pull(item.image))
                return
            if choice == "b":
                try:
                    plan = self.planner.plan_build(RebuildJobSpec.from_discovered(item))
                except JobCommandError as exc:
                    self._writer(str(exc))
                    return
                self._execute(plan)
                return
            if choice == "s":
                skipped_images.add(item.image)
                return
            if choice == "d":
                self._show_details(item)
                continue
            if choice == "?":
                for line in choice_help():
                    self._writer(line)
                continue
            return

    def _show_details(self, item: DiscoveredImage) -> None:
        self._writer(f"Image: {item.image}")
        self._writer(f"Container name: {item.container or ''}")
        self._writer(f"Declared in: {item.entry_path}")
        try:
            details = self.core.image_details(item.image, item.source_dir, item.entry_path)
        except (PodmanQueryError, DateParseError) as exc:
            self._writer(f"Could not query podman: {exc}")
            return
        for line in details.lines():
            self._writer(line)

    def _execute(self, plan: BuildPlan) -> None:
        for note in plan.notes:
            self._writer(note)
        for command in plan.commands:
            self._writer(command.display())
            try:
                status = self._runner(command.argv)
            except OSError as exc:
                self._writer(f"Failed to spawn '{command.program}': {exc}")
                return
            if status != 0:
                self._writer(f"Command '{command.program}' failed with status {status}")
                return


__all__ = ["PromptWalker", "terminal_prompt_width"]
