"""Turn a rebuild target into the concrete commands that refresh it."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..discovery.buildfiles import (
    MAKEFILE_NAME,
    dockerfile_base_image,
    dockerfile_candidates,
    is_dockerfile,
)
from ..errors import JobCommandError
from ..podman.cli import file_exists_and_readable
from .jobs import RebuildJobSpec


@dataclass(frozen=True)
class PlannedCommand:
    argv: Tuple[str, ...]
    cwd: Optional[Path] = None

    @property
    def program(self) -> str:
        return self.argv[0]

    def display(self) -> str:
        return "$ " + " ".join(self.argv)


@dataclass(frozen=True)
class BuildPlan:
    """Commands to run in order, plus narration lines emitted before them."""

    commands: List[PlannedCommand] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)


class BuildPlanner:
    """Chooses between a Dockerfile build, a Makefile build and a plain pull."""

    def __init__(
        self,
        *,
        podman_bin: str = "podman",
        make_bin: str = "make",
        build_args: Sequence[str] = (),
        no_cache: bool = False,
    ) -> None:
        self.podman_bin = podman_bin
        self.make_bin = make_bin
        self.build_args = tuple(build_args)
        self.no_cache = no_cache

    def find_dockerfile(self, spec: RebuildJobSpec) -> Optional[Path]:
        if is_dockerfile(spec.entry_path.name):
            return spec.entry_path
        for candidate in dockerfile_candidates(spec.entry_path, spec.source_dir):
            if file_exists_and_readable(candidate) and candidate.is_file():
                return candidate
        return None

    def find_makefile(self, spec: RebuildJobSpec) -> Optional[Path]:
        for directory in (spec.entry_path.parent, spec.source_dir):
            candidate = directory / MAKEFILE_NAME
            if file_exists_and_readable(candidate) and candidate.is_file():
                return candidate
        return None

    def plan_pull(self, image: str) -> BuildPlan:
        return BuildPlan(commands=[PlannedCommand((self.podman_bin, "pull", image))])

    def plan_build(self, spec: RebuildJobSpec) -> BuildPlan:
        dockerfile = self.find_dockerfile(spec)
        if dockerfile is not None:
            return self._dockerfile_plan(spec.image, dockerfile)

        makefile = self.find_makefile(spec)
        if makefile is not None:
            directory = str(makefile.parent)
            return BuildPlan(
                commands=[
                    PlannedCommand((self.make_bin, "-C", directory, "clean")),
                    PlannedCommand((self.make_bin, "-C", directory)),
                ],
                notes=[f"Building {spec.image} with {makefile}"],
            )

        plan = self.plan_pull(spec.image)
        return BuildPlan(
            commands=plan.commands,
            notes=[f"No Dockerfile or Makefile found for {spec.entry_path}, pulling {spec.image} instead"],
        )

    def _dockerfile_plan(self, image: str, dockerfile: Path) -> BuildPlan:
        try:
            text = dockerfile.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise JobCommandError(f"Cannot read {dockerfile}: {exc}") from exc

        commands: List[PlannedCommand] = []
        notes = [f"Building {image} from {dockerfile}"]
        base = dockerfile_base_image(text)
        if base is not None:
            commands.append(PlannedCommand((self.podman_bin, "pull", base)))
        else:
            notes.append("No pullable base image in FROM instructions")

        argv: List[str] = [self.podman_bin, "build", "-t", image, "-f", str(dockerfile)]
        if self.no_cache:
            argv.append("--no-cache")
        for build_arg in self.build_args:
            argv.extend(["--build-arg", build_arg])
        argv.append(str(dockerfile.parent))
        commands.append(PlannedCommand(tuple(argv)))
        return BuildPlan(commands=commands, notes=notes)


__all__ = ["BuildPlan", "BuildPlanner", "PlannedCommand"]
