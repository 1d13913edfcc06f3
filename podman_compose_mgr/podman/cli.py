"""podman CLI implementation of the runtime port."""

from __future__ import annotations

import os
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..errors import PodmanQueryError
from ..logging import get_logger
from ..ports import PodmanPort
from .dates import parse_podman_date

Runner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]

_NOT_FOUND_MARKERS = ("image not known", "no such image")


def file_exists_and_readable(path: Path) -> bool:
    """Follow symlinks, then require readable metadata and read permission."""
    try:
        os.stat(path)
    except OSError:
        return False
    return os.access(path, os.R_OK)


def default_storage_root() -> Path:
    data_home = os.environ.get("XDG_DATA_HOME")
    base = Path(data_home) if data_home else Path.home() / ".local" / "share"
    return base / "containers" / "storage"


def _run(args: Sequence[str]) -> "subprocess.CompletedProcess[str]":
    return subprocess.run(list(args), capture_output=True, text=True, check=False)


class PodmanCli(PodmanPort):
    """Answers runtime queries by shelling out to ``podman image inspect``."""

    def __init__(
        self,
        binary: str = "podman",
        *,
        runner: Runner | None = None,
        storage_root: Path | None = None,
    ) -> None:
        self.binary = binary
        self._runner = runner or _run
        self._storage_root = storage_root
        self.logger = get_logger("podman")

    @property
    def storage_root(self) -> Path:
        return self._storage_root or default_storage_root()

    def image_created(self, name: str) -> Optional[datetime]:
        output = self._inspect(name, "{{.Created}}")
        if output is None:
            return None
        return parse_podman_date(output)

    def image_modified(self, name: str) -> Optional[datetime]:
        image_id = self._inspect(name, "{{.Id}}")
        if image_id is None:
            return None
        manifest = self.storage_root / "overlay-images" / image_id / "manifest"
        try:
            stat_result = manifest.stat()
        except OSError as exc:
            raise PodmanQueryError(
                f"Cannot stat manifest for {name} at {manifest}: {exc.strerror}"
            ) from exc
        return datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc)

    def file_exists_and_readable(self, path: Path) -> bool:
        return file_exists_and_readable(path)

    def _inspect(self, name: str, template: str) -> Optional[str]:
        args = [self.binary, "image", "inspect", "--format", template, name]
        self.logger.debug("Running %s", " ".join(args))
        try:
            completed = self._runner(args)
        except OSError as exc:
            raise PodmanQueryError(f"Failed to run {self.binary}: {exc}") from exc

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            if any(marker in stderr.lower() for marker in _NOT_FOUND_MARKERS):
                self.logger.debug("Image %s not known to podman", name)
                return None
            raise PodmanQueryError(
                f"podman image inspect {name} failed with status {completed.returncode}: {stderr}"
            )

        output = (completed.stdout or "").strip().splitlines()
        if not output:
            raise PodmanQueryError(f"podman image inspect {name} returned no output")
        return output[0].strip()


__all__ = ["PodmanCli", "default_storage_root", "file_exists_and_readable"]
