"""Application service layer between the UI and the discovery/runtime ports."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Sequence

from .discovery.buildfiles import MAKEFILE_NAME, dockerfile_candidates
from .logging import get_logger
from .models import DiscoveryResult, ImageDetails, ScanOptions
from .podman.dates import format_time_ago
from .ports import DiscoveryPort, PodmanPort

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppCore:
    """Coordinates scans and per-image detail lookups for every front end."""

    def __init__(
        self,
        discovery: DiscoveryPort,
        podman: PodmanPort,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.discovery = discovery
        self.podman = podman
        self._clock = clock or _utcnow
        self.logger = get_logger("service")

    def scan_images(
        self,
        root: Path,
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
    ) -> DiscoveryResult:
        options = ScanOptions(root=Path(root), include=tuple(include), exclude=tuple(exclude))
        self.logger.debug("Scanning %s", options.root)
        return self.discovery.scan(options)

    def image_details(
        self,
        image: str,
        source_dir: Path,
        entry_path: Optional[Path] = None,
    ) -> ImageDetails:
        """Ages plus the build files available for ``image``.

        Raises ``PodmanQueryError`` when the runtime fails for a reason other
        than not knowing the image.
        """
        created = self.podman.image_created(image)
        modified = self.podman.image_modified(image)
        now = self._clock()

        entry = entry_path or source_dir / "docker-compose.yml"
        dockerfile = next(
            (
                candidate
                for candidate in dockerfile_candidates(entry, source_dir)
                if self.podman.file_exists_and_readable(candidate)
            ),
            None,
        )
        has_makefile = any(
            self.podman.file_exists_and_readable(directory / MAKEFILE_NAME)
            for directory in {entry.parent, source_dir}
        )
        return ImageDetails(
            image=image,
            created=created,
            modified=modified,
            created_ago=format_time_ago(created, now),
            pulled_ago=format_time_ago(modified, now),
            dockerfile=dockerfile,
            has_makefile=has_makefile,
        )


__all__ = ["AppCore"]
