"""Core data models shared across podman-compose-mgr components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class DiscoveredImage:
    """One image declaration found in a compose file or Quadlet unit."""

    image: str
    container: Optional[str]
    source_dir: Path
    entry_path: Path

    @property
    def fingerprint(self) -> Tuple[str, Optional[str], Path]:
        return (self.image, self.container, self.source_dir)

    def sort_key(self) -> Tuple[str, str]:
        return (self.image, self.container or "")


@dataclass(frozen=True)
class ComposeFileInfo:
    """A compose file and the first image it declares, if any."""

    path: Path
    first_image: Optional[str] = None


@dataclass(frozen=True)
class QuadletFileInfo:
    """A Quadlet unit recorded for its directory."""

    path: Path
    image: str
    container: str


@dataclass
class DirInfo:
    """Build-relevant files grouped under one directory."""

    path: Path
    dockerfiles: List[Path] = field(default_factory=list)
    makefiles: List[Path] = field(default_factory=list)
    makefile_targets: List[str] = field(default_factory=list)
    compose_files: List[ComposeFileInfo] = field(default_factory=list)
    container_files: List[QuadletFileInfo] = field(default_factory=list)

    def neighbor_image(self) -> Optional[str]:
        """Image to associate with the directory's only Dockerfile.

        Only answered when the directory holds exactly one Dockerfile and
        exactly one declaration next to it; anything else is ambiguous.
        """
        if len(self.dockerfiles) != 1:
            return None
        neighbors: List[Optional[str]] = [info.image for info in self.container_files]
        neighbors.extend(info.first_image for info in self.compose_files)
        if len(neighbors) != 1:
            return None
        return neighbors[0]

    @property
    def buildable(self) -> bool:
        return bool(self.dockerfiles or self.makefiles)


@dataclass
class DiscoveryResult:
    """Everything one scan learned about a directory tree."""

    root: Path
    images: List[DiscoveredImage] = field(default_factory=list)
    dirs: Dict[Path, DirInfo] = field(default_factory=dict)
    skipped: List[Tuple[Path, str]] = field(default_factory=list)

    def dir_info(self, path: Path) -> Optional[DirInfo]:
        return self.dirs.get(path)

    def pairs(self) -> List[Tuple[str, Optional[str]]]:
        return [(item.image, item.container) for item in self.images]


@dataclass(frozen=True)
class ScanOptions:
    """Root path plus the regex filters applied to every visited file."""

    root: Path
    include: Sequence[str] = ()
    exclude: Sequence[str] = ()


@dataclass(frozen=True)
class ImageDetails:
    """Ages and build affordances shown when a row is expanded."""

    image: str
    created: Optional[datetime]
    modified: Optional[datetime]
    created_ago: str
    pulled_ago: str
    dockerfile: Optional[Path] = None
    has_makefile: bool = False

    def lines(self) -> List[str]:
        dockerfile = self.dockerfile.name if self.dockerfile is not None else "none"
        return [
            f"Created: {self.created_ago}",
            f"Pulled: {self.pulled_ago}",
            f"Dockerfile: {dockerfile}",
            f"Makefile: {'yes' if self.has_makefile else 'no'}",
        ]


__all__ = [
    "ComposeFileInfo",
    "DirInfo",
    "DiscoveredImage",
    "DiscoveryResult",
    "ImageDetails",
    "QuadletFileInfo",
    "ScanOptions",
]
