"""Filesystem walker that builds the image/container index."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterator, List, Optional, Pattern, Sequence, Set, Tuple

from ..errors import DiscoveryEntryError, PatternError
from ..logging import get_logger
from ..models import (
    ComposeFileInfo,
    DirInfo,
    DiscoveredImage,
    DiscoveryResult,
    QuadletFileInfo,
    ScanOptions,
)
from ..ports import DiscoveryPort
from .buildfiles import is_dockerfile, is_makefile, parse_makefile_targets
from .compose import parse_compose_file
from .quadlet import parse_container_file

COMPOSE_FILENAME = "docker-compose.yml"
QUADLET_SUFFIX = ".container"

Fingerprint = Tuple[str, Optional[str], Path]


def compile_patterns(patterns: Sequence[str]) -> List[Pattern[str]]:
    """Compile every pattern up front; the first bad one aborts the scan."""
    compiled: List[Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise PatternError(pattern, str(exc)) from exc
    return compiled


def path_passes_filters(
    path: str, include: Sequence[Pattern[str]], exclude: Sequence[Pattern[str]]
) -> bool:
    """Exclude wins over include; an empty include list admits everything."""
    if any(pattern.search(path) for pattern in exclude):
        return False
    if include and not any(pattern.search(path) for pattern in include):
        return False
    return True


def _iter_files(root: Path, logger) -> Iterator[Path]:
    def _on_error(exc: OSError) -> None:
        logger.info("Skipping unreadable directory %s: %s", exc.filename, exc.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            path = current_dir / filename
            if path.is_symlink() or not path.is_file():
                continue
            yield path


class FsDiscovery(DiscoveryPort):
    """Walks a directory tree once and indexes every declaration it finds."""

    def __init__(self) -> None:
        self.logger = get_logger("discovery")

    def scan(self, options: ScanOptions) -> DiscoveryResult:
        include = compile_patterns(options.include)
        exclude = compile_patterns(options.exclude)

        root = Path(options.root).expanduser()
        if not root.exists():
            raise FileNotFoundError(f"Scan path not found: {options.root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Scan path is not a directory: {options.root}")

        result = DiscoveryResult(root=root)
        seen: Set[Fingerprint] = set()

        for path in _iter_files(root, self.logger):
            path_str = str(path)
            try:
                path_str.encode("utf-8")
            except UnicodeEncodeError:
                self._skip(result, path, "path is not valid UTF-8")
                continue
            if not path_passes_filters(path_str, include, exclude):
                continue
            try:
                self._visit(path, result, seen)
            except DiscoveryEntryError as exc:
                self._skip(result, exc.path, exc.message)

        result.images.sort(key=DiscoveredImage.sort_key)
        for info in result.dirs.values():
            info.dockerfiles.sort()
            info.makefiles.sort()
        self.logger.info(
            "Discovered %d image declarations under %s (%d skipped)",
            len(result.images),
            root,
            len(result.skipped),
        )
        return result

    def _skip(self, result: DiscoveryResult, path: Path, message: str) -> None:
        self.logger.info("Skipping %s: %s", path, message)
        result.skipped.append((path, message))

    def _dir(self, result: DiscoveryResult, directory: Path) -> DirInfo:
        info = result.dirs.get(directory)
        if info is None:
            info = DirInfo(path=directory)
            result.dirs[directory] = info
        return info

    def _add(
        self,
        result: DiscoveryResult,
        seen: Set[Fingerprint],
        image: str,
        container: str | None,
        entry_path: Path,
    ) -> None:
        item = DiscoveredImage(
            image=image,
            container=container,
            source_dir=entry_path.parent,
            entry_path=entry_path,
        )
        if item.fingerprint in seen:
            self.logger.debug("Dropping duplicate declaration %s in %s", image, entry_path)
            return
        seen.add(item.fingerprint)
        result.images.append(item)

    def _visit(self, path: Path, result: DiscoveryResult, seen: Set[Fingerprint]) -> None:
        name = path.name
        directory = path.parent

        if name == COMPOSE_FILENAME:
            declarations = parse_compose_file(path)
            self._dir(result, directory).compose_files.append(
                ComposeFileInfo(path=path, first_image=declarations.first_image)
            )
            for image, container in declarations.pairs:
                self._add(result, seen, image, container, path)
        elif path.suffix == QUADLET_SUFFIX:
            unit = parse_container_file(path)
            self._dir(result, directory).container_files.append(
                QuadletFileInfo(path=path, image=unit.image, container=unit.container)
            )
            self._add(result, seen, unit.image, unit.container, path)
        elif is_dockerfile(name):
            self._dir(result, directory).dockerfiles.append(path)
        elif is_makefile(name):
            info = self._dir(result, directory)
            info.makefiles.append(path)
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise DiscoveryEntryError(path, f"unreadable Makefile: {exc}") from exc
            info.makefile_targets = sorted(
                set(info.makefile_targets) | set(parse_makefile_targets(text))
            )


__all__ = ["COMPOSE_FILENAME", "FsDiscovery", "compile_patterns", "path_passes_filters"]
