"""Capability interfaces consumed by the application core."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .models import DiscoveryResult, ScanOptions


class DiscoveryPort(ABC):
    """Contract for walking a tree and indexing its image declarations."""

    @abstractmethod
    def scan(self, options: ScanOptions) -> DiscoveryResult:
        """Return the index for ``options.root``; raise ``ConfigError`` on bad filters."""


class PodmanPort(ABC):
    """Contract for the handful of container runtime queries the core needs.

    Both timestamp queries return ``None`` when the runtime does not know the
    image; any other failure raises ``PodmanQueryError``.
    """

    @abstractmethod
    def image_created(self, name: str) -> Optional[datetime]:
        """Upstream creation time of ``name``."""

    @abstractmethod
    def image_modified(self, name: str) -> Optional[datetime]:
        """Modification time of the local manifest for ``name``."""

    @abstractmethod
    def file_exists_and_readable(self, path: Path) -> bool:
        """True when ``path`` (following symlinks) exists and its metadata is readable."""


class OneShot:
    """A signal that fires at most once and wakes anyone registered on it."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._wakers: List[Callable[[], None]] = []

    def fire(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            wakers = list(self._wakers)
        for waker in wakers:
            waker()

    @property
    def fired(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def on_fire(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` once the signal fires (immediately if it already has)."""
        with self._lock:
            if not self._event.is_set():
                self._wakers.append(callback)
                return
        callback()


class InterruptPort(ABC):
    """Maps an external cancellation request onto a one-shot receiver."""

    def __init__(self) -> None:
        self._receiver: OneShot | None = None
        self._taken = False

    def subscribe(self) -> OneShot:
        """Return the receiver; it can be taken exactly once."""
        if self._taken:
            raise RuntimeError("interrupt receiver already subscribed")
        self._taken = True
        self._receiver = OneShot()
        self._install(self._receiver)
        return self._receiver

    @abstractmethod
    def _install(self, receiver: OneShot) -> None:
        """Start delivering cancellation requests to ``receiver``."""

    def close(self) -> None:
        """Stop listening; default implementations have nothing to release."""


__all__ = ["DiscoveryPort", "InterruptPort", "OneShot", "PodmanPort"]
