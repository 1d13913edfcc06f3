"""Rebuild job lifecycle, bounded output buffers and queue events."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Deque, List, Optional, Tuple

from ..errors import JobStateError
from ..models import DiscoveredImage

QUEUE_COMPLETED_LINE = "Rebuild queue completed"
QUEUE_CANCELLED_LINE = "Rebuild queue cancelled"


class RebuildStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def terminal(self) -> bool:
        return self.rank == 2


_STATUS_RANK = {
    RebuildStatus.PENDING: 0,
    RebuildStatus.RUNNING: 1,
    RebuildStatus.SUCCEEDED: 2,
    RebuildStatus.FAILED: 2,
}


class QueueResult(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OutputStream(Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True)
class OutputLine:
    stream: OutputStream
    text: str


@dataclass(frozen=True)
class RebuildJobSpec:
    """What to rebuild: one selected declaration."""

    image: str
    container: Optional[str]
    entry_path: Path
    source_dir: Path

    @classmethod
    def from_discovered(cls, item: DiscoveredImage) -> "RebuildJobSpec":
        return cls(
            image=item.image,
            container=item.container,
            entry_path=item.entry_path,
            source_dir=item.source_dir,
        )


class RebuildJob:
    """A queued rebuild with a drop-oldest output buffer.

    Only the orchestrator thread running the job writes to it; the render
    path reads through :meth:`snapshot`.
    """

    def __init__(self, spec: RebuildJobSpec, output_limit: int) -> None:
        if output_limit < 1:
            raise ValueError("output_limit must be at least 1")
        self.spec = spec
        self.status = RebuildStatus.PENDING
        self.error: Optional[str] = None
        self._output: Deque[OutputLine] = deque(maxlen=output_limit)
        self._appended = 0
        self._lock = threading.Lock()

    @property
    def image(self) -> str:
        return self.spec.image

    @property
    def container(self) -> Optional[str]:
        return self.spec.container

    @property
    def output_limit(self) -> int:
        return self._output.maxlen or 1

    @property
    def version(self) -> int:
        """Total lines ever appended; changes whenever the output does."""
        return self._appended

    def push_output(self, stream: OutputStream, text: str) -> None:
        with self._lock:
            self._output.append(OutputLine(stream, text))
            self._appended += 1

    def snapshot(self) -> List[OutputLine]:
        with self._lock:
            return list(self._output)

    def versioned_snapshot(self) -> Tuple[List[OutputLine], int]:
        """The buffered lines together with the :attr:`version` they reflect."""
        with self._lock:
            return list(self._output), self._appended

    def __len__(self) -> int:
        return len(self._output)

    def mark_running(self) -> None:
        self._advance(RebuildStatus.RUNNING)

    def mark_succeeded(self) -> None:
        self._advance(RebuildStatus.SUCCEEDED)

    def mark_failed(self, error: str) -> None:
        self._advance(RebuildStatus.FAILED)
        self.error = error

    def _advance(self, status: RebuildStatus) -> None:
        if status.rank <= self.status.rank:
            raise JobStateError(
                f"Cannot move job for {self.image} from {self.status.value} to {status.value}"
            )
        self.status = status


@dataclass(frozen=True)
class JobStarted:
    job_idx: int


@dataclass(frozen=True)
class JobOutput:
    """New output is available for a job; the lines live on the job itself."""

    job_idx: int


@dataclass(frozen=True)
class JobFinished:
    job_idx: int
    status: RebuildStatus


@dataclass(frozen=True)
class QueueFinished:
    result: QueueResult


__all__ = [
    "JobFinished",
    "JobOutput",
    "JobStarted",
    "OutputLine",
    "OutputStream",
    "QUEUE_CANCELLED_LINE",
    "QUEUE_COMPLETED_LINE",
    "QueueFinished",
    "QueueResult",
    "RebuildJob",
    "RebuildJobSpec",
    "RebuildStatus",
]
