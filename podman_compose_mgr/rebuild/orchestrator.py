"""Serialized rebuild queue with concurrent stdout/stderr capture."""

from __future__ import annotations

import subprocess
import threading
from typing import IO, Callable, List, Optional, Sequence

from ..errors import JobCommandError
from ..logging import get_logger
from ..prompting.grammar import format_fragments, render_fragments
from ..prompting.rebuild_prompt import AUTO_CHOICE, build_rebuild_fragments
from .jobs import (
    QUEUE_CANCELLED_LINE,
    QUEUE_COMPLETED_LINE,
    JobFinished,
    JobOutput,
    JobStarted,
    OutputStream,
    QueueFinished,
    QueueResult,
    RebuildJob,
)
from .planner import BuildPlanner, PlannedCommand

Notify = Callable[[object], None]
Popen = Callable[..., "subprocess.Popen[str]"]

TERMINATE = "terminate"
ABANDON = "abandon"


class RebuildOrchestrator:
    """Runs rebuild jobs one at a time and reports progress through ``notify``.

    ``notify`` must not block; the application hands in the ``put`` of its
    unbounded message queue. Output lines are appended to the job before the
    matching :class:`JobOutput` notification is sent.
    """

    def __init__(
        self,
        planner: BuildPlanner,
        notify: Notify,
        *,
        prompt_width: int = 100,
        on_interrupt: str = TERMINATE,
        popen: Popen | None = None,
        terminate_grace: float = 2.0,
    ) -> None:
        if on_interrupt not in (TERMINATE, ABANDON):
            raise ValueError(f"Unknown interrupt policy: {on_interrupt}")
        self.planner = planner
        self.notify = notify
        self.prompt_width = prompt_width
        self.on_interrupt = on_interrupt
        self.terminate_grace = terminate_grace
        self._popen = popen or subprocess.Popen
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._process: Optional["subprocess.Popen[str]"] = None
        self._thread: Optional[threading.Thread] = None
        self.logger = get_logger("orchestrator")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def start(self, jobs: Sequence[RebuildJob], start_idx: int = 0) -> threading.Thread:
        """Drive the queue on a background thread."""
        if self.running:
            raise RuntimeError("a rebuild queue is already running")
        self._cancel.clear()
        thread = threading.Thread(
            target=self.run, args=(jobs, start_idx), name="rebuild-queue", daemon=True
        )
        self._thread = thread
        thread.start()
        return thread

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self, jobs: Sequence[RebuildJob], start_idx: int = 0) -> QueueResult:
        """Process ``jobs[start_idx:]`` in order; failures do not stop the queue."""
        result = QueueResult.COMPLETED
        last_started: Optional[int] = None
        try:
            for idx in range(start_idx, len(jobs)):
                if self._cancel.is_set():
                    break
                last_started = idx
                self._run_job(idx, jobs[idx])

            if self._cancel.is_set():
                result = QueueResult.CANCELLED

            if last_started is not None:
                tail = len(jobs) - 1 if result is QueueResult.COMPLETED else last_started
                line = QUEUE_COMPLETED_LINE if result is QueueResult.COMPLETED else QUEUE_CANCELLED_LINE
                self._emit(tail, jobs[tail], OutputStream.STDOUT, line)
        finally:
            self.logger.info("Rebuild queue finished: %s", result.value)
            self.notify(QueueFinished(result))
        return result

    def cancel(self) -> Optional[threading.Thread]:
        """Stop starting new jobs; terminate the in-flight child unless abandoning.

        Never waits for the child. When one is being terminated, the thread
        that escalates to SIGKILL after ``terminate_grace`` is returned.
        """
        self._cancel.set()
        with self._lock:
            process = self._process
        if process is None or self.on_interrupt == ABANDON:
            return None
        if process.poll() is not None:
            return None
        self.logger.info("Terminating in-flight rebuild process %s", process.pid)
        process.terminate()
        reaper = threading.Thread(
            target=self._kill_after_grace, args=(process,), name="rebuild-terminate"
        )
        reaper.start()
        return reaper

    def _kill_after_grace(self, process: "subprocess.Popen[str]") -> None:
        try:
            process.wait(timeout=self.terminate_grace)
        except subprocess.TimeoutExpired:
            self.logger.info("Killing rebuild process %s", process.pid)
            process.kill()

    def _emit(self, idx: int, job: RebuildJob, stream: OutputStream, text: str) -> None:
        job.push_output(stream, text)
        self.notify(JobOutput(idx))

    def _narrate(self, idx: int, job: RebuildJob) -> None:
        fragments = build_rebuild_fragments(job.image, job.container, job.spec.entry_path)
        prompt = render_fragments(format_fragments(fragments, self.prompt_width))
        self._emit(idx, job, OutputStream.STDOUT, prompt)
        self._emit(idx, job, OutputStream.STDOUT, f"Auto-selecting '{AUTO_CHOICE}' (build)")

    def _run_job(self, idx: int, job: RebuildJob) -> None:
        job.mark_running()
        self.notify(JobStarted(idx))
        self.logger.info("Rebuilding %s (%d)", job.image, idx + 1)
        try:
            self._narrate(idx, job)
            plan = self.planner.plan_build(job.spec)
            for note in plan.notes:
                self._emit(idx, job, OutputStream.STDOUT, note)
            for command in plan.commands:
                if self._cancel.is_set():
                    raise JobCommandError("Cancelled before running remaining commands")
                self._exec(idx, job, command)
        except JobCommandError as exc:
            self.logger.warning("Rebuild of %s failed: %s", job.image, exc)
            self._fail(idx, job, str(exc))
        except Exception as exc:
            self.logger.exception("Unexpected error while rebuilding %s", job.image)
            self._fail(idx, job, f"Unexpected error: {exc}")
        else:
            job.mark_succeeded()
        self.notify(JobFinished(idx, job.status))

    def _fail(self, idx: int, job: RebuildJob, message: str) -> None:
        self._emit(idx, job, OutputStream.STDERR, message)
        job.mark_failed(message)

    def _exec(self, idx: int, job: RebuildJob, command: PlannedCommand) -> None:
        self._emit(idx, job, OutputStream.STDOUT, command.display())
        try:
            process = self._popen(
                list(command.argv),
                cwd=str(command.cwd) if command.cwd else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except (OSError, ValueError) as exc:
            raise JobCommandError(f"Failed to spawn '{command.program}': {exc}") from exc

        with self._lock:
            self._process = process
        readers: List[threading.Thread] = [
            threading.Thread(
                target=self._pump,
                args=(idx, job, process.stdout, OutputStream.STDOUT),
                name=f"rebuild-{idx}-stdout",
                daemon=True,
            ),
            threading.Thread(
                target=self._pump,
                args=(idx, job, process.stderr, OutputStream.STDERR),
                name=f"rebuild-{idx}-stderr",
                daemon=True,
            ),
        ]
        for reader in readers:
            reader.start()
        returncode = process.wait()
        for reader in readers:
            reader.join()
        with self._lock:
            self._process = None

        if returncode != 0:
            if self._cancel.is_set():
                raise JobCommandError(f"Command '{command.program}' cancelled")
            raise JobCommandError(f"Command '{command.program}' failed with status {returncode}")

    def _pump(self, idx: int, job: RebuildJob, pipe: Optional[IO[str]], stream: OutputStream) -> None:
        if pipe is None:
            return
        with pipe:
            for line in pipe:
                self._emit(idx, job, stream, line.rstrip("\r\n"))


__all__ = ["ABANDON", "RebuildOrchestrator", "TERMINATE"]
