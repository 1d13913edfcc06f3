"""Single-consumer message plumbing for the interactive loop."""

from __future__ import annotations

import queue
import threading
from typing import Callable, List, Optional

from ..ports import OneShot
from .messages import Interrupt, Tick

_WAKE = object()


class Inbox:
    """Unbounded FIFO every producer sends into; only the loop receives."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()

    def send(self, msg: object) -> None:
        self._queue.put(msg)

    def wake(self) -> None:
        self._queue.put(_WAKE)

    def receive(self, interrupt: OneShot, timeout: float | None = None) -> Optional[object]:
        """Wait for the next message; a fired interrupt always wins.

        Returns ``None`` when ``timeout`` elapses without a message.
        """
        if interrupt.fired:
            return Interrupt()
        try:
            msg = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if interrupt.fired or msg is _WAKE:
            return Interrupt() if interrupt.fired else None
        return msg

    def drain(self, interrupt: OneShot, limit: int) -> List[object]:
        """Messages already queued, in order, without blocking."""
        drained: List[object] = []
        while len(drained) < limit:
            if interrupt.fired:
                drained.append(Interrupt())
                break
            try:
                msg = self._queue.get_nowait()
            except queue.Empty:
                break
            if msg is not _WAKE:
                drained.append(msg)
        return drained


class Producer:
    """A daemon thread running ``step`` until stopped."""

    def __init__(self, name: str, step: Callable[[threading.Event], None]) -> None:
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(step,), name=name, daemon=True)

    def _run(self, step: Callable[[threading.Event], None]) -> None:
        while not self._stop.is_set():
            step(self._stop)

    def start(self) -> "Producer":
        self._thread.start()
        return self

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)


def tick_source(inbox: Inbox, interval: float) -> Producer:
    def _step(stop: threading.Event) -> None:
        if not stop.wait(interval):
            inbox.send(Tick())

    return Producer("tui-tick", _step)


__all__ = ["Inbox", "Producer", "tick_source"]
