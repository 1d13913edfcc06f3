"""Signal-backed interrupt listener."""

from __future__ import annotations

import signal
import threading
from typing import Dict, Sequence

from .logging import get_logger
from .ports import InterruptPort, OneShot


class SignalInterrupt(InterruptPort):
    """Fires the receiver on SIGINT/SIGTERM and restores prior handlers on close.

    The handler only flips the one-shot; a small listener thread does the
    waking so nothing heavier than ``Event.set`` runs inside signal context.
    """

    def __init__(self, signals: Sequence[int] = (signal.SIGINT, signal.SIGTERM)) -> None:
        super().__init__()
        self._signals = tuple(signals)
        self._previous: Dict[int, object] = {}
        self._pending = threading.Event()
        self._closed = threading.Event()
        self._thread: threading.Thread | None = None
        self.logger = get_logger("interrupt")

    def _install(self, receiver: OneShot) -> None:
        for signum in self._signals:
            self._previous[signum] = signal.signal(signum, self._handle)

        def _listen() -> None:
            while not self._closed.is_set():
                if self._pending.wait(0.1):
                    self.logger.info("Interrupt received")
                    receiver.fire()
                    return

        self._thread = threading.Thread(target=_listen, name="interrupt-listener", daemon=True)
        self._thread.start()

    def _handle(self, signum, frame) -> None:  # noqa: ARG002 - signal handler signature
        self._pending.set()

    def close(self) -> None:
        self._closed.set()
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)  # type: ignore[arg-type]
        self._previous.clear()
        if self._thread is not None:
            self._thread.join(timeout=1)


class ManualInterrupt(InterruptPort):
    """Interrupt source triggered programmatically, used by tests and embedders."""

    def __init__(self) -> None:
        super().__init__()
        self._receiver_ref: OneShot | None = None

    def _install(self, receiver: OneShot) -> None:
        self._receiver_ref = receiver

    def trigger(self) -> None:
        if self._receiver_ref is None:
            raise RuntimeError("trigger() called before subscribe()")
        self._receiver_ref.fire()


__all__ = ["ManualInterrupt", "SignalInterrupt"]
