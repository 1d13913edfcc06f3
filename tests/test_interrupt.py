"""Tests for interrupt ports and the one-shot receiver."""

from __future__ import annotations

import os
import signal
import threading

import pytest

from podman_compose_mgr.interrupt import ManualInterrupt, SignalInterrupt
from podman_compose_mgr.ports import OneShot


def test_one_shot_fires_once_and_runs_callbacks() -> None:
    shot = OneShot()
    calls: list[str] = []
    shot.on_fire(lambda: calls.append("early"))

    shot.fire()
    shot.fire()
    shot.on_fire(lambda: calls.append("late"))

    assert shot.fired
    assert shot.wait(0)
    assert calls == ["early", "late"]


def test_manual_interrupt_subscribe_once() -> None:
    interrupt = ManualInterrupt()
    receiver = interrupt.subscribe()

    with pytest.raises(RuntimeError):
        interrupt.subscribe()

    interrupt.trigger()
    assert receiver.fired


def test_manual_trigger_requires_subscriber() -> None:
    with pytest.raises(RuntimeError):
        ManualInterrupt().trigger()


@pytest.mark.skipif(threading.current_thread() is not threading.main_thread(), reason="signals need the main thread")
def test_signal_interrupt_fires_and_restores_handler() -> None:
    previous = signal.getsignal(signal.SIGUSR1)
    interrupt = SignalInterrupt(signals=(signal.SIGUSR1,))
    receiver = interrupt.subscribe()
    try:
        os.kill(os.getpid(), signal.SIGUSR1)
        assert receiver.wait(5)
    finally:
        interrupt.close()

    assert signal.getsignal(signal.SIGUSR1) == previous
