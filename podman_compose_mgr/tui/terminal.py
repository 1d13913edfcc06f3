"""Exclusive ownership of the interactive terminal."""

from __future__ import annotations

import os
import select
import sys
import termios
import tty
from typing import IO, List, Optional, Tuple

from rich.console import Console, RenderableType
from rich.live import Live

from ..errors import TerminalError

_ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[5~": "pageup",
    "\x1b[6~": "pagedown",
    "\x1b[3~": "delete",
}

_CONTROL_KEYS = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x03": "ctrl-c",
}


def decode_keys(data: str) -> List[str]:
    """Split a chunk read from the terminal into key names."""
    keys: List[str] = []
    index = 0
    while index < len(data):
        char = data[index]
        if char == "\x1b":
            for length in (4, 3):
                sequence = data[index : index + length]
                if sequence in _ESCAPE_SEQUENCES:
                    keys.append(_ESCAPE_SEQUENCES[sequence])
                    index += length
                    break
            else:
                keys.append("esc")
                index += 1
            continue
        keys.append(_CONTROL_KEYS.get(char, char))
        index += 1
    return keys


class Terminal:
    """Puts the tty into cbreak mode and draws on the alternate screen.

    Use as a context manager; leaving it restores the tty mode, leaves the
    alternate screen and shows the cursor on every exit path.
    """

    def __init__(self, console: Console | None = None, stdin: IO[str] | None = None) -> None:
        self.console = console or Console()
        self._stdin = stdin or sys.stdin
        self._fd: Optional[int] = None
        self._saved: Optional[list] = None
        self._live: Optional[Live] = None

    def __enter__(self) -> "Terminal":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def acquire(self) -> None:
        if not self._stdin.isatty():
            raise TerminalError("interactive mode needs a terminal on stdin")
        fd = self._stdin.fileno()
        try:
            self._saved = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except termios.error as exc:
            raise TerminalError(f"cannot configure terminal: {exc}") from exc
        self._fd = fd
        self._live = Live(console=self.console, screen=True, auto_refresh=False, transient=True)
        try:
            self._live.start()
        except Exception:
            self.release()
            raise

    def release(self) -> None:
        live, self._live = self._live, None
        try:
            if live is not None:
                live.stop()
        finally:
            if self._fd is not None and self._saved is not None:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
            self._fd = None
            self._saved = None
            self.console.show_cursor(True)

    def size(self) -> Tuple[int, int]:
        width, height = self.console.size
        return width, height

    def draw(self, frame: RenderableType) -> None:
        if self._live is None:
            raise TerminalError("terminal is not acquired")
        self._live.update(frame, refresh=True)

    def read_keys(self, timeout: float) -> List[str]:
        """Block up to ``timeout`` seconds for input and decode whatever arrived."""
        if self._fd is None:
            return []
        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            return []
        data = os.read(self._fd, 1024)
        if not data:
            return []
        return decode_keys(data.decode("utf-8", errors="replace"))


__all__ = ["Terminal", "decode_keys"]
