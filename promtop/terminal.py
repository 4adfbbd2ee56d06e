"""Terminal session: alternate screen, unbuffered keyboard input, drawing.

The session is a context manager. Entering it switches the terminal to the
alternate screen with echo and line buffering off; leaving it restores the
saved terminal attributes on every exit path.
"""

from __future__ import annotations

import os
import sys
import termios
import tty
from collections import deque
from types import TracebackType
from typing import Protocol

from loguru import logger
from rich.console import Console, RenderableType
from rich.live import Live

from .state import Key

_KEYMAP: dict[bytes, Key] = {
    b"q": Key.QUIT,
    b"\x1b[A": Key.UP,
    b"\x1bOA": Key.UP,
    b"\x1b[B": Key.DOWN,
    b"\x1bOB": Key.DOWN,
}

log = logger.bind(component="terminal")


class TerminalError(Exception):
    """The process is not attached to an interactive terminal."""


def _stdin_fd() -> int:
    try:
        return sys.stdin.fileno()
    except (AttributeError, OSError, ValueError) as exc:
        raise TerminalError("standard input is not available") from exc


class Session(Protocol):
    @property
    def size(self) -> tuple[int, int]: ...
    def draw(self, renderable: RenderableType) -> None: ...
    def read_key(self) -> Key: ...
    def __enter__(self) -> Session: ...
    def __exit__(self, *exc_info: object) -> None: ...


def decode_key(data: bytes) -> Key:
    """Map one key token to a key; an empty token (EOF) counts as quit."""
    if not data:
        return Key.QUIT
    return _KEYMAP.get(data, Key.OTHER)


def split_keys(data: bytes) -> list[bytes]:
    """Split one read into key tokens.

    A single read can carry several presses (auto-repeat, paste, slow
    links). ``ESC [ x`` and ``ESC O x`` are one token; any other byte is
    a token of its own.
    """
    tokens: list[bytes] = []
    i = 0
    while i < len(data):
        escape = data[i : i + 1] == b"\x1b" and data[i + 1 : i + 2] in (b"[", b"O")
        size = 3 if escape else 1
        tokens.append(data[i : i + size])
        i += size
    return tokens


class TerminalSession:
    """Owns the terminal between ``__enter__`` and ``__exit__``."""

    def __init__(self, console: Console | None = None, *, stdin_fd: int | None = None) -> None:
        self._console = console or Console()
        self._fd = stdin_fd
        self._pending: deque[Key] = deque()
        self._saved: list | None = None
        self._live: Live | None = None

    @property
    def size(self) -> tuple[int, int]:
        width, height = self._console.size
        return width, height

    def __enter__(self) -> TerminalSession:
        if self._fd is None:
            self._fd = _stdin_fd()
        if not os.isatty(self._fd):
            raise TerminalError("standard input is not a terminal")

        self._saved = termios.tcgetattr(self._fd)
        try:
            tty.setcbreak(self._fd)
            self._live = Live(
                console=self._console,
                screen=True,
                auto_refresh=False,
                transient=True,
                redirect_stdout=False,
                redirect_stderr=False,
            )
            self._live.start()
        except BaseException:
            self._restore()
            raise

        log.debug("Terminal session started ({w}x{h})", w=self.size[0], h=self.size[1])
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._restore()
        if exc is not None:
            log.debug("Terminal session closed by {name}", name=type(exc).__name__)

    def _restore(self) -> None:
        try:
            if self._live is not None:
                self._live.stop()
                self._live = None
        finally:
            if self._saved is not None:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
                self._saved = None

    def draw(self, renderable: RenderableType) -> None:
        if self._live is None:
            raise RuntimeError("draw() outside of an active terminal session")
        self._live.update(renderable, refresh=True)

    def read_key(self) -> Key:
        """Next key press; the terminal is read only when no press is queued."""
        if not self._pending:
            if self._fd is None:
                raise RuntimeError("read_key() outside of an active terminal session")
            data = os.read(self._fd, 32)
            if not data:
                return Key.QUIT
            self._pending.extend(decode_key(token) for token in split_keys(data))
        return self._pending.popleft()
