"""Line input for the shell.

GNU readline only works through a blocking ``input()`` call, so lines are read
on a daemon thread and handed to the event loop one at a time. The thread is
only asked for a line once the previous one has been handled, so output from a
local command never races the next prompt.
"""

from __future__ import annotations

import asyncio
import re
import sys
import threading
from typing import Iterable

import typer

try:
    import readline
except ImportError:  # Windows: plain input(), no line editing or recall
    readline = None

try:
    import termios
except ImportError:
    termios = None

_SGR_RE = re.compile(r"(\x1b\[[0-9;]*m)")


def readline_safe(prompt: str) -> str:
    """Wrap color codes in RL_PROMPT_START/END_IGNORE so readline measures the prompt right."""
    if readline is None:
        return prompt
    return _SGR_RE.sub("\x01\\1\x02", prompt)


class LineReader:
    def __init__(self, prompt: str) -> None:
        self.prompt = prompt
        self.reading = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[str | None] | None = None
        self._wanted = threading.Event()
        self._thread: threading.Thread | None = None
        self._saved_tty = None

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        if readline is not None:
            # The shell decides what goes into history.
            readline.set_auto_history(False)
            # Called once input() has drawn the prompt.
            readline.set_pre_input_hook(self._mark_reading)
        if termios is not None and sys.stdin.isatty():
            self._saved_tty = termios.tcgetattr(sys.stdin.fileno())
        self._thread = threading.Thread(target=self._worker, name="bwsc-input", daemon=True)
        self._thread.start()

    def _mark_reading(self) -> None:
        self.reading = True

    def _worker(self) -> None:
        prompt = readline_safe(self.prompt)
        while True:
            self._wanted.wait()
            self._wanted.clear()
            if readline is None:
                self.reading = True
            try:
                line: str | None = input(prompt)
            except EOFError:
                line = None
            finally:
                self.reading = False
            try:
                self._loop.call_soon_threadsafe(self._queue.put_nowait, line)
            except RuntimeError:
                # Event loop already closed.
                return
            if line is None:
                return

    async def readline(self) -> str | None:
        """Next submitted line, or None on EOF (Ctrl+D)."""
        self._wanted.set()
        return await self._queue.get()

    def echo(self, text: str) -> None:
        """Print above the prompt, then redraw the prompt and any half-typed input."""
        if not self.reading:
            typer.echo(text)
            return
        pending = readline.get_line_buffer() if readline is not None else ""
        sys.stdout.write(f"\r\x1b[K{text}\n{self.prompt}{pending}")
        sys.stdout.flush()

    def set_history(self, entries: Iterable[str]) -> None:
        if readline is None:
            return
        readline.clear_history()
        for entry in entries:
            readline.add_history(entry)

    def close(self) -> None:
        """Drop the prompt line and restore the tty.

        The worker may still be parked inside input(); it is a daemon thread
        and dies with the process.
        """
        if self.reading:
            sys.stdout.write("\r\x1b[K")
            sys.stdout.flush()
            self.reading = False
        if readline is not None:
            readline.set_pre_input_hook()
        if self._saved_tty is not None:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._saved_tty)
            self._saved_tty = None
