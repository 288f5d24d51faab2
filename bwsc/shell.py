"""Interactive prompt: command history, local commands, and rendering of pushes."""

from __future__ import annotations

import asyncio
import logging

import typer

from bwsc.config import HISTORY_SIZE, PROMPT
from bwsc.display import render_message, show_header
from bwsc.errors import LocalCommandError, TransportError
from bwsc.logging_utils import paint, redirect_console
from bwsc.session import TransportSession
from bwsc.terminal import LineReader

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit")
CLEAR_COMMAND = "clear"


class CommandHistory:
    """Bounded list of submitted commands.

    A command equal to the most recent entry is not stored again; once full,
    the oldest entry is evicted. Recall itself is done by readline from a
    mirror of ``entries``.
    """

    def __init__(self, limit: int = HISTORY_SIZE) -> None:
        self.limit = limit
        self.entries: list[str] = []

    def __len__(self) -> int:
        return len(self.entries)

    def add(self, command: str) -> None:
        if not self.entries or self.entries[-1] != command:
            self.entries.append(command)
            if len(self.entries) > self.limit:
                del self.entries[0]


class Shell:
    def __init__(
        self,
        session: TransportSession,
        *,
        history_size: int = HISTORY_SIZE,
        reader: LineReader | None = None,
    ) -> None:
        self.session = session
        self.history = CommandHistory(history_size)
        self._reader = reader
        self._running = False
        self._stopped = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._running

    def echo(self, text: str) -> None:
        if self._reader is not None:
            self._reader.echo(text)
        else:
            typer.echo(text)

    def render(self, message: str) -> None:
        line = render_message(message)
        if line is not None:
            self.echo(line)

    async def handle_command(self, text: str) -> bool:
        """Run one submitted line. Returns False when the shell should stop."""
        command = text.strip()
        if not command:
            return True

        if command in EXIT_COMMANDS:
            logger.info("bye!")
            return False

        if command == CLEAR_COMMAND:
            typer.clear()
            show_header()
            return True

        self.history.add(command)
        if self._reader is not None:
            self._reader.set_history(self.history.entries)
        try:
            await self.session.send(command)
        except (LocalCommandError, TransportError) as e:
            logger.error("%s", e)
        return True

    def stop(self) -> None:
        """Leave the prompt loop; callable from signal handlers and the listener."""
        self._running = False
        self._stopped.set()

    def _on_listener_done(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Message listener failed: %s", task.exception())
        self.stop()

    async def _next_line(self) -> str | None:
        read = asyncio.ensure_future(self._reader.readline())
        stopped = asyncio.ensure_future(self._stopped.wait())
        done, pending = await asyncio.wait({read, stopped}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        if not self._running or read not in done:
            return None
        return read.result()

    async def run(self) -> None:
        if self._reader is None:
            self._reader = LineReader(paint(PROMPT, "bright_green"))

        show_header()
        self._running = True
        self._stopped.clear()
        self._reader.start()
        with redirect_console(self.echo):
            listener = asyncio.create_task(self.session.listen(self.render))
            listener.add_done_callback(self._on_listener_done)
            try:
                while self._running:
                    line = await self._next_line()
                    if line is None:
                        break
                    if not await self.handle_command(line):
                        break
            finally:
                self._running = False
                if not listener.done():
                    listener.cancel()
                    try:
                        await listener
                    except asyncio.CancelledError:
                        pass
                self._reader.close()
