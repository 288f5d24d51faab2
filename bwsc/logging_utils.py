from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Callable, Iterator

import typer

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

# (tag, color) per level; anything else prints untagged.
_LEVEL_TAGS = {
    logging.DEBUG: ("DEBUG", "dim"),
    logging.INFO: ("INFO", "bright_blue"),
    SUCCESS: ("OK", "bright_green"),
    logging.WARNING: ("WARN", "bright_yellow"),
    logging.ERROR: ("ERR", "bright_red"),
    logging.CRITICAL: ("ERR", "bright_red"),
}

_console_writer: Callable[[str], None] | None = None


def paint(text: str, color: str) -> str:
    if color == "dim":
        return typer.style(text, dim=True)
    return typer.style(text, fg=color)


class ConsoleFormatter(logging.Formatter):
    """Single-line ``[HH:MM:SS] [TAG] message`` records."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = paint(f"[{self.formatTime(record, '%H:%M:%S')}]", "dim")
        message = record.getMessage()
        if record.exc_info and record.levelno <= logging.DEBUG:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        tag = _LEVEL_TAGS.get(record.levelno)
        if tag is None:
            return f"{prefix} {message}"
        name, color = tag
        return f"{prefix} {paint(f'[{name}]', color)} {message}"


class ConsoleHandler(logging.StreamHandler):
    """Writes to the current sys.stdout, or through the active console writer.

    While the shell is prompting, records go through its writer so they land
    above the prompt line instead of inside it.
    """

    def __init__(self) -> None:
        super().__init__(sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        writer = _console_writer
        if writer is None:
            self.stream = sys.stdout
            super().emit(record)
            return
        try:
            writer(self.format(record))
        except Exception:
            self.handleError(record)


@contextmanager
def redirect_console(writer: Callable[[str], None]) -> Iterator[None]:
    global _console_writer
    previous, _console_writer = _console_writer, writer
    try:
        yield
    finally:
        _console_writer = previous


def configure_logging(verbose_int: int = 0) -> None:
    """Configure root logging. Idempotent."""
    level = logging.DEBUG if (verbose_int or 0) >= 1 else logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers:
        if isinstance(h, ConsoleHandler):
            h.setLevel(level)
            return

    handler = ConsoleHandler()
    handler.setFormatter(ConsoleFormatter())
    handler.setLevel(level)
    root.addHandler(handler)
    # websockets dumps every frame at DEBUG.
    logging.getLogger("websockets").setLevel(logging.INFO)


def log_success(logger: logging.Logger, msg: str, *args) -> None:
    logger.log(SUCCESS, msg, *args)
