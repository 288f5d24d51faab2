"""Message classification and terminal rendering for server-pushed lines."""

from __future__ import annotations

import json
import re

import typer

from bwsc import __version__
from bwsc.config import CLIENT_NAME
from bwsc.logging_utils import paint

DIVIDER = "─"

# Tag -> color for "[TAG] content" lines.
MESSAGE_TYPES: dict[str, str] = {
    "OK": "bright_green",
    "ERR": "bright_red",
    "WARN": "bright_yellow",
    "INFO": "bright_cyan",
    "CLIENT": "magenta",
    "SERVER": "cyan",
    "FILE": "yellow",
    "BCAST": "bright_magenta",
    "VER": "bright_cyan",
    "UPD": "bright_yellow",
    "HNDL": "magenta",
}

# Server self-description echoed back on the command channel.
_INTERNAL_MARKERS = ("WebSocket CMD",)

_TAG_RE = re.compile(r"^\[([A-Z]+)\]\s(.*)$")
_FIELD_RE = re.compile(r"^\s*(Hostname|Address|Protocol|Connected|Last seen|Machine):")
_ID_RE = re.compile(r"^ID:\s")
_INDENT_RE = re.compile(r"^\s{2,4}\S")


def is_suppressed(message: str) -> bool:
    """True for frames that should never reach the interactive view.

    Any frame that parses as a JSON object with a truthy ``type`` is dropped,
    even after authentication, so plain server text that happens to look like
    that is dropped too.
    """
    try:
        data = json.loads(message)
    except (ValueError, RecursionError):
        data = None
    if isinstance(data, dict) and data.get("type"):
        return True
    return any(marker in message for marker in _INTERNAL_MARKERS)


def colorize_message(line: str) -> str:
    m = _TAG_RE.match(line)
    if m:
        tag, content = m.groups()
        color = MESSAGE_TYPES.get(tag)
        if color:
            return f"{paint(f'[{tag}]', color)} {content}"

    if DIVIDER in line:
        return paint(line, "bright_blue")
    if _FIELD_RE.match(line):
        return paint(line, "cyan")
    if _ID_RE.match(line):
        return paint(line, "bright_white")
    if _INDENT_RE.match(line):
        return paint(line, "white")
    return line


def render_message(message: str) -> str | None:
    """Classify a raw frame; None means suppressed."""
    if is_suppressed(message):
        return None
    return "\n".join(colorize_message(line) for line in message.split("\n"))


def header_lines() -> list[str]:
    return [
        "",
        f"{paint(CLIENT_NAME, 'bright_blue')} {paint(f'v{__version__}', 'dim')}",
        paint(DIVIDER * 50, "dim"),
        paint("Built-in commands: clear, exit", "yellow"),
        paint("Use ↑/↓ arrows for command history", "dim"),
        "",
    ]


def show_header() -> None:
    for line in header_lines():
        typer.echo(line)
