from __future__ import annotations

import asyncio
from typing import Any

from websockets.exceptions import ConnectionClosedOK
from websockets.protocol import State


def run_async(coro) -> Any:
    """Run a coroutine on a fresh event loop."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeConnection:
    """Stands in for websockets' ClientConnection.

    ``replies`` feed recv() (the handshake); ``frames`` feed async iteration
    (steady state); a callable frame is awaited instead of yielded. An
    exception in either list is raised instead of returned.
    With no replies left, recv() never returns.
    """

    def __init__(
        self,
        replies: list[Any] | None = None,
        frames: list[Any] | None = None,
        *,
        close_code: int | None = 1000,
        close_reason: str = "",
        error: BaseException | None = None,
    ) -> None:
        self.sent: list[str] = []
        self.replies = list(replies or [])
        self.frames = list(frames or [])
        self.state = State.OPEN
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.close_calls = 0
        self._final_code = close_code
        self._final_reason = close_reason
        self._error = error

    async def send(self, data: str) -> None:
        if self.state is not State.OPEN:
            raise ConnectionClosedOK(None, None)
        self.sent.append(data)

    async def recv(self) -> Any:
        if not self.replies:
            await asyncio.sleep(3600)
        item = self.replies.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            if self.state is State.CLOSED:
                break
            if callable(frame):
                await frame()
                continue
            yield frame
        self.state = State.CLOSED
        self.close_code = self._final_code
        self.close_reason = self._final_reason
        if self._error is not None:
            raise self._error

    async def close(self) -> None:
        self.close_calls += 1
        self.state = State.CLOSED


def fake_connect(conn: FakeConnection):
    """Replacement for websockets.connect that records its calls."""
    calls: list[tuple[str, dict]] = []

    async def _connect(url: str, **kwargs: Any) -> FakeConnection:
        calls.append((url, kwargs))
        return conn

    _connect.calls = calls  # type: ignore[attr-defined]
    return _connect


class FakeReader:
    """Scripted stand-in for bwsc.terminal.LineReader.

    After the scripted lines run out, readline() blocks until cancelled unless
    ``eof`` is set, in which case it returns None.
    """

    def __init__(self, lines: list[str] | None = None, *, eof: bool = False) -> None:
        self.lines = list(lines or [])
        self.eof = eof
        self.started = False
        self.closed = False
        self.history: list[str] = []
        self.echoed: list[str] = []

    def start(self) -> None:
        self.started = True

    async def readline(self) -> str | None:
        await asyncio.sleep(0)
        if self.lines:
            return self.lines.pop(0)
        if self.eof:
            return None
        await asyncio.sleep(3600)
        return None

    def echo(self, text: str) -> None:
        self.echoed.append(text)

    def set_history(self, entries) -> None:
        self.history = list(entries)

    def close(self) -> None:
        self.closed = True
