"""WebSocket transport session: connect, authenticate, then text passthrough."""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from typing import Callable

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException
from websockets.protocol import State

from bwsc.address import ConnectionTarget
from bwsc.config import AUTH_TIMEOUT_S, CONNECT_TIMEOUT_S
from bwsc.errors import AuthenticationError, ConnectError, LocalCommandError, TransportError
from bwsc.logging_utils import log_success

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


def _close_info(ws: ClientConnection) -> tuple[int, str]:
    code = ws.close_code if ws.close_code is not None else 1006
    return code, ws.close_reason or ""


class TransportSession:
    """One WebSocket connection per process; there is no way back from CLOSED."""

    def __init__(
        self,
        target: ConnectionTarget,
        passkey: str | None = None,
        *,
        connect_timeout: float = CONNECT_TIMEOUT_S,
        auth_timeout: float = AUTH_TIMEOUT_S,
    ) -> None:
        self.target = target
        self.passkey = passkey or ""
        self.connect_timeout = connect_timeout
        self.auth_timeout = auth_timeout
        self._ws: ClientConnection | None = None
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connecting(self) -> bool:
        return self._state is SessionState.CONNECTING

    @property
    def authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    def is_connected(self) -> bool:
        return self._ws is not None and self.authenticated and self._ws.state is State.OPEN

    async def connect(self) -> None:
        """Open the socket, racing the opening handshake against a timer."""
        if self.connecting:
            logger.debug("connect() already in progress")
            return
        if self._state is not SessionState.IDLE:
            logger.debug("connect() ignored in state %s", self._state.value)
            return
        self._state = SessionState.CONNECTING

        url = self.target.url
        logger.info("Connecting to %s...", url)
        try:
            # Our own timer governs the open; disable the library's.
            self._ws = await asyncio.wait_for(
                websockets.connect(url, open_timeout=None),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError:
            self._state = SessionState.CLOSED
            raise ConnectError(f"Connection timeout ({self.connect_timeout:g}s)") from None
        except (OSError, ValueError, WebSocketException) as e:
            self._state = SessionState.CLOSED
            raise ConnectError(str(e) or e.__class__.__name__) from e

        self._state = SessionState.CONNECTED
        log_success(logger, "WebSocket connection established")

    async def authenticate(self) -> None:
        """Send the auth frame and wait for exactly one reply.

        The reply is read here directly rather than through the steady-state
        listener, which is not running yet.
        """
        if self._state is not SessionState.CONNECTED or self._ws is None:
            raise AuthenticationError("Cannot authenticate: socket is not open")

        auth_message = {"type": "auth", "passkey": self.passkey}
        try:
            await self._ws.send(json.dumps(auth_message))
            data = await asyncio.wait_for(self._ws.recv(), timeout=self.auth_timeout)
        except asyncio.TimeoutError:
            raise AuthenticationError(f"Authentication timeout ({self.auth_timeout:g}s)") from None
        except ConnectionClosed as e:
            code, reason = _close_info(self._ws)
            raise AuthenticationError(
                f"Connection closed during authentication ({code}): {reason or 'No reason provided'}"
            ) from e

        try:
            response = json.loads(data)
        except (ValueError, RecursionError):
            raise AuthenticationError("Invalid authentication response") from None
        if not isinstance(response, dict):
            raise AuthenticationError("Invalid authentication response")

        kind = response.get("type")
        if kind == "auth_ok":
            self._state = SessionState.AUTHENTICATED
            log_success(logger, "Authentication successful")
        elif kind == "auth_failed":
            raise AuthenticationError(f"Authentication failed: {response.get('message', '')}")
        else:
            raise AuthenticationError("Unexpected authentication response")

    async def listen(self, on_message: Callable[[str], None]) -> None:
        """Forward every inbound frame until the connection closes."""
        if not self.authenticated or self._ws is None:
            raise LocalCommandError("Not connected to server")
        ws = self._ws

        try:
            async for frame in ws:
                if isinstance(frame, bytes):
                    frame = frame.decode("utf-8", errors="replace")
                on_message(frame)
        except ConnectionClosedError as e:
            if self._state is not SessionState.CLOSED:
                logger.error("WebSocket error: %s", e)

        # A close we initiated ourselves (exit, signal) is not worth reporting.
        if self._state is not SessionState.CLOSED:
            code, reason = _close_info(ws)
            logger.warning("Connection closed (%d): %s", code, reason or "No reason provided")

    async def send(self, command: str) -> None:
        if not self.is_connected():
            raise LocalCommandError("Not connected to server")
        try:
            await self._ws.send(command)
        except ConnectionClosed as e:
            raise TransportError(f"Send failed: {e}") from e

    async def close(self) -> None:
        """Close the socket if it is open. Safe to call more than once."""
        if self._state is SessionState.CLOSED and self._ws is None:
            return
        self._state = SessionState.CLOSED
        ws, self._ws = self._ws, None
        if ws is not None and ws.state is not State.CLOSED:
            await ws.close()
