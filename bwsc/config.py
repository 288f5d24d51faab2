from __future__ import annotations

from dataclasses import dataclass

CLIENT_NAME = "BotWave WebSocket Client"

DEFAULT_PROTOCOL = "ws"
DEFAULT_PORT = 9939

# Both timers are raced against a single event (open / first reply).
CONNECT_TIMEOUT_S = 5.0
AUTH_TIMEOUT_S = 5.0

HISTORY_SIZE = 100
PROMPT = "botwave › "


@dataclass(frozen=True)
class ClientConfig:
    """Per-invocation settings, built from CLI arguments only."""

    address: str
    passkey: str = ""
    connect_timeout: float = CONNECT_TIMEOUT_S
    auth_timeout: float = AUTH_TIMEOUT_S
    history_size: int = HISTORY_SIZE
