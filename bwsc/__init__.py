"""BotWave WebSocket Client.

Connects to a BotWave server over WebSocket, authenticates with a passkey and
relays typed commands while rendering server-pushed lines in a colorized prompt.

Usage:
    bwsc <host> [passkey]
"""

__version__ = "1.1.0"
