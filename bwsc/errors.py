from __future__ import annotations


class ClientError(RuntimeError):
    pass


class ConnectError(ClientError):
    """Transport open failed or timed out."""


class AuthenticationError(ClientError):
    """Explicit auth_failed reply, timeout, or malformed reply."""


class TransportError(ClientError):
    """Socket-level failure after authentication. Logged, not fatal."""


class LocalCommandError(ClientError):
    """A send was attempted while not authenticated/connected."""
