from __future__ import annotations

import re
from dataclasses import dataclass

from bwsc.config import DEFAULT_PORT, DEFAULT_PROTOCOL

_SCHEME_RE = re.compile(r"(wss?)://(.+)")
_PORT_RE = re.compile(r"(.+):(\d+)")


@dataclass(frozen=True)
class ConnectionTarget:
    protocol: str
    host: str
    port: int

    @property
    def url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"


def parse_address(raw: str) -> ConnectionTarget:
    """Split ``[ws|wss://]host[:port]`` into a ConnectionTarget.

    Missing parts fall back to ``ws`` and port 9939. The host is not validated;
    a bad host shows up later as a connection failure.
    """
    m = _SCHEME_RE.fullmatch(raw)
    protocol = m.group(1) if m else DEFAULT_PROTOCOL
    rest = m.group(2) if m else raw

    m = _PORT_RE.fullmatch(rest)
    if m:
        return ConnectionTarget(protocol=protocol, host=m.group(1), port=int(m.group(2), 10))
    return ConnectionTarget(protocol=protocol, host=rest, port=DEFAULT_PORT)
