"""Top-level run: one session, one shell, one shutdown path."""

from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass, field

from bwsc.address import parse_address
from bwsc.config import ClientConfig
from bwsc.errors import AuthenticationError, ConnectError
from bwsc.session import TransportSession
from bwsc.shell import Shell
from bwsc.terminal import LineReader

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILED = 1

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass
class ClientContext:
    """Everything the shutdown routine needs, owned by run_client()."""

    config: ClientConfig
    session: TransportSession
    shell: Shell
    main_task: asyncio.Task | None = None
    stopping: bool = False
    installed_signals: list[signal.Signals] = field(default_factory=list)

    @classmethod
    def create(cls, config: ClientConfig, *, reader: LineReader | None = None) -> "ClientContext":
        session = TransportSession(
            parse_address(config.address),
            config.passkey,
            connect_timeout=config.connect_timeout,
            auth_timeout=config.auth_timeout,
        )
        shell = Shell(session, history_size=config.history_size, reader=reader)
        return cls(config=config, session=session, shell=shell)

    def request_shutdown(self, sig: signal.Signals | None = None) -> None:
        if self.stopping:
            return
        self.stopping = True
        if sig is not None:
            logger.debug("Received signal %s", sig.name)
        logger.info("Shutting down...")

        if self.shell.running:
            self.shell.stop()
        elif self.main_task is not None and not self.main_task.done():
            # Still connecting/authenticating.
            self.main_task.cancel()

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.debug("Cannot install handler for %s: %s", sig.name, e)
                continue
            self.installed_signals.append(sig)

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        while self.installed_signals:
            loop.remove_signal_handler(self.installed_signals.pop())


async def _start(ctx: ClientContext) -> int:
    try:
        await ctx.session.connect()
        await ctx.session.authenticate()
    except (ConnectError, AuthenticationError) as e:
        logger.error("Failed to connect: %s", e)
        logger.error("Double check protocol (wss:// ?), hostname, port and passkey!")
        return EXIT_STARTUP_FAILED

    await ctx.shell.run()
    return EXIT_OK


async def run_client(config: ClientConfig, *, reader: LineReader | None = None) -> int:
    """Connect, authenticate and run the shell. Returns the process exit code."""
    ctx = ClientContext.create(config, reader=reader)
    ctx.main_task = asyncio.current_task()
    loop = asyncio.get_running_loop()
    ctx.install_signal_handlers(loop)
    try:
        return await _start(ctx)
    except asyncio.CancelledError:
        if not ctx.stopping:
            raise
        return EXIT_OK
    finally:
        ctx.remove_signal_handlers(loop)
        await ctx.session.close()


def main(config: ClientConfig) -> int:
    return asyncio.run(run_client(config))
