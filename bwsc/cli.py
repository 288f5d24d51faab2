from __future__ import annotations

import click
import typer

from bwsc import __version__
from bwsc.app import main as run_client_main
from bwsc.config import ClientConfig
from bwsc.logging_utils import configure_logging


def build_app() -> typer.Typer:
    app = typer.Typer(
        add_completion=False,
        help="BotWave WebSocket Client - Connect to BotWave WS servers",
    )

    def _print_version(value: bool) -> None:
        if value:
            typer.echo(__version__)
            raise typer.Exit(code=0)

    @app.command()
    def connect(
        host: str = typer.Argument(..., help="Server (ws://host:port, wss://host:port, host:port, or just host)"),
        passkey: str = typer.Argument("", help="Authentication passkey (optional)"),
        debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
        version: bool = typer.Option(
            False, "--version", help="Print version and exit", callback=_print_version, is_eager=True
        ),
    ) -> None:
        configure_logging(1 if debug else 0)
        cfg = ClientConfig(address=host, passkey=passkey)
        raise typer.Exit(code=run_client_main(cfg))

    return app


def run(argv: list[str]) -> int:
    command = typer.main.get_command(build_app())
    try:
        rv = command.main(args=argv, prog_name="bwsc", standalone_mode=False)
        # With standalone_mode=False, Click turns Exit into a return value.
        if isinstance(rv, int):
            return int(rv)
        return 0
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.Abort:
        return 1
