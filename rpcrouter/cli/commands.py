"""CLI commands for rpcrouter.

Developer tooling around the router: decode envelopes, push a payload through
a router with a built-in ``echo`` handler, and inspect configuration.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rpcrouter import __version__
from rpcrouter.cli.config_commands import register_config_commands
from rpcrouter.cli.shared.logging_utils import configure_console_logging, ensure_rotating_log_file
from rpcrouter.cli.shared.payload_utils import preview, read_payload
from rpcrouter.config.loader import get_config_path, load_config
from rpcrouter.context import RequestContext
from rpcrouter.envelope import Token, decode_request, peek_token, split_batch
from rpcrouter.error_boundary import describe_failure
from rpcrouter.identifier import Identifier
from rpcrouter.router import Router
from rpcrouter.utils.exceptions import InvalidRequest, ParseError

app = typer.Typer(
    name="rpcrouter",
    help="rpcrouter - JSON-RPC 2.0 message router",
    no_args_is_help=True,
)

console = Console()


def echo_handler(ctx: RequestContext, identifier: Identifier, method: str, params: bytes | None) -> bytes | None:
    """Return the request params unchanged."""
    return params


def version_callback(value: bool) -> None:
    if value:
        console.print(f"rpcrouter v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
) -> None:
    """rpcrouter - JSON-RPC 2.0 message router."""
    pass


def _load_payload(payload: str) -> bytes:
    try:
        return read_payload(payload)
    except OSError as e:
        console.print(f"[red]Cannot read payload:[/red] {escape(describe_failure(e)['message'])}")
        raise typer.Exit(1)


def _inspect_row(table: Table, index: str, raw: bytes) -> None:
    try:
        request = decode_request(raw)
    except InvalidRequest as e:
        identifier = e.identifier if e.identifier is not None else Identifier.null()
        table.add_row(index, f"[red]{e.code} {e.message}[/red]", identifier.kind.value, escape(str(identifier)), "-", escape(e.reason))
        return
    except ParseError as e:
        table.add_row(index, f"[red]{e.code} {e.message}[/red]", "null", "null", "-", escape(e.reason))
        return
    outcome = "[green]notification[/green]" if request.is_notification else "[green]call[/green]"
    table.add_row(
        index,
        outcome,
        request.id.kind.value,
        escape(repr(request.id)),
        escape(request.method),
        escape(preview(request.params)),
    )


@app.command("inspect")
def inspect_command(
    payload: str = typer.Argument(..., help="Request JSON, @file, or - for stdin"),
) -> None:
    """Decode a request or batch and show each envelope."""
    raw = _load_payload(payload)
    token = peek_token(raw)
    if token is Token.OTHER:
        console.print("[red]-32700 Parse error[/red]: payload is not a JSON object or array")
        raise typer.Exit(1)

    table = Table(title="JSON-RPC envelope")
    table.add_column("#", style="dim")
    table.add_column("Outcome")
    table.add_column("Id kind")
    table.add_column("Id")
    table.add_column("Method", style="cyan")
    table.add_column("Params / reason")

    if token is Token.OBJECT:
        _inspect_row(table, "-", raw)
    else:
        try:
            members = split_batch(raw)
        except ParseError as e:
            console.print(f"[red]-32700 Parse error[/red]: {escape(e.reason)}")
            raise typer.Exit(1)
        if not members:
            console.print("[red]-32600 Invalid Request[/red]: empty batch")
            raise typer.Exit(1)
        for i, member in enumerate(members):
            _inspect_row(table, str(i), member)
    console.print(table)


@app.command("route")
def route_command(
    payload: str = typer.Argument(..., help="Request JSON, @file, or - for stdin"),
    config: Path = typer.Option(None, "--config", "-c", help="Config file (default ~/.rpcrouter/config.json)"),
    suppress_notifications: bool = typer.Option(
        None,
        "--suppress-notifications/--answer-notifications",
        help="Override the configured notification behaviour",
    ),
    pretty: bool = typer.Option(False, "--pretty", help="Indent the response"),
    log_file: bool = typer.Option(False, "--log-file", help="Also log to ~/.rpcrouter/logs/route.log"),
) -> None:
    """Route a payload through a router whose only method is ``echo``."""
    try:
        cfg = load_config(config or get_config_path())
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    if suppress_notifications is not None:
        cfg = cfg.model_copy(update={"suppress_notifications": suppress_notifications})

    configure_console_logging(cfg.log_level)
    if log_file:
        ensure_rotating_log_file("route", level=cfg.log_level)

    raw = _load_payload(payload)
    router = Router(cfg)
    router.register("echo", echo_handler)
    response = asyncio.run(router.serve(RequestContext(metadata={"source": "cli"}), raw))

    if not response:
        console.print("[dim](no response)[/dim]")
        return
    text = response.decode("utf-8")
    if pretty:
        console.print_json(text)
    else:
        typer.echo(text)


register_config_commands(app=app, console=console)


if __name__ == "__main__":
    app()
