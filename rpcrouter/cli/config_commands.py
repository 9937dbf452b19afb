"""Config command group."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rpcrouter.config.loader import get_config_path, load_config, save_config
from rpcrouter.config.schema import RouterConfig


def register_config_commands(app: typer.Typer, console: Console) -> None:
    """Register the ``config`` command group."""
    config_app = typer.Typer(help="Router configuration helpers")
    app.add_typer(config_app, name="config")

    @config_app.command("show")
    def config_show(
        config: Path = typer.Option(None, "--config", "-c", help="Config file (default ~/.rpcrouter/config.json)"),
    ) -> None:
        """Print the effective configuration."""
        path = config or get_config_path()
        try:
            cfg = load_config(path)
        except ValueError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            raise typer.Exit(1)

        table = Table(title=f"rpcrouter config ({path}{'' if path.exists() else ', not found'})")
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        for key, value in cfg.model_dump().items():
            table.add_row(key, "-" if value is None else str(value))
        console.print(table)

    @config_app.command("init")
    def config_init(
        config: Path = typer.Option(None, "--config", "-c", help="Config file to create"),
        force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
    ) -> None:
        """Write a config file holding the defaults."""
        path = config or get_config_path()
        if path.exists() and not force:
            console.print(f"[yellow]Config already exists:[/yellow] {path} (use --force to overwrite)")
            raise typer.Exit(1)
        written = save_config(RouterConfig(), path)
        console.print(f"[green]✓[/green] Wrote {written}")
