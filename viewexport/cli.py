"""CLI tools: viewexport run, viewexport resources."""

from __future__ import annotations

import asyncio
import logging
import sys
from importlib import metadata

import typer
from rich.console import Console
from rich.table import Table

from viewexport.config.models import ExportConfig, load_config
from viewexport.exceptions import ConfigurationError, ExportError
from viewexport.export.listener import OUTPUT_DIR
from viewexport.resources.catalog import default_registry

app = typer.Typer(
    name="viewexport",
    help="Export database views to files and keep them in sync.",
)


def _print_version_and_exit() -> None:
    """Print installed package version and exit."""
    try:
        version = metadata.version("viewexport")
    except metadata.PackageNotFoundError:
        version = "unknown"
    print(f"viewexport {version}")
    raise SystemExit(0)


def _configure_logging(config: ExportConfig) -> None:
    logging.basicConfig(level=config.logging.level, format=config.logging.format)


@app.command("run")
def run_command(
    username: str = typer.Argument(..., help="Database role used over the local socket."),
    host: str = typer.Option("", "--host", help="Remote host to mirror artifacts to (default: local only)."),
    config: str = typer.Option("", "--config", envvar="VIEWEXPORT_CONFIG", help="Config file path (default: ./viewexport.yaml)"),
) -> None:
    """Export every resource, then follow change notifications until a fatal error."""
    from viewexport.service import start

    username = username.strip()
    if not username:
        typer.echo("Error: username must be non-empty.", err=True)
        raise typer.Exit(2)
    try:
        cfg = load_config(config.strip() or None)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    _configure_logging(cfg)
    try:
        asyncio.run(start(username, host.strip() or None, config=cfg))
    except ExportError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


@app.command("resources")
def resources_command() -> None:
    """List built-in resources in bootstrap order."""
    registry = default_registry()
    table = Table(title=f"Resources ({OUTPUT_DIR})", show_header=True, header_style="bold")
    table.add_column("#", style="dim")
    table.add_column("Name")
    table.add_column("File")
    for index, name in enumerate(registry.all_names(), start=1):
        resource = registry.lookup(name)
        table.add_row(str(index), name, getattr(resource, "target_name", name))
    Console().print(table)


def main() -> None:
    """CLI entry point."""
    if "--version" in sys.argv or "-V" in sys.argv:
        _print_version_and_exit()
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
