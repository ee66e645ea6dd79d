"""Serve command: run the paging/search dataset server."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import typer
from loguru import logger

from ...config.defaults import SERVER_PORT_RANGE
from ...core.exceptions import DatasetError
from ...server.app import find_free_port, start_dataset_server
from ..output import console, print_error


def serve(
    ctx: typer.Context,
    dataset: Path = typer.Argument(
        ...,
        help="JSON dataset to serve",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(
        None, "--port", "-p", min=1024, max=65535, help="Port (default from config)"
    ),
) -> None:
    """🌐 Serve a dataset over /api/relations, /api/search, /api/reload, /api/download."""
    config = ctx.obj["config"].server
    config = replace(config, host=host or config.host)

    requested = port or config.port
    try:
        actual = find_free_port(requested, requested + SERVER_PORT_RANGE - 1)
    except OSError as e:
        print_error(str(e))
        raise typer.Exit(1)
    if actual != requested:
        console.print(f"[yellow]Port {requested} in use, using {actual} instead[/yellow]")
    config = replace(config, port=actual)

    try:
        start_dataset_server(
            dataset, config, log_level="info" if ctx.obj.get("verbose") else "warning"
        )
    except DatasetError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        logger.debug("Server interrupted")
        console.print("\n[yellow]Stopping server...[/yellow]")
