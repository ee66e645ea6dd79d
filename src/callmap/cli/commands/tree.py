"""Tree command: print the visible call forest of a dataset."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from loguru import logger

from ...core.exceptions import CallMapError
from ..output import console, pagination_table, print_error, scene_tree
from ._session import open_session


def tree(
    ctx: typer.Context,
    dataset: Path | None = typer.Argument(
        None,
        help="JSON dataset produced by the call analyzer",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    server: str | None = typer.Option(
        None, "--server", "-s", help="Read pages from a running dataset server"
    ),
    expand: list[str] = typer.Option(
        [],
        "--expand",
        "-e",
        help="Expand a node by key (name@filePath); repeatable",
    ),
    expand_all: bool = typer.Option(
        False, "--expand-all", help="Expand every node (cycles are cut)"
    ),
    query: str = typer.Option("", "--query", "-q", help="Search query"),
    page: int = typer.Option(1, "--page", min=1, help="Page of roots to show"),
    page_size: int | None = typer.Option(
        None, "--page-size", help="Roots per page: 5, 10, 15, 20 or 50"
    ),
) -> None:
    """🌳 Print the call tree of a dataset page.

    [bold cyan]Examples:[/bold cyan]

    [green]Roots of an analyzer output:[/green]
        $ callmap tree functionmap.json

    [green]Open main.main:[/green]
        $ callmap tree functionmap.json -e "main.main@main.go"

    [green]Search a running server:[/green]
        $ callmap tree --server http://localhost:8080 -q handler --expand-all
    """
    config = ctx.obj["config"]
    try:
        session = asyncio.run(
            open_session(
                config, dataset, server, query, page, page_size, expand, expand_all
            )
        )
    except CallMapError as e:
        logger.debug(f"tree failed: {e!r}")
        print_error(str(e))
        raise typer.Exit(1)

    source = session.data_source
    scene = session.scene()
    if not scene.nodes:
        console.print("[yellow]No functions to show[/yellow]")
    else:
        console.print(scene_tree(scene, source.label))
    console.print(pagination_table(source))
