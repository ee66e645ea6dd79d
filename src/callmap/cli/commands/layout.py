"""Layout command: emit the positioned scene as JSON."""

from __future__ import annotations

import asyncio
from pathlib import Path

import orjson
import typer

from ...core.exceptions import CallMapError
from ..output import print_error, print_json, print_success
from ._session import open_session


def layout(
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
        [], "--expand", "-e", help="Expand a node by key; repeatable"
    ),
    expand_all: bool = typer.Option(False, "--expand-all", help="Expand every node"),
    query: str = typer.Option("", "--query", "-q", help="Search query"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: int | None = typer.Option(
        None, "--page-size", help="Roots per page: 5, 10, 15, 20 or 50"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write JSON here instead of stdout"
    ),
) -> None:
    """📐 Compute node positions and connector paths for a dataset page."""
    config = ctx.obj["config"]
    try:
        session = asyncio.run(
            open_session(
                config, dataset, server, query, page, page_size, expand, expand_all
            )
        )
    except CallMapError as e:
        print_error(str(e))
        raise typer.Exit(1)

    state = session.data_source.pagination
    document = {
        "label": session.data_source.label,
        "pagination": {
            "mode": state.mode.value,
            "page": state.page,
            "pageSize": state.page_size,
            "totalRoots": state.total_roots,
            "pageCount": state.page_count,
            "hasPrevious": state.has_previous,
            "hasNext": state.has_next,
            "query": state.query,
        },
        "viewport": session.viewport.css_transform(),
        "scene": session.scene().to_dict(),
    }

    if output is None:
        print_json(document)
        return

    output.write_bytes(orjson.dumps(document, option=orjson.OPT_INDENT_2))
    print_success(f"Wrote {len(document['scene']['nodes'])} nodes to {output}")
