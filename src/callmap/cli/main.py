"""CLI entry point for callmap."""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from loguru import logger

from .. import __version__
from ..config.defaults import CONFIG_FILENAME
from ..config.settings import ViewerConfig
from ..core.exceptions import ConfigError
from .commands.layout import layout
from .commands.serve import serve
from .commands.tree import tree
from .output import print_error

app = typer.Typer(
    name="callmap",
    help="🗺️  Explore function call relationships as a navigable tree",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.command("tree")(tree)
app.command("layout")(layout)
app.command("serve")(serve)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"callmap {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help=f"YAML config file (default: ./{CONFIG_FILENAME})",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Global options."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    logger.enable("callmap")

    try:
        config = ViewerConfig.load(config_path or Path.cwd() / CONFIG_FILENAME)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)

    ctx.obj = {"config": config, "verbose": verbose}


if __name__ == "__main__":
    app()
