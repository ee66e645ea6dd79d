"""Rich console helpers for CLI output."""

from __future__ import annotations

from typing import Any

import orjson
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from ..core.data_source import DataSourceCoordinator
from ..core.layout_engine import LaidOutNode, Scene

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    err_console.print(f"[red]✗ {escape(message)}[/red]")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_json(data: Any) -> None:
    """Write ``data`` as indented JSON to stdout without rich markup."""
    console.out(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())


def _node_label(node: LaidOutNode) -> str:
    parts = [f"[bold]{escape(node.label)}[/bold]"]
    if node.line is not None and node.file_path:
        parts.append(f"[dim]{escape(node.file_path)}:{node.line}[/dim]")
    elif node.file_path:
        parts.append(f"[dim]{escape(node.file_path)}[/dim]")
    if node.recursive:
        parts.append("[yellow]↻ recursive[/yellow]")
    elif node.call_count:
        plural = "s" if node.call_count != 1 else ""
        marker = "▾" if node.expanded else "▸"
        parts.append(f"[cyan]{marker} {node.call_count} call{plural}[/cyan]")
    if node.synthetic:
        parts.append("[magenta](not in dataset)[/magenta]")
    return " ".join(parts)


def scene_tree(scene: Scene, title: str) -> Tree:
    """Build a rich Tree mirroring the visible nodes of ``scene``."""
    tree = Tree(f"[bold blue]{title}[/bold blue]")
    branches: dict[str, Tree] = {}
    for node in scene.nodes:
        parent = branches.get(node.parent_slot_id) if node.parent_slot_id else tree
        branches[node.slot_id] = (parent or tree).add(_node_label(node))
    return tree


def pagination_table(source: DataSourceCoordinator) -> Table:
    state = source.pagination
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_row("[dim]Mode[/dim]", state.mode.value)
    table.add_row("[dim]Page[/dim]", f"{state.page} / {state.page_count}")
    nav = []
    if state.has_previous:
        nav.append(f"--page {state.page - 1}")
    if state.has_next:
        nav.append(f"--page {state.page + 1}")
    if nav:
        table.add_row("[dim]Navigate[/dim]", " | ".join(nav))
    table.add_row("[dim]Page size[/dim]", str(state.page_size))
    table.add_row("[dim]Roots[/dim]", str(state.total_roots))
    if state.query:
        table.add_row("[dim]Query[/dim]", state.query)
    if source.download_url:
        table.add_row("[dim]Download[/dim]", source.download_url)
    return table
