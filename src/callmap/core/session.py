"""MindMapSession: the data source, graph, expansion, layout and viewport together.

Data flows one way:

    DataSourceCoordinator -> records -> build_call_graph -> CallGraph
        -> (ExpansionState) -> calculate_tree_layout -> Scene -> Viewport

and commands flow back into the component that owns the state they touch.
"""

from __future__ import annotations

from loguru import logger

from ..config.settings import ViewerConfig
from .client import RelationsSource
from .commands import (
    CollapseAll,
    Command,
    GoToPage,
    Pan,
    PointerDown,
    PointerMove,
    PointerUp,
    ResetView,
    SetPageSize,
    SetQuery,
    Toggle,
    UseServer,
    Wheel,
    Zoom,
)
from .data_source import DataSourceCoordinator
from .expansion import ExpansionState
from .graph_builder import CallGraph, build_call_graph
from .layout_engine import Scene, calculate_tree_layout
from .models import FunctionRecord
from .viewport import ViewportController


class MindMapSession:
    """One interactive view over a call-relationship dataset.

    The graph is rebuilt lazily after the dataset changes and the scene after
    the dataset or the expansion set changes.
    """

    def __init__(
        self,
        config: ViewerConfig | None = None,
        client: RelationsSource | None = None,
    ) -> None:
        self.config = config or ViewerConfig()
        self.viewport = ViewportController(self.config.viewport)
        self.expansion = ExpansionState(on_collapse_all=self.viewport.reset)
        self._graph: CallGraph | None = None
        self._scene: Scene | None = None
        self._scene_expansion: frozenset[str] | None = None
        self.data_source = DataSourceCoordinator(
            self.config.data_source,
            client=client,
            on_dataset_change=self._on_dataset_change,
        )

    def _on_dataset_change(self, records: list[FunctionRecord]) -> None:
        self.expansion.reset()
        self._graph = None
        self._scene = None
        logger.debug(f"Dataset replaced ({len(records)} records)")

    @property
    def graph(self) -> CallGraph:
        if self._graph is None:
            self._graph = build_call_graph(self.data_source.records)
        return self._graph

    def scene(self) -> Scene:
        """Current positioned scene, recomputed only when inputs changed."""
        snapshot = self.expansion.snapshot()
        if self._scene is None or snapshot != self._scene_expansion:
            self._scene = calculate_tree_layout(
                self.graph, snapshot, self.config.layout
            )
            self._scene_expansion = snapshot
        return self._scene

    async def dispatch(self, command: Command) -> None:
        """Apply one command to the component that owns its state."""
        vp = self.viewport
        match command:
            case Pan(dx=dx, dy=dy):
                vp.pan(dx, dy)
            case Zoom(factor=factor, anchor=anchor):
                vp.zoom_by(factor, anchor)
            case Wheel(delta_y=delta_y, x=x, y=y):
                vp.wheel(delta_y, x, y)
            case PointerDown(x=x, y=y, over_node=over_node):
                vp.pointer_down(x, y, over_node)
            case PointerMove(x=x, y=y):
                vp.pointer_move(x, y)
            case PointerUp():
                vp.pointer_up()
            case ResetView():
                vp.reset()
            case Toggle(key=key):
                self.expansion.toggle(key)
            case CollapseAll():
                self.expansion.collapse_all()
            case SetQuery(query=query, immediate=immediate):
                await self.data_source.set_query(query, immediate=immediate)
            case GoToPage(page=page):
                await self.data_source.go_to_page(page)
            case SetPageSize(page_size=page_size):
                await self.data_source.set_page_size(page_size)
            case UseServer(enabled=enabled):
                await self.data_source.set_use_server(enabled)
            case _:
                raise TypeError(f"Unknown command: {command!r}")

    async def run(self, commands: list[Command]) -> Scene:
        for command in commands:
            await self.dispatch(command)
        return self.scene()
