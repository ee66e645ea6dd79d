"""Tree layout for the visible part of a call graph.

Only nodes whose ancestor chain is fully expanded are laid out, so the cost
is bounded by what is on screen rather than by dataset size.

Layout shape:
    - Columns: a root sits at ``origin_x``; a child starts ``gutter`` pixels
      right of its parent's right edge. Widths grow with label length.
    - Rows: every node owns a vertical slot. A collapsed node (or a leaf)
      takes one ``row_height``; an expanded node's slot is the sum of its
      children's slots. The node is centered in its slot and children fill
      the slot top-down, so slots of siblings never overlap.

Two passes are needed because a parent's slot depends on how deeply its
descendants are expanded: pass 1 walks the visible tree bottom-up to size
slots, pass 2 assigns coordinates top-down.

Cycles: the active ancestor path is tracked during pass 1. A child already
on the path becomes a terminal "recursive" node instead of being descended.
"""

from __future__ import annotations

from collections.abc import Container
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ..config.settings import LayoutConfig
from .exceptions import LayoutError
from .graph_builder import CallGraph, GraphNode


def display_name(name: str, file_path: str = "") -> str:
    """Short label for a node.

    The last dot-separated segment of the qualified name. ``*.main``
    functions are disambiguated with the directory holding their file,
    since most programs have several.

    Examples:
        >>> display_name("pkg.Run")
        'Run'
        >>> display_name("main.main", "services/api/main.go")
        'main (api)'
    """
    func_name = name.split(".")[-1]
    if not (name.endswith(".main") and file_path):
        return func_name

    parts = file_path.replace("\\", "/").split("/")
    ctx = parts[-2] if len(parts) >= 2 else ""
    if not ctx or ctx == "cmd":
        ctx = next(
            (p for p in parts if p and not p.endswith(".go") and p != "cmd"), "root"
        )
    return f"{func_name} ({ctx})"


def node_width(label: str, config: LayoutConfig) -> float:
    """Rendered width of a node box, monotonic in label length."""
    return max(config.min_width, config.base_width + config.char_width * len(label))


@dataclass(frozen=True)
class Connector:
    """Cubic curve from a parent's right edge to a child's left edge."""

    start: tuple[float, float]
    control1: tuple[float, float]
    control2: tuple[float, float]
    end: tuple[float, float]

    @classmethod
    def between(
        cls, start: tuple[float, float], end: tuple[float, float]
    ) -> Connector:
        # Control points sit halfway across the gap, level with each endpoint
        dx = (end[0] - start[0]) / 2
        return cls(
            start=start,
            control1=(start[0] + dx, start[1]),
            control2=(end[0] - dx, end[1]),
            end=end,
        )

    def svg_path(self) -> str:
        (sx, sy), (c1x, c1y), (c2x, c2y), (ex, ey) = (
            self.start,
            self.control1,
            self.control2,
            self.end,
        )
        return f"M {sx:g} {sy:g} C {c1x:g} {c1y:g}, {c2x:g} {c2y:g}, {ex:g} {ey:g}"


@dataclass
class LaidOutNode:
    """One visible occurrence of a graph node."""

    slot_id: str  # Position path, e.g. "0.2.1"; unique per occurrence
    key: str
    index: int
    name: str
    label: str
    file_path: str
    line: int | None
    level: int
    x: float
    y: float
    width: float
    height: float
    call_count: int
    expandable: bool
    expanded: bool
    recursive: bool = False
    synthetic: bool = False
    parent_slot_id: str | None = None
    connector: Connector | None = None

    @property
    def right(self) -> float:
        return self.x + self.width

    def to_dict(self) -> dict[str, Any]:
        return {
            "slotId": self.slot_id,
            "key": self.key,
            "name": self.name,
            "label": self.label,
            "filePath": self.file_path,
            "line": self.line,
            "level": self.level,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "calls": self.call_count,
            "expandable": self.expandable,
            "expanded": self.expanded,
            "recursive": self.recursive,
            "synthetic": self.synthetic,
            "parent": self.parent_slot_id,
            "connector": self.connector.svg_path() if self.connector else None,
        }


@dataclass
class Scene:
    """Positioned nodes in pre-order, plus overall bounds."""

    nodes: list[LaidOutNode] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0

    def __len__(self) -> int:
        return len(self.nodes)

    def find(self, key: str) -> list[LaidOutNode]:
        """All visible occurrences of ``key``."""
        return [n for n in self.nodes if n.key == key]

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "nodes": [n.to_dict() for n in self.nodes],
        }


@dataclass
class _Slot:
    """Pass-1 result: a visible occurrence and its slot height."""

    node: GraphNode
    slot_id: str
    level: int
    expanded: bool
    recursive: bool
    height: float
    children: list[_Slot] = field(default_factory=list)


def _measure(
    graph: CallGraph,
    root: GraphNode,
    slot_id: str,
    expanded: Container[str],
    row_height: float,
) -> _Slot:
    """Pass 1: size the slot of ``root`` bottom-up over expanded branches.

    Iterative post-order walk; each stack frame is a slot plus the ordinal
    of its next child, so expansion depth is not bounded by the
    interpreter's recursion limit.
    """
    top = _Slot(
        node=root,
        slot_id=slot_id,
        level=0,
        expanded=root.has_children and root.key in expanded,
        recursive=False,
        height=row_height,
    )
    path: set[str] = set()
    stack: list[tuple[_Slot, int]] = []
    if top.expanded:
        path.add(root.key)
        stack.append((top, 0))

    while stack:
        slot, ordinal = stack[-1]
        children = slot.node.children
        if ordinal == len(children):
            stack.pop()
            path.discard(slot.node.key)
            slot.height = max(row_height, sum(c.height for c in slot.children))
            continue
        stack[-1] = (slot, ordinal + 1)

        child = graph.node(children[ordinal])
        recursive = child.key in path
        if recursive:
            logger.debug(f"Recursive reference {slot.node.key} -> {child.key}")
        child_slot = _Slot(
            node=child,
            slot_id=f"{slot.slot_id}.{ordinal}",
            level=slot.level + 1,
            expanded=not recursive and child.has_children and child.key in expanded,
            recursive=recursive,
            height=row_height,
        )
        slot.children.append(child_slot)
        if child_slot.expanded:
            path.add(child.key)
            stack.append((child_slot, 0))

    return top


def _place(
    root: _Slot,
    top: float,
    config: LayoutConfig,
    out: list[LaidOutNode],
) -> None:
    """Pass 2: assign coordinates top-down, emitting nodes in pre-order."""
    stack: list[tuple[_Slot, float, LaidOutNode | None]] = [(root, top, None)]
    while stack:
        slot, top, parent = stack.pop()
        node = slot.node
        label = display_name(node.name, node.file_path)
        width = node_width(label, config)
        x = config.origin_x if parent is None else parent.right + config.gutter
        y = top + slot.height / 2

        laid = LaidOutNode(
            slot_id=slot.slot_id,
            key=node.key,
            index=node.index,
            name=node.name,
            label=label,
            file_path=node.file_path,
            line=node.line,
            level=slot.level,
            x=x,
            y=y,
            width=width,
            height=config.node_height,
            call_count=node.call_count,
            expandable=node.has_children and not slot.recursive,
            expanded=slot.expanded,
            recursive=slot.recursive,
            synthetic=node.synthetic,
            parent_slot_id=parent.slot_id if parent else None,
            connector=(
                Connector.between((parent.right, parent.y), (x, y)) if parent else None
            ),
        )
        out.append(laid)

        # Children fill the slot top-down; pushed in reverse to pop in order
        child_tops = []
        child_top = top
        for child in slot.children:
            child_tops.append((child, child_top, laid))
            child_top += child.height
        stack.extend(reversed(child_tops))


def calculate_tree_layout(
    graph: CallGraph,
    expanded: Container[str],
    config: LayoutConfig | None = None,
) -> Scene:
    """Lay out every visible node of ``graph``.

    Args:
        graph: Call graph from ``build_call_graph``
        expanded: Keys of expanded nodes (an ExpansionState or any set)
        config: Layout geometry (defaults when omitted)

    Returns:
        Scene with nodes in depth-first pre-order

    Raises:
        LayoutError: If a root index is not in the graph's arena

    Time Complexity: O(v) where v = number of visible nodes
    """
    config = config or LayoutConfig()
    scene = Scene()
    if not graph.roots:
        logger.debug("No roots to layout")
        return scene

    top = config.origin_y - config.row_height / 2
    for ordinal, root_idx in enumerate(graph.roots):
        if not 0 <= root_idx < len(graph.nodes):
            raise LayoutError(
                f"Root index {root_idx} outside graph of {len(graph.nodes)} nodes"
            )
        slot = _measure(
            graph, graph.node(root_idx), str(ordinal), expanded, config.row_height
        )
        _place(slot, top, config, scene.nodes)
        top += slot.height

    scene.width = max(n.right for n in scene.nodes)
    scene.height = max(n.y + n.height / 2 for n in scene.nodes)

    logger.debug(
        f"Tree layout: {len(scene.nodes)} visible nodes, "
        f"bounds={scene.width:.0f}x{scene.height:.0f}"
    )
    return scene
