"""Graph construction from flat function records.

Turns the record list of the current dataset (an upload, a server page or a
search slice) into a forest of call trees. Nodes live once in an arena
indexed by composite key; parent/child relations are index lists, so a
function called from several places is one node referenced by several
parents rather than a copy per caller.

Design Decision: arena + index lists instead of nested node objects

Rationale: Sharing a callee between parents is explicit, and cycles can be
represented without infinite structures. Cycle handling itself happens at
layout time, where the active ancestor path is known.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger

from .models import CallRef, FunctionRecord


@dataclass
class GraphNode:
    """A record (or synthesized callee) placed in the arena."""

    index: int
    key: str
    name: str
    file_path: str
    line: int | None
    children: list[int] = field(default_factory=list)
    synthetic: bool = False
    record: FunctionRecord | None = None

    @property
    def call_count(self) -> int:
        """Number of outgoing call entries, duplicates included."""
        return len(self.children)

    @property
    def has_children(self) -> bool:
        return bool(self.children)


@dataclass
class CallGraph:
    """Arena of GraphNodes plus the ordered root set."""

    nodes: list[GraphNode] = field(default_factory=list)
    index: dict[str, int] = field(default_factory=dict)
    roots: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, index: int) -> GraphNode:
        return self.nodes[index]

    def get(self, key: str) -> GraphNode | None:
        idx = self.index.get(key)
        return self.nodes[idx] if idx is not None else None

    def children_of(self, index: int) -> list[GraphNode]:
        return [self.nodes[i] for i in self.nodes[index].children]

    @property
    def root_nodes(self) -> list[GraphNode]:
        return [self.nodes[i] for i in self.roots]

    @property
    def synthetic_count(self) -> int:
        return sum(1 for n in self.nodes if n.synthetic)


def called_keys(records: Iterable[FunctionRecord]) -> set[str]:
    """Composite keys some *other* record in ``records`` calls.

    A self-call does not count, so a recursive function nobody else calls
    is still a root.
    """
    return {
        call.key
        for record in records
        for call in record.calls
        if call.key != record.key
    }


def find_roots(records: list[FunctionRecord]) -> list[FunctionRecord]:
    """Return records no other record calls, in original order.

    Root-ness is relative to ``records``: the same function can be a root
    of one page and an inner node of the full dataset. A record listed
    more than once is reported once.

    Args:
        records: Records of the current dataset

    Returns:
        Root records in the order they appear in ``records``
    """
    called = called_keys(records)
    seen: set[str] = set()
    roots = []
    for record in records:
        key = record.key
        if key in called or key in seen:
            continue
        seen.add(key)
        roots.append(record)
    return roots


def _add_node(graph: CallGraph, node: GraphNode) -> int:
    graph.nodes.append(node)
    graph.index[node.key] = node.index
    return node.index


def _synthesize(graph: CallGraph, call: CallRef) -> int:
    """Create a leaf for a callee missing from the dataset."""
    return _add_node(
        graph,
        GraphNode(
            index=len(graph.nodes),
            key=call.key,
            name=call.name,
            file_path=call.file_path,
            line=call.line,
            synthetic=True,
        ),
    )


def build_call_graph(records: list[FunctionRecord]) -> CallGraph:
    """Build the call forest for a dataset.

    Steps:
        1. Index every record by composite key (first occurrence wins).
        2. Resolve every CallRef against the index, synthesizing a leaf for
           callees absent from the dataset; children keep CallRef order and
           duplicates (repeated calls are kept as repeated children).
        3. Roots are records no other record calls, in original order.

    Self-calls and longer cycles are stored as-is; a self-call alone does
    not stop a record from being a root.

    Args:
        records: Records of the current dataset

    Returns:
        CallGraph with resolved children and ordered roots

    Example:
        >>> graph = build_call_graph(records)
        >>> [n.name for n in graph.root_nodes]
        ['main.main']
    """
    graph = CallGraph()
    if not records:
        logger.debug("No records to build graph from")
        return graph

    owners: list[tuple[int, FunctionRecord]] = []
    for record in records:
        key = record.key
        if key in graph.index:
            logger.debug(f"Ignoring duplicate record {key}")
            continue
        idx = _add_node(
            graph,
            GraphNode(
                index=len(graph.nodes),
                key=key,
                name=record.name,
                file_path=record.file_path,
                line=record.line,
                record=record,
            ),
        )
        owners.append((idx, record))

    for idx, record in owners:
        children = graph.nodes[idx].children
        for call in record.calls:
            child_idx = graph.index.get(call.key)
            if child_idx is None:
                child_idx = _synthesize(graph, call)
            children.append(child_idx)

    graph.roots = [graph.index[r.key] for r in find_roots(records)]

    logger.debug(
        f"Built call graph: {len(owners)} records, "
        f"{graph.synthetic_count} synthetic leaves, {len(graph.roots)} roots"
    )
    return graph
