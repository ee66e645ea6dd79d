"""Root pagination and search over an in-memory dataset.

Shared by the local (uploaded dataset) data source and the dataset server,
so both produce identical pages for the same records.

A page is a slice of the root set plus the reachable closure of just those
roots, so the graph builder and layout only ever see page-sized input.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .graph_builder import find_roots
from .models import FunctionRecord


@dataclass
class PageResult:
    """One page of roots and the records needed to render them."""

    data: list[FunctionRecord] = field(default_factory=list)
    roots: list[FunctionRecord] = field(default_factory=list)
    total_roots: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def page_count(self) -> int:
        return page_count(self.total_roots, self.page_size)


def page_count(total: int, page_size: int) -> int:
    """Number of pages; an empty result still has one page."""
    if page_size < 1:
        return 1
    return max(1, math.ceil(total / page_size))


def matches_query(record: FunctionRecord, query: str) -> bool:
    """Case-insensitive substring match on name, file path or callee names."""
    needle = query.strip().lower()
    if not needle:
        return True
    if needle in record.name.lower() or needle in record.file_path.lower():
        return True
    return any(needle in call.name.lower() for call in record.calls)


def filter_records(records: list[FunctionRecord], query: str) -> list[FunctionRecord]:
    if not query.strip():
        return list(records)
    return [r for r in records if matches_query(r, query)]


def slice_roots(
    roots: list[FunctionRecord], page: int, page_size: int
) -> list[FunctionRecord]:
    """Roots in ``[(page-1)*page_size, page*page_size)``; empty past the end."""
    start = max(0, (page - 1) * page_size)
    return roots[start : start + page_size]


def collect_closure(
    roots: list[FunctionRecord], records: list[FunctionRecord]
) -> list[FunctionRecord]:
    """Records reachable from ``roots`` by following calls.

    Depth-first and deduplicated by composite key; callees missing from
    ``records`` are skipped (the graph builder turns them into leaves).
    The result keeps the order of ``records``.

    Args:
        roots: Starting records
        records: Dataset to resolve callees against

    Returns:
        The closure, ordered as in ``records``
    """
    index: dict[str, FunctionRecord] = {}
    for record in records:
        index.setdefault(record.key, record)

    reached: set[str] = set()
    stack = [r.key for r in reversed(roots)]
    while stack:
        key = stack.pop()
        if key in reached:
            continue
        record = index.get(key)
        if record is None:
            continue
        reached.add(key)
        stack.extend(call.key for call in reversed(record.calls))

    out: list[FunctionRecord] = []
    emitted: set[str] = set()
    for record in records:
        if record.key in reached and record.key not in emitted:
            emitted.add(record.key)
            out.append(record)
    return out


def paginate(
    records: list[FunctionRecord],
    page: int,
    page_size: int,
    query: str = "",
) -> PageResult:
    """Compute one page of the (optionally filtered) dataset.

    Roots are computed over the filtered records; the closure is resolved
    against the full dataset so matches keep their complete call trees.

    Args:
        records: Full dataset
        page: 1-based page number (values below 1 are treated as 1)
        page_size: Roots per page
        query: Optional search query

    Returns:
        PageResult for the requested page
    """
    page = max(1, page)
    filtered = filter_records(records, query)
    roots = find_roots(filtered)
    selected = slice_roots(roots, page, page_size)
    return PageResult(
        data=collect_closure(selected, records),
        roots=selected,
        total_roots=len(roots),
        page=page,
        page_size=page_size,
    )
