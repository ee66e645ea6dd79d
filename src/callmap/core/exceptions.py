"""Typed exception hierarchy for callmap.

Hierarchy
---------
CallMapError (base)
├── DatasetError       – malformed or schema-invalid function datasets
├── FetchError         – paging/search/reload endpoint failures
├── ConfigError        – configuration / validation errors
└── LayoutError        – layout requested against an inconsistent graph

Resolution gaps (a call to a function missing from the dataset) and call
cycles are not errors: the graph builder degrades them to synthetic leaves
and the layout engine to recursive-reference markers.
"""

from typing import Any


class CallMapError(Exception):
    """Base exception for callmap."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


# ── Input layer ─────────────────────────────────────────────────────────


class DatasetError(CallMapError):
    """Uploaded or served dataset could not be parsed or validated."""

    pass


# ── Network layer ───────────────────────────────────────────────────────


class FetchError(CallMapError):
    """Paged/search endpoint returned a non-success status or failed in transport."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.status_code = status_code


# ── Configuration layer ─────────────────────────────────────────────────


class ConfigError(CallMapError):
    """Configuration / validation errors."""

    pass


# ── Layout layer ────────────────────────────────────────────────────────


class LayoutError(CallMapError):
    """Layout requested for a node index the graph does not contain."""

    pass
