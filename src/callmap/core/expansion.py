"""Expansion state: which nodes are currently open."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from loguru import logger


class ExpansionState:
    """Set of expanded node keys.

    Nothing is expanded by default. Expansion is keyed by composite key, so
    a function shared by several callers opens everywhere it appears.
    ``collapse_all`` also fires ``on_collapse_all`` (wired to the viewport
    reset) so collapsing returns to a stable overview.
    """

    def __init__(self, on_collapse_all: Callable[[], None] | None = None) -> None:
        self._expanded: set[str] = set()
        self.on_collapse_all = on_collapse_all

    def __contains__(self, key: str) -> bool:
        return key in self._expanded

    def __len__(self) -> int:
        return len(self._expanded)

    def is_expanded(self, key: str) -> bool:
        return key in self._expanded

    def toggle(self, key: str) -> bool:
        """Flip membership of ``key``.

        Returns:
            True if the node is expanded after the toggle
        """
        if key in self._expanded:
            self._expanded.discard(key)
            logger.debug(f"Collapsed {key}")
            return False
        self._expanded.add(key)
        logger.debug(f"Expanded {key}")
        return True

    def expand(self, keys: Iterable[str]) -> None:
        self._expanded.update(keys)

    def collapse_all(self) -> None:
        self._expanded.clear()
        if self.on_collapse_all is not None:
            self.on_collapse_all()

    def reset(self) -> None:
        """Empty the set without touching the viewport (dataset replacement)."""
        self._expanded.clear()

    def snapshot(self) -> frozenset[str]:
        return frozenset(self._expanded)
