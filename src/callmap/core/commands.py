"""Input commands applied to a MindMapSession.

Pointer, wheel, keyboard and button handlers translate device events into
these commands, which keeps the state machines testable with plain
command sequences.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Pan:
    dx: float
    dy: float


@dataclass(frozen=True)
class Zoom:
    factor: float
    anchor: tuple[float, float] | None = None


@dataclass(frozen=True)
class Wheel:
    delta_y: float
    x: float
    y: float


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float
    over_node: bool = False


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerUp:
    pass


@dataclass(frozen=True)
class ResetView:
    pass


@dataclass(frozen=True)
class Toggle:
    key: str


@dataclass(frozen=True)
class CollapseAll:
    pass


@dataclass(frozen=True)
class SetQuery:
    query: str
    immediate: bool = False


@dataclass(frozen=True)
class GoToPage:
    page: int


@dataclass(frozen=True)
class SetPageSize:
    page_size: int


@dataclass(frozen=True)
class UseServer:
    enabled: bool


Command = (
    Pan
    | Zoom
    | Wheel
    | PointerDown
    | PointerMove
    | PointerUp
    | ResetView
    | Toggle
    | CollapseAll
    | SetQuery
    | GoToPage
    | SetPageSize
    | UseServer
)
