"""Pan/zoom viewport for the laid-out scene.

The scene is drawn under the transform ``screen = world * zoom + pan``.

State machine::

    Idle --pointer_down(background)--> Panning
    Panning --pointer_up / cancel--> Idle

While panning every pointer move shifts the pan by the delta since the
previous move. Moves are expected from a global listener, so a drag that
leaves the diagram surface keeps going until the button is released.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

from ..config.settings import ViewportConfig


class PointerState(StrEnum):
    IDLE = "idle"
    PANNING = "panning"


@dataclass
class ViewportState:
    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = 1.0


class ViewportController:
    """Owns the viewport state; mutated only through the methods below."""

    def __init__(self, config: ViewportConfig | None = None) -> None:
        self.config = config or ViewportConfig()
        self.state = self._default_state()
        self.pointer_state = PointerState.IDLE
        self._last_pointer: tuple[float, float] | None = None

    def _default_state(self) -> ViewportState:
        return ViewportState(
            pan_x=self.config.default_pan_x,
            pan_y=self.config.default_pan_y,
            zoom=self.clamp_zoom(self.config.default_zoom),
        )

    @property
    def is_panning(self) -> bool:
        return self.pointer_state is PointerState.PANNING

    # ── Pan ─────────────────────────────────────────────────────────────

    def pan(self, dx: float, dy: float) -> None:
        self.state.pan_x += dx
        self.state.pan_y += dy

    def pointer_down(self, x: float, y: float, over_node: bool = False) -> bool:
        """Start a drag if the press landed on the background.

        Returns:
            True if a panning session started
        """
        if over_node:
            return False
        self.pointer_state = PointerState.PANNING
        self._last_pointer = (x, y)
        return True

    def pointer_move(self, x: float, y: float) -> None:
        if not self.is_panning or self._last_pointer is None:
            return
        last_x, last_y = self._last_pointer
        self.pan(x - last_x, y - last_y)
        self._last_pointer = (x, y)

    def pointer_up(self) -> None:
        self._end_drag()

    def pointer_leave(self) -> None:
        """Pointer left the diagram surface."""
        if not self.config.global_pointer_tracking:
            self._end_drag()

    def cancel(self) -> None:
        """Force Idle, e.g. when the window loses focus mid-drag."""
        if self.is_panning:
            logger.debug("Viewport drag cancelled")
        self._end_drag()

    def _end_drag(self) -> None:
        self.pointer_state = PointerState.IDLE
        self._last_pointer = None

    # ── Zoom ────────────────────────────────────────────────────────────

    def clamp_zoom(self, zoom: float) -> float:
        return max(self.config.zoom_min, min(self.config.zoom_max, zoom))

    def zoom_by(
        self, factor: float, anchor: tuple[float, float] | None = None
    ) -> float:
        """Multiply zoom by ``factor``, keeping ``anchor`` fixed on screen.

        The world point under the anchor before the zoom stays under it
        afterwards: ``pan' = anchor - (anchor - pan) / zoom * zoom'``.
        Without an anchor only the zoom changes.

        Returns:
            The new (clamped) zoom
        """
        old_zoom = self.state.zoom
        new_zoom = self.clamp_zoom(old_zoom * factor)
        if new_zoom == old_zoom:
            return old_zoom

        if anchor is not None:
            ax, ay = anchor
            self.state.pan_x = ax - (ax - self.state.pan_x) / old_zoom * new_zoom
            self.state.pan_y = ay - (ay - self.state.pan_y) / old_zoom * new_zoom
        self.state.zoom = new_zoom
        return new_zoom

    def wheel(self, delta_y: float, x: float, y: float) -> float:
        """Wheel zoom anchored at the pointer; scrolling down zooms out."""
        if delta_y == 0:
            return self.state.zoom
        factor = self.config.wheel_zoom_out if delta_y > 0 else self.config.wheel_zoom_in
        return self.zoom_by(factor, anchor=(x, y))

    def zoom_in(self, anchor: tuple[float, float] | None = None) -> float:
        return self.zoom_by(self.config.button_zoom_in, anchor)

    def zoom_out(self, anchor: tuple[float, float] | None = None) -> float:
        return self.zoom_by(self.config.button_zoom_out, anchor)

    # ── Reset & transforms ──────────────────────────────────────────────

    def reset(self) -> None:
        self.state = self._default_state()
        self._end_drag()

    def screen_to_world(self, x: float, y: float) -> tuple[float, float]:
        s = self.state
        return ((x - s.pan_x) / s.zoom, (y - s.pan_y) / s.zoom)

    def world_to_screen(self, x: float, y: float) -> tuple[float, float]:
        s = self.state
        return (x * s.zoom + s.pan_x, y * s.zoom + s.pan_y)

    def css_transform(self) -> str:
        s = self.state
        return f"translate({s.pan_x:g}px, {s.pan_y:g}px) scale({s.zoom:g})"
