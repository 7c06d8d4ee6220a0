"""
Viewport transform between screen pixels and canvas coordinates.

    canvas = (screen - pan_offset) / zoom
    screen = canvas * zoom + pan_offset

zoom_by() is the only way the zoom factor changes; it keeps the canvas point
under the pivot fixed on screen.
"""

from typing import Tuple

from flowcanvas.models import Point

MIN_ZOOM = 0.5
MAX_ZOOM = 2.0

# Toolbar buttons
ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9

# Ctrl + wheel (and trackpad pinch, which browsers report as ctrl + wheel)
WHEEL_ZOOM_IN_FACTOR = 1.05
WHEEL_ZOOM_OUT_FACTOR = 0.95


def clamp_zoom(zoom: float) -> float:
    return min(max(zoom, MIN_ZOOM), MAX_ZOOM)


class Viewport:
    """Zoom factor and pan offset of one editor instance."""

    def __init__(self, zoom: float = 1.0, pan_offset: Point = (0.0, 0.0)):
        self._zoom = clamp_zoom(zoom)
        self._pan = (float(pan_offset[0]), float(pan_offset[1]))

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def pan_offset(self) -> Point:
        return self._pan

    def to_canvas(self, screen_point: Point) -> Point:
        sx, sy = screen_point
        px, py = self._pan
        return ((sx - px) / self._zoom, (sy - py) / self._zoom)

    def to_screen(self, canvas_point: Point) -> Point:
        cx, cy = canvas_point
        px, py = self._pan
        return (cx * self._zoom + px, cy * self._zoom + py)

    def zoom_by(self, factor: float, pivot: Point) -> float:
        """Scale the zoom by factor around a screen pivot. Returns the new zoom."""
        anchor = self.to_canvas(pivot)
        new_zoom = clamp_zoom(self._zoom * factor)
        self._pan = (pivot[0] - anchor[0] * new_zoom, pivot[1] - anchor[1] * new_zoom)
        self._zoom = new_zoom
        return new_zoom

    def zoom_in(self, center: Point) -> float:
        return self.zoom_by(ZOOM_IN_FACTOR, center)

    def zoom_out(self, center: Point) -> float:
        return self.zoom_by(ZOOM_OUT_FACTOR, center)

    def pan_by(self, delta: Point) -> None:
        self._pan = (self._pan[0] + delta[0], self._pan[1] + delta[1])

    def pan_to(self, offset: Point) -> None:
        self._pan = (float(offset[0]), float(offset[1]))

    def reset(self) -> None:
        """Fit to view: zoom 1, no pan."""
        self._zoom = 1.0
        self._pan = (0.0, 0.0)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self._zoom, self._pan[0], self._pan[1])

    def __repr__(self) -> str:
        return f"Viewport(zoom={self._zoom:.3f}, pan_offset=({self._pan[0]:.1f}, {self._pan[1]:.1f}))"
