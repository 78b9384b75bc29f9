# src/skillgraph/viz/camera.py
from dataclasses import dataclass
from typing import Tuple

ZOOM_STEP = 1.2
MIN_ZOOM = 0.5
MAX_ZOOM = 3.0


@dataclass
class Camera:
    """Zoom about the canvas centre, then pan. screen = (world - c) * zoom + c + pan."""
    width: float = 800
    height: float = 600
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0

    def zoom_in(self) -> float:
        self.zoom = min(self.zoom * ZOOM_STEP, MAX_ZOOM)
        return self.zoom

    def zoom_out(self) -> float:
        self.zoom = max(self.zoom / ZOOM_STEP, MIN_ZOOM)
        return self.zoom

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy

    def reset(self) -> None:
        self.zoom, self.pan_x, self.pan_y = 1.0, 0.0, 0.0

    def transform(self) -> Tuple[float, float, float]:
        """(scale, tx, ty) such that screen = world * scale + (tx, ty)."""
        cx, cy = self.width / 2, self.height / 2
        return self.zoom, cx + self.pan_x - cx * self.zoom, cy + self.pan_y - cy * self.zoom

    def screen_to_world(self, x: float, y: float) -> Tuple[float, float]:
        cx, cy = self.width / 2, self.height / 2
        return (x - self.pan_x - cx) / self.zoom + cx, (y - self.pan_y - cy) / self.zoom + cy

    def world_to_screen(self, x: float, y: float) -> Tuple[float, float]:
        s, tx, ty = self.transform()
        return x * s + tx, y * s + ty
