# src/skillgraph/viz/canvas.py
from __future__ import annotations

import io
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from skillgraph.viz.render import Canvas, Color, RGBA

GRADIENT_STEPS = 8


def _rgba(color: Color) -> RGBA:
    if isinstance(color, tuple):
        return color if len(color) == 4 else (*color, 255)
    return ImageColor.getcolor(color, "RGBA")

def _mix(a: RGBA, b: RGBA, t: float) -> RGBA:
    return tuple(int(round(x + (y - x) * t)) for x, y in zip(a, b))


class PillowCanvas(Canvas):
    """Raster canvas over a Pillow RGB image; RGBA draw colours are alpha-blended."""

    def __init__(self, width: int = 800, height: int = 600):
        self.width, self.height = width, height
        self.image = Image.new("RGB", (width, height))
        self._draw = ImageDraw.Draw(self.image, "RGBA")
        self._transform: Tuple[float, float, float] = (1.0, 0.0, 0.0)
        self._stack: List[Tuple[float, float, float]] = []
        self._fonts: Dict[int, ImageFont.ImageFont] = {}

    # ---------- transform ----------
    def save(self) -> None:
        self._stack.append(self._transform)

    def restore(self) -> None:
        self._transform = self._stack.pop() if self._stack else (1.0, 0.0, 0.0)

    def set_transform(self, scale: float, tx: float, ty: float) -> None:
        self._transform = (scale, tx, ty)

    def _pt(self, x: float, y: float) -> Tuple[float, float]:
        s, tx, ty = self._transform
        return x * s + tx, y * s + ty

    def _len(self, d: float) -> float:
        return d * self._transform[0]

    def _font(self, size: int):
        size = max(6, int(round(self._len(size))))
        if size not in self._fonts:
            try:
                self._fonts[size] = ImageFont.truetype("DejaVuSans-Bold.ttf", size=size)
            except OSError:
                self._fonts[size] = ImageFont.load_default()
        return self._fonts[size]

    # ---------- primitives ----------
    def clear(self, color: Color) -> None:
        self._draw.rectangle([0, 0, self.width, self.height], fill=_rgba(color)[:3])

    def line(self, x1, y1, x2, y2, color: Color, width: float = 1.0) -> None:
        self._draw.line([self._pt(x1, y1), self._pt(x2, y2)], fill=_rgba(color),
                        width=max(1, int(round(self._len(width)))))

    def circle(self, x, y, r, fill: Optional[Color] = None, stroke: Optional[Color] = None,
               stroke_width: float = 1.0) -> None:
        (cx, cy), rr = self._pt(x, y), self._len(r)
        self._draw.ellipse(
            [cx - rr, cy - rr, cx + rr, cy + rr],
            fill=_rgba(fill) if fill is not None else None,
            outline=_rgba(stroke) if stroke is not None else None,
            width=max(1, int(round(self._len(stroke_width)))) if stroke is not None else 1,
        )

    def gradient_circle(self, x, y, r, inner: Color, outer: Color, focus: Tuple[float, float]) -> None:
        # concentric discs shrinking toward the focus point
        a, b = _rgba(inner), _rgba(outer)
        fx, fy = focus
        for i in range(GRADIENT_STEPS):
            t = i / GRADIENT_STEPS
            rr = r * (1 - t)
            ox, oy = x + (fx - x) * t, y + (fy - y) * t
            self.circle(ox, oy, rr, fill=_mix(b, a, t))

    def text(self, x, y, s: str, color: Color, size: int = 10, align: str = "center") -> None:
        font = self._font(size)
        px, py = self._pt(x, y)
        left, top, right, bottom = self._draw.textbbox((0, 0), s, font=font)
        dx = left if align == "left" else (left + right) / 2
        self._draw.text((px - dx, py - (top + bottom) / 2), s, fill=_rgba(color), font=font)

    # ---------- output ----------
    def to_image(self) -> Image.Image:
        return self.image.copy()

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()
