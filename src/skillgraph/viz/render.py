# src/skillgraph/viz/render.py
"""
Immediate-mode drawing of a GraphArena.

The renderer only issues primitive operations on a Canvas (lines, circles,
text); concrete canvases decide how those become pixels.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Tuple, Union

from skillgraph.viz.arena import GraphArena, GraphNode, EMPLOYEE_COLOR, SKILL_COLOR
from skillgraph.viz.camera import Camera

RGBA = Tuple[int, int, int, int]
Color = Union[str, RGBA]

BACKGROUND = "#0f172a"
WHITE = "#ffffff"
SELECTED_FILL = "#fbbf24"
SELECTED_GLOW: RGBA = (251, 191, 36, 77)
SHADOW: RGBA = (0, 0, 0, 77)
BORDER: RGBA = (255, 255, 255, 153)
EDGE_LABEL: RGBA = (255, 255, 255, 179)
GRADIENTS = {
    "employee": ("#818cf8", EMPLOYEE_COLOR),
    "skill": ("#34d399", SKILL_COLOR),
}
LABEL_MAX = {"employee": 10, "skill": 8}


def rgba(r: int, g: int, b: int, alpha: float) -> RGBA:
    return r, g, b, int(round(max(0.0, min(1.0, alpha)) * 255))


class Canvas(ABC):
    width: int
    height: int

    @abstractmethod
    def clear(self, color: Color) -> None: ...

    @abstractmethod
    def save(self) -> None:
        """Push the current transform."""

    @abstractmethod
    def restore(self) -> None:
        """Pop the transform pushed by the matching save()."""

    @abstractmethod
    def set_transform(self, scale: float, tx: float, ty: float) -> None: ...

    @abstractmethod
    def line(self, x1: float, y1: float, x2: float, y2: float, color: Color, width: float = 1.0) -> None: ...

    @abstractmethod
    def circle(self, x: float, y: float, r: float, fill: Optional[Color] = None,
               stroke: Optional[Color] = None, stroke_width: float = 1.0) -> None: ...

    @abstractmethod
    def gradient_circle(self, x: float, y: float, r: float, inner: Color, outer: Color,
                        focus: Tuple[float, float]) -> None:
        """Radial gradient from `inner` at `focus` to `outer` at the rim."""

    @abstractmethod
    def text(self, x: float, y: float, s: str, color: Color, size: int = 10,
             align: str = "center") -> None: ...


def truncate_label(label: str, kind: str) -> str:
    n = LABEL_MAX.get(kind, 8)
    return label[:n] + ".." if len(label) > n else label


class GraphRenderer:
    def draw(self, canvas: Optional[Canvas], arena: GraphArena, camera: Camera,
             selected: Optional[int] = None) -> bool:
        if canvas is None:
            return False

        canvas.clear(BACKGROUND)
        canvas.save()
        canvas.set_transform(*camera.transform())
        for edge in arena.edges:
            self._edge(canvas, arena.nodes[edge.source], arena.nodes[edge.target], edge.proficiency)
        for node in arena.nodes:
            self._node(canvas, node, node.index == selected)
        canvas.restore()

        self._legend(canvas, len(arena.nodes), len(arena.edges))
        return True

    def _edge(self, canvas: Canvas, a: GraphNode, b: GraphNode, proficiency: int) -> None:
        p = proficiency or 3
        canvas.line(a.x, a.y, b.x, b.y, rgba(255, 255, 255, 0.1 + p * 0.05), 1 + p * 0.3)
        if proficiency:
            canvas.text((a.x + b.x) / 2, (a.y + b.y) / 2, str(proficiency), EDGE_LABEL, size=10)

    def _node(self, canvas: Canvas, node: GraphNode, selected: bool) -> None:
        if selected:
            canvas.circle(node.x, node.y, node.radius + 8, fill=SELECTED_GLOW)
        canvas.circle(node.x + 2, node.y + 2, node.radius, fill=SHADOW)
        if selected:
            canvas.circle(node.x, node.y, node.radius, fill=SELECTED_FILL)
        else:
            inner, outer = GRADIENTS.get(node.kind, (node.color, node.color))
            canvas.gradient_circle(node.x, node.y, node.radius, inner, outer,
                                   focus=(node.x - node.radius * 0.3, node.y - node.radius * 0.3))
        canvas.circle(node.x, node.y, node.radius, stroke=BORDER, stroke_width=2)
        canvas.text(node.x, node.y, truncate_label(node.label, node.kind), WHITE, size=10)

    def _legend(self, canvas: Canvas, n_nodes: int, n_edges: int) -> None:
        canvas.circle(30, 30, 8, fill=EMPLOYEE_COLOR)
        canvas.text(45, 30, "Employees", WHITE, size=12, align="left")
        canvas.circle(30, 55, 8, fill=SKILL_COLOR)
        canvas.text(45, 55, "Skills", WHITE, size=12, align="left")
        canvas.text(20, canvas.height - 20, f"Nodes: {n_nodes} | Edges: {n_edges}",
                    rgba(255, 255, 255, 0.6), size=12, align="left")
