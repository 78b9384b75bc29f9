"""Tests for the graph renderer and the Pillow canvas."""

import pytest

from skillgraph.viz.arena import GraphArena, GraphEdge, GraphNode
from skillgraph.viz.camera import Camera
from skillgraph.viz.canvas import PillowCanvas
from skillgraph.viz.render import (
    BACKGROUND, SELECTED_FILL, SELECTED_GLOW, Canvas, GraphRenderer, rgba, truncate_label,
)


class RecordingCanvas(Canvas):
    """Records every primitive as (name, args, kwargs)."""

    def __init__(self, width=800, height=600):
        self.width, self.height = width, height
        self.calls = []

    def _rec(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))

    def clear(self, color):
        self._rec("clear", color)

    def save(self):
        self._rec("save")

    def restore(self):
        self._rec("restore")

    def set_transform(self, scale, tx, ty):
        self._rec("set_transform", scale, tx, ty)

    def line(self, x1, y1, x2, y2, color, width=1.0):
        self._rec("line", x1, y1, x2, y2, color, width)

    def circle(self, x, y, r, fill=None, stroke=None, stroke_width=1.0):
        self._rec("circle", x, y, r, fill=fill, stroke=stroke, stroke_width=stroke_width)

    def gradient_circle(self, x, y, r, inner, outer, focus):
        self._rec("gradient_circle", x, y, r, inner, outer, focus)

    def text(self, x, y, s, color, size=10, align="center"):
        self._rec("text", x, y, s, color, size=size, align=align)

    def names(self):
        return [c[0] for c in self.calls]

    def texts(self):
        return [c[1][2] for c in self.calls if c[0] == "text"]


def _arena(proficiency=2):
    return GraphArena(
        nodes=[
            GraphNode(0, "employee:c", "Christopher Lee", "employee", 100, 100, radius=28),
            GraphNode(1, "skill:k", "Kubernetes", "skill", 300, 100, radius=22),
        ],
        edges=[GraphEdge(0, 1, proficiency)],
    )


class TestGraphRenderer:
    """Draw order and styling."""

    def test_no_canvas(self):
        assert GraphRenderer().draw(None, _arena(), Camera()) is False

    def test_pass_order(self):
        canvas = RecordingCanvas()
        assert GraphRenderer().draw(canvas, _arena(), Camera(zoom=2.0)) is True

        names = canvas.names()
        assert names[:4] == ["clear", "save", "set_transform", "line"]
        assert canvas.calls[0][1] == (BACKGROUND,)
        assert canvas.calls[2][1] == (2.0, -400.0, -300.0)
        # legend after restore, in screen space
        i = names.index("restore")
        assert names[i + 1:] == ["circle", "text", "circle", "text", "text"]

    def test_edge_style(self):
        canvas = RecordingCanvas()
        GraphRenderer().draw(canvas, _arena(proficiency=2), Camera())

        _, (x1, y1, x2, y2, color, width), _ = canvas.calls[3]
        assert (x1, y1, x2, y2) == (100, 100, 300, 100)
        assert color == (255, 255, 255, 51)
        assert width == pytest.approx(1.6)
        label = canvas.calls[4]
        assert label[0] == "text"
        assert label[1][:3] == (200, 100, "2")

    def test_labels_truncated(self):
        canvas = RecordingCanvas()
        GraphRenderer().draw(canvas, _arena(), Camera())
        assert "Christophe.." in canvas.texts()
        assert "Kubernet.." in canvas.texts()

    def test_selected_node_highlight(self):
        canvas = RecordingCanvas()
        GraphRenderer().draw(canvas, _arena(), Camera(), selected=1)

        fills = [c[2].get("fill") for c in canvas.calls if c[0] == "circle"]
        assert SELECTED_GLOW in fills
        assert SELECTED_FILL in fills
        glow = next(c for c in canvas.calls if c[0] == "circle" and c[2].get("fill") == SELECTED_GLOW)
        assert glow[1] == (300, 100, 30)
        # only the unselected node gets a gradient
        assert [c[1][0] for c in canvas.calls if c[0] == "gradient_circle"] == [100]

    def test_readout(self):
        canvas = RecordingCanvas(height=500)
        GraphRenderer().draw(canvas, _arena(), Camera())
        last = canvas.calls[-1]
        assert last[1][:3] == (20, 480, "Nodes: 2 | Edges: 1")
        assert canvas.texts()[-3:-1] == ["Employees", "Skills"]

    def test_empty_arena_still_draws_legend(self):
        canvas = RecordingCanvas()
        GraphRenderer().draw(canvas, GraphArena.empty(), Camera())
        assert "Nodes: 0 | Edges: 0" in canvas.texts()


class TestHelpers:
    def test_truncate_label(self):
        assert truncate_label("Alice", "employee") == "Alice"
        assert truncate_label("Alexandria", "employee") == "Alexandria"
        assert truncate_label("Alexandrias", "employee") == "Alexandria.."
        assert truncate_label("Postgres", "skill") == "Postgres"
        assert truncate_label("PostgreSQL", "skill") == "PostgreS.."

    def test_rgba_clamps(self):
        assert rgba(1, 2, 3, 1.0) == (1, 2, 3, 255)
        assert rgba(1, 2, 3, -0.5) == (1, 2, 3, 0)
        assert rgba(1, 2, 3, 7) == (1, 2, 3, 255)


class TestPillowCanvas:
    """Raster output."""

    def test_png_output(self):
        canvas = PillowCanvas(400, 300)
        GraphRenderer().draw(canvas, _arena(), Camera(400, 300))

        png = canvas.to_png()

        assert png.startswith(b"\x89PNG")
        img = canvas.to_image()
        assert img.size == (400, 300)
        assert img.getpixel((399, 0)) == (15, 23, 42)

    def test_node_pixels_are_painted(self):
        canvas = PillowCanvas(400, 300)
        GraphRenderer().draw(canvas, _arena(), Camera(400, 300), selected=1)
        assert canvas.to_image().getpixel((300, 110)) != (15, 23, 42)

    def test_restore_without_save_resets(self):
        canvas = PillowCanvas(10, 10)
        canvas.set_transform(2.0, 1.0, 1.0)
        canvas.restore()
        assert canvas._pt(3, 4) == (3, 4)
