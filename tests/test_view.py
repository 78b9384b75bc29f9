"""Tests for the interactive graph view and its frame loop."""

import random
from unittest.mock import MagicMock

import pytest

from skillgraph.skills.query import GraphStore
from skillgraph.viz.arena import GraphArena, GraphEdge, GraphNode
from skillgraph.viz.view import FrameLoop, GraphView

from test_render import RecordingCanvas


def _view():
    view = GraphView(800, 600, rng=random.Random(1))
    view.arena = GraphArena(
        nodes=[
            GraphNode(0, "employee:a", "A", "employee", 400, 300, radius=28),
            GraphNode(1, "skill:b", "B", "skill", 600, 300, radius=22),
        ],
        edges=[GraphEdge(0, 1, 4)],
    )
    return view


class TestLoad:
    """Fetching the graph from the store."""

    def test_initially_loading(self):
        view = GraphView()
        assert view.loading is True
        assert view.arena.nodes == []

    def test_load_from_store(self, store, small_directory):
        view = GraphView(rng=random.Random(3))
        assert view.load(store) == 9
        assert len(view.arena.edges) == 7
        assert view.loading is False

    def test_load_failure_gives_empty_graph(self):
        store = MagicMock(spec=GraphStore)
        store.employees.side_effect = ConnectionError("db down")
        view = _view()
        view.selected = 0

        assert view.load(store) == 0

        assert view.arena.nodes == []
        assert view.selected is None
        assert view.loading is False
        assert view.render(RecordingCanvas()) is True


class TestFrame:
    """Throttled simulate+render."""

    def test_throttle(self):
        view = _view()
        canvas = RecordingCanvas()
        assert view.frame(0, canvas) is True
        assert view.frame(10, canvas) is False
        assert view.frame(16, canvas) is True
        assert canvas.names().count("clear") == 2

    def test_paused_still_renders(self):
        view = _view()
        view.arena.nodes[0].vx = 3.0
        assert view.toggle_simulation() is False
        canvas = RecordingCanvas()

        assert view.frame(0, canvas) is True

        assert (view.arena.nodes[0].x, view.arena.nodes[0].y) == (400, 300)
        assert "clear" in canvas.names()

    def test_no_canvas(self):
        view = _view()
        assert view.frame(0, None) is True
        assert view.render(None) is False


class TestPointer:
    """Select, drag and drop under the camera transform."""

    def test_hit_respects_zoom(self):
        view = _view()
        assert view.pointer_down(430, 300) is False
        view.zoom_in()
        # 30 screen px is 25 world px at 1.2x
        assert view.pointer_down(430, 300) is True
        assert view.selected == 0
        assert view.dragging == 0

    def test_drag_moves_node_and_zeroes_velocity(self):
        view = _view()
        view.arena.nodes[0].vx = 2.0
        view.pointer_down(400, 300)

        assert view.pointer_move(500, 250) is True

        n = view.arena.nodes[0]
        assert (n.x, n.y, n.vx, n.vy) == (500, 250, 0.0, 0.0)
        view.pointer_up()
        assert view.dragging is None
        assert view.selected == 0

    def test_dragged_node_ignores_simulation(self):
        view = _view()
        view.pointer_down(400, 300)
        view.pointer_move(420, 310)
        view.frame(0, None)
        n = view.arena.nodes[0]
        assert (n.x, n.y) == (420, 310)

    def test_stale_drag_is_cleared(self):
        view = _view()
        view.dragging = 7
        assert view.pointer_move(10, 10) is False
        assert view.dragging is None

    def test_background_click_clears_selection(self):
        view = _view()
        view.pointer_down(400, 300)
        view.pointer_down(50, 50)
        assert view.selected is None
        assert view.selected_info() is None

    def test_two_step_click(self):
        view = _view()
        assert view.click(600, 300) is True
        assert view.dragging == 1
        assert view.click(200, 150) is True
        assert view.dragging is None
        assert (view.arena.nodes[1].x, view.arena.nodes[1].y) == (200, 150)

    def test_selected_info(self):
        view = _view()
        view.pointer_down(600, 300)
        info = view.selected_info()
        assert info["key"] == "skill:b"
        assert info["kind"] == "skill"
        assert info["connections"] == 1

    def test_reset_view(self):
        view = _view()
        view.zoom_in()
        view.camera.pan_by(5, 5)
        view.reset_view()
        assert view.camera.zoom == 1.0
        assert view.zoom_out() == pytest.approx(1 / 1.2)


class TestFrameLoop:
    """Scheduler-driven ticking."""

    def test_ticks_reschedule_until_stopped(self):
        queue = []
        loop = FrameLoop(_view(), RecordingCanvas(), queue.append)

        loop.start()
        loop.start()
        assert len(queue) == 1

        for now in (0, 5, 16, 32):
            queue.pop(0)(now)
        assert loop.frames == 3
        assert len(queue) == 1

        loop.stop()
        queue.pop(0)(48)
        assert queue == []
        assert loop.frames == 3
