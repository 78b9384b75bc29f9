# src/skillgraph/viz/view.py
"""
Interactive knowledge-graph view: owns the arena, the force simulator, the
camera, the selection and the drag state, and advances them one throttled
frame at a time.
"""
from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from skillgraph.skills.query import GraphStore
from skillgraph.viz.arena import GraphArena
from skillgraph.viz.camera import Camera
from skillgraph.viz.physics import ForceParams, ForceSimulator
from skillgraph.viz.render import Canvas, GraphRenderer

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16


class GraphView:
    def __init__(self, width: int = 800, height: int = 600,
                 params: Optional[ForceParams] = None, rng: Optional[random.Random] = None):
        self.width, self.height = width, height
        self.arena = GraphArena.empty()
        self.simulator = ForceSimulator(width, height, params)
        self.camera = Camera(width, height)
        self.renderer = GraphRenderer()
        self.rng = rng or random.Random()
        self.selected: Optional[int] = None
        self.dragging: Optional[int] = None
        self.simulating = True
        self.loading = True
        self._last_frame_ms: Optional[float] = None

    # ---------- data ----------
    def load(self, store: GraphStore) -> int:
        """Fetch nodes and edges and swap in a fresh arena; an empty one on failure."""
        try:
            arena = GraphArena.build(
                store.employees(), store.skills(), store.possessions(),
                self.width, self.height, self.rng,
            )
        except Exception as e:
            logger.error("knowledge graph fetch failed: %s: %s", type(e).__name__, e)
            arena = GraphArena.empty()
        # single assignment: a frame never sees a half-built arena
        self.arena = arena
        self.selected = self.dragging = None
        self.loading = False
        return len(arena.nodes)

    # ---------- interaction ----------
    def pointer_down(self, x: float, y: float) -> bool:
        wx, wy = self.camera.screen_to_world(x, y)
        hit = self.arena.hit_test(wx, wy)
        self.selected = hit
        self.dragging = hit
        return hit is not None

    def pointer_move(self, x: float, y: float) -> bool:
        if self.dragging is None:
            return False
        node = self.arena.node(self.dragging)
        if node is None:
            self.dragging = None
            return False
        node.x, node.y = self.camera.screen_to_world(x, y)
        node.vx = node.vy = 0.0
        return True

    def pointer_up(self) -> None:
        self.dragging = None

    def click(self, x: float, y: float) -> bool:
        """Click-only hosts: first click grabs a node, the next one drops it at the clicked point."""
        if self.dragging is None:
            return self.pointer_down(x, y)
        moved = self.pointer_move(x, y)
        self.pointer_up()
        return moved

    def zoom_in(self) -> float:
        return self.camera.zoom_in()

    def zoom_out(self) -> float:
        return self.camera.zoom_out()

    def reset_view(self) -> None:
        self.camera.reset()

    def toggle_simulation(self) -> bool:
        self.simulating = not self.simulating
        return self.simulating

    def selected_info(self) -> Optional[dict]:
        node = self.arena.node(self.selected)
        if node is None:
            return None
        return {
            "key": node.key, "label": node.label, "kind": node.kind,
            "data": dict(node.data), "connections": self.arena.degree(node.index),
        }

    # ---------- frame ----------
    def frame(self, now_ms: float, canvas: Optional[Canvas]) -> bool:
        """At most one simulation step and one render pass per FRAME_INTERVAL_MS."""
        if self._last_frame_ms is not None and now_ms - self._last_frame_ms < FRAME_INTERVAL_MS:
            return False
        if self.simulating:
            self.simulator.step(self.arena, self.dragging)
        self.render(canvas)
        self._last_frame_ms = now_ms
        return True

    def render(self, canvas: Optional[Canvas]) -> bool:
        """Render pass only; used for redraws outside the frame clock."""
        return self.renderer.draw(canvas, self.arena, self.camera, self.selected)


class FrameLoop:
    """
    Drives GraphView.frame from a host scheduler.

    `scheduler(callback)` must arrange for `callback(now_ms)` to be called once,
    later (the shape of a browser's requestAnimationFrame). Every tick
    reschedules itself, whether or not the throttle let the frame run, until
    stop() is called.
    """

    def __init__(self, view: GraphView, canvas: Optional[Canvas],
                 scheduler: Callable[[Callable[[float], None]], None]):
        self.view = view
        self.canvas = canvas
        self.scheduler = scheduler
        self.running = False
        self.frames = 0

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.scheduler(self._tick)

    def stop(self) -> None:
        self.running = False

    def _tick(self, now_ms: float) -> None:
        if not self.running:
            return
        if self.view.frame(now_ms, self.canvas):
            self.frames += 1
        self.scheduler(self._tick)
