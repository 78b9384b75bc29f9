# src/skillgraph/viz/physics.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from skillgraph.viz.arena import GraphArena, GraphEdge, GraphNode


@dataclass(frozen=True)
class ForceParams:
    gravity: float = 0.0005
    same_kind_repulsion: float = 2500.0
    cross_kind_repulsion: float = 1500.0
    spring_base_distance: float = 120.0
    spring_distance_per_proficiency: float = 10.0   # higher proficiency pulls the pair closer
    spring_k: float = 0.02
    default_proficiency: int = 3
    damping: float = 0.85
    max_speed: float = 5.0
    margin: float = 40.0
    bounce: float = -0.5
    distance_floor: float = 1.0


class ForceSimulator:
    """
    One tick of the force layout: centre gravity, pairwise inverse-square
    repulsion, proficiency-dependent springs along edges, damping, a speed cap
    and a soft bounce at the viewport margin.

    Nodes are updated in arena order and each sees the already-advanced
    positions of the nodes before it. The dragged node is skipped but still
    repels others and anchors its springs.
    """

    def __init__(self, width: float = 800, height: float = 600, params: Optional[ForceParams] = None):
        self.width = width
        self.height = height
        self.params = params or ForceParams()

    def _incident(self, arena: GraphArena) -> List[List[GraphEdge]]:
        adj: List[List[GraphEdge]] = [[] for _ in arena.nodes]
        for e in arena.edges:
            adj[e.source].append(e)
            if e.target != e.source:
                adj[e.target].append(e)
        return adj

    def step(self, arena: GraphArena, dragged: Optional[int] = None) -> None:
        nodes = arena.nodes
        if not nodes:
            return
        p = self.params
        cx, cy = self.width / 2, self.height / 2
        floor_sq = p.distance_floor * p.distance_floor
        incident = self._incident(arena)

        for i, node in enumerate(nodes):
            if i == dragged:
                continue

            fx = (cx - node.x) * p.gravity
            fy = (cy - node.y) * p.gravity

            for j, other in enumerate(nodes):
                if i == j:
                    continue
                dx, dy = node.x - other.x, node.y - other.y
                dist_sq = max(dx * dx + dy * dy, floor_sq)
                dist = math.sqrt(dist_sq)
                strength = p.same_kind_repulsion if node.kind == other.kind else p.cross_kind_repulsion
                force = strength / dist_sq
                fx += dx / dist * force
                fy += dy / dist * force

            for edge in incident[i]:
                other = nodes[edge.target if edge.source == i else edge.source]
                dx, dy = other.x - node.x, other.y - node.y
                dist = math.hypot(dx, dy) or p.distance_floor
                target = p.spring_base_distance - (edge.proficiency or p.default_proficiency) * p.spring_distance_per_proficiency
                force = (dist - target) * p.spring_k
                fx += dx / dist * force
                fy += dy / dist * force

            node.vx = (node.vx + fx) * p.damping
            node.vy = (node.vy + fy) * p.damping

            speed = math.hypot(node.vx, node.vy)
            if speed > p.max_speed:
                node.vx = node.vx / speed * p.max_speed
                node.vy = node.vy / speed * p.max_speed

            node.x += node.vx
            node.y += node.vy
            self.boundary_clamp(node)

    def boundary_clamp(self, node: GraphNode) -> bool:
        """Pulls a node back inside the margin, reversing and damping the offending velocity component."""
        p = self.params
        clamped = False
        if node.x < p.margin:
            node.x, node.vx, clamped = p.margin, node.vx * p.bounce, True
        if node.x > self.width - p.margin:
            node.x, node.vx, clamped = self.width - p.margin, node.vx * p.bounce, True
        if node.y < p.margin:
            node.y, node.vy, clamped = p.margin, node.vy * p.bounce, True
        if node.y > self.height - p.margin:
            node.y, node.vy, clamped = self.height - p.margin, node.vy * p.bounce, True
        return clamped
