# src/skillgraph/viz/arena.py
"""
Node/edge storage for the knowledge-graph view.

Nodes live in a plain list and are addressed by their integer index; edges
store index pairs. An arena is never patched in place after a re-fetch: the
view builds a new one and swaps it in with a single assignment.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Optional

from skillgraph.skills.models import Employee, Skill, SkillPossession

NodeKind = Literal["employee", "skill"]

EMPLOYEE_RADIUS = 28
SKILL_RADIUS = 22
EMPLOYEE_COLOR = "#4f46e5"
SKILL_COLOR = "#10b981"


@dataclass
class GraphNode:
    index: int
    key: str                     # store identity, e.g. "employee:alice"
    label: str
    kind: NodeKind
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    radius: float = SKILL_RADIUS
    color: str = SKILL_COLOR
    data: dict = field(default_factory=dict)


@dataclass(frozen=True)
class GraphEdge:
    source: int
    target: int
    proficiency: int = 3


@dataclass
class GraphArena:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)

    def __post_init__(self):
        self._by_key: Dict[str, int] = {n.key: n.index for n in self.nodes}

    @classmethod
    def empty(cls) -> "GraphArena":
        return cls()

    @classmethod
    def build(cls, employees: Iterable[Employee], skills: Iterable[Skill],
              possessions: Iterable[SkillPossession], width: float = 800, height: float = 600,
              rng: Optional[random.Random] = None) -> "GraphArena":
        """Scatter employees left of centre and skills right of it; drop edges with unknown endpoints."""
        rng = rng or random.Random()
        employees, skills = list(employees), list(skills)
        cx, cy = width / 2, height / 2
        nodes: List[GraphNode] = []

        def scatter(ox, oy, i, n, base, spread):
            angle = (i / max(n, 1)) * math.pi * 2 + rng.random() * 0.5
            r = base + rng.random() * spread
            return ox + math.cos(angle) * r, oy + math.sin(angle) * r

        for i, e in enumerate(employees):
            x, y = scatter(cx - 100, cy, i, len(employees), 100, 80)
            nodes.append(GraphNode(
                index=len(nodes), key=e.id, label=e.name, kind="employee", x=x, y=y,
                vx=(rng.random() - 0.5) * 2, vy=(rng.random() - 0.5) * 2,
                radius=EMPLOYEE_RADIUS, color=EMPLOYEE_COLOR,
                data={"department": e.department, "role": e.role, "email": e.email},
            ))
        for i, s in enumerate(skills):
            x, y = scatter(cx + 100, cy, i, len(skills), 120, 100)
            nodes.append(GraphNode(
                index=len(nodes), key=s.id, label=s.name, kind="skill", x=x, y=y,
                vx=(rng.random() - 0.5) * 2, vy=(rng.random() - 0.5) * 2,
                radius=SKILL_RADIUS, color=SKILL_COLOR,
                data={"category": s.category, "tags": list(s.tags)},
            ))

        by_key = {n.key: n.index for n in nodes}
        edges = [
            GraphEdge(by_key[p.employee_id], by_key[p.skill_id], p.proficiency)
            for p in possessions
            if p.employee_id in by_key and p.skill_id in by_key
        ]
        return cls(nodes=nodes, edges=edges)

    def index_of(self, key: str) -> Optional[int]:
        return self._by_key.get(key)

    def node(self, index: Optional[int]) -> Optional[GraphNode]:
        if index is None or not 0 <= index < len(self.nodes):
            return None
        return self.nodes[index]

    def degree(self, index: int) -> int:
        return sum(1 for e in self.edges if e.source == index or e.target == index)

    def hit_test(self, x: float, y: float) -> Optional[int]:
        """First node (in arena order) whose circle contains the world point (x, y)."""
        for n in self.nodes:
            dx, dy = x - n.x, y - n.y
            if dx * dx + dy * dy < n.radius * n.radius:
                return n.index
        return None
