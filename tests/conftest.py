"""
Pytest configuration: every test gets its own in-memory SQLite graph store.
"""
import os

# keep imports from touching the on-disk default database
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("EMBEDDING_BINDING", "mock")

from typing import Dict, List, Sequence

import pytest

from skillgraph.storage.db import make_engine, make_session_factory, init_db
from skillgraph.skills.models import (
    DirectoryPayload, Employee, Skill, SkillPossession, Project, ProjectRequirement, Collaboration,
)
from skillgraph.skills.persist import persist_directory
from skillgraph.skills.query import GraphStore
from skillgraph.retrieval.embeddings import EmbeddingProvider


class StubEmbeddings(EmbeddingProvider):
    """Hand-picked vectors per text; anything else maps to `default`."""
    name = "Stub Embeddings"

    def __init__(self, vectors: Dict[str, List[float]], default: Sequence[float] = (0.0, 0.0, 1.0)):
        self.vectors = vectors
        self.default = list(default)
        self.dimensions = len(self.default)
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        return list(self.vectors.get(text, self.default))


@pytest.fixture
def session_factory():
    """Fresh in-memory database per test."""
    engine = make_engine("sqlite://")
    init_db(engine)
    factory = make_session_factory(engine)
    yield factory
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return GraphStore(session_factory)


@pytest.fixture
def seed(session_factory):
    """Callable that persists a DirectoryPayload built from keyword lists."""
    def _seed(employees=(), skills=(), possessions=(), related=(), projects=(),
              requirements=(), collaborations=()):
        payload = DirectoryPayload(
            employees=list(employees), skills=list(skills), possessions=list(possessions),
            related=list(related), projects=list(projects), requirements=list(requirements),
            collaborations=list(collaborations),
        )
        return persist_directory(payload, session_factory)
    return _seed


@pytest.fixture
def small_directory(seed):
    """Four people, five skills, one project."""
    seed(
        employees=[
            Employee(id="employee:ann", name="Ann", department="Engineering", role="Backend Engineer"),
            Employee(id="employee:bo", name="Bo", department="Data", role="ML Engineer"),
            Employee(id="employee:cy", name="Cy", department="Engineering", role="Frontend Engineer"),
            Employee(id="employee:di", name="Di", department="Data", role="Data Analyst"),
        ],
        skills=[
            Skill(id="skill:python", name="Python", category="Programming Language", tags=["backend", "data"]),
            Skill(id="skill:ml", name="Machine Learning", category="AI/ML", tags=["ml"]),
            Skill(id="skill:react", name="React", category="Frontend Framework", tags=["web"]),
            Skill(id="skill:sql", name="SQL", category="Query Language", tags=["data"]),
            Skill(id="skill:rust", name="Rust", category="Programming Language", tags=["systems"]),
        ],
        possessions=[
            SkillPossession(employee_id="employee:ann", skill_id="skill:python", proficiency=5, certified=True),
            SkillPossession(employee_id="employee:ann", skill_id="skill:sql", proficiency=3),
            SkillPossession(employee_id="employee:bo", skill_id="skill:python", proficiency=4),
            SkillPossession(employee_id="employee:bo", skill_id="skill:ml", proficiency=5, certified=True),
            SkillPossession(employee_id="employee:cy", skill_id="skill:react", proficiency=4),
            SkillPossession(employee_id="employee:di", skill_id="skill:sql", proficiency=4),
            SkillPossession(employee_id="employee:di", skill_id="skill:python", proficiency=2),
        ],
        related=[
            {"source": "skill:ml", "target": "skill:python", "relation_type": "commonly_used_with",
             "similarity_score": 0.8},
            {"source": "skill:sql", "target": "skill:python", "relation_type": "related",
             "similarity_score": 0.4},
        ],
        projects=[Project(id="project:recsys", name="Recommender", status="active")],
        requirements=[
            ProjectRequirement(project_id="project:recsys", skill_id="skill:ml", min_proficiency=3),
            ProjectRequirement(project_id="project:recsys", skill_id="skill:python", min_proficiency=2),
        ],
        collaborations=[
            Collaboration(employee_id="employee:ann", other_id="employee:bo", count=3),
            Collaboration(employee_id="employee:bo", other_id="employee:di", count=1),
        ],
    )
