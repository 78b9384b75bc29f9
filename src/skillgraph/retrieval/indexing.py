# src/skillgraph/retrieval/indexing.py
import json
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from skillgraph.retrieval.embeddings import EmbeddingProvider, get_embedding_provider
from skillgraph.storage.db import session_scope, EmployeeRow, SkillRow, set_embedding

logger = logging.getLogger(__name__)


def skill_text(name: str, description: Optional[str], tags_json: Optional[str]) -> str:
    tags = json.loads(tags_json) if tags_json else []
    return " ".join(p for p in (f"{name}:", description or "", " ".join(tags)) if p)

def employee_text(name: str, role: str, department: str, profile_json: Optional[str]) -> str:
    bio = (json.loads(profile_json) or {}).get("bio") if profile_json else None
    return f"{name}, {role} in {department}. {bio or ''}".strip()


def embed_missing_skills(provider: Optional[EmbeddingProvider] = None,
                         factory: Optional[sessionmaker] = None, force: bool = False) -> int:
    """Embeds every skill row without a vector (all rows when force=True)."""
    provider = provider or get_embedding_provider()
    with session_scope(factory) as db:
        q = select(SkillRow)
        if not force:
            q = q.where(SkillRow.embedding_json.is_(None))
        rows = db.execute(q.order_by(SkillRow.id.asc())).scalars().all()
        if not rows:
            return 0
        vecs = provider.embed_batch([skill_text(r.name, r.description, r.tags_json) for r in rows])
        for row, emb in zip(rows, vecs):
            set_embedding(db, row, emb)
    logger.info("embedded %d skills with %s", len(rows), provider.name)
    return len(rows)

def embed_missing_employees(provider: Optional[EmbeddingProvider] = None,
                            factory: Optional[sessionmaker] = None, force: bool = False) -> int:
    provider = provider or get_embedding_provider()
    with session_scope(factory) as db:
        q = select(EmployeeRow)
        if not force:
            q = q.where(EmployeeRow.embedding_json.is_(None))
        rows = db.execute(q.order_by(EmployeeRow.id.asc())).scalars().all()
        if not rows:
            return 0
        vecs = provider.embed_batch(
            [employee_text(r.name, r.role or "", r.department or "", r.profile_json) for r in rows]
        )
        for row, emb in zip(rows, vecs):
            set_embedding(db, row, emb)
    logger.info("embedded %d employees with %s", len(rows), provider.name)
    return len(rows)
