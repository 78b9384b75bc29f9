from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
import json
import logging
from datetime import datetime
from typing import Optional, List
from sqlalchemy import (
    create_engine, String, Integer, Float, Text, ForeignKey,
    UniqueConstraint, Index, DateTime, Boolean
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.exc import IntegrityError
from sqlalchemy.engine.url import make_url
from sqlalchemy.pool import StaticPool

from skillgraph.utils.config import settings

logger = logging.getLogger(__name__)


def _ensure_sqlite_dir(db_url: str):
    try:
        url = make_url(db_url)
    except Exception:
        return
    if url.drivername.startswith("sqlite") and url.database and url.database != ":memory:":
        p = Path(url.database)
        if not p.is_absolute():
            p = Path.cwd() / p
        p.parent.mkdir(parents=True, exist_ok=True)

def make_engine(db_url: str):
    _ensure_sqlite_dir(db_url)
    url = make_url(db_url)
    if url.drivername.startswith("sqlite") and url.database in (None, "", ":memory:"):
        # one shared connection, otherwise every session sees an empty database
        return create_engine(
            db_url, future=True,
            connect_args={"check_same_thread": False}, poolclass=StaticPool,
        )
    return create_engine(db_url, future=True, pool_pre_ping=True)

def make_session_factory(bind) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

engine = make_engine(settings.DB_URL)
SessionLocal = make_session_factory(engine)


class Base(DeclarativeBase):
    pass

# --- ORM models ---
class EmployeeRow(Base):
    __tablename__ = "employees"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(String(64), unique=True, index=True)   # e.g. "employee:alice"
    name: Mapped[str] = mapped_column(String(255), index=True)
    email: Mapped[str] = mapped_column(String(255), default="")
    department: Mapped[str] = mapped_column(String(128), index=True, default="")
    role: Mapped[str] = mapped_column(String(128), default="")
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    profile_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    embedding_dim: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    embedding_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)    # json.dumps(list[float])
    created: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class SkillRow(Base):
    __tablename__ = "skills"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(String(64), unique=True, index=True)   # e.g. "skill:python"
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    category: Mapped[str] = mapped_column(String(64), default="Other")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    embedding_dim: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    embedding_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class HasSkill(Base):
    """employee -> skill possession edge."""
    __tablename__ = "has_skill"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"))
    skill_id: Mapped[int] = mapped_column(ForeignKey("skills.id", ondelete="CASCADE"))
    proficiency: Mapped[int] = mapped_column(Integer, default=3)
    years: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    certified: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    __table_args__ = (UniqueConstraint("employee_id", "skill_id", name="uq_has_skill"),)

class RelatedTo(Base):
    """skill -> skill relation."""
    __tablename__ = "related_to"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    src_skill_id: Mapped[int] = mapped_column(ForeignKey("skills.id", ondelete="CASCADE"))
    dst_skill_id: Mapped[int] = mapped_column(ForeignKey("skills.id", ondelete="CASCADE"))
    relation_type: Mapped[str] = mapped_column(String(32), default="related")
    similarity_score: Mapped[float] = mapped_column(Float, default=0.5)
    __table_args__ = (UniqueConstraint("src_skill_id", "dst_skill_id", "relation_type", name="uq_related_to"),)

class ProjectRow(Base):
    __tablename__ = "projects"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="planning")
    priority: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

class RequiresSkill(Base):
    """project -> skill requirement edge."""
    __tablename__ = "requires_skill"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"))
    skill_id: Mapped[int] = mapped_column(ForeignKey("skills.id", ondelete="CASCADE"))
    importance: Mapped[str] = mapped_column(String(32), default="required")
    min_proficiency: Mapped[int] = mapped_column(Integer, default=1)
    __table_args__ = (UniqueConstraint("project_id", "skill_id", name="uq_requires_skill"),)

class WorkedWith(Base):
    """employee -> employee collaboration edge."""
    __tablename__ = "worked_with"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    src_employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"))
    dst_employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"))
    count: Mapped[int] = mapped_column(Integer, default=1)
    __table_args__ = (UniqueConstraint("src_employee_id", "dst_employee_id", name="uq_worked_with"),)

Index("ix_has_skill_employee", HasSkill.employee_id)
Index("ix_has_skill_skill", HasSkill.skill_id)
Index("ix_related_src", RelatedTo.src_skill_id)

def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)

@contextmanager
def session_scope(factory: sessionmaker | None = None):
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

# ---------- helpers ----------
def dump_vector(emb: Optional[List[float]]) -> Optional[str]:
    return json.dumps([float(x) for x in emb]) if emb else None

def load_vector(raw: Optional[str]) -> Optional[List[float]]:
    if not raw:
        return None
    vec = json.loads(raw)
    return [float(x) for x in vec] if vec else None

# --- Repository helpers (get_or_create / upsert) ---

def get_or_create_employee(db, key: str, **fields) -> EmployeeRow:
    obj = db.query(EmployeeRow).filter_by(key=key).one_or_none()
    if obj:
        for k, v in fields.items():
            setattr(obj, k, v)
        db.commit()
        return obj
    obj = EmployeeRow(key=key, **fields)
    try:
        db.add(obj); db.commit()
    except IntegrityError:
        db.rollback()
        obj = db.query(EmployeeRow).filter_by(key=key).one()
    return obj

def get_or_create_skill(db, key: str, name: str, category: Optional[str] = None, **fields) -> Optional[SkillRow]:
    """None when `name` already belongs to a skill with a different key."""
    obj = db.query(SkillRow).filter_by(key=key).one_or_none()
    if obj: return obj
    obj = SkillRow(key=key, name=name, category=category or "Other", **fields)
    try:
        db.add(obj); db.commit()
    except IntegrityError:
        db.rollback()
        obj = db.query(SkillRow).filter_by(key=key).one_or_none()
        if obj is None:
            other = db.query(SkillRow.key).filter_by(name=name).scalar()
            logger.warning("skill %s not created: name %r already used by %s", key, name, other)
    return obj

def get_or_create_project(db, key: str, name: str, **fields) -> Optional[ProjectRow]:
    """None when `name` already belongs to a project with a different key."""
    obj = db.query(ProjectRow).filter_by(key=key).one_or_none()
    if obj: return obj
    obj = ProjectRow(key=key, name=name, **fields)
    try:
        db.add(obj); db.commit()
    except IntegrityError:
        db.rollback()
        obj = db.query(ProjectRow).filter_by(key=key).one_or_none()
        if obj is None:
            other = db.query(ProjectRow.key).filter_by(name=name).scalar()
            logger.warning("project %s not created: name %r already used by %s", key, name, other)
    return obj

def upsert_has_skill(db, employee_id: int, skill_id: int, proficiency: int,
                     years: Optional[float] = None, certified: bool = False, notes: Optional[str] = None):
    hs = db.query(HasSkill).filter_by(employee_id=employee_id, skill_id=skill_id).one_or_none()
    if hs:
        hs.proficiency, hs.years, hs.certified, hs.notes = proficiency, years, certified, notes
    else:
        hs = HasSkill(employee_id=employee_id, skill_id=skill_id, proficiency=proficiency,
                      years=years, certified=certified, notes=notes)
        db.add(hs)
    db.commit()
    return hs

def upsert_related(db, src_skill_id: int, dst_skill_id: int, relation_type: str, similarity_score: float):
    e = db.query(RelatedTo).filter_by(
        src_skill_id=src_skill_id, dst_skill_id=dst_skill_id, relation_type=relation_type
    ).one_or_none()
    if e:
        e.similarity_score = similarity_score
    else:
        db.add(RelatedTo(src_skill_id=src_skill_id, dst_skill_id=dst_skill_id,
                         relation_type=relation_type, similarity_score=similarity_score))
    db.commit()

def upsert_requirement(db, project_id: int, skill_id: int, importance: str, min_proficiency: int):
    rs = db.query(RequiresSkill).filter_by(project_id=project_id, skill_id=skill_id).one_or_none()
    if rs:
        rs.importance, rs.min_proficiency = importance, min_proficiency
    else:
        db.add(RequiresSkill(project_id=project_id, skill_id=skill_id,
                             importance=importance, min_proficiency=min_proficiency))
    db.commit()

def upsert_worked_with(db, src_employee_id: int, dst_employee_id: int, count: int):
    ww = db.query(WorkedWith).filter_by(src_employee_id=src_employee_id, dst_employee_id=dst_employee_id).one_or_none()
    if ww:
        ww.count = count
    else:
        db.add(WorkedWith(src_employee_id=src_employee_id, dst_employee_id=dst_employee_id, count=count))
    db.commit()

def set_embedding(db, row, emb: List[float]):
    row.embedding_json = dump_vector(emb); row.embedding_dim = len(emb)
    db.commit()
    return row
