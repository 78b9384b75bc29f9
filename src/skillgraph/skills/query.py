# src/skillgraph/skills/query.py
from __future__ import annotations
import json
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import aliased, sessionmaker

from skillgraph.storage.db import (
    SessionLocal, EmployeeRow, SkillRow, HasSkill, RelatedTo,
    ProjectRow, RequiresSkill, WorkedWith, load_vector,
)
from skillgraph.skills.models import (
    Employee, EmployeeProfile, Skill, SkillPossession, EmployeeSkill,
    SkillHolder, RelatedSkill, Project, ProjectRequirement,
)


def _employee(row: EmployeeRow) -> Employee:
    profile = json.loads(row.profile_json) if row.profile_json else None
    return Employee(
        id=row.key, name=row.name, email=row.email or "",
        department=row.department or "", role=row.role or "",
        avatar_url=row.avatar_url,
        profile=EmployeeProfile(**profile) if profile else None,
        embedding=load_vector(row.embedding_json),
    )

def _skill(row: SkillRow) -> Skill:
    return Skill(
        id=row.key, name=row.name, category=row.category or "Other",
        description=row.description,
        tags=json.loads(row.tags_json) if row.tags_json else [],
        embedding=load_vector(row.embedding_json),
    )

def _project(row: ProjectRow) -> Project:
    return Project(id=row.key, name=row.name, description=row.description,
                   status=row.status, priority=row.priority)


class GraphStore:
    """
    Read-only graph view over the relational tables.

    Entities are employees/skills/projects, edges are has_skill, related_to,
    requires_skill and worked_with. Every method opens its own session and
    returns fresh pydantic objects, so callers never share mutable state.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    # ---------- entities ----------
    def employees(self, department: Optional[str] = None, role: Optional[str] = None) -> List[Employee]:
        with self.session_factory() as db:
            q = select(EmployeeRow)
            if department:
                q = q.where(EmployeeRow.department == department)
            if role:
                q = q.where(EmployeeRow.role.contains(role))
            q = q.order_by(EmployeeRow.name.asc(), EmployeeRow.id.asc())
            return [_employee(r) for r in db.execute(q).scalars().all()]

    def employee(self, employee_id: str) -> Optional[Employee]:
        with self.session_factory() as db:
            row = db.execute(select(EmployeeRow).where(EmployeeRow.key == employee_id)).scalar_one_or_none()
            return _employee(row) if row else None

    def skills(self, category: Optional[str] = None, tags: Optional[Iterable[str]] = None) -> List[Skill]:
        with self.session_factory() as db:
            q = select(SkillRow)
            if category:
                q = q.where(SkillRow.category == category)
            q = q.order_by(SkillRow.category.asc(), SkillRow.name.asc())
            out = [_skill(r) for r in db.execute(q).scalars().all()]
        if tags:
            wanted = {t.lower() for t in tags}
            out = [s for s in out if wanted & {t.lower() for t in s.tags}]
        return out

    def skill(self, skill_id: str) -> Optional[Skill]:
        with self.session_factory() as db:
            row = db.execute(select(SkillRow).where(SkillRow.key == skill_id)).scalar_one_or_none()
            return _skill(row) if row else None

    def skills_by_name(self, names: Iterable[str]) -> List[Skill]:
        wanted = [n.strip().lower() for n in names if n and n.strip()]
        if not wanted:
            return []
        with self.session_factory() as db:
            q = select(SkillRow).where(func.lower(SkillRow.name).in_(wanted)).order_by(SkillRow.name.asc())
            return [_skill(r) for r in db.execute(q).scalars().all()]

    def projects(self, status: Optional[str] = None) -> List[Project]:
        with self.session_factory() as db:
            q = select(ProjectRow)
            if status:
                q = q.where(ProjectRow.status == status)
            return [_project(r) for r in db.execute(q.order_by(ProjectRow.name.asc())).scalars().all()]

    def departments(self) -> List[str]:
        with self.session_factory() as db:
            q = select(EmployeeRow.department).distinct().order_by(EmployeeRow.department.asc())
            return [d for d in db.execute(q).scalars().all() if d]

    def skill_categories(self) -> List[str]:
        with self.session_factory() as db:
            q = select(SkillRow.category).distinct().order_by(SkillRow.category.asc())
            return [c for c in db.execute(q).scalars().all() if c]

    # ---------- edges ----------
    def possessions(self) -> List[SkillPossession]:
        """All has_skill edges with their scalar properties."""
        with self.session_factory() as db:
            q = (
                select(EmployeeRow.key, SkillRow.key, HasSkill.proficiency,
                       HasSkill.years, HasSkill.certified, HasSkill.notes)
                .join(EmployeeRow, EmployeeRow.id == HasSkill.employee_id)
                .join(SkillRow, SkillRow.id == HasSkill.skill_id)
                .order_by(HasSkill.id.asc())
            )
            return [
                SkillPossession(employee_id=ek, skill_id=sk, proficiency=p,
                                years=y, certified=bool(c), notes=n)
                for ek, sk, p, y, c, n in db.execute(q).all()
            ]

    def possessions_of(self, employee_id: str) -> List[SkillPossession]:
        with self.session_factory() as db:
            q = (
                select(SkillRow.key, HasSkill.proficiency, HasSkill.years, HasSkill.certified, HasSkill.notes)
                .join(HasSkill, HasSkill.skill_id == SkillRow.id)
                .join(EmployeeRow, EmployeeRow.id == HasSkill.employee_id)
                .where(EmployeeRow.key == employee_id)
                .order_by(HasSkill.id.asc())
            )
            return [
                SkillPossession(employee_id=employee_id, skill_id=sk, proficiency=p,
                                years=y, certified=bool(c), notes=n)
                for sk, p, y, c, n in db.execute(q).all()
            ]

    def skills_of(self, employee_id: str) -> List[EmployeeSkill]:
        """Outgoing has_skill edges joined with the skill at the far end."""
        with self.session_factory() as db:
            q = (
                select(SkillRow, HasSkill.proficiency, HasSkill.years, HasSkill.certified)
                .join(HasSkill, HasSkill.skill_id == SkillRow.id)
                .join(EmployeeRow, EmployeeRow.id == HasSkill.employee_id)
                .where(EmployeeRow.key == employee_id)
                .order_by(HasSkill.proficiency.desc(), SkillRow.name.asc())
            )
            return [
                EmployeeSkill(skill=_skill(s), proficiency=p, years=y, certified=bool(c))
                for s, p, y, c in db.execute(q).all()
            ]

    def holders_of(self, skill_id: str) -> List[SkillHolder]:
        """Incoming has_skill edges joined with the employee at the far end."""
        with self.session_factory() as db:
            q = (
                select(EmployeeRow, HasSkill.proficiency, HasSkill.years, HasSkill.certified)
                .join(HasSkill, HasSkill.employee_id == EmployeeRow.id)
                .join(SkillRow, SkillRow.id == HasSkill.skill_id)
                .where(SkillRow.key == skill_id)
                .order_by(HasSkill.proficiency.desc(), EmployeeRow.name.asc())
            )
            return [
                SkillHolder(employee=_employee(e), proficiency=p, years=y, certified=bool(c))
                for e, p, y, c in db.execute(q).all()
            ]

    def related_skills(self, skill_id: str) -> List[RelatedSkill]:
        with self.session_factory() as db:
            src = aliased(SkillRow)
            q = (
                select(SkillRow, RelatedTo.relation_type, RelatedTo.similarity_score)
                .join(RelatedTo, RelatedTo.dst_skill_id == SkillRow.id)
                .join(src, src.id == RelatedTo.src_skill_id)
                .where(src.key == skill_id)
                .order_by(RelatedTo.similarity_score.desc(), SkillRow.name.asc())
            )
            return [
                RelatedSkill(skill=_skill(s), relation_type=rt, similarity_score=float(w))
                for s, rt, w in db.execute(q).all()
            ]

    def project_requirements(self, project_id: str) -> List[ProjectRequirement]:
        with self.session_factory() as db:
            q = (
                select(SkillRow.key, RequiresSkill.importance, RequiresSkill.min_proficiency)
                .join(RequiresSkill, RequiresSkill.skill_id == SkillRow.id)
                .join(ProjectRow, ProjectRow.id == RequiresSkill.project_id)
                .where(ProjectRow.key == project_id)
                .order_by(RequiresSkill.id.asc())
            )
            return [
                ProjectRequirement(project_id=project_id, skill_id=sk, importance=imp, min_proficiency=mp)
                for sk, imp, mp in db.execute(q).all()
            ]

    def collaboration_counts(self) -> Dict[str, int]:
        """worked_with edges summed per source employee."""
        with self.session_factory() as db:
            q = (
                select(EmployeeRow.key, func.sum(WorkedWith.count))
                .join(WorkedWith, WorkedWith.src_employee_id == EmployeeRow.id)
                .group_by(EmployeeRow.key)
            )
            return {k: int(n or 0) for k, n in db.execute(q).all()}
