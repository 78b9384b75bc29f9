import json
from typing import Dict, Optional
from sqlalchemy.orm import sessionmaker

from skillgraph.skills.models import DirectoryPayload
from skillgraph.storage.db import (
    session_scope, init_db, get_or_create_employee, get_or_create_skill, get_or_create_project,
    upsert_has_skill, upsert_related, upsert_requirement, upsert_worked_with,
    dump_vector, EmployeeRow, SkillRow,
)


def persist_directory(payload: DirectoryPayload, factory: Optional[sessionmaker] = None) -> Dict[str, int]:
    """Writes a DirectoryPayload into the DB and returns per-kind counts."""
    init_db(factory.kw["bind"] if factory is not None else None)
    counts = {"employees": 0, "skills": 0, "possessions": 0, "related": 0,
              "projects": 0, "requirements": 0, "collaborations": 0}

    with session_scope(factory) as db:
        # nodes
        emp_ids, skill_ids, project_ids = {}, {}, {}
        for e in payload.employees:
            row = get_or_create_employee(
                db, e.id, name=e.name, email=e.email, department=e.department, role=e.role,
                avatar_url=e.avatar_url,
                profile_json=json.dumps(e.profile.model_dump()) if e.profile else None,
                embedding_json=dump_vector(e.embedding),
                embedding_dim=len(e.embedding) if e.embedding else None,
            )
            emp_ids[e.id] = row.id
            counts["employees"] += 1
        for s in payload.skills:
            row = get_or_create_skill(
                db, s.id, s.name, s.category, description=s.description,
                tags_json=json.dumps(s.tags) if s.tags else None,
                embedding_json=dump_vector(s.embedding),
                embedding_dim=len(s.embedding) if s.embedding else None,
            )
            if row is None:
                continue
            skill_ids[s.id] = row.id
            counts["skills"] += 1
        for p in payload.projects:
            row = get_or_create_project(db, p.id, p.name, description=p.description,
                                        status=p.status, priority=p.priority)
            if row is None:
                continue
            project_ids[p.id] = row.id
            counts["projects"] += 1

        # edges (skip those whose endpoints are not in this payload)
        for hs in payload.possessions:
            eid, sid = emp_ids.get(hs.employee_id), skill_ids.get(hs.skill_id)
            if eid and sid:
                upsert_has_skill(db, eid, sid, hs.proficiency, hs.years, hs.certified, hs.notes)
                counts["possessions"] += 1
        for r in payload.related:
            src, dst = skill_ids.get(r.get("source")), skill_ids.get(r.get("target"))
            if src and dst and src != dst:
                upsert_related(db, src, dst, r.get("relation_type", "related"),
                               float(r.get("similarity_score", 0.5)))
                counts["related"] += 1
        for req in payload.requirements:
            pid, sid = project_ids.get(req.project_id), skill_ids.get(req.skill_id)
            if pid and sid:
                upsert_requirement(db, pid, sid, req.importance, req.min_proficiency)
                counts["requirements"] += 1
        for c in payload.collaborations:
            a, b = emp_ids.get(c.employee_id), emp_ids.get(c.other_id)
            if a and b and a != b:
                upsert_worked_with(db, a, b, c.count)
                counts["collaborations"] += 1

    return counts


def assign_skill(employee_id: str, skill_id: str, proficiency: int, years: Optional[float] = None,
                 certified: bool = False, factory: Optional[sessionmaker] = None) -> bool:
    """RELATE employee->has_skill->skill; False when either endpoint is unknown."""
    if not 1 <= int(proficiency) <= 5:
        raise ValueError(f"proficiency must be within 1..5, got {proficiency}")
    with session_scope(factory) as db:
        emp = db.query(EmployeeRow).filter_by(key=employee_id).one_or_none()
        sk = db.query(SkillRow).filter_by(key=skill_id).one_or_none()
        if not (emp and sk):
            return False
        upsert_has_skill(db, emp.id, sk.id, int(proficiency), years, certified)
        return True


def seed_demo_directory(factory: Optional[sessionmaker] = None) -> Dict[str, int]:
    from skillgraph.skills.demo_data import demo_directory
    return persist_directory(demo_directory(), factory)
