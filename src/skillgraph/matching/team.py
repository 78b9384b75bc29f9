# src/skillgraph/matching/team.py
from typing import Dict, List, Sequence

from skillgraph.skills.models import TeamMember, TeamResult
from skillgraph.skills.query import GraphStore

COVERAGE_WEIGHT = 0.7
COMPATIBILITY_WEIGHT = 0.3
COLLAB_SATURATION = 3   # collaborations at which compatibility reaches 1.0


def _explain(team: List[TeamMember], requested: List[str], uncovered: List[str]) -> str:
    if not team:
        return f"No employees found with the required skills: {', '.join(requested)}."
    if uncovered:
        return (
            f"Found {len(team)} team members covering {len(requested) - len(uncovered)}/{len(requested)} skills. "
            f"Missing skills: {', '.join(uncovered)}. Consider hiring or training for these areas."
        )
    avg = round(sum(m.compatibility_score for m in team) / len(team) * 100)
    return (
        f"Perfect match! Found {len(team)} team members who together cover all {len(requested)} required skills. "
        f"Team compatibility is {avg}% based on past collaborations."
    )


def build_team(store: GraphStore, skill_names: Sequence[str], team_size: int = 5) -> TeamResult:
    """
    Picks up to `team_size` employees for the requested skills.

    Each employee scores 0.7 * (distinct requested skills held / requested)
    + 0.3 * min(past collaborations / 3, 1). Skill names match case-insensitively.
    """
    requested = [s.strip() for s in skill_names if s and s.strip()]
    if not requested:
        return TeamResult(explanation="No skills could be extracted from your requirements.")

    wanted = {s.lower() for s in requested}
    skill_name = {s.id: s.name for s in store.skills()}
    employees = {e.id: e for e in store.employees()}

    held: Dict[str, List[str]] = {}
    for p in store.possessions():
        name = skill_name.get(p.skill_id)
        if not name or name.lower() not in wanted or p.employee_id not in employees:
            continue
        names = held.setdefault(p.employee_id, [])
        if name not in names:
            names.append(name)

    collab = store.collaboration_counts()
    covered: List[str] = []
    members: List[TeamMember] = []
    for emp_id, names in held.items():
        for n in names:
            if n not in covered:
                covered.append(n)
        emp = employees[emp_id]
        coverage = len(names) / len(requested)
        compat = min(collab.get(emp_id, 0) / COLLAB_SATURATION, 1.0)
        members.append(TeamMember(
            id=emp.id, name=emp.name, role=emp.role, department=emp.department, skills=names,
            skill_coverage=coverage, compatibility_score=compat,
            total_score=coverage * COVERAGE_WEIGHT + compat * COMPATIBILITY_WEIGHT,
        ))

    members.sort(key=lambda m: m.total_score, reverse=True)
    team = members[:team_size]
    covered_lower = {c.lower() for c in covered}
    uncovered = [s for s in requested if s.lower() not in covered_lower]

    return TeamResult(
        team=team, required_skills=requested, skills_covered=covered,
        skills_uncovered=uncovered, explanation=_explain(team, requested, uncovered),
    )
