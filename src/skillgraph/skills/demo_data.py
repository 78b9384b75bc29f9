# Small demo directory used by the "Seed demo data" button and smoke_test.py
from skillgraph.skills.models import (
    DirectoryPayload, Employee, EmployeeProfile, Skill, SkillPossession,
    Project, ProjectRequirement, Collaboration,
)

_SKILLS = [
    ("python", "Python", "Programming Language", ["backend", "data"]),
    ("javascript", "JavaScript", "Programming Language", ["frontend", "web"]),
    ("typescript", "TypeScript", "Programming Language", ["frontend", "web"]),
    ("rust", "Rust", "Programming Language", ["systems"]),
    ("react", "React", "Frontend Framework", ["frontend", "web"]),
    ("nextjs", "Next.js", "Frontend Framework", ["frontend", "web"]),
    ("nodejs", "Node.js", "Runtime", ["backend", "web"]),
    ("ml", "Machine Learning", "AI/ML", ["ml", "data"]),
    ("dl", "Deep Learning", "AI/ML", ["ml"]),
    ("nlp", "Natural Language Processing", "AI/ML", ["ml", "text"]),
    ("data_analysis", "Data Analysis", "Data Science", ["data"]),
    ("docker", "Docker", "DevOps", ["containers"]),
    ("kubernetes", "Kubernetes", "DevOps", ["containers", "cloud"]),
    ("aws", "AWS", "Cloud Platform", ["cloud"]),
    ("cicd", "CI/CD", "DevOps", ["automation"]),
    ("postgresql", "PostgreSQL", "Database", ["sql"]),
    ("sql", "SQL", "Query Language", ["sql", "data"]),
    ("problem_solving", "Problem Solving", "Soft Skill", ["soft"]),
    ("communication", "Communication", "Soft Skill", ["soft"]),
    ("leadership", "Leadership", "Soft Skill", ["soft"]),
]

_EMPLOYEES = [
    ("alice", "Alice Chen", "Engineering", "Senior Backend Engineer", 8,
     "Builds Python services and data pipelines."),
    ("bob", "Bob Martins", "Data", "ML Engineer", 5,
     "Trains and ships machine learning models."),
    ("carol", "Carol Singh", "Engineering", "Frontend Lead", 10,
     "Leads the web platform team, React and TypeScript."),
    ("dan", "Dan Okafor", "Platform", "DevOps Engineer", 6,
     "Runs Kubernetes clusters on AWS."),
    ("eve", "Eve Laurent", "Data", "Data Analyst", 3,
     "SQL, dashboards and analysis for product teams."),
    ("frank", "Frank Meyer", "Engineering", "Full-stack Developer", 4,
     "Node.js APIs with Next.js frontends."),
]

_HAS_SKILL = [
    # employee, skill, proficiency, years, certified
    ("alice", "python", 5, 8, True), ("alice", "postgresql", 4, 6, False),
    ("alice", "docker", 3, 4, False), ("alice", "problem_solving", 4, None, False),
    ("bob", "python", 4, 5, False), ("bob", "ml", 5, 5, True), ("bob", "dl", 4, 3, False),
    ("bob", "nlp", 3, 2, False), ("bob", "data_analysis", 3, 4, False),
    ("carol", "javascript", 5, 10, False), ("carol", "typescript", 5, 6, True),
    ("carol", "react", 5, 7, True), ("carol", "leadership", 4, None, False),
    ("carol", "communication", 4, None, False),
    ("dan", "docker", 5, 6, True), ("dan", "kubernetes", 5, 5, True), ("dan", "aws", 4, 5, True),
    ("dan", "cicd", 4, 5, False), ("dan", "python", 2, 2, False),
    ("eve", "sql", 4, 3, False), ("eve", "data_analysis", 4, 3, True), ("eve", "python", 2, 1, False),
    ("frank", "nodejs", 4, 4, False), ("frank", "nextjs", 3, 2, False),
    ("frank", "javascript", 4, 4, False), ("frank", "postgresql", 2, 2, False),
]

_RELATED = [
    ("ml", "dl", "child", 0.9), ("ml", "python", "commonly_used_with", 0.8),
    ("dl", "nlp", "related", 0.7), ("javascript", "typescript", "related", 0.9),
    ("react", "nextjs", "commonly_used_with", 0.85), ("docker", "kubernetes", "prerequisite", 0.8),
    ("sql", "postgresql", "parent", 0.85), ("data_analysis", "sql", "commonly_used_with", 0.75),
]

_COLLAB = [("alice", "bob", 2), ("alice", "dan", 1), ("bob", "eve", 3), ("carol", "frank", 4),
           ("dan", "alice", 1), ("frank", "carol", 4)]


def demo_directory() -> DirectoryPayload:
    return DirectoryPayload(
        skills=[Skill(id=f"skill:{k}", name=n, category=c, tags=t) for k, n, c, t in _SKILLS],
        employees=[
            Employee(
                id=f"employee:{k}", name=n, email=f"{k}@example.com", department=d, role=r,
                profile=EmployeeProfile(bio=bio, years_experience=y),
            )
            for k, n, d, r, y, bio in _EMPLOYEES
        ],
        possessions=[
            SkillPossession(employee_id=f"employee:{e}", skill_id=f"skill:{s}",
                            proficiency=p, years=y, certified=c)
            for e, s, p, y, c in _HAS_SKILL
        ],
        related=[
            {"source": f"skill:{a}", "target": f"skill:{b}", "relation_type": rt, "similarity_score": w}
            for a, b, rt, w in _RELATED
        ],
        projects=[
            Project(id="project:recsys", name="Recommendation Engine", status="planning",
                    description="ML-driven product recommendations", priority="high"),
            Project(id="project:portal", name="Customer Portal", status="active",
                    description="Next.js self-service portal", priority="medium"),
        ],
        requirements=[
            ProjectRequirement(project_id="project:recsys", skill_id="skill:ml", min_proficiency=3),
            ProjectRequirement(project_id="project:recsys", skill_id="skill:python", min_proficiency=3),
            ProjectRequirement(project_id="project:recsys", skill_id="skill:data_analysis",
                               importance="preferred", min_proficiency=2),
            ProjectRequirement(project_id="project:portal", skill_id="skill:react", min_proficiency=3),
            ProjectRequirement(project_id="project:portal", skill_id="skill:nodejs", min_proficiency=2),
        ],
        collaborations=[
            Collaboration(employee_id=f"employee:{a}", other_id=f"employee:{b}", count=n)
            for a, b, n in _COLLAB
        ],
    )
