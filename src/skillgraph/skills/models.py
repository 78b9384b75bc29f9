from typing import Annotated, List, Literal, Optional
from pydantic import BaseModel, Field

ProjectStatus = Literal["planning", "active", "completed", "on_hold", "cancelled"]
SkillImportance = Literal["required", "preferred", "nice_to_have"]
SkillRelation = Literal[
    "parent", "child", "synonym", "prerequisite", "commonly_used_with", "alternative", "related"
]

# open-ended: any string is accepted as a category
SKILL_CATEGORIES = [
    "Programming Language", "Frontend Framework", "Backend Framework", "Database",
    "DevOps", "Cloud Platform", "AI/ML", "Data Science", "Query Language",
    "Runtime", "Soft Skill",
]

# 1 (novice) .. 5 (expert)
Proficiency = Annotated[int, Field(ge=1, le=5)]

# ---------------- directory entities ----------------

class EmployeeProfile(BaseModel):
    bio: Optional[str] = None
    location: Optional[str] = None
    years_experience: Optional[float] = None
    education: Optional[str] = None
    certifications: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)

class Employee(BaseModel):
    id: str = Field(..., description="Stable identity, e.g. 'employee:alice'")
    name: str
    email: str = ""
    department: str = ""
    role: str = ""
    avatar_url: Optional[str] = None
    profile: Optional[EmployeeProfile] = None
    embedding: Optional[List[float]] = None

class Skill(BaseModel):
    id: str = Field(..., description="Stable identity, e.g. 'skill:python'")
    name: str
    category: str = "Other"
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    embedding: Optional[List[float]] = None

class SkillPossession(BaseModel):
    """has_skill edge (employee -> skill)."""
    employee_id: str
    skill_id: str
    proficiency: Proficiency
    years: Optional[float] = None
    certified: bool = False
    notes: Optional[str] = None

class EmployeeSkill(BaseModel):
    skill: Skill
    proficiency: Proficiency
    years: Optional[float] = None
    certified: bool = False

class SkillHolder(BaseModel):
    employee: Employee
    proficiency: Proficiency
    years: Optional[float] = None
    certified: bool = False

class RelatedSkill(BaseModel):
    skill: Skill
    relation_type: SkillRelation = "related"
    similarity_score: float = Field(0.5, ge=0, le=1)

class Project(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    status: ProjectStatus = "planning"
    priority: Optional[str] = None

class ProjectRequirement(BaseModel):
    project_id: str
    skill_id: str
    importance: SkillImportance = "required"
    min_proficiency: int = Field(1, ge=1, le=5)

class Collaboration(BaseModel):
    employee_id: str
    other_id: str
    count: int = Field(1, ge=1)

class DirectoryPayload(BaseModel):
    """Bulk import shape for seeding a store."""
    employees: List[Employee] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    possessions: List[SkillPossession] = Field(default_factory=list)
    related: List[dict] = Field(default_factory=list)   # {"source","target","relation_type","similarity_score"}
    projects: List[Project] = Field(default_factory=list)
    requirements: List[ProjectRequirement] = Field(default_factory=list)
    collaborations: List[Collaboration] = Field(default_factory=list)

# ---------------- matching ----------------

class SearchFilters(BaseModel):
    department: Optional[str] = None
    min_proficiency: Optional[int] = Field(None, ge=1, le=5)
    certified: Optional[bool] = None
    skill_ids: List[str] = Field(default_factory=list)

class MatchedSkill(BaseModel):
    skill: Skill
    proficiency: int
    relevance: float

class CandidateMatch(BaseModel):
    employee: Employee
    match_score: float
    matched_skills: List[MatchedSkill] = Field(default_factory=list)
    semantic_score: float
    graph_score: float

class SearchResult(BaseModel):
    candidates: List[CandidateMatch] = Field(default_factory=list)
    total_matches: int = 0
    processing_time_ms: float = 0.0
    query_embedding: Optional[List[float]] = None

class RequiredSkillCandidate(BaseModel):
    employee: Employee
    matched_count: int
    total_proficiency: int
    matched_skill_ids: List[str] = Field(default_factory=list)
    match_score: float = 0.0
    graph_score: float = 0.0

# ---------------- team builder ----------------

class TeamMember(BaseModel):
    id: str
    name: str
    role: str = ""
    department: str = ""
    skills: List[str] = Field(default_factory=list)
    skill_coverage: float = 0.0
    compatibility_score: float = 0.0
    total_score: float = 0.0

class TeamResult(BaseModel):
    team: List[TeamMember] = Field(default_factory=list)
    required_skills: List[str] = Field(default_factory=list)
    skills_covered: List[str] = Field(default_factory=list)
    skills_uncovered: List[str] = Field(default_factory=list)
    explanation: str = ""
