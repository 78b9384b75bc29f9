# src/skillgraph/assistant/chat.py
"""
Conversational skill search.

The LLM is asked to answer conversationally and to end every reply with a
fenced ```json {"skills": [...]} ``` block. The block is parsed, stripped from
the visible answer, and the extracted skill names are looked up in the graph.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_openai import ChatOpenAI

from skillgraph.matching.engine import MatchingEngine
from skillgraph.skills.models import Employee, RequiredSkillCandidate
from skillgraph.skills.query import GraphStore
from skillgraph.utils.config import settings

logger = logging.getLogger(__name__)

HISTORY_TURNS = 10
SORRY = "Sorry, I could not process your request right now. Please try again."

KNOWN_SKILLS = (
    "Python, JavaScript, TypeScript, Rust, React, Next.js, Node.js, Machine Learning, Deep Learning, "
    "Natural Language Processing, Data Analysis, Docker, Kubernetes, AWS, CI/CD, PostgreSQL, SQL, "
    "Problem Solving, Communication, Leadership"
)

SYSTEM_PROMPT = """You are a helpful HR assistant that helps find employees based on their skills.
When a user asks about finding someone with specific skills:
1. Identify the skills mentioned in the query
2. Map them to common technical skill names

IMPORTANT: Always finish your response with a JSON block listing the extracted skills:
```json
{{"skills": ["skill1", "skill2"]}}
```

Match skills to these exact names when possible:
{known_skills}

Examples:
- "I need someone who knows JS" -> ["JavaScript"]
- "Looking for ML expertise" -> ["Machine Learning"]
- "Need React developer" -> ["React", "JavaScript"]

Be conversational but always include the JSON block."""

TEAM_PROMPT = """You are a skill extraction assistant. Extract skill names from the user's project requirements.
Return ONLY a JSON array of skill names. Match to these known skills when possible:
{known_skills}

Examples:
- "I need a team for React development" -> ["React", "JavaScript"]
- "ML recommendation engine" -> ["Machine Learning", "Python", "Data Analysis"]"""

CHAT_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    MessagesPlaceholder("history"),
    ("human", "{message}"),
]).partial(known_skills=KNOWN_SKILLS)

TEAM_SKILLS_PROMPT = ChatPromptTemplate.from_messages([
    ("system", TEAM_PROMPT),
    ("human", "{prompt}"),
]).partial(known_skills=KNOWN_SKILLS)

_JSON_BLOCK = re.compile(r"```json\s*([\s\S]*?)\s*```")
_JSON_ARRAY = re.compile(r"\[[\s\S]*?\]")


def _llm(temperature: float = 0.7, max_tokens: int = 500) -> ChatOpenAI:
    return ChatOpenAI(
        model=settings.OPENAI_MODEL,
        api_key=settings.OPENAI_API_KEY or None,
        base_url=settings.OPENAI_BASE_URL or None,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=settings.OPENAI_TIMEOUT,
        max_retries=settings.OPENAI_MAX_RETRIES,
    )


# ---------- parsing ----------
def _as_names(items) -> List[str]:
    if not isinstance(items, list):
        return []
    return [str(s).strip() for s in items if str(s).strip()]

def parse_skill_block(reply: str) -> List[str]:
    """Skill names from the trailing ```json {"skills": [...]} ``` block; [] when absent or malformed."""
    m = _JSON_BLOCK.search(reply or "")
    if not m:
        return []
    try:
        data = json.loads(m.group(1))
    except json.JSONDecodeError:
        return []
    return _as_names(data.get("skills")) if isinstance(data, dict) else []

def strip_skill_block(reply: str) -> str:
    return _JSON_BLOCK.sub("", reply or "", count=1).strip()

def parse_skill_array(content: str) -> List[str]:
    m = _JSON_ARRAY.search(content or "")
    if not m:
        return []
    try:
        return _as_names(json.loads(m.group(0)))
    except json.JSONDecodeError:
        return []


# ---------- formatting ----------
class SkillHit(BaseModel):
    employee: Employee
    skill_name: str
    proficiency: int
    certified: bool = False

def find_skill_holders(store: GraphStore, skill_names: Sequence[str]) -> List[SkillHit]:
    """has_skill edges whose skill name matches (case-insensitive), highest proficiency first."""
    hits: List[SkillHit] = []
    for skill in store.skills_by_name(skill_names):
        for h in store.holders_of(skill.id):
            hits.append(SkillHit(employee=h.employee, skill_name=skill.name,
                                 proficiency=h.proficiency, certified=h.certified))
    hits.sort(key=lambda h: h.proficiency, reverse=True)
    return hits

def format_search_results(hits: Sequence[SkillHit], skills: Sequence[str]) -> str:
    if not hits:
        return f"\n\nI searched our directory but couldn't find any employees with {' or '.join(skills)} skills."

    grouped: Dict[str, List[SkillHit]] = {}
    for h in hits:
        grouped.setdefault(h.employee.id, []).append(h)

    out = f"\n\n**Found {len(grouped)} employee(s) with {', '.join(skills)} skills:**\n\n"
    for rank, rows in enumerate(grouped.values(), start=1):
        emp = rows[0].employee
        skills_text = ", ".join(
            f"{r.skill_name} ({r.proficiency}/5){' ✓' if r.certified else ''}" for r in rows
        )
        out += f"{rank}. **{emp.name}** - {emp.role} ({emp.department})\n"
        out += f"   Skills: {skills_text}\n\n"
    return out


# ---------- LLM entry points ----------
def extract_skills(text: str, llm=None) -> List[str]:
    chain = CHAT_PROMPT | (llm if llm is not None else _llm(temperature=0.0)) | StrOutputParser()
    return parse_skill_block(chain.invoke({"history": [], "message": text}))

def extract_team_skills(prompt: str, llm=None) -> List[str]:
    chain = TEAM_SKILLS_PROMPT | (llm if llm is not None else _llm(temperature=0.3, max_tokens=200)) | StrOutputParser()
    return parse_skill_array(chain.invoke({"prompt": prompt}))


class ChatReply(BaseModel):
    message: str
    skills: List[str] = Field(default_factory=list)
    candidates: List[RequiredSkillCandidate] = Field(default_factory=list)
    raw: str = ""


class SkillAssistant:
    def __init__(self, store: GraphStore, engine: MatchingEngine, llm=None):
        self.store = store
        self.engine = engine
        self._llm = llm

    def _chain(self):
        return CHAT_PROMPT | (self._llm if self._llm is not None else _llm()) | StrOutputParser()

    def reply(self, message: str, history: Optional[List[dict]] = None) -> ChatReply:
        """history: [{"role": "user"|"assistant", "content": str}, ...], oldest first."""
        turns = [
            {"role": h["role"], "content": h["content"]}
            for h in (history or [])[-HISTORY_TURNS:]
            if h.get("role") in ("user", "assistant") and h.get("content")
        ]
        try:
            raw = self._chain().invoke({"history": turns, "message": message})
        except Exception as e:
            logger.error("chat completion failed: %s: %s", type(e).__name__, e)
            return ChatReply(message=SORRY)

        skills = parse_skill_block(raw)
        text = strip_skill_block(raw) or SORRY
        if not skills:
            return ChatReply(message=text, raw=raw)

        try:
            hits = find_skill_holders(self.store, skills)
            skill_ids = [s.id for s in self.store.skills_by_name(skills)]
        except Exception as e:
            logger.error("skill lookup failed: %s: %s", type(e).__name__, e)
            hits, skill_ids = [], []
        candidates = self.engine.candidates_for_required_skills(skill_ids) if skill_ids else []
        return ChatReply(message=text + format_search_results(hits, skills), skills=skills,
                         candidates=candidates, raw=raw)
