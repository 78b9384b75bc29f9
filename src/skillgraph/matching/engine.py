# src/skillgraph/matching/engine.py
"""
Hybrid candidate matching: graph relevance (proficiency x skill relevance,
plus a certification bonus) blended with the semantic similarity between the
query and each employee's own embedding.

The engine holds no per-query state; every call builds its own lists, so one
instance can serve concurrent searches.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from skillgraph.retrieval.embeddings import EmbeddingProvider, cosine_similarity
from skillgraph.skills.models import (
    CandidateMatch, Employee, MatchedSkill, RequiredSkillCandidate,
    SearchFilters, SearchResult, Skill, SkillPossession,
)
from skillgraph.skills.query import GraphStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchingConfig:
    default_skill_relevance: float = 0.3   # skills that were never embedded
    relevance_floor: float = 0.4
    max_relevant_skills: int = 15
    default_semantic_score: float = 0.5    # employees that were never embedded
    certification_bonus: float = 0.1
    graph_weight: float = 0.6
    semantic_weight: float = 0.4


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


class MatchingEngine:
    def __init__(self, store: GraphStore, embedder: EmbeddingProvider,
                 config: Optional[MatchingConfig] = None):
        self.store = store
        self.embedder = embedder
        self.config = config or MatchingConfig()

    # ---------- scoring helpers ----------
    def skill_relevance(self, query_embedding: Sequence[float], skill: Skill) -> float:
        if not skill.embedding:
            return self.config.default_skill_relevance
        return cosine_similarity(query_embedding, skill.embedding)

    def relevant_skills(self, query_embedding: Sequence[float], skills: Iterable[Skill],
                        only_ids: Optional[Iterable[str]] = None) -> List[Tuple[Skill, float]]:
        """Skills above the relevance floor, most relevant first, capped at max_relevant_skills."""
        allowed = set(only_ids) if only_ids else None
        scored = []
        for skill in skills:
            if allowed is not None and skill.id not in allowed:
                continue
            r = self.skill_relevance(query_embedding, skill)
            if r > self.config.relevance_floor:
                scored.append((skill, r))
        scored.sort(key=lambda t: t[1], reverse=True)
        return scored[: self.config.max_relevant_skills]

    def graph_score_for(self, possessions: Iterable[SkillPossession],
                        relevance_by_skill: Dict[str, float]) -> float:
        """Sum of proficiency/5 * relevance over matched skills, plus a flat bonus per certified match."""
        score = 0.0
        for p in possessions:
            r = relevance_by_skill.get(p.skill_id)
            if r is None:
                continue
            score += (p.proficiency / 5.0) * r
            if p.certified:
                score += self.config.certification_bonus
        return score

    def semantic_score_for(self, query_embedding: Sequence[float], employee: Employee) -> float:
        if not employee.embedding:
            return self.config.default_semantic_score
        return cosine_similarity(query_embedding, employee.embedding)

    @staticmethod
    def _keep_edge(p: SkillPossession, filters: SearchFilters) -> bool:
        if filters.min_proficiency is not None and p.proficiency < filters.min_proficiency:
            return False
        if filters.certified and not p.certified:
            return False
        return True

    # ---------- public operations ----------
    def search(self, query: str, filters: Optional[SearchFilters] = None, limit: int = 10) -> SearchResult:
        started = time.perf_counter()
        elapsed = lambda: (time.perf_counter() - started) * 1000.0
        filters = filters or SearchFilters()
        try:
            qvec = self.embedder.embed(query)

            relevant = self.relevant_skills(qvec, self.store.skills(), filters.skill_ids or None)
            if not relevant:
                return SearchResult(candidates=[], total_matches=0,
                                    processing_time_ms=elapsed(), query_embedding=qvec)
            skill_by_id = {s.id: s for s, _ in relevant}
            relevance = {s.id: r for s, r in relevant}

            # (candidate, uncapped blend); the uncapped blend breaks ties between capped scores
            scored: List[Tuple[CandidateMatch, float]] = []
            for emp in self.store.employees(department=filters.department):
                edges = [p for p in self.store.possessions_of(emp.id)
                         if p.skill_id in relevance and self._keep_edge(p, filters)]
                if not edges:
                    continue
                matched = sorted(
                    (MatchedSkill(skill=skill_by_id[p.skill_id], proficiency=p.proficiency,
                                  relevance=relevance[p.skill_id]) for p in edges),
                    key=lambda m: m.relevance, reverse=True,
                )
                raw_graph = self.graph_score_for(edges, relevance)
                graph = _clamp01(raw_graph)
                semantic = _clamp01(self.semantic_score_for(qvec, emp))
                score = graph * self.config.graph_weight + semantic * self.config.semantic_weight
                raw_score = raw_graph * self.config.graph_weight + semantic * self.config.semantic_weight
                scored.append((CandidateMatch(
                    employee=emp, match_score=_clamp01(score), matched_skills=matched,
                    semantic_score=semantic, graph_score=graph,
                ), raw_score))

            # list.sort is stable: fully equal scores keep store order
            scored.sort(key=lambda t: (t[0].match_score, t[1]), reverse=True)
            candidates = [c for c, _ in scored]
            return SearchResult(
                candidates=candidates[: max(0, limit)],
                total_matches=len(candidates),
                processing_time_ms=elapsed(),
                query_embedding=qvec,
            )
        except Exception as e:
            logger.error("search failed for %r: %s: %s", query, type(e).__name__, e, exc_info=True)
            return SearchResult(candidates=[], total_matches=0, processing_time_ms=elapsed())

    def candidates_for_required_skills(self, required_skill_ids: Sequence[str],
                                       min_proficiency: int = 1) -> List[RequiredSkillCandidate]:
        """Graph-only ranking: matched count desc, then summed proficiency desc."""
        wanted = set(required_skill_ids)
        if not wanted:
            return []
        try:
            employees = {e.id: e for e in self.store.employees()}
            agg: Dict[str, Tuple[List[str], int]] = {}
            for p in self.store.possessions():
                if p.skill_id not in wanted or p.proficiency < min_proficiency:
                    continue
                if p.employee_id not in employees:
                    continue
                ids, total = agg.get(p.employee_id, ([], 0))
                ids.append(p.skill_id)
                agg[p.employee_id] = (ids, total + p.proficiency)
        except Exception as e:
            logger.error("required-skill lookup failed: %s: %s", type(e).__name__, e, exc_info=True)
            return []

        out = []
        for emp_id, (ids, total) in agg.items():
            matched = len(ids)
            out.append(RequiredSkillCandidate(
                employee=employees[emp_id], matched_count=matched, total_proficiency=total,
                matched_skill_ids=ids,
                match_score=_clamp01(matched / 5.0 * 0.5 + total / 25.0 * 0.5),
                graph_score=_clamp01(matched / 5.0),
            ))
        out.sort(key=lambda c: (c.matched_count, c.total_proficiency), reverse=True)
        return out

    def candidates_for_project(self, project_id: str) -> List[RequiredSkillCandidate]:
        try:
            reqs = self.store.project_requirements(project_id)
        except Exception as e:
            logger.error("project lookup failed for %s: %s: %s", project_id, type(e).__name__, e)
            return []
        if not reqs:
            return []
        return self.candidates_for_required_skills(
            [r.skill_id for r in reqs], min_proficiency=min(r.min_proficiency for r in reqs),
        )

    def semantic_skill_search(self, query: str, limit: int = 10,
                              threshold: float = 0.5) -> List[Tuple[Skill, float]]:
        try:
            qvec = self.embedder.embed(query)
            scored = [
                (s, cosine_similarity(qvec, s.embedding))
                for s in self.store.skills() if s.embedding
            ]
        except Exception as e:
            logger.error("skill search failed for %r: %s: %s", query, type(e).__name__, e)
            return []
        scored = [t for t in scored if t[1] > threshold]
        scored.sort(key=lambda t: t[1], reverse=True)
        return scored[:limit]
