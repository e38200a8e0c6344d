"""Combine search relevance with skill overlap into one ranking.

skill_score = required_weight * required_ratio + preferred_weight * preferred_ratio,
where a ratio whose skill set is empty contributes 0. In job-match mode
overall = semantic_weight * semantic + skill_weight * skill_score; every
other mode keeps the semantic score unchanged.

Skills are compared by canonical key (alias table plus case folding), so
"JS" matches "JavaScript" while "Java" does not.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from recruitsearch.core.config import ScoringConfig
from recruitsearch.core.schemas import MatchResult, SearchMode
from recruitsearch.query.vocabulary import canonical_key
from recruitsearch.search.backend import SearchHit
from recruitsearch.search.schema import KEY_FIELD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkillMatch:
    score: float
    required_matched: list[str]
    preferred_matched: list[str]


@dataclass
class Ranking:
    """Ranked results plus per-candidate errors that did not abort the request."""

    results: list[MatchResult] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)


def _matched(wanted: list[str], have: set[str], aliases: dict[str, str]) -> tuple[list[str], int]:
    """Return the wanted skills present in ``have`` and the distinct wanted count."""
    matched: list[str] = []
    seen: set[str] = set()
    for skill in wanted:
        key = canonical_key(skill, aliases)
        if not key or key in seen:
            continue
        seen.add(key)
        if key in have:
            matched.append(skill.strip())
    return matched, len(seen)


def skill_match(
    candidate_skills: Iterable[str],
    required: list[str],
    preferred: list[str],
    config: ScoringConfig,
) -> SkillMatch:
    aliases = config.skill_aliases
    have = {canonical_key(s, aliases) for s in candidate_skills if s and s.strip()}

    score = 0.0
    req_matched, req_total = _matched(required, have, aliases)
    if req_total:
        score += config.required_weight * (len(req_matched) / req_total)
    pref_matched, pref_total = _matched(preferred, have, aliases)
    if pref_total:
        score += config.preferred_weight * (len(pref_matched) / pref_total)

    return SkillMatch(
        score=min(1.0, score),
        required_matched=req_matched,
        preferred_matched=pref_matched,
    )


def overall_score(semantic: float, skill: float, mode: SearchMode | str, config: ScoringConfig) -> float:
    if SearchMode(mode) is SearchMode.JOB_MATCH:
        return config.semantic_weight * semantic + config.skill_weight * skill
    return semantic


def score_hit(
    hit: SearchHit,
    mode: SearchMode | str,
    required: list[str],
    preferred: list[str],
    config: ScoringConfig,
) -> MatchResult:
    doc = hit.document
    candidate_id = doc.get(KEY_FIELD) or doc.get("id")
    if not candidate_id:
        msg = f"Search result has no {KEY_FIELD}"
        raise ValueError(msg)

    skills = doc.get("skills") or []
    if not isinstance(skills, list):
        msg = f"skills must be a list, got {type(skills).__name__}"
        raise ValueError(msg)

    match = skill_match(skills, required, preferred, config)
    semantic = float(hit.score)
    return MatchResult(
        candidate_id=str(candidate_id),
        document=doc,
        semantic_score=semantic,
        skill_score=match.score,
        overall_score=overall_score(semantic, match.score, mode, config),
        matched_skills=match.required_matched + match.preferred_matched,
        required_matched=match.required_matched,
        preferred_matched=match.preferred_matched,
        highlights=hit.highlights,
        captions=hit.captions,
    )


def rank_results(
    hits: list[SearchHit],
    mode: SearchMode | str,
    config: ScoringConfig,
    required: list[str] | None = None,
    preferred: list[str] | None = None,
) -> Ranking:
    """Score every hit and sort by overall score desc, candidate id asc on ties.

    A hit that cannot be scored becomes an error entry; the rest still rank.
    """
    ranking = Ranking()
    for position, hit in enumerate(hits):
        try:
            ranking.results.append(
                score_hit(hit, mode, list(required or []), list(preferred or []), config)
            )
        except (ValueError, TypeError) as e:
            logger.warning("Could not score result #%d: %s", position, e, exc_info=True)
            ranking.errors.append({
                "position": position,
                "candidateId": hit.document.get(KEY_FIELD),
                "error": str(e),
            })

    ranking.results.sort(key=lambda r: (-r.overall_score, r.candidate_id))
    return ranking
