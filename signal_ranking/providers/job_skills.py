"""
Job-Skills Match Signal - How well a candidate's open roles match the required skills.

Two scoring paths:
- semantic: embeddings of job texts and skills, cosine similarity
- keyword: token overlap, used when no embedding source is configured
  or the semantic path fails

Keyword scores are capped at 70 and carry a fixed 0.5 confidence.
"""

import logging
import re
from typing import Any, Optional, Sequence

from ..base import WeightedProvider
from ..cache import TTLCache
from ..models import JobPosting, ScoringContext, SignalName, SignalResult
from ..sources import EmbeddingSource, cosine_similarity
from ..utils import round_half_up, round_to


logger = logging.getLogger(__name__)


MATCH_THRESHOLD = 0.45          # minimum cosine similarity for a semantic match
KEYWORD_MATCH_THRESHOLD = 0.15  # minimum token overlap for a keyword match
KEYWORD_SCORE_CAP = 70
KEYWORD_CONFIDENCE = 0.5

MAX_JOBS_TO_PROCESS = 15
MAX_SKILLS_TO_PROCESS = 20
DESCRIPTION_CHARS = 200

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
    "be", "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "need", "our", "your",
})

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def tokenize(text: str) -> set[str]:
    """Lowercase keywords longer than two characters, stop words removed."""
    cleaned = _NON_ALNUM.sub(" ", text.lower())
    return {t for t in cleaned.split() if len(t) > 2 and t not in STOP_WORDS}


def token_overlap(first: set[str], second: set[str]) -> float:
    """Shared tokens over the size of the smaller set."""
    if not first or not second:
        return 0.0
    return len(first & second) / min(len(first), len(second))


class JobSkillsMatchProvider(WeightedProvider):
    """Job postings vs. required skills."""

    SIGNAL_NAME = SignalName.JOB_SKILLS_MATCH.value
    DISPLAY_NAME = "Job-Skills Match"
    DEFAULT_WEIGHT = 0.35

    def __init__(
        self,
        embeddings: Optional[EmbeddingSource] = None,
        weight: Optional[float] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        super().__init__(weight=weight, cache=cache)
        self._embeddings = embeddings

    async def evaluate(self, context: ScoringContext) -> SignalResult:
        jobs = context.job_postings
        skills = context.required_skills

        if not jobs:
            return SignalResult.no_data(
                0, 0, ("No job postings found for this company",),
                error="No job postings available",
            )

        if not skills:
            return SignalResult.no_data(
                0, 0, ("No required skills to match against",),
                error="No required skills provided",
            )

        limited_jobs = jobs[:MAX_JOBS_TO_PROCESS]
        limited_skills = skills[:MAX_SKILLS_TO_PROCESS]

        if self._embeddings is None or not self._embeddings.is_configured:
            logger.debug(f"{context.candidate_id}: embeddings unavailable, using keyword matching")
            return self.keyword_match(limited_jobs, limited_skills)

        try:
            return await self.semantic_match(limited_jobs, limited_skills)
        except Exception as e:
            logger.warning(f"{context.candidate_id}: semantic matching failed ({e}), using keyword matching")
            return self.keyword_match(limited_jobs, limited_skills)

    # =========================================================
    # SEMANTIC PATH
    # =========================================================

    async def semantic_match(
        self,
        jobs: Sequence[JobPosting],
        skills: Sequence[str],
    ) -> SignalResult:
        job_texts = [
            f"{job.title}. {job.description[:DESCRIPTION_CHARS]}" if job.description else job.title
            for job in jobs
        ]
        skill_texts = [f"Professional skill: {skill}" for skill in skills]
        all_texts = job_texts + skill_texts

        key = "|".join(all_texts)
        vectors = await self._cached_fetch(
            key, self._embeddings, lambda: self._embeddings.embed(all_texts),
        )
        if vectors is None or len(vectors) != len(all_texts):
            raise ValueError("Embedding count mismatch")

        job_vectors = vectors[:len(job_texts)]
        skill_vectors = vectors[len(job_texts):]

        matches: list[dict[str, Any]] = []
        matched_jobs: set[str] = set()
        matched_skills: set[int] = set()

        for i, job_vector in enumerate(job_vectors):
            for j, skill_vector in enumerate(skill_vectors):
                similarity = cosine_similarity(job_vector, skill_vector)
                if similarity >= MATCH_THRESHOLD:
                    matches.append({
                        "job": jobs[i].title,
                        "skill": skills[j],
                        "similarity": similarity,
                    })
                    matched_jobs.add(jobs[i].title.strip().lower())
                    matched_skills.add(j)

        matches.sort(key=lambda m: m["similarity"], reverse=True)

        avg_similarity = sum(m["similarity"] for m in matches) / len(matches) if matches else 0.0
        job_coverage = len(matched_jobs) / len(jobs)
        skill_coverage = len(matched_skills) / len(skills)

        score = round_half_up(avg_similarity * 50 + skill_coverage * 30 + job_coverage * 20)
        confidence = self.semantic_confidence(len(jobs), len(skills), len(matches))

        return SignalResult(
            score=score,
            confidence=confidence,
            evidence=self._describe_semantic(matches, len(matched_skills), len(skills)),
            detail={
                "method": "semantic_embedding",
                "matches": matches[:10],
                "job_count": len(jobs),
                "skill_count": len(skills),
                "match_count": len(matches),
                "avg_similarity": avg_similarity,
                "skill_coverage": skill_coverage,
                "job_coverage": job_coverage,
            },
        )

    @staticmethod
    def semantic_confidence(job_count: int, skill_count: int, match_count: int) -> float:
        data_score = min(1.0, (job_count + skill_count) / 20)
        pairs = job_count * skill_count
        match_ratio = match_count / pairs if pairs else 0.0
        match_score = 1.0 if 0.01 < match_ratio < 0.5 else 0.7
        return round_to(data_score * 0.6 + match_score * 0.4, 2)

    @staticmethod
    def _describe_semantic(
        matches: list[dict[str, Any]],
        matched_skill_count: int,
        total_skill_count: int,
    ) -> tuple[str, ...]:
        if not matches:
            return ("No strong job-skill matches found",)

        top = matches[0]
        evidence = [
            f'Best match: "{top["job"]}" <-> "{top["skill"]}" ({round_half_up(top["similarity"] * 100)}%)',
            f"{round_half_up(matched_skill_count / total_skill_count * 100)}% of required skills have matching job opportunities",
        ]
        if len(matches) > 5:
            evidence.append(f"{len(matches)} job-skill connections identified")
        return tuple(evidence)

    # =========================================================
    # KEYWORD PATH
    # =========================================================

    def keyword_match(
        self,
        jobs: Sequence[JobPosting],
        skills: Sequence[str],
    ) -> SignalResult:
        skill_tokens = {skill: tokenize(skill) for skill in skills}

        matches: list[dict[str, Any]] = []
        matched_skills: set[str] = set()

        for job in jobs:
            job_tokens = tokenize(f"{job.title} {job.description or ''}")
            for skill, tokens in skill_tokens.items():
                overlap = token_overlap(job_tokens, tokens)
                if overlap >= KEYWORD_MATCH_THRESHOLD:
                    matches.append({"job": job.title, "skill": skill, "overlap": overlap})
                    matched_skills.add(skill)

        matches.sort(key=lambda m: m["overlap"], reverse=True)

        avg_overlap = sum(m["overlap"] for m in matches) / len(matches) if matches else 0.0
        skill_coverage = len(matched_skills) / len(skills)

        base_score = round_half_up(avg_overlap * 40 + skill_coverage * 40)
        match_bonus = min(20, len(matches) * 5)
        score = min(base_score + match_bonus, KEYWORD_SCORE_CAP)

        return SignalResult(
            score=score,
            confidence=KEYWORD_CONFIDENCE,
            evidence=(
                f"Keyword matching: {len(matches)} potential matches",
                f"Skills with job relevance: {len(matched_skills)}/{len(skills)}",
                "(Using keyword fallback - embeddings unavailable)",
            ),
            detail={
                "method": "keyword_fallback",
                "match_count": len(matches),
                "skill_coverage": skill_coverage,
                "top_matches": matches[:5],
            },
        )
