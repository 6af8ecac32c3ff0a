"""
Active Hiring Signal - Open roles and how relevant and recent they are.

Raw points (max 70, normalized to 0-100):
- has active jobs     30
- job count bonus     2 / 4 / 6 / 8 / 10
- title relevance     up to 20 (share of jobs matching skills or domain keywords)
- recent postings     up to 10 (share of jobs posted in the last 30 days)

This signal is optional. Registering it alongside the four default
signals requires rebalanced weights (see config.rebalance_weights).
The module-level helpers score raw postings without a full context.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..base import WeightedProvider
from ..cache import TTLCache
from ..config import ACTIVE_HIRING_WEIGHT
from ..models import JobPosting, ScoringContext, SignalName, SignalResult
from ..utils import round_half_up, round_to


logger = logging.getLogger(__name__)


POINTS_HAS_ACTIVE_JOBS = 30
POINTS_JOB_COUNT_BONUS = 10
POINTS_TITLE_RELEVANCE = 20
POINTS_RECENT_POSTINGS = 10
MAX_RAW_POINTS = 70

RECENT_JOB_DAYS = 30
MAX_JOBS_TO_ANALYZE = 25
NO_JOBS_CONFIDENCE = 0.5

DOMAIN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "finance": ("financial", "analyst", "investment", "portfolio", "accounting", "banking", "risk", "trading", "cfa", "cpa"),
    "engineering": ("engineer", "developer", "software", "technical", "architect", "devops", "data", "cloud", "backend", "frontend"),
    "marketing": ("marketing", "digital", "brand", "content", "social", "seo", "growth", "campaign", "advertising"),
    "operations": ("operations", "supply chain", "logistics", "process", "lean", "project manager", "procurement"),
    "healthcare": ("healthcare", "medical", "clinical", "patient", "nursing", "pharma", "biomedical"),
    "hr": ("human resources", "recruiter", "talent", "hr manager", "people operations", "workforce"),
    "sales": ("sales", "account executive", "business development", "customer success", "client"),
    "design": ("designer", "ux", "ui", "product design", "creative", "visual", "graphic"),
}
DEFAULT_KEYWORDS = ("analyst", "associate", "coordinator", "specialist", "manager")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def domain_keywords(domain: str) -> tuple[str, ...]:
    lowered = (domain or "").lower()
    for key, keywords in DOMAIN_KEYWORDS.items():
        if key in lowered:
            return keywords
    return DEFAULT_KEYWORDS


def job_count_bonus(job_count: int) -> int:
    if job_count <= 0:
        return 0
    if job_count == 1:
        return 2
    if job_count <= 3:
        return 4
    if job_count <= 5:
        return 6
    if job_count <= 10:
        return 8
    return POINTS_JOB_COUNT_BONUS


def title_relevance(
    jobs: Sequence[JobPosting],
    skills: Sequence[str],
    domain: str,
) -> tuple[int, int, list[str]]:
    """Return (points, relevant job count, up to five relevant titles)."""
    if not jobs or not skills:
        return 0, 0, []

    normalized_skills = [s.lower().strip() for s in skills]
    keywords = domain_keywords(domain)

    relevant = 0
    samples: list[str] = []
    for job in jobs:
        text = f"{job.title.lower()} {(job.description or '').lower()}"

        skill_match = any(
            skill in text or any(len(word) > 3 and word in text for word in skill.split())
            for skill in normalized_skills
        )
        domain_match = any(keyword in text for keyword in keywords)

        if skill_match or domain_match:
            relevant += 1
            if len(samples) < 5:
                samples.append(job.title)

    points = round_half_up(relevant / len(jobs) * POINTS_TITLE_RELEVANCE)
    return points, relevant, samples


def recent_postings(jobs: Sequence[JobPosting], now: datetime) -> tuple[int, int]:
    """Return (points, count of jobs posted within RECENT_JOB_DAYS)."""
    threshold = now - timedelta(days=RECENT_JOB_DAYS)
    recent = sum(
        1 for job in jobs
        if job.posted_datetime is not None and job.posted_datetime >= threshold
    )
    if recent == 0 or not jobs:
        return 0, 0
    return round_half_up(recent / len(jobs) * POINTS_RECENT_POSTINGS), recent


def _normalize(raw_points: int) -> int:
    return round_half_up(raw_points / MAX_RAW_POINTS * 100)


def calculate_hiring_score(
    job_postings: Any,
    skills: Sequence[str] = (),
    domain: str = "",
    now: Optional[datetime] = None,
) -> int:
    """Hiring score (0-100) from raw postings, for use before full ranking."""
    jobs = JobPosting.parse_many(job_postings)[:MAX_JOBS_TO_ANALYZE]
    if not jobs:
        return 0

    relevance_points, _, _ = title_relevance(jobs, skills, domain)
    recent_points, _ = recent_postings(jobs, now or _utcnow())
    raw = POINTS_HAS_ACTIVE_JOBS + job_count_bonus(len(jobs)) + relevance_points + recent_points
    return _normalize(raw)


def has_active_jobs(job_postings: Any) -> bool:
    return bool(JobPosting.parse_many(job_postings))


def get_hiring_stats(postings_by_candidate: Iterable[Any]) -> dict[str, Any]:
    """Posting counts across candidates."""
    with_jobs = 0
    without_jobs = 0
    total = 0

    for raw in postings_by_candidate:
        count = len(JobPosting.parse_many(raw))
        if count:
            with_jobs += 1
            total += count
        else:
            without_jobs += 1

    return {
        "companies_with_jobs": with_jobs,
        "companies_without_jobs": without_jobs,
        "total_job_postings": total,
        "average_jobs_per_company": round_to(total / with_jobs, 1) if with_jobs else 0,
    }


class ActiveHiringProvider(WeightedProvider):
    """Scores open roles already attached to the candidate or the request."""

    SIGNAL_NAME = SignalName.ACTIVE_HIRING.value
    DISPLAY_NAME = "Active Hiring"
    DEFAULT_WEIGHT = ACTIVE_HIRING_WEIGHT

    def __init__(
        self,
        weight: Optional[float] = None,
        cache: Optional[TTLCache] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(weight=weight, cache=cache)
        self._clock = clock

    async def evaluate(self, context: ScoringContext) -> SignalResult:
        jobs = context.job_postings[:MAX_JOBS_TO_ANALYZE]

        if not jobs:
            return SignalResult.no_data(
                0, NO_JOBS_CONFIDENCE, ("No active job postings found",),
                detail={"has_active_jobs": False, "job_count": 0},
            )

        count_points = job_count_bonus(len(jobs))
        relevance_points, relevant, samples = title_relevance(
            jobs, context.required_skills, context.domain,
        )
        recent_points, recent = recent_postings(jobs, self._clock())

        raw = POINTS_HAS_ACTIVE_JOBS + count_points + relevance_points + recent_points
        score = _normalize(raw)

        confidence = min(1.0, len(jobs) / 10)
        if relevant > 0:
            confidence += 0.2
        if recent > 0:
            confidence += 0.1
        confidence = min(1.0, round_to(confidence, 2))

        return SignalResult(
            score=score,
            confidence=confidence,
            evidence=self._describe(len(jobs), relevant, recent, samples),
            detail=self._detail(len(jobs), relevant, recent, samples, {
                "has_active_jobs_points": POINTS_HAS_ACTIVE_JOBS,
                "job_count_points": count_points,
                "relevance_points": relevance_points,
                "recent_points": recent_points,
                "raw_total": raw,
                "normalized": score,
            }),
        )

    @staticmethod
    def _detail(
        job_count: int,
        relevant: int,
        recent: int,
        samples: list[str],
        breakdown: Mapping[str, int],
    ) -> dict[str, Any]:
        return {
            "has_active_jobs": True,
            "job_count": job_count,
            "relevant_job_count": relevant,
            "recent_job_count": recent,
            "sample_relevant_jobs": samples,
            "breakdown": dict(breakdown),
        }

    @staticmethod
    def _describe(job_count: int, relevant: int, recent: int, samples: list[str]) -> tuple[str, ...]:
        def plural(n: int) -> str:
            return "" if n == 1 else "s"

        evidence = [f"{job_count} active job posting{plural(job_count)}"]
        if relevant > 0:
            evidence.append(f"{relevant} job{plural(relevant)} relevant to required skills")
            if samples:
                evidence.append("Relevant roles: " + ", ".join(samples[:3]))
        if recent > 0:
            evidence.append(f"{recent} job{plural(recent)} posted in last {RECENT_JOB_DAYS} days")
        return tuple(evidence)
