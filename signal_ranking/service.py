"""
Signal Ranking Service - Inbound boundary of the engine.

Takes a candidate set and a shared request, scores every candidate,
and returns the ordered selection together with all composite scores
so the caller can persist them.

Usage:
    registry = build_default_registry(
        embeddings=embedding_source,
        news=news_source,
        organizations=org_source,
        people=people_source,
    )
    service = SignalRankingService(registry, SignalRankingConfig.from_env())

    result = await service.rank(
        candidates,
        ScoringRequest(required_skills=("Python", "SQL"), domain="engineering"),
    )
    for candidate in result.selected:
        print(candidate.name, result.scores[candidate.id].overall)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union

from .batch import BatchProcessor
from .cache import TTLCache
from .composite import CompositeScorer
from .config import (
    ACTIVE_HIRING_WEIGHT,
    DEFAULT_SIGNAL_WEIGHTS,
    FallbackConfig,
    SignalRankingConfig,
    rebalance_weights,
)
from .exceptions import CandidateEvaluationError
from .models import (
    Candidate,
    CompositeScore,
    ScoringRequest,
    SignalName,
    StorableSignalRecord,
)
from .orchestrator import SignalOrchestrator
from .providers import (
    ActiveHiringProvider,
    ContactQualityProvider,
    DepartmentFitProvider,
    JobSkillsMatchProvider,
    MarketIntelligenceProvider,
)
from .registry import ProviderRegistry
from .selector import SelectionTier, select_candidates
from .sources import EmbeddingSource, NewsSource, OrganizationSource, PeopleSource


logger = logging.getLogger(__name__)


@dataclass
class RankingResult:
    """Ordered selection plus every candidate's composite score."""
    selected: list[Candidate]
    scores: dict[str, CompositeScore]
    tier: SelectionTier
    threshold: Optional[float]
    evaluated_count: int = 0
    error_count: int = 0
    fallback_config: Optional[FallbackConfig] = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "selected": [c.id for c in self.selected],
            "tier": self.tier.value,
            "threshold": self.threshold,
            "evaluated_count": self.evaluated_count,
            "error_count": self.error_count,
            "scores": {cid: score.to_dict() for cid, score in self.scores.items()},
        }


class SignalRankingService:
    """
    Scores and ranks candidates against a request.

    Only ConfigurationError escapes rank(); provider and candidate
    failures are folded into the returned scores.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        config: Optional[SignalRankingConfig] = None,
    ) -> None:
        self._config = config or SignalRankingConfig()
        self._registry = registry
        self._orchestrator = SignalOrchestrator(registry, self._config.orchestrator)
        self._scorer = CompositeScorer(registry, self._config.flag_rules)
        self._batch = BatchProcessor(self._orchestrator, self._scorer, self._config.batch)

    @property
    def orchestrator(self) -> SignalOrchestrator:
        return self._orchestrator

    @property
    def scorer(self) -> CompositeScorer:
        return self._scorer

    @property
    def batch_processor(self) -> BatchProcessor:
        return self._batch

    async def rank(
        self,
        candidates: Iterable[Union[Candidate, Mapping[str, Any]]],
        request: ScoringRequest,
        fallback_config: Optional[FallbackConfig] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RankingResult:
        """
        Score every candidate and select the best.

        Args:
            candidates: Candidate objects or plain mappings
            request: Required skills, domain and hints shared by all candidates
            fallback_config: Per-call override of the selection thresholds
            cancel_event: Set to stop before the next chunk

        Returns:
            RankingResult with the ordered selection and all scores
        """
        pool, rejected = self._prepare_pool(candidates)
        fallback = fallback_config or self._config.fallback

        logger.info(
            f"Ranking {len(pool)} candidates for domain {request.domain!r} "
            f"with {len(request.required_skills)} skills"
        )

        scores = await self._batch.evaluate_batch(pool, request, cancel_event=cancel_event)
        for candidate_id, score in rejected.items():
            scores.setdefault(candidate_id, score)
        outcome = select_candidates(pool, scores, fallback)

        return RankingResult(
            selected=outcome.selected,
            scores=scores,
            tier=outcome.tier,
            threshold=outcome.threshold,
            evaluated_count=len(scores),
            error_count=sum(1 for s in scores.values() if s.has_errors),
            fallback_config=fallback,
        )

    def _prepare_pool(
        self,
        candidates: Iterable[Union[Candidate, Mapping[str, Any]]],
    ) -> tuple[list[Candidate], dict[str, CompositeScore]]:
        """
        Convert inputs to Candidates, first occurrence of each id wins.

        A malformed input gets an error score under its id and is left
        out of the pool.
        """
        pool: list[Candidate] = []
        rejected: dict[str, CompositeScore] = {}
        seen: set[str] = set()

        for raw in candidates:
            try:
                candidate = raw if isinstance(raw, Candidate) else Candidate.from_dict(raw)
            except CandidateEvaluationError as e:
                candidate_id = e.candidate_id or ""
                if candidate_id in seen:
                    continue
                seen.add(candidate_id)
                logger.error(
                    f"Rejected candidate {candidate_id!r}: {e.message}",
                    extra={"candidate_id": candidate_id},
                )
                rejected[candidate_id] = self._scorer.error_score(e.message)
                continue

            if candidate.id in seen:
                logger.warning(f"Duplicate candidate id {candidate.id!r} skipped")
                continue
            seen.add(candidate.id)
            pool.append(candidate)

        return pool, rejected


# ============================================================
# REGISTRY FACTORY
# ============================================================


def build_default_registry(
    embeddings: Optional[EmbeddingSource] = None,
    news: Optional[NewsSource] = None,
    organizations: Optional[OrganizationSource] = None,
    people: Optional[PeopleSource] = None,
    include_hiring: bool = False,
    cache: Optional[TTLCache] = None,
) -> ProviderRegistry:
    """
    Registry with the built-in providers and default weights.

    With include_hiring the active hiring signal is added at its default
    weight and the other four are scaled down to keep the sum at 1.0.
    """
    weights = dict(DEFAULT_SIGNAL_WEIGHTS)
    if include_hiring:
        weights = rebalance_weights(weights, {SignalName.ACTIVE_HIRING.value: ACTIVE_HIRING_WEIGHT})

    providers = [
        JobSkillsMatchProvider(
            embeddings=embeddings,
            weight=weights[SignalName.JOB_SKILLS_MATCH.value],
            cache=cache,
        ),
        MarketIntelligenceProvider(
            news=news,
            weight=weights[SignalName.MARKET_INTELLIGENCE.value],
            cache=cache,
        ),
        DepartmentFitProvider(
            organizations=organizations,
            weight=weights[SignalName.DEPARTMENT_FIT.value],
            cache=cache,
        ),
        ContactQualityProvider(
            people=people,
            weight=weights[SignalName.CONTACT_QUALITY.value],
            cache=cache,
        ),
    ]
    if include_hiring:
        providers.append(ActiveHiringProvider(weight=weights[SignalName.ACTIVE_HIRING.value]))

    return ProviderRegistry(providers)


# ============================================================
# STORAGE HELPERS
# ============================================================


def to_storable(candidate_id: str, composite: CompositeScore) -> StorableSignalRecord:
    """Flatten a CompositeScore into `<signal>_score` entries plus summary fields."""
    return StorableSignalRecord(
        candidate_id=candidate_id,
        scores={f"{name}_score": score for name, score in composite.components.items()},
        composite_signal_score=composite.overall,
        signal_confidence=composite.confidence.value,
        signal_data=composite.to_dict(),
    )


def prepare_signal_updates(
    scores: Mapping[str, CompositeScore],
) -> list[tuple[str, StorableSignalRecord]]:
    """(candidate id, record) pairs for a batch update."""
    return [(cid, to_storable(cid, composite)) for cid, composite in scores.items()]


__all__ = [
    "RankingResult",
    "SignalRankingService",
    "build_default_registry",
    "to_storable",
    "prepare_signal_updates",
]
