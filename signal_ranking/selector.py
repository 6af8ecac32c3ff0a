"""
Rank/Filter Selector - Threshold ladder over composite scores.

1. keep candidates that have a score, first occurrence of each id
2. sort by overall, descending (ties keep input order)
3. keep overall >= min_score_threshold
4. too few and the pool is non-empty: use fallback_score_threshold
5. still too few: take the top min_results_to_return regardless
6. truncate to max_results_to_return

The ladder never returns an empty list while scored candidates exist
and min_results_to_return > 0.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Mapping, Optional, Sequence, TypeVar

from .config import DEFAULT_FALLBACK_CONFIG, FallbackConfig
from .models import CompositeScore


logger = logging.getLogger(__name__)

C = TypeVar("C")


class SelectionTier(Enum):
    """Which rung of the ladder produced the selection."""
    PRIMARY = "primary"
    FALLBACK = "fallback"
    TOP_N = "top_n"
    EMPTY = "empty"


@dataclass
class SelectionOutcome(Generic[C]):
    selected: list[C]
    tier: SelectionTier
    threshold: Optional[float]
    pool_size: int
    scores: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "selected_count": len(self.selected),
            "tier": self.tier.value,
            "threshold": self.threshold,
            "pool_size": self.pool_size,
            "scores": list(self.scores),
        }


def _candidate_id(candidate: Any) -> str:
    if isinstance(candidate, Mapping):
        return candidate["id"]
    return candidate.id


def select_candidates(
    candidates: Sequence[C],
    scores: Mapping[str, CompositeScore],
    config: Optional[FallbackConfig] = None,
    key: Callable[[C], str] = _candidate_id,
) -> SelectionOutcome[C]:
    """Run the selection ladder and report which tier was used."""
    config = config or DEFAULT_FALLBACK_CONFIG

    pool = []
    seen: set[str] = set()
    for candidate in candidates:
        candidate_id = key(candidate)
        if candidate_id in seen or candidate_id not in scores:
            continue
        seen.add(candidate_id)
        pool.append((candidate, scores[candidate_id]))
    pool.sort(key=lambda pair: pair[1].overall, reverse=True)

    if not pool:
        logger.info("No scored candidates to select from")
        return SelectionOutcome(selected=[], tier=SelectionTier.EMPTY, threshold=None, pool_size=0)

    tier = SelectionTier.PRIMARY
    threshold: Optional[float] = config.min_score_threshold
    filtered = [pair for pair in pool if pair[1].overall >= threshold]

    if len(filtered) < config.min_results_to_return:
        logger.info(
            f"Only {len(filtered)} candidates above {threshold}, "
            f"lowering threshold to {config.fallback_score_threshold}"
        )
        tier = SelectionTier.FALLBACK
        threshold = config.fallback_score_threshold
        filtered = [pair for pair in pool if pair[1].overall >= threshold]

    if len(filtered) < config.min_results_to_return:
        logger.info(
            f"Still only {len(filtered)} candidates, taking top {config.min_results_to_return}"
        )
        tier = SelectionTier.TOP_N
        threshold = None
        filtered = pool[:config.min_results_to_return]

    filtered = filtered[:config.max_results_to_return]

    logger.info(
        f"Selected {len(filtered)} of {len(pool)} candidates "
        f"(tier: {tier.value}, threshold: {threshold})"
    )
    return SelectionOutcome(
        selected=[c for c, _ in filtered],
        tier=tier,
        threshold=threshold,
        pool_size=len(pool),
        scores=[s.overall for _, s in filtered],
    )


def select_top_candidates(
    candidates: Sequence[C],
    scores: Mapping[str, CompositeScore],
    config: Optional[FallbackConfig] = None,
    key: Callable[[C], str] = _candidate_id,
) -> list[C]:
    """Best-first candidate subset after the fallback ladder."""
    return select_candidates(candidates, scores, config, key).selected
