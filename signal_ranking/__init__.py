"""
Signal Ranking - Signal-driven candidate ranking.

Ranks candidate organizations against a request (required skills and a
domain) by combining independently computed signals into one weighted
composite score, then selecting the best candidates with a threshold
fallback ladder.

This package provides:
- Pluggable signal providers with a fixed, validated registry
- Concurrent per-candidate evaluation with per-provider and collective deadlines
- Weighted composite scoring with confidence tiers and detected flags
- Paced batch evaluation
- Rank/filter selection that degrades gracefully under sparse data

Usage:
    from signal_ranking import (
        ScoringRequest,
        SignalRankingConfig,
        SignalRankingService,
        build_default_registry,
    )

    registry = build_default_registry(news=news_source, people=people_source)
    service = SignalRankingService(registry, SignalRankingConfig.from_env())

    result = await service.rank(
        candidates,
        ScoringRequest(required_skills=("Python", "SQL"), domain="engineering"),
    )

    for candidate in result.selected:
        score = result.scores[candidate.id]
        print(f"{candidate.name}: {score.overall}/100 ({score.confidence.value})")

Default Signal Weights:
- job_skills_match: 0.35
- market_intelligence: 0.25
- department_fit: 0.20
- contact_quality: 0.20
"""

from .base import BaseSignalProvider, WeightedProvider
from .batch import BatchProcessor
from .cache import TTLCache
from .composite import CompositeScorer
from .config import (
    ACTIVE_HIRING_WEIGHT,
    DEFAULT_FALLBACK_CONFIG,
    DEFAULT_FLAG_RULES,
    DEFAULT_SIGNAL_WEIGHTS,
    BatchConfig,
    FallbackConfig,
    FlagRule,
    OrchestratorConfig,
    SignalRankingConfig,
    get_default_config,
    rebalance_weights,
)
from .exceptions import (
    CandidateEvaluationError,
    ConfigurationError,
    FallbackConfigError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    SignalProviderError,
    SignalRankingError,
    SourceFetchError,
    WeightConfigurationError,
)
from .logging_config import setup_logging
from .models import (
    Candidate,
    CompositeScore,
    ConfidenceLevel,
    JobPosting,
    ScoringContext,
    ScoringRequest,
    SignalIncident,
    SignalName,
    SignalResult,
    SignalStatus,
    StorableSignalRecord,
)
from .orchestrator import SignalOrchestrator
from .registry import ProviderRegistry
from .selector import (
    SelectionOutcome,
    SelectionTier,
    select_candidates,
    select_top_candidates,
)
from .service import (
    RankingResult,
    SignalRankingService,
    build_default_registry,
    prepare_signal_updates,
    to_storable,
)


__version__ = "1.0.0"

__all__ = [
    # Contract
    "BaseSignalProvider",
    "WeightedProvider",
    "ProviderRegistry",
    # Models
    "Candidate",
    "CompositeScore",
    "ConfidenceLevel",
    "JobPosting",
    "ScoringContext",
    "ScoringRequest",
    "SignalIncident",
    "SignalName",
    "SignalResult",
    "SignalStatus",
    "StorableSignalRecord",
    # Engine
    "SignalOrchestrator",
    "CompositeScorer",
    "BatchProcessor",
    "SelectionOutcome",
    "SelectionTier",
    "select_candidates",
    "select_top_candidates",
    "RankingResult",
    "SignalRankingService",
    "build_default_registry",
    "to_storable",
    "prepare_signal_updates",
    # Config
    "ACTIVE_HIRING_WEIGHT",
    "DEFAULT_FALLBACK_CONFIG",
    "DEFAULT_FLAG_RULES",
    "DEFAULT_SIGNAL_WEIGHTS",
    "BatchConfig",
    "FallbackConfig",
    "FlagRule",
    "OrchestratorConfig",
    "SignalRankingConfig",
    "get_default_config",
    "rebalance_weights",
    # Infrastructure
    "TTLCache",
    "setup_logging",
    # Exceptions
    "SignalRankingError",
    "ConfigurationError",
    "WeightConfigurationError",
    "FallbackConfigError",
    "SignalProviderError",
    "ProviderUnavailableError",
    "ProviderTimeoutError",
    "SourceFetchError",
    "CandidateEvaluationError",
]
