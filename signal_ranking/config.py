"""
Signal Ranking - Configuration.

============================================================
PURPOSE
============================================================
Defines all configuration dataclasses and default values for
the signal ranking engine.

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable configurations (frozen dataclasses)
- Every config validates itself on construction
- Invalid configuration is a FATAL startup error
- Environment overrides through SignalRankingConfig.from_env()

============================================================
DEFAULTS
============================================================
Signal weights (sum to 1.0):
- job_skills_match:    0.35
- market_intelligence: 0.25
- department_fit:      0.20
- contact_quality:     0.20

Timeouts:
- 10s per provider
- 30s collective ceiling per candidate

Batching:
- 5 candidates per chunk
- 0.5s pause between chunks

Selection:
- primary threshold 50, fallback threshold 30
- return at least 3 and at most 15 candidates

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError, FallbackConfigError
from .models import SignalName


# Weights must sum to 1.0 within this tolerance
WEIGHT_EPSILON = 1e-6


DEFAULT_SIGNAL_WEIGHTS: Dict[str, float] = {
    SignalName.JOB_SKILLS_MATCH.value: 0.35,
    SignalName.MARKET_INTELLIGENCE.value: 0.25,
    SignalName.DEPARTMENT_FIT.value: 0.20,
    SignalName.CONTACT_QUALITY.value: 0.20,
}

# Optional extra signal; registries that include it must rebalance
ACTIVE_HIRING_WEIGHT = 0.15


def rebalance_weights(
    weights: Mapping[str, float],
    extra: Optional[Mapping[str, float]] = None,
) -> Dict[str, float]:
    """
    Scale weights so they sum to 1.0.

    Weights in `extra` are kept as given; the remaining weights are
    scaled proportionally into what is left.

    Example:
        rebalance_weights(DEFAULT_SIGNAL_WEIGHTS, {"active_hiring": 0.15})
        # job_skills_match becomes 0.35 * 0.85 = 0.2975, ...
    """
    extra = dict(extra or {})
    fixed_total = sum(extra.values())
    if fixed_total > 1.0 + WEIGHT_EPSILON:
        raise ConfigurationError(
            "Extra weights exceed 1.0",
            errors=[f"extra weights sum to {fixed_total}"],
        )

    base = {k: v for k, v in weights.items() if k not in extra}
    base_total = sum(base.values())
    if base_total <= 0:
        raise ConfigurationError("Cannot rebalance weights that sum to zero")

    remaining = 1.0 - fixed_total
    result = {name: weight / base_total * remaining for name, weight in base.items()}
    result.update(extra)
    return result


# ============================================================
# FALLBACK (SELECTION) CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class FallbackConfig:
    """
    Thresholds for the rank/filter selector.

    ============================================================
    INVARIANTS
    ============================================================
    - fallback_score_threshold <= min_score_threshold
    - 0 <= min_results_to_return <= max_results_to_return
    - thresholds within 0-100

    ============================================================
    """

    min_score_threshold: float = 50.0       # primary cutoff
    fallback_score_threshold: float = 30.0  # relaxed cutoff when too few pass
    min_results_to_return: int = 3
    max_results_to_return: int = 15

    def __post_init__(self) -> None:
        errors = self.validate()
        if errors:
            raise FallbackConfigError("Invalid fallback configuration", errors=errors)

    def validate(self) -> List[str]:
        errors = []

        if self.fallback_score_threshold > self.min_score_threshold:
            errors.append("fallback_score_threshold must be <= min_score_threshold")
        if not 0 <= self.fallback_score_threshold <= 100:
            errors.append("fallback_score_threshold must be between 0 and 100")
        if not 0 <= self.min_score_threshold <= 100:
            errors.append("min_score_threshold must be between 0 and 100")
        if self.min_results_to_return < 0:
            errors.append("min_results_to_return must be >= 0")
        if self.min_results_to_return > self.max_results_to_return:
            errors.append("min_results_to_return must be <= max_results_to_return")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_score_threshold": self.min_score_threshold,
            "fallback_score_threshold": self.fallback_score_threshold,
            "min_results_to_return": self.min_results_to_return,
            "max_results_to_return": self.max_results_to_return,
        }


DEFAULT_FALLBACK_CONFIG = FallbackConfig()


# ============================================================
# ORCHESTRATOR CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class OrchestratorConfig:
    """Deadlines for evaluating one candidate."""

    provider_timeout_seconds: float = 10.0
    """Individual deadline for each provider call."""

    collective_timeout_seconds: float = 30.0
    """Ceiling for the whole candidate evaluation."""

    max_incidents: int = 100
    """Size of the in-memory incident log."""

    def __post_init__(self) -> None:
        errors = self.validate()
        if errors:
            raise ConfigurationError("Invalid orchestrator configuration", errors=errors)

    def validate(self) -> List[str]:
        errors = []
        if self.provider_timeout_seconds <= 0:
            errors.append("provider_timeout_seconds must be positive")
        if self.collective_timeout_seconds <= 0:
            errors.append("collective_timeout_seconds must be positive")
        if self.max_incidents < 0:
            errors.append("max_incidents must be >= 0")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider_timeout_seconds": self.provider_timeout_seconds,
            "collective_timeout_seconds": self.collective_timeout_seconds,
            "max_incidents": self.max_incidents,
        }


# ============================================================
# BATCH CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class BatchConfig:
    """Chunking and pacing for batch evaluation."""

    chunk_size: int = 5
    """Candidates evaluated concurrently per chunk."""

    inter_chunk_delay_seconds: float = 0.5
    """Pause between chunks. 0 disables pacing."""

    def __post_init__(self) -> None:
        errors = self.validate()
        if errors:
            raise ConfigurationError("Invalid batch configuration", errors=errors)

    def validate(self) -> List[str]:
        errors = []
        if self.chunk_size < 1:
            errors.append("chunk_size must be at least 1")
        if self.inter_chunk_delay_seconds < 0:
            errors.append("inter_chunk_delay_seconds must be >= 0")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunk_size": self.chunk_size,
            "inter_chunk_delay_seconds": self.inter_chunk_delay_seconds,
        }


# ============================================================
# DETECTED FLAGS
# ============================================================


@dataclass(frozen=True)
class FlagRule:
    """
    Definition of one detected flag.

    Fires when either:
    - detail_key is None and components[signal] > threshold
    - detail_key is set and the provider detail value at detail_key
      is True (threshold None) or a number > threshold
    """

    name: str
    signal: str
    label: str
    threshold: Optional[float] = None
    detail_key: Optional[str] = None

    def __post_init__(self) -> None:
        if self.detail_key is None and self.threshold is None:
            raise ConfigurationError(
                f"Flag rule {self.name!r} needs a threshold or a detail_key"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "signal": self.signal,
            "label": self.label,
            "threshold": self.threshold,
            "detail_key": self.detail_key,
        }


DEFAULT_FLAG_RULES: tuple = (
    FlagRule("has_active_job_postings", SignalName.JOB_SKILLS_MATCH.value, "active hiring", threshold=30),
    FlagRule("has_funding_news", SignalName.MARKET_INTELLIGENCE.value, "recent funding", detail_key="has_funding_news"),
    FlagRule("has_hiring_news", SignalName.MARKET_INTELLIGENCE.value, "hiring news", detail_key="has_hiring_news"),
    FlagRule("has_department_growth", SignalName.DEPARTMENT_FIT.value, "department growth", threshold=50),
    FlagRule(
        "has_technology_match", SignalName.DEPARTMENT_FIT.value, "tech alignment",
        threshold=0.5, detail_key="technology_match_score",
    ),
    FlagRule("has_decision_makers", SignalName.CONTACT_QUALITY.value, "reachable leaders", threshold=40),
)


# ============================================================
# MASTER CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class SignalRankingConfig:
    """Master configuration for the signal ranking engine."""

    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    flag_rules: tuple = DEFAULT_FLAG_RULES
    log_level: str = "INFO"

    engine_version: str = "1.0.0"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "SignalRankingConfig":
        """
        Load configuration from environment variables.

        Raises:
            ConfigurationError: a value is malformed or violates an invariant
        """
        if dotenv:
            load_dotenv()

        try:
            return cls(
                orchestrator=OrchestratorConfig(
                    provider_timeout_seconds=float(os.getenv("SIGNAL_PROVIDER_TIMEOUT_SECONDS", "10")),
                    collective_timeout_seconds=float(os.getenv("SIGNAL_COLLECTIVE_TIMEOUT_SECONDS", "30")),
                ),
                batch=BatchConfig(
                    chunk_size=int(os.getenv("SIGNAL_BATCH_SIZE", "5")),
                    inter_chunk_delay_seconds=float(os.getenv("SIGNAL_BATCH_DELAY_SECONDS", "0.5")),
                ),
                fallback=FallbackConfig(
                    min_score_threshold=float(os.getenv("SIGNAL_MIN_SCORE_THRESHOLD", "50")),
                    fallback_score_threshold=float(os.getenv("SIGNAL_FALLBACK_SCORE_THRESHOLD", "30")),
                    min_results_to_return=int(os.getenv("SIGNAL_MIN_RESULTS", "3")),
                    max_results_to_return=int(os.getenv("SIGNAL_MAX_RESULTS", "15")),
                ),
                log_level=os.getenv("SIGNAL_LOG_LEVEL", "INFO").upper(),
            )
        except ValueError as e:
            raise ConfigurationError(f"Malformed signal ranking environment value: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orchestrator": self.orchestrator.to_dict(),
            "batch": self.batch.to_dict(),
            "fallback": self.fallback.to_dict(),
            "flag_rules": [rule.to_dict() for rule in self.flag_rules],
            "log_level": self.log_level,
            "engine_version": self.engine_version,
        }


def get_default_config() -> SignalRankingConfig:
    """Get default configuration."""
    return SignalRankingConfig()


__all__ = [
    "WEIGHT_EPSILON",
    "DEFAULT_SIGNAL_WEIGHTS",
    "ACTIVE_HIRING_WEIGHT",
    "rebalance_weights",
    "FallbackConfig",
    "DEFAULT_FALLBACK_CONFIG",
    "OrchestratorConfig",
    "BatchConfig",
    "FlagRule",
    "DEFAULT_FLAG_RULES",
    "SignalRankingConfig",
    "get_default_config",
]
