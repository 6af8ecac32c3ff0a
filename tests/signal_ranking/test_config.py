"""
Tests for Signal Ranking Configuration.

============================================================
PURPOSE
============================================================
Startup validation of everything that must be right before
the engine runs:
1. Selection thresholds
2. Deadlines and batching
3. Flag rules
4. Environment loading
5. Weight rebalancing and registry invariants
6. Logging setup

============================================================
"""

import json
import logging

import pytest

from signal_ranking.config import (
    ACTIVE_HIRING_WEIGHT,
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
from signal_ranking.exceptions import (
    ConfigurationError,
    FallbackConfigError,
    WeightConfigurationError,
)
from signal_ranking.logging_config import setup_logging
from signal_ranking.registry import ProviderRegistry
from signal_ranking.service import build_default_registry

from .helpers import ScriptedProvider


ENV_VARS = (
    "SIGNAL_PROVIDER_TIMEOUT_SECONDS",
    "SIGNAL_COLLECTIVE_TIMEOUT_SECONDS",
    "SIGNAL_BATCH_SIZE",
    "SIGNAL_BATCH_DELAY_SECONDS",
    "SIGNAL_MIN_SCORE_THRESHOLD",
    "SIGNAL_FALLBACK_SCORE_THRESHOLD",
    "SIGNAL_MIN_RESULTS",
    "SIGNAL_MAX_RESULTS",
    "SIGNAL_LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


# ============================================================
# FALLBACK CONFIG TESTS
# ============================================================

class TestFallbackConfig:
    """Tests for selection thresholds."""

    def test_defaults(self):
        config = FallbackConfig()

        assert config.min_score_threshold == 50
        assert config.fallback_score_threshold == 30
        assert config.min_results_to_return == 3
        assert config.max_results_to_return == 15

    def test_fallback_above_primary_rejected(self):
        with pytest.raises(FallbackConfigError) as exc_info:
            FallbackConfig(min_score_threshold=40, fallback_score_threshold=60)

        assert "fallback_score_threshold must be <= min_score_threshold" in exc_info.value.errors

    def test_min_results_above_max_rejected(self):
        with pytest.raises(FallbackConfigError):
            FallbackConfig(min_results_to_return=10, max_results_to_return=5)

    def test_threshold_out_of_range_rejected(self):
        with pytest.raises(FallbackConfigError):
            FallbackConfig(min_score_threshold=150, fallback_score_threshold=30)

    def test_fallback_error_is_configuration_error(self):
        assert issubclass(FallbackConfigError, ConfigurationError)

    def test_equal_thresholds_allowed(self):
        config = FallbackConfig(min_score_threshold=40, fallback_score_threshold=40)
        assert config.validate() == []


# ============================================================
# ORCHESTRATOR / BATCH CONFIG TESTS
# ============================================================

class TestRuntimeConfig:
    """Tests for deadlines and batching."""

    def test_orchestrator_defaults(self):
        config = OrchestratorConfig()
        assert config.provider_timeout_seconds == 10
        assert config.collective_timeout_seconds == 30

    @pytest.mark.parametrize("field_name", ["provider_timeout_seconds", "collective_timeout_seconds"])
    def test_non_positive_timeout_rejected(self, field_name):
        with pytest.raises(ConfigurationError):
            OrchestratorConfig(**{field_name: 0})

    def test_batch_defaults(self):
        config = BatchConfig()
        assert config.chunk_size == 5
        assert config.inter_chunk_delay_seconds == 0.5

    def test_zero_chunk_size_rejected(self):
        with pytest.raises(ConfigurationError):
            BatchConfig(chunk_size=0)

    def test_negative_delay_rejected(self):
        with pytest.raises(ConfigurationError):
            BatchConfig(inter_chunk_delay_seconds=-1)

    def test_zero_delay_allowed(self):
        assert BatchConfig(inter_chunk_delay_seconds=0).inter_chunk_delay_seconds == 0


# ============================================================
# FLAG RULE TESTS
# ============================================================

class TestFlagRules:
    """Tests for flag rule definitions."""

    def test_rule_needs_threshold_or_detail_key(self):
        with pytest.raises(ConfigurationError):
            FlagRule("broken", "job_skills_match", "broken")

    def test_default_rules(self):
        names = [rule.name for rule in DEFAULT_FLAG_RULES]

        assert names == [
            "has_active_job_postings",
            "has_funding_news",
            "has_hiring_news",
            "has_department_growth",
            "has_technology_match",
            "has_decision_makers",
        ]


# ============================================================
# ENVIRONMENT TESTS
# ============================================================

class TestFromEnv:
    """Tests for environment loading."""

    def test_defaults_without_env(self, clean_env):
        config = SignalRankingConfig.from_env(dotenv=False)

        assert config.to_dict() == get_default_config().to_dict()

    def test_overrides(self, clean_env):
        clean_env.setenv("SIGNAL_PROVIDER_TIMEOUT_SECONDS", "4")
        clean_env.setenv("SIGNAL_COLLECTIVE_TIMEOUT_SECONDS", "12")
        clean_env.setenv("SIGNAL_BATCH_SIZE", "10")
        clean_env.setenv("SIGNAL_BATCH_DELAY_SECONDS", "0")
        clean_env.setenv("SIGNAL_MIN_SCORE_THRESHOLD", "60")
        clean_env.setenv("SIGNAL_FALLBACK_SCORE_THRESHOLD", "40")
        clean_env.setenv("SIGNAL_MIN_RESULTS", "5")
        clean_env.setenv("SIGNAL_MAX_RESULTS", "20")
        clean_env.setenv("SIGNAL_LOG_LEVEL", "debug")

        config = SignalRankingConfig.from_env(dotenv=False)

        assert config.orchestrator.provider_timeout_seconds == 4
        assert config.orchestrator.collective_timeout_seconds == 12
        assert config.batch.chunk_size == 10
        assert config.batch.inter_chunk_delay_seconds == 0
        assert config.fallback.min_score_threshold == 60
        assert config.fallback.fallback_score_threshold == 40
        assert config.fallback.min_results_to_return == 5
        assert config.fallback.max_results_to_return == 20
        assert config.log_level == "DEBUG"

    def test_malformed_value_is_configuration_error(self, clean_env):
        clean_env.setenv("SIGNAL_BATCH_SIZE", "five")

        with pytest.raises(ConfigurationError):
            SignalRankingConfig.from_env(dotenv=False)

    def test_invalid_thresholds_fail_fast(self, clean_env):
        clean_env.setenv("SIGNAL_MIN_SCORE_THRESHOLD", "20")
        clean_env.setenv("SIGNAL_FALLBACK_SCORE_THRESHOLD", "40")

        with pytest.raises(FallbackConfigError):
            SignalRankingConfig.from_env(dotenv=False)


# ============================================================
# WEIGHT TESTS
# ============================================================

class TestWeights:
    """Tests for weight invariants."""

    def test_default_weights_sum_to_one(self):
        assert sum(DEFAULT_SIGNAL_WEIGHTS.values()) == pytest.approx(1.0)

    def test_rebalance_keeps_extra_weight(self):
        weights = rebalance_weights(DEFAULT_SIGNAL_WEIGHTS, {"active_hiring": ACTIVE_HIRING_WEIGHT})

        assert sum(weights.values()) == pytest.approx(1.0)
        assert weights["active_hiring"] == ACTIVE_HIRING_WEIGHT
        assert weights["job_skills_match"] == pytest.approx(0.35 * 0.85)

    def test_rebalance_rejects_excess_extra(self):
        with pytest.raises(ConfigurationError):
            rebalance_weights(DEFAULT_SIGNAL_WEIGHTS, {"a": 0.7, "b": 0.5})

    def test_rebalance_normalizes_unbalanced_weights(self):
        weights = rebalance_weights({"a": 2, "b": 2})
        assert weights == {"a": 0.5, "b": 0.5}


class TestProviderRegistry:
    """Tests for registry validation."""

    def test_valid_registry(self):
        registry = ProviderRegistry([
            ScriptedProvider("a", 0.6),
            ScriptedProvider("b", 0.4),
        ])

        assert registry.names == ("a", "b")
        assert registry.weights == {"a": 0.6, "b": 0.4}
        assert "a" in registry
        assert len(registry) == 2

    def test_weights_not_summing_to_one_rejected(self):
        with pytest.raises(WeightConfigurationError) as exc_info:
            ProviderRegistry([
                ScriptedProvider("a", 0.5),
                ScriptedProvider("b", 0.4),
            ])

        assert any("weights sum to" in e for e in exc_info.value.errors)

    def test_sum_within_epsilon_accepted(self):
        registry = ProviderRegistry([
            ScriptedProvider("a", 0.5 + 1e-8),
            ScriptedProvider("b", 0.5),
        ])
        assert len(registry) == 2

    def test_duplicate_names_rejected(self):
        with pytest.raises(WeightConfigurationError) as exc_info:
            ProviderRegistry([
                ScriptedProvider("a", 0.5),
                ScriptedProvider("a", 0.5),
            ])

        assert "duplicate provider name: a" in exc_info.value.errors

    def test_negative_weight_rejected(self):
        with pytest.raises(WeightConfigurationError):
            ProviderRegistry([
                ScriptedProvider("a", 1.5),
                ScriptedProvider("b", -0.5),
            ])

    def test_empty_registry_rejected(self):
        with pytest.raises(WeightConfigurationError):
            ProviderRegistry([])

    def test_empty_name_rejected(self):
        with pytest.raises(WeightConfigurationError):
            ProviderRegistry([ScriptedProvider("", 1.0)])

    def test_default_registry(self):
        registry = build_default_registry()

        assert registry.names == (
            "job_skills_match",
            "market_intelligence",
            "department_fit",
            "contact_quality",
        )
        assert registry.display_name("job_skills_match") == "Job-Skills Match"

    def test_default_registry_with_hiring_is_rebalanced(self):
        registry = build_default_registry(include_hiring=True)

        assert "active_hiring" in registry
        assert sum(registry.weights.values()) == pytest.approx(1.0)
        assert registry.weights["active_hiring"] == ACTIVE_HIRING_WEIGHT


# ============================================================
# LOGGING TESTS
# ============================================================

class TestLoggingSetup:
    """Tests for setup_logging."""

    def test_sets_level_and_single_handler(self, restore_root_logger):
        logger = setup_logging(level="DEBUG", log_format="json", correlation_id="run-1")

        assert logger.name == "signal_ranking"
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1

    def test_text_line_carries_run_and_signal_fields(self, restore_root_logger):
        setup_logging(level="INFO", correlation_id="run-42")
        record = logging.makeLogRecord({
            "name": "signal_ranking.orchestrator",
            "levelname": "WARNING",
            "levelno": logging.WARNING,
            "msg": "slow timed out after 5s",
            "candidate_id": "cand-1",
            "provider": "slow",
        })

        line = restore_root_logger.handlers[0].format(record)

        assert " | run-42 | slow timed out after 5s [candidate_id=cand-1 provider=slow]" in line

    def test_text_line_without_signal_fields(self, restore_root_logger):
        setup_logging(level="INFO")
        record = logging.makeLogRecord({"name": "signal_ranking.batch", "msg": "Batch complete"})

        line = restore_root_logger.handlers[0].format(record)

        assert line.endswith(" | - | Batch complete")

    def test_json_line_is_valid_json(self, restore_root_logger):
        setup_logging(log_format="json", correlation_id="run-7")
        record = logging.makeLogRecord({
            "name": "signal_ranking.batch",
            "levelname": "ERROR",
            "msg": 'Failed to score candidate "x": %s',
            "args": ("boom",),
            "candidate_id": "x",
        })

        payload = json.loads(restore_root_logger.handlers[0].format(record))

        assert payload["message"] == 'Failed to score candidate "x": boom'
        assert payload["correlation_id"] == "run-7"
        assert payload["candidate_id"] == "x"
        assert "provider" not in payload

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        setup_logging(level="chatty")
        assert restore_root_logger.level == logging.INFO
