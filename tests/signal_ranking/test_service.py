"""
Tests for the Signal Ranking Service.

============================================================
PURPOSE
============================================================
End-to-end ranking through the real orchestrator, scorer,
batch processor and selector, plus the storage helpers.

============================================================
"""

import asyncio

import pytest

from signal_ranking.config import (
    BatchConfig,
    FallbackConfig,
    OrchestratorConfig,
    SignalRankingConfig,
)
from signal_ranking.models import Candidate, ConfidenceLevel, ScoringRequest, SignalResult
from signal_ranking.registry import ProviderRegistry
from signal_ranking.selector import SelectionTier
from signal_ranking.service import (
    SignalRankingService,
    build_default_registry,
    prepare_signal_updates,
    to_storable,
)

from .helpers import ScriptedProvider


@pytest.fixture
def service_config():
    return SignalRankingConfig(
        orchestrator=OrchestratorConfig(provider_timeout_seconds=0.05, collective_timeout_seconds=1),
        batch=BatchConfig(chunk_size=5, inter_chunk_delay_seconds=0),
    )


@pytest.fixture
def two_signal_service(service_config):
    """Two signals weighted 0.6/0.4; signal B hangs for cand-2."""
    registry = ProviderRegistry([
        ScriptedProvider("signal_a", 0.6, outcomes={
            "cand-1": SignalResult(90, 0.9),
            "cand-2": SignalResult(40, 0.5),
        }),
        ScriptedProvider("signal_b", 0.4, outcomes={
            "cand-1": SignalResult(70, 0.8),
        }, hang={"cand-2"}),
    ])
    return SignalRankingService(registry, service_config)


# ============================================================
# END-TO-END TESTS
# ============================================================

class TestRank:
    """Tests for SignalRankingService.rank."""

    @pytest.mark.asyncio
    async def test_two_candidates_one_timeout(self, two_signal_service):
        result = await two_signal_service.rank(
            [Candidate(id="cand-1", name="Acme"), Candidate(id="cand-2", name="Globex")],
            ScoringRequest(required_skills=("Python", "SQL"), domain="engineering"),
        )

        first = result.scores["cand-1"]
        assert first.overall == 82
        assert first.confidence == ConfidenceLevel.HIGH
        assert first.errors == []

        second = result.scores["cand-2"]
        assert second.overall == 24
        assert second.confidence == ConfidenceLevel.LOW
        assert len(second.errors) == 1
        assert "timed out" in second.errors[0]

        assert [c.id for c in result.selected] == ["cand-1", "cand-2"]
        assert result.tier == SelectionTier.TOP_N
        assert result.evaluated_count == 2
        assert result.error_count == 1

    @pytest.mark.asyncio
    async def test_accepts_mappings(self, two_signal_service):
        result = await two_signal_service.rank(
            [{"id": "cand-1", "name": "Acme"}],
            ScoringRequest(),
        )

        assert result.selected[0].id == "cand-1"
        assert result.selected[0].name == "Acme"

    @pytest.mark.asyncio
    async def test_malformed_mapping_is_isolated(self, two_signal_service):
        result = await two_signal_service.rank(
            [{"id": "cand-1", "name": "Acme"}, {"id": "bad", "name": "Broken", "industries": 5}],
            ScoringRequest(),
        )

        assert result.scores["cand-1"].overall == 82
        broken = result.scores["bad"]
        assert broken.overall == 0
        assert broken.confidence == ConfidenceLevel.LOW
        assert "industries" in broken.errors[0]
        assert [c.id for c in result.selected] == ["cand-1"]
        assert result.evaluated_count == 2
        assert result.error_count == 1

    @pytest.mark.asyncio
    async def test_non_mapping_input_is_isolated(self, two_signal_service):
        result = await two_signal_service.rank(
            [Candidate(id="cand-1", name="Acme"), 42],
            ScoringRequest(),
        )

        assert result.scores["cand-1"].overall == 82
        assert result.scores[""].overall == 0
        assert [c.id for c in result.selected] == ["cand-1"]

    @pytest.mark.asyncio
    async def test_string_list_fields_kept_whole(self, two_signal_service):
        result = await two_signal_service.rank(
            [{"id": "cand-1", "name": "Acme", "industries": "fintech", "technologies": "Python"}],
            ScoringRequest(),
        )

        candidate = result.selected[0]
        assert candidate.industries == ("fintech",)
        assert candidate.technologies == ("Python",)

    @pytest.mark.asyncio
    async def test_duplicate_candidates_selected_once(self, two_signal_service):
        result = await two_signal_service.rank(
            [
                Candidate(id="cand-1", name="Acme"),
                Candidate(id="cand-1", name="Acme again"),
                {"id": "cand-1", "name": "Acme mapping"},
                Candidate(id="cand-2", name="Globex"),
            ],
            ScoringRequest(),
        )

        assert [c.id for c in result.selected] == ["cand-1", "cand-2"]
        assert result.selected[0].name == "Acme"
        assert result.evaluated_count == 2
        assert two_signal_service.orchestrator.get_stats()["evaluations"] == 2

    @pytest.mark.asyncio
    async def test_fallback_override(self, two_signal_service):
        result = await two_signal_service.rank(
            [Candidate(id="cand-1", name="Acme"), Candidate(id="cand-2", name="Globex")],
            ScoringRequest(),
            fallback_config=FallbackConfig(min_results_to_return=1),
        )

        assert [c.id for c in result.selected] == ["cand-1"]
        assert result.tier == SelectionTier.PRIMARY

    @pytest.mark.asyncio
    async def test_cancelled_run(self, two_signal_service):
        cancel = asyncio.Event()
        cancel.set()

        result = await two_signal_service.rank(
            [Candidate(id="cand-1", name="Acme")],
            ScoringRequest(),
            cancel_event=cancel,
        )

        assert result.selected == []
        assert result.scores == {}
        assert result.tier == SelectionTier.EMPTY

    @pytest.mark.asyncio
    async def test_default_registry_without_sources(self, service_config):
        service = SignalRankingService(build_default_registry(), service_config)

        result = await service.rank(
            [Candidate(id="cand-1", name="Acme", job_postings=[{"title": "Python Engineer"}])],
            ScoringRequest(required_skills=("Python",), domain="engineering"),
        )

        score = result.scores["cand-1"]
        assert score.components["market_intelligence"] == 10
        assert score.components["department_fit"] == 30
        assert score.components["contact_quality"] == 0
        assert score.components["job_skills_match"] > 0
        assert "Missing external_id" in score.errors

    @pytest.mark.asyncio
    async def test_result_to_dict(self, two_signal_service):
        result = await two_signal_service.rank([Candidate(id="cand-1", name="Acme")], ScoringRequest())

        payload = result.to_dict()

        assert payload["selected"] == ["cand-1"]
        assert payload["scores"]["cand-1"]["overall"] == 82


# ============================================================
# STORAGE HELPER TESTS
# ============================================================

class TestStorageHelpers:
    """Tests for to_storable and prepare_signal_updates."""

    def test_to_storable(self, two_signal_service):
        composite = two_signal_service.scorer.combine({
            "signal_a": SignalResult(90, 0.9),
            "signal_b": SignalResult(70, 0.8),
        })

        record = to_storable("cand-1", composite)

        assert record.scores == {"signal_a_score": 90, "signal_b_score": 70}
        assert record.composite_signal_score == 82
        assert record.signal_confidence == "high"
        assert record.signal_data["breakdown"].startswith("Signal breakdown:")

        row = record.to_row()
        assert row["signal_a_score"] == 90
        assert row["composite_signal_score"] == 82

    def test_prepare_signal_updates(self, two_signal_service):
        scorer = two_signal_service.scorer
        scores = {
            "cand-1": scorer.combine({"signal_a": SignalResult(50, 0.5)}),
            "cand-2": scorer.error_score("failed"),
        }

        updates = prepare_signal_updates(scores)

        assert [cid for cid, _ in updates] == ["cand-1", "cand-2"]
        assert updates[1][1].composite_signal_score == 0
        assert updates[1][1].signal_confidence == "low"
