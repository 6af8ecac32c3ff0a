"""
Tests for the Rank/Filter Selector.

============================================================
PURPOSE
============================================================
The threshold ladder: primary, fallback, top-N, truncation.

============================================================
"""

import pytest

from signal_ranking.config import FallbackConfig
from signal_ranking.models import CompositeScore, ConfidenceLevel
from signal_ranking.selector import SelectionTier, select_candidates, select_top_candidates


def composite(overall):
    return CompositeScore(
        overall=overall,
        confidence=ConfidenceLevel.MEDIUM,
        components={},
        detected_flags={},
        breakdown="",
    )


def pool(*overalls):
    """Candidates c0..cN as mappings plus their scores."""
    candidates = [{"id": f"c{i}", "name": f"Company {i}"} for i in range(len(overalls))]
    scores = {f"c{i}": composite(o) for i, o in enumerate(overalls)}
    return candidates, scores


def ids(selected):
    return [c["id"] for c in selected]


# ============================================================
# LADDER TESTS
# ============================================================

class TestLadder:
    """Tests for each rung of the ladder."""

    def test_primary_threshold(self):
        candidates, scores = pool(55, 90, 20, 70, 40)

        outcome = select_candidates(candidates, scores)

        assert ids(outcome.selected) == ["c1", "c3", "c0"]
        assert outcome.tier == SelectionTier.PRIMARY
        assert outcome.threshold == 50
        assert outcome.scores == [90, 70, 55]

    def test_fallback_threshold(self):
        candidates, scores = pool(80, 35, 10, 45)

        outcome = select_candidates(candidates, scores)

        assert ids(outcome.selected) == ["c0", "c3", "c1"]
        assert outcome.tier == SelectionTier.FALLBACK
        assert outcome.threshold == 30

    def test_top_n_when_fallback_still_too_few(self):
        candidates, scores = pool(80, 60, 20, 10, 5)

        outcome = select_candidates(candidates, scores)

        assert outcome.scores == [80, 60, 20]
        assert outcome.tier == SelectionTier.TOP_N
        assert outcome.threshold is None

    def test_fewer_candidates_than_minimum(self):
        candidates, scores = pool(12, 8)

        selected = select_top_candidates(candidates, scores)

        assert ids(selected) == ["c0", "c1"]

    def test_empty_pool(self):
        outcome = select_candidates([], {})

        assert outcome.selected == []
        assert outcome.tier == SelectionTier.EMPTY
        assert outcome.pool_size == 0

    def test_unscored_candidates_excluded(self):
        candidates, scores = pool(70, 60)
        candidates.append({"id": "unscored"})

        outcome = select_candidates(candidates, scores)

        assert ids(outcome.selected) == ["c0", "c1"]
        assert outcome.pool_size == 2


# ============================================================
# ORDERING AND LIMIT TESTS
# ============================================================

class TestOrderingAndLimits:
    """Tests for ordering and truncation."""

    def test_ties_keep_input_order(self):
        candidates, scores = pool(60, 75, 60, 60)

        selected = select_top_candidates(candidates, scores)

        assert ids(selected) == ["c1", "c0", "c2", "c3"]

    def test_repeated_candidate_selected_once(self):
        candidates, scores = pool(90, 40)
        candidates.insert(1, {"id": "c0", "name": "Company 0 again"})

        outcome = select_candidates(candidates, scores)

        assert ids(outcome.selected) == ["c0", "c1"]
        assert outcome.selected[0]["name"] == "Company 0"
        assert outcome.pool_size == 2

    def test_truncated_to_max(self):
        candidates, scores = pool(*range(100, 60, -2))
        config = FallbackConfig(max_results_to_return=5)

        outcome = select_candidates(candidates, scores, config)

        assert outcome.scores == [100, 98, 96, 94, 92]
        assert outcome.pool_size == 20

    def test_min_results_zero_allows_empty_selection(self):
        candidates, scores = pool(10, 5)
        config = FallbackConfig(min_results_to_return=0)

        outcome = select_candidates(candidates, scores, config)

        assert outcome.selected == []
        assert outcome.tier == SelectionTier.PRIMARY

    @pytest.mark.parametrize("overalls", [(90,), (40, 20), (10, 10, 10, 10)])
    def test_never_empty_when_pool_exists(self, overalls):
        candidates, scores = pool(*overalls)
        assert select_top_candidates(candidates, scores)

    def test_attribute_candidates_and_custom_key(self):
        class Row:
            def __init__(self, key):
                self.key = key

        rows = [Row("x"), Row("y")]
        scores = {"x": composite(40), "y": composite(90)}

        selected = select_top_candidates(rows, scores, key=lambda r: r.key)

        assert [r.key for r in selected] == ["y", "x"]

    def test_to_dict(self):
        candidates, scores = pool(80)
        payload = select_candidates(candidates, scores).to_dict()

        assert payload["tier"] == "top_n"
        assert payload["selected_count"] == 1
