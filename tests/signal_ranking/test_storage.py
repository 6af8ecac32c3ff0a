"""
Tests for signal score persistence.

============================================================
PURPOSE
============================================================
Snapshots and component rows round-trip through an in-memory
SQLite database.

============================================================
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from signal_ranking.models import StorableSignalRecord
from signal_ranking.storage import Base, SignalScoreRepository


@pytest.fixture
def session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def record():
    return StorableSignalRecord(
        candidate_id="cand-1",
        scores={"job_skills_match_score": 72.0, "market_intelligence_score": 10.0},
        composite_signal_score=45,
        signal_confidence="medium",
        signal_data={"overall": 45, "errors": []},
    )


# ============================================================
# REPOSITORY TESTS
# ============================================================

class TestSignalScoreRepository:
    """Tests for SignalScoreRepository."""

    def test_save_and_load(self, session, record):
        repo = SignalScoreRepository(session, engine_version="2.0.0")

        repo.save_snapshot(record)
        session.commit()

        snapshot = repo.get_latest_for_candidate("cand-1")
        assert snapshot.composite_signal_score == 45
        assert snapshot.engine_version == "2.0.0"
        assert [c.score_key for c in snapshot.components] == [
            "job_skills_match_score",
            "market_intelligence_score",
        ]
        assert snapshot.to_row() == record.to_row()

    def test_latest_and_history(self, session, record):
        repo = SignalScoreRepository(session)
        earlier = datetime(2026, 1, 1)
        newer = StorableSignalRecord(
            candidate_id="cand-1",
            scores={"job_skills_match_score": 90.0},
            composite_signal_score=80,
            signal_confidence="high",
        )

        repo.save_snapshot(record, computed_at=earlier)
        repo.save_snapshot(newer, computed_at=earlier + timedelta(days=1))

        assert repo.get_latest_for_candidate("cand-1").composite_signal_score == 80
        history = repo.get_history_for_candidate("cand-1")
        assert [s.composite_signal_score for s in history] == [80, 45]

    def test_save_many(self, session, record):
        repo = SignalScoreRepository(session)
        other = StorableSignalRecord(
            candidate_id="cand-2",
            scores={},
            composite_signal_score=0,
            signal_confidence="low",
        )

        snapshots = repo.save_many([("cand-1", record), ("cand-2", other)])

        assert len(snapshots) == 2
        assert repo.get_latest_for_candidate("cand-2").signal_confidence == "low"

    def test_unknown_candidate(self, session):
        assert SignalScoreRepository(session).get_latest_for_candidate("nobody") is None
