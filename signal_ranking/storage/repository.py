"""
Signal Ranking - Repository.

============================================================
METHODS
============================================================
- save_snapshot: Persist one StorableSignalRecord
- save_many: Persist (candidate id, record) pairs
- get_latest_for_candidate: Most recent snapshot for a candidate
- get_history_for_candidate: Snapshots for a candidate, newest first

The repository flushes; committing is the caller's transaction.
============================================================
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import StorableSignalRecord
from .models import SignalComponentScore, SignalScoreSnapshot


logger = logging.getLogger(__name__)


class SignalScoreRepository:
    """Persistence for composite signal scores."""

    def __init__(self, session: Session, engine_version: str = "1.0.0") -> None:
        self._session = session
        self._engine_version = engine_version

    # --------------------------------------------------------
    # WRITE OPERATIONS
    # --------------------------------------------------------

    def save_snapshot(
        self,
        record: StorableSignalRecord,
        computed_at: Optional[datetime] = None,
    ) -> SignalScoreSnapshot:
        """
        Save one candidate's composite score.

        Creates:
        - SignalScoreSnapshot record
        - SignalComponentScore records for each `<signal>_score` entry
        """
        snapshot = SignalScoreSnapshot(
            candidate_id=record.candidate_id,
            composite_signal_score=record.composite_signal_score,
            signal_confidence=record.signal_confidence,
            computed_at=computed_at or datetime.utcnow(),
            engine_version=self._engine_version,
            signal_data=dict(record.signal_data),
        )

        for position, (key, score) in enumerate(record.scores.items()):
            snapshot.components.append(SignalComponentScore(
                score_key=key,
                score=float(score),
                position=position,
            ))

        self._session.add(snapshot)
        try:
            self._session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save signal snapshot for {record.candidate_id}: {e}")
            raise

        return snapshot

    def save_many(
        self,
        updates: Iterable[tuple[str, StorableSignalRecord]],
        computed_at: Optional[datetime] = None,
    ) -> List[SignalScoreSnapshot]:
        """Save records produced by prepare_signal_updates()."""
        computed_at = computed_at or datetime.utcnow()
        snapshots = [self.save_snapshot(record, computed_at) for _, record in updates]
        logger.info(f"Saved {len(snapshots)} signal snapshots")
        return snapshots

    # --------------------------------------------------------
    # READ OPERATIONS
    # --------------------------------------------------------

    def get_latest_for_candidate(self, candidate_id: str) -> Optional[SignalScoreSnapshot]:
        stmt = (
            select(SignalScoreSnapshot)
            .where(SignalScoreSnapshot.candidate_id == candidate_id)
            .order_by(desc(SignalScoreSnapshot.computed_at), desc(SignalScoreSnapshot.created_at))
            .limit(1)
        )
        return self._session.execute(stmt).scalars().first()

    def get_history_for_candidate(
        self,
        candidate_id: str,
        limit: int = 50,
    ) -> List[SignalScoreSnapshot]:
        stmt = (
            select(SignalScoreSnapshot)
            .where(SignalScoreSnapshot.candidate_id == candidate_id)
            .order_by(desc(SignalScoreSnapshot.computed_at))
            .limit(limit)
        )
        return list(self._session.execute(stmt).scalars().all())
