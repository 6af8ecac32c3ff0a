"""
Signal Ranking - Persistence Models.

============================================================
MODELS
============================================================
1. SignalScoreSnapshot: one composite evaluation of one candidate
2. SignalComponentScore: one row per named signal (child of snapshot)

New providers add component rows, never columns.

============================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship


Base = declarative_base()


def _new_id() -> str:
    return str(uuid4())


# ============================================================
# SNAPSHOT MODEL
# ============================================================


class SignalScoreSnapshot(Base):
    """
    Composite score of one candidate at one point in time.

    ============================================================
    WHAT IT STORES
    ============================================================
    - Composite score (0-100)
    - Confidence tier (high / medium / low)
    - Full CompositeScore payload as JSON
    - Engine version for compatibility tracking

    ============================================================
    """

    __tablename__ = "signal_score_snapshots"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_id,
    )

    candidate_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identifier of the scored candidate",
    )

    composite_signal_score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Weighted composite score (0-100)",
    )

    signal_confidence: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="high, medium or low",
    )

    computed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    engine_version: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="1.0.0",
    )

    signal_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Full CompositeScore as JSON",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    components: Mapped[List["SignalComponentScore"]] = relationship(
        "SignalComponentScore",
        back_populates="snapshot",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SignalComponentScore.position",
    )

    __table_args__ = (
        Index("ix_signal_snapshots_candidate", "candidate_id", "computed_at"),
        Index("ix_signal_snapshots_score", "composite_signal_score"),
    )

    def to_row(self) -> Dict[str, Any]:
        """Flat mapping in the StorableSignalRecord shape."""
        row: Dict[str, Any] = {c.score_key: c.score for c in self.components}
        row.update({
            "composite_signal_score": self.composite_signal_score,
            "signal_confidence": self.signal_confidence,
            "signal_data": self.signal_data or {},
        })
        return row

    def __repr__(self) -> str:
        return (
            f"SignalScoreSnapshot("
            f"candidate={self.candidate_id}, "
            f"score={self.composite_signal_score}, "
            f"confidence={self.signal_confidence})"
        )


# ============================================================
# COMPONENT SCORE MODEL
# ============================================================


class SignalComponentScore(Base):
    """Score of one named signal within a snapshot."""

    __tablename__ = "signal_component_scores"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_id,
    )

    snapshot_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("signal_score_snapshots.id", ondelete="CASCADE"),
        nullable=False,
    )

    score_key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="<signal>_score, e.g. job_skills_match_score",
    )

    score: Mapped[float] = mapped_column(Float, nullable=False)

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Registry order of the signal",
    )

    snapshot: Mapped["SignalScoreSnapshot"] = relationship(
        "SignalScoreSnapshot",
        back_populates="components",
    )

    __table_args__ = (
        Index("ix_signal_components_snapshot", "snapshot_id"),
    )

    def __repr__(self) -> str:
        return f"SignalComponentScore({self.score_key}={self.score})"
