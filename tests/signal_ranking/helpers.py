"""
Test helpers for signal ranking tests.

============================================================
PURPOSE
============================================================
Scripted providers and fixed clocks so orchestration and
scoring tests are deterministic.

============================================================
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from signal_ranking.base import BaseSignalProvider
from signal_ranking.models import Candidate, ScoringContext, ScoringRequest, SignalResult


NOW = datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc)


class ScriptedProvider(BaseSignalProvider):
    """
    Provider returning canned outcomes per candidate id.

    An outcome is a SignalResult to return or an exception to raise.
    Candidate ids in `hang` never complete.
    """

    def __init__(
        self,
        name: str,
        weight: float,
        outcomes: Optional[Mapping[str, Any]] = None,
        default: Optional[SignalResult] = None,
        hang: Iterable[str] = (),
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._name = name
        self._weight = weight
        self.outcomes = dict(outcomes or {})
        self.default = default or SignalResult(score=50, confidence=0.5)
        self.hang = set(hang)
        self.timeout_seconds = timeout_seconds
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def weight(self) -> float:
        return self._weight

    async def evaluate(self, context: ScoringContext) -> SignalResult:
        candidate_id = context.candidate_id
        self.calls.append(candidate_id)

        if candidate_id in self.hang:
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                self.cancelled.append(candidate_id)
                raise

        outcome = self.outcomes.get(candidate_id, self.default)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def make_context(
    candidate_id: str = "cand-1",
    external_id: Optional[str] = "org-1",
    skills: Iterable[str] = ("Python", "SQL"),
    domain: str = "engineering",
    job_postings: Any = None,
    size: Optional[str] = None,
) -> ScoringContext:
    candidate = Candidate(
        id=candidate_id,
        name=f"Company {candidate_id}",
        external_id=external_id,
        size=size,
        job_postings=job_postings,
    )
    return ScoringContext.build(candidate, ScoringRequest(required_skills=tuple(skills), domain=domain))


