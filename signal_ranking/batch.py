"""
Batch Processor - Scores many candidates in paced chunks.

Chunks run one after another with a pause in between; candidates
inside a chunk run concurrently. A candidate that fails outright
gets a zero CompositeScore carrying the error, and the batch goes on.

An optional asyncio.Event stops the batch before the next chunk.
Candidates in chunks that never started are absent from the result.
"""

import asyncio
import logging
import time
from typing import Any, Optional, Sequence

from .composite import CompositeScorer
from .config import BatchConfig
from .models import Candidate, CompositeScore, ScoringContext, ScoringRequest
from .orchestrator import SignalOrchestrator


logger = logging.getLogger(__name__)


class BatchProcessor:
    """
    Runs the orchestrator over a candidate list.

    Usage:
        processor = BatchProcessor(orchestrator, scorer)
        scores = await processor.evaluate_batch(candidates, request)
        # {"cand-1": CompositeScore(...), ...}
    """

    def __init__(
        self,
        orchestrator: SignalOrchestrator,
        scorer: CompositeScorer,
        config: Optional[BatchConfig] = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._scorer = scorer
        self._config = config or BatchConfig()

        self._stats = {
            "batches": 0,
            "chunks": 0,
            "candidates_evaluated": 0,
            "candidate_failures": 0,
            "cancelled_batches": 0,
        }

    async def evaluate_batch(
        self,
        candidates: Sequence[Candidate],
        request: ScoringRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> dict[str, CompositeScore]:
        """
        Score every candidate.

        Returns:
            Candidate id -> CompositeScore. Duplicate ids are scored once.
        """
        self._stats["batches"] += 1
        started = time.monotonic()

        unique: list[Candidate] = []
        seen: set[str] = set()
        for candidate in candidates:
            if candidate.id in seen:
                logger.warning(f"Duplicate candidate id {candidate.id!r} skipped")
                continue
            seen.add(candidate.id)
            unique.append(candidate)

        chunk_size = self._config.chunk_size
        chunks = [unique[i:i + chunk_size] for i in range(0, len(unique), chunk_size)]
        results: dict[str, CompositeScore] = {}

        logger.info(f"Scoring {len(unique)} candidates in {len(chunks)} chunks of up to {chunk_size}")

        for index, chunk in enumerate(chunks):
            if cancel_event is not None and cancel_event.is_set():
                self._stats["cancelled_batches"] += 1
                logger.info(f"Batch cancelled before chunk {index + 1}/{len(chunks)}")
                break

            logger.info(f"Processing chunk {index + 1}/{len(chunks)} ({len(chunk)} candidates)")
            self._stats["chunks"] += 1

            scores = await asyncio.gather(*(
                self.evaluate_one(candidate, request) for candidate in chunk
            ))
            for candidate, score in zip(chunk, scores):
                results[candidate.id] = score

            if index < len(chunks) - 1:
                await self._pause(cancel_event)

        elapsed = time.monotonic() - started
        logger.info(f"Batch complete: {len(results)}/{len(unique)} candidates scored in {elapsed:.1f}s")
        return results

    async def evaluate_one(
        self,
        candidate: Candidate,
        request: ScoringRequest,
    ) -> CompositeScore:
        """Score one candidate. Never raises for candidate-level failures."""
        try:
            context = ScoringContext.build(candidate, request)
            results = await self._orchestrator.evaluate_candidate(context)
            score = self._scorer.combine(results)
        except Exception as e:
            self._stats["candidate_failures"] += 1
            logger.error(
                f"Failed to score candidate {candidate.id!r} ({candidate.name}): {e}",
                extra={"candidate_id": candidate.id},
            )
            return self._scorer.error_score(e)

        self._stats["candidates_evaluated"] += 1
        logger.debug(
            f"{candidate.id}: overall {score.overall}/100 ({score.confidence.value} confidence)"
        )
        return score

    async def _pause(self, cancel_event: Optional[asyncio.Event]) -> None:
        delay = self._config.inter_chunk_delay_seconds
        if delay <= 0:
            return
        if cancel_event is None:
            await asyncio.sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    def get_stats(self) -> dict[str, Any]:
        return dict(self._stats)
