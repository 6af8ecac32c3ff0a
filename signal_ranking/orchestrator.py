"""
Signal Orchestrator - Runs every provider for one candidate.

============================================================
GUARANTEES
============================================================
- All providers start concurrently against the same context
- Each provider has its own deadline
- The whole evaluation has a collective ceiling
- Every registered provider gets an entry in the result map;
  failures and timeouts become zero results, never exceptions
- Work past a deadline is cancelled and never awaited

============================================================
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Optional

from .base import BaseSignalProvider
from .config import OrchestratorConfig
from .exceptions import ProviderTimeoutError, ProviderUnavailableError
from .models import ScoringContext, SignalIncident, SignalResult
from .registry import ProviderRegistry


logger = logging.getLogger(__name__)


def _discard_late_result(task: asyncio.Task) -> None:
    """Retrieve the outcome of an abandoned task so it is never reported as unhandled."""
    if not task.cancelled():
        task.exception()


class SignalOrchestrator:
    """
    Executes all registered providers for one candidate.

    Usage:
        orchestrator = SignalOrchestrator(registry)
        results = await orchestrator.evaluate_candidate(context)
        # {"job_skills_match": SignalResult(...), ...}
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        config: Optional[OrchestratorConfig] = None,
    ) -> None:
        self._registry = registry
        self._config = config or OrchestratorConfig()
        self._incidents: list[SignalIncident] = []

        self._stats = {
            "evaluations": 0,
            "provider_calls": 0,
            "successes": 0,
            "timeouts": 0,
            "collective_timeouts": 0,
            "unavailable": 0,
            "failures": 0,
        }

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    async def evaluate_candidate(
        self,
        context: ScoringContext,
        collective_timeout: Optional[float] = None,
    ) -> dict[str, SignalResult]:
        """
        Evaluate one candidate with every registered provider.

        Args:
            context: Immutable scoring context
            collective_timeout: Override for the per-candidate ceiling

        Returns:
            Provider name -> SignalResult, in registry order
        """
        self._stats["evaluations"] += 1
        ceiling = collective_timeout
        if ceiling is None:
            ceiling = self._config.collective_timeout_seconds
        started = time.monotonic()

        tasks: dict[str, asyncio.Task] = {
            provider.name: asyncio.create_task(
                self._run_provider(provider, context),
                name=f"{provider.name}:{context.candidate_id}",
            )
            for provider in self._registry
        }

        try:
            done, pending = await asyncio.wait(tasks.values(), timeout=ceiling)
        except asyncio.CancelledError:
            for task in tasks.values():
                task.cancel()
            raise

        for task in pending:
            task.cancel()
            task.add_done_callback(_discard_late_result)

        results: dict[str, SignalResult] = {}
        for name, task in tasks.items():
            tags = {"candidate_id": context.candidate_id, "provider": name}
            if task in done and task.cancelled():
                self._stats["failures"] += 1
                message = f"{name} was cancelled"
                logger.error(f"{context.candidate_id}: {message}", extra=tags)
                self._record_incident(name, "error", message, context.candidate_id)
                results[name] = SignalResult.unavailable(message)
                continue

            if task in done:
                results[name] = task.result()
                continue

            self._stats["collective_timeouts"] += 1
            message = f"{name} timed out: collective limit of {ceiling}s reached"
            logger.warning(f"{context.candidate_id}: {message}", extra=tags)
            self._record_incident(name, "collective_timeout", message, context.candidate_id)
            results[name] = SignalResult.unavailable(message)

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.debug(
            f"{context.candidate_id}: {len(done)}/{len(tasks)} signals completed in {elapsed_ms:.0f}ms"
        )
        return results

    async def _run_provider(
        self,
        provider: BaseSignalProvider,
        context: ScoringContext,
    ) -> SignalResult:
        """Run one provider with its deadline. Never raises except on cancellation."""
        self._stats["provider_calls"] += 1
        timeout = provider.timeout_seconds
        if timeout is None:
            timeout = self._config.provider_timeout_seconds
        candidate_id = context.candidate_id
        tags = {"candidate_id": candidate_id, "provider": provider.name}

        try:
            result = await asyncio.wait_for(provider.evaluate(context), timeout=timeout)

        except (asyncio.TimeoutError, ProviderTimeoutError) as e:
            self._stats["timeouts"] += 1
            if isinstance(e, ProviderTimeoutError):
                message = f"{provider.name} timed out: {e.message}"
            else:
                message = f"{provider.name} timed out after {timeout}s"
            logger.warning(f"{candidate_id}: {message}", extra=tags)
            self._record_incident(provider.name, "timeout", message, candidate_id)
            return SignalResult.unavailable(message)

        except ProviderUnavailableError as e:
            self._stats["unavailable"] += 1
            logger.warning(f"{candidate_id}: {provider.name} unavailable: {e.message}", extra=tags)
            self._record_incident(provider.name, "unavailable", e.message, candidate_id)
            note = f"{e.missing} not configured" if e.missing else None
            return SignalResult.unavailable(e.message, note=note)

        except Exception as e:
            self._stats["failures"] += 1
            message = str(e) or e.__class__.__name__
            logger.error(f"{candidate_id}: {provider.name} failed: {message}", extra=tags)
            self._record_incident(provider.name, "error", message, candidate_id)
            return SignalResult.unavailable(message)

        if not isinstance(result, SignalResult):
            self._stats["failures"] += 1
            message = f"{provider.name} returned {type(result).__name__}, expected SignalResult"
            logger.error(f"{candidate_id}: {message}", extra=tags)
            self._record_incident(provider.name, "invalid_result", message, candidate_id)
            return SignalResult.unavailable(message)

        self._stats["successes"] += 1
        logger.debug(
            f"{candidate_id}: {provider.name} = {result.score:.0f}/100 "
            f"(confidence {result.confidence:.2f}, {result.status.value})"
        )
        return result

    # =========================================================
    # OBSERVABILITY
    # =========================================================

    def _record_incident(
        self,
        provider_name: str,
        incident_type: str,
        error_message: str,
        candidate_id: Optional[str] = None,
    ) -> None:
        """Record an incident for debugging."""
        if self._config.max_incidents == 0:
            return

        self._incidents.append(SignalIncident(
            provider_name=provider_name,
            incident_type=incident_type,
            timestamp=datetime.utcnow(),
            error_message=error_message,
            candidate_id=candidate_id,
        ))

        if len(self._incidents) > self._config.max_incidents:
            self._incidents = self._incidents[-self._config.max_incidents:]

    def get_incidents(self, limit: int = 50) -> list[SignalIncident]:
        """Get recent incidents, newest last."""
        return self._incidents[-limit:]

    def get_stats(self) -> dict[str, Any]:
        return {
            **self._stats,
            "providers": list(self._registry.names),
            "incident_count": len(self._incidents),
        }

    def reset_stats(self) -> None:
        for key in self._stats:
            self._stats[key] = 0
        self._incidents.clear()
