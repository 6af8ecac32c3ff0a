"""
Base Signal Provider - Abstract interface for all signals.

A provider computes ONE signal for ONE candidate. It reads the shared
ScoringContext, performs whatever lookups it needs through its injected
collaborators, and returns a SignalResult.

Providers may raise. The orchestrator converts any exception (and any
timeout) into a zero result, so a provider never has to guard against
its own failures.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, TypeVar

from .cache import TTLCache
from .exceptions import (
    ProviderTimeoutError,
    ProviderUnavailableError,
    SignalProviderError,
    SourceFetchError,
)
from .models import ScoringContext, SignalResult
from .sources import DataSource


logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseSignalProvider(ABC):
    """
    Abstract base class for signal providers.

    All subclasses must implement:
    - name - stable identifier, used as the component key
    - weight - contribution to the composite score
    - evaluate() - compute the signal for one candidate

    Optional:
    - display_name - label used in the breakdown text
    - timeout_seconds - overrides the orchestrator's per-provider deadline

    Instances must hold no per-candidate mutable state; the same
    provider evaluates many candidates concurrently.
    """

    timeout_seconds: Optional[float] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable signal name."""
        pass

    @property
    @abstractmethod
    def weight(self) -> float:
        """Weight in the composite score (0-1)."""
        pass

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()

    @abstractmethod
    async def evaluate(self, context: ScoringContext) -> SignalResult:
        """
        Compute the signal for one candidate.

        Raises:
            ProviderUnavailableError: a collaborator is not configured
            SignalProviderError: the lookup failed
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, weight={self.weight})"


class WeightedProvider(BaseSignalProvider):
    """
    Provider whose weight is fixed at construction.

    Concrete providers define DEFAULT_WEIGHT and accept a `weight`
    override so a registry can be rebalanced without subclassing.
    Lookups go through an optional injected TTLCache.
    """

    SIGNAL_NAME: str = ""
    DISPLAY_NAME: Optional[str] = None
    DEFAULT_WEIGHT: float = 0.0

    def __init__(
        self,
        weight: Optional[float] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self._weight = self.DEFAULT_WEIGHT if weight is None else weight
        self._cache = cache

    def _require_source(self, source: Optional[DataSource], label: str) -> DataSource:
        """Return the source or raise ProviderUnavailableError."""
        if source is None or not source.is_configured:
            raise ProviderUnavailableError(
                f"{self.name}: {label} source not configured",
                provider_name=self.name,
                missing=label,
            )
        return source

    async def _cached_fetch(
        self,
        key: str,
        source: DataSource,
        fetch: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Run a collaborator lookup through the cache.

        Collaborator failures are wrapped in SourceFetchError.
        """
        cache_key = f"{self.name}:{key}"
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug(f"{self.name}: cache hit for {key}")
                return cached

        try:
            value = await fetch()
        except SignalProviderError:
            raise
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(
                f"{source.source_name} lookup timed out",
                provider_name=self.name,
            ) from e
        except Exception as e:
            raise SourceFetchError(
                f"{source.source_name} lookup failed: {e}",
                provider_name=self.name,
                source_name=source.source_name,
            ) from e

        if self._cache is not None and value is not None:
            self._cache.set(cache_key, value)
        return value

    @property
    def name(self) -> str:
        return self.SIGNAL_NAME

    @property
    def weight(self) -> float:
        return self._weight

    @property
    def display_name(self) -> str:
        return self.DISPLAY_NAME or super().display_name
