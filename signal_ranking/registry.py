"""
Provider Registry - Fixed, validated set of signal providers.

The registry is built once at startup and never changes afterwards.
Construction validates weights; an invalid registry raises
WeightConfigurationError and the engine must not start.

Usage:
    registry = ProviderRegistry([
        JobSkillsMatchProvider(embeddings=embedding_source),
        MarketIntelligenceProvider(news=news_source),
        DepartmentFitProvider(organizations=org_source),
        ContactQualityProvider(people=people_source),
    ])
"""

import logging
from typing import Iterable, Iterator, Mapping, Optional

from .base import BaseSignalProvider
from .config import WEIGHT_EPSILON
from .exceptions import WeightConfigurationError


logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Ordered, immutable collection of providers.

    Invariants:
    - at least one provider
    - names unique and non-empty
    - weights non-negative and summing to 1.0 (+/- WEIGHT_EPSILON)
    """

    def __init__(
        self,
        providers: Iterable[BaseSignalProvider],
        epsilon: float = WEIGHT_EPSILON,
    ) -> None:
        self._providers: tuple[BaseSignalProvider, ...] = tuple(providers)
        self._epsilon = epsilon
        self._validate()
        self._by_name = {p.name: p for p in self._providers}

        summary = ", ".join(f"{p.name}={p.weight:.2f}" for p in self._providers)
        logger.info(f"Provider registry ready: {summary}")

    def _validate(self) -> None:
        errors = []

        if not self._providers:
            errors.append("registry has no providers")

        seen: set[str] = set()
        for provider in self._providers:
            if not provider.name:
                errors.append(f"provider {provider!r} has an empty name")
            elif provider.name in seen:
                errors.append(f"duplicate provider name: {provider.name}")
            seen.add(provider.name)

            if provider.weight < 0:
                errors.append(f"provider {provider.name} has negative weight {provider.weight}")

        total = sum(p.weight for p in self._providers)
        if self._providers and abs(total - 1.0) > self._epsilon:
            errors.append(f"weights sum to {total:.6f}, expected 1.0")

        if errors:
            for error in errors:
                logger.error(f"Provider registry invalid: {error}")
            raise WeightConfigurationError(
                "Invalid provider registry",
                errors=errors,
                details={"weights": {p.name: p.weight for p in self._providers}},
            )

    @property
    def providers(self) -> tuple[BaseSignalProvider, ...]:
        return self._providers

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self._providers)

    @property
    def weights(self) -> Mapping[str, float]:
        return {p.name: p.weight for p in self._providers}

    def get(self, name: str) -> Optional[BaseSignalProvider]:
        return self._by_name.get(name)

    def display_name(self, name: str) -> str:
        provider = self._by_name.get(name)
        return provider.display_name if provider else name

    def __iter__(self) -> Iterator[BaseSignalProvider]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
