"""
Collaborator interfaces for provider data.

Providers never talk to third-party services directly. They receive
one of these sources at construction and call it; the concrete
adapter (HTTP client, database reader, test double) lives with the
caller.

A source reports whether it is configured. A provider holding an
unconfigured source raises ProviderUnavailableError, which the
orchestrator logs distinctly from timeouts and errors.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence


# ============================================================
# RECORD TYPES
# ============================================================


@dataclass(frozen=True)
class NewsArticle:
    """News item about an organization."""
    id: str
    title: str
    published_at: datetime
    event_categories: tuple[str, ...] = ()
    url: Optional[str] = None
    snippet: Optional[str] = None

    def __post_init__(self) -> None:
        if self.published_at.tzinfo is None:
            object.__setattr__(self, "published_at", self.published_at.replace(tzinfo=timezone.utc))
        object.__setattr__(self, "event_categories", tuple(c.lower() for c in self.event_categories))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "published_at": self.published_at.isoformat(),
            "event_categories": list(self.event_categories),
            "url": self.url,
        }


@dataclass(frozen=True)
class DepartmentMetrics:
    """Headcount movement for one department."""
    new: int = 0
    retained: int = 0
    churned: int = 0


@dataclass(frozen=True)
class OrganizationIntel:
    """
    Organization-level intelligence.

    intent: "high", "medium", "low" or None when unknown
    employee_metrics: department name -> headcount movement, None when unknown
    technologies: names of technologies the organization uses
    """
    intent: Optional[str] = None
    employee_metrics: Optional[Mapping[str, DepartmentMetrics]] = field(default=None, hash=False, compare=False)
    technologies: tuple[str, ...] = ()


@dataclass(frozen=True)
class Person:
    """A contact at an organization."""
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    seniority: Optional[str] = None
    departments: tuple[str, ...] = ()
    email: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


# ============================================================
# SOURCE INTERFACES
# ============================================================


class DataSource(ABC):
    """Common base for collaborator sources."""

    source_name: str = "source"

    @property
    def is_configured(self) -> bool:
        """False when credentials or configuration are missing."""
        return True


class NewsSource(DataSource):
    source_name = "news"

    @abstractmethod
    async def fetch_news(
        self,
        organization_id: str,
        since: datetime,
    ) -> Sequence[NewsArticle]:
        """News about the organization published on or after `since`."""
        pass


class OrganizationSource(DataSource):
    source_name = "organizations"

    @abstractmethod
    async def fetch_organization(self, organization_id: str) -> Optional[OrganizationIntel]:
        """Organization intelligence, or None when the organization is unknown."""
        pass


class PeopleSource(DataSource):
    source_name = "people"

    @abstractmethod
    async def search_people(
        self,
        organization_id: str,
        departments: Sequence[str],
        seniorities: Sequence[str],
    ) -> Sequence[Person]:
        """Contacts at the organization matching the filters."""
        pass


class EmbeddingSource(DataSource):
    source_name = "embeddings"

    @abstractmethod
    async def embed(self, texts: Sequence[str]) -> Sequence[Sequence[float]]:
        """One embedding vector per input text, in order."""
        pass


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 for empty or zero vectors."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)
