"""
Department Fit Signal - Buying intent, department growth and technology overlap.

combined = intent * 0.4 + growth * 0.4 + technology * 0.2

Each part defaults to 0.3 when its data is missing. Confidence is the
share of the three data points actually present.
"""

import logging
from typing import Any, Optional, Sequence

from ..base import WeightedProvider
from ..cache import TTLCache
from ..models import ScoringContext, SignalName, SignalResult
from ..sources import OrganizationIntel, OrganizationSource
from ..utils import round_half_up, round_to


logger = logging.getLogger(__name__)


DEFAULT_PART_SCORE = 0.3
NO_DATA_SCORE = 30
NO_DATA_CONFIDENCE = 0.3

DOMAIN_TO_DEPARTMENT: dict[str, str] = {
    "finance": "finance",
    "engineering": "engineering",
    "marketing": "marketing",
    "operations": "operations",
    "sales": "sales",
    "hr": "human_resources",
}
DEFAULT_DEPARTMENT = "engineering"

INTENT_SCORES: dict[str, float] = {
    "high": 1.0,
    "medium": 0.6,
}


def department_for_domain(domain: str) -> str:
    return DOMAIN_TO_DEPARTMENT.get(domain, DEFAULT_DEPARTMENT)


class DepartmentFitProvider(WeightedProvider):
    """Organization intelligence vs. the request domain and skills."""

    SIGNAL_NAME = SignalName.DEPARTMENT_FIT.value
    DISPLAY_NAME = "Department Fit"
    DEFAULT_WEIGHT = 0.20

    def __init__(
        self,
        organizations: Optional[OrganizationSource] = None,
        weight: Optional[float] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        super().__init__(weight=weight, cache=cache)
        self._organizations = organizations

    async def evaluate(self, context: ScoringContext) -> SignalResult:
        external_id = context.candidate.external_id
        if not external_id:
            return SignalResult.no_data(
                NO_DATA_SCORE, NO_DATA_CONFIDENCE,
                ("No organization identifier available",),
                error="Missing external_id",
            )

        source = self._require_source(self._organizations, "organizations")
        intel = await self._cached_fetch(
            external_id, source, lambda: source.fetch_organization(external_id),
        )

        if intel is None:
            return SignalResult.no_data(
                NO_DATA_SCORE, NO_DATA_CONFIDENCE, ("Unable to assess department fit",),
            )

        return self.score_intel(intel, context.domain, context.required_skills)

    def score_intel(
        self,
        intel: OrganizationIntel,
        domain: str,
        skills: Sequence[str],
    ) -> SignalResult:
        department = department_for_domain(domain)

        buying_intent = DEFAULT_PART_SCORE
        if intel.intent is not None:
            buying_intent = INTENT_SCORES.get(intel.intent.lower(), DEFAULT_PART_SCORE)

        growth = DEFAULT_PART_SCORE
        metrics = (intel.employee_metrics or {}).get(department)
        if metrics is not None:
            retained = max(1, metrics.retained)
            growth_rate = metrics.new / retained
            churn_rate = metrics.churned / retained
            growth = min(1.0, growth_rate * 0.7 + (1 - churn_rate) * 0.3)

        technology = DEFAULT_PART_SCORE
        if intel.technologies and skills:
            technology = self.technology_match(intel.technologies, skills)

        combined = buying_intent * 0.4 + growth * 0.4 + technology * 0.2

        data_points = sum((
            intel.intent is not None,
            intel.employee_metrics is not None,
            bool(intel.technologies),
        ))

        detail: dict[str, Any] = {
            "department": department,
            "intent": intel.intent,
            "buying_intent_score": buying_intent,
            "department_growth_score": growth,
            "technology_match_score": technology,
            "technologies": list(intel.technologies[:10]),
        }

        return SignalResult(
            score=round_half_up(combined * 100),
            confidence=round_to(data_points / 3, 2),
            evidence=self._describe(intel, department, growth, technology),
            detail=detail,
        )

    @staticmethod
    def technology_match(technologies: Sequence[str], skills: Sequence[str]) -> float:
        tech_names = [t.lower() for t in technologies]
        match_count = 0
        for skill in skills:
            lowered = skill.lower()
            if any(tech in lowered or lowered in tech for tech in tech_names):
                match_count += 1
        return min(1.0, match_count / min(5, len(skills)))

    @staticmethod
    def _describe(
        intel: OrganizationIntel,
        department: str,
        growth: float,
        technology: float,
    ) -> tuple[str, ...]:
        evidence = []

        intent = (intel.intent or "").lower()
        if intent == "high":
            evidence.append("High buying intent detected")
        elif intent == "medium":
            evidence.append("Moderate buying intent detected")

        if growth > 0.6:
            evidence.append(f"{department.replace('_', ' ').capitalize()} department is growing")
        elif growth < 0.3:
            evidence.append("Relevant department shows limited growth")

        if technology > 0.5:
            evidence.append("Technology stack aligns with required skills")

        if intel.technologies:
            evidence.append(f"{len(intel.technologies)} technologies identified")

        if not evidence:
            evidence.append("Limited organizational intelligence available")

        return tuple(evidence)
