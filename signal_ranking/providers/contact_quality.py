"""
Contact Quality Signal - Availability of reachable decision makers.

Points (max 100):
- any contacts                  +10
- decision makers (1/2/3+)      +15 / +25 / +40
- department relevance ratio    up to +25
- e-mail ratio                  up to +15
- champion titles (1/2+)        +5 / +10

Without an organization identifier the score is estimated from the
company size (30-50, confidence 0.2).
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ..base import WeightedProvider
from ..cache import TTLCache
from ..models import Candidate, ScoringContext, SignalName, SignalResult
from ..sources import PeopleSource, Person
from ..utils import round_half_up, round_to


logger = logging.getLogger(__name__)


NO_CONTACTS_SCORE = 20
NO_CONTACTS_CONFIDENCE = 0.3
SIZE_ESTIMATE_CONFIDENCE = 0.2

DECISION_MAKER_SENIORITIES = ("c_suite", "vp", "director", "owner", "founder", "partner")

RELEVANT_DEPARTMENTS = (
    "engineering", "technology", "product", "research", "development",
    "data", "analytics", "innovation", "hr", "human resources", "talent",
    "operations", "strategy", "marketing", "design",
)

CHAMPION_TITLES = (
    "chief", "vp", "vice president", "director", "head of",
    "manager", "lead", "principal", "senior",
)

# Substring of the request domain -> department filters for the people search
DOMAIN_DEPARTMENTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("engineering", ("engineering", "information_technology", "operations")),
    ("computer science", ("engineering", "information_technology", "data")),
    ("data science", ("data", "engineering", "information_technology")),
    ("business", ("operations", "finance", "marketing", "sales")),
    ("marketing", ("marketing", "sales", "media_and_communication")),
    ("finance", ("finance", "operations", "consulting")),
    ("design", ("design", "product_management", "marketing")),
    ("healthcare", ("medical_health", "operations", "research")),
    ("research", ("research", "engineering", "education")),
)
DEFAULT_DEPARTMENTS = ("human_resources", "operations", "engineering")

# Size-range marker -> (estimated score, evidence), checked in order
SIZE_ESTIMATES: tuple[tuple[tuple[str, ...], int, str], ...] = (
    (("1001", "5001", "10001"), 50, "Large company - likely has dedicated partnership contacts"),
    (("201", "501"), 45, "Mid-size company - good partnership potential"),
    (("51", "101"), 40, "Growing company - accessible leadership"),
    (("11", "1-10"), 35, "Small company - direct founder access possible"),
)


def departments_for_domain(domain: str) -> tuple[str, ...]:
    for key, departments in DOMAIN_DEPARTMENTS:
        if key in domain:
            return departments
    return DEFAULT_DEPARTMENTS


@dataclass
class ContactAnalysis:
    total_contacts: int = 0
    decision_makers: int = 0
    department_relevant: int = 0
    verified_emails: int = 0
    champion_titles: int = 0
    seniority_breakdown: dict[str, int] = field(default_factory=dict)
    top_contacts: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_contacts": self.total_contacts,
            "decision_makers": self.decision_makers,
            "department_relevant": self.department_relevant,
            "verified_emails": self.verified_emails,
            "champion_titles": self.champion_titles,
            "seniority_breakdown": dict(self.seniority_breakdown),
            "top_contacts": list(self.top_contacts),
        }


def _is_decision_maker(person: Person) -> bool:
    return bool(person.seniority) and person.seniority.lower() in DECISION_MAKER_SENIORITIES


def analyze_contacts(people: Sequence[Person]) -> ContactAnalysis:
    analysis = ContactAnalysis(total_contacts=len(people))
    seniorities: Counter = Counter()

    for person in people:
        if _is_decision_maker(person):
            analysis.decision_makers += 1

        if person.seniority:
            seniorities[person.seniority.lower()] += 1

        departments = [d.lower() for d in person.departments]
        if any(rd in d for d in departments for rd in RELEVANT_DEPARTMENTS):
            analysis.department_relevant += 1

        if person.email and "@" in person.email:
            analysis.verified_emails += 1

        if person.title:
            title = person.title.lower()
            if any(ct in title for ct in CHAMPION_TITLES):
                analysis.champion_titles += 1

    analysis.seniority_breakdown = dict(seniorities)
    analysis.top_contacts = [
        {
            "name": p.full_name,
            "title": p.title or "Unknown",
            "has_email": bool(p.email),
        }
        for p in people
        if _is_decision_maker(p)
    ][:3]
    return analysis


def score_contacts(analysis: ContactAnalysis) -> int:
    score = 0

    if analysis.total_contacts > 0:
        score += 10

    if analysis.decision_makers >= 3:
        score += 40
    elif analysis.decision_makers == 2:
        score += 25
    elif analysis.decision_makers == 1:
        score += 15

    total = max(analysis.total_contacts, 1)
    score += min(25, round_half_up(analysis.department_relevant / total * 30))
    score += min(15, round_half_up(analysis.verified_emails / total * 20))

    if analysis.champion_titles >= 2:
        score += 10
    elif analysis.champion_titles == 1:
        score += 5

    return min(100, max(0, score))


def contact_confidence(analysis: ContactAnalysis) -> float:
    confidence = 0.3

    if analysis.total_contacts >= 10:
        confidence += 0.3
    elif analysis.total_contacts >= 5:
        confidence += 0.2
    elif analysis.total_contacts >= 2:
        confidence += 0.1

    if analysis.decision_makers >= 2:
        confidence += 0.2
    elif analysis.decision_makers >= 1:
        confidence += 0.1

    if analysis.verified_emails >= 3:
        confidence += 0.2
    elif analysis.verified_emails >= 1:
        confidence += 0.1

    return min(1.0, round_to(confidence, 2))


class ContactQualityProvider(WeightedProvider):
    """Decision-maker availability from the people source."""

    SIGNAL_NAME = SignalName.CONTACT_QUALITY.value
    DISPLAY_NAME = "Contact Quality"
    DEFAULT_WEIGHT = 0.20

    def __init__(
        self,
        people: Optional[PeopleSource] = None,
        weight: Optional[float] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        super().__init__(weight=weight, cache=cache)
        self._people = people

    async def evaluate(self, context: ScoringContext) -> SignalResult:
        source = self._require_source(self._people, "people")

        external_id = context.candidate.external_id
        if not external_id:
            logger.debug(f"{context.candidate_id}: no external id, estimating contacts from size")
            return self.estimate_from_size(context.candidate)

        departments = departments_for_domain(context.domain)
        people = await self._cached_fetch(
            f"{external_id}:{','.join(departments)}",
            source,
            lambda: source.search_people(external_id, departments, DECISION_MAKER_SENIORITIES),
        )

        if not people:
            return SignalResult.no_data(
                NO_CONTACTS_SCORE, NO_CONTACTS_CONFIDENCE,
                ("No contacts found",),
                detail={"contact_count": 0},
            )

        analysis = analyze_contacts(people)
        return SignalResult(
            score=score_contacts(analysis),
            confidence=contact_confidence(analysis),
            evidence=self._describe(analysis),
            detail={"contact_count": len(people), "analysis": analysis.to_dict()},
        )

    @staticmethod
    def estimate_from_size(candidate: Candidate) -> SignalResult:
        size = (candidate.size or "").lower()
        score = 30
        evidence = ["Contact data estimated from company profile"]

        for markers, estimate, text in SIZE_ESTIMATES:
            if any(marker in size for marker in markers):
                score = estimate
                evidence.append(text)
                break

        return SignalResult.no_data(
            score, SIZE_ESTIMATE_CONFIDENCE, tuple(evidence),
            detail={"estimated_from_size": True, "size": candidate.size},
        )

    @staticmethod
    def _describe(analysis: ContactAnalysis) -> tuple[str, ...]:
        evidence = []

        if analysis.total_contacts >= 10:
            evidence.append(f"Strong contact database ({analysis.total_contacts} contacts found)")
        elif analysis.total_contacts >= 5:
            evidence.append(f"Good contact availability ({analysis.total_contacts} contacts)")
        elif analysis.total_contacts > 0:
            evidence.append(f"Limited contacts available ({analysis.total_contacts})")

        if analysis.decision_makers >= 3:
            evidence.append(f"Multiple decision-makers identified ({analysis.decision_makers})")
        elif analysis.decision_makers >= 1:
            evidence.append(f"Decision-maker available ({analysis.decision_makers})")

        if analysis.seniority_breakdown:
            top = sorted(
                analysis.seniority_breakdown,
                key=lambda s: analysis.seniority_breakdown[s],
                reverse=True,
            )[:2]
            evidence.append("Key roles: " + ", ".join(s.replace("_", " ") for s in top))

        if analysis.verified_emails >= 3:
            evidence.append(f"Direct contact possible ({analysis.verified_emails} verified emails)")
        elif analysis.verified_emails >= 1:
            evidence.append("Email contact available")

        if analysis.top_contacts:
            evidence.append(f"Top contact: {analysis.top_contacts[0]['title']}")

        return tuple(evidence)
