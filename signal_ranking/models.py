"""
Signal Ranking Data Models - Shared contract types.

The ScoringContext is the only thing a provider sees. It is immutable
and shared by every provider evaluating the same candidate, so all of
its collections are tuples or read-only mappings.

SignalResult scores are clamped to 0-100 and confidences to 0-1 on
construction; a provider cannot emit an out-of-range value.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from .exceptions import CandidateEvaluationError
from .utils import clamp


logger = logging.getLogger(__name__)


class SignalName(str, Enum):
    """Names of the built-in signals. Custom providers may use any other string."""
    JOB_SKILLS_MATCH = "job_skills_match"
    MARKET_INTELLIGENCE = "market_intelligence"
    DEPARTMENT_FIT = "department_fit"
    CONTACT_QUALITY = "contact_quality"
    ACTIVE_HIRING = "active_hiring"


class SignalStatus(Enum):
    """How a SignalResult was produced."""
    SCORED = "scored"      # computed from real data
    NO_DATA = "no_data"    # provider ran but found nothing to score
    FAILED = "failed"      # synthesized after timeout, error or unavailability


class ConfidenceLevel(Enum):
    """Aggregate confidence tier of a composite score."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_mean(cls, mean_confidence: float) -> "ConfidenceLevel":
        if mean_confidence > 0.7:
            return cls.HIGH
        elif mean_confidence > 0.4:
            return cls.MEDIUM
        return cls.LOW


# ============================================================
# CANDIDATE INPUT
# ============================================================


@dataclass(frozen=True)
class JobPosting:
    """A job posting already fetched for a candidate."""
    title: str
    id: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    posted_at: Optional[str] = None
    location: Optional[str] = None

    @property
    def posted_datetime(self) -> Optional[datetime]:
        """Parsed posting date (UTC), or None when missing or malformed."""
        if not self.posted_at:
            return None
        try:
            parsed = datetime.fromisoformat(self.posted_at.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JobPosting":
        def _opt(key: str) -> Optional[str]:
            value = data.get(key)
            return str(value) if value else None

        return cls(
            title=str(data.get("title") or "Unknown Role"),
            id=_opt("id"),
            url=_opt("url"),
            description=_opt("description") or _opt("short_description"),
            posted_at=_opt("posted_at"),
            location=_opt("location"),
        )

    @classmethod
    def parse_many(cls, raw: Any) -> tuple["JobPosting", ...]:
        """
        Parse stored job postings.

        Accepts a list of mappings/JobPosting objects or a JSON string.
        Anything unparseable yields no postings.
        """
        if not raw:
            return ()

        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                logger.warning("Could not parse job_postings JSON")
                return ()

        if not isinstance(raw, (list, tuple)):
            return ()

        postings = []
        for item in raw:
            if isinstance(item, JobPosting):
                postings.append(item)
            elif isinstance(item, Mapping):
                postings.append(cls.from_dict(item))
        return tuple(postings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "posted_at": self.posted_at,
            "location": self.location,
        }


def _name_list(value: Any, field_name: str, candidate_id: str) -> tuple[str, ...]:
    """A single string is one entry, not a sequence of characters."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, (Mapping, bytes)) or not isinstance(value, Iterable):
        raise CandidateEvaluationError(
            f"Candidate {field_name} must be a list of names, got {type(value).__name__}",
            candidate_id=candidate_id or None,
            details={"field": field_name},
        )
    return tuple(str(item) for item in value if item is not None)


@dataclass(frozen=True)
class Candidate:
    """
    An organization being scored.

    external_id is the identifier used by third-party lookups
    (news, people, organization intelligence).
    """
    id: str
    name: str
    external_id: Optional[str] = None
    industries: tuple[str, ...] = ()
    technologies: tuple[str, ...] = ()
    size: Optional[str] = None
    description: Optional[str] = None
    job_postings: Any = None
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "industries", _name_list(self.industries, "industries", self.id))
        object.__setattr__(self, "technologies", _name_list(self.technologies, "technologies", self.id))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Candidate":
        """
        Build a candidate from a stored row.

        Raises:
            CandidateEvaluationError: the row is not a mapping or has malformed list fields
        """
        if not isinstance(data, Mapping):
            raise CandidateEvaluationError(
                f"Candidate must be a mapping, got {type(data).__name__}",
                candidate_id=None,
            )

        known = {
            "id", "name", "external_id", "apollo_organization_id", "industries",
            "technologies", "size", "description", "job_postings",
        }
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            external_id=data.get("external_id") or data.get("apollo_organization_id"),
            industries=data.get("industries"),
            technologies=data.get("technologies"),
            size=data.get("size"),
            description=data.get("description"),
            job_postings=data.get("job_postings"),
            attributes={k: v for k, v in data.items() if k not in known},
        )


@dataclass(frozen=True)
class ScoringRequest:
    """Shared request parameters: the skills and domain every candidate is scored against."""
    required_skills: tuple[str, ...] = ()
    domain: str = "unknown"
    hints: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        skills = []
        for skill in self.required_skills or ():
            cleaned = str(skill).strip()
            if cleaned and cleaned.lower() not in seen:
                seen.add(cleaned.lower())
                skills.append(cleaned)
        object.__setattr__(self, "required_skills", tuple(skills))
        object.__setattr__(self, "domain", (self.domain or "unknown").strip().lower())
        object.__setattr__(self, "hints", MappingProxyType(dict(self.hints or {})))


@dataclass(frozen=True)
class ScoringContext:
    """Immutable input for one candidate evaluation. Read-only to providers."""
    candidate: Candidate
    required_skills: tuple[str, ...]
    domain: str
    job_postings: tuple[JobPosting, ...] = ()
    hints: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), hash=False, compare=False
    )

    @classmethod
    def build(
        cls,
        candidate: Candidate,
        request: ScoringRequest,
    ) -> "ScoringContext":
        """
        Build the context for one candidate.

        Raises:
            CandidateEvaluationError: the candidate cannot be identified
        """
        if not candidate.id:
            raise CandidateEvaluationError(
                f"Candidate {candidate.name!r} has no id",
                candidate_id=None,
            )

        # Postings supplied with the request win over stored ones
        supplied = request.hints.get("job_postings", {})
        raw_postings = supplied.get(candidate.id) if isinstance(supplied, Mapping) else None
        postings = JobPosting.parse_many(raw_postings) or JobPosting.parse_many(candidate.job_postings)

        return cls(
            candidate=candidate,
            required_skills=request.required_skills,
            domain=request.domain,
            job_postings=postings,
            hints=request.hints,
        )

    @property
    def candidate_id(self) -> str:
        return self.candidate.id


# ============================================================
# SIGNAL OUTPUT
# ============================================================


@dataclass(frozen=True)
class SignalResult:
    """
    Output of one provider invocation.

    score: 0-100 (clamped)
    confidence: 0.0-1.0 (clamped)
    evidence: short human-readable explanations, in order
    detail: opaque payload for audit/storage
    error: non-fatal failure note
    """
    score: float
    confidence: float
    evidence: tuple[str, ...] = ()
    detail: Optional[Mapping[str, Any]] = field(default=None, hash=False, compare=False)
    error: Optional[str] = None
    status: SignalStatus = SignalStatus.SCORED

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", clamp(float(self.score), 0.0, 100.0))
        object.__setattr__(self, "confidence", clamp(float(self.confidence), 0.0, 1.0))
        object.__setattr__(self, "evidence", tuple(str(e) for e in self.evidence or ()))

    @classmethod
    def unavailable(cls, reason: str, note: Optional[str] = None) -> "SignalResult":
        """Synthesized result for a provider that timed out, failed or is not configured."""
        evidence = ("signal unavailable", note) if note else ("signal unavailable",)
        return cls(
            score=0,
            confidence=0,
            evidence=evidence,
            error=reason,
            status=SignalStatus.FAILED,
        )

    @classmethod
    def no_data(
        cls,
        score: float,
        confidence: float,
        evidence: tuple[str, ...],
        error: Optional[str] = None,
        detail: Optional[Mapping[str, Any]] = None,
    ) -> "SignalResult":
        """Result for a provider that ran but had nothing to score."""
        return cls(
            score=score,
            confidence=confidence,
            evidence=evidence,
            detail=detail,
            error=error,
            status=SignalStatus.NO_DATA,
        )

    @property
    def failed(self) -> bool:
        return self.status == SignalStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence,
            "evidence": list(self.evidence),
            "detail": dict(self.detail) if self.detail is not None else None,
            "error": self.error,
            "status": self.status.value,
        }


@dataclass
class CompositeScore:
    """
    Weighted combination of all signals for one candidate.

    overall == round(sum(components[p] * weight[p])) over registered providers.
    Missing providers contribute 0 and still appear in components.
    """
    overall: int
    confidence: ConfidenceLevel
    components: dict[str, float]
    detected_flags: dict[str, bool]
    breakdown: str
    errors: list[str] = field(default_factory=list)
    mean_confidence: float = 0.0
    evidence: dict[str, list[str]] = field(default_factory=dict)
    details: dict[str, Any] = field(default_factory=dict)
    statuses: dict[str, SignalStatus] = field(default_factory=dict)
    computed_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall,
            "confidence": self.confidence.value,
            "mean_confidence": self.mean_confidence,
            "components": dict(self.components),
            "detected_flags": dict(self.detected_flags),
            "breakdown": self.breakdown,
            "errors": list(self.errors),
            "evidence": {k: list(v) for k, v in self.evidence.items()},
            "details": self.details,
            "statuses": {k: v.value for k, v in self.statuses.items()},
            "computed_at": self.computed_at.isoformat(),
        }


@dataclass(frozen=True)
class StorableSignalRecord:
    """
    Flat record for persistence.

    New providers add new `<name>_score` entries, so storage schemas
    stay stable as signals are added.
    """
    candidate_id: str
    scores: Mapping[str, float]
    composite_signal_score: int
    signal_confidence: str
    signal_data: Mapping[str, Any] = field(hash=False, compare=False, default_factory=dict)

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = dict(self.scores)
        row.update({
            "composite_signal_score": self.composite_signal_score,
            "signal_confidence": self.signal_confidence,
            "signal_data": dict(self.signal_data),
        })
        return row


@dataclass
class SignalIncident:
    """Record of a provider failure, kept for debugging."""
    provider_name: str
    incident_type: str  # "timeout", "collective_timeout", "unavailable", "error", "invalid_result"
    timestamp: datetime
    error_message: str
    candidate_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_name": self.provider_name,
            "incident_type": self.incident_type,
            "timestamp": self.timestamp.isoformat(),
            "error_message": self.error_message,
            "candidate_id": self.candidate_id,
        }
