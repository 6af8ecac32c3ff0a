"""
Signal Ranking Exceptions - Custom error hierarchy.

============================================================
EXCEPTION HIERARCHY
============================================================
SignalRankingError (base)
├── ConfigurationError              FATAL - raised at startup
│   ├── WeightConfigurationError
│   └── FallbackConfigError
├── SignalProviderError             non-fatal - becomes a zero result
│   ├── ProviderUnavailableError
│   ├── ProviderTimeoutError
│   └── SourceFetchError
└── CandidateEvaluationError        non-fatal - becomes a zero score

Only ConfigurationError ever reaches the caller. Everything below
the batch boundary is converted into a scored (zero) result.
============================================================
"""

from datetime import datetime
from typing import Any, Optional


class SignalRankingError(Exception):
    """Base exception for all signal ranking errors."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.utcnow()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


# ============================================================
# CONFIGURATION (FATAL)
# ============================================================


class ConfigurationError(SignalRankingError):
    """Invalid configuration. The composite score would be wrong for every candidate."""

    def __init__(
        self,
        message: str,
        errors: Optional[list[str]] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.errors = list(errors or [])

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class WeightConfigurationError(ConfigurationError):
    """Registered provider weights are invalid or do not sum to 1.0."""
    pass


class FallbackConfigError(ConfigurationError):
    """Fallback thresholds or result counts violate their invariants."""
    pass


# ============================================================
# PROVIDER (NON-FATAL)
# ============================================================


class SignalProviderError(SignalRankingError):
    """Base error raised from inside a signal provider."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.provider_name = provider_name

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["provider_name"] = self.provider_name
        return data


class ProviderUnavailableError(SignalProviderError):
    """Provider collaborator is missing configuration or credentials."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        missing: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, provider_name, details)
        self.missing = missing

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["missing"] = self.missing
        return data


class ProviderTimeoutError(SignalProviderError):
    """Provider did not return before its deadline."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        timeout_seconds: Optional[float] = None,
        collective: bool = False,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, provider_name, details)
        self.timeout_seconds = timeout_seconds
        self.collective = collective  # True when the per-candidate ceiling expired

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "timeout_seconds": self.timeout_seconds,
            "collective": self.collective,
        })
        return data


class SourceFetchError(SignalProviderError):
    """A data source collaborator failed to return data."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        source_name: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, provider_name, details)
        self.source_name = source_name

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["source_name"] = self.source_name
        return data


# ============================================================
# CANDIDATE (NON-FATAL)
# ============================================================


class CandidateEvaluationError(SignalRankingError):
    """Failure outside any single provider, e.g. building the scoring context."""

    def __init__(
        self,
        message: str,
        candidate_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.candidate_id = candidate_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["candidate_id"] = self.candidate_id
        return data
