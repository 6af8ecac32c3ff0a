"""
Composite Scorer - Weighted combination of signal results.

============================================================
RULES
============================================================
overall     = round_half_up(sum(score[p] * weight[p]))
              over every registered provider; a missing result
              contributes 0
confidence  = mean of registered providers' confidences
              (missing counts as 0):
              > 0.7 high, > 0.4 medium, otherwise low
flags       = FlagRule evaluation against components and details
breakdown   = one line per provider plus the fired flag labels;
              derived from components and flags only
errors      = every result's error, verbatim, in registry order

============================================================
"""

import logging
from typing import Any, Mapping, Sequence

from .config import DEFAULT_FLAG_RULES, FlagRule
from .models import (
    CompositeScore,
    ConfidenceLevel,
    SignalResult,
    SignalStatus,
)
from .registry import ProviderRegistry
from .utils import clamp, round_half_up, round_to


logger = logging.getLogger(__name__)


def _format_score(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


def _format_weight(weight: float) -> str:
    return f"{round(weight * 100, 2):g}"


class CompositeScorer:
    """Combines per-provider results into one CompositeScore."""

    def __init__(
        self,
        registry: ProviderRegistry,
        flag_rules: Sequence[FlagRule] = DEFAULT_FLAG_RULES,
    ) -> None:
        self._registry = registry
        self._flag_rules = tuple(flag_rules)

    def combine(self, results: Mapping[str, SignalResult]) -> CompositeScore:
        weights = self._registry.weights
        unknown = set(results) - set(weights)
        if unknown:
            logger.debug(f"Ignoring results from unregistered providers: {sorted(unknown)}")

        components: dict[str, float] = {}
        evidence: dict[str, list[str]] = {}
        details: dict[str, Any] = {}
        statuses: dict[str, SignalStatus] = {}
        errors: list[str] = []
        weighted_sum = 0.0
        confidence_sum = 0.0

        for name, weight in weights.items():
            result = results.get(name)
            if result is None:
                components[name] = 0.0
                statuses[name] = SignalStatus.FAILED
                evidence[name] = []
                continue

            components[name] = result.score
            statuses[name] = result.status
            evidence[name] = list(result.evidence)
            if result.detail is not None:
                details[name] = dict(result.detail)
            if result.error:
                errors.append(result.error)

            weighted_sum += result.score * weight
            confidence_sum += result.confidence

        overall = int(clamp(round_half_up(weighted_sum), 0, 100))
        mean_confidence = confidence_sum / len(weights)
        detected_flags = self.detect_flags(components, details)

        return CompositeScore(
            overall=overall,
            confidence=ConfidenceLevel.from_mean(mean_confidence),
            components=components,
            detected_flags=detected_flags,
            breakdown=self.build_breakdown(components, detected_flags),
            errors=errors,
            mean_confidence=round_to(mean_confidence, 4),
            evidence=evidence,
            details=details,
            statuses=statuses,
        )

    def error_score(self, error: Any) -> CompositeScore:
        """Zero score for a candidate whose evaluation failed outright."""
        if isinstance(error, BaseException):
            message = str(error) or error.__class__.__name__
        else:
            message = str(error)

        components = {name: 0.0 for name in self._registry.names}
        detected_flags = {rule.name: False for rule in self._flag_rules}

        return CompositeScore(
            overall=0,
            confidence=ConfidenceLevel.LOW,
            components=components,
            detected_flags=detected_flags,
            breakdown=self.build_breakdown(components, detected_flags),
            errors=[message],
            mean_confidence=0.0,
            evidence={name: [] for name in components},
            statuses={name: SignalStatus.FAILED for name in components},
        )

    def detect_flags(
        self,
        components: Mapping[str, float],
        details: Mapping[str, Any],
    ) -> dict[str, bool]:
        return {
            rule.name: self._flag_fires(rule, components, details)
            for rule in self._flag_rules
        }

    @staticmethod
    def _flag_fires(
        rule: FlagRule,
        components: Mapping[str, float],
        details: Mapping[str, Any],
    ) -> bool:
        if rule.signal not in components:
            return False

        if rule.detail_key is None:
            return components[rule.signal] > rule.threshold

        value = (details.get(rule.signal) or {}).get(rule.detail_key)
        if rule.threshold is None:
            return value is True
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return value > rule.threshold

    def build_breakdown(
        self,
        components: Mapping[str, float],
        detected_flags: Mapping[str, bool],
    ) -> str:
        weights = self._registry.weights
        lines = ["Signal breakdown:"]

        for name, score in components.items():
            lines.append(
                f"- {self._registry.display_name(name)}: {_format_score(score)}/100 "
                f"(weight: {_format_weight(weights.get(name, 0.0))}%)"
            )

        labels = [
            rule.label for rule in self._flag_rules
            if detected_flags.get(rule.name)
        ]
        if labels:
            lines.append(f"- Positive signals: {', '.join(labels)}")

        return "\n".join(lines)

    @property
    def flag_rules(self) -> tuple[FlagRule, ...]:
        return self._flag_rules
