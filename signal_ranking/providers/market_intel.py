"""
Market Intelligence Signal - Recent news activity about the candidate.

Scoring (0-1, scaled to 0-100):
- event categories: funding 0.20, hiring 0.15, expansion 0.12,
  contract 0.10, launch 0.08
- volume: 0.03 per article, max 0.15
- recency: 0.20 for news today, decaying to 0 at 90 days

No news in the lookback window yields the 10/100 baseline.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from ..base import WeightedProvider
from ..cache import TTLCache
from ..models import ScoringContext, SignalName, SignalResult
from ..sources import NewsArticle, NewsSource
from ..utils import round_half_up, round_to


logger = logging.getLogger(__name__)


NEWS_LOOKBACK_DAYS = 90

NO_NEWS_SCORE = 10
NO_NEWS_CONFIDENCE = 0.3

# Category -> (detail flag, score weight, evidence)
CATEGORY_SIGNALS: dict[str, tuple[str, float, str]] = {
    "investment": ("has_funding_news", 0.20, "Recent funding or investment news detected"),
    "hires": ("has_hiring_news", 0.15, "Active hiring announcements found"),
    "contract": ("has_contract_news", 0.10, "Recent contract or partnership news"),
    "expansion": ("has_expansion_news", 0.12, "Market or geographic expansion signals"),
    "launches": ("has_launch_news", 0.08, "Recent product or service launches"),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MarketIntelligenceProvider(WeightedProvider):
    """News-based growth signal."""

    SIGNAL_NAME = SignalName.MARKET_INTELLIGENCE.value
    DISPLAY_NAME = "Market Intelligence"
    DEFAULT_WEIGHT = 0.25

    def __init__(
        self,
        news: Optional[NewsSource] = None,
        weight: Optional[float] = None,
        cache: Optional[TTLCache] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(weight=weight, cache=cache)
        self._news = news
        self._clock = clock

    async def evaluate(self, context: ScoringContext) -> SignalResult:
        external_id = context.candidate.external_id
        if not external_id:
            return SignalResult.no_data(
                NO_NEWS_SCORE, NO_NEWS_CONFIDENCE,
                ("No organization identifier available",),
                error="Missing external_id",
            )

        source = self._require_source(self._news, "news")
        now = self._clock()
        since = now - timedelta(days=NEWS_LOOKBACK_DAYS)

        articles = await self._cached_fetch(
            external_id, source, lambda: source.fetch_news(external_id, since),
        )
        articles = [a for a in articles or () if a.published_at >= since]

        if not articles:
            return SignalResult.no_data(
                NO_NEWS_SCORE, NO_NEWS_CONFIDENCE, ("No recent news found",),
            )

        return self.score_articles(articles, now)

    def score_articles(self, articles: Sequence[NewsArticle], now: datetime) -> SignalResult:
        flags = {flag: False for flag, _, _ in CATEGORY_SIGNALS.values()}
        for article in articles:
            for category in article.event_categories:
                if category in CATEGORY_SIGNALS:
                    flags[CATEGORY_SIGNALS[category][0]] = True

        most_recent = max(a.published_at for a in articles)
        days_since = max(0, (now - most_recent).days)

        score = 0.0
        for flag, weight, _ in CATEGORY_SIGNALS.values():
            if flags[flag]:
                score += weight
        score += min(0.15, len(articles) * 0.03)
        score += max(0.0, 0.20 - (days_since / NEWS_LOOKBACK_DAYS) * 0.20)
        score = min(1.0, score)

        category_count = sum(flags.values())
        recency_confidence = 1.0 if days_since < 30 else 0.7 if days_since < 60 else 0.5
        confidence = round_to(
            min(1.0, len(articles) / 5) * 0.4
            + (category_count / len(CATEGORY_SIGNALS)) * 0.3
            + recency_confidence * 0.3,
            2,
        )

        evidence = [text for flag, _, text in CATEGORY_SIGNALS.values() if flags[flag]]
        if days_since < 30:
            evidence.append(f"Very recent news activity ({days_since} days ago)")
        elif days_since < 60:
            evidence.append(f"Recent news activity ({days_since} days ago)")
        if len(articles) > 5:
            evidence.append(f"High news volume ({len(articles)} articles)")
        if not evidence:
            evidence.append("Limited market activity signals")

        ordered = sorted(articles, key=lambda a: a.published_at, reverse=True)
        detail = {
            **flags,
            "article_count": len(articles),
            "most_recent_date": most_recent.isoformat(),
            "articles": [a.to_dict() for a in ordered[:10]],
        }

        return SignalResult(
            score=round_half_up(score * 100),
            confidence=confidence,
            evidence=tuple(evidence),
            detail=detail,
        )
