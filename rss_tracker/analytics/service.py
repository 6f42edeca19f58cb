"""
Read-side analytics over stored articles.

The aggregation helpers are pure functions over plain row mappings so they
can be tested without a database. AnalyticsService wires them to the
repository's lightweight projection.
"""

import re
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from rss_tracker.analytics.stopwords import STOP_WORDS
from rss_tracker.storage.repository import ArticleRepository

Granularity = Literal["hour", "day", "week"]

SENTIMENTS = ("bullish", "bearish", "neutral")

_KEYWORD_PATTERN = re.compile(r"\b[a-zàâäéèêëïîôùûüÿæœç]{3,}\b", re.IGNORECASE)


def _empty_counts() -> dict[str, int]:
    return {s: 0 for s in SENTIMENTS}


def _sentiment_of(row: Mapping[str, Any]) -> str:
    sentiment = row.get("sentiment")
    return sentiment if sentiment in SENTIMENTS else "neutral"


def sentiment_distribution(rows: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Global and per-source sentiment counts."""
    distribution = _empty_counts()
    by_source: dict[str, dict[str, int]] = {}
    total = 0

    for row in rows:
        sentiment = _sentiment_of(row)
        distribution[sentiment] += 1
        source = row.get("feed_name") or "Unknown"
        by_source.setdefault(source, _empty_counts())[sentiment] += 1
        total += 1

    return {"total": total, "distribution": distribution, "by_source": by_source}


def extract_keywords(text: str) -> list[str]:
    return [
        word
        for word in _KEYWORD_PATTERN.findall(text.lower())
        if word not in STOP_WORDS
    ]


def hot_topics(rows: Iterable[Mapping[str, Any]], limit: int = 50) -> list[dict[str, Any]]:
    """
    Rank keywords from titles and summaries by frequency.

    Each keyword carries the sentiment it co-occurs with most often; ties
    resolve in the order bullish, bearish, neutral.
    """
    counts: Counter[str] = Counter()
    sentiments: dict[str, Counter[str]] = {}

    for row in rows:
        sentiment = _sentiment_of(row)
        text = f"{row.get('title') or ''} {row.get('summary') or ''}"
        for keyword in extract_keywords(text):
            counts[keyword] += 1
            sentiments.setdefault(keyword, Counter())[sentiment] += 1

    topics = []
    for keyword, count in counts.items():
        per_sentiment = sentiments[keyword]
        dominant = max(SENTIMENTS, key=lambda s: per_sentiment[s])
        topics.append({"keyword": keyword, "count": count, "sentiment": dominant})

    topics.sort(key=lambda t: t["count"], reverse=True)
    return topics[:limit]


def time_bucket(moment: datetime, granularity: Granularity) -> str:
    """
    Bucket key for a timestamp, in UTC.

    hour: YYYY-MM-DDTHH:00, day: YYYY-MM-DD, week: the Sunday starting the week.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    if granularity == "hour":
        return moment.strftime("%Y-%m-%dT%H:00")
    if granularity == "week":
        # isoweekday: Monday=1 ... Sunday=7
        week_start = moment - timedelta(days=moment.isoweekday() % 7)
        return week_start.strftime("%Y-%m-%d")
    return moment.strftime("%Y-%m-%d")


def sentiment_timeline(
    rows: Iterable[Mapping[str, Any]],
    granularity: Granularity = "day",
) -> list[dict[str, Any]]:
    """Sentiment counts per time bucket, keyed on publication or fetch time."""
    buckets: dict[str, dict[str, int]] = {}
    for row in rows:
        moment = row.get("publication_date") or row.get("fetched_at")
        if moment is None:
            continue
        key = time_bucket(moment, granularity)
        buckets.setdefault(key, _empty_counts())[_sentiment_of(row)] += 1

    return [{"date": key, **counts} for key, counts in sorted(buckets.items())]


class AnalyticsService:
    """Repository-backed analytics queries."""

    def __init__(self, repository: ArticleRepository):
        self._repo = repository

    async def get_sentiment_distribution(
        self,
        date_range: str = "all",
        category: str | None = None,
        source: str | None = None,
    ) -> dict[str, Any]:
        rows = await self._repo.list_for_analytics(
            date_range=date_range, category=category, source=source, analyzed_only=True
        )
        return sentiment_distribution(rows)

    async def get_hot_topics(
        self,
        date_range: str = "all",
        category: str | None = None,
        source: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        rows = await self._repo.list_for_analytics(
            date_range=date_range, category=category, source=source
        )
        return hot_topics(rows, limit)

    async def get_timeline(
        self,
        date_range: str = "week",
        category: str | None = None,
        source: str | None = None,
        granularity: Granularity = "day",
    ) -> list[dict[str, Any]]:
        rows = await self._repo.list_for_analytics(
            date_range=date_range, category=category, source=source, analyzed_only=True
        )
        return sentiment_timeline(rows, granularity)
