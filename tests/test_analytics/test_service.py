"""Tests for analytics aggregation."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from rss_tracker.analytics.service import (
    AnalyticsService,
    extract_keywords,
    hot_topics,
    sentiment_distribution,
    sentiment_timeline,
    time_bucket,
)

# 2026-02-05 is a Thursday
THURSDAY = datetime(2026, 2, 5, 15, 30, tzinfo=timezone.utc)


def _row(title: str, sentiment: str | None = "neutral", feed_name: str = "CoinDesk",
         publication_date: datetime | None = THURSDAY, **extra) -> dict:
    return {
        "title": title,
        "summary": extra.get("summary"),
        "feed_name": feed_name,
        "sentiment": sentiment,
        "publication_date": publication_date,
        "fetched_at": extra.get("fetched_at", THURSDAY),
    }


class TestSentimentDistribution:
    def test_counts_globally_and_per_source(self) -> None:
        rows = [
            _row("a", "bullish"),
            _row("b", "bullish", feed_name="Decrypt"),
            _row("c", "bearish"),
        ]

        result = sentiment_distribution(rows)

        assert result["total"] == 3
        assert result["distribution"] == {"bullish": 2, "bearish": 1, "neutral": 0}
        assert result["by_source"]["CoinDesk"] == {"bullish": 1, "bearish": 1, "neutral": 0}
        assert result["by_source"]["Decrypt"]["bullish"] == 1

    def test_empty(self) -> None:
        assert sentiment_distribution([]) == {
            "total": 0,
            "distribution": {"bullish": 0, "bearish": 0, "neutral": 0},
            "by_source": {},
        }


class TestKeywords:
    def test_filters_short_and_stop_words(self) -> None:
        words = extract_keywords("The Bitcoin ETF is up after a rally")
        assert words == ["bitcoin", "etf", "rally"]

    def test_keeps_accented_words(self) -> None:
        assert extract_keywords("Les marchés après la décision") == ["marchés", "décision"]


class TestHotTopics:
    def test_ranked_by_frequency(self) -> None:
        rows = [
            _row("Bitcoin rallies on ETF approval", "bullish"),
            _row("Bitcoin slides as regulators circle", "bearish"),
            _row("Ethereum upgrade ships", "bullish"),
        ]

        topics = hot_topics(rows)

        assert topics[0] == {"keyword": "bitcoin", "count": 2, "sentiment": "bullish"}
        assert {t["keyword"] for t in topics[1:]} >= {"ethereum", "regulators"}

    def test_dominant_sentiment(self) -> None:
        rows = [
            _row("Solana outage", "bearish"),
            _row("Solana outage again", "bearish"),
            _row("Solana recovers", "bullish"),
        ]

        [solana] = [t for t in hot_topics(rows) if t["keyword"] == "solana"]

        assert solana["count"] == 3
        assert solana["sentiment"] == "bearish"

    def test_tie_prefers_bearish_over_neutral(self) -> None:
        rows = [_row("Tether audit", "bearish"), _row("Tether audit", "neutral")]
        [tether, _] = hot_topics(rows)
        assert tether["sentiment"] == "bearish"

    def test_summary_contributes(self) -> None:
        rows = [_row("Markets", summary="Stablecoin supply grows")]
        keywords = [t["keyword"] for t in hot_topics(rows)]
        assert "stablecoin" in keywords

    def test_limit(self) -> None:
        rows = [_row("alpha bravo charlie delta echo foxtrot")]
        assert len(hot_topics(rows, limit=2)) == 2


class TestTimeBucket:
    def test_day(self) -> None:
        assert time_bucket(THURSDAY, "day") == "2026-02-05"

    def test_hour(self) -> None:
        assert time_bucket(THURSDAY, "hour") == "2026-02-05T15:00"

    def test_week_starts_on_sunday(self) -> None:
        assert time_bucket(THURSDAY, "week") == "2026-02-01"
        sunday = datetime(2026, 2, 8, 9, 0, tzinfo=timezone.utc)
        assert time_bucket(sunday, "week") == "2026-02-08"

    def test_converts_to_utc(self) -> None:
        paris = timezone(timedelta(hours=2))
        moment = datetime(2026, 2, 6, 1, 30, tzinfo=paris)
        assert time_bucket(moment, "day") == "2026-02-05"


class TestSentimentTimeline:
    def test_sorted_buckets(self) -> None:
        rows = [
            _row("a", "bullish", publication_date=THURSDAY + timedelta(days=1)),
            _row("b", "bearish"),
            _row("c", "bullish"),
        ]

        timeline = sentiment_timeline(rows, "day")

        assert timeline == [
            {"date": "2026-02-05", "bullish": 1, "bearish": 1, "neutral": 0},
            {"date": "2026-02-06", "bullish": 1, "bearish": 0, "neutral": 0},
        ]

    def test_falls_back_to_fetched_at(self) -> None:
        fetched = datetime(2026, 1, 20, 8, 0, tzinfo=timezone.utc)
        rows = [_row("undated", "neutral", publication_date=None, fetched_at=fetched)]

        [point] = sentiment_timeline(rows, "day")

        assert point["date"] == "2026-01-20"
        assert point["neutral"] == 1


class TestAnalyticsService:
    @pytest.mark.asyncio
    async def test_distribution_uses_analyzed_rows(self) -> None:
        repo = AsyncMock()
        repo.list_for_analytics.return_value = [_row("a", "bullish")]
        service = AnalyticsService(repo)

        result = await service.get_sentiment_distribution(date_range="today", category="crypto")

        assert result["total"] == 1
        repo.list_for_analytics.assert_awaited_once_with(
            date_range="today", category="crypto", source=None, analyzed_only=True
        )

    @pytest.mark.asyncio
    async def test_hot_topics_include_pending(self) -> None:
        repo = AsyncMock()
        repo.list_for_analytics.return_value = [_row("Bitcoin", None)]
        service = AnalyticsService(repo)

        topics = await service.get_hot_topics(limit=10)

        assert topics == [{"keyword": "bitcoin", "count": 1, "sentiment": "neutral"}]
        assert "analyzed_only" not in repo.list_for_analytics.call_args.kwargs

    @pytest.mark.asyncio
    async def test_timeline_defaults_to_week(self) -> None:
        repo = AsyncMock()
        repo.list_for_analytics.return_value = []
        service = AnalyticsService(repo)

        assert await service.get_timeline() == []
        assert repo.list_for_analytics.call_args.kwargs["date_range"] == "week"
