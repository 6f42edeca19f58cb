"""Tests for the daily briefing."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from rss_tracker.analytics.briefing import (
    SECTION_FALLBACK,
    SYNTHESIS_FALLBACK,
    BriefingService,
    NoArticlesForBriefing,
    group_sections,
    market_sentiment,
    section_text,
    top_trends,
)
from rss_tracker.enrichment.ai_service import AIError
from rss_tracker.ingestion.schemas import Article, ArticleAnalysis

NOW = datetime(2026, 2, 5, 15, 30, tzinfo=timezone.utc)


def _article(
    n: int,
    category: str = "crypto",
    sentiment: str = "neutral",
    title: str | None = None,
    ia_summary: str | None = None,
    summary: str | None = "Feed snippet",
) -> Article:
    return Article(
        id=f"id-{n}",
        link=f"https://example.com/{n}",
        title=title or f"Headline number {n}",
        source_feed="https://example.com/feed",
        feed_name="CoinDesk",
        category=category,
        summary=summary,
        analysis=ArticleAnalysis(
            sentiment=sentiment, sentiment_score=0.9, ia_summary=ia_summary
        ),
    )


class TestMarketSentiment:
    def test_too_few_samples_stays_neutral(self) -> None:
        assert market_sentiment(["bullish"] * 4) == "neutral"

    def test_neutral_articles_are_not_samples(self) -> None:
        assert market_sentiment(["bullish"] * 4 + ["neutral"] * 10) == "neutral"

    def test_bullish_needs_the_ratio(self) -> None:
        assert market_sentiment(["bullish"] * 3 + ["bearish"] * 2) == "bullish"
        # 7 is not more than 5 * 1.4
        assert market_sentiment(["bullish"] * 7 + ["bearish"] * 5) == "neutral"

    def test_bearish(self) -> None:
        assert market_sentiment(["bearish"] * 5 + [None]) == "bearish"

    def test_custom_thresholds(self) -> None:
        assert market_sentiment(["bullish"] * 2, min_samples=2, ratio=2.0) == "bullish"


class TestTopTrends:
    def test_counts_long_words_and_capitalizes(self) -> None:
        titles = [
            "Bitcoin rallies because ETF inflows surge",
            "Bitcoin miners sell, bitcoin slips",
            "Ether rallies",
        ]

        trends = top_trends(titles, limit=2)

        assert trends == ["Bitcoin", "Rallies"]

    def test_skips_stop_words_and_short_words(self) -> None:
        assert top_trends(["Stocks fall because rates could rise"]) == ["Stocks", "Rates"]


class TestGroupSections:
    def test_caps_articles_per_category_in_first_seen_order(self) -> None:
        articles = [_article(i, "crypto") for i in range(5)] + [_article(9, "")]

        groups = group_sections(articles, per_section=3)

        assert list(groups) == ["crypto", "General"]
        assert [a.id for a in groups["crypto"]] == ["id-0", "id-1", "id-2"]

    def test_section_text_prefers_ai_summary(self) -> None:
        text = section_text([
            _article(1, ia_summary="AI summary"),
            _article(2, summary=None),
        ])

        assert text == "Headline number 1: AI summary\n\nHeadline number 2: "


class TestBriefingService:
    @pytest.fixture
    def repository(self) -> AsyncMock:
        repo = AsyncMock()
        repo.find_top_for_briefing = AsyncMock(return_value=[
            _article(1, "crypto", "bullish"),
            _article(2, "crypto", "bullish"),
            _article(3, "markets", "bullish"),
            _article(4, "crypto", "bullish"),
            _article(5, "crypto", "bullish"),
            _article(6, "markets", "bearish"),
        ])
        return repo

    @pytest.fixture
    def ai_service(self) -> AsyncMock:
        ai = AsyncMock()
        ai.summarize = AsyncMock(side_effect=lambda text: f"sum({len(text)})")
        return ai

    @pytest.mark.asyncio
    async def test_sections_synthesis_and_mood(self, repository, ai_service) -> None:
        briefing = await BriefingService(repository, ai_service).generate(now=NOW)

        assert briefing.date == "2026-02-05"
        assert [s.title for s in briefing.sections] == ["crypto", "markets"]
        assert [a.link for a in briefing.sections[0].articles] == [
            "https://example.com/1", "https://example.com/2", "https://example.com/4",
        ]
        assert briefing.sections[1].articles[0].source == "CoinDesk"
        assert briefing.market_sentiment == "bullish"
        # One call per section plus the global synthesis
        assert ai_service.summarize.await_count == 3
        synthesis_input = ai_service.summarize.call_args.args[0]
        assert synthesis_input == "\n\n".join(s.content for s in briefing.sections)
        repository.find_top_for_briefing.assert_awaited_once_with(limit=20, hours=24, now=NOW)

    @pytest.mark.asyncio
    async def test_summarizer_failures_fall_back(self, repository, ai_service) -> None:
        ai_service.summarize.side_effect = [None, AIError("summarization", "OOM"), None]

        briefing = await BriefingService(repository, ai_service).generate(now=NOW)

        assert [s.content for s in briefing.sections] == [SECTION_FALLBACK, SECTION_FALLBACK]
        assert briefing.summary == SYNTHESIS_FALLBACK

    @pytest.mark.asyncio
    async def test_no_articles(self, repository, ai_service) -> None:
        repository.find_top_for_briefing.return_value = []

        with pytest.raises(NoArticlesForBriefing):
            await BriefingService(repository, ai_service).generate(now=NOW)
        ai_service.summarize.assert_not_called()
