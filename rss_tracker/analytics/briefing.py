"""
Daily briefing over the last day's top articles.

Articles are grouped by category; each category section is summarized from
its leading articles, and the section summaries are summarized again into a
global synthesis. The market mood and trending title words are derived
without any model calls.
"""

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from rss_tracker.analytics.config import BriefingConfig
from rss_tracker.enrichment.ai_service import AIError, AIService
from rss_tracker.ingestion.schemas import Article
from rss_tracker.storage.repository import ArticleRepository

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY = "General"
SECTION_FALLBACK = "No summary available for this section."
SYNTHESIS_FALLBACK = "Flash briefing generated from today's top stories."

_TREND_STOP_WORDS = frozenset({
    "across", "behind", "between", "through", "without", "against",
    "already", "because", "before", "during", "should", "would", "could",
})
_NON_LETTERS = re.compile(r"[^a-z]")


class NoArticlesForBriefing(Exception):
    """Raised when the window holds no analyzed article to brief on."""


@dataclass
class BriefingArticle:
    title: str
    link: str
    source: str


@dataclass
class BriefingSection:
    title: str
    content: str
    articles: list[BriefingArticle] = field(default_factory=list)


@dataclass
class Briefing:
    date: str
    summary: str
    sections: list[BriefingSection]
    market_sentiment: str
    top_trends: list[str]
    created_at: datetime


def market_sentiment(
    sentiments: Iterable[str | None],
    min_samples: int = 5,
    ratio: float = 1.4,
) -> str:
    """
    Overall mood from per-article sentiments.

    Neutral articles do not count as samples. With fewer than min_samples
    bullish plus bearish articles the mood stays neutral.
    """
    counts = Counter(s for s in sentiments if s)
    bullish, bearish = counts["bullish"], counts["bearish"]
    if bullish + bearish < min_samples:
        return "neutral"
    if bullish > bearish * ratio:
        return "bullish"
    if bearish > bullish * ratio:
        return "bearish"
    return "neutral"


def top_trends(titles: Iterable[str], limit: int = 5) -> list[str]:
    """Most frequent words longer than four letters across titles, capitalized."""
    counts: Counter[str] = Counter()
    for title in titles:
        for raw in title.split(" "):
            word = _NON_LETTERS.sub("", raw.lower())
            if len(word) > 4 and word not in _TREND_STOP_WORDS:
                counts[word] += 1
    return [word.capitalize() for word, _ in counts.most_common(limit)]


def group_sections(
    articles: Iterable[Article], per_section: int = 3
) -> dict[str, list[Article]]:
    """Leading articles per category, categories in order of first appearance."""
    groups: dict[str, list[Article]] = {}
    for article in articles:
        bucket = groups.setdefault(article.category or DEFAULT_CATEGORY, [])
        if len(bucket) < per_section:
            bucket.append(article)
    return groups


def section_text(articles: Iterable[Article]) -> str:
    """Summarization input for one section: `title: summary` per article."""
    parts = []
    for article in articles:
        insight = (article.analysis.ia_summary if article.analysis else None) or article.summary
        parts.append(f"{article.title}: {insight or ''}")
    return "\n\n".join(parts)


class BriefingService:
    """Builds the daily briefing from repository reads and the summarizer."""

    def __init__(
        self,
        repository: ArticleRepository,
        ai_service: AIService,
        config: BriefingConfig | None = None,
    ):
        self._repo = repository
        self._ai = ai_service
        self._config = config or BriefingConfig()

    async def generate(self, now: datetime | None = None) -> Briefing:
        """
        Build a briefing from the newest analyzed articles.

        Raises:
            NoArticlesForBriefing: If the window holds no analyzed article
        """
        now = now or datetime.now(timezone.utc)
        config = self._config
        articles = await self._repo.find_top_for_briefing(
            limit=config.article_limit, hours=config.window_hours, now=now
        )
        if not articles:
            raise NoArticlesForBriefing(
                f"No analyzed articles in the last {config.window_hours} hours"
            )

        sections = []
        for category, members in group_sections(articles, config.articles_per_section).items():
            content = await self._summarize(section_text(members), SECTION_FALLBACK)
            sections.append(
                BriefingSection(
                    title=category,
                    content=content,
                    articles=[
                        BriefingArticle(
                            title=a.title,
                            link=a.link,
                            source=a.feed_name or "Unknown",
                        )
                        for a in members
                    ],
                )
            )

        synthesis = await self._summarize(
            "\n\n".join(s.content for s in sections), SYNTHESIS_FALLBACK
        )
        mood = market_sentiment(
            (a.analysis.sentiment if a.analysis else None for a in articles),
            min_samples=config.min_sentiment_samples,
            ratio=config.sentiment_ratio,
        )

        logger.info(
            "Briefing generated",
            articles=len(articles),
            sections=len(sections),
            market_sentiment=mood,
        )
        return Briefing(
            date=now.astimezone(timezone.utc).strftime("%Y-%m-%d"),
            summary=synthesis,
            sections=sections,
            market_sentiment=mood,
            top_trends=top_trends((a.title for a in articles), config.trend_count),
            created_at=now,
        )

    async def _summarize(self, text: str, fallback: str) -> str:
        try:
            summary = await self._ai.summarize(text)
        except AIError as e:
            logger.warning("Briefing summarization failed", error=str(e))
            return fallback
        return summary or fallback
