"""
Enrichment worker - drains the pending-article queue in two stages.

Runs under the EnrichmentSupervisor and:
1. Polls storage for articles whose analysis is NULL
2. Prepares content (stored full text, one scrape attempt, feed summary)
3. Fast stage: sentiment + entities concurrently, promotional flag,
   written in one update together with processed_at
4. Slow stage: summarization (and optional translation) as background
   tasks bounded by a semaphore, merged into analysis.ia_summary only

Every write is a single-row update, so a crash at any point leaves the
article either still PENDING (retried on restart) or at a valid later state.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from rss_tracker.enrichment.ai_service import AIService
from rss_tracker.enrichment.config import EnrichmentConfig
from rss_tracker.ingestion.content_extractor import ContentExtractor
from rss_tracker.ingestion.schemas import (
    Article,
    ArticleAnalysis,
    ArticleEntity,
    SentimentLabel,
    Translation,
)
from rss_tracker.observability.metrics import get_metrics
from rss_tracker.storage.database import StorageError
from rss_tracker.storage.repository import ArticleRepository

logger = structlog.get_logger(__name__)

PROMO_KEYWORDS = (
    "sale",
    "discount",
    "limited offer",
    "buy now",
    "promo",
    "giveaway",
    "airdrop",
    "presale",
)

ERROR_PREFIX = "AI Analysis Failed"

CompletionCallback = Callable[["ArticleCompleted"], Awaitable[None] | None]


@dataclass(frozen=True)
class ArticleCompleted:
    """Notification sent after an article reaches FAST_DONE."""

    article_id: str
    title: str


@dataclass
class BatchStats:
    processed: int = 0
    errors: int = 0

    @property
    def total(self) -> int:
        return self.processed + self.errors


def map_sentiment_label(label: str | None) -> SentimentLabel:
    """POSITIVE -> bullish, NEGATIVE -> bearish, anything else -> neutral."""
    normalized = (label or "").upper()
    if normalized == "POSITIVE":
        return "bullish"
    if normalized == "NEGATIVE":
        return "bearish"
    return "neutral"


def detect_promotional(title: str, content: str) -> bool:
    combined = f"{title} {content}".lower()
    return any(keyword in combined for keyword in PROMO_KEYWORDS)


class EnrichmentWorker:
    """
    Incremental AI enrichment of pending articles.

    Usage:
        worker = EnrichmentWorker(ArticleRepository(db), AIService(), ContentExtractor())
        await worker.run_forever()  # Runs until stop()
    """

    def __init__(
        self,
        repository: ArticleRepository,
        ai_service: AIService,
        extractor: ContentExtractor,
        config: EnrichmentConfig | None = None,
        on_article_completed: CompletionCallback | None = None,
    ):
        self._repo = repository
        self._ai = ai_service
        self._extractor = extractor
        self._config = config or EnrichmentConfig()
        self._on_completed = on_article_completed

        self._summary_semaphore = asyncio.Semaphore(self._config.max_concurrent_summaries)
        self._background: set[asyncio.Task] = set()
        self._running = False
        self._stop_requested = False
        self.totals = BatchStats()

        logger.info(
            "EnrichmentWorker initialized",
            batch_size=self._config.batch_size,
            max_concurrent_summaries=self._config.max_concurrent_summaries,
            translation_enabled=self._config.translation_enabled,
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> int:
        """Background slow-stage tasks not finished yet."""
        return len(self._background)

    def set_completion_callback(self, callback: CompletionCallback | None) -> None:
        self._on_completed = callback

    async def run_forever(self) -> None:
        """
        Poll for pending articles until stop() is called.

        Raises:
            AIError: If the fast-stage models cannot be loaded at startup
        """
        self._running = True
        self._stop_requested = False
        await asyncio.to_thread(self._ai.warm_up)
        logger.info("Starting enrichment loop")

        while self._running:
            try:
                stats = await self.run_once()
                if stats.processed == 0:
                    await asyncio.sleep(self._config.idle_sleep_seconds)
            except asyncio.CancelledError:
                logger.info("Enrichment worker cancelled")
                raise
            except Exception as e:
                logger.error("Error in enrichment loop", error=str(e), exc_info=True)
                await asyncio.sleep(self._config.error_sleep_seconds)

        logger.info("Enrichment loop stopped")

    async def stop(self) -> None:
        """Stop after the article currently being processed."""
        logger.info("Stopping enrichment worker")
        self._stop_requested = True
        self._running = False

    async def drain(self) -> None:
        """Wait for background slow-stage tasks to finish."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def run_once(self, limit: int | None = None) -> BatchStats:
        """Process one batch of pending articles sequentially."""
        articles = await self._repo.find_pending(limit or self._config.batch_size)
        if not articles:
            return BatchStats()

        start_time = time.monotonic()
        stats = BatchStats()
        for article in articles:
            if self._stop_requested:
                break
            if await self.process_article(article):
                stats.processed += 1
            else:
                stats.errors += 1

        self.totals.processed += stats.processed
        self.totals.errors += stats.errors
        await self._update_pending_gauge()

        logger.info(
            "Enrichment batch processed",
            processed=stats.processed,
            errors=stats.errors,
            latency_ms=round((time.monotonic() - start_time) * 1000, 2),
        )
        return stats

    async def process_article(self, article: Article) -> bool:
        """
        Run the fast stage for one article and schedule its slow stage.

        Returns:
            True if the article reached FAST_DONE
        """
        metrics = get_metrics()
        start_time = time.monotonic()
        article_id = article.id

        try:
            content = await self._prepare_content(article)
            text = content[: self._config.max_input_chars]

            sentiment, entities = await asyncio.gather(
                self._ai.classify_sentiment(text),
                self._ai.extract_entities(text),
            )

            analysis = ArticleAnalysis(
                sentiment=map_sentiment_label(sentiment.get("label")),
                sentiment_score=float(sentiment.get("score") or 0.0),
                entities=[ArticleEntity(**entity) for entity in entities],
                is_promotional=detect_promotional(article.title, content),
            )
            updated = await self._repo.set_fast_analysis(
                article_id, analysis, datetime.now(timezone.utc)
            )
            if not updated:
                logger.warning("Article vanished before analysis was saved", article_id=article_id)
                return False
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self._record_failure(article_id, e)
            return False

        metrics.record_enrichment("success")
        metrics.record_stage_latency("fast", time.monotonic() - start_time)
        logger.info(
            "Fast stage done",
            article_id=article_id,
            sentiment=analysis.sentiment,
            score=round(analysis.sentiment_score, 3),
            entities=len(analysis.entities),
        )

        self._schedule_slow_stages(article, content)
        await self._notify_completed(article)
        return True

    async def backfill_summaries(self, limit: int = 50) -> int:
        """
        Summarize FAST_DONE articles that never got an ia_summary.

        Returns:
            Number of summaries written
        """
        articles = await self._repo.find_missing_summary(
            self._config.summary_min_chars, limit
        )
        written = 0
        for article in articles:
            content = article.full_text or article.summary or ""
            if await self._summarize(article.id, content):
                written += 1
        logger.info("Summary backfill finished", candidates=len(articles), written=written)
        return written

    # Content preparation

    async def _prepare_content(self, article: Article) -> str:
        """
        Pick the best text available for analysis.

        Order: stored full text, a single scrape attempt, the feed summary,
        the title. The scrape attempt is recorded even when it fails so the
        article is never scraped twice.
        """
        if article.full_text:
            return article.full_text

        if not article.scraped_content:
            scrape_start = time.monotonic()
            full_text = await self._extractor.extract_full_text(article.link)
            fields: dict = {"scraped_content": True}
            if full_text:
                fields["full_text"] = full_text

            if not article.image_url:
                image_url = await self._extractor.extract_main_image(article.link)
                if image_url:
                    fields["image_url"] = image_url

            await self._repo.update_by_id(article.id, fields)
            get_metrics().record_stage_latency("scrape", time.monotonic() - scrape_start)
            if full_text:
                return full_text

        return article.summary or article.title

    # Slow stage

    def _schedule_slow_stages(self, article: Article, content: str) -> None:
        wants_summary = len(content) >= self._config.summary_min_chars
        if not wants_summary and not self._config.translation_enabled:
            return

        task = asyncio.create_task(self._run_slow_stages(article, content, wants_summary))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run_slow_stages(self, article: Article, content: str, wants_summary: bool) -> None:
        async with self._summary_semaphore:
            ia_summary = None
            if wants_summary:
                ia_summary = await self._summarize(article.id, content)
            if self._config.translation_enabled:
                await self._translate(article, ia_summary)

    async def _summarize(self, article_id: str, content: str) -> str | None:
        start_time = time.monotonic()
        try:
            ia_summary = await self._ai.summarize(content)
            if not ia_summary:
                return None
            await self._repo.merge_analysis(article_id, {"ia_summary": ia_summary})
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Best effort: the article stays FAST_DONE, error is not touched
            logger.warning("Summary failed", article_id=article_id, error=str(e))
            return None

        get_metrics().record_stage_latency("summary", time.monotonic() - start_time)
        logger.info(
            "Slow stage done",
            article_id=article_id,
            latency_ms=round((time.monotonic() - start_time) * 1000, 2),
        )
        return ia_summary

    async def _translate(self, article: Article, ia_summary: str | None) -> None:
        source_lang = article.language or "en"
        for target in self._config.translation_targets:
            if target == source_lang:
                continue
            start_time = time.monotonic()
            try:
                translation = Translation(
                    title=await self._ai.translate(article.title, source_lang, target),
                    summary=(
                        await self._ai.translate(article.summary, source_lang, target)
                        if article.summary
                        else None
                    ),
                    ia_summary=(
                        await self._ai.translate(ia_summary, source_lang, target)
                        if ia_summary
                        else None
                    ),
                )
                await self._repo.set_translation(article.id, target, translation)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(
                    "Translation failed",
                    article_id=article.id,
                    target=target,
                    error=str(e),
                )
                continue
            get_metrics().record_stage_latency("translation", time.monotonic() - start_time)

    # Helpers

    async def _record_failure(self, article_id: str, error: Exception) -> None:
        get_metrics().record_enrichment("error")
        message = f"{ERROR_PREFIX}: {error}"
        logger.error("Error processing article", article_id=article_id, error=str(error))
        try:
            await self._repo.set_error(article_id, message)
        except StorageError as e:
            logger.error("Could not record article error", article_id=article_id, error=str(e))

    async def _notify_completed(self, article: Article) -> None:
        if self._on_completed is None:
            return
        try:
            result = self._on_completed(ArticleCompleted(article_id=article.id, title=article.title))
            if asyncio.iscoroutine(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # The article is already FAST_DONE; a listener must not fail the batch
            logger.error("Completion callback failed", article_id=article.id, error=str(e))

    async def _update_pending_gauge(self) -> None:
        try:
            get_metrics().set_pending(await self._repo.count_pending())
        except Exception as e:  # metrics must not fail the loop
            logger.debug("Pending gauge update failed", error=str(e))
