"""
Ingestion orchestrator - one pass over every enabled feed.

A cycle:
1. Loads enabled sources from the registry
2. Fetches them in fixed-size batches (sources inside a batch concurrently)
3. Skips items without a link or whose link is already stored
4. Assigns a cluster id from recent titles and inserts the article PENDING
5. Signals the enrichment supervisor and logs a per-source summary

Failures are contained: a feed that cannot be fetched fails only that source,
a storage error fails only that item.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from rss_tracker.clustering.service import TitleClusterer
from rss_tracker.config.settings import get_settings
from rss_tracker.enrichment.supervisor import EnrichmentSupervisor
from rss_tracker.ingestion.feed_fetcher import FeedFetcher, FetchError
from rss_tracker.ingestion.schemas import Article, RawItem
from rss_tracker.observability.logging import log_context
from rss_tracker.observability.metrics import get_metrics
from rss_tracker.sources.schemas import Source
from rss_tracker.sources.service import SourcesService
from rss_tracker.storage.database import StorageError
from rss_tracker.storage.repository import ArticleRepository

logger = structlog.get_logger(__name__)


@dataclass
class SourceResult:
    """Outcome of ingesting a single source."""

    name: str
    new_articles: int = 0
    skipped: int = 0
    item_errors: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class IngestionResult:
    """Outcome of a full ingestion cycle."""

    new_article_count: int = 0
    failed_source_count: int = 0
    failed_sources: list[str] = field(default_factory=list)
    per_source: list[SourceResult] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "new_article_count": self.new_article_count,
            "failed_source_count": self.failed_source_count,
            "failed_sources": list(self.failed_sources),
            "elapsed_seconds": round(self.elapsed_seconds, 2),
        }


def chunked(sources: list[Source], size: int) -> list[list[Source]]:
    return [sources[i:i + size] for i in range(0, len(sources), size)]


class IngestionOrchestrator:
    """
    Runs ingestion cycles over the source registry.

    Usage:
        orchestrator = IngestionOrchestrator(sources, repository, fetcher, supervisor=supervisor)
        result = await orchestrator.run_ingestion_cycle()

        # or on a schedule until stop()
        await orchestrator.run_forever()
    """

    def __init__(
        self,
        sources: SourcesService,
        repository: ArticleRepository,
        fetcher: FeedFetcher,
        clusterer: TitleClusterer | None = None,
        supervisor: EnrichmentSupervisor | None = None,
        batch_size: int | None = None,
        default_max_articles: int | None = None,
        poll_interval: int | None = None,
    ):
        settings = get_settings()
        self._sources = sources
        self._repo = repository
        self._fetcher = fetcher
        self._clusterer = clusterer or TitleClusterer()
        self._supervisor = supervisor
        self._batch_size = batch_size or settings.ingestion_batch_size
        self._default_max_articles = default_max_articles or settings.default_max_articles
        self._poll_interval = poll_interval or settings.poll_interval_seconds

        self._running = False
        self._cycle_lock = asyncio.Lock()
        self._background: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self.last_result: IngestionResult | None = None

        logger.info(
            "Ingestion orchestrator initialized",
            batch_size=self._batch_size,
            poll_interval=self._poll_interval,
            cluster_window=self._clusterer.window_size,
        )

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_lock.locked()

    async def run_ingestion_cycle(self) -> IngestionResult:
        """Ingest every enabled source once. Never raises for per-source failures."""
        async with self._cycle_lock:
            try:
                with log_context(cycle_id=uuid.uuid4().hex[:8]):
                    result = await self._run_cycle()
                self.last_result = result
            finally:
                # Pending rows from earlier cycles still need a worker
                if self._supervisor is not None:
                    self._supervisor.ensure_running()
        return result

    def trigger_cycle(self) -> bool:
        """
        Schedule a cycle in the background.

        Returns:
            False if a cycle is already running or scheduled
        """
        if self.cycle_in_progress or (
            self._background is not None and not self._background.done()
        ):
            return False
        self._background = asyncio.create_task(
            self._run_cycle_logged(), name="ingestion-cycle"
        )
        return True

    async def run_forever(self) -> None:
        """Run a cycle every poll interval until stop() is called."""
        self._running = True
        self._stop_event.clear()
        logger.info("Starting ingestion loop", poll_interval=self._poll_interval)

        while self._running:
            await self._run_cycle_logged()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                continue

        logger.info("Ingestion loop stopped")

    async def stop(self) -> None:
        """Stop the scheduling loop and wait for a running background cycle."""
        logger.info("Stopping ingestion orchestrator")
        self._running = False
        self._stop_event.set()
        if self._background is not None and not self._background.done():
            await asyncio.gather(self._background, return_exceptions=True)

    async def _run_cycle_logged(self) -> None:
        try:
            await self.run_ingestion_cycle()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Registry unreachable or similar; the next cycle retries
            logger.error("Ingestion cycle failed", error=str(e), exc_info=True)

    async def _run_cycle(self) -> IngestionResult:
        start_time = time.monotonic()
        grouped = await self._sources.list_enabled_grouped_by_category()
        sources = grouped.all()

        logger.info(
            "Ingestion cycle started",
            sources=len(sources),
            categories=len(grouped.by_category),
        )

        result = IngestionResult()
        for batch in chunked(sources, self._batch_size):
            outcomes = await asyncio.gather(
                *(self._ingest_source(source) for source in batch),
                return_exceptions=True,
            )
            for source, outcome in zip(batch, outcomes):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                if isinstance(outcome, BaseException):
                    logger.error(
                        "Unexpected error ingesting source",
                        source=source.name,
                        error=str(outcome),
                    )
                    outcome = SourceResult(name=source.name, error=str(outcome))
                result.per_source.append(outcome)
                result.new_article_count += outcome.new_articles
                if outcome.failed:
                    result.failed_sources.append(outcome.name)

        result.failed_source_count = len(result.failed_sources)
        result.elapsed_seconds = time.monotonic() - start_time
        get_metrics().record_cycle(result.elapsed_seconds)

        logger.info(
            "Ingestion cycle finished",
            new_articles=result.new_article_count,
            sources=len(sources),
            failed_sources=result.failed_source_count,
            failed=result.failed_sources,
            per_source={r.name: r.error or r.new_articles for r in result.per_source},
            elapsed_seconds=round(result.elapsed_seconds, 2),
        )
        return result

    async def _ingest_source(self, source: Source) -> SourceResult:
        outcome = SourceResult(name=source.name)
        metrics = get_metrics()
        start_time = time.monotonic()

        try:
            items = await self._fetcher.fetch(
                source.url, source.max_articles or self._default_max_articles
            )
        except FetchError as e:
            logger.warning("Feed fetch failed", source=source.name, reason=e.reason)
            metrics.record_fetch_error(source.name)
            outcome.error = e.reason
            return outcome

        recent: list[Article] | None = None
        for item in items:
            if not item.link:
                outcome.skipped += 1
                continue
            try:
                if await self._repo.exists(item.link):
                    outcome.skipped += 1
                    continue

                if recent is None:
                    recent = await self._repo.find_recent(self._clusterer.window_size)

                article = self.build_article(item, source)
                article.cluster_id = self._clusterer.assign(article.title, recent)

                article_id = await self._repo.insert(article)
            except StorageError as e:
                logger.error(
                    "Failed to store article",
                    source=source.name,
                    link=item.link,
                    error=str(e),
                )
                outcome.item_errors += 1
                continue

            if article_id is None:
                # Lost an insert race with a concurrent cycle
                outcome.skipped += 1
                continue

            article.id = article_id
            recent.insert(0, article)
            del recent[self._clusterer.window_size:]
            outcome.new_articles += 1

        metrics.record_ingestion(
            source.name,
            count=outcome.new_articles,
            latency=time.monotonic() - start_time,
        )
        logger.debug(
            "Source ingested",
            source=source.name,
            items=len(items),
            new=outcome.new_articles,
            skipped=outcome.skipped,
        )
        return outcome

    def build_article(self, item: RawItem, source: Source) -> Article:
        """Map a fetched item onto a new PENDING article."""
        return Article(
            link=item.link,
            title=item.title or "",
            publication_date=item.published_at,
            source_feed=source.url,
            feed_name=source.name,
            category=source.category,
            language=source.language or "en",
            summary=item.snippet,
            author=item.author,
            image_url=item.image_url,
            source_color=source.color,
            fetched_at=datetime.now(timezone.utc),
        )
