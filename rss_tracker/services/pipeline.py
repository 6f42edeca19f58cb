"""
Component wiring shared by the CLI and the API lifespan.

Everything hangs off a single injected Database; nothing here is a
module-level singleton.
"""

from dataclasses import dataclass

import structlog

from rss_tracker.analytics.briefing import BriefingService
from rss_tracker.analytics.service import AnalyticsService
from rss_tracker.clustering.service import TitleClusterer
from rss_tracker.enrichment.ai_service import AIService
from rss_tracker.enrichment.config import EnrichmentConfig
from rss_tracker.enrichment.supervisor import EnrichmentSupervisor
from rss_tracker.enrichment.worker import EnrichmentWorker
from rss_tracker.ingestion.content_extractor import ContentExtractor
from rss_tracker.ingestion.feed_fetcher import FeedFetcher
from rss_tracker.services.ingestion_service import IngestionOrchestrator
from rss_tracker.sources.service import SourcesService
from rss_tracker.storage.database import Database
from rss_tracker.storage.repository import ArticleRepository

logger = structlog.get_logger(__name__)


@dataclass
class Pipeline:
    """Long-lived components for one process."""

    database: Database
    articles: ArticleRepository
    sources: SourcesService
    analytics: AnalyticsService
    briefing: BriefingService
    fetcher: FeedFetcher
    extractor: ContentExtractor
    worker: EnrichmentWorker
    supervisor: EnrichmentSupervisor
    orchestrator: IngestionOrchestrator

    async def initialize(self, seed: bool = True) -> None:
        """Create tables and seed the source registry when it is empty."""
        await self.articles.create_tables()
        await self.sources.repository.create_table()
        if seed:
            await self.sources.ensure_seeded()

    async def shutdown(self) -> None:
        await self.orchestrator.stop()
        await self.supervisor.stop()
        await self.fetcher.close()
        await self.extractor.close()
        logger.info("Pipeline stopped")


def build_pipeline(
    database: Database,
    enrichment_config: EnrichmentConfig | None = None,
    ai_service: AIService | None = None,
    in_process_worker: bool = True,
) -> Pipeline:
    """
    Construct every component around an already-created Database.

    Args:
        in_process_worker: Whether ingestion cycles may start the enrichment
            worker in this process. Pass False when a separate `enrich`
            process owns it, so a cycle never spawns a second worker.
    """
    enrichment_config = enrichment_config or EnrichmentConfig()

    articles = ArticleRepository(database)
    sources = SourcesService(database)
    fetcher = FeedFetcher()
    extractor = ContentExtractor()

    ai_service = ai_service or AIService(enrichment_config)
    worker = EnrichmentWorker(
        repository=articles,
        ai_service=ai_service,
        extractor=extractor,
        config=enrichment_config,
    )
    supervisor = EnrichmentSupervisor(worker, config=enrichment_config)
    orchestrator = IngestionOrchestrator(
        sources=sources,
        repository=articles,
        fetcher=fetcher,
        clusterer=TitleClusterer(),
        supervisor=supervisor if in_process_worker else None,
    )

    return Pipeline(
        database=database,
        articles=articles,
        sources=sources,
        analytics=AnalyticsService(articles),
        briefing=BriefingService(articles, ai_service),
        fetcher=fetcher,
        extractor=extractor,
        worker=worker,
        supervisor=supervisor,
        orchestrator=orchestrator,
    )
