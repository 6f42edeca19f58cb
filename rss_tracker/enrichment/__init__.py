"""
Incremental AI enrichment of ingested articles.

Components:
- EnrichmentConfig: loop cadence, thresholds, model names
- AIService: sentiment, NER, summarization and translation pipelines
- EnrichmentWorker: PENDING -> FAST_DONE -> FULLY_DONE processing loop
- EnrichmentSupervisor: idempotent start and restart-with-backoff
"""

from rss_tracker.enrichment.ai_service import AIError, AIService
from rss_tracker.enrichment.config import EnrichmentConfig
from rss_tracker.enrichment.supervisor import EnrichmentSupervisor
from rss_tracker.enrichment.worker import (
    ArticleCompleted,
    BatchStats,
    EnrichmentWorker,
    detect_promotional,
    map_sentiment_label,
)

__all__ = [
    "AIError",
    "AIService",
    "ArticleCompleted",
    "BatchStats",
    "EnrichmentConfig",
    "EnrichmentSupervisor",
    "EnrichmentWorker",
    "detect_promotional",
    "map_sentiment_label",
]
