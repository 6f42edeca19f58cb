"""Data ingestion module - feed fetching, page scraping and article schemas."""

from rss_tracker.ingestion.content_extractor import ContentExtractor
from rss_tracker.ingestion.feed_fetcher import FeedFetcher, FetchError
from rss_tracker.ingestion.schemas import (
    Article,
    ArticleAnalysis,
    ArticleEntity,
    EnrichmentState,
    RawItem,
    Translation,
)

__all__ = [
    "Article",
    "ArticleAnalysis",
    "ArticleEntity",
    "ContentExtractor",
    "EnrichmentState",
    "FeedFetcher",
    "FetchError",
    "RawItem",
    "Translation",
]
