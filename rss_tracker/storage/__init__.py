"""Storage layer for article persistence."""

from rss_tracker.storage.database import Database, StorageError
from rss_tracker.storage.repository import (
    ArticleFilter,
    ArticlePage,
    ArticleRepository,
)

__all__ = [
    "Database",
    "StorageError",
    "ArticleFilter",
    "ArticlePage",
    "ArticleRepository",
]
