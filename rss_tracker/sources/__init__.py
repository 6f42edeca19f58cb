"""Sources: database-backed feed registry."""

from rss_tracker.sources.colors import generate_source_color
from rss_tracker.sources.config import SourcesConfig
from rss_tracker.sources.repository import SourcesRepository
from rss_tracker.sources.schemas import GroupedSources, Source, SourceUpdate
from rss_tracker.sources.service import SourcesService, load_seed_sources

__all__ = [
    "GroupedSources",
    "Source",
    "SourceUpdate",
    "SourcesConfig",
    "SourcesRepository",
    "SourcesService",
    "generate_source_color",
    "load_seed_sources",
]
