"""Sources service with caching and seed support."""

import json
import logging
import time
from pathlib import Path

from rss_tracker.sources.config import SourcesConfig
from rss_tracker.sources.repository import SourcesRepository
from rss_tracker.sources.schemas import GroupedSources, Source, SourceUpdate
from rss_tracker.storage.database import Database

logger = logging.getLogger(__name__)

_SEED_FILE = Path(__file__).parent / "data" / "seed_sources.json"


def _parse_seed_entry(entry: dict) -> Source:
    """Convert a JSON seed entry to a Source dataclass."""
    return Source(
        name=entry["name"],
        url=entry["url"],
        category=entry["category"],
        language=entry.get("language", "en"),
        enabled=entry.get("enabled", True),
        color=entry.get("color"),
        max_articles=entry.get("max_articles", 0),
    )


def load_seed_sources(path: Path | None = None) -> list[Source]:
    """Read the static default source list."""
    seed_path = path or _SEED_FILE
    with open(seed_path, encoding="utf-8") as f:
        entries = json.load(f)
    return [_parse_seed_entry(e) for e in entries]


def group_by_category(sources: list[Source]) -> GroupedSources:
    grouped = GroupedSources()
    for source in sources:
        grouped.by_category.setdefault(source.category, []).append(source)
    return grouped


class SourcesService:
    """Source registry backed by the sources table.

    Enabled-source lookups are cached with a TTL because the ingestion
    loop asks for them every cycle. Every mutation clears the cache.
    """

    def __init__(
        self,
        database: Database,
        config: SourcesConfig | None = None,
    ) -> None:
        self._config = config or SourcesConfig()
        self._repo = SourcesRepository(database)

        self._enabled_cache: list[Source] | None = None
        self._enabled_cached_at: float = 0.0

    @property
    def repository(self) -> SourcesRepository:
        """Access the underlying repository for direct DB operations."""
        return self._repo

    # ── Cached accessors ────────────────────────────────────────

    async def list_enabled(self) -> list[Source]:
        """Get enabled sources (cached)."""
        now = time.monotonic()
        ttl = self._config.cache_ttl_seconds
        if self._enabled_cache is not None and (now - self._enabled_cached_at) < ttl:
            return self._enabled_cache

        sources = await self._repo.list_enabled()
        self._enabled_cache = sources
        self._enabled_cached_at = now
        return sources

    async def list_enabled_grouped_by_category(self) -> GroupedSources:
        return group_by_category(await self.list_enabled())

    def invalidate_cache(self) -> None:
        """Force-clear the cache so next access hits the DB."""
        self._enabled_cache = None
        self._enabled_cached_at = 0.0

    # ── Registry operations ─────────────────────────────────────

    async def list_sources(self) -> list[Source]:
        return await self._repo.list_all()

    async def get(self, name: str) -> Source | None:
        return await self._repo.get(name)

    async def create(self, source: Source) -> bool:
        """Add a source. Returns False if the name already exists."""
        created = await self._repo.insert(source)
        if created:
            self.invalidate_cache()
            logger.info("Source created: %s", source.name)
        return created

    async def update(self, name: str, update: SourceUpdate) -> Source | None:
        source = await self._repo.update(name, update.to_fields())
        self.invalidate_cache()
        return source

    async def set_enabled(self, name: str, enabled: bool) -> Source | None:
        return await self.update(name, SourceUpdate(enabled=enabled))

    async def toggle(self, name: str) -> Source | None:
        """Flip the enabled flag. Returns None if the source doesn't exist."""
        source = await self._repo.get(name)
        if source is None:
            return None
        return await self.set_enabled(name, not source.enabled)

    async def delete(self, name: str) -> bool:
        deleted = await self._repo.delete(name)
        if deleted:
            self.invalidate_cache()
            logger.info("Source deleted: %s", name)
        return deleted

    # ── Seed ────────────────────────────────────────────────────

    async def seed_if_empty(self, defaults: list[Source] | None = None) -> int:
        """Insert the default sources when the registry is empty.

        Returns the number of sources seeded (0 if the table had rows).
        """
        existing = await self._repo.count()
        if existing > 0:
            logger.debug("Sources table has %d rows, skipping seed", existing)
            return 0

        if defaults is None:
            seed_path = Path(self._config.seed_file) if self._config.seed_file else None
            defaults = load_seed_sources(seed_path)

        count = await self._repo.bulk_insert(defaults)
        self.invalidate_cache()
        logger.info("Seeded %d default sources", count)
        return count

    async def ensure_seeded(self) -> None:
        """Seed from default JSON if the table is empty and seed_on_init is True."""
        if not self._config.seed_on_init:
            return
        await self.seed_if_empty()
