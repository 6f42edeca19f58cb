"""Database repository for the sources table."""

import logging

import asyncpg

from rss_tracker.sources.schemas import Source
from rss_tracker.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS sources (
    name         TEXT PRIMARY KEY,
    url          TEXT NOT NULL,
    category     TEXT NOT NULL,
    language     TEXT NOT NULL DEFAULT 'en',
    enabled      BOOLEAN NOT NULL DEFAULT TRUE,
    color        TEXT,
    max_articles INTEGER NOT NULL DEFAULT 20,
    created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_sources_enabled
    ON sources(category, name) WHERE enabled = TRUE;
"""

_INSERT_SQL = """
INSERT INTO sources (name, url, category, language, enabled, color, max_articles)
VALUES ($1, $2, $3, $4, $5, $6, $7)
ON CONFLICT (name) DO NOTHING
RETURNING name
"""

_BULK_INSERT_SQL = """
INSERT INTO sources (name, url, category, language, enabled, color, max_articles)
SELECT * FROM unnest(
    $1::text[], $2::text[], $3::text[], $4::text[], $5::boolean[],
    $6::text[], $7::int[]
)
ON CONFLICT (name) DO NOTHING
"""

_EDITABLE_COLUMNS = frozenset(
    {"url", "category", "language", "enabled", "color", "max_articles"}
)


def _record_to_source(record: asyncpg.Record) -> Source:
    """Convert an asyncpg Record to a Source dataclass."""
    return Source(
        name=record["name"],
        url=record["url"],
        category=record["category"],
        language=record["language"],
        enabled=record["enabled"],
        color=record["color"],
        max_articles=record["max_articles"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class SourcesRepository:
    """CRUD operations for the sources table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the sources table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Sources table ensured")

    async def insert(self, source: Source) -> bool:
        """Insert a source. Returns False if the name is already taken."""
        result = await self._db.fetchval(
            _INSERT_SQL,
            source.name,
            source.url,
            source.category,
            source.language,
            source.enabled,
            source.color,
            source.max_articles,
        )
        return result is not None

    async def bulk_insert(self, sources: list[Source]) -> int:
        """Insert multiple sources in one statement, skipping existing names.

        Returns the number of sources submitted.
        """
        if not sources:
            return 0

        await self._db.execute(
            _BULK_INSERT_SQL,
            [s.name for s in sources],
            [s.url for s in sources],
            [s.category for s in sources],
            [s.language for s in sources],
            [s.enabled for s in sources],
            [s.color for s in sources],
            [s.max_articles for s in sources],
        )
        logger.info("Bulk inserted %d sources", len(sources))
        return len(sources)

    async def get(self, name: str) -> Source | None:
        row = await self._db.fetchrow("SELECT * FROM sources WHERE name = $1", name)
        return _record_to_source(row) if row else None

    async def list_all(self) -> list[Source]:
        rows = await self._db.fetch("SELECT * FROM sources ORDER BY category, name")
        return [_record_to_source(r) for r in rows]

    async def list_enabled(self) -> list[Source]:
        rows = await self._db.fetch(
            "SELECT * FROM sources WHERE enabled = TRUE ORDER BY category, name"
        )
        return [_record_to_source(r) for r in rows]

    async def update(self, name: str, fields: dict) -> Source | None:
        """Update editable columns of a source.

        Returns the updated source, or None if no source has that name.
        """
        unknown = set(fields) - _EDITABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update source columns: {sorted(unknown)}")
        if not fields:
            return await self.get(name)

        assignments = []
        params: list = [name]
        for idx, (column, value) in enumerate(fields.items(), start=2):
            assignments.append(f"{column} = ${idx}")
            params.append(value)

        row = await self._db.fetchrow(
            f"""
            UPDATE sources SET {", ".join(assignments)}, updated_at = NOW()
            WHERE name = $1
            RETURNING *
            """,
            *params,
        )
        return _record_to_source(row) if row else None

    async def delete(self, name: str) -> bool:
        """Hard-delete a source. Articles already ingested are kept."""
        result = await self._db.execute("DELETE FROM sources WHERE name = $1", name)
        return result.endswith(" 1")

    async def count(self) -> int:
        """Count total sources in the table."""
        return await self._db.fetchval("SELECT COUNT(*) FROM sources")
