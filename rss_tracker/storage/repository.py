"""
Article repository for CRUD operations.

Persists Article objects in PostgreSQL. The `link` column carries a UNIQUE
constraint, so concurrent ingestion cycles racing on the same link resolve
to a single row. Enrichment results live in a JSONB `analysis` column whose
NULL-ness is the worker's queue discriminator.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

import asyncpg

from rss_tracker.ingestion.schemas import Article, ArticleAnalysis, Translation
from rss_tracker.storage.database import DB_ERRORS, Database, StorageError

logger = logging.getLogger(__name__)

DateRange = Literal["today", "week", "month", "all"]
TranslationStatus = Literal["all", "translated", "original"]

_DATE_RANGE_DAYS = {"week": 7, "month": 30}

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS articles (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    link            TEXT NOT NULL UNIQUE,
    title           TEXT NOT NULL,
    publication_date TIMESTAMPTZ,
    source_feed     TEXT NOT NULL,
    feed_name       TEXT NOT NULL,
    category        TEXT NOT NULL DEFAULT '',
    language        TEXT NOT NULL DEFAULT 'en',
    summary         TEXT,
    author          TEXT,
    image_url       TEXT,
    source_color    TEXT,
    fetched_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    processed_at    TIMESTAMPTZ,
    full_text       TEXT,
    scraped_content BOOLEAN NOT NULL DEFAULT FALSE,
    cluster_id      TEXT,
    is_bookmarked   BOOLEAN NOT NULL DEFAULT FALSE,
    error           TEXT,
    analysis        JSONB,
    translations    JSONB NOT NULL DEFAULT '{}',
    created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_articles_sort
    ON articles(publication_date DESC NULLS LAST, fetched_at DESC);
CREATE INDEX IF NOT EXISTS idx_articles_category
    ON articles(category);
CREATE INDEX IF NOT EXISTS idx_articles_language
    ON articles(language);
CREATE INDEX IF NOT EXISTS idx_articles_feed_name
    ON articles(feed_name);
CREATE INDEX IF NOT EXISTS idx_articles_sentiment
    ON articles((analysis->>'sentiment'));
CREATE INDEX IF NOT EXISTS idx_articles_text_search
    ON articles USING GIN(
        to_tsvector('simple', coalesce(title, '') || ' ' || coalesce(summary, ''))
    );

-- Enrichment queue: only rows still waiting for analysis
CREATE INDEX IF NOT EXISTS idx_articles_pending
    ON articles(publication_date DESC NULLS LAST, fetched_at DESC)
    WHERE analysis IS NULL;
"""

_INSERT_SQL = """
INSERT INTO articles (
    link, title, publication_date, source_feed, feed_name,
    category, language, summary, author, image_url,
    source_color, fetched_at, cluster_id
) VALUES (
    $1, $2, $3, $4, $5,
    $6, $7, $8, $9, $10,
    $11, $12, $13
)
ON CONFLICT (link) DO NOTHING
RETURNING id
"""

# Columns an update_by_id caller may write. analysis and translations have
# dedicated methods so the state machine stays explicit.
_UPDATABLE_COLUMNS = frozenset({
    "title",
    "summary",
    "full_text",
    "scraped_content",
    "image_url",
    "author",
    "error",
    "is_bookmarked",
})

_LIST_COLUMNS = """
    id, link, title, publication_date, source_feed, feed_name, category,
    language, summary, author, image_url, source_color, fetched_at,
    processed_at, scraped_content, cluster_id, is_bookmarked, error,
    analysis, translations
"""


@dataclass
class ArticleFilter:
    """Filters accepted by ArticleRepository.list_articles."""

    category: str | None = None
    sentiment: str | None = None
    languages: list[str] = field(default_factory=list)
    source: str | None = None
    search: str | None = None
    translation_status: TranslationStatus = "all"
    only_insights: bool = False
    date_range: DateRange = "all"
    is_bookmarked: bool | None = None
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.limit


@dataclass
class ArticlePage:
    """One page of listing results."""

    total: int
    page: int
    limit: int
    articles: list[Article]
    stats: dict[str, int] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.articles)


def date_range_start(date_range: str, now: datetime | None = None) -> datetime | None:
    """
    Resolve a named date range to its inclusive UTC start.

    "today" starts at midnight UTC, "week" and "month" are rolling 7 and 30
    day windows, anything else means no lower bound.
    """
    now = now or datetime.now(timezone.utc)
    if date_range == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    days = _DATE_RANGE_DAYS.get(date_range)
    if days is None:
        return None
    return now - timedelta(days=days)


def build_article_filters(
    filters: ArticleFilter,
    *,
    now: datetime | None = None,
    param_idx: int = 1,
) -> tuple[str, list[Any], int]:
    """
    Build WHERE clause from optional listing filters.

    Returns (where_clause, params, next_param_idx).
    """
    conditions: list[str] = []
    params: list[Any] = []

    if filters.category:
        conditions.append(f"category = ${param_idx}")
        params.append(filters.category)
        param_idx += 1

    if filters.languages:
        conditions.append(f"language = ANY(${param_idx}::text[])")
        params.append(list(filters.languages))
        param_idx += 1

    if filters.source:
        conditions.append(f"feed_name = ${param_idx}")
        params.append(filters.source)
        param_idx += 1

    if filters.sentiment:
        conditions.append(f"analysis->>'sentiment' = ${param_idx}")
        params.append(filters.sentiment)
        param_idx += 1

    if filters.translation_status == "translated":
        conditions.append("translations <> '{}'::jsonb")
    elif filters.translation_status == "original":
        conditions.append("translations = '{}'::jsonb")

    if filters.only_insights:
        conditions.append(
            "analysis IS NOT NULL "
            "AND COALESCE((analysis->>'is_promotional')::boolean, FALSE) = FALSE"
        )

    if filters.is_bookmarked is not None:
        conditions.append(f"is_bookmarked = ${param_idx}")
        params.append(filters.is_bookmarked)
        param_idx += 1

    start = date_range_start(filters.date_range, now)
    if start is not None:
        conditions.append(
            f"(publication_date >= ${param_idx} OR fetched_at >= ${param_idx})"
        )
        params.append(start)
        param_idx += 1

    if filters.search:
        conditions.append(
            f"(title ILIKE ${param_idx} OR summary ILIKE ${param_idx})"
        )
        params.append(f"%{filters.search}%")
        param_idx += 1

    where_clause = " AND ".join(conditions) if conditions else "TRUE"
    return where_clause, params, param_idx


class ArticleRepository:
    """
    Repository for article storage and retrieval.

    Write paths map onto the enrichment state machine:
        insert            -> PENDING row, analysis NULL
        update_by_id      -> content preparation, bookmark and error fields
        set_fast_analysis -> PENDING to FAST_DONE
        merge_analysis    -> FAST_DONE to FULLY_DONE (ia_summary only)
        set_translation   -> one language entry of translations
    """

    def __init__(self, database: Database):
        self._db = database

    async def create_tables(self) -> None:
        """Create the articles table and its indexes if they don't exist."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Articles table created/verified")

    # Ingestion

    async def find_by_link(self, link: str) -> Article | None:
        row = await self._db.fetchrow("SELECT * FROM articles WHERE link = $1", link)
        return self._row_to_article(row) if row else None

    async def exists(self, link: str) -> bool:
        """Cheap existence probe used by the ingestion dedup step."""
        try:
            result = await self._db.fetchval(
                "SELECT 1 FROM articles WHERE link = $1", link
            )
        except DB_ERRORS as e:
            raise StorageError(f"Lookup failed for {link}: {e}", "exists") from e
        return result is not None

    async def insert(self, article: Article) -> str | None:
        """
        Insert a pending article.

        Args:
            article: Article to insert (analysis is ignored, rows start PENDING)

        Returns:
            The new article id, or None if the link already existed

        Raises:
            StorageError: On database failure
        """
        try:
            result = await self._db.fetchval(
                _INSERT_SQL,
                article.link,
                article.title,
                article.publication_date,
                article.source_feed,
                article.feed_name,
                article.category,
                article.language,
                article.summary,
                article.author,
                article.image_url,
                article.source_color,
                article.fetched_at,
                article.cluster_id,
            )
        except DB_ERRORS as e:
            raise StorageError(f"Insert failed for {article.link}: {e}", "insert") from e
        return str(result) if result is not None else None

    async def find_recent(self, limit: int = 100) -> list[Article]:
        """Most recent articles, used as the clustering window."""
        try:
            rows = await self._db.fetch(
                """
                SELECT id, title, cluster_id, publication_date, fetched_at
                FROM articles
                ORDER BY COALESCE(publication_date, fetched_at) DESC
                LIMIT $1
                """,
                limit,
            )
        except DB_ERRORS as e:
            raise StorageError(f"Recent articles query failed: {e}", "find_recent") from e
        return [
            Article.model_construct(
                id=str(row["id"]),
                title=row["title"],
                cluster_id=row["cluster_id"],
                publication_date=row["publication_date"],
                fetched_at=row["fetched_at"],
            )
            for row in rows
        ]

    # Enrichment

    async def find_pending(self, limit: int = 10) -> list[Article]:
        """
        Articles whose analysis is still NULL.

        Articles that failed before (error set) are ordered after fresh ones
        so a single poisonous article cannot starve the queue.
        """
        rows = await self._db.fetch(
            """
            SELECT * FROM articles
            WHERE analysis IS NULL
            ORDER BY (error IS NOT NULL),
                     publication_date DESC NULLS LAST,
                     fetched_at DESC
            LIMIT $1
            """,
            limit,
        )
        return [self._row_to_article(row) for row in rows]

    async def count_pending(self) -> int:
        return await self._db.fetchval(
            "SELECT COUNT(*) FROM articles WHERE analysis IS NULL"
        )

    async def update_by_id(self, article_id: str, fields: dict[str, Any]) -> bool:
        """
        Update plain columns of an article.

        Args:
            article_id: Article UUID
            fields: Column values, restricted to content preparation,
                bookmark and error columns

        Returns:
            True if the article was updated, False if not found
        """
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {sorted(unknown)}")
        if not fields:
            return False

        assignments = []
        params: list[Any] = [article_id]
        for idx, (column, value) in enumerate(fields.items(), start=2):
            assignments.append(f"{column} = ${idx}")
            params.append(value)

        sql = f"""
            UPDATE articles
            SET {", ".join(assignments)}, updated_at = NOW()
            WHERE id = $1::uuid
            RETURNING id
        """
        try:
            result = await self._db.fetchval(sql, *params)
        except DB_ERRORS as e:
            raise StorageError(f"Update failed for {article_id}: {e}", "update") from e
        return result is not None

    async def set_fast_analysis(
        self,
        article_id: str,
        analysis: ArticleAnalysis,
        processed_at: datetime,
    ) -> bool:
        """
        Move an article from PENDING to FAST_DONE.

        Writes analysis and processed_at together and clears any previous
        error. An ia_summary already present (from a concurrent slow stage)
        is preserved.
        """
        sql = """
            UPDATE articles
            SET analysis = $2::jsonb || jsonb_strip_nulls(
                    jsonb_build_object('ia_summary', analysis->'ia_summary')
                ),
                processed_at = $3,
                error = NULL,
                updated_at = NOW()
            WHERE id = $1::uuid
            RETURNING id
        """
        payload = analysis.model_dump(mode="json", exclude={"ia_summary"})
        try:
            result = await self._db.fetchval(sql, article_id, payload, processed_at)
        except DB_ERRORS as e:
            raise StorageError(f"Analysis update failed for {article_id}: {e}", "analysis") from e
        return result is not None

    async def merge_analysis(self, article_id: str, fields: dict[str, Any]) -> bool:
        """
        Merge keys into an existing analysis object.

        Uses JSONB concatenation in a single statement so concurrent writers
        of other keys are never clobbered. Rows still PENDING are left
        untouched.
        """
        sql = """
            UPDATE articles
            SET analysis = analysis || $2::jsonb,
                updated_at = NOW()
            WHERE id = $1::uuid AND analysis IS NOT NULL
            RETURNING id
        """
        try:
            result = await self._db.fetchval(sql, article_id, fields)
        except DB_ERRORS as e:
            raise StorageError(f"Analysis merge failed for {article_id}: {e}", "merge") from e
        return result is not None

    async def set_translation(
        self,
        article_id: str,
        language: str,
        translation: Translation,
    ) -> bool:
        sql = """
            UPDATE articles
            SET translations = translations || jsonb_build_object($2::text, $3::jsonb),
                updated_at = NOW()
            WHERE id = $1::uuid
            RETURNING id
        """
        result = await self._db.fetchval(
            sql, article_id, language, translation.model_dump(mode="json")
        )
        return result is not None

    async def set_error(self, article_id: str, message: str) -> bool:
        """Record the last enrichment error; no other column changes."""
        return await self.update_by_id(article_id, {"error": message})

    async def find_missing_summary(self, min_length: int, limit: int = 50) -> list[Article]:
        """
        FAST_DONE articles without ia_summary whose text is long enough.

        Used by the explicit summary backfill, never by the worker loop.
        """
        rows = await self._db.fetch(
            """
            SELECT * FROM articles
            WHERE analysis IS NOT NULL
              AND (analysis->>'ia_summary') IS NULL
              AND LENGTH(COALESCE(full_text, summary, '')) >= $1
            ORDER BY publication_date DESC NULLS LAST, fetched_at DESC
            LIMIT $2
            """,
            min_length,
            limit,
        )
        return [self._row_to_article(row) for row in rows]

    # Query

    async def list_articles(
        self,
        filters: ArticleFilter,
        now: datetime | None = None,
    ) -> ArticlePage:
        """
        List articles with filters and pagination.

        Sorted by publication date (newest first, undated last) then fetch
        time. Stats are sentiment counts over the whole filtered set.
        """
        where_clause, params, idx = build_article_filters(filters, now=now)

        rows = await self._db.fetch(
            f"""
            SELECT {_LIST_COLUMNS}
            FROM articles
            WHERE {where_clause}
            ORDER BY publication_date DESC NULLS LAST, fetched_at DESC
            LIMIT ${idx} OFFSET ${idx + 1}
            """,
            *params,
            filters.limit,
            filters.offset,
        )

        stats_row = await self._db.fetchrow(
            f"""
            SELECT
                COUNT(*) AS total,
                COUNT(*) FILTER (WHERE analysis->>'sentiment' = 'bullish') AS bullish,
                COUNT(*) FILTER (WHERE analysis->>'sentiment' = 'bearish') AS bearish,
                COUNT(*) FILTER (WHERE analysis->>'sentiment' = 'neutral') AS neutral,
                COUNT(*) FILTER (WHERE analysis IS NULL) AS pending
            FROM articles
            WHERE {where_clause}
            """,
            *params,
        )
        stats = {k: stats_row[k] for k in ("bullish", "bearish", "neutral", "pending")}

        return ArticlePage(
            total=stats_row["total"],
            page=filters.page,
            limit=filters.limit,
            articles=[self._row_to_article(row) for row in rows],
            stats=stats,
        )

    async def list_for_analytics(
        self,
        *,
        date_range: str = "all",
        category: str | None = None,
        source: str | None = None,
        analyzed_only: bool = False,
        now: datetime | None = None,
    ) -> list[asyncpg.Record]:
        """
        Lightweight projection for analytics aggregation.

        Returns raw records with title, summary, feed_name, sentiment,
        publication_date and fetched_at.
        """
        filters = ArticleFilter(category=category, source=source, date_range=date_range)
        where_clause, params, _idx = build_article_filters(filters, now=now)
        if analyzed_only:
            where_clause += " AND analysis IS NOT NULL"

        return await self._db.fetch(
            f"""
            SELECT title, summary, feed_name,
                   analysis->>'sentiment' AS sentiment,
                   publication_date, fetched_at
            FROM articles
            WHERE {where_clause}
            """,
            *params,
        )

    async def find_top_for_briefing(
        self,
        limit: int = 20,
        hours: int = 24,
        now: datetime | None = None,
    ) -> list[Article]:
        """
        Newest analyzed, non-promotional articles from the last `hours`.

        Feeds the daily briefing; articles still PENDING carry no sentiment
        or summary and are left out.
        """
        since = (now or datetime.now(timezone.utc)) - timedelta(hours=hours)
        try:
            rows = await self._db.fetch(
                """
                SELECT * FROM articles
                WHERE analysis IS NOT NULL
                  AND COALESCE((analysis->>'is_promotional')::boolean, FALSE) = FALSE
                  AND (publication_date >= $1 OR fetched_at >= $1)
                ORDER BY COALESCE(publication_date, fetched_at) DESC
                LIMIT $2
                """,
                since,
                limit,
            )
        except DB_ERRORS as e:
            raise StorageError(f"Briefing query failed: {e}", "find_top_for_briefing") from e
        return [self._row_to_article(row) for row in rows]

    async def distinct_values(self, column: Literal["category", "language", "feed_name"]) -> list[str]:
        rows = await self._db.fetch(
            f"SELECT DISTINCT {column} AS value FROM articles "
            f"WHERE {column} <> '' ORDER BY 1"
        )
        return [row["value"] for row in rows]

    async def toggle_bookmark(self, article_id: str) -> bool | None:
        """
        Flip an article's bookmark flag.

        Returns:
            The new flag value, or None if the article doesn't exist
        """
        return await self._db.fetchval(
            """
            UPDATE articles
            SET is_bookmarked = NOT is_bookmarked, updated_at = NOW()
            WHERE id = $1::uuid
            RETURNING is_bookmarked
            """,
            article_id,
        )

    async def count_all(self) -> int:
        return await self._db.fetchval("SELECT COUNT(*) FROM articles")

    async def delete_by_link(self, link: str) -> bool:
        result = await self._db.fetchval(
            "DELETE FROM articles WHERE link = $1 RETURNING id", link
        )
        return result is not None

    async def delete_all(self) -> int:
        """Delete every article. Returns the number of rows removed."""
        status = await self._db.execute("DELETE FROM articles")
        # asyncpg status string: "DELETE <count>"
        try:
            return int(status.split()[-1])
        except (ValueError, IndexError):
            return 0

    def _row_to_article(self, row: asyncpg.Record) -> Article:
        """Convert database row to Article."""
        data = dict(row)
        data["id"] = str(data["id"])
        data.pop("created_at", None)
        data.pop("updated_at", None)
        data["translations"] = data.get("translations") or {}
        return Article(**data)
