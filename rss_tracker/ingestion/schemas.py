"""
Canonical article schema for the rss-tracker pipeline.

An Article moves through an explicit enrichment state machine:

    PENDING     analysis is NULL (the only queue discriminator)
    FAST_DONE   analysis.sentiment set, processed_at set
    FULLY_DONE  analysis.ia_summary set as well

Each transition is allowed to write a fixed set of fields, see
ArticleRepository for the corresponding update statements.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_TITLE = "No title"
DEFAULT_LANGUAGE = "en"

SentimentLabel = Literal["bullish", "bearish", "neutral"]


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class EnrichmentState(str, Enum):
    """Position of an article in the enrichment state machine."""

    PENDING = "pending"
    FAST_DONE = "fast_done"
    FULLY_DONE = "fully_done"


class RawItem(BaseModel):
    """
    Normalized feed entry as produced by the feed fetcher.

    Every attribute is optional; the fetcher resolves each one through an
    ordered fallback chain before building this object.
    """

    title: str | None = None
    link: str | None = None
    snippet: str | None = None
    published_at: datetime | None = None
    author: str | None = None
    image_url: str | None = None

    @field_validator("title", "link", "snippet", "author", "image_url")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ArticleEntity(BaseModel):
    """Named entity recognised in an article."""

    text: str
    label: str
    score: float = Field(default=0.0, ge=0.0, le=1.0)


class ArticleAnalysis(BaseModel):
    """AI analysis attached to an article by the enrichment worker."""

    sentiment: SentimentLabel
    sentiment_score: float = Field(default=0.0, ge=0.0, le=1.0)
    ia_summary: str | None = None
    is_promotional: bool = False
    entities: list[ArticleEntity] = Field(default_factory=list)


class Translation(BaseModel):
    """Translated copy of an article's display fields."""

    title: str
    summary: str | None = None
    ia_summary: str | None = None


class Article(BaseModel):
    """
    CANONICAL ARTICLE SCHEMA

    `link` is the natural key. `id` is assigned by storage on insert and is
    None for articles that have not been persisted yet.
    """

    # Identity
    id: str | None = Field(default=None, description="Storage-assigned UUID")
    link: str = Field(..., min_length=1, description="Canonical article URL")

    # Feed data
    title: str = Field(default=DEFAULT_TITLE)
    publication_date: datetime | None = Field(
        default=None,
        description="Publication time from the feed, None if unparseable",
    )
    source_feed: str = Field(..., description="Feed URL the article came from")
    feed_name: str = Field(..., description="Source name")
    category: str = ""
    language: str = DEFAULT_LANGUAGE
    summary: str | None = Field(default=None, description="Feed-provided snippet")
    author: str | None = None
    image_url: str | None = None
    source_color: str | None = None

    # Pipeline bookkeeping
    fetched_at: datetime = Field(default_factory=_utc_now)
    processed_at: datetime | None = None
    full_text: str | None = None
    scraped_content: bool = False
    cluster_id: str | None = None
    is_bookmarked: bool = False
    error: str | None = None

    # Enrichment
    analysis: ArticleAnalysis | None = None
    translations: dict[str, Translation] = Field(default_factory=dict)

    @field_validator("title")
    @classmethod
    def default_title(cls, v: str | None) -> str:
        """Collapse whitespace, fall back to a placeholder title."""
        v = " ".join((v or "").split())
        return v or DEFAULT_TITLE

    @property
    def state(self) -> EnrichmentState:
        """Current enrichment state derived from the analysis field."""
        if self.analysis is None:
            return EnrichmentState.PENDING
        if self.analysis.ia_summary:
            return EnrichmentState.FULLY_DONE
        return EnrichmentState.FAST_DONE

    @property
    def is_pending(self) -> bool:
        return self.analysis is None

    @property
    def is_translated(self) -> bool:
        return bool(self.translations)

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize for API responses, dropping the scraped body."""
        data = self.model_dump(mode="json")
        data.pop("full_text", None)
        data["state"] = self.state.value
        return data
