"""
Request and response models for the rss-tracker API.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

DateRangeParam = Literal["today", "week", "month", "all"]
SentimentParam = Literal["bullish", "bearish", "neutral"]
TranslationStatusParam = Literal["all", "translated", "original"]
GranularityParam = Literal["hour", "day", "week"]


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Error type",
    )


# ── Articles ─────────────────────────────────────────────────


class SentimentStats(BaseModel):
    """Sentiment counts over the filtered article set."""

    bullish: int = 0
    bearish: int = 0
    neutral: int = 0
    pending: int = 0


class ArticleListResponse(BaseModel):
    """Paginated article listing."""

    total: int = Field(..., description="Articles matching the filters")
    page: int
    limit: int
    count: int = Field(..., description="Articles on this page")
    stats: SentimentStats
    data: list[dict[str, Any]] = Field(default_factory=list)


class BookmarkResponse(BaseModel):
    id: str
    is_bookmarked: bool


class DeleteResponse(BaseModel):
    deleted: int = Field(..., description="Number of rows removed")


class IngestionTriggerResponse(BaseModel):
    """Response for a manual ingestion trigger."""

    status: Literal["accepted", "already_running"]
    message: str


class MetadataResponse(BaseModel):
    """Filter values available to clients."""

    categories: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    grouped_sources: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Enabled source names keyed by category",
    )


# ── Sources ──────────────────────────────────────────────────


class SourceItem(BaseModel):
    name: str
    url: str
    category: str
    language: str
    enabled: bool
    color: str | None = None
    max_articles: int
    created_at: str | None = None
    updated_at: str | None = None


class SourcesListResponse(BaseModel):
    total: int
    sources: list[SourceItem]


class CreateSourceRequest(BaseModel):
    """Request body for adding a feed."""

    name: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1, description="RSS/Atom feed URL")
    category: str = Field(..., min_length=1)
    language: str = Field(default="en", min_length=2, max_length=8)
    enabled: bool = True
    color: str | None = None
    max_articles: int | None = Field(default=None, ge=1, le=500)


class UpdateSourceRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    url: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1)
    language: str | None = Field(default=None, min_length=2, max_length=8)
    enabled: bool | None = None
    color: str | None = None
    max_articles: int | None = Field(default=None, ge=1, le=500)


# ── Analytics ────────────────────────────────────────────────


class SentimentCounts(BaseModel):
    bullish: int = 0
    bearish: int = 0
    neutral: int = 0


class SentimentDistributionResponse(BaseModel):
    total: int
    distribution: SentimentCounts
    by_source: dict[str, SentimentCounts] = Field(default_factory=dict)


class TopicItem(BaseModel):
    keyword: str
    count: int
    sentiment: SentimentParam


class TopicsResponse(BaseModel):
    topics: list[TopicItem]


class TimelinePoint(BaseModel):
    date: str = Field(..., description="Bucket key")
    bullish: int = 0
    bearish: int = 0
    neutral: int = 0


class TimelineResponse(BaseModel):
    granularity: GranularityParam
    data: list[TimelinePoint]


class BriefingArticleItem(BaseModel):
    title: str
    link: str
    source: str


class BriefingSectionItem(BaseModel):
    title: str = Field(..., description="Category")
    content: str = Field(..., description="Summary of the section's articles")
    articles: list[BriefingArticleItem] = Field(default_factory=list)


class BriefingResponse(BaseModel):
    """Daily briefing over the last day's top articles."""

    date: str = Field(..., description="UTC day, YYYY-MM-DD")
    summary: str = Field(..., description="Synthesis across all sections")
    sections: list[BriefingSectionItem]
    market_sentiment: SentimentParam
    top_trends: list[str] = Field(default_factory=list)
    created_at: datetime


# ── Health ───────────────────────────────────────────────────


class ComponentHealth(BaseModel):
    """Health status for a single infrastructure component."""

    status: str = Field(
        ...,
        description="Component status: healthy, unhealthy",
    )
    latency_ms: float | None = Field(
        default=None,
        description="Check latency in milliseconds",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional component details",
    )


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy, degraded, or unhealthy",
    )
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    pending_articles: int | None = Field(
        default=None,
        description="Articles still waiting for enrichment",
    )
    worker: dict[str, Any] = Field(
        default_factory=dict,
        description="Enrichment worker state",
    )
    version: str = "0.1.0"
