"""
Article endpoints: filtered listing, lookup by link, bookmarks, deletion,
the manual ingestion trigger and filter metadata.
"""

import time
import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from rss_tracker.api.dependencies import (
    get_article_repository,
    get_orchestrator,
    get_sources_service,
)
from rss_tracker.api.models import (
    ArticleListResponse,
    BookmarkResponse,
    DateRangeParam,
    DeleteResponse,
    ErrorResponse,
    IngestionTriggerResponse,
    MetadataResponse,
    SentimentParam,
    SentimentStats,
    TranslationStatusParam,
)
from rss_tracker.services.ingestion_service import IngestionOrchestrator
from rss_tracker.sources.service import SourcesService
from rss_tracker.storage.repository import ArticleFilter, ArticleRepository

logger = structlog.get_logger(__name__)
router = APIRouter()


def _split_languages(languages: str | None) -> list[str]:
    if not languages:
        return []
    return [lang.strip() for lang in languages.split(",") if lang.strip()]


@router.get(
    "/articles",
    response_model=ArticleListResponse,
    responses={500: {"model": ErrorResponse}},
    summary="List articles",
    description="Filtered, paginated listing sorted newest first.",
)
async def list_articles(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    category: str | None = Query(default=None),
    sentiment: SentimentParam | None = Query(default=None),
    languages: str | None = Query(
        default=None, description="Comma-separated language codes"
    ),
    source: str | None = Query(default=None, description="Feed name"),
    search: str | None = Query(default=None, description="Title/summary substring"),
    translation_status: TranslationStatusParam = Query(default="all"),
    only_insights: bool = Query(
        default=False, description="Only analyzed, non-promotional articles"
    ),
    date_range: DateRangeParam = Query(default="all"),
    is_bookmarked: bool | None = Query(default=None),
    repo: ArticleRepository = Depends(get_article_repository),
) -> ArticleListResponse:
    start = time.perf_counter()
    filters = ArticleFilter(
        category=category,
        sentiment=sentiment,
        languages=_split_languages(languages),
        source=source,
        search=search.strip() if search else None,
        translation_status=translation_status,
        only_insights=only_insights,
        date_range=date_range,
        is_bookmarked=is_bookmarked,
        page=page,
        limit=limit,
    )
    result = await repo.list_articles(filters)
    latency = (time.perf_counter() - start) * 1000

    logger.info(
        "list_articles",
        total=result.total,
        page=page,
        latency_ms=round(latency, 2),
    )

    return ArticleListResponse(
        total=result.total,
        page=result.page,
        limit=result.limit,
        count=result.count,
        stats=SentimentStats(**result.stats),
        data=[article.to_api_dict() for article in result.articles],
    )


@router.get(
    "/articles/by-link",
    responses={404: {"model": ErrorResponse}},
    summary="Get an article by its link",
)
async def get_article_by_link(
    link: str = Query(..., min_length=1),
    repo: ArticleRepository = Depends(get_article_repository),
) -> dict:
    article = await repo.find_by_link(link)
    if article is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Article not found",
        )
    return article.to_api_dict()


@router.patch(
    "/articles/{article_id}/bookmark",
    response_model=BookmarkResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Toggle an article's bookmark",
)
async def toggle_bookmark(
    article_id: uuid.UUID,
    repo: ArticleRepository = Depends(get_article_repository),
) -> BookmarkResponse:
    flag = await repo.toggle_bookmark(str(article_id))
    if flag is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Article not found",
        )
    return BookmarkResponse(id=str(article_id), is_bookmarked=flag)


@router.delete(
    "/articles/by-link",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a single article by link",
)
async def delete_article_by_link(
    link: str = Query(..., min_length=1),
    repo: ArticleRepository = Depends(get_article_repository),
) -> DeleteResponse:
    if not await repo.delete_by_link(link):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Article not found",
        )
    return DeleteResponse(deleted=1)


@router.delete(
    "/articles",
    response_model=DeleteResponse,
    summary="Delete every article",
)
async def delete_all_articles(
    repo: ArticleRepository = Depends(get_article_repository),
) -> DeleteResponse:
    deleted = await repo.delete_all()
    logger.warning("All articles deleted", deleted=deleted)
    return DeleteResponse(deleted=deleted)


@router.post(
    "/ingestion/run",
    response_model=IngestionTriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start an ingestion cycle",
    description="Runs one cycle in the background and returns immediately.",
)
async def trigger_ingestion(
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> IngestionTriggerResponse:
    if not orchestrator.trigger_cycle():
        return IngestionTriggerResponse(
            status="already_running",
            message="An ingestion cycle is already in progress",
        )
    logger.info("Manual ingestion triggered")
    return IngestionTriggerResponse(
        status="accepted",
        message="Ingestion started",
    )


@router.get(
    "/metadata",
    response_model=MetadataResponse,
    summary="Available filter values",
)
async def get_metadata(
    repo: ArticleRepository = Depends(get_article_repository),
    sources: SourcesService = Depends(get_sources_service),
) -> MetadataResponse:
    grouped = await sources.list_enabled_grouped_by_category()
    return MetadataResponse(
        categories=await repo.distinct_values("category"),
        languages=await repo.distinct_values("language"),
        sources=await repo.distinct_values("feed_name"),
        grouped_sources={
            category: [s.name for s in items]
            for category, items in grouped.by_category.items()
        },
    )
