"""Analytics endpoints: sentiment distribution, hot topics, timeline."""

from fastapi import APIRouter, Depends, Query

from rss_tracker.analytics.service import AnalyticsService
from rss_tracker.api.dependencies import get_analytics_service
from rss_tracker.api.models import (
    DateRangeParam,
    GranularityParam,
    SentimentDistributionResponse,
    TimelineResponse,
    TopicsResponse,
)

router = APIRouter(prefix="/analytics")


@router.get(
    "/sentiment",
    response_model=SentimentDistributionResponse,
    summary="Sentiment distribution",
    description="Global and per-source sentiment counts over analyzed articles.",
)
async def sentiment_distribution(
    date_range: DateRangeParam = Query(default="all"),
    category: str | None = Query(default=None),
    source: str | None = Query(default=None),
    service: AnalyticsService = Depends(get_analytics_service),
) -> SentimentDistributionResponse:
    result = await service.get_sentiment_distribution(
        date_range=date_range, category=category, source=source
    )
    return SentimentDistributionResponse(**result)


@router.get(
    "/topics",
    response_model=TopicsResponse,
    summary="Hot topics",
)
async def hot_topics(
    date_range: DateRangeParam = Query(default="all"),
    category: str | None = Query(default=None),
    source: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    service: AnalyticsService = Depends(get_analytics_service),
) -> TopicsResponse:
    topics = await service.get_hot_topics(
        date_range=date_range, category=category, source=source, limit=limit
    )
    return TopicsResponse(topics=topics)


@router.get(
    "/timeline",
    response_model=TimelineResponse,
    summary="Sentiment timeline",
)
async def timeline(
    date_range: DateRangeParam = Query(default="week"),
    category: str | None = Query(default=None),
    source: str | None = Query(default=None),
    granularity: GranularityParam = Query(default="day"),
    service: AnalyticsService = Depends(get_analytics_service),
) -> TimelineResponse:
    data = await service.get_timeline(
        date_range=date_range,
        category=category,
        source=source,
        granularity=granularity,
    )
    return TimelineResponse(granularity=granularity, data=data)
