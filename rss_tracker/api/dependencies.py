"""
Dependency injection for FastAPI endpoints.

Components are built once in the application lifespan and stored on
app.state; these helpers hand them to route functions so tests can swap
them through app.dependency_overrides.
"""

from fastapi import HTTPException, Request, status

from rss_tracker.analytics.briefing import BriefingService
from rss_tracker.analytics.service import AnalyticsService
from rss_tracker.enrichment.supervisor import EnrichmentSupervisor
from rss_tracker.services.ingestion_service import IngestionOrchestrator
from rss_tracker.services.pipeline import Pipeline
from rss_tracker.sources.service import SourcesService
from rss_tracker.storage.database import Database
from rss_tracker.storage.repository import ArticleRepository


def get_pipeline(request: Request) -> Pipeline:
    pipeline: Pipeline | None = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return pipeline


def get_database(request: Request) -> Database:
    return get_pipeline(request).database


def get_article_repository(request: Request) -> ArticleRepository:
    return get_pipeline(request).articles


def get_sources_service(request: Request) -> SourcesService:
    return get_pipeline(request).sources


def get_analytics_service(request: Request) -> AnalyticsService:
    return get_pipeline(request).analytics


def get_briefing_service(request: Request) -> BriefingService:
    return get_pipeline(request).briefing


def get_orchestrator(request: Request) -> IngestionOrchestrator:
    return get_pipeline(request).orchestrator


def get_supervisor(request: Request) -> EnrichmentSupervisor:
    return get_pipeline(request).supervisor
