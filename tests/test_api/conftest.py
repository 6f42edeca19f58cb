"""Shared fixtures for API tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from rss_tracker.api.app import create_app
from rss_tracker.api.dependencies import (
    get_analytics_service,
    get_article_repository,
    get_briefing_service,
    get_database,
    get_orchestrator,
    get_sources_service,
    get_supervisor,
)
from rss_tracker.sources.schemas import Source


@pytest.fixture
def make_source():
    """Factory for Source objects with sensible defaults."""

    def _make(name: str = "CoinDesk", **kwargs) -> Source:
        return Source(
            name=name,
            url=kwargs.pop("url", "https://www.coindesk.com/arc/outboundfeeds/rss/"),
            category=kwargs.pop("category", "crypto"),
            created_at=kwargs.pop("created_at", datetime(2026, 1, 1, tzinfo=timezone.utc)),
            updated_at=kwargs.pop("updated_at", datetime(2026, 1, 1, tzinfo=timezone.utc)),
            **kwargs,
        )

    return _make


@pytest.fixture
def mock_db():
    """Mock Database with a healthy connection."""
    db = AsyncMock()
    db.health_check = AsyncMock(return_value=True)
    return db


@pytest.fixture
def mock_article_repo():
    """Mock ArticleRepository."""
    repo = AsyncMock()
    repo.find_by_link = AsyncMock(return_value=None)
    repo.toggle_bookmark = AsyncMock(return_value=None)
    repo.delete_by_link = AsyncMock(return_value=False)
    repo.count_pending = AsyncMock(return_value=0)
    repo.distinct_values = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_sources_service():
    """Mock SourcesService."""
    service = AsyncMock()
    service.list_sources = AsyncMock(return_value=[])
    service.get = AsyncMock(return_value=None)
    service.toggle = AsyncMock(return_value=None)
    service.update = AsyncMock(return_value=None)
    service.delete = AsyncMock(return_value=False)
    return service


@pytest.fixture
def mock_analytics_service():
    """Mock AnalyticsService."""
    return AsyncMock()


@pytest.fixture
def mock_briefing_service():
    """Mock BriefingService."""
    return AsyncMock()


@pytest.fixture
def mock_orchestrator():
    """Mock IngestionOrchestrator whose trigger always succeeds."""
    orchestrator = MagicMock()
    orchestrator.trigger_cycle = MagicMock(return_value=True)
    return orchestrator


@pytest.fixture
def mock_supervisor():
    """Mock EnrichmentSupervisor with a running worker."""
    supervisor = MagicMock()
    supervisor.is_running = True
    supervisor.restarts = 0
    supervisor.completed = 3
    supervisor.last_error = None
    return supervisor


@pytest.fixture
def client(
    mock_db,
    mock_article_repo,
    mock_sources_service,
    mock_analytics_service,
    mock_briefing_service,
    mock_orchestrator,
    mock_supervisor,
):
    """TestClient with every component dependency overridden."""
    app = create_app(database=mock_db, run_pipeline=False)

    app.dependency_overrides[get_database] = lambda: mock_db
    app.dependency_overrides[get_article_repository] = lambda: mock_article_repo
    app.dependency_overrides[get_sources_service] = lambda: mock_sources_service
    app.dependency_overrides[get_analytics_service] = lambda: mock_analytics_service
    app.dependency_overrides[get_briefing_service] = lambda: mock_briefing_service
    app.dependency_overrides[get_orchestrator] = lambda: mock_orchestrator
    app.dependency_overrides[get_supervisor] = lambda: mock_supervisor

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
