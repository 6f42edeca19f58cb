"""
Health check endpoint with database and worker checks.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from rss_tracker.api.dependencies import (
    get_article_repository,
    get_database,
    get_supervisor,
)
from rss_tracker.api.models import ComponentHealth, HealthResponse
from rss_tracker.enrichment.supervisor import EnrichmentSupervisor
from rss_tracker.storage.database import Database
from rss_tracker.storage.repository import ArticleRepository

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check_database(db: Database) -> ComponentHealth:
    """Check database connectivity and measure latency."""
    start = time.perf_counter()
    try:
        healthy = await db.health_check()
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="healthy" if healthy else "unhealthy",
            latency_ms=round(latency_ms, 2),
        )
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round(latency_ms, 2),
            details={"error": str(e)},
        )


def _worker_state(supervisor: EnrichmentSupervisor) -> dict:
    return {
        "running": supervisor.is_running,
        "restarts": supervisor.restarts,
        "completed": supervisor.completed,
        "last_error": supervisor.last_error,
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check the health of the service and its dependencies.",
)
async def health_check(
    db: Database = Depends(get_database),
    repo: ArticleRepository = Depends(get_article_repository),
    supervisor: EnrichmentSupervisor = Depends(get_supervisor),
) -> HealthResponse:
    """
    Check service health.

    Status logic:
    - unhealthy: database is down
    - degraded: the enrichment worker gave up after repeated crashes
    - healthy: all components operational
    """
    components = {"database": await _check_database(db)}

    pending: int | None = None
    if components["database"].status == "healthy":
        try:
            pending = await repo.count_pending()
        except Exception as e:
            logger.warning("Pending count failed", error=str(e))

    worker = _worker_state(supervisor)
    components["enrichment_worker"] = ComponentHealth(
        status="unhealthy" if worker["last_error"] and not worker["running"] else "healthy",
        details=worker,
    )

    if components["database"].status == "unhealthy":
        status = "unhealthy"
    elif components["enrichment_worker"].status == "unhealthy":
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        components=components,
        pending_articles=pending,
        worker=worker,
    )
