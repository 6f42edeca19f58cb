"""
FastAPI application factory.
"""

import asyncio
import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rss_tracker.api.routes import analytics, articles, briefing, health, sources
from rss_tracker.config.settings import get_settings
from rss_tracker.observability.logging import log_context
from rss_tracker.services.pipeline import build_pipeline
from rss_tracker.storage.database import Database

logger = structlog.get_logger(__name__)


def create_app(
    database: Database | None = None,
    run_pipeline: bool | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: Database handle to serve from. Created from settings
            during startup when omitted.
        run_pipeline: Whether this process also runs the scheduled
            ingestion loop and enrichment worker. Defaults to
            settings.api_run_pipeline.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    if run_pipeline is None:
        run_pipeline = settings.api_run_pipeline

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("RSS tracker API starting up", run_pipeline=run_pipeline)

        db = database or Database()
        await db.connect()
        pipeline = build_pipeline(db, in_process_worker=run_pipeline)
        app.state.pipeline = pipeline

        loop_task: asyncio.Task | None = None
        if run_pipeline:
            await pipeline.initialize()
            pipeline.supervisor.ensure_running()
            loop_task = asyncio.create_task(
                pipeline.orchestrator.run_forever(), name="ingestion-loop"
            )

        yield

        logger.info("RSS tracker API shutting down")
        await pipeline.shutdown()
        if loop_task is not None:
            loop_task.cancel()
            await asyncio.gather(loop_task, return_exceptions=True)
        await db.close()
        app.state.pipeline = None

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "articles", "description": "Article listing, lookup and bookmarks"},
        {"name": "sources", "description": "Feed registry CRUD"},
        {"name": "analytics", "description": "Sentiment distribution, topics and timeline"},
        {"name": "briefing", "description": "Daily briefing over the top recent articles"},
    ]

    app = FastAPI(
        title="RSS Tracker API",
        description="""
Query API over ingested RSS/Atom articles.

Articles appear as soon as they are fetched and gain sentiment, entities,
a summary and translations as the background enrichment worker reaches them.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Request logging and correlation ID middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        start_time = time.perf_counter()

        with log_context(request_id=request_id):
            response = await call_next(request)
            duration = time.perf_counter() - start_time
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(articles.router, tags=["articles"])
    app.include_router(sources.router, tags=["sources"])
    app.include_router(analytics.router, tags=["analytics"])
    app.include_router(briefing.router, tags=["briefing"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "RSS Tracker API",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app
