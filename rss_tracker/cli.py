"""
Command-line interface for rss-tracker.

Provides commands to run the ingestion loop and enrichment worker,
initialize the database, and run diagnostic checks.

Usage:
    rss-tracker init-db             # Create tables
    rss-tracker seed-sources        # Load default feeds into an empty registry
    rss-tracker ingest              # Scheduled ingestion + enrichment worker
    rss-tracker ingest --once       # A single ingestion cycle
    rss-tracker enrich              # Enrichment worker only
    rss-tracker backfill-summaries  # Summarize analyzed articles with no summary
    rss-tracker serve               # Query API (runs the pipeline too by default)
    rss-tracker health              # Check service health
"""

import asyncio
import signal
import sys

import click

from rss_tracker.config.settings import ConfigurationError, get_settings
from rss_tracker.observability.logging import setup_logging
from rss_tracker.observability.metrics import get_metrics


def _validate_settings() -> None:
    try:
        get_settings().validate_for_startup()
    except ConfigurationError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        sys.exit(2)


def _install_signal_handlers(stop) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(stop()))


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """RSS Tracker - feed ingestion, AI enrichment and query API."""
    setup_logging("DEBUG" if debug else None)


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from rss_tracker.sources.service import SourcesService
    from rss_tracker.storage.database import Database
    from rss_tracker.storage.repository import ArticleRepository

    _validate_settings()

    async def run():
        async with Database() as db:
            await ArticleRepository(db).create_tables()
            await SourcesService(db).repository.create_table()

        click.echo("Database initialized successfully")

    asyncio.run(run())


@main.command("seed-sources")
@click.option("--file", "seed_file", default=None, type=click.Path(exists=True, dir_okay=False),
              help="JSON seed file (defaults to the bundled source list)")
def seed_sources(seed_file: str | None) -> None:
    """Load the default sources when the registry is empty."""
    from pathlib import Path

    from rss_tracker.sources.service import SourcesService, load_seed_sources
    from rss_tracker.storage.database import Database

    _validate_settings()

    async def run():
        async with Database() as db:
            service = SourcesService(db)
            await service.repository.create_table()
            defaults = load_seed_sources(Path(seed_file)) if seed_file else None
            count = await service.seed_if_empty(defaults)

        if count:
            click.echo(f"Seeded {count} sources")
        else:
            click.echo("Sources table already populated, nothing to do")

    asyncio.run(run())


@main.command()
@click.option("--once", is_flag=True, help="Run a single cycle and exit")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
@click.option(
    "--worker/--no-worker",
    default=True,
    help="Run the enrichment worker in this process (use --no-worker alongside `enrich`)",
)
def ingest(once: bool, metrics: bool, worker: bool) -> None:
    """Run the ingestion loop, with the enrichment worker unless --no-worker."""
    from rss_tracker.services.ingestion_service import IngestionOrchestrator
    from rss_tracker.services.pipeline import build_pipeline
    from rss_tracker.storage.database import Database

    _validate_settings()

    async def run():
        async with Database() as db:
            pipeline = build_pipeline(db, in_process_worker=worker)
            await pipeline.initialize()

            if once:
                # No worker here: a one-shot cycle should not load models
                orchestrator = IngestionOrchestrator(
                    sources=pipeline.sources,
                    repository=pipeline.articles,
                    fetcher=pipeline.fetcher,
                )
                try:
                    result = await orchestrator.run_ingestion_cycle()
                finally:
                    await pipeline.shutdown()

                click.echo(
                    f"New articles: {result.new_article_count}, "
                    f"failed sources: {result.failed_source_count}"
                )
                for name in result.failed_sources:
                    click.echo(click.style(f"  ✗ {name}", fg="red"))
                return

            if metrics:
                get_metrics().start_server()

            _install_signal_handlers(pipeline.orchestrator.stop)
            if worker:
                pipeline.supervisor.ensure_running()
            try:
                await pipeline.orchestrator.run_forever()
            finally:
                await pipeline.shutdown()

    asyncio.run(run())


@main.command()
@click.option("--once", is_flag=True, help="Process a single batch and exit")
@click.option("--batch-size", default=None, type=int, help="Articles per batch")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
@click.option("--metrics-port", default=8001, help="Metrics server port")
def enrich(once: bool, batch_size: int | None, metrics: bool, metrics_port: int) -> None:
    """Run the enrichment worker without ingesting."""
    from rss_tracker.enrichment.config import EnrichmentConfig
    from rss_tracker.services.pipeline import build_pipeline
    from rss_tracker.storage.database import Database

    _validate_settings()
    config = EnrichmentConfig()
    if batch_size:
        config = config.model_copy(update={"batch_size": batch_size})

    async def run():
        async with Database() as db:
            pipeline = build_pipeline(db, enrichment_config=config)

            if once:
                try:
                    stats = await pipeline.worker.run_once()
                    await pipeline.worker.drain()
                finally:
                    await pipeline.shutdown()
                click.echo(f"Processed: {stats.processed}, errors: {stats.errors}")
                return

            if metrics:
                get_metrics().start_server(port=metrics_port)

            _install_signal_handlers(pipeline.supervisor.stop)
            pipeline.supervisor.ensure_running()
            try:
                await pipeline.supervisor.wait()
            finally:
                await pipeline.shutdown()

    asyncio.run(run())


@main.command("backfill-summaries")
@click.option("--limit", default=50, type=int, help="Maximum articles to summarize")
def backfill_summaries(limit: int) -> None:
    """Summarize analyzed articles that never received a summary."""
    from rss_tracker.services.pipeline import build_pipeline
    from rss_tracker.storage.database import Database

    _validate_settings()

    async def run():
        async with Database() as db:
            pipeline = build_pipeline(db)
            try:
                count = await pipeline.worker.backfill_summaries(limit=limit)
            finally:
                await pipeline.shutdown()
        click.echo(f"Summaries written: {count}")

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check health of all dependencies."""
    import structlog
    logger = structlog.get_logger()

    from rss_tracker.storage.database import Database
    from rss_tracker.storage.repository import ArticleRepository

    async def check():
        results: dict[str, bool] = {}
        pending: int | None = None

        try:
            db = Database()
            await db.connect()
            results["postgres"] = await db.health_check()
            if results["postgres"]:
                pending = await ArticleRepository(db).count_pending()
            await db.close()
        except Exception as e:
            results["postgres"] = False
            logger.error("Postgres health check failed", error=str(e))

        try:
            get_settings().validate_for_startup()
            results["configuration"] = True
        except ConfigurationError as e:
            results["configuration"] = False
            logger.error("Configuration invalid", error=str(e))

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)

        all_healthy = True
        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))
            if not status:
                all_healthy = False
        if pending is not None:
            click.echo(f"  Pending articles: {pending}")

        click.echo("-" * 40)

        if all_healthy:
            click.echo(click.style("All core services healthy!", fg="green"))
            sys.exit(0)
        else:
            click.echo(click.style("Some services unhealthy!", fg="red"))
            sys.exit(1)

    asyncio.run(check())


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the query API server."""
    import uvicorn

    _validate_settings()
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    get_metrics().start_server(port=metrics_port)

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "rss_tracker.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
