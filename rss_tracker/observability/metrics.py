"""
Prometheus metrics for monitoring the RSS pipeline.

Defines and exposes metrics for:
- Article ingestion per source
- Feed fetch failures
- Enrichment outcomes and stage latency
- Pending backlog

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from rss_tracker.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the rss-tracker pipeline.

    Usage:
        metrics = MetricsCollector()
        metrics.start_server()

        metrics.record_ingestion("CoinDesk", count=4, latency=1.2)
        metrics.record_enrichment("success")
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        # Ingestion
        self.articles_ingested = Counter(
            "rss_tracker_articles_ingested_total",
            "Total number of new articles persisted",
            ["source"],
        )

        self.feed_fetch_errors = Counter(
            "rss_tracker_feed_fetch_errors_total",
            "Total feed fetch failures",
            ["source"],
        )

        self.feed_fetch_latency = Histogram(
            "rss_tracker_feed_fetch_latency_seconds",
            "Time to fetch and parse a feed",
            ["source"],
            buckets=LATENCY_BUCKETS,
        )

        self.ingestion_cycle_latency = Histogram(
            "rss_tracker_ingestion_cycle_latency_seconds",
            "Duration of a full ingestion cycle",
            buckets=LATENCY_BUCKETS,
        )

        # Enrichment
        self.articles_enriched = Counter(
            "rss_tracker_articles_enriched_total",
            "Enrichment outcomes per article",
            ["status"],  # success, error
        )

        self.enrichment_stage_latency = Histogram(
            "rss_tracker_enrichment_stage_latency_seconds",
            "Latency of enrichment stages",
            ["stage"],  # fast, summary, translation, scrape
            buckets=LATENCY_BUCKETS,
        )

        self.enrichment_pending = Gauge(
            "rss_tracker_enrichment_pending",
            "Number of articles waiting for enrichment",
        )

        self.worker_restarts = Counter(
            "rss_tracker_worker_restarts_total",
            "Number of enrichment worker restarts by the supervisor",
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_ingestion(
        self,
        source: str,
        count: int = 1,
        latency: float | None = None,
    ) -> None:
        """
        Record articles ingested from a source.

        Args:
            source: Source name
            count: Number of new articles
            latency: Optional fetch latency in seconds
        """
        if count:
            self.articles_ingested.labels(source=source).inc(count)
        if latency is not None:
            self.feed_fetch_latency.labels(source=source).observe(latency)

    def record_fetch_error(self, source: str) -> None:
        """Record a failed feed fetch."""
        self.feed_fetch_errors.labels(source=source).inc()

    def record_cycle(self, latency: float) -> None:
        self.ingestion_cycle_latency.observe(latency)

    def record_enrichment(self, status: str) -> None:
        """
        Record the outcome of enriching one article.

        Args:
            status: "success" or "error"
        """
        self.articles_enriched.labels(status=status).inc()

    def record_stage_latency(self, stage: str, latency: float) -> None:
        self.enrichment_stage_latency.labels(stage=stage).observe(latency)

    def set_pending(self, count: int) -> None:
        self.enrichment_pending.set(count)

    def record_worker_restart(self) -> None:
        self.worker_restarts.inc()


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
