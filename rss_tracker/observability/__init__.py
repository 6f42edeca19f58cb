"""Observability layer - logging and metrics."""

from rss_tracker.observability.logging import setup_logging
from rss_tracker.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
