"""Services that orchestrate ingestion."""

from rss_tracker.services.ingestion_service import (
    IngestionOrchestrator,
    IngestionResult,
    SourceResult,
)

__all__ = ["IngestionOrchestrator", "IngestionResult", "SourceResult"]
