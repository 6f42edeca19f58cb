"""Shared fixtures for sources tests."""

from datetime import datetime, timezone

import pytest


@pytest.fixture
def sample_db_row() -> dict:
    """A dict mimicking an asyncpg Record for a source."""
    return {
        "name": "CoinDesk",
        "url": "https://www.coindesk.com/arc/outboundfeeds/rss/",
        "category": "crypto",
        "language": "en",
        "enabled": True,
        "color": "hsl(120, 75%, 47%)",
        "max_articles": 20,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    }

