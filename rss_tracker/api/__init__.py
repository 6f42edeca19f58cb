"""
FastAPI query service.

Provides REST API for the article store with:
- GET /articles - Filtered, paginated article listing
- /sources - Feed registry CRUD
- /analytics/* - Sentiment distribution, hot topics, timeline
- GET /health - Service health check
"""

from rss_tracker.api.app import create_app

__all__ = ["create_app"]
