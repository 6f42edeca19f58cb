"""Analytics: sentiment distribution, hot topics, sentiment timeline and the daily briefing."""

from rss_tracker.analytics.briefing import (
    Briefing,
    BriefingService,
    NoArticlesForBriefing,
    market_sentiment,
    top_trends,
)
from rss_tracker.analytics.config import BriefingConfig
from rss_tracker.analytics.service import (
    AnalyticsService,
    hot_topics,
    sentiment_distribution,
    sentiment_timeline,
    time_bucket,
)

__all__ = [
    "AnalyticsService",
    "Briefing",
    "BriefingConfig",
    "BriefingService",
    "NoArticlesForBriefing",
    "hot_topics",
    "market_sentiment",
    "sentiment_distribution",
    "sentiment_timeline",
    "time_bucket",
    "top_trends",
]
