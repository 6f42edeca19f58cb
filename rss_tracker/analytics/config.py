"""
Daily briefing configuration.

Parameter Tuning Guide:
    - article_limit / window_hours: The briefing reads the newest analyzed
      articles inside the window. Each section costs one summarization call,
      so the limit bounds request latency.
    - min_sentiment_samples / sentiment_ratio: The market mood only leaves
      "neutral" once enough bullish plus bearish articles exist and one side
      outnumbers the other by the ratio.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BriefingConfig(BaseSettings):
    """
    Configuration for the daily briefing.

    All settings can be overridden via environment variables prefixed with BRIEFING_.

    Example:
        BRIEFING_ARTICLE_LIMIT=40
        BRIEFING_SENTIMENT_RATIO=1.6
    """

    model_config = SettingsConfigDict(
        env_prefix="BRIEFING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    article_limit: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Top articles considered for one briefing.",
    )
    window_hours: int = Field(
        default=24,
        ge=1,
        le=24 * 7,
        description="Only articles published or fetched this recently are considered.",
    )
    articles_per_section: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Articles summarized per category section.",
    )
    min_sentiment_samples: int = Field(
        default=5,
        ge=1,
        description="Bullish plus bearish articles needed before the mood leaves neutral.",
    )
    sentiment_ratio: float = Field(
        default=1.4,
        ge=1.0,
        description="How many times one side must outnumber the other.",
    )
    trend_count: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Trending title words returned with the briefing.",
    )
