"""
Title clustering configuration.

Clustering compares each new article's title against a window of the most
recent stored articles using Jaccard similarity over word sets.

Parameter Tuning Guide:
    - window_size: Larger windows catch stories that resurface later but
      cost O(window) comparisons per new article.
    - similarity_threshold: 0.4 groups reworded headlines of the same story.
      Raise it if unrelated stories sharing common words get merged.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClusteringConfig(BaseSettings):
    """
    Configuration for title clustering.

    All settings can be overridden via environment variables prefixed with CLUSTERING_.

    Example:
        CLUSTERING_WINDOW_SIZE=200
        CLUSTERING_SIMILARITY_THRESHOLD=0.5
    """

    model_config = SettingsConfigDict(
        env_prefix="CLUSTERING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    window_size: int = Field(
        default=100,
        ge=1,
        le=5000,
        description="Number of most recent articles a new title is compared against.",
    )
    similarity_threshold: float = Field(
        default=0.4,
        gt=0.0,
        le=1.0,
        description="Minimum Jaccard similarity for two titles to share a cluster.",
    )
    min_token_length: int = Field(
        default=4,
        ge=1,
        description="Tokens shorter than this are ignored.",
    )
