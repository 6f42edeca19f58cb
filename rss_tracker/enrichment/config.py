"""
Enrichment worker configuration.

Covers polling cadence of the worker loop, stage thresholds, supervisor
restart policy and the HuggingFace models behind each AI capability.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnrichmentConfig(BaseSettings):
    """
    Configuration for the enrichment worker and its AI models.

    Settings can be overridden via environment variables prefixed with ENRICHMENT_.

    Example:
        ENRICHMENT_BATCH_SIZE=20
        ENRICHMENT_TRANSLATION_ENABLED=true
        ENRICHMENT_TRANSLATION_TARGETS=["en","fr"]
    """

    model_config = SettingsConfigDict(
        env_prefix="ENRICHMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Worker loop
    batch_size: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Pending articles fetched per poll",
    )
    idle_sleep_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Sleep when the queue is empty or a batch made no progress",
    )
    error_sleep_seconds: float = Field(
        default=10.0,
        ge=0.0,
        description="Sleep after an unexpected error in the loop itself",
    )

    # Stage thresholds
    max_input_chars: int = Field(
        default=500,
        ge=64,
        le=4000,
        description="Content is truncated to this length before classification/NER",
    )
    summary_min_chars: int = Field(
        default=200,
        ge=0,
        description="Minimum content length for the summarization stage",
    )
    max_concurrent_summaries: int = Field(
        default=1,
        ge=1,
        le=8,
        description="Summaries running at the same time",
    )
    summary_max_input_chars: int = Field(
        default=3000,
        ge=200,
        description="Content is truncated to this length before summarization",
    )

    # Translation
    translation_enabled: bool = Field(
        default=False,
        description="Translate title/summary after the fast stage",
    )
    translation_targets: list[str] = Field(
        default_factory=lambda: ["en"],
        description="Languages each article is translated into",
    )

    # Supervisor
    restart_base_delay: float = Field(default=10.0, ge=0.0)
    restart_max_delay: float = Field(default=300.0, ge=1.0)
    max_restarts: int = Field(
        default=10,
        ge=1,
        description="Consecutive failed restarts before the supervisor gives up",
    )

    # Models
    sentiment_model: str = Field(
        default="distilbert-base-uncased-finetuned-sst-2-english",
        description="HuggingFace model for POSITIVE/NEGATIVE classification",
    )
    ner_model: str = Field(
        default="dslim/bert-base-NER",
        description="HuggingFace token-classification model",
    )
    summarization_model: str = Field(
        default="sshleifer/distilbart-cnn-12-6",
        description="HuggingFace summarization model",
    )
    translation_model_template: str = Field(
        default="Helsinki-NLP/opus-mt-{source}-{target}",
        description="Model name pattern for a language pair",
    )
    device: Literal["auto", "cpu", "cuda", "mps"] = Field(
        default="auto",
        description="Device for model inference (auto detects best available)",
    )
    min_entity_score: float = Field(default=0.5, ge=0.0, le=1.0)
