"""
AI capability surface backed by HuggingFace transformers pipelines.

Provides four async operations used by the enrichment worker:
- classify_sentiment: POSITIVE/NEGATIVE label with a confidence score
- extract_entities: named entities with aggregated spans
- summarize: abstractive summary of article text
- translate: text translation between two languages

Pipelines are loaded lazily on first use and run in a worker thread so
inference never blocks the event loop.
"""

import asyncio
import threading
from typing import Any

import structlog
import torch
from transformers import pipeline

from rss_tracker.enrichment.config import EnrichmentConfig

logger = structlog.get_logger(__name__)


class AIError(Exception):
    """Raised when a model cannot be loaded or inference fails."""

    def __init__(self, capability: str, message: str):
        super().__init__(f"{capability}: {message}")
        self.capability = capability


class AIService:
    """
    Lazily-initialized transformers pipelines.

    Usage:
        service = AIService()
        result = await service.classify_sentiment("Bitcoin hits new high")
        print(result["label"], result["score"])
    """

    def __init__(self, config: EnrichmentConfig | None = None):
        self._config = config or EnrichmentConfig()
        self._pipelines: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._device: int | str | None = None

    def _detect_device(self) -> int | str:
        """Pipeline device argument: CUDA index, "mps" or -1 for CPU."""
        if self._device is not None:
            return self._device

        if self._config.device == "cpu":
            self._device = -1
        elif self._config.device == "cuda" or (
            self._config.device == "auto" and torch.cuda.is_available()
        ):
            self._device = 0
        elif self._config.device == "mps" or (
            self._config.device == "auto" and torch.backends.mps.is_available()
        ):
            self._device = "mps"
        else:
            self._device = -1
        return self._device

    def _get_pipeline(self, key: str, task: str, model: str, **kwargs: Any) -> Any:
        with self._lock:
            if key not in self._pipelines:
                logger.info("Loading model", task=task, model=model)
                try:
                    self._pipelines[key] = pipeline(
                        task, model=model, device=self._detect_device(), **kwargs
                    )
                except (OSError, ValueError, RuntimeError) as e:
                    raise AIError(task, f"failed to load {model}: {e}") from e
            return self._pipelines[key]

    def warm_up(self) -> None:
        """Load the fast-stage models eagerly so startup fails fast."""
        self._get_pipeline(
            "sentiment", "sentiment-analysis", self._config.sentiment_model
        )
        self._get_pipeline(
            "ner", "token-classification", self._config.ner_model,
            aggregation_strategy="simple",
        )

    @property
    def loaded_models(self) -> list[str]:
        return sorted(self._pipelines)

    # Synchronous inference

    def _classify_sync(self, text: str) -> dict[str, Any]:
        classifier = self._get_pipeline(
            "sentiment", "sentiment-analysis", self._config.sentiment_model
        )
        result = classifier(text, truncation=True)[0]
        return {"label": str(result["label"]).upper(), "score": float(result["score"])}

    def _entities_sync(self, text: str) -> list[dict[str, Any]]:
        ner = self._get_pipeline(
            "ner", "token-classification", self._config.ner_model,
            aggregation_strategy="simple",
        )
        entities: list[dict[str, Any]] = []
        seen: set[tuple[str, str]] = set()
        for item in ner(text):
            score = float(item.get("score", 0.0))
            word = str(item.get("word", "")).strip()
            label = str(item.get("entity_group") or item.get("entity", ""))
            if not word or score < self._config.min_entity_score:
                continue
            key = (word.lower(), label)
            if key in seen:
                continue
            seen.add(key)
            entities.append({"text": word, "label": label, "score": round(score, 4)})
        return entities

    def _summarize_sync(self, text: str) -> str | None:
        summarizer = self._get_pipeline(
            "summarization", "summarization", self._config.summarization_model
        )
        result = summarizer(
            text[: self._config.summary_max_input_chars],
            max_length=130,
            min_length=30,
            do_sample=False,
            truncation=True,
        )
        summary = result[0].get("summary_text", "").strip() if result else ""
        return summary or None

    def _translate_sync(self, text: str, source_lang: str, target_lang: str) -> str:
        model = self._config.translation_model_template.format(
            source=source_lang, target=target_lang
        )
        translator = self._get_pipeline(
            f"translation:{source_lang}-{target_lang}", "translation", model
        )
        result = translator(text, truncation=True)
        return result[0]["translation_text"]

    # Async surface

    async def _run(self, capability: str, fn: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except AIError:
            raise
        except (RuntimeError, ValueError, KeyError, IndexError) as e:
            raise AIError(capability, str(e)) from e

    async def classify_sentiment(self, text: str) -> dict[str, Any]:
        """
        Classify text sentiment.

        Returns:
            {"label": "POSITIVE" | "NEGATIVE", "score": float}

        Raises:
            AIError: If the model fails
        """
        return await self._run("sentiment", self._classify_sync, text)

    async def extract_entities(self, text: str) -> list[dict[str, Any]]:
        """Return deduplicated entities as {"text", "label", "score"} dicts."""
        return await self._run("ner", self._entities_sync, text)

    async def summarize(self, text: str) -> str | None:
        return await self._run("summarization", self._summarize_sync, text)

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        if source_lang == target_lang or not text:
            return text
        return await self._run(
            "translation", self._translate_sync, text, source_lang, target_lang
        )
