"""
Near-duplicate title clustering.

Pure functions: no I/O and no state, so the same inputs always produce the
same cluster assignment.
"""

import re
from collections.abc import Iterable

from rss_tracker.clustering.config import ClusteringConfig
from rss_tracker.ingestion.schemas import Article

_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")
_WHITESPACE = re.compile(r"\s+")


def tokenize(text: str, min_length: int = 4) -> set[str]:
    """Lowercase, strip punctuation and keep words of at least min_length chars."""
    cleaned = _PUNCTUATION.sub("", text.lower())
    return {word for word in _WHITESPACE.split(cleaned) if len(word) >= min_length}


def jaccard_similarity(a: set[str], b: set[str]) -> float:
    """|a ∩ b| / |a ∪ b|, 0.0 when both sets are empty."""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def title_similarity(title_a: str, title_b: str, min_length: int = 4) -> float:
    return jaccard_similarity(tokenize(title_a, min_length), tokenize(title_b, min_length))


def find_cluster_id(
    candidate_title: str,
    recent_articles: Iterable[Article],
    threshold: float = 0.4,
    min_token_length: int = 4,
) -> str | None:
    """
    Find the cluster a new title belongs to.

    Scans recent_articles in the order given and returns on the first one
    whose title similarity meets the threshold.

    Args:
        candidate_title: Title of the article being ingested
        recent_articles: Most recent stored articles, newest first
        threshold: Minimum Jaccard similarity
        min_token_length: Shortest token taken into account

    Returns:
        The matched article's cluster_id, or its id if it has none yet,
        or None when nothing matches.
    """
    candidate_tokens = tokenize(candidate_title, min_token_length)
    if not candidate_tokens:
        return None

    for article in recent_articles:
        other = tokenize(article.title or "", min_token_length)
        if jaccard_similarity(candidate_tokens, other) >= threshold:
            return article.cluster_id or article.id
    return None


class TitleClusterer:
    """Binds clustering parameters from configuration."""

    def __init__(self, config: ClusteringConfig | None = None):
        self._config = config or ClusteringConfig()

    @property
    def window_size(self) -> int:
        return self._config.window_size

    def assign(self, candidate_title: str, recent_articles: Iterable[Article]) -> str | None:
        return find_cluster_id(
            candidate_title,
            recent_articles,
            threshold=self._config.similarity_threshold,
            min_token_length=self._config.min_token_length,
        )
