"""Tests for title clustering."""

import pytest

from rss_tracker.clustering.config import ClusteringConfig
from rss_tracker.clustering.service import (
    TitleClusterer,
    find_cluster_id,
    jaccard_similarity,
    title_similarity,
    tokenize,
)
from rss_tracker.ingestion.schemas import Article


def _stored(article_id: str, title: str, cluster_id: str | None = None) -> Article:
    return Article.model_construct(id=article_id, title=title, cluster_id=cluster_id)


class TestTokenize:
    def test_lowercases_and_strips_punctuation(self) -> None:
        assert tokenize("Bitcoin: Price SURGES!") == {"bitcoin", "price", "surges"}

    def test_drops_short_tokens(self) -> None:
        assert tokenize("Fed and ECB hold rates") == {"hold", "rates"}

    def test_custom_min_length(self) -> None:
        assert tokenize("Fed and ECB hold", min_length=3) == {"fed", "and", "ecb", "hold"}

    def test_empty(self) -> None:
        assert tokenize("") == set()


class TestJaccardSimilarity:
    def test_identical_sets(self) -> None:
        assert jaccard_similarity({"a", "b"}, {"a", "b"}) == 1.0

    def test_disjoint_sets(self) -> None:
        assert jaccard_similarity({"a"}, {"b"}) == 0.0

    def test_empty_union_is_zero(self) -> None:
        assert jaccard_similarity(set(), set()) == 0.0

    def test_partial_overlap(self) -> None:
        assert jaccard_similarity({"a", "b", "c"}, {"b", "c", "d"}) == pytest.approx(0.5)

    def test_reworded_headline_scores_one_third(self) -> None:
        score = title_similarity(
            "Fed raises interest rates again", "Federal Reserve raises rates"
        )
        assert score == pytest.approx(2 / 6)


class TestFindClusterId:
    def test_no_recent_articles(self) -> None:
        assert find_cluster_id("Bitcoin price surges past record high", []) is None

    def test_match_returns_existing_id(self) -> None:
        recent = [_stored("a1", "Bitcoin price surges to record high")]
        assert find_cluster_id("Bitcoin price surges past record high", recent) == "a1"

    def test_match_prefers_existing_cluster_id(self) -> None:
        recent = [_stored("a2", "Bitcoin price surges to record high", cluster_id="a1")]
        assert find_cluster_id("Bitcoin price surges past record high", recent) == "a1"

    def test_below_default_threshold_starts_new_cluster(self) -> None:
        recent = [_stored("a1", "Fed raises interest rates again")]
        assert find_cluster_id("Federal Reserve raises rates", recent) is None

    def test_lower_threshold_matches(self) -> None:
        recent = [_stored("a1", "Fed raises interest rates again")]
        assert find_cluster_id("Federal Reserve raises rates", recent, threshold=0.3) == "a1"

    def test_first_match_wins(self) -> None:
        recent = [
            _stored("newest", "Bitcoin price surges to record high"),
            _stored("older", "Bitcoin price surges past record high"),
        ]
        assert find_cluster_id("Bitcoin price surges past record high", recent) == "newest"

    def test_title_without_tokens_never_matches(self) -> None:
        recent = [_stored("a1", "ETH up")]
        assert find_cluster_id("ETH up", recent) is None

    def test_deterministic(self) -> None:
        recent = [
            _stored("a1", "Ethereum upgrade goes live on mainnet"),
            _stored("a2", "Solana network suffers outage"),
        ]
        results = {
            find_cluster_id("Ethereum mainnet upgrade goes live", recent) for _ in range(5)
        }
        assert results == {"a1"}


class TestTitleClusterer:
    def test_defaults(self) -> None:
        clusterer = TitleClusterer(ClusteringConfig())
        assert clusterer.window_size == 100

    def test_uses_configured_threshold(self) -> None:
        recent = [_stored("a1", "Fed raises interest rates again")]
        strict = TitleClusterer(ClusteringConfig(similarity_threshold=0.4))
        loose = TitleClusterer(ClusteringConfig(similarity_threshold=0.3))

        assert strict.assign("Federal Reserve raises rates", recent) is None
        assert loose.assign("Federal Reserve raises rates", recent) == "a1"

    def test_config_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLUSTERING_WINDOW_SIZE", "250")
        assert TitleClusterer(ClusteringConfig()).window_size == 250
