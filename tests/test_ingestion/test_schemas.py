"""Tests for the article schema and its enrichment state."""

from rss_tracker.ingestion.schemas import (
    DEFAULT_TITLE,
    Article,
    ArticleAnalysis,
    EnrichmentState,
    RawItem,
    Translation,
)


class TestArticleState:
    def test_pending(self, sample_article: Article) -> None:
        assert sample_article.state is EnrichmentState.PENDING
        assert sample_article.is_pending

    def test_fast_done(self, analyzed_article: Article) -> None:
        assert analyzed_article.state is EnrichmentState.FAST_DONE
        assert not analyzed_article.is_pending

    def test_fully_done(self, analyzed_article: Article) -> None:
        article = analyzed_article.model_copy(update={
            "analysis": ArticleAnalysis(sentiment="bullish", ia_summary="Bitcoin hit a record."),
        })
        assert article.state is EnrichmentState.FULLY_DONE


class TestArticle:
    def test_blank_title_gets_placeholder(self) -> None:
        article = Article(link="https://x/a", title="  ", source_feed="https://x", feed_name="X")
        assert article.title == DEFAULT_TITLE

    def test_title_whitespace_collapsed(self) -> None:
        article = Article(link="https://x/a", title="Bitcoin\n  surges",
                          source_feed="https://x", feed_name="X")
        assert article.title == "Bitcoin surges"

    def test_api_dict(self, analyzed_article: Article) -> None:
        article = analyzed_article.model_copy(update={
            "full_text": "long body",
            "translations": {"fr": Translation(title="Le bitcoin bondit")},
        })

        data = article.to_api_dict()

        assert "full_text" not in data
        assert data["state"] == "fast_done"
        assert data["analysis"]["sentiment"] == "bullish"
        assert data["translations"]["fr"]["title"] == "Le bitcoin bondit"
        assert article.is_translated


class TestRawItem:
    def test_blank_strings_become_none(self) -> None:
        item = RawItem(title="  ", link=" https://x/a ", snippet="")
        assert item.title is None
        assert item.link == "https://x/a"
        assert item.snippet is None
