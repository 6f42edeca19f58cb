"""Tests for analytics endpoints."""


class TestSentimentDistribution:
    def test_returns_counts(self, client, mock_analytics_service):
        mock_analytics_service.get_sentiment_distribution.return_value = {
            "total": 3,
            "distribution": {"bullish": 2, "bearish": 1, "neutral": 0},
            "by_source": {"CoinDesk": {"bullish": 2, "bearish": 1, "neutral": 0}},
        }

        resp = client.get("/analytics/sentiment", params={"date_range": "today"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 3
        assert data["by_source"]["CoinDesk"]["bullish"] == 2
        mock_analytics_service.get_sentiment_distribution.assert_awaited_once_with(
            date_range="today", category=None, source=None
        )

    def test_invalid_date_range(self, client):
        resp = client.get("/analytics/sentiment", params={"date_range": "year"})
        assert resp.status_code == 422


class TestHotTopics:
    def test_returns_topics(self, client, mock_analytics_service):
        mock_analytics_service.get_hot_topics.return_value = [
            {"keyword": "bitcoin", "count": 12, "sentiment": "bullish"},
        ]

        resp = client.get("/analytics/topics", params={"limit": 10, "category": "crypto"})

        assert resp.status_code == 200
        assert resp.json() == {
            "topics": [{"keyword": "bitcoin", "count": 12, "sentiment": "bullish"}]
        }
        kwargs = mock_analytics_service.get_hot_topics.call_args.kwargs
        assert kwargs["limit"] == 10
        assert kwargs["category"] == "crypto"

    def test_limit_bounds(self, client):
        assert client.get("/analytics/topics", params={"limit": 0}).status_code == 422


class TestTimeline:
    def test_defaults(self, client, mock_analytics_service):
        mock_analytics_service.get_timeline.return_value = [
            {"date": "2026-02-05", "bullish": 1, "bearish": 0, "neutral": 2},
        ]

        resp = client.get("/analytics/timeline")

        assert resp.status_code == 200
        data = resp.json()
        assert data["granularity"] == "day"
        assert data["data"][0]["neutral"] == 2
        kwargs = mock_analytics_service.get_timeline.call_args.kwargs
        assert kwargs["date_range"] == "week"

    def test_hourly(self, client, mock_analytics_service):
        mock_analytics_service.get_timeline.return_value = []

        resp = client.get("/analytics/timeline", params={"granularity": "hour"})

        assert resp.status_code == 200
        assert resp.json() == {"granularity": "hour", "data": []}
