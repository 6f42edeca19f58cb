"""Tests for source models and color generation."""

import re

from rss_tracker.sources.colors import generate_source_color
from rss_tracker.sources.schemas import GroupedSources, Source, SourceUpdate

HSL_PATTERN = re.compile(r"^hsl\((\d+), (\d+)%, (\d+)%\)$")


class TestGenerateSourceColor:
    def test_known_values(self) -> None:
        assert generate_source_color("A") == "hsl(65, 70%, 46%)"
        assert generate_source_color("AB") == "hsl(281, 76%, 45%)"

    def test_deterministic(self) -> None:
        assert generate_source_color("CoinDesk") == generate_source_color("CoinDesk")

    def test_ranges(self) -> None:
        for name in ("CoinDesk", "Le Monde", "The Block", "Cointelegraph", "日本経済新聞", ""):
            match = HSL_PATTERN.match(generate_source_color(name))
            assert match is not None
            hue, saturation, lightness = (int(g) for g in match.groups())
            assert 0 <= hue < 360
            assert 70 <= saturation <= 79
            assert 45 <= lightness <= 49


class TestSource:
    def test_fills_color_and_max_articles(self) -> None:
        source = Source(name="CoinDesk", url="https://x/rss", category="crypto", max_articles=0)
        assert source.color == generate_source_color("CoinDesk")
        assert source.max_articles == 20

    def test_keeps_explicit_color(self) -> None:
        source = Source(name="CoinDesk", url="https://x/rss", category="crypto", color="#fff")
        assert source.color == "#fff"


class TestSourceUpdate:
    def test_to_fields_drops_unset(self) -> None:
        assert SourceUpdate(enabled=False, url="https://y/rss").to_fields() == {
            "url": "https://y/rss",
            "enabled": False,
        }

    def test_empty(self) -> None:
        assert SourceUpdate().to_fields() == {}


class TestGroupedSources:
    def test_all_and_len(self) -> None:
        a = Source(name="A", url="https://a", category="crypto")
        b = Source(name="B", url="https://b", category="news")
        grouped = GroupedSources(by_category={"crypto": [a], "news": [b]})
        assert grouped.all() == [a, b]
        assert len(grouped) == 2
