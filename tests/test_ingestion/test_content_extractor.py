"""Tests for article page scraping."""

import httpx
import pytest
import respx

from rss_tracker.ingestion.content_extractor import (
    ContentExtractor,
    extract_image_from_html,
    normalize_text,
)

PAGE_URL = "https://example.com/markets/bitcoin-record"

PARAGRAPH = (
    "Bitcoin climbed above its previous all-time high on Thursday as spot ETF "
    "inflows accelerated and derivatives funding rates turned positive again. "
)

ARTICLE_PAGE = f"""
<html>
  <head>
    <title>Bitcoin record</title>
    <meta property="og:image" content="https://example.com/img/og.jpg">
  </head>
  <body>
    <nav>Home | Markets</nav>
    <article>
      <h1>Bitcoin price surges past record high</h1>
      <p>{PARAGRAPH}</p>
      <p>{PARAGRAPH}</p>
      <p>{PARAGRAPH}</p>
      <img src="https://example.com/img/inline.jpg">
    </article>
  </body>
</html>
"""


class TestNormalizeText:
    def test_collapses_blank_lines(self) -> None:
        assert normalize_text("  a\n\n\n\nb  ") == "a\n\nb"


class TestExtractImageFromHtml:
    def test_og_image_first(self) -> None:
        assert extract_image_from_html(ARTICLE_PAGE) == "https://example.com/img/og.jpg"

    def test_twitter_image(self) -> None:
        page = '<html><head><meta name="twitter:image" content="https://x/t.jpg"></head></html>'
        assert extract_image_from_html(page) == "https://x/t.jpg"

    def test_content_img_protocol_relative(self) -> None:
        page = '<html><body><main><img src="//cdn.example.com/a.png"></main></body></html>'
        assert extract_image_from_html(page) == "https://cdn.example.com/a.png"

    def test_relative_src_ignored(self) -> None:
        page = '<html><body><article><img src="/a.png"></article></body></html>'
        assert extract_image_from_html(page) is None


class TestContentExtractor:
    @pytest.mark.asyncio
    @respx.mock
    async def test_extract_full_text(self) -> None:
        respx.get(PAGE_URL).mock(return_value=httpx.Response(200, text=ARTICLE_PAGE))

        extractor = ContentExtractor(min_content_length=100)
        text = await extractor.extract_full_text(PAGE_URL)
        await extractor.close()

        assert text is not None
        assert "spot ETF inflows" in text
        assert len(text) >= 100

    @pytest.mark.asyncio
    @respx.mock
    async def test_short_content_returns_none(self) -> None:
        page = "<html><body><article><p>Too short.</p></article></body></html>"
        respx.get(PAGE_URL).mock(return_value=httpx.Response(200, text=page))

        extractor = ContentExtractor(min_content_length=100)
        assert await extractor.extract_full_text(PAGE_URL) is None
        await extractor.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_returns_none(self) -> None:
        respx.get(PAGE_URL).mock(return_value=httpx.Response(403))

        extractor = ContentExtractor()
        assert await extractor.extract_full_text(PAGE_URL) is None
        assert await extractor.extract_main_image(PAGE_URL) is None
        await extractor.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_network_error_returns_none(self) -> None:
        respx.get(PAGE_URL).mock(side_effect=httpx.ConnectTimeout("slow"))

        extractor = ContentExtractor()
        assert await extractor.extract_full_text(PAGE_URL) is None
        await extractor.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_extract_main_image(self) -> None:
        respx.get(PAGE_URL).mock(return_value=httpx.Response(200, text=ARTICLE_PAGE))

        extractor = ContentExtractor()
        assert await extractor.extract_main_image(PAGE_URL) == "https://example.com/img/og.jpg"
        await extractor.close()
