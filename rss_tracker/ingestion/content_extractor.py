"""
Article page scraping: main text and lead image.

Text extraction order:
1. trafilatura on the downloaded HTML
2. BeautifulSoup paragraph fallback (<article>/<main> paragraphs)

Both public methods return None on any ordinary failure (network error,
timeout, non-200, nothing extractable). They never raise to the caller.
"""

import asyncio
import logging
import re

import httpx
import trafilatura
from bs4 import BeautifulSoup

from rss_tracker.config.settings import get_settings

logger = logging.getLogger(__name__)

_IMAGE_META_SELECTORS = (
    'meta[property="og:image"]',
    'meta[name="twitter:image"]',
)
_CONTENT_IMAGE_SELECTOR = "article img, main img, .content img"


class ScrapeError(Exception):
    """Raised internally when a page cannot be downloaded."""


def normalize_text(text: str) -> str:
    """Collapse blank-line runs and trim."""
    return re.sub(r"\n\s*\n", "\n\n", text).strip()


def extract_text_from_html(page_html: str, url: str | None = None) -> str | None:
    text = trafilatura.extract(page_html, url=url, include_comments=False)
    if text:
        return normalize_text(text)

    soup = BeautifulSoup(page_html, "html.parser")
    container = soup.find("article") or soup.find("main") or soup.body
    if container is None:
        return None
    paragraphs = [p.get_text(" ", strip=True) for p in container.find_all("p")]
    text = "\n\n".join(p for p in paragraphs if p)
    return normalize_text(text) or None


def extract_image_from_html(page_html: str) -> str | None:
    """og:image → twitter:image → first absolute <img> inside the content."""
    soup = BeautifulSoup(page_html, "html.parser")

    for selector in _IMAGE_META_SELECTORS:
        meta = soup.select_one(selector)
        if meta and meta.get("content"):
            return meta["content"]

    img = soup.select_one(_CONTENT_IMAGE_SELECTOR)
    if img is not None:
        src = img.get("src") or ""
        if src.startswith("//"):
            return f"https:{src}"
        if src.startswith("http"):
            return src
    return None


class ContentExtractor:
    """Downloads article pages and extracts their readable content."""

    def __init__(
        self,
        text_timeout: float | None = None,
        image_timeout: float | None = None,
        min_content_length: int | None = None,
        user_agent: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        settings = get_settings()
        self._text_timeout = text_timeout or settings.scrape_timeout_seconds
        self._image_timeout = image_timeout or settings.image_timeout_seconds
        self._min_length = (
            min_content_length
            if min_content_length is not None
            else settings.scrape_min_content_length
        )
        self._user_agent = user_agent or settings.feed_user_agent
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _download(self, url: str, timeout: float) -> str:
        try:
            response = await self._get_client().get(url, timeout=timeout)
        except httpx.HTTPError as e:
            raise ScrapeError(f"{type(e).__name__}: {e}") from e
        if response.status_code != 200:
            raise ScrapeError(f"HTTP {response.status_code}")
        return response.text

    async def extract_full_text(self, url: str) -> str | None:
        """
        Scrape the readable body of an article.

        Returns:
            Text of at least min_content_length characters, otherwise None
        """
        try:
            page_html = await self._download(url, self._text_timeout)
        except ScrapeError as e:
            logger.warning(f"Error scraping {url}: {e}")
            return None

        text = await asyncio.to_thread(extract_text_from_html, page_html, url)
        if not text:
            logger.warning(f"No readable content extracted for {url}")
            return None
        if len(text) < self._min_length:
            logger.warning(f"Scraping resulted in very short content for {url}")
            return None
        return text

    async def extract_main_image(self, url: str) -> str | None:
        try:
            page_html = await self._download(url, self._image_timeout)
        except ScrapeError as e:
            logger.debug(f"Image lookup failed for {url}: {e}")
            return None
        return extract_image_from_html(page_html)
