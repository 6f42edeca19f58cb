"""
RSS/Atom feed fetcher.

Downloads a feed with httpx and parses it with feedparser into a list of
normalized RawItem objects. Each RawItem attribute is resolved through an
explicit, ordered fallback chain so feed dialect differences stay local to
this module.

Handles:
- Network errors, timeouts and non-2xx responses (one FetchError per feed)
- Broken XML (FetchError when nothing could be recovered)
- Malformed entries (skipped, the rest of the feed is still returned)
"""

import calendar
import html
import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import feedparser
import httpx
from bs4 import BeautifulSoup

from rss_tracker.config.settings import get_settings
from rss_tracker.ingestion.schemas import RawItem

logger = logging.getLogger(__name__)

FEED_ACCEPT_HEADER = (
    "application/rss+xml, application/atom+xml, application/xml;q=0.9, "
    "text/xml;q=0.8, */*;q=0.5"
)


class FetchError(Exception):
    """Raised when a feed cannot be downloaded or parsed."""

    def __init__(self, source_url: str, reason: str):
        super().__init__(f"Failed to fetch {source_url}: {reason}")
        self.source_url = source_url
        self.reason = reason


# ── Field resolvers ──────────────────────────────────────────


def _first(*candidates: str | None) -> str | None:
    for value in candidates:
        if value and value.strip():
            return value.strip()
    return None


def html_to_text(html_content: str | None) -> str:
    """Extract clean text from an HTML fragment."""
    if not html_content:
        return ""
    soup = BeautifulSoup(html_content, "html.parser")
    for element in soup(["script", "style"]):
        element.decompose()
    text = html.unescape(soup.get_text(separator=" "))
    return re.sub(r"\s+", " ", text).strip()


def _first_inline_image(html_content: str | None) -> str | None:
    if not html_content or "<img" not in html_content:
        return None
    soup = BeautifulSoup(html_content, "html.parser")
    img = soup.find("img", src=True)
    return img["src"] if img else None


def _entry_content_html(entry: dict[str, Any]) -> str | None:
    content = entry.get("content")
    if content:
        return content[0].get("value")
    return None


def resolve_link(entry: dict[str, Any]) -> str | None:
    """link → first alternate/any links[].href"""
    link = entry.get("link")
    if link:
        return link
    for item in entry.get("links") or []:
        if item.get("href") and item.get("rel", "alternate") == "alternate":
            return item["href"]
    for item in entry.get("links") or []:
        if item.get("href"):
            return item["href"]
    return None


def resolve_snippet(entry: dict[str, Any]) -> str | None:
    """summary/description → full content, rendered to plain text."""
    for raw in (entry.get("summary"), _entry_content_html(entry)):
        text = html_to_text(raw)
        if text:
            return text
    return None


def resolve_author(entry: dict[str, Any]) -> str | None:
    """dc:creator / author → first authors[].name"""
    authors = entry.get("authors") or []
    return _first(
        entry.get("author"),
        authors[0].get("name") if authors else None,
    )


def _struct_to_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def parse_date_string(value: str | None) -> datetime | None:
    """Parse an RFC 822 or ISO 8601 date, None if unparseable."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_published_at(entry: dict[str, Any]) -> datetime | None:
    """published_parsed → updated_parsed → published string → updated string"""
    return (
        _struct_to_datetime(entry.get("published_parsed"))
        or _struct_to_datetime(entry.get("updated_parsed"))
        or parse_date_string(entry.get("published"))
        or parse_date_string(entry.get("updated"))
    )


def resolve_image(entry: dict[str, Any]) -> str | None:
    """enclosure → media:content → media:thumbnail → first inline <img>"""
    enclosures = entry.get("enclosures") or []
    for enclosure in enclosures:
        if enclosure.get("href") and str(enclosure.get("type", "")).startswith("image"):
            return enclosure["href"]
    for enclosure in enclosures:
        if enclosure.get("href"):
            return enclosure["href"]

    for media in entry.get("media_content") or []:
        if media.get("url"):
            return media["url"]

    for thumb in entry.get("media_thumbnail") or []:
        if thumb.get("url"):
            return thumb["url"]

    return _first_inline_image(_entry_content_html(entry)) or _first_inline_image(
        entry.get("summary")
    )


def entry_to_raw_item(entry: dict[str, Any]) -> RawItem:
    return RawItem(
        title=html_to_text(entry.get("title")) or None,
        link=resolve_link(entry),
        snippet=resolve_snippet(entry),
        published_at=resolve_published_at(entry),
        author=resolve_author(entry),
        image_url=resolve_image(entry),
    )


def parse_feed(content: bytes | str, source_url: str, max_items: int) -> list[RawItem]:
    """
    Parse feed content into RawItems.

    Raises:
        FetchError: If the document is not a feed at all
    """
    feed = feedparser.parse(content)
    entries = feed.get("entries", [])

    if feed.get("bozo") and not entries:
        reason = str(feed.get("bozo_exception", "unparseable feed"))
        raise FetchError(source_url, f"parse error: {reason}")

    items: list[RawItem] = []
    for entry in entries[:max_items]:
        try:
            items.append(entry_to_raw_item(entry))
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            logger.debug(f"Skipping malformed entry in {source_url}: {e}")
    return items


class FeedFetcher:
    """
    Fetches and normalizes RSS/Atom feeds.

    Usage:
        async with FeedFetcher() as fetcher:
            items = await fetcher.fetch("https://decrypt.co/feed", max_items=20)
    """

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        settings = get_settings()
        self._timeout = timeout or settings.feed_fetch_timeout_seconds
        self._user_agent = user_agent or settings.feed_user_agent
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "FeedFetcher":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={
                    "User-Agent": self._user_agent,
                    "Accept": FEED_ACCEPT_HEADER,
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, source_url: str, max_items: int = 20) -> list[RawItem]:
        """
        Fetch a feed and return up to max_items entries in feed order.

        Raises:
            FetchError: On network error, timeout, non-2xx status or
                unparseable XML
        """
        client = self._get_client()
        try:
            response = await client.get(source_url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError(source_url, f"timeout after {self._timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(source_url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(source_url, f"network error: {e}") from e

        items = parse_feed(response.content, source_url, max_items)
        logger.debug(f"Fetched {len(items)} items from {source_url}")
        return items
