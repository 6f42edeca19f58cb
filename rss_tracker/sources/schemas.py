"""Data models for the sources module."""

from dataclasses import dataclass, field
from datetime import datetime

from rss_tracker.sources.colors import generate_source_color

DEFAULT_MAX_ARTICLES = 20


@dataclass
class Source:
    """A configured RSS/Atom feed.

    `name` is the stable identity key. The URL can change without the
    source losing its articles or settings.
    """

    name: str
    url: str
    category: str
    language: str = "en"
    enabled: bool = True
    color: str | None = None
    max_articles: int = DEFAULT_MAX_ARTICLES
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.color:
            self.color = generate_source_color(self.name)
        if not self.max_articles or self.max_articles < 1:
            self.max_articles = DEFAULT_MAX_ARTICLES


@dataclass
class SourceUpdate:
    """Partial update for a source. None means leave unchanged."""

    url: str | None = None
    category: str | None = None
    language: str | None = None
    enabled: bool | None = None
    color: str | None = None
    max_articles: int | None = None

    def to_fields(self) -> dict:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass
class GroupedSources:
    """Enabled sources keyed by category, in insertion order."""

    by_category: dict[str, list[Source]] = field(default_factory=dict)

    def all(self) -> list[Source]:
        return [s for sources in self.by_category.values() for s in sources]

    def __len__(self) -> int:
        return sum(len(v) for v in self.by_category.values())
