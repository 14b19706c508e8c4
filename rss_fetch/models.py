"""Shared data models for rss_fetch."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from markupsafe import Markup


class FeedFormat(enum.Enum):
    """Syndication formats the renderer understands."""

    RSS = "rss"
    ATOM = "atom"

    @property
    def default_title(self) -> str:
        return "RSS Feed" if self is FeedFormat.RSS else "Atom Feed"

    @property
    def count_label(self) -> str:
        return "Items" if self is FeedFormat.RSS else "Entries"


@dataclass
class FeedResponse:
    """Successful proxy result: the upstream body, relayed untouched."""

    body: bytes
    content_type: str = "application/xml"


@dataclass
class FeedEntry:
    """Plain-text fields extracted from one item or entry."""

    title: str
    link: str
    published: Optional[str] = None
    summary: Optional[str] = None


@dataclass
class ParsedFeed:
    """Feed-level fields plus its entries in document order."""

    format: FeedFormat
    title: str
    subtitle: Optional[str] = None
    entries: List[FeedEntry] = field(default_factory=list)

    @property
    def count_label(self) -> str:
        return self.format.count_label


@dataclass
class RenderedEntry:
    """Escaped, display-ready entry."""

    title: Markup
    link: Markup
    date: Optional[Markup] = None
    body: Optional[Markup] = None


@dataclass
class RenderedView:
    """Escaped, display-ready feed."""

    title: Markup
    count: int
    count_label: str
    subtitle: Optional[Markup] = None
    entries: List[RenderedEntry] = field(default_factory=list)
