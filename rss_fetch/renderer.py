"""Turn raw feed XML into an escaped, display-ready view.

Rendering runs in three stages:

* ``parse_document`` builds an ElementTree and rejects malformed XML,
  including documents that carry a ``parsererror`` marker.
* ``detect_format`` looks for an RSS ``channel`` first and an Atom ``feed``
  second, and ``extract_feed`` dispatches to the matching extractor to build
  a format-neutral ``ParsedFeed``.
* ``render_feed`` strips markup from entry bodies, truncates them, formats
  dates and HTML-escapes every string.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, Iterator, Optional, Tuple, Union
from urllib.parse import urlsplit
from xml.etree import ElementTree as ET

from bs4 import BeautifulSoup, UnicodeDammit
from dateutil import parser as date_parser
from markupsafe import Markup, escape

from .errors import ParseError, UnrecognizedFormat
from .models import FeedEntry, FeedFormat, ParsedFeed, RenderedEntry, RenderedView

logger = logging.getLogger(__name__)

SUMMARY_LIMIT = 300
ELLIPSIS = "..."
UNTITLED = "Untitled"
MISSING_LINK = "#"

PARSE_ERROR_MESSAGE = "Failed to parse RSS feed. Invalid XML format."
UNRECOGNIZED_MESSAGE = (
    "Unrecognized feed format. Please ensure the URL is a valid RSS or Atom feed."
)

# Fixed English abbreviations so output does not depend on the process locale.
_MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _local_name(tag: object) -> Optional[str]:
    if not isinstance(tag, str):
        return None
    return tag.rsplit("}", 1)[-1]


def _descendants(node: ET.Element, name: str) -> Iterator[ET.Element]:
    """Yield ``node`` and its descendants named ``name``, in document order."""
    for element in node.iter():
        if _local_name(element.tag) == name:
            yield element


def _child(node: ET.Element, name: str) -> Optional[ET.Element]:
    for element in node:
        if _local_name(element.tag) == name:
            return element
    return None


def _child_text(node: ET.Element, name: str) -> str:
    element = _child(node, name)
    if element is None:
        return ""
    return "".join(element.itertext()).strip()


_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
_LINK_SCHEMES = ("", "http", "https")


def decode_document(xml_text: Union[str, bytes]) -> str:
    """Decode feed bytes to text and drop the XML declaration.

    The declared encoding is honored when Python knows it; otherwise the
    encoding is sniffed. Parsing the decoded text keeps expat away from
    encodings it cannot handle itself, such as Shift_JIS.
    """
    if isinstance(xml_text, bytes):
        dammit = UnicodeDammit(xml_text, is_html=False)
        if dammit.unicode_markup is None:
            raise ParseError(PARSE_ERROR_MESSAGE)
        logger.debug("Decoded feed as %s", dammit.original_encoding)
        xml_text = dammit.unicode_markup
    return _XML_DECLARATION.sub("", xml_text, count=1)


def parse_document(xml_text: Union[str, bytes]) -> ET.Element:
    """Parse feed XML, raising ``ParseError`` when it is not well-formed."""
    text = decode_document(xml_text)
    try:
        root = ET.fromstring(text)
    except (ET.ParseError, ValueError, LookupError) as exc:
        logger.debug("XML parse failed: %s", exc)
        raise ParseError(PARSE_ERROR_MESSAGE) from exc

    if next(_descendants(root, "parsererror"), None) is not None:
        logger.debug("Document carries a parsererror marker")
        raise ParseError(PARSE_ERROR_MESSAGE)
    return root


def detect_format(root: ET.Element) -> Tuple[FeedFormat, ET.Element]:
    """Return the feed format and its container element."""
    for feed_format, container in ((FeedFormat.RSS, "channel"), (FeedFormat.ATOM, "feed")):
        node = next(_descendants(root, container), None)
        if node is not None:
            return feed_format, node
    raise UnrecognizedFormat(UNRECOGNIZED_MESSAGE)


def _extract_rss(channel: ET.Element) -> ParsedFeed:
    entries = [
        FeedEntry(
            title=_child_text(item, "title") or UNTITLED,
            link=_child_text(item, "link") or MISSING_LINK,
            published=_child_text(item, "pubDate") or None,
            summary=_child_text(item, "description") or None,
        )
        for item in _descendants(channel, "item")
    ]
    return ParsedFeed(
        format=FeedFormat.RSS,
        title=_child_text(channel, "title") or FeedFormat.RSS.default_title,
        subtitle=_child_text(channel, "description") or None,
        entries=entries,
    )


def _atom_link(entry: ET.Element) -> str:
    link = _child(entry, "link")
    if link is None:
        return MISSING_LINK
    return (link.get("href") or "").strip() or MISSING_LINK


def _extract_atom(feed: ET.Element) -> ParsedFeed:
    entries = [
        FeedEntry(
            title=_child_text(entry, "title") or UNTITLED,
            link=_atom_link(entry),
            published=_child_text(entry, "updated") or None,
            summary=(_child_text(entry, "summary") or _child_text(entry, "content"))
            or None,
        )
        for entry in _descendants(feed, "entry")
    ]
    return ParsedFeed(
        format=FeedFormat.ATOM,
        title=_child_text(feed, "title") or FeedFormat.ATOM.default_title,
        subtitle=_child_text(feed, "subtitle") or None,
        entries=entries,
    )


_EXTRACTORS: Dict[FeedFormat, Callable[[ET.Element], ParsedFeed]] = {
    FeedFormat.RSS: _extract_rss,
    FeedFormat.ATOM: _extract_atom,
}


def extract_feed(root: ET.Element) -> ParsedFeed:
    feed_format, node = detect_format(root)
    parsed = _EXTRACTORS[feed_format](node)
    logger.debug(
        "Extracted %d %s from %s feed '%s'",
        len(parsed.entries),
        parsed.count_label.lower(),
        feed_format.value,
        parsed.title,
    )
    return parsed


def parse_feed(xml_text: Union[str, bytes]) -> ParsedFeed:
    """Parse XML text into a ``ParsedFeed`` with plain, unescaped fields."""
    return extract_feed(parse_document(xml_text))


def strip_html(raw_value: str, max_length: int = SUMMARY_LIMIT) -> str:
    """Return the plain text of an HTML fragment, truncated to ``max_length``."""
    text = BeautifulSoup(raw_value, "html.parser").get_text()
    if len(text) > max_length:
        text = text[:max_length] + ELLIPSIS
    return text


def escape_html(value: str) -> Markup:
    return escape(value)


def format_date(value: str) -> str:
    """Render a feed date as ``Mon D, YYYY``; unparseable input is returned as-is."""
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return value
    return f"{_MONTH_ABBR[parsed.month - 1]} {parsed.day}, {parsed.year}"


def safe_link(link: str) -> str:
    """Keep http(s) and relative links; anything else becomes ``#``."""
    try:
        scheme = urlsplit(link).scheme.lower()
    except ValueError:
        return MISSING_LINK
    return link if scheme in _LINK_SCHEMES else MISSING_LINK


def render_entry(entry: FeedEntry) -> RenderedEntry:
    return RenderedEntry(
        title=escape_html(entry.title),
        link=escape_html(safe_link(entry.link)),
        date=escape_html(format_date(entry.published)) if entry.published else None,
        body=escape_html(strip_html(entry.summary)) if entry.summary else None,
    )


def render_feed(parsed: ParsedFeed) -> RenderedView:
    return RenderedView(
        title=escape_html(parsed.title),
        count=len(parsed.entries),
        count_label=parsed.count_label,
        subtitle=escape_html(parsed.subtitle) if parsed.subtitle else None,
        entries=[render_entry(entry) for entry in parsed.entries],
    )


def render(xml_text: Union[str, bytes]) -> RenderedView:
    """Parse, detect, extract and sanitize a feed document.

    Raises ``ParseError`` for malformed XML and ``UnrecognizedFormat`` when
    the document is neither RSS nor Atom. Missing optional fields never fail;
    each has a fallback.
    """
    return render_feed(parse_feed(xml_text))
