"""Viewer-side state: saved feeds, theme preference and display visibility."""

from __future__ import annotations

import contextlib
import json
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional
from urllib.parse import urlsplit

from .errors import StorageError
from .models import RenderedView
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

SAVED_FEEDS_KEY = "savedRssFeeds"
DARK_MODE_KEY = "darkMode"


def is_valid_feed_url(url: str) -> bool:
    """Return True for absolute http(s) URLs."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(hostname)


class SavedFeedStore:
    """Ordered, duplicate-free list of saved feed URLs, newest first.

    Storage failures never propagate: reads fall back to an empty list and
    failed writes leave the previously persisted list in place.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    def list(self) -> List[str]:
        try:
            raw = self._storage.get(SAVED_FEEDS_KEY)
        except StorageError as exc:
            logger.warning("Could not read saved feeds: %s", exc)
            return []
        if not raw:
            return []

        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("Saved feeds are not valid JSON; ignoring them")
            return []
        if not isinstance(parsed, list):
            return []
        return [url for url in parsed if isinstance(url, str) and url.strip()]

    def contains(self, url: str) -> bool:
        return url.strip() in self.list()

    def add(self, url: str) -> bool:
        """Prepend ``url``; invalid or already-saved URLs are a no-op."""
        url = (url or "").strip()
        if not url or not is_valid_feed_url(url):
            logger.debug("Not saving invalid feed URL %r", url)
            return False

        feeds = self.list()
        if url in feeds:
            logger.debug("Feed already saved: %s", url)
            return False

        self._write([url, *feeds])
        return True

    def remove(self, url: str) -> None:
        self._write([saved for saved in self.list() if saved != url])

    def _write(self, feeds: List[str]) -> None:
        try:
            self._storage.set(SAVED_FEEDS_KEY, json.dumps(feeds))
        except StorageError as exc:
            logger.warning("Could not persist saved feeds: %s", exc)


class ThemeStore:
    """Persisted dark-mode flag."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    def get(self) -> bool:
        try:
            return self._storage.get(DARK_MODE_KEY) == "true"
        except StorageError as exc:
            logger.warning("Could not read theme preference: %s", exc)
            return False

    def set(self, dark: bool) -> None:
        try:
            self._storage.set(DARK_MODE_KEY, "true" if dark else "false")
        except StorageError as exc:
            logger.warning("Could not persist theme preference: %s", exc)

    def toggle(self) -> bool:
        dark = not self.get()
        self.set(dark)
        return dark


@dataclass
class ViewState:
    """What the display surface currently shows."""

    is_loading: bool = False
    error: Optional[str] = None
    view: Optional[RenderedView] = None
    results_visible: bool = False

    @property
    def error_visible(self) -> bool:
        return self.error is not None

    def show_error(self, message: str) -> None:
        self.error = message

    def hide_error(self) -> None:
        self.error = None

    def show_results(self, view: RenderedView) -> None:
        self.view = view
        self.results_visible = True

    def hide_results(self) -> None:
        self.results_visible = False

    @contextlib.contextmanager
    def loading(self) -> Iterator["ViewState"]:
        """Show the loading indicator for the duration of the block."""
        self.is_loading = True
        try:
            yield self
        finally:
            self.is_loading = False
