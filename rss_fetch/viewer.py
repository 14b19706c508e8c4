"""Client flow: ask the proxy for a feed, render it and track display state."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from .errors import RenderError, ViewerError
from .models import RenderedView
from .renderer import render
from .renderers import build_page_html, build_view_text
from .state import SavedFeedStore, ThemeStore, ViewState, is_valid_feed_url

logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "Please enter a valid RSS feed URL"
ALREADY_SAVED_MESSAGE = "This feed is already saved."
VIEWER_TIMEOUT = 15.0


class FeedViewer:
    """Drives one display surface backed by the feed proxy.

    Every fetch clears the previous error and results before showing the
    loading indicator, and the indicator is hidden again however the fetch
    ends. Concurrent fetches are not coordinated; the last one to finish owns
    the view.
    """

    def __init__(
        self,
        api_base: str,
        saved: SavedFeedStore,
        theme: ThemeStore,
        state: Optional[ViewState] = None,
        session: Optional[requests.Session] = None,
        timeout: float = VIEWER_TIMEOUT,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.saved = saved
        self.theme = theme
        self.state = state or ViewState()
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, url: Optional[str]) -> Optional[RenderedView]:
        """Fetch ``url`` through the proxy and display it."""
        url = (url or "").strip()
        if not url:
            self.state.show_error(INVALID_INPUT_MESSAGE)
            return None

        self.state.hide_error()
        self.state.hide_results()

        with self.state.loading():
            try:
                view = render(self._request_feed(url))
            except (ViewerError, RenderError) as exc:
                logger.info("Could not display %s: %s", url, exc.message)
                self.state.show_error(f"Error: {exc.message}")
                return None

        self.state.show_results(view)
        logger.info("Displaying %d %s from %s", view.count, view.count_label.lower(), url)
        return view

    def _request_feed(self, url: str) -> bytes:
        try:
            response = self.session.get(
                f"{self.api_base}/api/rss",
                params={"url": url},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ViewerError(f"Failed to fetch: {exc}") from exc

        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = payload.get("message") if isinstance(payload, dict) else None
            raise ViewerError(message or f"HTTP {response.status_code}")
        return response.content

    def save(self, url: Optional[str]) -> bool:
        """Save ``url`` to the feed list, reporting why it was refused."""
        url = (url or "").strip()
        if not url or not is_valid_feed_url(url):
            self.state.show_error(INVALID_INPUT_MESSAGE)
            return False
        if self.saved.contains(url):
            self.state.show_error(ALREADY_SAVED_MESSAGE)
            return False

        self.saved.add(url)
        self.state.hide_error()
        return True

    def remove(self, url: str) -> None:
        self.saved.remove(url)

    def clear(self) -> None:
        self.state.hide_results()
        self.state.hide_error()

    def toggle_theme(self) -> bool:
        return self.theme.toggle()

    def to_html(self) -> str:
        return build_page_html(
            self.state, saved_feeds=self.saved.list(), dark=self.theme.get()
        )

    def to_text(self) -> str:
        return build_view_text(self.state)
