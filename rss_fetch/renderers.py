"""Rendering helpers for viewer output."""

from __future__ import annotations

from typing import Sequence

from .state import ViewState
from .templating import get_environment


def build_page_html(
    state: ViewState, saved_feeds: Sequence[str] = (), dark: bool = False
) -> str:
    """Render the full viewer page for the current display state."""
    env = get_environment()
    template = env.get_template("feed.html.j2")
    return template.render(state=state, saved_feeds=list(saved_feeds), dark=dark)


def build_view_text(state: ViewState) -> str:
    """Render the current display state as plain text for terminals."""
    env = get_environment()
    template = env.get_template("feed.txt.j2")
    return template.render(state=state)
