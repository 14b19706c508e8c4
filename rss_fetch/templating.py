"""Jinja2 environment for rss_fetch templates."""

from __future__ import annotations

from importlib import resources

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

_ENV: Environment | None = None


def _count_badge(count: int, label: str) -> Markup:
    """Render a count next to its label, e.g. ``3 Items``."""
    return Markup("<strong>{}</strong> <span>{}</span>").format(count, label)


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        loader = FileSystemLoader(str(template_dir))
        _ENV = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml", "html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _ENV.filters["count_badge"] = _count_badge
    return _ENV
