"""HTTP routes for the feed proxy.

Registered on the application by ``rss_fetch.app.create_app``:

    from rss_fetch.routes import rss_bp
    app.register_blueprint(rss_bp)
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from .errors import ProxyError
from .proxy import fetch_feed

logger = logging.getLogger(__name__)

rss_bp = Blueprint("rss", __name__)


@rss_bp.app_errorhandler(ProxyError)
def handle_proxy_error(exc: ProxyError):
    """Serialize proxy failures as ``{error, message, statusCode?}`` JSON."""
    return jsonify(exc.to_dict()), exc.status_code


@rss_bp.route("/api/rss", methods=["GET"])
def rss_feed():
    """Fetch the feed named by ``?url=`` and relay its raw XML."""
    settings = current_app.config
    feed = fetch_feed(
        request.args.get("url"),
        user_agent=settings["FEED_USER_AGENT"],
        timeout=settings["FEED_TIMEOUT"],
        max_redirects=settings["FEED_MAX_REDIRECTS"],
    )
    return Response(feed.body, status=200, mimetype=feed.content_type)
