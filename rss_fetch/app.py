"""Flask application factory for the feed proxy."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from .config import AppConfig
from .routes import rss_bp

logger = logging.getLogger(__name__)

SERVICE_BANNER = "RSS Fetch API is running"


def create_app(config: Optional[AppConfig] = None) -> Flask:
    """Build the proxy app: CORS, the feed blueprint and a health check."""
    config = config or AppConfig()

    app = Flask(
        __name__,
        static_folder=config.static_folder,
        static_url_path="" if config.static_folder else None,
    )
    app.config.update(
        FEED_USER_AGENT=config.proxy.user_agent,
        FEED_TIMEOUT=config.proxy.timeout,
        FEED_MAX_REDIRECTS=config.proxy.max_redirects,
    )

    CORS(app)
    app.register_blueprint(rss_bp)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "message": SERVICE_BANNER})

    logger.debug(
        "Application created (static folder: %s)", config.static_folder or "none"
    )
    return app
