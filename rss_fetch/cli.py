"""Command-line interface for the rss_fetch application."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
import sys
from pathlib import Path
from typing import List, Optional

from .app import create_app
from .config import AppConfig, apply_environment, parse_app_config
from .errors import StorageError
from .state import SavedFeedStore, ThemeStore
from .storage import KeyValueStorage, MemoryStorage, SqlStorage
from .viewer import FeedViewer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Proxy RSS/Atom feeds over HTTP and view them."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to an optional configuration XML file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the feed proxy server.")
    serve.add_argument("--host", default=None, help="Interface to bind.")
    serve.add_argument("--port", type=int, default=None, help="Port to listen on.")
    serve.add_argument(
        "--static-folder",
        default=None,
        help="Directory of client files to serve alongside the API.",
    )

    view = commands.add_parser("view", help="Fetch a feed through the proxy and show it.")
    view.add_argument("url", help="Feed URL to fetch.")
    view.add_argument("--api-base", default=None, help="Base URL of the proxy server.")
    view.add_argument(
        "--html",
        metavar="PATH",
        help="Write the rendered page to PATH instead of printing text.",
    )

    saved = commands.add_parser("saved", help="Manage the saved feed list.")
    saved_actions = saved.add_subparsers(dest="action", required=True)
    saved_actions.add_parser("list", help="Print saved feeds, newest first.")
    saved_add = saved_actions.add_parser("add", help="Save a feed URL.")
    saved_add.add_argument("url")
    saved_remove = saved_actions.add_parser("remove", help="Forget a feed URL.")
    saved_remove.add_argument("url")

    theme = commands.add_parser("theme", help="Show or change the theme preference.")
    theme.add_argument(
        "mode",
        nargs="?",
        choices=["show", "dark", "light", "toggle"],
        default="show",
    )

    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def open_storage(config: AppConfig) -> KeyValueStorage:
    """Open persistent storage, falling back to memory when it is unavailable."""
    try:
        return SqlStorage.from_url(config.storage_url)
    except StorageError as exc:
        logger.warning("Settings will not persist this session: %s", exc)
        return MemoryStorage()


def _serve(config: AppConfig, args: argparse.Namespace) -> int:
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.static_folder:
        config.static_folder = str(Path(args.static_folder).resolve())

    app = create_app(config)
    logger.info("Server running on http://%s:%d", config.host, config.port)
    logger.info(
        "API endpoint: http://%s:%d/api/rss?url=<RSS_URL>", config.host, config.port
    )
    app.run(host=config.host, port=config.port)
    return 0


def _view(config: AppConfig, args: argparse.Namespace) -> int:
    storage = open_storage(config)
    viewer = FeedViewer(
        api_base=args.api_base or config.resolved_api_base,
        saved=SavedFeedStore(storage),
        theme=ThemeStore(storage),
    )
    view = viewer.fetch(args.url)

    if args.html:
        Path(args.html).write_text(viewer.to_html(), encoding="utf-8")
        logger.info("Wrote rendered page to %s", args.html)
    else:
        print(viewer.to_text())
    return 0 if view is not None else 1


def _saved(config: AppConfig, args: argparse.Namespace) -> int:
    store = SavedFeedStore(open_storage(config))
    if args.action == "add":
        if not store.add(args.url):
            logger.error("Not saved: %s is invalid or already saved", args.url)
            return 1
    elif args.action == "remove":
        store.remove(args.url)
    else:
        for url in store.list():
            print(url)
    return 0


def _theme(config: AppConfig, args: argparse.Namespace) -> int:
    store = ThemeStore(open_storage(config))
    if args.mode == "dark":
        store.set(True)
    elif args.mode == "light":
        store.set(False)
    elif args.mode == "toggle":
        store.toggle()
    print("dark" if store.get() else "light")
    return 0


_COMMANDS = {
    "serve": _serve,
    "view": _view,
    "saved": _saved,
    "theme": _theme,
}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_environment(parse_app_config(args.config))

        # CLI overrides config
        log_level = args.log_level or config.logging.level
        log_file = args.log_file or config.logging.file
        configure_logging(log_level, log_file)

        logger.debug("Active Configuration:\n%s", pprint.pformat(dataclasses.asdict(config)))

        return _COMMANDS[args.command](config, args)
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
