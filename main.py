"""Thin shim for IDEs and direct execution."""

from rss_fetch.cli import main

if __name__ == "__main__":
    import sys

    # With no arguments, run the proxy server with debug logging.
    if len(sys.argv) == 1:
        sys.argv.extend(["--log-level", "DEBUG", "serve"])

    sys.exit(main())
