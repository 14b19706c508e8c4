"""Feed proxy: validate a feed URL, fetch it once and classify failures."""

from __future__ import annotations

import logging
from time import monotonic
from typing import Callable, Optional
from urllib.parse import urlsplit

import requests
from urllib3.exceptions import LocationParseError
from urllib3.util import parse_url

from .errors import BadRequest, Internal, UpstreamError, Unreachable
from .models import FeedResponse

logger = logging.getLogger(__name__)

USER_AGENT = "RSS-Fetch-API/1.0"
FETCH_TIMEOUT = 10.0
MAX_REDIRECTS = 5
_CHUNK_SIZE = 64 * 1024

MISSING_URL_MESSAGE = "Missing required query parameter: url"
INVALID_URL_MESSAGE = "Invalid URL format"
UPSTREAM_MESSAGE_PREFIX = "Unable to fetch RSS feed: "
UNREACHABLE_MESSAGE = (
    "Unable to reach the RSS feed URL. Please check the URL and try again."
)
INTERNAL_MESSAGE = "An error occurred while processing the request"

# Failures where the request went out but no response came back. An
# unsupported scheme lands here too: validation accepts any scheme, and the
# transport is what finally refuses it.
_NO_RESPONSE_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    requests.exceptions.TooManyRedirects,
    requests.exceptions.InvalidSchema,
)


# Characters requests refuses inside a host name once urllib3 has split it.
_FORBIDDEN_HOST_CHARS = frozenset(' <>^|"{}`\\')


def is_absolute_url(value: str) -> bool:
    """Return True when ``value`` parses with a scheme, a usable host and port."""
    try:
        parts = urlsplit(value)
        hostname = parts.hostname
        parts.port  # ValueError for a non-numeric or out-of-range port
        parse_url(value)
    except (ValueError, LocationParseError):
        return False
    if not parts.scheme or not hostname or hostname.startswith(("*", ".")):
        return False
    return not any(
        char in _FORBIDDEN_HOST_CHARS or char.isspace() for char in hostname
    )


def validate_source_url(source_url: Optional[str]) -> str:
    """Return the trimmed URL or raise ``BadRequest``."""
    url = (source_url or "").strip()
    if not url:
        raise BadRequest(MISSING_URL_MESSAGE)
    if not is_absolute_url(url):
        raise BadRequest(INVALID_URL_MESSAGE)
    return url


def fetch_feed(
    source_url: Optional[str],
    session_factory: Optional[Callable[[], requests.Session]] = None,
    *,
    user_agent: str = USER_AGENT,
    timeout: float = FETCH_TIMEOUT,
    max_redirects: int = MAX_REDIRECTS,
) -> FeedResponse:
    """Fetch ``source_url`` and return its body verbatim.

    Raises ``BadRequest`` for missing or malformed input, ``UpstreamError``
    when the feed server answers with a non-2xx status, ``Unreachable`` when
    no complete response arrives within ``timeout`` seconds and ``Internal``
    for anything else. The body is not checked for well-formed XML.

    ``timeout`` bounds the whole exchange, not just each socket operation:
    a server trickling its body past the deadline is treated as unreachable.
    """
    url = validate_source_url(source_url)

    factory = session_factory or requests.Session
    with factory() as session:
        session.max_redirects = max_redirects
        return _fetch(session, url, user_agent, timeout)


def _fetch(
    session: requests.Session, url: str, user_agent: str, timeout: float
) -> FeedResponse:
    logger.info("Fetching feed %s", url)
    deadline = monotonic() + timeout
    try:
        response = session.get(
            url, headers={"User-Agent": user_agent}, timeout=timeout, stream=True
        )
    except _NO_RESPONSE_ERRORS as exc:
        logger.warning("No response from %s: %s", url, exc)
        raise Unreachable(UNREACHABLE_MESSAGE) from exc
    except Exception as exc:
        logger.exception("Unexpected failure while fetching %s", url)
        raise Internal(INTERNAL_MESSAGE) from exc

    with response:
        _check_deadline(url, deadline, timeout)

        status = response.status_code
        if not 200 <= status < 300:
            reason = response.reason or ""
            logger.warning("Upstream %s answered %d %s", url, status, reason)
            raise UpstreamError(status, UPSTREAM_MESSAGE_PREFIX + reason)

        body = _read_body(response, url, deadline, timeout)

    logger.info("Fetched %d bytes from %s", len(body), url)
    return FeedResponse(body=body)


def _check_deadline(url: str, deadline: float, timeout: float) -> None:
    if monotonic() > deadline:
        logger.warning("Feed %s did not complete within %.1f s", url, timeout)
        raise Unreachable(UNREACHABLE_MESSAGE)


def _read_body(
    response: requests.Response, url: str, deadline: float, timeout: float
) -> bytes:
    chunks = []
    try:
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            _check_deadline(url, deadline, timeout)
            chunks.append(chunk)
    except requests.RequestException as exc:
        logger.warning("Body of %s was cut off: %s", url, exc)
        raise Unreachable(UNREACHABLE_MESSAGE) from exc
    return b"".join(chunks)
