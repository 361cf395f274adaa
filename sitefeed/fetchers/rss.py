from __future__ import annotations

from typing import Any, Dict, Optional

import feedparser
import requests

from ..errors import FeedCandidateError
from ..utils.extraction_config import DEFAULT_CONFIG, ExtractionConfig
from ..utils.logging import get_logger
from .http import build_session

logger = get_logger("sitefeed.fetchers.rss")

_FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.8, */*;q=0.5"


def fetch_feed(
    feed_url: str,
    *,
    config: ExtractionConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
) -> Dict[str, Any]:
    """Fetch and parse one RSS/Atom document.

    The network request goes through ``requests`` for consistent timeouts,
    headers and redirect limits; the body is parsed by ``feedparser``.
    Returns a mapping with ``title``, ``description`` and ``entries``.
    Raises ``FeedCandidateError`` when the document cannot be used.
    """
    own_session = session is None
    http = session or build_session(config)
    logger.debug("Fetching feed candidate %s", feed_url)
    try:
        resp = http.get(
            feed_url,
            headers={"User-Agent": config.user_agent, "Accept": _FEED_ACCEPT},
            timeout=config.timeout_seconds,
        )
    except requests.RequestException as exc:
        raise FeedCandidateError(f"Feed request failed for {feed_url}: {exc}") from exc
    finally:
        if own_session:
            http.close()

    if resp.status_code >= 400:
        raise FeedCandidateError(f"Feed fetch failed for {feed_url}: HTTP {resp.status_code}")

    parsed = feedparser.parse(resp.content)
    entries = list(getattr(parsed, "entries", None) or [])
    if not entries and (getattr(parsed, "bozo", False) or not getattr(parsed, "version", "")):
        raise FeedCandidateError(
            f"Not a usable feed at {feed_url}: {getattr(parsed, 'bozo_exception', None) or 'unrecognized format'}"
        )
    if getattr(parsed, "bozo", False):
        # feedparser sets bozo on malformed documents but may still recover entries
        logger.debug("Feed 'bozo' flagged for %s: %s", feed_url, getattr(parsed, "bozo_exception", None))

    feed_meta = getattr(parsed, "feed", None) or {}
    return {
        "title": feed_meta.get("title"),
        "description": feed_meta.get("description") or feed_meta.get("subtitle"),
        "entries": entries,
    }
