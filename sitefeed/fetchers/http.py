from __future__ import annotations

import re
from typing import Dict, Optional

import requests

from ..errors import FetchError
from ..utils.extraction_config import DEFAULT_CONFIG, ExtractionConfig
from ..utils.logging import get_logger

logger = get_logger("sitefeed.fetchers.http")

_HTML_CONTENT_TYPE_RE = re.compile(r"text/html|application/xhtml\+xml", re.IGNORECASE)


def default_headers(config: ExtractionConfig) -> Dict[str, str]:
    return {"User-Agent": config.user_agent, "Accept": config.accept_header}


def build_session(config: ExtractionConfig = DEFAULT_CONFIG) -> requests.Session:
    """Create a session with the configured redirect cap and browser-like headers."""
    session = requests.Session()
    session.max_redirects = config.max_redirects
    session.headers.update(default_headers(config))
    return session


def fetch_html(
    url: str,
    *,
    config: ExtractionConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
) -> str:
    """GET ``url`` and return its HTML body.

    Raises ``FetchError`` on network failure, timeout, too many redirects,
    an HTTP status of 400 or above, or a Content-Type that is not HTML.
    """
    own_session = session is None
    http = session or build_session(config)
    logger.debug("Fetching HTML from %s", url)
    try:
        resp = http.get(url, headers=default_headers(config), timeout=config.timeout_seconds)
    except requests.RequestException as exc:
        logger.warning("HTML request error for %s: %s", url, exc)
        raise FetchError(f"Failed to fetch {url}: {exc}") from exc
    finally:
        if own_session:
            http.close()

    if resp.status_code >= 400:
        logger.warning("HTML fetch failed (%s): %s", resp.status_code, url)
        raise FetchError(f"Failed to fetch {url}: HTTP {resp.status_code}")

    content_type = resp.headers.get("Content-Type", "")
    if content_type and not _HTML_CONTENT_TYPE_RE.search(content_type):
        raise FetchError(f"{url} is not an HTML page (Content-Type: {content_type})")

    text = resp.text
    if not isinstance(text, str):
        raise FetchError(f"Failed to read HTML body from {url}")
    logger.debug("Fetched %d characters from %s", len(text), url)
    return text
