"""Feed discovery: use a feed the site already advertises.

Pages announce feeds with ``<link rel="alternate" type="application/rss+xml">``.
Each advertised URL is tried in order; the first one that parses into at
least one usable entry wins. Broken candidates are common (expired or
mis-served endpoints) and are skipped with a warning.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, TypeVar

from bs4 import BeautifulSoup

from ..errors import FeedCandidateError
from ..models import Article, NormalizedFeed
from ..processors.normalize import (
    clean_html_to_text,
    clean_text,
    is_http_url,
    normalize_date,
    to_absolute_url,
    unique_articles,
)
from ..utils.extraction_config import DEFAULT_CONFIG, ExtractionConfig
from ..utils.logging import get_logger
from .page import meta_description, parse_html, resolve_feed_description, resolve_feed_title, site_name

logger = get_logger("sitefeed.extractors.discovery")

FeedParser = Callable[[str], Mapping[str, Any]]

T = TypeVar("T")
R = TypeVar("R")

_FEED_TYPE_RE = re.compile(r"rss|atom|xml", re.IGNORECASE)

# Field names tried in order for each logical article field. Parsers disagree
# on naming (feedparser, rss-parser style ``contentSnippet``/``isoDate``, JSON
# feeds), so every field has an explicit priority list.
TITLE_FIELDS = ("title", "summary", "contentSnippet")
URL_FIELDS = ("link", "url", "id")
DESCRIPTION_FIELDS = ("description", "summary", "content", "contentSnippet")
PUBLISHED_FIELDS = ("published", "pubDate", "isoDate", "publishedAt", "updated")
AUTHOR_FIELDS = ("author", "author_detail")


def first_successful(
    candidates: Iterable[T],
    attempt: Callable[[T], Optional[R]],
) -> Optional[R]:
    """Return the first truthy ``attempt(candidate)``; ``FeedCandidateError`` moves on."""
    for candidate in candidates:
        try:
            result = attempt(candidate)
        except FeedCandidateError as exc:
            logger.warning("Skipping feed candidate %s: %s", candidate, exc)
            continue
        if result:
            return result
        logger.debug("Feed candidate %s produced no usable entries", candidate)
    return None


def detect_feed_links(soup: BeautifulSoup, source_url: str, limit: int) -> List[str]:
    links: List[str] = []
    for element in soup.find_all("link", href=True):
        rel = element.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "alternate" not in " ".join(rel).lower():
            continue
        if not _FEED_TYPE_RE.search(element.get("type") or ""):
            continue
        absolute = to_absolute_url(source_url, element.get("href"))
        if absolute and is_http_url(absolute) and absolute not in links:
            links.append(absolute)
    return links[:limit]


def _as_text(value: Any) -> str:
    """Flatten the shapes a feed field can take into a single string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return _as_text(value.get("value") or value.get("name"))
    if isinstance(value, (list, tuple)):
        return _as_text(value[0]) if value else ""
    return ""


def _first_field(entry: Mapping[str, Any], fields: Sequence[str]) -> tuple[str, str]:
    for name in fields:
        text = _as_text(entry.get(name))
        if text.strip():
            return name, text
    return "", ""


def _parse_author(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return clean_text(value) or None
    if isinstance(value, Mapping) and isinstance(value.get("name"), str):
        return clean_text(value["name"]) or None
    return None


def parse_feed_entry(entry: Any) -> Optional[Article]:
    """Map one parsed feed entry onto an ``Article``; ``None`` if unusable."""
    if not isinstance(entry, Mapping):
        return None

    field, raw_title = _first_field(entry, TITLE_FIELDS)
    title = clean_text(raw_title) if field == "title" else clean_html_to_text(raw_title)
    _, url = _first_field(entry, URL_FIELDS)
    url = url.strip()
    if not title or not is_http_url(url):
        return None

    _, raw_description = _first_field(entry, DESCRIPTION_FIELDS)
    description = clean_html_to_text(raw_description)

    _, raw_published = _first_field(entry, PUBLISHED_FIELDS)
    published_at = normalize_date(raw_published)

    author = None
    for name in AUTHOR_FIELDS:
        author = _parse_author(entry.get(name))
        if author:
            break
    if not author:
        authors = entry.get("authors")
        if isinstance(authors, (list, tuple)) and authors:
            author = _parse_author(authors[0])

    return Article(
        title=title,
        url=url,
        description=description or None,
        published_at=published_at,
        author=author,
    )


def normalize_feed_entries(parsed: Mapping[str, Any], limit: int) -> List[Article]:
    raw_entries = parsed.get("entries")
    if not isinstance(raw_entries, (list, tuple)):
        raw_entries = parsed.get("items")
    if not isinstance(raw_entries, (list, tuple)):
        return []
    articles = (parse_feed_entry(entry) for entry in raw_entries)
    return unique_articles((a for a in articles if a is not None), limit)


def discover_feed(
    source_url: str,
    html: str,
    *,
    parse_feed: Optional[FeedParser],
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> Optional[NormalizedFeed]:
    """Normalize the first advertised feed with entries, or return ``None``.

    ``None`` means "fall back to the heuristic": no advertised feed, no
    parser available, or every candidate failed or was empty.
    """
    soup = parse_html(html)
    feed_links = detect_feed_links(soup, source_url, config.max_feed_candidates)
    if not feed_links or parse_feed is None:
        logger.debug("No usable feed links advertised on %s", source_url)
        return None
    logger.info("Found %d feed candidate(s) on %s", len(feed_links), source_url)

    def attempt(feed_url: str) -> Optional[NormalizedFeed]:
        parsed = parse_feed(feed_url)
        if not isinstance(parsed, Mapping):
            return None
        articles = normalize_feed_entries(parsed, config.max_articles)
        if not articles:
            return None
        title = resolve_feed_title(source_url, _as_text(parsed.get("title")), site_name(soup))
        description = resolve_feed_description(
            title, clean_html_to_text(_as_text(parsed.get("description"))), meta_description(soup)
        )
        logger.info("Using feed %s (%d articles)", feed_url, len(articles))
        return NormalizedFeed(title=title, description=description, articles=articles)

    return first_successful(feed_links, attempt)
