"""Heuristic article mining for pages without a usable feed.

Two strategies run against the server-delivered markup:

* containers: elements that look like article cards (``<article>``,
  ``.post``, ``.entry``...), each yielding a link, heading and summary;
* links: same-host anchors whose URL looks like an article permalink.

The link strategy only supplements the container strategy when the latter
finds fewer than two articles.
"""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from ..errors import ExtractionError
from ..models import Article, NormalizedFeed
from ..processors.normalize import clean_text, host_name, is_http_url, normalize_date, to_absolute_url, unique_articles
from ..utils.extraction_config import DEFAULT_CONFIG, ExtractionConfig
from ..utils.logging import get_logger
from .page import meta_description, page_title, parse_html, resolve_feed_description, resolve_feed_title, site_name

logger = get_logger("sitefeed.extractors.heuristic")

CONTAINER_SELECTOR = "article, .post, .entry, .news-item, .story, .article, [itemprop='blogPost']"
CONTAINER_LINK_SELECTOR = "h1 a[href], h2 a[href], h3 a[href], a[href]"
HEADING_SELECTOR = "h1, h2, h3, [itemprop='headline'], .title"
SUMMARY_SELECTOR = "p, .summary, .excerpt, [itemprop='description']"
DATE_TEXT_SELECTOR = ".date, .published, [itemprop='datePublished']"
AUTHOR_SELECTOR = ".author, [itemprop='author']"
ANCESTOR_CONTAINERS = ["article", "li", "div", "section"]

MIN_CONTAINER_ARTICLES = 2
MIN_ANCHOR_TITLE_LENGTH = 4

_EXCLUDED_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg|pdf|zip)$", re.IGNORECASE)
_ARTICLE_URL_PATTERNS = (
    re.compile(r"(^|/)(news|article|articles|post|posts|entry|entries|blog|topics)(/|$)", re.IGNORECASE),
    re.compile(r"/20\d{2}/\d{1,2}(/\d{1,2})?/"),
    re.compile(r"/20\d{2}-\d{2}-\d{2}/"),
    re.compile(r"[?&](p|article_id)=\d+", re.IGNORECASE),
)
_SLUG_RE = re.compile(r"[a-z0-9-]{12,}", re.IGNORECASE)


def _text_of(element: Optional[Tag]) -> str:
    return clean_text(element.get_text(" ")) if element is not None else ""


def extract_date(element: Optional[Tag]) -> Optional[str]:
    if element is None:
        return None
    for selector in ("time[datetime]", "[datetime]"):
        found = element.select_one(selector)
        if found is not None and clean_text(found.get("datetime")):
            return normalize_date(found.get("datetime"))
    for selector in ("time", DATE_TEXT_SELECTOR):
        text = _text_of(element.select_one(selector))
        if text:
            return normalize_date(text)
    return None


def extract_author(element: Optional[Tag]) -> Optional[str]:
    if element is None:
        return None
    author = _text_of(element.select_one("[rel='author']")) or _text_of(element.select_one(AUTHOR_SELECTOR))
    return author or None


def extract_summary(element: Optional[Tag]) -> Optional[str]:
    if element is None:
        return None
    return _text_of(element.select_one(SUMMARY_SELECTOR)) or None


def extract_from_containers(soup: BeautifulSoup, source_url: str, limit: int) -> List[Article]:
    candidates: List[Article] = []
    for container in soup.select(CONTAINER_SELECTOR):
        if len(candidates) >= limit:
            break
        link = container.select_one(CONTAINER_LINK_SELECTOR)
        if link is None:
            continue
        article_url = to_absolute_url(source_url, link.get("href"))
        if not article_url or not is_http_url(article_url):
            continue

        title = _text_of(container.select_one(HEADING_SELECTOR)) or _text_of(link)
        if not title:
            continue

        candidates.append(
            Article(
                title=title,
                url=article_url,
                description=extract_summary(container),
                published_at=extract_date(container),
                author=extract_author(container),
            )
        )
    return unique_articles(candidates, limit)


def is_likely_article_url(candidate_url: str, source_url: str) -> bool:
    """Whether a same-host URL looks like an article permalink."""
    try:
        candidate = urlparse(candidate_url)
    except ValueError:
        return False
    if not candidate.hostname or candidate.hostname.lower() != host_name(source_url):
        return False

    path = candidate.path.lower()
    if not path or path == "/" or path.endswith("/tag/"):
        return False
    if _EXCLUDED_EXTENSION_RE.search(path):
        return False

    if any(pattern.search(candidate_url) for pattern in _ARTICLE_URL_PATTERNS):
        return True

    segments = [s for s in path.split("/") if s]
    if len(segments) >= 2:
        return bool(_SLUG_RE.search(segments[-1]))
    return False


def extract_from_links(soup: BeautifulSoup, source_url: str, limit: int) -> List[Article]:
    candidates: List[Article] = []
    for anchor in soup.find_all("a", href=True):
        if len(candidates) >= limit:
            break
        article_url = to_absolute_url(source_url, anchor.get("href"))
        if not article_url or not is_http_url(article_url):
            continue
        if not is_likely_article_url(article_url, source_url):
            continue

        title = _text_of(anchor)
        if len(title) < MIN_ANCHOR_TITLE_LENGTH:
            continue

        container = anchor.find_parent(ANCESTOR_CONTAINERS)
        candidates.append(
            Article(
                title=title,
                url=article_url,
                description=extract_summary(container),
                published_at=extract_date(container),
                author=extract_author(container),
            )
        )
    return unique_articles(candidates, limit)


def extract_heuristically(
    source_url: str,
    html: str,
    *,
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> NormalizedFeed:
    """Mine articles out of ``html``; raises ``ExtractionError`` when none are found."""
    soup = parse_html(html)
    title = resolve_feed_title(source_url, site_name(soup), page_title(soup))
    description = resolve_feed_description(title, meta_description(soup))

    container_articles = extract_from_containers(soup, source_url, config.max_articles)
    if len(container_articles) >= MIN_CONTAINER_ARTICLES:
        articles = container_articles
        logger.debug("Container strategy found %d articles on %s", len(articles), source_url)
    else:
        link_articles = extract_from_links(soup, source_url, config.max_articles)
        articles = unique_articles(container_articles + link_articles, config.max_articles)
        logger.debug(
            "Link strategy supplemented %d container article(s) with %d link(s) on %s",
            len(container_articles),
            len(link_articles),
            source_url,
        )

    if not articles:
        raise ExtractionError(
            f"No articles could be extracted from {source_url}; the site structure may not be supported"
        )
    return NormalizedFeed(title=title, description=description, articles=articles)
