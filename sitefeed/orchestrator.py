from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Optional
from urllib.parse import urlparse

import requests

from .errors import InvalidUrlError
from .extractors.discovery import FeedParser, discover_feed
from .extractors.heuristic import extract_heuristically
from .fetchers import build_session, fetch_feed, fetch_html
from .models import ExtractionMethod, FeedResult
from .output.synthesizer import generate_rss_xml
from .processors.rules import RulesInput, apply_source_rules
from .utils.extraction_config import DEFAULT_CONFIG, ExtractionConfig
from .utils.logging import get_logger

if TYPE_CHECKING:
    from .utils.source_store import SourceRulesStore

logger = get_logger("sitefeed.orchestrator")


def validate_source_url(url: str) -> str:
    """Return ``url`` stripped, or raise ``InvalidUrlError`` unless it is absolute http(s)."""
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidUrlError("A URL is required")
    try:
        parsed = urlparse(candidate)
    except ValueError as exc:
        raise InvalidUrlError(f"Malformed URL: {candidate}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidUrlError(f"Only absolute http:// or https:// URLs are supported: {candidate}")
    return candidate


def extract_feed(
    url: str,
    *,
    rules: RulesInput = None,
    rules_store: Optional["SourceRulesStore"] = None,
    config: ExtractionConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
    parse_feed: Optional[FeedParser] = None,
) -> FeedResult:
    """Extract articles from ``url`` and synthesize an RSS document.

    Sequence: validate the URL, fetch the page, try advertised feeds, fall
    back to heuristic mining, apply the source's rules, then synthesize the
    document from the filtered articles.

    Rules passed explicitly take precedence over ``rules_store``.

    Raises ``InvalidUrlError``, ``FetchError`` or ``ExtractionError``.
    """
    source_url = validate_source_url(url)

    own_session = session is None
    http = session or build_session(config)
    try:
        html = fetch_html(source_url, config=config, session=http)
        feed_parser = parse_feed or partial(fetch_feed, config=config, session=http)

        method: ExtractionMethod
        normalized = discover_feed(source_url, html, parse_feed=feed_parser, config=config)
        if normalized is not None:
            method = "feed-discovered"
        else:
            normalized = extract_heuristically(source_url, html, config=config)
            method = "heuristic"
    finally:
        if own_session:
            http.close()

    if rules is None and rules_store is not None:
        rules = rules_store.get_rules(source_url)

    filtered = apply_source_rules(normalized.articles, rules)
    rss_xml = generate_rss_xml(
        source_url,
        normalized.title,
        normalized.description,
        filtered.articles,
        config=config,
    )

    logger.info(
        "Extracted %s via %s: articles=%d, skipped_top=%d, rule_filtered=%d",
        source_url,
        method,
        len(filtered.articles),
        filtered.skipped_top_count,
        filtered.rule_filtered_count,
    )
    return FeedResult(
        source_url=source_url,
        feed_title=normalized.title,
        feed_description=normalized.description,
        articles=filtered.articles,
        original_article_count=len(normalized.articles),
        skipped_top_count=filtered.skipped_top_count,
        rule_filtered_count=filtered.rule_filtered_count,
        filtered_out_count=filtered.filtered_out_count,
        applied_rules=filtered.applied_rules,
        rss_xml=rss_xml,
        method=method,
    )
