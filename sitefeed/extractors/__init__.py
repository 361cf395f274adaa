"""Extraction paths: advertised-feed discovery and heuristic page mining."""

from .discovery import discover_feed, first_successful, parse_feed_entry
from .heuristic import extract_heuristically, is_likely_article_url

__all__ = [
    "discover_feed",
    "first_successful",
    "parse_feed_entry",
    "extract_heuristically",
    "is_likely_article_url",
]
