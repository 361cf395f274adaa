"""Typed models used across the application."""

from .article import Article, ExtractionMethod, FeedResult, NormalizedFeed
from .source import Source, SourceRules

__all__ = ["Article", "ExtractionMethod", "FeedResult", "NormalizedFeed", "Source", "SourceRules"]
