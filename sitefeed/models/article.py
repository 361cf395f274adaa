from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

ExtractionMethod = Literal["feed-discovered", "heuristic"]


@dataclass(slots=True)
class Article:
    title: str
    url: str
    description: Optional[str] = None
    published_at: Optional[str] = None  # ISO-8601 UTC
    author: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"title": self.title, "url": self.url}
        if self.description:
            data["description"] = self.description
        if self.published_at:
            data["publishedAt"] = self.published_at
        if self.author:
            data["author"] = self.author
        return data


@dataclass(slots=True)
class NormalizedFeed:
    """Intermediate result of either extraction path."""

    title: str
    description: str
    articles: List[Article] = field(default_factory=list)


@dataclass(slots=True)
class FeedResult:
    source_url: str
    feed_title: str
    feed_description: str
    articles: List[Article]
    original_article_count: int
    skipped_top_count: int
    rule_filtered_count: int
    filtered_out_count: int
    applied_rules: Optional[Dict[str, Any]]
    rss_xml: str
    method: ExtractionMethod

    def to_dict(self, *, include_xml: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "sourceUrl": self.source_url,
            "feedTitle": self.feed_title,
            "feedDescription": self.feed_description,
            "articles": [a.to_dict() for a in self.articles],
            "originalArticleCount": self.original_article_count,
            "skippedTopCount": self.skipped_top_count,
            "ruleFilteredCount": self.rule_filtered_count,
            "filteredOutCount": self.filtered_out_count,
            "appliedRules": self.applied_rules,
            "method": self.method,
        }
        if include_xml:
            data["rssXml"] = self.rss_xml
        return data
