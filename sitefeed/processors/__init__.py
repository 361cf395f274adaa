"""Processing helpers: text/URL/date normalization and the source rule engine."""

from .normalize import clean_html_to_text, clean_text, normalize_date, unique_articles
from .rules import RuleResult, apply_source_rules, normalize_source_rules

__all__ = [
    "clean_html_to_text",
    "clean_text",
    "normalize_date",
    "unique_articles",
    "RuleResult",
    "apply_source_rules",
    "normalize_source_rules",
]
