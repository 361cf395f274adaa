from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..models import Article, SourceRules

RulesInput = Union[SourceRules, Mapping[str, Any], None]


@dataclass(slots=True)
class RuleResult:
    articles: List[Article]
    skipped_top_count: int = 0
    rule_filtered_count: int = 0
    filtered_out_count: int = 0
    applied_rules: Optional[Dict[str, Any]] = None


def normalize_source_rules(rules: RulesInput) -> SourceRules:
    if rules is None:
        return SourceRules()
    if isinstance(rules, SourceRules):
        return rules.normalized()
    return SourceRules.from_dict(rules)


def _includes_all(text: str, terms: Sequence[str]) -> bool:
    lowered = text.lower()
    return all(term.lower() in lowered for term in terms)


def _includes_any(text: str, terms: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(term.lower() in lowered for term in terms)


def _is_present(value: Optional[str]) -> bool:
    return bool((value or "").strip())


def matches_rules(article: Article, rules: SourceRules) -> bool:
    title = (article.title or "").strip()
    url = (article.url or "").strip()

    if not _includes_all(title, rules.title_includes):
        return False
    if _includes_any(title, rules.title_excludes):
        return False
    if not _includes_all(url, rules.url_includes):
        return False
    if _includes_any(url, rules.url_excludes):
        return False
    if rules.description_required and not _is_present(article.description):
        return False
    if rules.published_at_required and not _is_present(article.published_at):
        return False
    return True


def apply_source_rules(articles: List[Article], rules: RulesInput = None) -> RuleResult:
    """Filter ``articles`` with a source's inclusion/exclusion rules.

    The leading ``skip_top_count`` articles are dropped first (pinned or
    promotional slots), then the remainder is matched against the term and
    presence filters. With no active rule the input list is returned as is.
    """
    normalized = normalize_source_rules(rules)
    if not normalized.has_active_rules():
        return RuleResult(articles=articles)

    skipped_top_count = min(normalized.skip_top_count, len(articles))
    remainder = articles[skipped_top_count:]
    kept = [a for a in remainder if matches_rules(a, normalized)]
    rule_filtered_count = len(remainder) - len(kept)

    return RuleResult(
        articles=kept,
        skipped_top_count=skipped_top_count,
        rule_filtered_count=rule_filtered_count,
        filtered_out_count=skipped_top_count + rule_filtered_count,
        applied_rules=normalized.to_compact_dict(),
    )
