from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

# Stored configuration uses camelCase keys; Python callers may use snake_case.
_RULE_KEYS = {
    "title_includes": "titleIncludes",
    "title_excludes": "titleExcludes",
    "url_includes": "urlIncludes",
    "url_excludes": "urlExcludes",
    "description_required": "descriptionRequired",
    "published_at_required": "publishedAtRequired",
    "skip_top_count": "skipTopCount",
}


def _normalize_terms(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    seen: Dict[str, None] = {}
    for item in value:
        term = item.strip() if isinstance(item, str) else ""
        if term:
            seen.setdefault(term, None)
    return list(seen)


def _normalize_flag(value: Any) -> bool:
    return value is True


def _normalize_skip_top(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value):
        return 0
    rounded = math.floor(value)
    return rounded if rounded > 0 else 0


@dataclass(slots=True)
class SourceRules:
    """User-authored inclusion/exclusion filters for one source."""

    title_includes: List[str] = field(default_factory=list)
    title_excludes: List[str] = field(default_factory=list)
    url_includes: List[str] = field(default_factory=list)
    url_excludes: List[str] = field(default_factory=list)
    description_required: bool = False
    published_at_required: bool = False
    skip_top_count: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SourceRules":
        """Build a normalized rule set from a stored or user-supplied mapping.

        Absent or malformed values fall back to their defaults, term lists are
        stripped and deduplicated, and ``skip_top_count`` is floored to a
        non-negative integer.
        """
        data = data or {}

        def pick(name: str) -> Any:
            if name in data:
                return data[name]
            return data.get(_RULE_KEYS[name])

        return cls(
            title_includes=_normalize_terms(pick("title_includes")),
            title_excludes=_normalize_terms(pick("title_excludes")),
            url_includes=_normalize_terms(pick("url_includes")),
            url_excludes=_normalize_terms(pick("url_excludes")),
            description_required=_normalize_flag(pick("description_required")),
            published_at_required=_normalize_flag(pick("published_at_required")),
            skip_top_count=_normalize_skip_top(pick("skip_top_count")),
        )

    def normalized(self) -> "SourceRules":
        return SourceRules.from_dict(
            {
                "title_includes": self.title_includes,
                "title_excludes": self.title_excludes,
                "url_includes": self.url_includes,
                "url_excludes": self.url_excludes,
                "description_required": self.description_required,
                "published_at_required": self.published_at_required,
                "skip_top_count": self.skip_top_count,
            }
        )

    def has_active_rules(self) -> bool:
        return bool(
            self.title_includes
            or self.title_excludes
            or self.url_includes
            or self.url_excludes
            or self.description_required
            or self.published_at_required
            or self.skip_top_count > 0
        )

    def to_compact_dict(self) -> Optional[Dict[str, Any]]:
        """Return only the non-default fields (camelCase), or ``None`` if none are set."""
        compact: Dict[str, Any] = {}
        for name, key in _RULE_KEYS.items():
            value = getattr(self, name)
            if name == "skip_top_count":
                if value > 0:
                    compact[key] = value
            elif value:
                compact[key] = list(value) if isinstance(value, list) else True
        return compact or None


@dataclass(slots=True)
class Source:
    """A configured site to extract a feed from."""

    name: str
    url: str
    enabled: bool = True
    rules: Optional[SourceRules] = None

