from __future__ import annotations

import pytest

from sitefeed.models import Article, SourceRules
from sitefeed.processors.rules import apply_source_rules, normalize_source_rules

from conftest import make_articles


def test_default_rules_are_identity(articles_10) -> None:
    result = apply_source_rules(articles_10, SourceRules())

    assert result.articles is articles_10
    assert result.skipped_top_count == 0
    assert result.rule_filtered_count == 0
    assert result.filtered_out_count == 0
    assert result.applied_rules is None


def test_none_and_blank_mapping_are_identity(articles_10) -> None:
    assert apply_source_rules(articles_10, None).articles is articles_10
    blank = {"titleIncludes": ["  ", ""], "skipTopCount": -3, "descriptionRequired": "yes"}
    assert apply_source_rules(articles_10, blank).articles is articles_10


@pytest.mark.parametrize("skip", range(0, 11))
def test_skip_top_count_drops_leading_articles(articles_10, skip: int) -> None:
    result = apply_source_rules(articles_10, {"skipTopCount": skip})

    assert len(result.articles) == 10 - skip
    assert result.skipped_top_count == skip
    assert result.rule_filtered_count == 0
    if skip:
        assert result.articles[0].url == f"https://example.com/posts/{skip + 1}"


def test_skip_top_count_is_clamped_to_list_length(articles_10) -> None:
    result = apply_source_rules(articles_10, {"skipTopCount": 25})

    assert result.articles == []
    assert result.skipped_top_count == 10
    assert result.filtered_out_count == 10


def test_exclude_matching_every_title_empties_list(articles_10) -> None:
    result = apply_source_rules(articles_10, {"titleExcludes": ["ARTICLE"], "skipTopCount": 3})

    assert result.articles == []
    assert result.skipped_top_count == 3
    assert result.rule_filtered_count == 7
    assert result.filtered_out_count == 10


def test_sponsored_title_is_excluded_case_insensitively() -> None:
    articles = make_articles(5)
    articles[2].title = "Sponsored: buy things"

    result = apply_source_rules(articles, {"titleExcludes": ["sponsored"]})

    assert len(result.articles) == 4
    assert result.rule_filtered_count == 1
    assert result.filtered_out_count == 1
    assert result.applied_rules == {"titleExcludes": ["sponsored"]}


def test_includes_require_every_term() -> None:
    articles = [
        Article(title="Python release notes", url="https://example.com/blog/python"),
        Article(title="Python tips", url="https://example.com/news/python"),
        Article(title="Release party", url="https://example.com/blog/party"),
    ]

    result = apply_source_rules(articles, {"title_includes": ["python", "release"]})
    assert [a.title for a in result.articles] == ["Python release notes"]

    by_url = apply_source_rules(articles, {"urlIncludes": ["/blog/"], "urlExcludes": ["PARTY"]})
    assert [a.url for a in by_url.articles] == ["https://example.com/blog/python"]


def test_presence_requirements() -> None:
    articles = [
        Article(title="Full", url="https://example.com/a", description="d", published_at="2024-01-01T00:00:00Z"),
        Article(title="No description", url="https://example.com/b", description="   ", published_at="2024-01-01T00:00:00Z"),
        Article(title="No date", url="https://example.com/c", description="d"),
    ]

    result = apply_source_rules(articles, {"descriptionRequired": True, "publishedAtRequired": True})

    assert [a.title for a in result.articles] == ["Full"]
    assert result.rule_filtered_count == 2
    assert result.applied_rules == {"descriptionRequired": True, "publishedAtRequired": True}


def test_normalization_dedupes_and_floors() -> None:
    rules = normalize_source_rules(
        {"titleIncludes": [" a ", "a", "b", 3], "skipTopCount": 2.9, "publishedAtRequired": 1}
    )

    assert rules.title_includes == ["a", "b"]
    assert rules.skip_top_count == 2
    assert rules.published_at_required is False
    assert rules.to_compact_dict() == {"titleIncludes": ["a", "b"], "skipTopCount": 2}


def test_compact_dict_is_none_for_defaults() -> None:
    assert SourceRules().to_compact_dict() is None
    assert SourceRules.from_dict({"skipTopCount": float("inf")}).skip_top_count == 0
