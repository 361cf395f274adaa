from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from sitefeed.errors import ConfigError, InvalidUrlError
from sitefeed.models import SourceRules
from sitefeed.utils.config_loader import canonicalize_source_url, load_sources_config, parse_sources_config
from sitefeed.utils.source_store import SourceRulesStore


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("https://Example.COM", "https://example.com/"),
        ("HTTP://example.com:80/news", "http://example.com/news"),
        ("https://example.com:443/a?b=1", "https://example.com/a?b=1"),
        ("https://example.com:8443/", "https://example.com:8443/"),
        ("  https://example.com/Path  ", "https://example.com/Path"),
    ],
)
def test_canonicalize_source_url(raw: str, expected: str) -> None:
    assert canonicalize_source_url(raw) == expected


@pytest.mark.parametrize("raw", ["", "example.com", "mailto:a@example.com", "https://"])
def test_canonicalize_rejects_non_http(raw: str) -> None:
    with pytest.raises(InvalidUrlError):
        canonicalize_source_url(raw)


def test_load_sources_config(tmp_path: Path) -> None:
    path = tmp_path / "sources.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "version": 1,
                "sources": [
                    {"name": " Blog ", "url": "https://Blog.example.com", "rules": {"titleExcludes": [" ad ", "ad"]}},
                    {"name": "Off", "url": "https://off.example.com/", "enabled": False, "rules": {}},
                ],
            }
        ),
        encoding="utf-8",
    )

    blog, off = load_sources_config(path)

    assert blog.name == "Blog"
    assert blog.url == "https://blog.example.com/"
    assert blog.enabled is True
    assert blog.rules == SourceRules(title_excludes=["ad"])
    assert off.enabled is False
    assert off.rules is None


def test_load_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_sources_config(tmp_path / "absent.yaml")


def test_load_invalid_yaml_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("version: 1\nsources: [\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_sources_config(path)


@pytest.mark.parametrize(
    "data",
    [
        None,
        [],
        {"version": 2, "sources": []},
        {"version": 1},
        {"version": 1, "sources": ["https://example.com/"]},
        {"version": 1, "sources": [{"name": "", "url": "https://example.com/"}]},
        {"version": 1, "sources": [{"name": "x", "url": "ftp://example.com/"}]},
        {"version": 1, "sources": [{"name": "x", "url": "https://example.com/", "enabled": "yes"}]},
        {"version": 1, "sources": [{"name": "x", "url": "https://example.com/", "rules": ["a"]}]},
    ],
)
def test_parse_sources_config_rejects_invalid(data) -> None:
    with pytest.raises(ConfigError):
        parse_sources_config(data)


def test_store_creates_file_on_first_use(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "sources.yaml"
    store = SourceRulesStore(path)

    assert store.get_rules("https://example.com/") is None
    assert path.exists()
    assert yaml.safe_load(path.read_text(encoding="utf-8")) == {"version": 1, "sources": []}


def test_store_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "sources.yaml"
    store = SourceRulesStore(path)

    stored = store.save_rules(
        "https://Example.com",
        {"titleExcludes": ["sponsored", " sponsored "], "skipTopCount": 2.7, "descriptionRequired": "yes"},
    )

    assert stored == SourceRules(title_excludes=["sponsored"], skip_top_count=2)
    assert SourceRulesStore(path).get_rules("https://example.com/") == stored
    (source,) = store.sources()
    assert source.name == "example.com"
    assert source.url == "https://example.com/"
    assert source.enabled is True
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert raw["sources"][0]["rules"] == {"titleExcludes": ["sponsored"], "skipTopCount": 2}


def test_store_updates_existing_source_in_place(tmp_path: Path) -> None:
    path = tmp_path / "sources.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "version": 1,
                "sources": [
                    {"name": "First", "url": "https://one.example.com/"},
                    {"name": "Second", "url": "https://two.example.com/", "enabled": False},
                ],
            }
        ),
        encoding="utf-8",
    )
    store = SourceRulesStore(path)

    store.save_rules("https://two.example.com", SourceRules(url_includes=["/news/"]))

    first, second = store.sources()
    assert first.rules is None
    assert second.name == "Second"
    assert second.enabled is False
    assert second.rules == SourceRules(url_includes=["/news/"])


def test_default_rules_clear_the_stored_set(tmp_path: Path) -> None:
    store = SourceRulesStore(tmp_path / "sources.yaml")
    store.save_rules("https://example.com/", {"urlExcludes": ["/tag/"]})

    assert store.save_rules("https://example.com/", {"skipTopCount": 0}) is None
    assert store.get_rules("https://example.com/") is None
    (source,) = store.sources()
    assert source.rules is None


def test_store_rejects_invalid_url(tmp_path: Path) -> None:
    store = SourceRulesStore(tmp_path / "sources.yaml")

    with pytest.raises(InvalidUrlError):
        store.save_rules("not a url", {"skipTopCount": 1})
