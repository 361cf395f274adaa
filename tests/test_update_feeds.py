from __future__ import annotations

import json
from functools import partial
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from sitefeed.errors import ConfigError, ExtractionError, FetchError, UpdateFailedError
from sitefeed.models import FeedResult, Source, SourceRules
from sitefeed.orchestrator import extract_feed
from sitefeed.output.github_publisher import build_feed_path
from sitefeed.pipeline.update_feeds import META_FILENAME, run_update_feeds

from conftest import FakeSession, html_response

GOOD = Source(name="Good", url="https://good.example.com/", rules=SourceRules(skip_top_count=1))
BROKEN = Source(name="Broken", url="https://broken.example.com/")
DISABLED = Source(name="Disabled", url="https://disabled.example.com/", enabled=False)


def _result(url: str, xml: str = "<rss version=\"2.0\"><channel/></rss>") -> FeedResult:
    return FeedResult(
        source_url=url,
        feed_title="Good feed",
        feed_description="desc",
        articles=[],
        original_article_count=0,
        skipped_top_count=0,
        rule_filtered_count=0,
        filtered_out_count=0,
        applied_rules=None,
        rss_xml=xml,
        method="heuristic",
    )


def _extractor(failures):
    calls = []

    def extract(url, *, rules=None, config=None):
        calls.append((url, rules))
        if url in failures:
            raise failures[url]
        return _result(url)

    extract.calls = calls
    return extract


def test_failures_are_isolated_per_source(tmp_path: Path) -> None:
    extractor = _extractor({BROKEN.url: FetchError("HTTP 500")})
    out = tmp_path / "out"

    report = run_update_feeds([GOOD, BROKEN, DISABLED], out, extractor=extractor)

    assert [url for url, _ in extractor.calls] == [GOOD.url, BROKEN.url]
    assert extractor.calls[0][1] == SourceRules(skip_top_count=1)
    good_path = build_feed_path(GOOD.url)
    assert report.successful_paths == [good_path]
    assert (out / good_path).read_text(encoding="utf-8").startswith("<rss")
    assert not (out / build_feed_path(BROKEN.url)).exists()

    meta = json.loads((out / META_FILENAME).read_text(encoding="utf-8"))
    assert meta["desiredPaths"] == sorted([good_path, build_feed_path(BROKEN.url)])
    assert meta["successfulPaths"] == [good_path]
    assert meta["failedSources"] == [
        {"name": "Broken", "url": BROKEN.url, "path": build_feed_path(BROKEN.url), "error": "HTTP 500"}
    ]
    assert meta["generatedAt"].endswith("Z")


def test_output_directory_is_reset(tmp_path: Path) -> None:
    out = tmp_path / "out"
    stale = out / "feeds" / "old" / "stale.xml"
    stale.parent.mkdir(parents=True)
    stale.write_text("old", encoding="utf-8")

    run_update_feeds([GOOD], out, extractor=_extractor({}))

    assert not stale.exists()


def test_all_failures_raise(tmp_path: Path) -> None:
    extractor = _extractor(
        {GOOD.url: ExtractionError("nothing found"), BROKEN.url: requests.ConnectionError("refused")}
    )

    with pytest.raises(UpdateFailedError):
        run_update_feeds([GOOD, BROKEN], tmp_path / "out", extractor=extractor)

    meta = json.loads((tmp_path / "out" / META_FILENAME).read_text(encoding="utf-8"))
    assert meta["successfulPaths"] == []
    assert len(meta["failedSources"]) == 2


def test_empty_document_counts_as_failure(tmp_path: Path) -> None:
    def extractor(url, *, rules=None, config=None):
        return _result(url, xml="   ")

    with pytest.raises(UpdateFailedError):
        run_update_feeds([GOOD], tmp_path / "out", extractor=extractor)


def test_no_enabled_sources_is_a_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        run_update_feeds([DISABLED], tmp_path / "out", extractor=_extractor({}))


def test_successful_feeds_are_published(tmp_path: Path) -> None:
    publisher = Mock()

    extractor = _extractor({BROKEN.url: FetchError("x")})

    run_update_feeds([GOOD, BROKEN], tmp_path / "out", extractor=extractor, publisher=publisher)

    publisher.publish.assert_called_once_with(
        source_url=GOOD.url, rss_xml=_result(GOOD.url).rss_xml, feed_title="Good feed"
    )


def test_markdown_summary_lists_failures(tmp_path: Path) -> None:
    report = run_update_feeds(
        [GOOD, BROKEN], tmp_path / "out", extractor=_extractor({BROKEN.url: FetchError("HTTP 404")})
    )

    summary = report.to_markdown()
    assert "- Feeds written: 1" in summary
    assert "Broken (https://broken.example.com/): HTTP 404" in summary


def test_unexpected_errors_are_isolated_per_source(tmp_path: Path) -> None:
    extractor = _extractor({BROKEN.url: ValueError("lxml refused the document")})
    out = tmp_path / "out"

    report = run_update_feeds([BROKEN, GOOD], out, extractor=extractor)

    assert [url for url, _ in extractor.calls] == [BROKEN.url, GOOD.url]
    assert report.successful_paths == [build_feed_path(GOOD.url)]
    meta = json.loads((out / META_FILENAME).read_text(encoding="utf-8"))
    assert meta["failedSources"] == [
        {
            "name": "Broken",
            "url": BROKEN.url,
            "path": build_feed_path(BROKEN.url),
            "error": "lxml refused the document",
        }
    ]


def test_control_characters_in_scraped_titles_do_not_stop_the_run(tmp_path: Path) -> None:
    noisy = Source(name="Noisy", url="https://noisy.example.com/")
    clean = Source(name="Clean", url="https://clean.example.com/")
    page = (
        "<html><head><title>{title}</title></head><body>"
        '<article><h2><a href="/posts/one">Post{ctrl} one</a></h2><p>First.</p></article>'
        '<article><h2><a href="/posts/two">Post two</a></h2><p>Second.</p></article>'
        "</body></html>"
    )
    session = FakeSession(
        {
            noisy.url: html_response(page.format(title="Noisy", ctrl="\x08")),
            clean.url: html_response(page.format(title="Clean", ctrl="")),
        }
    )
    out = tmp_path / "out"

    report = run_update_feeds([noisy, clean], out, extractor=partial(extract_feed, session=session))

    assert report.failed_sources == []
    assert sorted(report.successful_paths) == sorted([build_feed_path(noisy.url), build_feed_path(clean.url)])
    noisy_xml = (out / build_feed_path(noisy.url)).read_text(encoding="utf-8")
    assert "<title>Post one</title>" in noisy_xml
    assert "\x08" not in noisy_xml
