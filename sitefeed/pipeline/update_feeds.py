"""Batch updater: regenerate the feed of every enabled configured source.

Sources are processed one after another and failures are isolated per
source, so one broken site never prevents the others from updating. The
run only fails as a whole when no source produced a feed.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import requests

from ..errors import ConfigError, SitefeedError, UpdateFailedError
from ..models import FeedResult, Source
from ..orchestrator import extract_feed
from ..output.github_publisher import GitHubPagesPublisher, build_feed_path
from ..output.update_report import FailedSource, UpdateReport
from ..utils.extraction_config import DEFAULT_CONFIG, ExtractionConfig
from ..utils.logging import get_logger

logger = get_logger("sitefeed.pipeline.update_feeds")

META_FILENAME = "managed-feeds.json"

Extractor = Callable[..., FeedResult]


def prepare_output_directory(output_root: Path) -> None:
    if output_root.exists():
        shutil.rmtree(output_root)
    output_root.mkdir(parents=True, exist_ok=True)


def run_update_feeds(
    sources: Iterable[Source],
    output_root: Path | str,
    *,
    config: ExtractionConfig = DEFAULT_CONFIG,
    extractor: Extractor = extract_feed,
    publisher: Optional[GitHubPagesPublisher] = None,
) -> UpdateReport:
    """Extract every enabled source into ``output_root`` and write the run summary.

    Raises ``ConfigError`` when there is nothing enabled and
    ``UpdateFailedError`` when every source failed.
    """
    enabled: List[Source] = [s for s in sources if s.enabled]
    if not enabled:
        raise ConfigError("No enabled sources to update; check the sources configuration")

    root = Path(output_root)
    prepare_output_directory(root)
    report = UpdateReport()

    for source in enabled:
        relative_path = build_feed_path(source.url)
        report.desired_paths.append(relative_path)
        logger.info("Extracting %s (%s)", source.name, source.url)

        try:
            result = extractor(source.url, rules=source.rules, config=config)
            if not result.rss_xml or not result.rss_xml.strip():
                raise SitefeedError("Extraction produced an empty RSS document")

            output_path = root.joinpath(*relative_path.split("/"))
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(result.rss_xml, encoding="utf-8")

            if publisher is not None:
                publisher.publish(source_url=source.url, rss_xml=result.rss_xml, feed_title=result.feed_title)
        except (SitefeedError, requests.RequestException, OSError) as exc:
            logger.warning("Failed to update %s: %s", source.name, exc)
            report.failed_sources.append(
                FailedSource(name=source.name, url=source.url, path=relative_path, error=str(exc))
            )
            continue
        except Exception as exc:  # noqa: BLE001 - one broken source must not stop the run
            logger.exception("Unexpected error while updating %s", source.name)
            report.failed_sources.append(
                FailedSource(name=source.name, url=source.url, path=relative_path, error=str(exc))
            )
            continue

        report.successful_paths.append(relative_path)
        logger.info("Updated %s (%d articles) -> %s", source.name, len(result.articles), relative_path)

    report.write(root / META_FILENAME)
    logger.info(
        "Feed update finished: success=%d, failed=%d",
        len(set(report.successful_paths)),
        len(report.failed_sources),
    )

    if not report.successful_paths:
        raise UpdateFailedError("RSS generation failed for every configured source")
    return report
