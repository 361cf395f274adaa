"""Command-line entrypoint for sitefeed.

Subcommands:
1) ``extract``: build an RSS feed for one URL
2) ``update``: regenerate (and optionally publish) every configured source
3) ``rules``: show or edit the stored filter rules of a source
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .errors import SitefeedError
from .models import SourceRules
from .orchestrator import extract_feed
from .output.github_publisher import GitHubPagesPublisher
from .pipeline.update_feeds import run_update_feeds
from .utils.config_loader import DEFAULT_CONFIG_PATH, load_sources_config
from .utils.extraction_config import ExtractionConfig
from .utils.logging import configure_logging, get_logger
from .utils.source_store import SourceRulesStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitefeed",
        description="Generate RSS feeds for websites that do not publish one",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (defaults to LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to the sources configuration file (YAML)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Extract a feed from a single URL")
    extract.add_argument("url", help="http(s) URL of the page to extract")
    extract.add_argument("--output", "-o", default=None, help="Write the RSS document to this file instead of stdout")
    extract.add_argument("--json", action="store_true", help="Print the full extraction result as JSON")
    extract.add_argument(
        "--no-stored-rules",
        action="store_true",
        help="Ignore rules stored for this URL in the sources configuration",
    )

    update = sub.add_parser("update", help="Regenerate feeds for all enabled sources")
    update.add_argument("--output-dir", default=".generated-feeds", help="Directory to write feeds into")
    update.add_argument("--publish", action="store_true", help="Commit each feed to the gh-pages branch")
    update.add_argument("--repo", default=None, help="Target repository (owner/repo) for --publish")
    update.add_argument(
        "--dry-run",
        action="store_true",
        help="With --publish, log the commits that would be made without contacting GitHub",
    )

    rules = sub.add_parser("rules", help="Show or edit stored rules for a source")
    rules_sub = rules.add_subparsers(dest="rules_command", required=True)
    show = rules_sub.add_parser("show", help="Print the rules stored for a URL")
    show.add_argument("url")
    set_ = rules_sub.add_parser("set", help="Replace the rules stored for a URL")
    set_.add_argument("url")
    set_.add_argument("--title-include", action="append", default=[], metavar="TERM")
    set_.add_argument("--title-exclude", action="append", default=[], metavar="TERM")
    set_.add_argument("--url-include", action="append", default=[], metavar="TERM")
    set_.add_argument("--url-exclude", action="append", default=[], metavar="TERM")
    set_.add_argument("--require-description", action="store_true")
    set_.add_argument("--require-published-at", action="store_true")
    set_.add_argument("--skip-top", type=int, default=0, metavar="N", help="Always drop the first N articles")
    set_.add_argument("--clear", action="store_true", help="Remove all rules for the URL")
    return parser


def _cmd_extract(args: argparse.Namespace, config: ExtractionConfig) -> int:
    logger = get_logger("sitefeed.cli")
    store = None if args.no_stored_rules else SourceRulesStore(args.config)
    result = extract_feed(args.url, rules_store=store, config=config)
    if not result.articles:
        logger.warning("All %d extracted article(s) were filtered out by rules", result.original_article_count)

    if args.json:
        sys.stdout.write(json.dumps(result.to_dict(), ensure_ascii=False, indent=2) + "\n")
    elif args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(result.rss_xml, encoding="utf-8")
        logger.info("Wrote %d article(s) to %s", len(result.articles), out_path)
    else:
        sys.stdout.write(result.rss_xml)
    return 0


def _cmd_update(args: argparse.Namespace, config: ExtractionConfig) -> int:
    logger = get_logger("sitefeed.cli")
    sources = load_sources_config(args.config)
    logger.info("Loaded %d source(s) from %s", len(sources), args.config)
    publisher = GitHubPagesPublisher(repo=args.repo, dry_run=args.dry_run) if args.publish else None
    report = run_update_feeds(sources, Path(args.output_dir), config=config, publisher=publisher)
    sys.stdout.write(report.to_markdown())
    return 0


def _cmd_rules(args: argparse.Namespace) -> int:
    store = SourceRulesStore(args.config)
    if args.rules_command == "show":
        rules = store.get_rules(args.url)
        payload = rules.to_compact_dict() if rules else None
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
        return 0

    rules = None
    if not args.clear:
        rules = SourceRules.from_dict(
            {
                "title_includes": args.title_include,
                "title_excludes": args.title_exclude,
                "url_includes": args.url_include,
                "url_excludes": args.url_exclude,
                "description_required": args.require_description,
                "published_at_required": args.require_published_at,
                "skip_top_count": args.skip_top,
            }
        )
    stored = store.save_rules(args.url, rules)
    payload = stored.to_compact_dict() if stored else None
    sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(override=False)
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level)
    logger = get_logger("sitefeed.cli")
    try:
        config = ExtractionConfig.from_env()
        if args.command == "extract":
            return _cmd_extract(args, config)
        if args.command == "update":
            return _cmd_update(args, config)
        return _cmd_rules(args)
    except SitefeedError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
