from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from feedgen.feed import FeedGenerator

from ..models import Article
from ..processors.normalize import host_name, parse_datetime, strip_xml_illegal
from ..utils.extraction_config import DEFAULT_CONFIG, ExtractionConfig
from ..utils.logging import get_logger

logger = get_logger("sitefeed.output.synthesizer")


def generate_rss_xml(
    source_url: str,
    title: str,
    description: str,
    articles: Iterable[Article],
    *,
    config: ExtractionConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> str:
    """Serialize ``articles`` as an RSS 2.0 document identified by ``source_url``.

    Items keep the input order. An article without a parsable ``published_at``
    is dated ``now``. An article without a description gets no
    ``<description>`` element, which readers treat the same as an empty one.
    Author names are written as ``dc:creator`` because the RSS ``<author>``
    element requires an e-mail address. Characters XML cannot carry are
    dropped from every text value.
    """
    now = now or datetime.now(timezone.utc)
    source_url = strip_xml_illegal(source_url)
    host = host_name(source_url) or source_url
    title = strip_xml_illegal(title or "").strip() or host

    fg = FeedGenerator()
    fg.load_extension("dc")
    fg.id(source_url)
    fg.title(title)
    fg.link(href=source_url, rel="alternate")
    fg.description(strip_xml_illegal(description or "").strip() or f"{title}'s auto-generated feed")
    fg.language(config.language)
    fg.lastBuildDate(now)
    fg.generator(config.generator)
    fg.copyright(f"{now.year} {host}")

    count = 0
    for article in articles:
        url = strip_xml_illegal(article.url)
        entry = fg.add_entry(order="append")
        entry.id(url)
        entry.guid(url, permalink=True)
        entry.title(strip_xml_illegal(article.title))
        entry.link(href=url)
        entry.description(strip_xml_illegal(article.description or ""))
        entry.pubDate(parse_datetime(article.published_at) or now)
        if article.author:
            entry.dc.dc_creator(strip_xml_illegal(article.author))
        count += 1

    logger.debug("Synthesized RSS for %s with %d item(s)", source_url, count)
    return fg.rss_str(pretty=True).decode("utf-8")
