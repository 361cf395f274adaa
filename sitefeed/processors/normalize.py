from __future__ import annotations

import html
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from ..models import Article

_whitespace_re = re.compile(r"\s+")
# Characters XML 1.0 does not allow; lxml refuses to serialize them
_xml_illegal_re = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")

# Common timezone abbreviations seen in RSS pubDate values
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
    "JST": timezone(timedelta(hours=9)),
}


def strip_xml_illegal(value: str) -> str:
    return _xml_illegal_re.sub("", value)


def clean_text(value: str | None) -> str:
    """Drop XML-illegal control characters, collapse runs of whitespace and trim."""
    if not value:
        return ""
    text = strip_xml_illegal(_whitespace_re.sub(" ", value))
    return _whitespace_re.sub(" ", text).strip()


def clean_html_to_text(raw_html: str | None) -> str:
    """Strip tags, unescape entities and collapse whitespace.

    Feed summaries frequently carry markup; plain strings pass through
    unchanged apart from whitespace collapsing.
    """
    if not raw_html:
        return ""
    if "<" not in raw_html and "&" not in raw_html:
        return clean_text(raw_html)

    soup = BeautifulSoup(raw_html, "html.parser")
    text = soup.get_text(" ")
    return clean_text(html.unescape(text))


def is_http_url(value: str | None) -> bool:
    if not value:
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def to_absolute_url(base_url: str, candidate: str | None) -> Optional[str]:
    """Resolve ``candidate`` against ``base_url``; ``None`` when unusable."""
    if not candidate:
        return None
    candidate = candidate.strip()
    if not candidate:
        return None
    try:
        return urljoin(base_url, candidate)
    except ValueError:
        return None


def host_name(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def parse_datetime(value: str | datetime | None) -> Optional[datetime]:
    """Parse a date string into an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = clean_text(value)
        if not text:
            return None
        try:
            parsed = date_parser.parse(text, tzinfos=TZINFOS)
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_date(value: str | datetime | None) -> Optional[str]:
    """Return ``value`` as an ISO-8601 UTC string, or ``None`` if unparsable."""
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return parsed.strftime("%Y-%m-%dT%H:%M:%SZ")


def unique_articles(articles: Iterable[Article], limit: int) -> List[Article]:
    """Deduplicate by URL (first occurrence wins) and cap at ``limit``."""
    seen: set[str] = set()
    unique: List[Article] = []
    for article in articles:
        if article.url in seen:
            continue
        seen.add(article.url)
        unique.append(article)
        if len(unique) >= limit:
            break
    return unique
