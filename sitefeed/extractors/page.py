"""Page-level metadata shared by both extraction paths."""

from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup

from ..processors.normalize import clean_text, host_name


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return clean_text(tag.get("content"))


def site_name(soup: BeautifulSoup) -> str:
    return _meta_content(soup, property="og:site_name")


def meta_description(soup: BeautifulSoup) -> str:
    return _meta_content(soup, name="description")


def page_title(soup: BeautifulSoup) -> str:
    tag = soup.find("title")
    return clean_text(tag.get_text()) if tag else ""


def resolve_feed_title(source_url: str, *candidates: Optional[str]) -> str:
    """First non-empty candidate, falling back to the source host name."""
    for candidate in candidates:
        text = clean_text(candidate)
        if text:
            return text
    return host_name(source_url) or source_url


def resolve_feed_description(title: str, *candidates: Optional[str]) -> str:
    for candidate in candidates:
        text = clean_text(candidate)
        if text:
            return text
    return f"{title}'s auto-generated feed"
