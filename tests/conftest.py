from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import pytest
import requests

from sitefeed.models import Article


@dataclass
class FakeResponse:
    status_code: int = 200
    body: Union[str, bytes] = ""
    headers: Dict[str, str] = field(default_factory=lambda: {"Content-Type": "text/html; charset=utf-8"})

    @property
    def text(self) -> str:
        return self.body.decode("utf-8") if isinstance(self.body, bytes) else self.body

    @property
    def content(self) -> bytes:
        return self.body if isinstance(self.body, bytes) else self.body.encode("utf-8")


class FakeSession:
    """Stands in for ``requests.Session``; unknown URLs raise a connection error."""

    def __init__(self, responses: Dict[str, Union[FakeResponse, Exception]]) -> None:
        self.responses = responses
        self.requested: List[str] = []
        self.closed = False

    def get(self, url: str, headers: Optional[dict] = None, timeout: Optional[float] = None):
        self.requested.append(url)
        response = self.responses.get(url)
        if response is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


def html_response(body: str) -> FakeResponse:
    return FakeResponse(body=body)


def rss_response(body: str) -> FakeResponse:
    return FakeResponse(body=body.encode("utf-8"), headers={"Content-Type": "application/rss+xml"})


def rss_document(items: List[dict], *, title: str = "Example Feed", description: str = "Latest posts") -> str:
    rendered = []
    for item in items:
        parts = [f"<title>{item['title']}</title>", f"<link>{item['link']}</link>"]
        if item.get("description"):
            parts.append(f"<description>{item['description']}</description>")
        if item.get("pubDate"):
            parts.append(f"<pubDate>{item['pubDate']}</pubDate>")
        if item.get("creator"):
            parts.append(f"<dc:creator>{item['creator']}</dc:creator>")
        rendered.append("<item>" + "".join(parts) + "</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/"><channel>'
        f"<title>{title}</title><link>https://example.com/</link><description>{description}</description>"
        + "".join(rendered)
        + "</channel></rss>"
    )


def make_articles(count: int, *, prefix: str = "Article") -> List[Article]:
    return [
        Article(
            title=f"{prefix} {i}",
            url=f"https://example.com/posts/{i}",
            description=f"Summary {i}",
            published_at="2024-01-01T00:00:00Z",
        )
        for i in range(1, count + 1)
    ]


@pytest.fixture
def articles_10() -> List[Article]:
    return make_articles(10)
