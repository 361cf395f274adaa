"""Network collaborators: HTML page fetch and feed document fetch/parse."""

from .http import build_session, fetch_html
from .rss import fetch_feed

__all__ = ["build_session", "fetch_html", "fetch_feed"]
