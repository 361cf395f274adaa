from __future__ import annotations

import os
from dataclasses import dataclass

from ..errors import ConfigError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/132.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT = "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name) or default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got: {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class ExtractionConfig:
    """Limits and identity settings handed to every extraction component."""

    max_articles: int = 50
    max_feed_candidates: int = 10
    timeout_seconds: float = 15.0
    max_redirects: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    accept_header: str = DEFAULT_ACCEPT
    language: str = "en"
    generator: str = "sitefeed"

    @classmethod
    def from_env(cls) -> "ExtractionConfig":
        """Build from ``SITEFEED_*`` variables; malformed numbers raise ``ConfigError``."""
        return cls(
            max_articles=_env_number("SITEFEED_MAX_ARTICLES", "50", int),
            max_feed_candidates=_env_number("SITEFEED_MAX_FEED_CANDIDATES", "10", int),
            timeout_seconds=_env_number("SITEFEED_TIMEOUT_SECONDS", "15", float),
            max_redirects=_env_number("SITEFEED_MAX_REDIRECTS", "5", int),
            user_agent=os.getenv("SITEFEED_USER_AGENT") or DEFAULT_USER_AGENT,
            language=os.getenv("SITEFEED_LANGUAGE") or "en",
        )


DEFAULT_CONFIG = ExtractionConfig()
