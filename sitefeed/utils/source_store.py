from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union
from urllib.parse import urlparse

from ..models import Source, SourceRules
from ..processors.rules import normalize_source_rules
from .config_loader import DEFAULT_CONFIG_PATH, canonicalize_source_url, load_sources_config, save_sources_config
from .logging import get_logger

logger = get_logger("sitefeed.utils.source_store")


class SourceRulesStore:
    """File-backed ``SourceRules`` storage keyed by canonical source URL.

    Rules live inside the sources YAML next to the source they belong to, so
    the batch updater and interactive callers share one file. The file is
    created with an empty source list on first use.
    """

    def __init__(self, path: Path | str = DEFAULT_CONFIG_PATH) -> None:
        self.path = Path(path)

    def _read(self) -> List[Source]:
        if not self.path.exists():
            save_sources_config(self.path, [])
            logger.info("Created empty sources configuration at %s", self.path)
        return load_sources_config(self.path)

    def sources(self) -> List[Source]:
        return self._read()

    def get_rules(self, source_url: str) -> Optional[SourceRules]:
        """Rules for ``source_url``, or ``None`` when none are stored."""
        target = canonicalize_source_url(source_url)
        for source in self._read():
            if source.url == target:
                if source.rules and source.rules.has_active_rules():
                    return source.rules
                return None
        return None

    def save_rules(
        self,
        source_url: str,
        rules: Union[SourceRules, Mapping[str, Any], None],
    ) -> Optional[SourceRules]:
        """Store ``rules`` for ``source_url``; an all-default set clears them.

        Unknown URLs are appended as a new enabled source named after the host.
        Returns the normalized rules that were stored.
        """
        target = canonicalize_source_url(source_url)
        normalized = normalize_source_rules(rules)
        stored = normalized if normalized.has_active_rules() else None

        sources = self._read()
        for index, source in enumerate(sources):
            if source.url == target:
                sources[index] = replace(source, url=target, rules=stored)
                break
        else:
            sources.append(Source(name=urlparse(target).hostname or "source", url=target, enabled=True, rules=stored))

        save_sources_config(self.path, sources)
        logger.info("Saved rules for %s: %s", target, stored.to_compact_dict() if stored else None)
        return stored
