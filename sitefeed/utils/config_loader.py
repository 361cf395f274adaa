from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List
from urllib.parse import urlsplit, urlunsplit

import yaml

from ..errors import ConfigError, InvalidUrlError
from ..models import Source, SourceRules

CONFIG_VERSION = 1
DEFAULT_CONFIG_PATH = Path("config/feed-sources.yaml")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def canonicalize_source_url(url: str) -> str:
    """Normalize a source URL into the key used for rule lookups.

    Lowercases scheme and host, drops default ports and gives an empty path
    ``/``. Raises ``InvalidUrlError`` for anything but absolute http(s).
    """
    raw = (url or "").strip()
    try:
        parts = urlsplit(raw)
        port = parts.port
    except ValueError as exc:
        raise InvalidUrlError(f"Malformed URL: {raw}") from exc
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parts.hostname:
        raise InvalidUrlError(f"Only http:// or https:// URLs are supported: {raw}")

    netloc = parts.hostname.lower()
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    userinfo = parts.netloc.rpartition("@")[0] if "@" in parts.netloc else ""
    if userinfo:
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))


def _validate_source_dict(entry: Any, index: int) -> None:
    """Validate a single source mapping from YAML.

    Required fields: name (non-blank str), url (http/https).
    Optional fields:
      - enabled: bool
      - rules: mapping of rule fields (see ``SourceRules.from_dict``)
    """
    if not isinstance(entry, dict):
        raise ConfigError(f"sources[{index}] must be a mapping, got: {type(entry).__name__}")

    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f"sources[{index}].name must be a non-empty string")

    url = entry.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ConfigError(f"sources[{index}].url must be a non-empty string")
    try:
        canonicalize_source_url(url)
    except InvalidUrlError as exc:
        raise ConfigError(f"sources[{index}].url: {exc}") from exc

    if "enabled" in entry and entry["enabled"] is not None and not isinstance(entry["enabled"], bool):
        raise ConfigError(f"sources[{index}].enabled must be true or false if provided")

    if entry.get("rules") is not None and not isinstance(entry["rules"], dict):
        raise ConfigError(f"sources[{index}].rules must be a mapping if provided")


def _coerce_source(entry: Dict[str, Any]) -> Source:
    rules = None
    if entry.get("rules") is not None:
        normalized = SourceRules.from_dict(entry["rules"])
        rules = normalized if normalized.has_active_rules() else None
    enabled = entry.get("enabled")
    return Source(
        name=entry["name"].strip(),
        url=canonicalize_source_url(entry["url"]),
        enabled=enabled if isinstance(enabled, bool) else True,
        rules=rules,
    )


def parse_sources_config(data: Any) -> List[Source]:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("The sources configuration must be a mapping at the top level")
    if data.get("version") != CONFIG_VERSION:
        raise ConfigError(f"Unsupported configuration version {data.get('version')!r}; expected {CONFIG_VERSION}")

    sources_raw = data.get("sources")
    if not isinstance(sources_raw, list):
        raise ConfigError("'sources' must be a list in the YAML configuration")

    sources: List[Source] = []
    for index, item in enumerate(sources_raw):
        _validate_source_dict(item, index)
        sources.append(_coerce_source(item))
    return sources


def load_sources_config(path: Path | str = DEFAULT_CONFIG_PATH) -> List[Source]:
    """Load ``feed-sources.yaml`` into typed ``Source`` instances.

    YAML structure::

        version: 1
        sources:
          - name: Example            # required
            url: https://example.com/  # required, http/https
            enabled: true            # optional, defaults to true
            rules:                   # optional
              titleExcludes: [sponsored]
              skipTopCount: 1

    Unknown keys are ignored for forward compatibility.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    return parse_sources_config(data)


def _source_to_dict(source: Source) -> Dict[str, Any]:
    row: Dict[str, Any] = {"name": source.name, "url": source.url, "enabled": source.enabled}
    compact = source.rules.to_compact_dict() if source.rules else None
    if compact:
        row["rules"] = compact
    return row


def save_sources_config(path: Path | str, sources: Iterable[Source]) -> None:
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"version": CONFIG_VERSION, "sources": [_source_to_dict(s) for s in sources]}
    with config_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(payload, f, allow_unicode=True, sort_keys=False)
