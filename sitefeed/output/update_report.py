from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List


@dataclass(slots=True)
class FailedSource:
    name: str
    url: str
    path: str
    error: str


@dataclass(slots=True)
class UpdateReport:
    generated_at: str = field(default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"))
    desired_paths: List[str] = field(default_factory=list)
    successful_paths: List[str] = field(default_factory=list)
    failed_sources: List[FailedSource] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "desiredPaths": sorted(set(self.desired_paths)),
            "successfulPaths": sorted(set(self.successful_paths)),
            "failedSources": [asdict(f) for f in self.failed_sources],
        }

    def write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")

    def to_markdown(self) -> str:
        lines = [
            "### Feed Update Summary",
            "",
            f"- Sources attempted: {len(set(self.desired_paths))}",
            f"- Feeds written: {len(set(self.successful_paths))}",
            f"- Failures: {len(self.failed_sources)}",
        ]
        for failed in self.failed_sources:
            lines.append(f"  - {failed.name} ({failed.url}): {failed.error}")
        return "\n".join(lines) + "\n"
