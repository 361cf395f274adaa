from __future__ import annotations

import hashlib
import os
import re
import subprocess
import time
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import quote, urlparse

import requests
from github import Auth, Github, GithubException

from ..errors import PublishError
from ..utils.logging import get_logger

logger = get_logger("sitefeed.output.github")

PAGES_BRANCH = "gh-pages"

_REMOTE_PATTERNS = (
    re.compile(r"^https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$", re.IGNORECASE),
    re.compile(r"^git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$", re.IGNORECASE),
    re.compile(r"^ssh://git@github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$", re.IGNORECASE),
)


def sanitize_path_segment(value: str) -> str:
    cleaned = re.sub(r"[^a-z0-9.-]+", "-", value.lower()).strip("-")
    return cleaned or "unknown"


def build_feed_path(source_url: str) -> str:
    """Deterministic repository path for a source's feed.

    ``feeds/{host}/{first 16 hex chars of sha256(source_url)}.xml``; the same
    URL always maps to the same file regardless of the feed's content.
    """
    host = sanitize_path_segment(urlparse(source_url).hostname or "")
    digest = hashlib.sha256(source_url.encode("utf-8")).hexdigest()[:16]
    return f"feeds/{host}/{digest}.xml"


def parse_repo_slug(value: str) -> Optional[Tuple[str, str]]:
    """Parse ``owner/repo`` (tolerating a ``.git`` suffix and stray slashes)."""
    normalized = re.sub(r"\.git$", "", value.strip(), flags=re.IGNORECASE).strip("/")
    parts = normalized.split("/")
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


def parse_repo_from_remote(remote_url: str) -> Optional[Tuple[str, str]]:
    for pattern in _REMOTE_PATTERNS:
        matched = pattern.match(remote_url.strip())
        if matched:
            return matched.group(1), matched.group(2)
    return None


def _origin_remote_url() -> Optional[str]:
    try:
        out = subprocess.run(
            ["git", "config", "--get", "remote.origin.url"],
            capture_output=True,
            text=True,
            check=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return out.stdout.strip() or None


def resolve_repo(repo: Optional[str] = None) -> Tuple[str, str]:
    """Resolve the target repository from argument, environment, or git origin."""
    for candidate in (repo, os.environ.get("SITEFEED_REPOSITORY"), os.environ.get("GITHUB_REPOSITORY")):
        if candidate:
            parsed = parse_repo_slug(candidate)
            if parsed is None:
                raise PublishError(f"Repository must be given as owner/repo, got: {candidate}")
            return parsed

    remote = _origin_remote_url()
    if not remote:
        raise PublishError("Cannot determine the GitHub repository; set SITEFEED_REPOSITORY=owner/repo")
    parsed = parse_repo_from_remote(remote)
    if parsed is None:
        raise PublishError(f"origin is not a GitHub repository ({remote}); set SITEFEED_REPOSITORY=owner/repo")
    return parsed


def default_pages_base_url(owner: str, repo: str) -> str:
    if repo.lower() == f"{owner.lower()}.github.io":
        return f"https://{owner}.github.io/"
    return f"https://{owner}.github.io/{quote(repo, safe='')}/"


def build_published_url(base_url: str, file_path: str) -> str:
    base = base_url if base_url.endswith("/") else f"{base_url}/"
    return base + "/".join(quote(segment, safe="") for segment in file_path.split("/"))


def commit_title(feed_title: str, source_url: str) -> str:
    raw = (feed_title or "").strip() or source_url
    return f"{raw[:80]}..." if len(raw) > 80 else raw


@dataclass(slots=True)
class PublishResult:
    repo: str
    path: str
    published_url: str
    commit_sha: Optional[str]


class GitHubPagesPublisher:
    """Commit generated feeds to the ``gh-pages`` branch of a repository."""

    def __init__(self, *, token: Optional[str] = None, repo: Optional[str] = None, dry_run: bool = False) -> None:
        self.token = (token or os.environ.get("GITHUB_TOKEN") or "").strip() or None
        if not self.token and not dry_run:
            raise PublishError("GITHUB_TOKEN is not set and dry_run=False")
        self.owner, self.repo_name = resolve_repo(repo)
        self.dry_run = dry_run
        self._client = Github(auth=Auth.Token(self.token)) if self.token else None
        self._repo = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo_name}"

    def _get_repo(self):
        if self._repo is None:
            self._repo = self._client.get_repo(self.full_name)
        return self._repo

    def ensure_pages_branch(self) -> None:
        repo = self._get_repo()
        try:
            repo.get_git_ref(f"heads/{PAGES_BRANCH}")
            return
        except GithubException as exc:
            if exc.status != 404:
                raise
        default_branch = repo.default_branch or "main"
        base_ref = repo.get_git_ref(f"heads/{default_branch}")
        repo.create_git_ref(ref=f"refs/heads/{PAGES_BRANCH}", sha=base_ref.object.sha)
        logger.info("Created %s branch from %s in %s", PAGES_BRANCH, default_branch, self.full_name)

    def pages_base_url(self) -> str:
        # The Pages API needs extra token scope; fall back to the conventional URL.
        try:
            resp = requests.get(
                f"https://api.github.com/repos/{self.owner}/{self.repo_name}/pages",
                headers={"Authorization": f"Bearer {self.token}", "Accept": "application/vnd.github+json"},
                timeout=15,
            )
            if resp.status_code == 200:
                html_url = (resp.json().get("html_url") or "").strip()
                if html_url:
                    return html_url if html_url.endswith("/") else f"{html_url}/"
        except (requests.RequestException, ValueError) as exc:
            logger.debug("Pages API unavailable for %s: %s", self.full_name, exc)
        return default_pages_base_url(self.owner, self.repo_name)

    def _existing_sha(self, file_path: str) -> Optional[str]:
        try:
            content = self._get_repo().get_contents(file_path, ref=PAGES_BRANCH)
        except GithubException as exc:
            if exc.status == 404:
                return None
            raise
        if isinstance(content, list):
            return None
        return content.sha

    def publish(self, *, source_url: str, rss_xml: str, feed_title: str = "") -> PublishResult:
        if not rss_xml or not rss_xml.strip():
            raise PublishError("The RSS document to publish is empty")

        file_path = build_feed_path(source_url)
        message = f"chore(feed): update {commit_title(feed_title, source_url)}"
        if self.dry_run:
            logger.info("[DRY-RUN] Would commit %s to %s@%s: %s", file_path, self.full_name, PAGES_BRANCH, message)
            return PublishResult(
                repo=self.full_name,
                path=file_path,
                published_url=build_published_url(default_pages_base_url(self.owner, self.repo_name), file_path),
                commit_sha=None,
            )

        backoff = 1.5
        last_error: Optional[Exception] = None
        for attempt in range(3):
            try:
                self.ensure_pages_branch()
                sha = self._existing_sha(file_path)
                repo = self._get_repo()
                if sha:
                    result = repo.update_file(file_path, message, rss_xml, sha, branch=PAGES_BRANCH)
                else:
                    result = repo.create_file(file_path, message, rss_xml, branch=PAGES_BRANCH)
                commit_sha = result["commit"].sha
                logger.info("Published %s to %s (%s)", file_path, self.full_name, commit_sha)
                return PublishResult(
                    repo=self.full_name,
                    path=file_path,
                    published_url=build_published_url(self.pages_base_url(), file_path),
                    commit_sha=commit_sha,
                )
            except GithubException as exc:
                last_error = exc
                if exc.status in (403, 429):
                    delay = backoff ** attempt
                    logger.warning("GitHub API throttled/forbidden (%s). Retrying in %.1fs", exc.status, delay)
                    time.sleep(delay)
                    continue
                raise PublishError(f"GitHub API error {exc.status} while publishing {file_path}: {exc}") from exc
        raise PublishError(f"Failed to publish {file_path} after retries: {last_error}")
