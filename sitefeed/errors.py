"""Exception taxonomy shared by the extraction core and its collaborators."""

from __future__ import annotations


class SitefeedError(Exception):
    """Base class for all errors raised by sitefeed."""


class InvalidUrlError(SitefeedError, ValueError):
    """Raised when a source URL is malformed or not http/https."""


class FetchError(SitefeedError):
    """Raised when a page cannot be retrieved or is not HTML."""


class FeedCandidateError(SitefeedError):
    """Raised when a single advertised feed link fails to fetch or parse.

    Feed discovery recovers from this locally by moving to the next
    candidate; it never escapes ``discover_feed``.
    """


class ExtractionError(SitefeedError):
    """Raised when neither discovery nor the heuristic produced an article."""


class ConfigError(SitefeedError):
    """Raised when the sources configuration file is invalid or missing required fields."""


class PublishError(SitefeedError):
    """Raised when a generated feed cannot be committed to the hosting branch."""


class UpdateFailedError(SitefeedError):
    """Raised by the batch updater when every configured source failed."""
