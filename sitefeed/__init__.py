"""Top-level package for sitefeed.

Extracts article lists from arbitrary websites, either from a feed the site
already advertises or by mining the page markup, and synthesizes RSS 2.0
documents from them.
"""

from .errors import ExtractionError, FetchError, InvalidUrlError, SitefeedError
from .orchestrator import extract_feed

__all__ = ["extract_feed", "ExtractionError", "FetchError", "InvalidUrlError", "SitefeedError"]
