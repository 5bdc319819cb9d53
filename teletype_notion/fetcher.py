"""
Manual source: read the cached copy, or fetch it from the website.
"""

from typing import Callable, Optional

import requests

from .docs_cache import DOCS_FILE, DocsCache
from .exceptions import DocsSourceError
from .preprocessor import collapse_indentation
from .logger import get_module_logger

logger = get_module_logger("fetcher")

DEFAULT_DOCS_URL = "https://monome.org/docs/teletype/manual/"


class DocsFetcher:
    """Downloads the manual over HTTP."""

    def __init__(
        self,
        url: str = DEFAULT_DOCS_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0
    ):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self) -> str:
        """
        Download the manual.

        Raises:
            DocsSourceError: on transport errors and non-2xx responses
        """
        logger.info(f"Fetching {self.url}")
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise DocsSourceError(
                f"Failed to fetch {self.url}: {e}",
                details={"url": self.url, "error": str(e)}
            ) from e
        return response.text

    def __call__(self) -> str:
        return self.fetch()


def load_docs(cache: DocsCache, fetch: Callable[[], str], name: str = DOCS_FILE) -> str:
    """
    Cache-first load of the manual.

    On a cache miss the manual is fetched and stored with template
    indentation collapsed. A failed or empty download is not cached and
    degrades to an empty document.

    Args:
        cache: Where docs.html is kept
        fetch: Callable returning the page HTML (a DocsFetcher, or a stub)
        name: Cache file name

    Returns:
        The manual HTML, "" if it could not be obtained
    """
    cached = cache.get(name)
    if cached is not None:
        return cached

    logger.info(f"{name} is not cached, fetching")
    try:
        docs = fetch()
    except DocsSourceError as e:
        logger.warning(e.message)
        return ""

    if docs:
        cache.put(name, collapse_indentation(docs))
    else:
        logger.warning("Fetched an empty document, nothing cached")
    return docs
