"""
Publisher: writes converted sections to the document API.

For every section it finds or creates a child page by title, adds a table
of contents, then appends the section's blocks in batches. Batches are sent
one after another in a loop; a pyrate-limiter Limiter holds successive
append requests at least min_interval_ms apart.
"""

from typing import Optional

from pyrate_limiter import Limiter, Rate

from .chunker import BATCH_LIMIT, chunk
from .notion_client import DocumentClient, child_page_title, child_pages
from .schemas import Block, Section, TableOfContentsBlock
from .logger import get_module_logger

logger = get_module_logger("publisher")

LIMITER_KEY = "append_children"

# Longest a single append may wait for its slot
MAX_DELAY_MS = 60_000


def build_limiter(min_interval_ms: int) -> Limiter:
    """Allow one append request per min_interval_ms."""
    return Limiter(
        Rate(1, min_interval_ms),
        raise_when_fail=False,
        max_delay=MAX_DELAY_MS,
    )


class Publisher:
    """Creates section pages and fills them with blocks."""

    def __init__(
        self,
        client: DocumentClient,
        batch_limit: int = BATCH_LIMIT,
        min_interval_ms: int = 200,
        limiter=None
    ):
        """
        Args:
            client: Document API client (real or dry)
            batch_limit: Maximum children per append request
            min_interval_ms: Minimum time between two append requests
            limiter: Object with try_acquire(name); built from
                     min_interval_ms when omitted. Dry clients are never throttled.
        """
        self.client = client
        self.batch_limit = batch_limit
        if limiter is None and not client.dry and min_interval_ms > 0:
            limiter = build_limiter(min_interval_ms)
        self.limiter = limiter

    def child_pages(self, parent_id: str) -> list[dict]:
        """child_page blocks directly under a page."""
        return child_pages(self.client.list_children(parent_id))

    def get_or_create_child_page(
        self,
        parent_id: str,
        title: str,
        pages: Optional[list[dict]] = None
    ) -> dict:
        """
        Return the first child page with this title, creating it if needed.

        Args:
            parent_id: Parent page id
            title: Page title; duplicates resolve to the first match
            pages: Known child pages of the parent (listed when omitted)
        """
        if pages is None:
            pages = self.child_pages(parent_id)

        for page in pages:
            if child_page_title(page) == title:
                logger.info(f"Found existing page '{title}'")
                return self.client.retrieve_page(page["id"])

        logger.info(f"Creating page '{title}'")
        return self.client.create_page(parent_id, title)

    def append_blocks(self, page_id: str, blocks: list[Block]) -> int:
        """
        Append blocks to a page in order, one batch per request.

        Returns:
            Number of requests made
        """
        batches = chunk(blocks, self.batch_limit)
        logger.info(f"{len(blocks)} blocks in batches of {[len(batch) for batch in batches]}")

        for batch in batches:
            self._append(page_id, [block.to_api() for block in batch])
        return len(batches)

    def publish_section(
        self,
        parent_id: str,
        section: Section,
        pages: Optional[list[dict]] = None
    ) -> dict:
        """
        Publish one section as a child page of parent_id.

        Returns:
            The section's page object
        """
        logger.info(f"Publishing section '{section.title}'")
        page = self.get_or_create_child_page(parent_id, section.title, pages)
        page_id = page.get("id", "")

        self._append(page_id, [TableOfContentsBlock().to_api()])
        self.append_blocks(page_id, section.blocks)
        return page

    def publish(self, parent_page_id: str, version: str, sections: list[Section]) -> dict:
        """
        Publish sections under a version page of the parent page.

        Returns:
            The version page object
        """
        version_page = self.get_or_create_child_page(parent_page_id, version)
        version_id = version_page.get("id", "")
        existing = self.child_pages(version_id)

        for section in sections:
            self.publish_section(version_id, section, existing)

        logger.info(f"Published {len(sections)} sections under '{version}'")
        return version_page

    def _append(self, page_id: str, children: list[dict]) -> None:
        if self.limiter is not None:
            self.limiter.try_acquire(LIMITER_KEY)
        logger.debug(f"Adding batch of length {len(children)}")
        self.client.append_children(page_id, children)
