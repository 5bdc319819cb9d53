"""
Document API client with a real (Notion) and a dry-run implementation.

Uses the Factory pattern (DocumentClientFactory.create) to pick the client
from the settings. Both implement DocumentClient, so the publisher never
needs to know whether requests really go out.
"""

from abc import ABC, abstractmethod
from typing import Optional

import requests

from .config import DEFAULT_NOTION_VERSION, Settings
from .exceptions import DocumentAPIError
from .logger import get_module_logger

logger = get_module_logger("notion_client")

NOTION_API_URL = "https://api.notion.com/v1"


def child_pages(results: list[dict]) -> list[dict]:
    """Keep the child_page blocks of a children listing."""
    return [item for item in results if item.get("type") == "child_page"]


def child_page_title(block: dict) -> str:
    return block.get("child_page", {}).get("title", "")


class DocumentClient(ABC):
    """Abstract base class for document API clients."""

    dry = False

    @abstractmethod
    def list_children(self, block_id: str) -> list[dict]:
        """
        List every child block of a block or page.

        Args:
            block_id: Id of the parent block or page

        Returns:
            Child block objects in order
        """
        pass

    @abstractmethod
    def retrieve_page(self, page_id: str) -> dict:
        """Fetch a page object."""
        pass

    @abstractmethod
    def create_page(self, parent_id: str, title: str) -> dict:
        """
        Create a page under a parent page.

        Returns:
            The created page object
        """
        pass

    @abstractmethod
    def append_children(self, block_id: str, children: list[dict]) -> dict:
        """Append block payloads to the children of a page."""
        pass


class NotionClient(DocumentClient):
    """Notion REST API client."""

    def __init__(
        self,
        secret: str,
        notion_version: str = DEFAULT_NOTION_VERSION,
        base_url: str = NOTION_API_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {secret}",
            "Notion-Version": notion_version,
            "Content-Type": "application/json",
        })

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Document API request failed: {method} {path}: {e}")
            raise DocumentAPIError(
                f"{method} {path} failed: {e}",
                details={"error": str(e)}
            ) from e

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {"body": response.text}
            logger.error(f"Document API error {response.status_code}: {method} {path}")
            raise DocumentAPIError(
                f"{method} {path} returned {response.status_code}: {body.get('message', '')}",
                status_code=response.status_code,
                details=body
            )
        return response.json()

    def list_children(self, block_id: str) -> list[dict]:
        results: list[dict] = []
        params: dict = {"page_size": 100}

        # Listings are paginated; follow the cursor until has_more is false
        while True:
            page = self._request("GET", f"blocks/{block_id}/children", params=params)
            results.extend(page.get("results", []))
            if not page.get("has_more") or not page.get("next_cursor"):
                return results
            params = {"page_size": 100, "start_cursor": page["next_cursor"]}

    def retrieve_page(self, page_id: str) -> dict:
        return self._request("GET", f"pages/{page_id}")

    def create_page(self, parent_id: str, title: str) -> dict:
        payload = {
            "parent": {"page_id": parent_id},
            "properties": {"title": {"title": [{"text": {"content": title}}]}},
        }
        return self._request("POST", "pages", json=payload)

    def append_children(self, block_id: str, children: list[dict]) -> dict:
        return self._request("PATCH", f"blocks/{block_id}/children", json={"children": children})


class DryRunClient(DocumentClient):
    """
    Client that makes no requests.

    Lookups find nothing, created pages have an empty id, and appended
    children are recorded so a dry run can be inspected afterwards.
    """

    dry = True

    def __init__(self):
        self.created_pages: list[tuple[str, str]] = []
        self.appended: list[tuple[str, list[dict]]] = []

    def list_children(self, block_id: str) -> list[dict]:
        return []

    def retrieve_page(self, page_id: str) -> dict:
        return {"id": page_id}

    def create_page(self, parent_id: str, title: str) -> dict:
        self.created_pages.append((parent_id, title))
        return {"id": ""}

    def append_children(self, block_id: str, children: list[dict]) -> dict:
        self.appended.append((block_id, children))
        return {"results": []}


class DocumentClientFactory:
    """
    Factory for document API clients.

    Usage:
        client = DocumentClientFactory.create(load_settings())
    """

    @staticmethod
    def create(settings: Settings, session: Optional[requests.Session] = None) -> DocumentClient:
        """
        Create the client the settings ask for.

        Raises:
            ConfigurationError: when publishing for real without credentials
        """
        if settings.dry:
            logger.info("Dry run: no document API requests will be made")
            return DryRunClient()

        settings.validate_for_publish()
        logger.info("Creating Notion client")
        return NotionClient(
            settings.notion_secret,
            notion_version=settings.notion_version,
            session=session
        )
