"""Notion Gateway - all Notion API calls made by the share service."""

import logging
from typing import Any, Dict, List, Optional

import httpx
from notion_client import Client
from notion_client.errors import HTTPResponseError, RequestTimeoutError

from shared.config import ShareConfig
from shared.errors import ErrorKind, ShareError

logger = logging.getLogger(__name__)

QUERY_PAGE_SIZE = 100


class NotionGateway:
    """Reads and patches pages and blocks through the Notion API."""

    def __init__(self, config: ShareConfig, client: Optional[Client] = None):
        """
        Initialize the gateway.

        Args:
            config: Service configuration
            client: Pre-built Notion client, mostly for tests
        """
        self.config = config
        self.client = client or Client(
            auth=config.api_key,
            notion_version=config.notion_version,
            timeout_ms=config.timeout_ms
        )

    async def query_database(self, database_id: str, query_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Collect every page of a filtered database query.

        Args:
            database_id: Notion database ID
            query_filter: Notion filter object

        Returns:
            All matching page objects, in the order Notion returned them

        Raises:
            ShareError: If any page request fails. Pages already fetched are dropped.
        """
        pages: List[Dict[str, Any]] = []
        cursor = None

        while True:
            params: Dict[str, Any] = {
                "database_id": database_id,
                "filter": query_filter,
                "page_size": QUERY_PAGE_SIZE,
            }
            if cursor:
                params["start_cursor"] = cursor

            response = self._call(
                lambda: self.client.databases.query(**params),
                database_id=database_id
            )
            pages.extend(response.get("results", []))

            cursor = response.get("next_cursor")
            if not cursor:
                break

        return pages

    async def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        """Fetch a page object with its properties and canonical URL."""
        return self._call(
            lambda: self.client.pages.retrieve(page_id=page_id),
            record_id=page_id
        )

    async def update_page_properties(self, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Patch the given properties of a page in one request."""
        return self._call(
            lambda: self.client.pages.update(page_id=page_id, properties=properties),
            record_id=page_id
        )

    async def list_children(self, block_id: str) -> List[Dict[str, Any]]:
        """
        List the direct children of a page or block.

        Only the first response page is read; nested blocks are not visited.
        """
        response = self._call(
            lambda: self.client.blocks.children.list(block_id=block_id),
            project_id=block_id
        )
        return response.get("results", [])

    async def append_children(self, block_id: str, children: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Append blocks as the last children of ``block_id``."""
        return self._call(
            lambda: self.client.blocks.children.append(block_id=block_id, children=children),
            project_id=block_id
        )

    def _call(self, request, **context) -> Dict[str, Any]:
        """Run one Notion request, converting client failures into ShareError."""
        try:
            return request()
        except HTTPResponseError as e:
            # APIResponseError is a subclass and carries the parsed error code
            code = getattr(e, "code", None)
            raise ShareError(
                ErrorKind.API,
                f"Notion API error{f' ({code})' if code else ''}: {e}",
                status_code=getattr(e, "status", None),
                payload=getattr(e, "body", None),
                **context
            ) from e
        except RequestTimeoutError as e:
            raise ShareError(ErrorKind.API, f"Notion request timed out: {e}", **context) from e
        except httpx.HTTPError as e:
            raise ShareError(ErrorKind.API, f"Network error calling Notion: {e}", **context) from e
