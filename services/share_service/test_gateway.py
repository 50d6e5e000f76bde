"""Unit tests for the Notion gateway."""

import sys
import os
import pytest
from unittest.mock import Mock, patch

import httpx
from notion_client.errors import HTTPResponseError

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../'))

from shared.config import ShareConfig
from shared.errors import ErrorKind, ShareError
from services.share_service.notion_gateway import NotionGateway


def make_response_error(status, body):
    """Build a Notion HTTP error without depending on the client's constructor."""
    error = HTTPResponseError.__new__(HTTPResponseError)
    Exception.__init__(error, f"Request to Notion API failed with status: {status}")
    error.status = status
    error.headers = {}
    error.body = body
    return error


@pytest.fixture
def config():
    return ShareConfig(
        api_key="secret_test",
        minutes_database_id="a" * 32,
        manual_database_id="b" * 32,
        workspace_domain="acme",
    )


@pytest.fixture
def mock_notion_client():
    """Create a mock Notion client."""
    mock_client = Mock()
    mock_client.databases = Mock()
    mock_client.pages = Mock()
    mock_client.blocks = Mock()
    return mock_client


@pytest.fixture
def gateway(config, mock_notion_client):
    return NotionGateway(config, client=mock_notion_client)


def _pages(prefix, count):
    return [{"object": "page", "id": f"{prefix}-{i}"} for i in range(count)]


class TestClientSetup:
    """Tests for Notion client construction."""

    def test_builds_client_from_config(self, config):
        with patch('services.share_service.notion_gateway.Client') as client_cls:
            gateway = NotionGateway(config)

        client_cls.assert_called_once_with(
            auth="secret_test",
            notion_version="2022-06-28",
            timeout_ms=60000
        )
        assert gateway.client is client_cls.return_value


class TestQueryDatabase:
    """Tests for paginated database queries."""

    @pytest.mark.asyncio
    async def test_collects_all_pages(self, gateway, mock_notion_client):
        """Test 250 records spread over three responses (100/100/50)."""
        mock_notion_client.databases.query.side_effect = [
            {"results": _pages("p1", 100), "next_cursor": "cursor-1", "has_more": True},
            {"results": _pages("p2", 100), "next_cursor": "cursor-2", "has_more": True},
            {"results": _pages("p3", 50), "next_cursor": None, "has_more": False},
        ]
        status_filter = {"property": "Share Status", "select": {"equals": "unshared"}}

        pages = await gateway.query_database("db123", query_filter=status_filter)

        assert len(pages) == 250
        assert pages[0]["id"] == "p1-0"
        assert pages[-1]["id"] == "p3-49"

        calls = mock_notion_client.databases.query.call_args_list
        assert len(calls) == 3
        assert calls[0].kwargs == {"database_id": "db123", "filter": status_filter, "page_size": 100}
        assert calls[1].kwargs["start_cursor"] == "cursor-1"
        assert calls[2].kwargs["start_cursor"] == "cursor-2"

    @pytest.mark.asyncio
    async def test_empty_database(self, gateway, mock_notion_client):
        mock_notion_client.databases.query.return_value = {"results": [], "next_cursor": None}

        assert await gateway.query_database("db123", query_filter={}) == []
        mock_notion_client.databases.query.assert_called_once()

    @pytest.mark.asyncio
    async def test_failure_mid_scan_raises(self, gateway, mock_notion_client):
        """Test that a failing second page aborts the whole query."""
        mock_notion_client.databases.query.side_effect = [
            {"results": _pages("p1", 100), "next_cursor": "cursor-1"},
            make_response_error(502, "<html>Bad Gateway</html>"),
        ]

        with pytest.raises(ShareError) as exc_info:
            await gateway.query_database("db123", query_filter={})

        assert exc_info.value.kind == ErrorKind.API
        assert exc_info.value.database_id == "db123"
        assert exc_info.value.status_code == 502
        assert exc_info.value.payload == "<html>Bad Gateway</html>"


class TestPages:
    """Tests for page reads and writes."""

    @pytest.mark.asyncio
    async def test_retrieve_page(self, gateway, mock_notion_client):
        mock_notion_client.pages.retrieve.return_value = {"id": "rec-1", "url": "https://www.notion.so/rec1"}

        page = await gateway.retrieve_page("rec-1")

        assert page["url"] == "https://www.notion.so/rec1"
        mock_notion_client.pages.retrieve.assert_called_once_with(page_id="rec-1")

    @pytest.mark.asyncio
    async def test_retrieve_page_error_carries_record_id(self, gateway, mock_notion_client):
        mock_notion_client.pages.retrieve.side_effect = make_response_error(
            404, '{"object":"error","code":"object_not_found"}'
        )

        with pytest.raises(ShareError) as exc_info:
            await gateway.retrieve_page("rec-1")

        assert exc_info.value.record_id == "rec-1"
        assert exc_info.value.status_code == 404
        assert "object_not_found" in exc_info.value.payload

    @pytest.mark.asyncio
    async def test_update_page_properties(self, gateway, mock_notion_client):
        mock_notion_client.pages.update.return_value = {"id": "rec-1"}
        properties = {"Share Status": {"select": {"name": "shared"}}}

        await gateway.update_page_properties("rec-1", properties)

        mock_notion_client.pages.update.assert_called_once_with(page_id="rec-1", properties=properties)

    @pytest.mark.asyncio
    async def test_network_error(self, gateway, mock_notion_client):
        mock_notion_client.pages.update.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(ShareError) as exc_info:
            await gateway.update_page_properties("rec-1", {})

        assert exc_info.value.kind == ErrorKind.API
        assert "connection refused" in str(exc_info.value)
        assert exc_info.value.payload is None


class TestBlocks:
    """Tests for block children calls."""

    @pytest.mark.asyncio
    async def test_list_children(self, gateway, mock_notion_client):
        mock_notion_client.blocks.children.list.return_value = {
            "results": [{"id": "b1"}, {"id": "b2"}],
            "next_cursor": None
        }

        children = await gateway.list_children("proj-1")

        assert [block["id"] for block in children] == ["b1", "b2"]
        mock_notion_client.blocks.children.list.assert_called_once_with(block_id="proj-1")

    @pytest.mark.asyncio
    async def test_append_children(self, gateway, mock_notion_client):
        mock_notion_client.blocks.children.append.return_value = {"results": []}
        block = {"object": "block", "type": "paragraph", "paragraph": {"rich_text": []}}

        await gateway.append_children("heading-1", [block])

        mock_notion_client.blocks.children.append.assert_called_once_with(
            block_id="heading-1",
            children=[block]
        )

    @pytest.mark.asyncio
    async def test_append_error_carries_project_context(self, gateway, mock_notion_client):
        mock_notion_client.blocks.children.append.side_effect = make_response_error(
            400, '{"code":"validation_error"}'
        )

        with pytest.raises(ShareError) as exc_info:
            await gateway.append_children("heading-1", [])

        assert exc_info.value.project_id == "heading-1"
        assert exc_info.value.status_code == 400
