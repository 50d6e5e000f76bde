"""Shared configuration utilities."""

import os
import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_NOTION_VERSION = "2022-06-28"
DEFAULT_TIMEOUT_MS = 60000


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> str:
    """Get environment variable with optional default and required validation."""
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set")
    return value


def clean_notion_id(notion_id: str) -> str:
    """
    Clean and extract a Notion object ID from various formats.

    Handles:
    - Plain UUID: 2fb86a4c5fbf806dbeb6f3f2c1b23d10
    - UUID with dashes: 2fb86a4c-5fbf-806d-beb6-f3f2c1b23d10
    - Notion URL: https://www.notion.so/2fb86a4c5fbf806dbeb6f3f2c1b23d10?v=...
    - URL with a page slug: https://www.notion.so/Minutes-2fb86a4c5fbf806dbeb6f3f2c1b23d10

    Args:
        notion_id: ID in any of the formats above

    Returns:
        Clean ID (32 hex characters without dashes)

    Raises:
        ValueError: If the ID is invalid
    """
    notion_id = notion_id.strip()

    if notion_id.startswith('http'):
        # Trailing 32 hex chars (or dashed UUID) before the query string
        match = re.search(
            r'([a-f0-9]{32}|[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12})(\?|$)',
            notion_id
        )
        if match:
            notion_id = match.group(1)
        else:
            raise ValueError(f"Could not extract Notion ID from URL: {notion_id}")

    notion_id = notion_id.replace('-', '')

    if not re.match(r'^[a-f0-9]{32}$', notion_id):
        raise ValueError(f"Invalid Notion ID format: {notion_id}. Expected 32 hex characters.")

    return notion_id


@dataclass(frozen=True)
class ShareConfig:
    """Settings for one process lifetime. Built once by load_config()."""
    api_key: str
    minutes_database_id: str
    manual_database_id: str
    workspace_domain: str
    notion_version: str = DEFAULT_NOTION_VERSION
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    status_property: str = "Share Status"
    trigger_property: str = "Share"
    project_property: str = "Project"
    status_unshared: str = "unshared"
    status_shared: str = "shared"
    status_failed: str = "share-failed"
    minutes_heading: str = "Minutes List"
    manual_heading: str = "Manual List"


def load_config() -> ShareConfig:
    """Build the service configuration from environment variables."""
    timeout_raw = get_env("NOTION_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))
    try:
        timeout_ms = int(timeout_raw)
    except ValueError:
        raise ValueError(f"NOTION_TIMEOUT_MS must be an integer, got: {timeout_raw}")

    return ShareConfig(
        api_key=get_env("NOTION_API_KEY", required=True),
        minutes_database_id=clean_notion_id(get_env("MINUTES_DATABASE_ID", required=True)),
        manual_database_id=clean_notion_id(get_env("MANUAL_DATABASE_ID", required=True)),
        workspace_domain=get_env("WORKSPACE_DOMAIN", required=True).strip(),
        notion_version=get_env("NOTION_VERSION", DEFAULT_NOTION_VERSION),
        timeout_ms=timeout_ms,
        status_property=get_env("STATUS_PROPERTY", "Share Status"),
        trigger_property=get_env("TRIGGER_PROPERTY", "Share"),
        project_property=get_env("PROJECT_PROPERTY", "Project"),
        status_unshared=get_env("STATUS_UNSHARED", "unshared"),
        status_shared=get_env("STATUS_SHARED", "shared"),
        status_failed=get_env("STATUS_FAILED", "share-failed"),
        minutes_heading=get_env("MINUTES_HEADING", "Minutes List"),
        manual_heading=get_env("MANUAL_HEADING", "Manual List"),
    )
