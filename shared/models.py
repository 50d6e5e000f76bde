"""Shared data models for the Notion share service."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

NOTION_DEFAULT_ORIGIN = "https://www.notion.so"
UNTITLED = "Untitled"


@dataclass(frozen=True)
class ShareCategory:
    """A database whose records get linked under one heading text."""
    key: str  # minutes, manual
    database_id: str
    heading_text: str


@dataclass
class SharedRecord:
    """
    A database row waiting to be shared.

    Parsed once from the Notion page payload. ``project_ids`` is None when
    the relation property is missing or has another type.
    """
    id: str
    url: str
    status: Optional[str]
    trigger: bool
    project_ids: Optional[List[str]]

    @property
    def short_id(self) -> str:
        return self.id.replace("-", "")

    @classmethod
    def from_api(
        cls,
        page: Dict[str, Any],
        status_property: str,
        trigger_property: str,
        project_property: str
    ) -> "SharedRecord":
        properties = page.get("properties", {})

        status = None
        status_prop = properties.get(status_property) or {}
        if status_prop.get("type") == "select" and status_prop.get("select"):
            status = status_prop["select"].get("name")

        trigger_prop = properties.get(trigger_property) or {}
        trigger = bool(trigger_prop.get("checkbox")) if trigger_prop.get("type") == "checkbox" else False

        project_ids = None
        relation_prop = properties.get(project_property)
        if relation_prop and relation_prop.get("type") == "relation":
            project_ids = [rel["id"] for rel in relation_prop.get("relation", [])]

        return cls(
            id=page["id"],
            url=page.get("url", ""),
            status=status,
            trigger=trigger,
            project_ids=project_ids,
        )


@dataclass(frozen=True)
class PageDetails:
    """Title and public share URL of a record."""
    title: str
    share_url: str

    @classmethod
    def from_api(cls, page: Dict[str, Any], workspace_domain: str) -> "PageDetails":
        return cls(
            title=extract_title(page.get("properties", {})),
            share_url=to_share_url(page["url"], workspace_domain),
        )


@dataclass
class CategoryResult:
    """Outcome counts for one category in a run."""
    category: str
    scanned: int = 0
    shared: int = 0
    failed: int = 0
    scan_failed: bool = False


@dataclass
class RunSummary:
    """Outcome of one full share run."""
    categories: List[CategoryResult] = field(default_factory=list)

    @property
    def shared(self) -> int:
        return sum(result.shared for result in self.categories)

    @property
    def failed(self) -> int:
        return sum(result.failed for result in self.categories)


def extract_title(properties: Dict[str, Any]) -> str:
    """Concatenate the plain text runs of the title property."""
    for prop in properties.values():
        if prop.get("type") == "title":
            runs = prop.get("title") or []
            if runs:
                return "".join(run.get("plain_text", "") for run in runs)
    return UNTITLED


def to_share_url(raw_url: str, workspace_domain: str) -> str:
    """Rewrite a notion.so URL to the workspace's public notion.site domain."""
    return raw_url.replace(NOTION_DEFAULT_ORIGIN, f"https://{workspace_domain}.notion.site", 1)


def build_link_block(title: str, url: str) -> Dict[str, Any]:
    """Paragraph block holding one text run linked to ``url``."""
    return {
        "object": "block",
        "type": "paragraph",
        "paragraph": {
            "rich_text": [
                {
                    "type": "text",
                    "text": {
                        "content": title,
                        "link": {"url": url}
                    }
                }
            ]
        }
    }


def is_matching_heading(block: Dict[str, Any], heading_text: str) -> bool:
    """True for a toggleable heading_2 block with a text run equal to heading_text."""
    if block.get("type") != "heading_2":
        return False
    heading = block.get("heading_2") or {}
    if not heading.get("is_toggleable"):
        return False
    return any(run.get("plain_text") == heading_text for run in heading.get("rich_text", []))
