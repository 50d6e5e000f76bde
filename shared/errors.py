"""Structured errors raised while sharing records, and their log formatting."""

import json
import logging
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Category of a share failure."""
    API = "api"
    SCAN = "scan"
    MISSING_RELATION = "missing_relation"
    HEADING_NOT_FOUND = "heading_not_found"
    STATUS_UPDATE = "status_update"


class ShareError(Exception):
    """
    Failure while scanning, sharing or updating a record.

    Carries the ids needed to find the affected objects in Notion and,
    for API failures, whatever the Notion API sent back.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        record_id: Optional[str] = None,
        project_id: Optional[str] = None,
        database_id: Optional[str] = None,
        status_code: Optional[int] = None,
        payload: Any = None
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.record_id = record_id
        self.project_id = project_id
        self.database_id = database_id
        self.status_code = status_code
        self.payload = payload

    def with_context(
        self,
        kind: Optional[ErrorKind] = None,
        record_id: Optional[str] = None,
        project_id: Optional[str] = None,
        database_id: Optional[str] = None
    ) -> "ShareError":
        """Return a copy with missing ids filled in and, optionally, a new kind."""
        return ShareError(
            kind=kind or self.kind,
            message=self.message,
            record_id=self.record_id or record_id,
            project_id=self.project_id or project_id,
            database_id=self.database_id or database_id,
            status_code=self.status_code,
            payload=self.payload
        )

    def describe(self) -> str:
        """Single-line description used by log_share_error."""
        parts = [f"[{self.kind.value}] {self.message}"]
        if self.database_id:
            parts.append(f"database={self.database_id}")
        if self.record_id:
            parts.append(f"record={_short_id(self.record_id)}")
        if self.project_id:
            parts.append(f"project={self.project_id}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.payload is not None:
            parts.append(f"response={_render_payload(self.payload)}")
        return " ".join(parts)


def log_share_error(logger: logging.Logger, error: ShareError, level: int = logging.ERROR) -> None:
    """Log a ShareError. Every share failure is reported through here."""
    logger.log(level, error.describe())


def _short_id(notion_id: str) -> str:
    return notion_id.replace("-", "")


def _render_payload(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(payload)
