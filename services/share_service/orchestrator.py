"""Share orchestration logic."""

import logging
from typing import List, Optional

from shared.config import ShareConfig
from shared.errors import ErrorKind, ShareError, log_share_error
from shared.models import (
    CategoryResult,
    PageDetails,
    RunSummary,
    ShareCategory,
    SharedRecord,
    build_link_block,
    is_matching_heading,
)
from services.share_service.notion_gateway import NotionGateway

logger = logging.getLogger(__name__)


class ShareOrchestrator:
    """Shares unshared records into the pages of their related projects."""

    def __init__(self, gateway: NotionGateway, config: ShareConfig):
        """
        Initialize the share orchestrator.

        Args:
            gateway: Notion API gateway
            config: Service configuration
        """
        self.gateway = gateway
        self.config = config

    def categories(self) -> List[ShareCategory]:
        """Categories in the order a run processes them."""
        return [
            ShareCategory(
                key="minutes",
                database_id=self.config.minutes_database_id,
                heading_text=self.config.minutes_heading
            ),
            ShareCategory(
                key="manual",
                database_id=self.config.manual_database_id,
                heading_text=self.config.manual_heading
            ),
        ]

    async def run(self) -> RunSummary:
        """
        Execute the share workflow for every category.

        Categories run one after another. A failed scan skips only its own
        category; record failures are recorded on the records themselves.

        Returns:
            RunSummary with per-category counts
        """
        logger.info("Starting share run")
        summary = RunSummary()

        for category in self.categories():
            summary.categories.append(await self.process_category(category))

        logger.info(f"Share run completed: {summary.shared} shared, {summary.failed} failed")
        return summary

    async def process_category(self, category: ShareCategory) -> CategoryResult:
        """Scan one database and process its unshared records in order."""
        result = CategoryResult(category=category.key)

        try:
            records = await self.scan_database(category.database_id)
        except ShareError as e:
            log_share_error(logger, e.with_context(kind=ErrorKind.SCAN, database_id=category.database_id))
            result.scan_failed = True
            return result
        except Exception as e:
            logger.error(f"Unexpected error scanning database {category.database_id}: {e}", exc_info=True)
            result.scan_failed = True
            return result

        result.scanned = len(records)
        logger.info(f"Database {category.database_id}: {len(records)} record(s) to share")

        for record in records:
            status = await self.process_record(record, category)
            if status == self.config.status_shared:
                result.shared += 1
            else:
                result.failed += 1

        return result

    async def scan_database(self, database_id: str) -> List[SharedRecord]:
        """
        Fetch every record whose status is still unshared.

        Raises:
            ShareError: If any query page fails
        """
        pages = await self.gateway.query_database(
            database_id,
            query_filter={
                "property": self.config.status_property,
                "select": {"equals": self.config.status_unshared},
            }
        )
        return [
            SharedRecord.from_api(
                page,
                status_property=self.config.status_property,
                trigger_property=self.config.trigger_property,
                project_property=self.config.project_property
            )
            for page in pages
        ]

    async def process_record(self, record: SharedRecord, category: ShareCategory) -> Optional[str]:
        """
        Link one record into each of its related projects.

        The record ends up shared when every project had a matching heading,
        share-failed otherwise. Links inserted before a failure stay in place.

        Returns:
            The status label written to the record, or None if the write failed
        """
        logger.info(f"Processing record {record.short_id}")

        try:
            details = PageDetails.from_api(
                await self.gateway.retrieve_page(record.id),
                self.config.workspace_domain
            )

            if record.project_ids is None:
                raise ShareError(
                    ErrorKind.MISSING_RELATION,
                    f"Relation property '{self.config.project_property}' not found",
                    record_id=record.id
                )

            for project_id in record.project_ids:
                heading_id = await self.find_heading(project_id, category.heading_text)

                if not heading_id:
                    log_share_error(logger, ShareError(
                        ErrorKind.HEADING_NOT_FOUND,
                        f"No toggle heading '{category.heading_text}' in project page",
                        record_id=record.id,
                        project_id=project_id
                    ))
                    return await self.update_status(record.id, self.config.status_failed)

                await self.gateway.append_children(
                    heading_id,
                    [build_link_block(details.title, details.share_url)]
                )
                logger.info(
                    f"Added share link under '{category.heading_text}' in project {project_id} "
                    f"(record {record.short_id})"
                )

            return await self.update_status(record.id, self.config.status_shared)

        except ShareError as e:
            log_share_error(logger, e.with_context(record_id=record.id))
        except Exception as e:
            logger.error(f"Unexpected error processing record {record.short_id}: {e}", exc_info=True)

        return await self.update_status(record.id, self.config.status_failed)

    async def find_heading(self, project_id: str, heading_text: str) -> Optional[str]:
        """Return the id of the first matching toggle heading among the project's direct children."""
        for block in await self.gateway.list_children(project_id):
            if is_matching_heading(block, heading_text):
                return block["id"]
        return None

    async def update_status(self, record_id: str, status: str) -> Optional[str]:
        """
        Set the record's status and clear its trigger checkbox in one write.

        Failures are logged and swallowed.

        Returns:
            The status written, or None if the write failed
        """
        try:
            await self.gateway.update_page_properties(
                record_id,
                {
                    self.config.status_property: {"select": {"name": status}},
                    self.config.trigger_property: {"checkbox": False},
                }
            )
            logger.info(f"Set status '{status}' and cleared trigger on record {record_id.replace('-', '')}")
        except ShareError as e:
            log_share_error(logger, e.with_context(kind=ErrorKind.STATUS_UPDATE, record_id=record_id))
            return None
        except Exception as e:
            logger.error(f"Unexpected error updating status of record {record_id.replace('-', '')}: {e}", exc_info=True)
            return None
        return status
