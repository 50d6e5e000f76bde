"""Share Service - FastAPI application."""

import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../'))
from shared.config import load_config
from services.share_service.notion_gateway import NotionGateway
from services.share_service.orchestrator import ShareOrchestrator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)

COMPLETION_MESSAGE = "Notion sync process completed"
VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Response model for the health check."""
    status: str
    service: str
    version: str


def create_app(orchestrator: Optional[ShareOrchestrator] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator. When omitted, configuration is
            read from the environment at startup and a Notion-backed one is built.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        logger.info("Share Service starting up...")

        if orchestrator is not None:
            app.state.orchestrator = orchestrator
        else:
            config = load_config()
            app.state.orchestrator = ShareOrchestrator(NotionGateway(config), config)
            logger.info(
                f"Configured for databases {config.minutes_database_id} (minutes), "
                f"{config.manual_database_id} (manual), workspace '{config.workspace_domain}'"
            )

        yield

        logger.info("Share Service shutting down...")

    app = FastAPI(
        title="Share Service",
        description="Publishes share links of unshared Notion records into their project pages",
        version=VERSION,
        lifespan=lifespan
    )

    # Error handling middleware
    @app.middleware("http")
    async def error_handling_middleware(request: Request, call_next):
        """Global error handling middleware."""
        try:
            response = await call_next(request)
            return response
        except Exception as exc:
            logger.error(f"Unhandled exception: {exc}", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal server error",
                    "detail": str(exc)
                }
            )

    @app.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(status="healthy", service="share_service", version=VERSION)

    @app.get("/", response_class=PlainTextResponse, status_code=status.HTTP_200_OK)
    async def trigger_share(request: Request):
        """
        Run the share workflow for both databases.

        Replies once the run finishes, whatever happened to individual records.
        Overlapping requests are not serialized.
        """
        logger.info("Share run triggered")
        await request.app.state.orchestrator.run()
        logger.info("Share run finished")
        return COMPLETION_MESSAGE

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8080))
    logger.info(f"App listening on port {port}")
    uvicorn.run(app, host="0.0.0.0", port=port)
