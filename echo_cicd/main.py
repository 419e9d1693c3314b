# Copyright 2026 Dell Inc. or its subsidiaries. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""echo-cicd webhook server.

Usage:
    echo-cicd webhook-server --allowed-refs-file allowed-refs.json
    uvicorn main:app --host 0.0.0.0 --port 15342
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, status
from fastapi.responses import JSONResponse

from api.logging_utils import configure_logging
from api.router import api_router
from api.webhook.dependencies import get_webhook_ingestor
from api.webhook.schemas import HealthResponse
from container import container
from core.webhook.services import WebhookIngestor

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pylint: disable=unused-argument
    """Manage application lifecycle events.

    Starts the webhook processor on startup and stops it on shutdown.
    """
    processor = container.webhook_processor()
    await processor.start()
    logger.info("Application startup complete")

    yield

    await processor.stop()
    container.coordination_store().close()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    application = FastAPI(
        title="echo-cicd webhook server",
        description="Receives push webhooks and queues image builds",
        version="1.0.0",
        lifespan=lifespan,
    )
    application.container = container
    application.include_router(api_router)

    @application.get(
        "/health",
        response_model=HealthResponse,
        summary="Health check",
        description="Returns the server status and the build queue depth.",
        status_code=status.HTTP_200_OK,
    )
    async def health_check(
        ingestor: WebhookIngestor = Depends(get_webhook_ingestor),
    ) -> HealthResponse:
        """Health check endpoint for container orchestration."""
        return HealthResponse(status="healthy", queued=ingestor.queue_size())

    @application.exception_handler(Exception)
    async def global_exception_handler(request, exc):  # pylint: disable=unused-argument
        """Global exception handler for unhandled exceptions."""
        logger.exception("Unhandled exception occurred")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": "An internal server error occurred"},
        )

    return application


app = create_app()
