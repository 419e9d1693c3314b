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

"""FastAPI routes for push webhooks."""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from starlette.requests import ClientDisconnect

from api.logging_utils import log_secure_info
from api.webhook.dependencies import get_webhook_ingestor
from api.webhook.schemas import HookAcceptedResponse, WebhookErrorResponse
from core.webhook.exceptions import (
    BadEventTypeError,
    MalformedPayloadError,
    QueueFullError,
    RefNotAuthorizedError,
)
from core.webhook.services import WebhookIngestor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhook"])


def _build_error_response(error_code: str, message: str) -> WebhookErrorResponse:
    return WebhookErrorResponse(
        error=error_code,
        message=message,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


def _reject(status_code: int, error_code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=_build_error_response(error_code, message).model_dump(),
    )


@router.post(
    "/hook",
    response_model=HookAcceptedResponse,
    status_code=status.HTTP_200_OK,
    summary="Receive push webhook",
    description="Validate a push event and queue it for building",
    responses={
        200: {"description": "Event queued", "model": HookAcceptedResponse},
        400: {"description": "Malformed payload or not a push event", "model": WebhookErrorResponse},
        403: {"description": "Ref not allow-listed", "model": WebhookErrorResponse},
        500: {"description": "Body could not be read", "model": WebhookErrorResponse},
        503: {"description": "Build queue full", "model": WebhookErrorResponse},
    },
)
async def receive_hook(
    request: Request,
    x_github_event: Optional[str] = Header(
        default=None,
        alias="X-GitHub-Event",
        description="Webhook event type",
    ),
    ingestor: WebhookIngestor = Depends(get_webhook_ingestor),
) -> HookAcceptedResponse:
    """Accept a push event; the build runs after the response is sent."""
    try:
        body = await request.body()
    except (ClientDisconnect, RuntimeError) as exc:
        logger.error("Failed to read webhook body: %s", exc)
        raise _reject(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "BODY_UNREADABLE",
            "Request body could not be read",
        ) from exc

    try:
        event = ingestor.ingest(body, x_github_event)

    except MalformedPayloadError as exc:
        logger.warning("Rejected webhook: %s", exc.message)
        raise _reject(status.HTTP_400_BAD_REQUEST, "MALFORMED_PAYLOAD", exc.message) from exc

    except RefNotAuthorizedError as exc:
        log_secure_info("warning", f"Rejected webhook: {exc.message}")
        raise _reject(status.HTTP_403_FORBIDDEN, "REF_NOT_AUTHORIZED", exc.message) from exc

    except BadEventTypeError as exc:
        logger.warning("Rejected webhook: %s", exc.message)
        raise _reject(status.HTTP_400_BAD_REQUEST, "BAD_EVENT_TYPE", exc.message) from exc

    except QueueFullError as exc:
        logger.error("Rejected webhook: %s", exc.message)
        raise _reject(status.HTTP_503_SERVICE_UNAVAILABLE, "QUEUE_FULL", exc.message) from exc

    log_secure_info(
        "info",
        f"Queued push: repo={event.repository.full_name}, ref={event.ref}",
        project_key=event.repository.project_key,
    )
    return HookAcceptedResponse(
        status="queued",
        repository=event.repository.full_name,
        ref=event.ref,
        queued=ingestor.queue_size(),
    )
