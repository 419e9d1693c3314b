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

"""Webhook ingestion: validates push requests and queues them for building.

A request moves through ``received -> ref authorized -> event type checked
-> enqueued``; any failed check rejects it before it reaches the queue. The
queue is bounded and drained by a single consumer, so builds run one at a
time in arrival order.
"""

import asyncio
import json
import logging
from typing import Optional

from core.webhook.entities import PushEvent
from core.webhook.exceptions import (
    BadEventTypeError,
    MalformedPayloadError,
    QueueFullError,
    RefNotAuthorizedError,
)
from core.webhook.value_objects import AllowedRefTable

logger = logging.getLogger(__name__)

PUSH_EVENT_TYPE = "push"
DEFAULT_QUEUE_CAPACITY = 100


class WebhookIngestor:
    """Gatekeeper between the HTTP endpoint and the build consumer."""

    def __init__(
        self,
        allowed_refs: AllowedRefTable,
        capacity: int = DEFAULT_QUEUE_CAPACITY,
    ) -> None:
        """Initialize ingestor.

        Args:
            allowed_refs: Refs permitted to trigger a build, per repository.
            capacity: Maximum number of queued, unprocessed events.

        Raises:
            ValueError: If capacity is not positive.
        """
        if capacity < 1:
            raise ValueError(f"Queue capacity must be positive, got {capacity}")
        self._allowed_refs = allowed_refs
        self._capacity = capacity
        self._queue: "asyncio.Queue[PushEvent]" = asyncio.Queue(maxsize=capacity)

    @property
    def capacity(self) -> int:
        """Configured queue capacity."""
        return self._capacity

    def queue_size(self) -> int:
        """Number of events waiting to be built."""
        return self._queue.qsize()

    @staticmethod
    def parse_push_event(body: bytes) -> PushEvent:
        """Decode a raw request body into a push event.

        Raises:
            MalformedPayloadError: If the body is not a JSON push payload.
        """
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise MalformedPayloadError(f"invalid JSON: {exc}") from exc
        return PushEvent.from_dict(data)

    def authorize(self, event: PushEvent) -> None:
        """Reject refs that are not allow-listed for the repository.

        Raises:
            RefNotAuthorizedError: If neither the repository entry nor the
                wildcard entry lists the ref.
        """
        if not self._allowed_refs.is_allowed(event.repository.full_name, event.ref):
            raise RefNotAuthorizedError(event.repository.full_name, event.ref)

    @staticmethod
    def check_event_type(event_type: Optional[str]) -> None:
        """Reject anything but push events.

        Raises:
            BadEventTypeError: If the header is missing or not ``push``.
        """
        if event_type != PUSH_EVENT_TYPE:
            raise BadEventTypeError(event_type)

    def enqueue(self, event: PushEvent) -> None:
        """Queue an accepted event without waiting.

        Raises:
            QueueFullError: If the queue is at capacity.
        """
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull as exc:
            raise QueueFullError(self._capacity) from exc

    def ingest(self, body: bytes, event_type: Optional[str]) -> PushEvent:
        """Run every check on a request and queue the event.

        Args:
            body: Raw request body.
            event_type: Value of the event type header.

        Returns:
            The queued event.

        Raises:
            WebhookDomainError: If the request is rejected at any step.
        """
        event = self.parse_push_event(body)
        self.authorize(event)
        self.check_event_type(event_type)
        self.enqueue(event)
        logger.info(
            "Queued push event: repo=%s, ref=%s, queued=%d",
            event.repository.full_name,
            event.ref,
            self.queue_size(),
        )
        return event

    async def next_event(self) -> PushEvent:
        """Wait for the next queued event."""
        return await self._queue.get()

    def task_done(self) -> None:
        """Mark the event returned by :meth:`next_event` as processed."""
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued event has been processed."""
        await self._queue.join()
