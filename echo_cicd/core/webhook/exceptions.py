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

"""Domain exceptions for webhook ingestion."""

from typing import Optional


class WebhookDomainError(Exception):
    """Base exception for webhook ingestion errors."""

    def __init__(self, message: str, correlation_id: Optional[str] = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error description.
            correlation_id: Optional correlation ID for tracing.
        """
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id


class MalformedPayloadError(WebhookDomainError):
    """Request body is not a decodable push payload."""

    def __init__(self, reason: str, correlation_id: Optional[str] = None) -> None:
        super().__init__(
            f"Malformed push payload: {reason}",
            correlation_id=correlation_id,
        )
        self.reason = reason


class RefNotAuthorizedError(WebhookDomainError):
    """Pushed ref is not allow-listed for the repository."""

    def __init__(
        self,
        repository: str,
        ref: str,
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"Ref {ref} is not allow-listed for {repository}",
            correlation_id=correlation_id,
        )
        self.repository = repository
        self.ref = ref


class BadEventTypeError(WebhookDomainError):
    """Event type header does not name a push event."""

    def __init__(self, event_type: Optional[str], correlation_id: Optional[str] = None) -> None:
        super().__init__(
            f"Expected a push event, got: {event_type or '<missing>'}",
            correlation_id=correlation_id,
        )
        self.event_type = event_type


class QueueFullError(WebhookDomainError):
    """Bounded build queue cannot accept another event."""

    def __init__(self, capacity: int, correlation_id: Optional[str] = None) -> None:
        super().__init__(
            f"Build queue is full (capacity {capacity})",
            correlation_id=correlation_id,
        )
        self.capacity = capacity


class AllowedRefsConfigError(WebhookDomainError):
    """Allow-list file cannot be loaded."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Invalid allowed refs in {source}: {reason}")
        self.source = source
        self.reason = reason
