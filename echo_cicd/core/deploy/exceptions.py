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

"""Domain exceptions for the container deployment module."""

from typing import List, Optional


class DeployDomainError(Exception):
    """Base exception for all reconciliation errors."""

    def __init__(self, message: str, correlation_id: Optional[str] = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error description.
            correlation_id: Optional correlation ID for tracing.
        """
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id


class ImageUnavailableError(DeployDomainError):
    """Image is neither present locally nor pullable."""

    def __init__(
        self,
        image_reference: str,
        reason: str = "",
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize image unavailable error.

        Args:
            image_reference: Image that could not be resolved.
            reason: Engine or registry error description.
            correlation_id: Optional correlation ID for tracing.
        """
        super().__init__(
            f"Image {image_reference} is unavailable: {reason}",
            correlation_id=correlation_id,
        )
        self.image_reference = image_reference
        self.reason = reason


class CreateWarningError(DeployDomainError):
    """Engine reported warnings while creating the container."""

    def __init__(
        self,
        container_id: str,
        warnings: List[str],
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize create warning error.

        Args:
            container_id: Id of the created, never started, container.
            warnings: Warnings returned by the engine.
            correlation_id: Optional correlation ID for tracing.
        """
        super().__init__(
            f"Received warnings while creating container {container_id}: "
            f"{'; '.join(warnings)}",
            correlation_id=correlation_id,
        )
        self.container_id = container_id
        self.warnings = list(warnings)


class ContainerEngineError(DeployDomainError):
    """Container engine call failed."""

    def __init__(
        self,
        operation: str,
        reason: str = "",
        container_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize container engine error.

        Args:
            operation: Engine operation that failed (list, stop, create, ...).
            reason: Engine error description.
            container_id: Container the operation targeted, if any.
            correlation_id: Optional correlation ID for tracing.
        """
        target = f" on container {container_id}" if container_id else ""
        super().__init__(
            f"Container engine {operation} failed{target}: {reason}",
            correlation_id=correlation_id,
        )
        self.operation = operation
        self.reason = reason
        self.container_id = container_id
