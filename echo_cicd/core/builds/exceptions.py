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

"""Domain exceptions for the published build module."""

from typing import Optional


class BuildStoreError(Exception):
    """Base exception for all build event store errors."""

    def __init__(self, message: str, correlation_id: Optional[str] = None) -> None:
        """Initialize build store error.

        Args:
            message: Human-readable error description.
            correlation_id: Optional correlation ID for tracing.
        """
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id


class StoreUnavailableError(BuildStoreError):
    """Coordination store could not be reached, written or read."""

    def __init__(
        self,
        operation: str,
        reason: str = "",
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize store unavailable error.

        Args:
            operation: Store operation that failed (publish, fetch, watch, ...).
            reason: Underlying failure description.
            correlation_id: Optional correlation ID for tracing.
        """
        super().__init__(
            f"Coordination store unavailable during {operation}: {reason}",
            correlation_id=correlation_id,
        )
        self.operation = operation
        self.reason = reason


class IncompleteArtifactError(BuildStoreError):
    """A required artifact field is absent from the store."""

    def __init__(
        self,
        project_key: str,
        field_name: str,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize incomplete artifact error.

        Args:
            project_key: Project whose artifact is incomplete.
            field_name: The missing field.
            correlation_id: Optional correlation ID for tracing.
        """
        super().__init__(
            f"Published build for {project_key} is missing field '{field_name}'",
            correlation_id=correlation_id,
        )
        self.project_key = project_key
        self.field_name = field_name


class MalformedFieldError(BuildStoreError):
    """An artifact field is present but cannot be decoded."""

    def __init__(
        self,
        project_key: str,
        field_name: str,
        reason: str = "",
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize malformed field error.

        Args:
            project_key: Project whose artifact is malformed.
            field_name: The field that failed to decode.
            reason: Decoder error description.
            correlation_id: Optional correlation ID for tracing.
        """
        super().__init__(
            f"Published build for {project_key} has malformed field "
            f"'{field_name}': {reason}",
            correlation_id=correlation_id,
        )
        self.project_key = project_key
        self.field_name = field_name
        self.reason = reason
