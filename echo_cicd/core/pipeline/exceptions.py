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

"""Domain exceptions for the image build pipeline."""

from typing import List, Optional


class BuildPipelineError(Exception):
    """Base exception for all build pipeline errors."""

    def __init__(self, message: str, correlation_id: Optional[str] = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error description.
            correlation_id: Optional correlation ID for tracing.
        """
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id


class DeployConfigError(BuildPipelineError):
    """Deploy config is missing, unreadable or invalid."""

    def __init__(self, path: str, reason: str, correlation_id: Optional[str] = None) -> None:
        super().__init__(
            f"Invalid deploy config {path}: {reason}",
            correlation_id=correlation_id,
        )
        self.path = path
        self.reason = reason


class RepositoryCloneError(BuildPipelineError):
    """Source repository could not be cloned or opened."""

    def __init__(self, location: str, reason: str, correlation_id: Optional[str] = None) -> None:
        super().__init__(
            f"Cannot use repository at {location}: {reason}",
            correlation_id=correlation_id,
        )
        self.location = location
        self.reason = reason


class BuilderNotFoundError(BuildPipelineError):
    """Requested builder does not exist in the builders directory."""

    def __init__(self, builder_id: str, path: str, correlation_id: Optional[str] = None) -> None:
        super().__init__(
            f"Builder {builder_id} could not be loaded from {path}",
            correlation_id=correlation_id,
        )
        self.builder_id = builder_id
        self.path = path


class BuilderArgsInvalidError(BuildPipelineError):
    """Builder arguments failed the builder's JSON schema."""

    def __init__(
        self,
        builder_id: str,
        violations: List[str],
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"Args for builder {builder_id} were invalid: {'; '.join(violations)}",
            correlation_id=correlation_id,
        )
        self.builder_id = builder_id
        self.violations = list(violations)


class ImageBuildError(BuildPipelineError):
    """Image build or push failed."""

    def __init__(self, stage: str, tag: str, reason: str, correlation_id: Optional[str] = None) -> None:
        super().__init__(
            f"Image {stage} failed for {tag}: {reason}",
            correlation_id=correlation_id,
        )
        self.stage = stage
        self.tag = tag
        self.reason = reason
