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

"""Pydantic schemas for the webhook API responses."""

from pydantic import BaseModel, Field


class HookAcceptedResponse(BaseModel):
    """Response model for an accepted push event (200 OK)."""

    status: str = Field(..., description="Acceptance status")
    repository: str = Field(..., description="Repository full name")
    ref: str = Field(..., description="Pushed ref")
    queued: int = Field(..., description="Events waiting to be built")


class HealthResponse(BaseModel):
    """Response model for the health check."""

    status: str = Field(..., description="Service status")
    queued: int = Field(..., description="Events waiting to be built")


class WebhookErrorResponse(BaseModel):
    """Standard error response body for webhook requests."""

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    timestamp: str = Field(..., description="Error timestamp (ISO 8601)")
