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

"""Push event entities decoded from webhook payloads."""

from dataclasses import dataclass
from typing import Any, Dict

from core.builds.value_objects import ProjectKey

from .exceptions import MalformedPayloadError


def _require_str(data: Dict[str, Any], key: str, context: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedPayloadError(f"{context}{key} must be a non-empty string")
    return value


@dataclass(frozen=True)
class Repository:
    """Source repository named by a push event."""

    clone_url: str
    full_name: str

    @property
    def project_key(self) -> str:
        """Flat store key derived from the full name."""
        return str(ProjectKey.from_repository(self.full_name))

    @staticmethod
    def from_dict(data: Any) -> "Repository":
        """Decode the ``repository`` object of a push payload."""
        if not isinstance(data, dict):
            raise MalformedPayloadError("repository must be an object")
        return Repository(
            clone_url=_require_str(data, "clone_url", "repository."),
            full_name=_require_str(data, "full_name", "repository."),
        )


@dataclass(frozen=True)
class PushEvent:
    """Push of ``ref`` to ``repository``; only the fields we act on are kept."""

    repository: Repository
    ref: str

    @staticmethod
    def from_dict(data: Any) -> "PushEvent":
        """Decode a push payload.

        Raises:
            MalformedPayloadError: If a required field is missing or mistyped.
        """
        if not isinstance(data, dict):
            raise MalformedPayloadError("payload must be a JSON object")
        return PushEvent(
            repository=Repository.from_dict(data.get("repository")),
            ref=_require_str(data, "ref", ""),
        )
