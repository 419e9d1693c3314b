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

"""Port interfaces (Protocols) for the container engine.

Every method raises ``ContainerEngineError`` when the engine call fails.
"""

from typing import Any, Dict, Iterable, List, Optional, Protocol

from .entities import ContainerSpec, CreatedContainer, ImageInfo, ManagedContainer
from .value_objects import LabelSelector


class ContainerEnginePort(Protocol):
    """Port for the container engine used by the reconciler."""

    def list_containers(self, selector: LabelSelector) -> List[ManagedContainer]:
        """List containers in any state that satisfy ``selector``."""
        ...

    def stop_container(self, container_id: str, timeout_seconds: int) -> None:
        """Stop a container, killing it after ``timeout_seconds``."""
        ...

    def remove_container(self, container_id: str) -> None:
        """Forcibly remove a container."""
        ...

    def inspect_image(self, image_reference: str) -> Optional[ImageInfo]:
        """Return the local image, or ``None`` if it is not present."""
        ...

    def pull_image(
        self, image_reference: str, registry_auth: str = ""
    ) -> Iterable[Dict[str, Any]]:
        """Pull an image, yielding the engine's decoded progress lines.

        Args:
            image_reference: Image and tag to pull.
            registry_auth: Encoded registry auth document, empty for none.
        """
        ...

    def create_container(self, spec: ContainerSpec) -> CreatedContainer:
        """Create (but do not start) a container."""
        ...

    def start_container(self, container_id: str) -> None:
        """Start a created container."""
        ...
