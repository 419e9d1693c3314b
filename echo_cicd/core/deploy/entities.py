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

"""Domain entities for container deployment."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

ACTIVE_STATES = frozenset({"running", "restarting"})


@dataclass(frozen=True)
class ManagedContainer:
    """Container owned by the engine and tagged with ownership labels.

    Attributes:
        container_id: Engine-assigned id.
        state: Engine state (running, restarting, exited, created, ...).
        labels: Labels attached at creation.
    """

    container_id: str
    state: str
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        """Check if the container must be stopped before removal."""
        return self.state in ACTIVE_STATES


@dataclass(frozen=True)
class ImageInfo:
    """Locally present image.

    Attributes:
        image_id: Engine image id.
        default_command: Built-in command; ``None`` when the image has no config.
    """

    image_id: str
    default_command: Optional[List[str]]


@dataclass(frozen=True)
class ContainerSpec:
    """Everything the engine needs to create a container.

    Attributes:
        image_id: Image to run.
        command: Full start command.
        labels: Ownership and routing labels.
        exposed_ports: ``(port, protocol)`` pairs exposed by the container.
        port_bindings: ``port/protocol`` to ``(host_ip, host_port)``.
        binds: ``host:container[:ro]`` bind strings.
    """

    image_id: str
    command: List[str]
    labels: Dict[str, str]
    exposed_ports: List[Tuple[int, str]] = field(default_factory=list)
    port_bindings: Dict[str, Tuple[str, int]] = field(default_factory=dict)
    binds: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CreatedContainer:
    """Result of a container create call."""

    container_id: str
    warnings: List[str] = field(default_factory=list)
