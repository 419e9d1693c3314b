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

"""Value objects for the published build domain.

All value objects are immutable and defined by their values, not identity.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


@dataclass(frozen=True)
class ProjectKey:
    """Flat, key-safe identifier of a logical deployable.

    Attributes:
        value: Repository full name with every ``/`` replaced by ``__``.

    Raises:
        ValueError: If the key is empty or still contains a path separator.
    """

    value: str

    SEPARATOR_REPLACEMENT: ClassVar[str] = "__"
    MAX_LENGTH: ClassVar[int] = 255

    def __post_init__(self) -> None:
        """Validate the key can be used as a single store key segment."""
        if not self.value or not self.value.strip():
            raise ValueError("Project key cannot be empty")
        if "/" in self.value:
            raise ValueError(
                f"Project key cannot contain path separators: {self.value}"
            )
        if len(self.value) > self.MAX_LENGTH:
            raise ValueError(
                f"Project key length cannot exceed {self.MAX_LENGTH} "
                f"characters, got {len(self.value)}"
            )

    @classmethod
    def from_repository(cls, repository: str) -> "ProjectKey":
        """Derive the key from a repository full name such as ``org/app``."""
        return cls(repository.replace("/", cls.SEPARATOR_REPLACEMENT))

    def __str__(self) -> str:
        """Return string representation."""
        return self.value


@dataclass(frozen=True)
class ContainerPort:
    """Container side of a port mapping, e.g. ``8080/tcp``.

    Attributes:
        number: Port number inside the container.
        protocol: Transport protocol, ``tcp`` when not given.
    """

    number: int
    protocol: str = "tcp"

    PATTERN: ClassVar[str] = r"^(\d{1,5})(?:/(tcp|udp|sctp))?$"

    def __post_init__(self) -> None:
        """Validate port range."""
        if not 1 <= self.number <= 65535:
            raise ValueError(f"Port {self.number} is not in valid range 1-65535")

    @classmethod
    def parse(cls, spec: str) -> "ContainerPort":
        """Parse ``<port>[/<protocol>]``.

        Raises:
            ValueError: If the spec does not match the expected form.
        """
        match = re.match(cls.PATTERN, spec.strip())
        if match is None:
            raise ValueError(f"Invalid container port: {spec}")
        return cls(number=int(match.group(1)), protocol=match.group(2) or "tcp")

    def __str__(self) -> str:
        """Return the engine's ``<port>/<protocol>`` form."""
        return f"{self.number}/{self.protocol}"


class DeliveryMode(str, Enum):
    """How a build watcher hands artifacts to its callback."""

    SYNCHRONOUS = "synchronous"
    DETACHED = "detached"


class EventKind(str, Enum):
    """Kind of change reported by the coordination store."""

    PUT = "PUT"
    DELETE = "DELETE"
