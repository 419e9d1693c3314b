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

"""Value objects for the container deployment domain.

The ownership labels are a contract shared with every agent and with
downstream routing discovery; change them only together with a migration.
"""

from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional

from core.builds.entities import DomainHint
from core.builds.value_objects import ProjectKey

OWNER_LABEL = "managed-by"
OWNER_VALUE = "echocicd"
PROJECT_LABEL = "echo-project"
DOMAIN_LABEL_PREFIX = "domain:"


@dataclass(frozen=True)
class LabelSelector:
    """Ownership predicate ``{owner=X, project=Y}`` over engine containers.

    Attributes:
        project_key: Project the containers belong to.
        owner: Owner marker identifying containers managed by this system.
    """

    project_key: str
    owner: str = OWNER_VALUE

    def __post_init__(self) -> None:
        """Validate the project key."""
        ProjectKey(self.project_key)

    def as_labels(self) -> Dict[str, str]:
        """Labels a managed container must carry."""
        return {OWNER_LABEL: self.owner, PROJECT_LABEL: self.project_key}

    def as_filters(self) -> List[str]:
        """Render as engine ``label=`` filter terms."""
        return [f"{key}={value}" for key, value in self.as_labels().items()]

    def matches(self, labels: Dict[str, str]) -> bool:
        """Check whether a container's labels satisfy the predicate."""
        return all(labels.get(key) == value for key, value in self.as_labels().items())


def domain_label(domain: Optional[DomainHint]) -> Dict[str, str]:
    """Synthetic ``domain:<host>=<port>`` label for routing discovery."""
    if domain is None:
        return {}
    return {f"{DOMAIN_LABEL_PREFIX}{domain.host}": str(domain.port)}


@dataclass(frozen=True)
class StopTimeout:
    """Grace period given to a running container before it is killed.

    Attributes:
        seconds: Grace period in seconds.
    """

    seconds: int

    DEFAULT_SECONDS: ClassVar[int] = 60

    def __post_init__(self) -> None:
        """Validate timeout range."""
        if self.seconds < 0:
            raise ValueError(f"Stop timeout cannot be negative, got {self.seconds}")

    @classmethod
    def default(cls) -> "StopTimeout":
        """Create default timeout configuration."""
        return cls(seconds=cls.DEFAULT_SECONDS)

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.seconds}s"
