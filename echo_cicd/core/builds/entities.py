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

"""Domain entities for published builds."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .value_objects import ContainerPort, EventKind, ProjectKey


@dataclass(frozen=True)
class VolumeMount:
    """Bind mount of a host path into the container.

    Attributes:
        host_path: Path on the agent host.
        container_path: Mount point inside the container.
        read_only: Mount with the ``:ro`` suffix when set.
        mode: Free-form mode string carried through from the deploy config.
    """

    host_path: str
    container_path: str
    read_only: bool = False
    mode: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the published wire keys."""
        return {
            "ReadOnly": self.read_only,
            "Host": self.host_path,
            "BindTo": self.container_path,
            "Mode": self.mode,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "VolumeMount":
        """Deserialize from the published wire keys.

        Raises:
            KeyError: If host or bind target is missing.
            TypeError: If a value has the wrong type.
        """
        host_path = data["Host"]
        container_path = data["BindTo"]
        if not isinstance(host_path, str) or not isinstance(container_path, str):
            raise TypeError("volume Host and BindTo must be strings")
        read_only = data.get("ReadOnly", False)
        if not isinstance(read_only, bool):
            raise TypeError("volume ReadOnly must be a boolean")
        return VolumeMount(
            host_path=host_path,
            container_path=container_path,
            read_only=read_only,
            mode=data.get("Mode") or "",
        )

    def to_bind(self) -> str:
        """Render as a ``host:container[:ro]`` bind string."""
        bind = f"{self.host_path}:{self.container_path}"
        if self.read_only:
            bind += ":ro"
        return bind


@dataclass(frozen=True)
class DomainHint:
    """Routing hint consumed by downstream reverse proxies."""

    host: str
    port: int

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {"port": self.port, "host": self.host}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "DomainHint":
        """Deserialize from dictionary."""
        host = data["host"]
        port = data["port"]
        if not isinstance(host, str) or isinstance(port, bool) or not isinstance(port, int):
            raise TypeError("domain host must be a string and port an integer")
        return DomainHint(host=host, port=port)


@dataclass(frozen=True)
class ExecSpec:
    """How a published image must be run.

    Attributes:
        args: Extra command arguments appended to the image default command.
        ports: Container port spec (``8080/tcp``) to host port.
        volumes: Ordered bind mounts.
        domain: Optional routing hint.
    """

    args: List[str] = field(default_factory=list)
    ports: Dict[str, int] = field(default_factory=dict)
    volumes: List[VolumeMount] = field(default_factory=list)
    domain: Optional[DomainHint] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the ``exec`` blob layout."""
        return {
            "args": list(self.args),
            "ports": dict(self.ports),
            "volumes": [volume.to_dict() for volume in self.volumes],
            "domain": self.domain.to_dict() if self.domain else None,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ExecSpec":
        """Deserialize the ``exec`` blob.

        Null collections are read as empty ones.

        Raises:
            KeyError: If a nested required key is missing.
            TypeError: If a value has the wrong type.
            ValueError: If a port key is not a valid container port.
        """
        if not isinstance(data, dict):
            raise TypeError("exec spec must be a JSON object")

        args = data.get("args") or []
        if not isinstance(args, list) or not all(isinstance(arg, str) for arg in args):
            raise TypeError("exec args must be a list of strings")

        ports = data.get("ports") or {}
        if not isinstance(ports, dict):
            raise TypeError("exec ports must be an object")
        for container_port, host_port in ports.items():
            ContainerPort.parse(container_port)
            if isinstance(host_port, bool) or not isinstance(host_port, int):
                raise TypeError(f"host port for {container_port} must be an integer")

        volumes = data.get("volumes") or []
        if not isinstance(volumes, list):
            raise TypeError("exec volumes must be a list")

        domain = data.get("domain")
        return ExecSpec(
            args=list(args),
            ports=dict(ports),
            volumes=[VolumeMount.from_dict(volume) for volume in volumes],
            domain=DomainHint.from_dict(domain) if domain else None,
        )


@dataclass(frozen=True)
class BuildArtifact:
    """Published descriptor of a deployable build.

    The store holds at most one artifact per ``project_key``; the last
    publish wins.

    Attributes:
        project_key: Flat key derived from the source repository.
        display_name: Human-facing project name.
        version_hash: Commit hash the image was built from.
        image_reference: Fully qualified image and tag.
        registry: Registry the image was pushed to, empty if local only.
        published_at_millis: Publication time in epoch milliseconds.
        exec_spec: How to run the image.
        repository: Source repository full name, empty if unknown.
    """

    project_key: str
    display_name: str
    version_hash: str
    image_reference: str
    registry: str
    published_at_millis: int
    exec_spec: ExecSpec = field(default_factory=ExecSpec)
    repository: str = ""

    def __post_init__(self) -> None:
        """Validate the project key."""
        ProjectKey(self.project_key)


@dataclass(frozen=True)
class PublishRequest:
    """Inbound form of a build artifact produced by the build pipeline.

    ``published_at_millis`` is stamped at publication time when left unset.
    """

    project_key: str
    display_name: str
    version_hash: str
    image_reference: str
    registry: str = ""
    exec_spec: ExecSpec = field(default_factory=ExecSpec)
    repository: str = ""
    published_at_millis: Optional[int] = None

    @classmethod
    def for_repository(cls, repository: str, **kwargs: Any) -> "PublishRequest":
        """Create a request whose project key derives from ``repository``."""
        return cls(
            project_key=str(ProjectKey.from_repository(repository)),
            repository=repository,
            **kwargs,
        )

    def to_artifact(self, published_at_millis: int) -> BuildArtifact:
        """Build the artifact, keeping an explicit timestamp if one was set."""
        timestamp = self.published_at_millis
        if timestamp is None:
            timestamp = published_at_millis
        return BuildArtifact(
            project_key=self.project_key,
            display_name=self.display_name,
            version_hash=self.version_hash,
            image_reference=self.image_reference,
            registry=self.registry,
            published_at_millis=timestamp,
            exec_spec=self.exec_spec,
            repository=self.repository,
        )


@dataclass(frozen=True)
class WatchNotification:
    """Signal that a complete artifact became readable for a project."""

    project_key: str


@dataclass(frozen=True)
class StoreEvent:
    """Single key change delivered by a coordination store watch."""

    key: str
    value: str
    kind: EventKind = EventKind.PUT

    @property
    def is_put(self) -> bool:
        """Check if the event is a write."""
        return self.kind == EventKind.PUT
