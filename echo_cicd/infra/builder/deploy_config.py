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

"""Pydantic models for the per-project TOML deploy config.

Example::

    [global]
    name = "app"
    repo = "org/app"

    [builder]
    id = "golang"
    exclude = ["*.md"]
    args = { entrypoint = "./cmd/app" }

    [exec]
    args = ["--verbose"]
    ports = { "8080/tcp" = 8080 }
    volumes = [{ host = "/srv/data", bindTo = "/data", readonly = true }]
    domain = { host = "app.example.com", port = 8080 }
"""

import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from core.builds.entities import DomainHint, ExecSpec, VolumeMount
from core.builds.value_objects import ContainerPort, ProjectKey
from core.pipeline.exceptions import DeployConfigError


class GlobalSection(BaseModel):
    """Project identity."""

    name: str = Field(..., min_length=1, description="Image and display name")
    repo: str = Field(..., min_length=1, description="Repository full name")

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        """Validate repo can be turned into a project key."""
        ProjectKey.from_repository(v)
        return v


class BuilderSection(BaseModel):
    """Builder selection and its arguments."""

    id: str = Field(..., min_length=1, description="Builder directory name")
    exclude: List[str] = Field(default_factory=list, description="Extra .dockerignore entries")
    args: Dict[str, Any] = Field(default_factory=dict, description="Arguments passed to the builder")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Keep the builder id inside the builders directory."""
        if "/" in v or v in (".", ".."):
            raise ValueError(f"builder id must be a plain directory name, got {v}")
        return v


class VolumeSection(BaseModel):
    """Host path bound into the container."""

    host: str = Field(..., min_length=1)
    bind_to: str = Field(..., min_length=1, alias="bindTo")
    readonly: bool = False
    mode: str = ""

    model_config = {"populate_by_name": True}


class DomainSection(BaseModel):
    """Routing hint for reverse proxies."""

    host: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)


class ExecSection(BaseModel):
    """How the built image is run by agents."""

    args: List[str] = Field(default_factory=list)
    ports: Dict[str, int] = Field(default_factory=dict)
    volumes: List[VolumeSection] = Field(default_factory=list)
    domain: Optional[DomainSection] = None

    @field_validator("ports")
    @classmethod
    def validate_ports(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Validate container port keys and host port range."""
        for container_port, host_port in v.items():
            ContainerPort.parse(container_port)
            if not 1 <= host_port <= 65535:
                raise ValueError(f"host port {host_port} is not in valid range 1-65535")
        return v

    def to_exec_spec(self) -> ExecSpec:
        """Convert to the published exec spec."""
        return ExecSpec(
            args=list(self.args),
            ports=dict(self.ports),
            volumes=[
                VolumeMount(
                    host_path=volume.host,
                    container_path=volume.bind_to,
                    read_only=volume.readonly,
                    mode=volume.mode,
                )
                for volume in self.volumes
            ],
            domain=(
                DomainHint(host=self.domain.host, port=self.domain.port)
                if self.domain
                else None
            ),
        )


class DeployConfig(BaseModel):
    """Complete ``.deploy-config.toml`` document."""

    global_: GlobalSection = Field(..., alias="global")
    builder: BuilderSection
    exec_: ExecSection = Field(default_factory=ExecSection, alias="exec")

    model_config = {"populate_by_name": True}


def parse_deploy_config(content: str, source: str = "<string>") -> DeployConfig:
    """Parse deploy config TOML text.

    Raises:
        DeployConfigError: If the text is not valid TOML or fails validation.
    """
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise DeployConfigError(source, f"failed to parse toml config: {exc}") from exc

    try:
        return DeployConfig.model_validate(data)
    except ValidationError as exc:
        raise DeployConfigError(source, str(exc)) from exc


def load_deploy_config(path: Union[str, Path]) -> DeployConfig:
    """Read and parse a deploy config file.

    Raises:
        DeployConfigError: If the file is missing, unreadable or invalid.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise DeployConfigError(str(path), "file could not be found") from exc
    except OSError as exc:
        raise DeployConfigError(str(path), f"error loading file: {exc}") from exc
    return parse_deploy_config(content, source=str(path))
