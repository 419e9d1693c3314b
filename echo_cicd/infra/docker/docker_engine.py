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

"""Docker implementation of the container engine port.

Uses the low-level ``APIClient`` of the docker SDK so progress streams can be
consumed line by line and creation warnings are visible.
"""

import base64
import binascii
import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

import docker
import requests
from docker.errors import DockerException, ImageNotFound

from api.logging_utils import log_secure_info
from core.deploy.entities import ContainerSpec, CreatedContainer, ImageInfo, ManagedContainer
from core.deploy.exceptions import ContainerEngineError
from core.deploy.value_objects import LabelSelector

logger = logging.getLogger(__name__)

_ENGINE_ERRORS = (DockerException, requests.RequestException)


def decode_registry_auth(token: str) -> Optional[Dict[str, Any]]:
    """Decode an ``X-Registry-Auth`` style token into an SDK auth config.

    Tokens are base64url-encoded JSON documents (``username``, ``password``,
    ``serveraddress`` ...). Padding may be omitted.

    Returns:
        The decoded document, or ``None`` for an empty or undecodable token.
    """
    if not token:
        return None
    padded = token + "=" * (-len(token) % 4)
    try:
        decoded = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError):
        log_secure_info("warning", "Ignoring undecodable registry auth token")
        return None
    if not isinstance(decoded, dict):
        log_secure_info("warning", "Ignoring registry auth token that is not an object")
        return None
    return decoded


def create_docker_client(docker_host: Optional[str] = None) -> docker.APIClient:
    """Create a low-level Docker client.

    Args:
        docker_host: Daemon URL such as ``unix:///var/run/docker.sock``;
            the environment (``DOCKER_HOST`` ...) is used when empty.

    Raises:
        ContainerEngineError: If the client cannot be configured.
    """
    try:
        if docker_host:
            return docker.APIClient(base_url=docker_host)
        return docker.from_env().api
    except DockerException as exc:
        raise ContainerEngineError("connect", str(exc)) from exc


class DockerContainerEngine:
    """Container engine adapter over the Docker Engine API."""

    def __init__(self, api_client: docker.APIClient) -> None:
        """Initialize adapter.

        Args:
            api_client: Low-level Docker API client.
        """
        self._api = api_client

    def list_containers(self, selector: LabelSelector) -> List[ManagedContainer]:
        try:
            raw = self._api.containers(all=True, filters={"label": selector.as_filters()})
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("list", str(exc)) from exc

        return [
            ManagedContainer(
                container_id=item["Id"],
                state=item.get("State", ""),
                labels=item.get("Labels") or {},
            )
            for item in raw
        ]

    def stop_container(self, container_id: str, timeout_seconds: int) -> None:
        try:
            self._api.stop(container_id, timeout=timeout_seconds)
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("stop", str(exc), container_id=container_id) from exc

    def remove_container(self, container_id: str) -> None:
        try:
            self._api.remove_container(container_id, force=True)
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("remove", str(exc), container_id=container_id) from exc

    def inspect_image(self, image_reference: str) -> Optional[ImageInfo]:
        try:
            attrs = self._api.inspect_image(image_reference)
        except ImageNotFound:
            return None
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("inspect", str(exc)) from exc

        config = attrs.get("Config")
        if config is None:
            return ImageInfo(image_id=attrs["Id"], default_command=None)
        return ImageInfo(image_id=attrs["Id"], default_command=list(config.get("Cmd") or []))

    def pull_image(
        self, image_reference: str, registry_auth: str = ""
    ) -> Iterable[Dict[str, Any]]:
        logger.info("Pulling image %s", image_reference)
        try:
            stream = self._api.pull(
                image_reference,
                stream=True,
                decode=True,
                auth_config=decode_registry_auth(registry_auth),
            )
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("pull", str(exc)) from exc
        return self._guard_stream("pull", stream)

    def create_container(self, spec: ContainerSpec) -> CreatedContainer:
        try:
            host_config = self._api.create_host_config(
                binds=spec.binds,
                port_bindings=spec.port_bindings,
            )
            created = self._api.create_container(
                image=spec.image_id,
                command=spec.command,
                labels=spec.labels,
                ports=spec.exposed_ports,
                host_config=host_config,
            )
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("create", str(exc)) from exc

        return CreatedContainer(
            container_id=created["Id"],
            warnings=list(created.get("Warnings") or []),
        )

    def start_container(self, container_id: str) -> None:
        try:
            self._api.start(container_id)
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("start", str(exc), container_id=container_id) from exc

    def build_image(
        self,
        context_dir: str,
        tag: str,
        build_args: Dict[str, str],
        dockerfile: str = "Dockerfile",
    ) -> Iterable[Dict[str, Any]]:
        """Build an image from ``context_dir``, yielding progress lines."""
        logger.info("Building image %s from %s", tag, context_dir)
        try:
            stream = self._api.build(
                path=context_dir,
                tag=tag,
                dockerfile=dockerfile,
                buildargs=build_args,
                rm=True,
                decode=True,
            )
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("build", str(exc)) from exc
        return self._guard_stream("build", stream)

    def tag_image(self, image: str, repository: str, tag: str) -> None:
        """Add ``repository:tag`` to an existing image."""
        try:
            self._api.tag(image, repository, tag=tag)
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("tag", str(exc)) from exc

    def push_image(self, repository: str, registry_auth: str = "") -> Iterable[Dict[str, Any]]:
        """Push every tag of ``repository``, yielding progress lines."""
        logger.info("Pushing image %s", repository)
        try:
            stream = self._api.push(
                repository,
                stream=True,
                decode=True,
                auth_config=decode_registry_auth(registry_auth),
            )
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError("push", str(exc)) from exc
        return self._guard_stream("push", stream)

    @staticmethod
    def _guard_stream(
        operation: str, stream: Iterable[Dict[str, Any]]
    ) -> Iterator[Dict[str, Any]]:
        try:
            yield from stream
        except _ENGINE_ERRORS as exc:
            raise ContainerEngineError(operation, str(exc)) from exc
