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

"""Domain services for container deployment."""

import logging
from typing import Any, Dict, Iterable, Optional

from core.builds.entities import BuildArtifact
from core.builds.value_objects import ContainerPort
from core.deploy.entities import ContainerSpec, ImageInfo
from core.deploy.exceptions import (
    ContainerEngineError,
    CreateWarningError,
    ImageUnavailableError,
)
from core.deploy.interfaces import ContainerEnginePort
from core.deploy.value_objects import (
    OWNER_VALUE,
    LabelSelector,
    StopTimeout,
    domain_label,
)

logger = logging.getLogger(__name__)

PUBLISH_HOST_IP = "0.0.0.0"


def scan_stream_for_error(lines: Iterable[Dict[str, Any]]) -> Optional[str]:
    """Drain an engine progress stream and report the final line's error.

    Only the last line decides the outcome; earlier errors that the engine
    recovered from are ignored.

    Returns:
        The error message, or ``None`` if the stream ended cleanly.
    """
    last_line: Optional[Dict[str, Any]] = None
    for line in lines:
        logger.debug("Engine progress: %s", line)
        last_line = line

    if last_line is None:
        return "engine returned an empty progress stream"
    if not isinstance(last_line, dict):
        return f"unexpected final progress line: {last_line!r}"

    error = last_line.get("error")
    if not error:
        error = (last_line.get("errorDetail") or {}).get("message")
    return error or None


class ContainerReconciler:
    """Replaces a project's running container with the published build.

    Containers are never updated in place: every reconcile destroys the
    project's labelled containers and then creates a fresh one. Callers must
    not reconcile the same project concurrently.
    """

    def __init__(
        self,
        engine: ContainerEnginePort,
        stop_timeout: Optional[StopTimeout] = None,
        owner: str = OWNER_VALUE,
    ) -> None:
        """Initialize reconciler.

        Args:
            engine: Container engine adapter.
            stop_timeout: Grace period before a stop kills the container.
            owner: Owner marker placed on, and required of, managed containers.
        """
        self._engine = engine
        self._stop_timeout = stop_timeout or StopTimeout.default()
        self._owner = owner

    def cleanup(self, project_key: str) -> int:
        """Stop and remove every managed container of ``project_key``.

        Running or restarting containers are stopped first; a failed stop
        aborts before that container is removed. Removal is forced.

        Returns:
            Number of containers removed.

        Raises:
            ContainerEngineError: If listing, stopping or removing fails.
        """
        selector = LabelSelector(project_key=project_key, owner=self._owner)
        containers = self._engine.list_containers(selector)

        removed = 0
        for container in containers:
            if container.is_active:
                self._engine.stop_container(
                    container.container_id, self._stop_timeout.seconds
                )
                logger.info(
                    "Stopped container: project=%s, container=%s",
                    project_key,
                    container.container_id,
                )
            self._engine.remove_container(container.container_id)
            logger.info(
                "Removed container: project=%s, container=%s",
                project_key,
                container.container_id,
            )
            removed += 1

        return removed

    def apply(
        self,
        artifact: BuildArtifact,
        registry_auth: Optional[Dict[str, str]] = None,
    ) -> str:
        """Create and start a container for ``artifact``.

        Args:
            artifact: Published build to run.
            registry_auth: Registry name to encoded auth document.

        Returns:
            Id of the started container.

        Raises:
            ImageUnavailableError: If the image cannot be resolved.
            CreateWarningError: If the engine returned creation warnings.
            ContainerEngineError: If another engine call fails.
        """
        image = self._resolve_image(artifact, registry_auth or {})
        if image.default_command is None:
            raise ContainerEngineError(
                "inspect",
                f"image {artifact.image_reference} has no config, "
                "cannot determine a start command",
            )

        spec = self.build_container_spec(artifact, image)
        created = self._engine.create_container(spec)
        logger.info(
            "Created container: project=%s, container=%s, warnings=%s",
            artifact.project_key,
            created.container_id,
            created.warnings,
        )

        if created.warnings:
            logger.warning(
                "Got warnings while creating container %s, not starting it",
                created.container_id,
            )
            raise CreateWarningError(created.container_id, created.warnings)

        self._engine.start_container(created.container_id)
        return created.container_id

    def reconcile(
        self,
        artifact: BuildArtifact,
        registry_auth: Optional[Dict[str, str]] = None,
    ) -> str:
        """Replace the project's containers with one running ``artifact``.

        Apply is not attempted when cleanup fails. A failed apply does not
        restore the containers removed by cleanup.

        Returns:
            Id of the started container.
        """
        self.cleanup(artifact.project_key)
        return self.apply(artifact, registry_auth)

    def build_container_spec(self, artifact: BuildArtifact, image: ImageInfo) -> ContainerSpec:
        """Translate an artifact's exec spec into an engine container spec.

        Extra arguments are always appended to the image's default command.
        """
        exec_spec = artifact.exec_spec
        command = list(image.default_command or []) + list(exec_spec.args)

        exposed_ports = []
        port_bindings = {}
        for container_port, host_port in exec_spec.ports.items():
            port = ContainerPort.parse(container_port)
            exposed_ports.append((port.number, port.protocol))
            port_bindings[str(port)] = (PUBLISH_HOST_IP, host_port)

        labels = LabelSelector(project_key=artifact.project_key, owner=self._owner).as_labels()
        labels.update(domain_label(exec_spec.domain))

        return ContainerSpec(
            image_id=image.image_id,
            command=command,
            labels=labels,
            exposed_ports=exposed_ports,
            port_bindings=port_bindings,
            binds=[volume.to_bind() for volume in exec_spec.volumes],
        )

    def _resolve_image(
        self, artifact: BuildArtifact, registry_auth: Dict[str, str]
    ) -> ImageInfo:
        """Inspect the local image, pulling it when absent."""
        reference = artifact.image_reference
        image = self._engine.inspect_image(reference)
        if image is not None:
            return image

        logger.info("Image %s not present locally, pulling", reference)
        auth = registry_auth.get(artifact.registry, "")
        try:
            error = scan_stream_for_error(self._engine.pull_image(reference, auth))
        except ContainerEngineError as exc:
            raise ImageUnavailableError(reference, exc.reason) from exc
        if error:
            raise ImageUnavailableError(reference, error)

        image = self._engine.inspect_image(reference)
        if image is None:
            raise ImageUnavailableError(reference, "image not present after pull")
        return image
