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

"""Background consumer that builds queued push events one at a time."""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from api.logging_utils import log_secure_info
from core.builds.entities import BuildArtifact
from core.builds.exceptions import BuildStoreError
from core.builds.services import BuildEventStore
from core.pipeline.exceptions import BuildPipelineError, DeployConfigError
from core.pipeline.interfaces import BuildPipelinePort, RepositoryClonerPort
from core.webhook.entities import PushEvent
from core.webhook.services import WebhookIngestor

logger = logging.getLogger(__name__)

DEFAULT_DEPLOY_CONFIG_NAME = ".deploy-config.toml"
WORKDIR_PREFIX = "echocicd-"


class WebhookProcessor:
    """Drains the webhook queue, building and publishing each push.

    Attributes:
        ingestor: Source of accepted push events.
        cloner: Fetches the pushed repository.
        pipeline: Builds the image from the checked-out tree.
        build_store: Receives the resulting artifact.
        deploy_config_name: Deploy config file expected at the repository root.
    """

    def __init__(
        self,
        ingestor: WebhookIngestor,
        cloner: RepositoryClonerPort,
        pipeline: BuildPipelinePort,
        build_store: BuildEventStore,
        deploy_config_name: str = DEFAULT_DEPLOY_CONFIG_NAME,
    ) -> None:
        self._ingestor = ingestor
        self._cloner = cloner
        self._pipeline = pipeline
        self._build_store = build_store
        self._deploy_config_name = deploy_config_name
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        """Whether the consumer task is active."""
        return self._running

    async def start(self) -> None:
        """Start the consumer task."""
        if self._running:
            logger.warning("Webhook processor is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._consume_loop())
        logger.info("Webhook processor started")

    async def stop(self) -> None:
        """Stop the consumer task; a build in progress runs to completion."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Webhook processor stopped")

    async def _consume_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while self._running:
            event = await self._ingestor.next_event()
            try:
                await loop.run_in_executor(None, self.handle_event, event)
            finally:
                self._ingestor.task_done()

    def handle_event(self, event: PushEvent) -> Optional[BuildArtifact]:
        """Process one event, logging instead of raising on failure.

        Returns:
            The published artifact, or ``None`` if processing failed.
        """
        project_key = event.repository.project_key
        try:
            artifact = self.process_event(event)
        except (BuildPipelineError, BuildStoreError) as exc:
            log_secure_info(
                "error",
                f"Failed to build {event.repository.full_name} at {event.ref}: {exc.message}",
                project_key=project_key,
            )
            return None
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception(
                "Unexpected error building: repo=%s, ref=%s, error=%s",
                event.repository.full_name,
                event.ref,
                exc,
            )
            return None

        log_secure_info(
            "info",
            f"Successfully built {event.repository.full_name} at {event.ref}: "
            f"{artifact.image_reference}",
            project_key=project_key,
        )
        return artifact

    def process_event(self, event: PushEvent) -> BuildArtifact:
        """Clone, build and publish ``event`` in a throwaway directory.

        The directory is removed whether or not the build succeeds.

        Raises:
            BuildPipelineError: If clone, config lookup or build fails.
            BuildStoreError: If the artifact cannot be published.
        """
        workdir = Path(tempfile.mkdtemp(prefix=WORKDIR_PREFIX))
        try:
            self._cloner.clone(event.repository.clone_url, workdir)

            config_path = workdir / self._deploy_config_name
            if not config_path.exists():
                raise DeployConfigError(
                    self._deploy_config_name,
                    "could not find deploy config in this project",
                )
            if not config_path.is_file():
                raise DeployConfigError(self._deploy_config_name, "deploy config was not a file")

            request = self._pipeline.build_in_dir(workdir, self._deploy_config_name)
            return self._build_store.publish_request(request)
        finally:
            try:
                shutil.rmtree(workdir)
            except OSError as exc:
                logger.error("Failed to clean up work dir %s: %s", workdir, exc)
