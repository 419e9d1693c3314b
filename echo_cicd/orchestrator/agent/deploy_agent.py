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

"""Deploy agent: reconciles local containers with every published build."""

import asyncio
import logging
from typing import Dict, Optional

from api.logging_utils import log_secure_info
from core.builds.entities import BuildArtifact
from core.builds.services import BuildEventStore
from core.builds.value_objects import DeliveryMode
from core.deploy.exceptions import DeployDomainError
from core.deploy.services import ContainerReconciler

logger = logging.getLogger(__name__)


class DeployAgent:
    """Watches the build store and reconciles each artifact in order.

    The watch runs in synchronous mode, so at most one reconcile is in
    flight and projects are never reconciled concurrently.

    Attributes:
        build_store: Source of published builds.
        reconciler: Applies builds to the local container engine.
        registry_auth: Registry name to encoded auth document.
    """

    def __init__(
        self,
        build_store: BuildEventStore,
        reconciler: ContainerReconciler,
        registry_auth: Optional[Dict[str, str]] = None,
    ) -> None:
        self._build_store = build_store
        self._reconciler = reconciler
        self._registry_auth = dict(registry_auth or {})
        self._running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start watching in a background task."""
        if self._running:
            logger.warning("Deploy agent is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self.run())
        logger.info(
            "Deploy agent started with %d registry credentials",
            len(self._registry_auth),
        )

    async def stop(self) -> None:
        """Cancel the watch; an in-flight reconcile runs to completion."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Deploy agent stopped")

    async def run(self) -> None:
        """Watch until cancelled or the store ends the subscription.

        Raises:
            StoreUnavailableError: If the watch cannot be opened.
        """
        await self._build_store.watch(self.on_build, DeliveryMode.SYNCHRONOUS)

    def on_build(self, artifact: BuildArtifact) -> Optional[str]:
        """Reconcile one artifact, logging the outcome.

        Returns:
            Id of the started container, or ``None`` on failure.
        """
        logger.info(
            "Reconciling build: project=%s, version=%s, tag=%s",
            artifact.project_key,
            artifact.version_hash,
            artifact.image_reference,
        )
        try:
            container_id = self._reconciler.reconcile(artifact, self._registry_auth)
        except DeployDomainError as exc:
            log_secure_info(
                "error",
                f"Failed to reconcile {artifact.project_key} at {artifact.version_hash}: "
                f"{exc.message}",
                project_key=artifact.project_key,
            )
            return None

        log_secure_info(
            "info",
            f"Started container {container_id} for {artifact.project_key} "
            f"at {artifact.version_hash}",
            project_key=artifact.project_key,
        )
        return container_id
