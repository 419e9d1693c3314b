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

"""Build event store: publishes, fetches and watches build artifacts.

Each artifact is stored as one entry per field under
``<namespace>/builds/<project_key>/``. The ``exec`` entry is the
artifact-complete signal that watchers react to.
"""

import asyncio
import json
import logging
import re
import time
from typing import Callable, Dict, Optional, Set

from core.builds.entities import (
    BuildArtifact,
    ExecSpec,
    PublishRequest,
    StoreEvent,
    WatchNotification,
)
from core.builds.exceptions import (
    BuildStoreError,
    IncompleteArtifactError,
    MalformedFieldError,
)
from core.builds.interfaces import CoordinationStore
from core.builds.value_objects import DeliveryMode, ProjectKey

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "echocicd"

FIELD_NAME = "name"
FIELD_VERSION = "version"
FIELD_REPO = "repo"
FIELD_TIMESTAMP = "timestamp"
FIELD_TAG = "tag"
FIELD_REGISTRY = "registry"
FIELD_EXEC = "exec"

ARTIFACT_COMPLETE_FIELD = FIELD_EXEC

BuildCallback = Callable[[BuildArtifact], None]


def _now_millis() -> int:
    return int(time.time() * 1000)


class BuildEventStore:
    """Encodes build artifacts into the coordination store key schema.

    Publication is committed as one store batch so readers never observe a
    torn artifact. Watchers still re-fetch the whole artifact on every
    ``exec`` write instead of trusting the event payload.
    """

    def __init__(
        self,
        store: CoordinationStore,
        namespace: str = DEFAULT_NAMESPACE,
        clock: Callable[[], int] = _now_millis,
    ) -> None:
        """Initialize build event store.

        Args:
            store: Coordination store implementation.
            namespace: Top-level key namespace.
            clock: Source of epoch milliseconds for publication stamps.
        """
        self._store = store
        self._namespace = namespace.strip("/")
        self._clock = clock
        self._builds_prefix = f"{self._namespace}/builds/"
        self._complete_key = re.compile(
            "^" + re.escape(self._builds_prefix) + r"([^/]+)/" + ARTIFACT_COMPLETE_FIELD + "$"
        )

    @property
    def builds_prefix(self) -> str:
        """Key prefix covering every published build."""
        return self._builds_prefix

    def project_prefix(self, project_key: str) -> str:
        """Key prefix covering the fields of one project."""
        return f"{self._builds_prefix}{ProjectKey(project_key)}/"

    def publish(self, artifact: BuildArtifact) -> None:
        """Write every field of ``artifact`` under its project namespace.

        Args:
            artifact: Artifact to publish; replaces any previous one.

        Raises:
            StoreUnavailableError: If the batch could not be committed.
        """
        prefix = self.project_prefix(artifact.project_key)
        entries: Dict[str, str] = {
            prefix + FIELD_NAME: artifact.display_name,
            prefix + FIELD_VERSION: artifact.version_hash,
            prefix + FIELD_REPO: artifact.repository,
            prefix + FIELD_TIMESTAMP: str(artifact.published_at_millis),
            prefix + FIELD_TAG: artifact.image_reference,
            prefix + FIELD_REGISTRY: artifact.registry,
            # Written last: watchers treat it as the completion signal.
            prefix + FIELD_EXEC: json.dumps(artifact.exec_spec.to_dict()),
        }

        logger.info(
            "Publishing build: project=%s, name=%s, version=%s, tag=%s",
            artifact.project_key,
            artifact.display_name,
            artifact.version_hash,
            artifact.image_reference,
        )
        self._store.put_many(entries)

    def publish_request(self, request: PublishRequest) -> BuildArtifact:
        """Stamp and publish a request produced by the build pipeline.

        Returns:
            The artifact as written to the store.
        """
        artifact = request.to_artifact(self._clock())
        self.publish(artifact)
        return artifact

    def fetch(self, project_key: str) -> BuildArtifact:
        """Read and reassemble the artifact published for ``project_key``.

        Raises:
            IncompleteArtifactError: If a required field is absent.
            MalformedFieldError: If timestamp or exec spec cannot be decoded,
                or the key read back is not a valid project key.
            StoreUnavailableError: If the store could not be read.
        """
        try:
            prefix = self.project_prefix(project_key)
        except ValueError as exc:
            raise MalformedFieldError(project_key, "project key", str(exc)) from exc
        entries = self._store.get_prefix(prefix)
        fields = {
            key[len(prefix):]: value
            for key, value in entries.items()
            if "/" not in key[len(prefix):]
        }

        def required(field_name: str) -> str:
            if field_name not in fields:
                raise IncompleteArtifactError(project_key, field_name)
            return fields[field_name]

        display_name = required(FIELD_NAME)
        version_hash = required(FIELD_VERSION)
        raw_timestamp = required(FIELD_TIMESTAMP)
        image_reference = required(FIELD_TAG)
        registry = required(FIELD_REGISTRY)
        raw_exec = required(FIELD_EXEC)

        try:
            published_at_millis = int(raw_timestamp)
        except ValueError as exc:
            raise MalformedFieldError(project_key, FIELD_TIMESTAMP, str(exc)) from exc

        try:
            exec_spec = ExecSpec.from_dict(json.loads(raw_exec))
        except (ValueError, TypeError, KeyError) as exc:
            raise MalformedFieldError(project_key, FIELD_EXEC, str(exc)) from exc

        return BuildArtifact(
            project_key=project_key,
            display_name=display_name,
            version_hash=version_hash,
            image_reference=image_reference,
            registry=registry,
            published_at_millis=published_at_millis,
            exec_spec=exec_spec,
            repository=fields.get(FIELD_REPO, ""),
        )

    def notification_for(self, event: StoreEvent) -> Optional[WatchNotification]:
        """Return a notification if ``event`` completes an artifact.

        Only writes to the ``exec`` field qualify; deletes and writes to other
        fields are ignored.
        """
        if not event.is_put:
            return None
        match = self._complete_key.match(event.key)
        if match is None:
            return None
        return WatchNotification(project_key=match.group(1))

    async def watch(
        self,
        on_notify: BuildCallback,
        mode: DeliveryMode = DeliveryMode.SYNCHRONOUS,
    ) -> None:
        """Deliver every newly published artifact to ``on_notify``.

        Runs until the awaiting task is cancelled or the store ends the
        subscription. In synchronous mode each callback finishes before the
        next event is read, so artifacts arrive in store-write order. In
        detached mode callbacks run independently with no ordering guarantee.
        Artifacts that fail to fetch are logged and skipped.

        Args:
            on_notify: Blocking callback, run on the default executor.
            mode: Delivery mode.

        Raises:
            StoreUnavailableError: If the subscription fails.
        """
        loop = asyncio.get_running_loop()
        events, cancel = await loop.run_in_executor(
            None, self._store.watch_prefix, self._builds_prefix
        )
        detached: Set[asyncio.Future] = set()
        logger.info(
            "Watching for builds under %s (mode=%s)",
            self._builds_prefix,
            mode.value,
        )

        try:
            while True:
                event = await loop.run_in_executor(None, next, events, None)
                if event is None:
                    logger.info("Build watch under %s ended", self._builds_prefix)
                    return

                notification = self.notification_for(event)
                if notification is None:
                    continue
                logger.debug("Found a new build: key=%s", event.key)

                try:
                    artifact = await loop.run_in_executor(
                        None, self.fetch, notification.project_key
                    )
                except BuildStoreError as exc:
                    logger.error(
                        "Failed to handle new build: project=%s, error=%s",
                        notification.project_key,
                        exc.message,
                    )
                    continue

                if mode == DeliveryMode.SYNCHRONOUS:
                    await loop.run_in_executor(None, self._deliver, on_notify, artifact)
                else:
                    future = loop.run_in_executor(None, self._deliver, on_notify, artifact)
                    detached.add(future)
                    future.add_done_callback(detached.discard)
        finally:
            cancel()
            logger.info("Build watch under %s released", self._builds_prefix)

    @staticmethod
    def _deliver(on_notify: BuildCallback, artifact: BuildArtifact) -> None:
        """Invoke the callback, keeping the watch alive if it raises."""
        try:
            on_notify(artifact)
        except Exception:  # pylint: disable=broad-except
            logger.exception(
                "Build handler failed: project=%s, version=%s",
                artifact.project_key,
                artifact.version_hash,
            )
