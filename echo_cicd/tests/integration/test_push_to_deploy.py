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

"""End-to-end flow: push webhook -> build -> publish -> agent reconcile.

Runs against the in-memory coordination store and a fake container engine.
"""

# pylint: disable=redefined-outer-name,protected-access

import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi import FastAPI

from api.router import api_router
from api.webhook.dependencies import get_webhook_ingestor
from core.builds.entities import ExecSpec, PublishRequest
from core.deploy.exceptions import CreateWarningError
from core.deploy.services import ContainerReconciler
from core.webhook.services import WebhookIngestor
from core.webhook.value_objects import AllowedRefTable
from orchestrator.agent.deploy_agent import DeployAgent
from orchestrator.webhook.processor import WebhookProcessor
from tests.mocks.fake_container_engine import FakeContainerEngine

pytestmark = pytest.mark.integration

REGISTRY = "registry.example.com"
HEADERS = {"X-GitHub-Event": "push"}


def push_payload(ref="refs/heads/main"):
    """Push payload for org/app."""
    return {
        "ref": ref,
        "repository": {
            "clone_url": "https://git.example.com/org/app.git",
            "full_name": "org/app",
        },
    }


async def wait_until(predicate, timeout=5.0):
    """Poll ``predicate`` until it holds or ``timeout`` elapses."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def engine():
    """Fake engine whose registry serves two versions of the app."""
    return FakeContainerEngine(
        registry_images={
            f"{REGISTRY}/app:v1": ["/app", "serve"],
            f"{REGISTRY}/app:v2": ["/app", "serve"],
        }
    )


@pytest.fixture
def ingestor():
    """Ingestor allowing only main on org/app."""
    return WebhookIngestor(AllowedRefTable.from_mapping({"org/app": ["refs/heads/main"]}))


@pytest.fixture
def pipeline():
    """Build pipeline producing v1, then v2."""
    versions = iter(["v1", "v2"])

    def build_in_dir(directory, config_file_name):  # pylint: disable=unused-argument
        version = next(versions)
        return PublishRequest.for_repository(
            "org/app",
            display_name="app",
            version_hash=version,
            image_reference=f"{REGISTRY}/app:{version}",
            registry=REGISTRY,
            exec_spec=ExecSpec(args=["--port", "8080"], ports={"8080/tcp": 8080}),
        )

    mock = MagicMock()
    mock.build_in_dir.side_effect = build_in_dir
    return mock


@pytest.fixture
def cloner():
    """Cloner that checks out a tree with a deploy config."""

    def clone(url, destination):  # pylint: disable=unused-argument
        (Path(destination) / ".deploy-config.toml").write_text("[global]\n", encoding="utf-8")

    mock = MagicMock()
    mock.clone.side_effect = clone
    return mock


@pytest.fixture
def app(ingestor):
    """Webhook routes bound to the test ingestor."""
    application = FastAPI()
    application.include_router(api_router)
    application.dependency_overrides[get_webhook_ingestor] = lambda: ingestor
    return application


@pytest.fixture
def reconciler(engine):
    """Reconciler over the fake engine."""
    return ContainerReconciler(engine)


class TestPushToDeploy:
    """Scenarios spanning every component."""

    @pytest.mark.asyncio
    async def test_allowed_push_deploys_one_container(
        self, app, ingestor, cloner, pipeline, build_store, memory_store, engine, reconciler
    ):
        """An allowed push ends with exactly one running, labelled container."""
        processor = WebhookProcessor(ingestor, cloner, pipeline, build_store)
        agent = DeployAgent(build_store, reconciler, {REGISTRY: "token"})
        await agent.start()
        await wait_until(lambda: memory_store._subscribers)
        await processor.start()

        try:
            async with httpx.AsyncClient(
                transport=httpx.ASGITransport(app=app), base_url="http://testserver"
            ) as client:
                response = await client.post("/hook", json=push_payload(), headers=HEADERS)
                assert response.status_code == 200

                await asyncio.wait_for(ingestor.join(), timeout=5)
                await wait_until(lambda: engine.running())

                assert build_store.fetch("org__app").version_hash == "v1"
                assert engine.pulls == [f"{REGISTRY}/app:v1"]
                assert len(engine.containers) == 1
                (container,) = engine.running()
                assert container.labels["echo-project"] == "org__app"
                assert container.labels["managed-by"] == "echocicd"
                spec = engine.specs[container.container_id]
                assert spec.command == ["/app", "serve", "--port", "8080"]
                assert spec.port_bindings == {"8080/tcp": ("0.0.0.0", 8080)}

                first_id = container.container_id
                response = await client.post("/hook", json=push_payload(), headers=HEADERS)
                assert response.status_code == 200

                await asyncio.wait_for(ingestor.join(), timeout=5)
                await wait_until(
                    lambda: engine.running()
                    and engine.running()[0].container_id != first_id
                )
        finally:
            await processor.stop()
            await agent.stop()

        assert len(engine.containers) == 1
        assert engine.pulls == [f"{REGISTRY}/app:v1", f"{REGISTRY}/app:v2"]

    @pytest.mark.asyncio
    async def test_disallowed_ref_rejected(
        self, app, ingestor, pipeline, memory_store, engine
    ):
        """A ref outside the allow-list is neither queued, built nor deployed."""
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://testserver"
        ) as client:
            response = await client.post(
                "/hook", json=push_payload(ref="refs/heads/feature-x"), headers=HEADERS
            )

        assert response.status_code == 403
        assert ingestor.queue_size() == 0
        pipeline.build_in_dir.assert_not_called()
        assert memory_store.get_prefix("echocicd/builds/") == {}
        assert engine.containers == {}

    def test_create_warning_leaves_project_without_running_container(
        self, build_store, engine, reconciler
    ):
        """Warnings stop the new container; the old one is not restored."""
        request = PublishRequest.for_repository(
            "org/app",
            display_name="app",
            version_hash="v1",
            image_reference=f"{REGISTRY}/app:v1",
            registry=REGISTRY,
        )
        artifact = build_store.publish_request(request)
        old_id = reconciler.reconcile(artifact)
        assert engine.running()[0].container_id == old_id

        engine.create_warnings = ["Your kernel does not support memory limit"]
        with pytest.raises(CreateWarningError) as exc_info:
            reconciler.reconcile(build_store.fetch("org__app"))

        assert old_id not in engine.containers
        assert engine.running() == []
        assert engine.containers[exc_info.value.container_id].state == "created"

        engine.create_warnings = []
        new_id = reconciler.reconcile(build_store.fetch("org__app"))
        assert list(engine.containers) == [new_id]
