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

"""Unit tests for the deploy agent."""

# pylint: disable=redefined-outer-name,protected-access

import asyncio
from unittest.mock import MagicMock

import pytest

from core.deploy.exceptions import CreateWarningError, ImageUnavailableError
from orchestrator.agent.deploy_agent import DeployAgent


@pytest.fixture
def reconciler():
    """Reconciler that starts a container."""
    mock = MagicMock()
    mock.reconcile.return_value = "c-new"
    return mock


class TestOnBuild:
    """Tests for on_build."""

    def test_reconciles_with_registry_auth(self, build_store, reconciler, artifact):
        """Each artifact is reconciled with the agent's credentials."""
        agent = DeployAgent(build_store, reconciler, {"registry.example.com": "token"})

        assert agent.on_build(artifact) == "c-new"
        reconciler.reconcile.assert_called_once_with(
            artifact, {"registry.example.com": "token"}
        )

    @pytest.mark.parametrize(
        "error",
        [
            ImageUnavailableError("app:abc", "manifest unknown"),
            CreateWarningError("c-warn", ["memory limit ignored"]),
        ],
    )
    def test_failures_logged(self, build_store, reconciler, artifact, error):
        """Reconcile failures are logged and reported as None."""
        reconciler.reconcile.side_effect = error
        assert DeployAgent(build_store, reconciler).on_build(artifact) is None


class TestRun:
    """Tests for the watch lifecycle."""

    @pytest.mark.asyncio
    async def test_published_build_reconciled(self, build_store, memory_store, reconciler, artifact):
        """Builds published while running are reconciled."""
        agent = DeployAgent(build_store, reconciler)
        await agent.start()

        for _ in range(500):
            if memory_store._subscribers:
                break
            await asyncio.sleep(0.01)
        build_store.publish(artifact)
        for _ in range(500):
            if reconciler.reconcile.called:
                break
            await asyncio.sleep(0.01)
        await agent.stop()

        reconciler.reconcile.assert_called_once_with(artifact, {})
        assert not memory_store._subscribers

    @pytest.mark.asyncio
    async def test_stop_without_start(self, build_store, reconciler):
        """Stopping an idle agent is a no-op."""
        await DeployAgent(build_store, reconciler).stop()
