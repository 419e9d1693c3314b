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

"""Shared pytest fixtures for echo-cicd tests.

Note: pythonpath is set in pytest.ini at project root.
"""

# pylint: disable=redefined-outer-name

from unittest.mock import MagicMock

import pytest

from core.builds.entities import BuildArtifact, DomainHint, ExecSpec, VolumeMount
from core.builds.services import BuildEventStore
from core.deploy.entities import CreatedContainer, ImageInfo
from infra.store.in_memory_store import InMemoryCoordinationStore

FIXED_MILLIS = 1700000000000


@pytest.fixture(autouse=True)
def no_project_log_files(monkeypatch):
    """Keep per-project log files out of test runs."""
    monkeypatch.delenv("ECHO_CICD_LOG_DIR", raising=False)


@pytest.fixture
def memory_store():
    """In-memory coordination store, closed after the test."""
    store = InMemoryCoordinationStore()
    yield store
    store.close()


@pytest.fixture
def build_store(memory_store):
    """Build event store with a fixed clock."""
    return BuildEventStore(memory_store, namespace="echocicd", clock=lambda: FIXED_MILLIS)


@pytest.fixture
def exec_spec():
    """Exec spec using every field."""
    return ExecSpec(
        args=["--verbose"],
        ports={"8080/tcp": 8080},
        volumes=[VolumeMount(host_path="/srv/data", container_path="/data", read_only=True)],
        domain=DomainHint(host="app.example.com", port=8080),
    )


@pytest.fixture
def artifact(exec_spec):
    """Published build for org/app."""
    return BuildArtifact(
        project_key="org__app",
        display_name="app",
        version_hash="3f2a9c1",
        image_reference="registry.example.com/app:3f2a9c1",
        registry="registry.example.com",
        published_at_millis=FIXED_MILLIS,
        exec_spec=exec_spec,
        repository="org/app",
    )


@pytest.fixture
def mock_engine():
    """Container engine with an image present and a clean create."""
    engine = MagicMock()
    engine.list_containers.return_value = []
    engine.inspect_image.return_value = ImageInfo(image_id="sha256:abc", default_command=["/app"])
    engine.create_container.return_value = CreatedContainer(container_id="c-new", warnings=[])
    return engine
