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

"""Unit tests for ContainerReconciler."""

# pylint: disable=redefined-outer-name

from dataclasses import replace
from unittest.mock import MagicMock, call

import pytest

from core.builds.entities import ExecSpec
from core.deploy.entities import CreatedContainer, ImageInfo, ManagedContainer
from core.deploy.exceptions import (
    ContainerEngineError,
    CreateWarningError,
    ImageUnavailableError,
)
from core.deploy.services import ContainerReconciler, scan_stream_for_error
from core.deploy.value_objects import LabelSelector, StopTimeout, domain_label


@pytest.fixture
def reconciler(mock_engine):
    """Reconciler with a short stop timeout."""
    return ContainerReconciler(mock_engine, stop_timeout=StopTimeout(5))


class TestLabelSelector:
    """Tests for ownership labels."""

    def test_labels_and_filters(self):
        """The selector renders owner and project labels."""
        selector = LabelSelector(project_key="org__app")
        assert selector.as_labels() == {"managed-by": "echocicd", "echo-project": "org__app"}
        assert selector.as_filters() == ["managed-by=echocicd", "echo-project=org__app"]

    def test_matches_requires_both_labels(self):
        """Only containers carrying both labels match."""
        selector = LabelSelector(project_key="org__app")
        assert selector.matches({"managed-by": "echocicd", "echo-project": "org__app", "x": "y"})
        assert not selector.matches({"echo-project": "org__app"})
        assert not selector.matches({"managed-by": "echocicd", "echo-project": "org__other"})

    def test_domain_label(self, exec_spec):
        """A domain hint becomes a single routing label."""
        assert domain_label(exec_spec.domain) == {"domain:app.example.com": "8080"}
        assert not domain_label(None)

    def test_negative_stop_timeout_rejected(self):
        """Stop timeouts cannot be negative."""
        with pytest.raises(ValueError):
            StopTimeout(-1)


class TestScanStreamForError:
    """Tests for progress stream scanning."""

    def test_clean_stream(self):
        """A stream ending in a status line is clean."""
        assert scan_stream_for_error([{"status": "Pulling"}, {"status": "Done"}]) is None

    def test_last_line_error(self):
        """An error on the last line is reported."""
        assert scan_stream_for_error([{"status": "Pulling"}, {"error": "denied"}]) == "denied"

    def test_error_detail(self):
        """The nested error detail is used when there is no error field."""
        assert scan_stream_for_error([{"errorDetail": {"message": "manifest unknown"}}]) == (
            "manifest unknown"
        )

    def test_recovered_error_ignored(self):
        """Only the final line decides the outcome."""
        assert scan_stream_for_error([{"error": "retrying"}, {"status": "Done"}]) is None

    def test_empty_stream(self):
        """An empty stream is an error."""
        assert scan_stream_for_error([]) == "engine returned an empty progress stream"


class TestCleanup:
    """Tests for cleanup."""

    def test_no_containers(self, reconciler, mock_engine):
        """Cleanup with nothing to remove is a no-op."""
        assert reconciler.cleanup("org__app") == 0
        mock_engine.stop_container.assert_not_called()
        mock_engine.remove_container.assert_not_called()

    def test_lists_by_ownership_labels(self, reconciler, mock_engine):
        """Only the project's managed containers are listed."""
        reconciler.cleanup("org__app")
        mock_engine.list_containers.assert_called_once_with(LabelSelector(project_key="org__app"))

    def test_stops_active_then_removes_all(self, reconciler, mock_engine):
        """Running and restarting containers are stopped before removal."""
        mock_engine.list_containers.return_value = [
            ManagedContainer("c1", "running"),
            ManagedContainer("c2", "exited"),
            ManagedContainer("c3", "restarting"),
        ]

        assert reconciler.cleanup("org__app") == 3

        assert mock_engine.stop_container.call_args_list == [call("c1", 5), call("c3", 5)]
        assert mock_engine.remove_container.call_args_list == [call("c1"), call("c2"), call("c3")]

    def test_stop_failure_aborts(self, reconciler, mock_engine):
        """A failed stop leaves the container in place and aborts."""
        mock_engine.list_containers.return_value = [ManagedContainer("c1", "running")]
        mock_engine.stop_container.side_effect = ContainerEngineError("stop", "timeout", "c1")

        with pytest.raises(ContainerEngineError):
            reconciler.cleanup("org__app")
        mock_engine.remove_container.assert_not_called()

    def test_idempotent(self, reconciler, mock_engine):
        """A second cleanup finds nothing left."""
        mock_engine.list_containers.side_effect = [[ManagedContainer("c1", "exited")], []]

        assert reconciler.cleanup("org__app") == 1
        assert reconciler.cleanup("org__app") == 0


class TestApply:
    """Tests for apply."""

    def test_image_present_not_pulled(self, reconciler, mock_engine, artifact):
        """A local image is used as is."""
        assert reconciler.apply(artifact) == "c-new"

        mock_engine.pull_image.assert_not_called()
        mock_engine.start_container.assert_called_once_with("c-new")

    def test_container_spec(self, reconciler, mock_engine, artifact):
        """Command, ports, binds and labels come from the exec spec."""
        reconciler.apply(artifact)

        spec = mock_engine.create_container.call_args[0][0]
        assert spec.image_id == "sha256:abc"
        assert spec.command == ["/app", "--verbose"]
        assert spec.exposed_ports == [(8080, "tcp")]
        assert spec.port_bindings == {"8080/tcp": ("0.0.0.0", 8080)}
        assert spec.binds == ["/srv/data:/data:ro"]
        assert spec.labels == {
            "managed-by": "echocicd",
            "echo-project": "org__app",
            "domain:app.example.com": "8080",
        }

    def test_no_domain_no_domain_label(self, reconciler, mock_engine, artifact):
        """Without a domain hint only ownership labels are set."""
        reconciler.apply(replace(artifact, exec_spec=ExecSpec()))

        spec = mock_engine.create_container.call_args[0][0]
        assert spec.labels == {"managed-by": "echocicd", "echo-project": "org__app"}
        assert spec.command == ["/app"]

    def test_missing_image_pulled_with_registry_auth(self, reconciler, mock_engine, artifact):
        """An absent image is pulled with the artifact registry's auth."""
        mock_engine.inspect_image.side_effect = [
            None,
            ImageInfo(image_id="sha256:abc", default_command=["/app"]),
        ]
        mock_engine.pull_image.return_value = iter([{"status": "Downloaded"}])

        reconciler.apply(artifact, {"registry.example.com": "token", "other": "nope"})

        mock_engine.pull_image.assert_called_once_with(artifact.image_reference, "token")
        mock_engine.start_container.assert_called_once_with("c-new")

    def test_pull_stream_error(self, reconciler, mock_engine, artifact):
        """An error on the pull stream makes the image unavailable."""
        mock_engine.inspect_image.return_value = None
        mock_engine.pull_image.return_value = iter([{"error": "unauthorized"}])

        with pytest.raises(ImageUnavailableError, match="unauthorized"):
            reconciler.apply(artifact)
        mock_engine.create_container.assert_not_called()

    def test_pull_call_error(self, reconciler, mock_engine, artifact):
        """A failed pull call makes the image unavailable."""
        mock_engine.inspect_image.return_value = None
        mock_engine.pull_image.side_effect = ContainerEngineError("pull", "no route")

        with pytest.raises(ImageUnavailableError, match="no route"):
            reconciler.apply(artifact)

    def test_image_still_absent_after_pull(self, reconciler, mock_engine, artifact):
        """A pull that leaves no image is an error."""
        mock_engine.inspect_image.return_value = None
        mock_engine.pull_image.return_value = iter([{"status": "Done"}])

        with pytest.raises(ImageUnavailableError, match="not present after pull"):
            reconciler.apply(artifact)

    def test_image_without_config(self, reconciler, mock_engine, artifact):
        """An image with no config cannot be started."""
        mock_engine.inspect_image.return_value = ImageInfo("sha256:abc", default_command=None)

        with pytest.raises(ContainerEngineError, match="has no config"):
            reconciler.apply(artifact)
        mock_engine.create_container.assert_not_called()

    def test_create_warnings_not_started(self, reconciler, mock_engine, artifact):
        """A container created with warnings is left unstarted."""
        mock_engine.create_container.return_value = CreatedContainer(
            container_id="c-warn", warnings=["memory limit ignored"]
        )

        with pytest.raises(CreateWarningError) as exc_info:
            reconciler.apply(artifact)
        assert exc_info.value.container_id == "c-warn"
        assert exc_info.value.warnings == ["memory limit ignored"]
        mock_engine.start_container.assert_not_called()


class TestReconcile:
    """Tests for reconcile."""

    def test_cleanup_then_apply(self, reconciler, mock_engine, artifact):
        """Old containers go before the new one is created."""
        calls = MagicMock()
        mock_engine.remove_container = calls.remove
        mock_engine.create_container = calls.create
        calls.create.return_value = CreatedContainer("c-new")
        mock_engine.list_containers.return_value = [ManagedContainer("c-old", "exited")]

        assert reconciler.reconcile(artifact) == "c-new"
        assert [name for name, _, _ in calls.mock_calls] == ["remove", "create"]
        calls.remove.assert_called_once_with("c-old")

    def test_cleanup_failure_skips_apply(self, reconciler, mock_engine, artifact):
        """Apply is not attempted when cleanup fails."""
        mock_engine.list_containers.side_effect = ContainerEngineError("list", "daemon down")

        with pytest.raises(ContainerEngineError):
            reconciler.reconcile(artifact)
        mock_engine.inspect_image.assert_not_called()
        mock_engine.create_container.assert_not_called()
