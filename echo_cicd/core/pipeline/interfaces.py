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

"""Port interfaces (Protocols) for the build pipeline."""

from pathlib import Path
from typing import Protocol

from core.builds.entities import PublishRequest


class BuildPipelinePort(Protocol):
    """Port for turning a checked-out project into a published image."""

    def build_in_dir(self, directory: Path, config_file_name: str) -> PublishRequest:
        """Build and push the project in ``directory``.

        Args:
            directory: Git working tree containing the deploy config.
            config_file_name: Deploy config file name relative to ``directory``.

        Returns:
            Request describing the artifact to publish.

        Raises:
            BuildPipelineError: If any build step fails.
        """
        ...


class RepositoryClonerPort(Protocol):
    """Port for fetching source repositories."""

    def clone(self, url: str, destination: Path) -> None:
        """Clone ``url`` into the empty directory ``destination``.

        Raises:
            RepositoryCloneError: If the clone fails.
        """
        ...
