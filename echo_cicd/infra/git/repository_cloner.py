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

"""Git access via GitPython."""

from pathlib import Path

from git import Repo
from git.exc import GitError, InvalidGitRepositoryError, NoSuchPathError

from api.logging_utils import log_secure_info
from core.pipeline.exceptions import RepositoryCloneError


class GitRepositoryCloner:
    """Clones source repositories for the webhook consumer."""

    def clone(self, url: str, destination: Path) -> None:
        log_secure_info("info", f"Cloning {url} into {destination}")
        try:
            Repo.clone_from(url, str(destination))
        except GitError as exc:
            raise RepositoryCloneError(url, str(exc)) from exc


def resolve_head_hash(directory: Path) -> str:
    """Return the commit hash ``HEAD`` points at in ``directory``.

    Raises:
        RepositoryCloneError: If ``directory`` is not a git working tree or
            has no commits.
    """
    try:
        repo = Repo(str(directory))
        return repo.head.commit.hexsha
    except (InvalidGitRepositoryError, NoSuchPathError) as exc:
        raise RepositoryCloneError(str(directory), "is not a git repo") from exc
    except (GitError, ValueError) as exc:
        raise RepositoryCloneError(str(directory), f"could not get head: {exc}") from exc
