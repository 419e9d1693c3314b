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

"""Builds a project image from its deploy config using a shared builder.

A builder is a directory under the builders root holding a ``Dockerfile``
(and optionally ``args.schema.json``). Its files are copied over the
project's working tree and the merged tree is built with the builder
arguments passed as the ``BUILDER_ARGS`` build argument.
"""

import json
import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional, Union

from jsonschema import SchemaError, ValidationError
from jsonschema.validators import validator_for

from api.logging_utils import log_secure_info
from core.builds.entities import PublishRequest
from core.deploy.exceptions import ContainerEngineError
from core.deploy.services import scan_stream_for_error
from core.pipeline.exceptions import (
    BuilderArgsInvalidError,
    BuilderNotFoundError,
    BuildPipelineError,
    ImageBuildError,
)
from infra.builder.deploy_config import BuilderSection, DeployConfig, load_deploy_config
from infra.docker.docker_engine import DockerContainerEngine
from infra.git.repository_cloner import resolve_head_hash

logger = logging.getLogger(__name__)

ARGS_SCHEMA_FILE = "args.schema.json"
DOCKERIGNORE_FILE = ".dockerignore"
BUILDER_ARGS_BUILD_ARG = "BUILDER_ARGS"
PUSH_AUTH_ENV = "PUSH_AUTH"
LATEST_TAG = "latest"


def _format_violation(error: ValidationError) -> str:
    message = error.message
    if error.absolute_path:
        message += f" at {'/'.join(str(p) for p in error.absolute_path)}"
    return message


def validate_builder_args(builder_dir: Path, builder: BuilderSection) -> None:
    """Validate builder args against the builder's schema, if it ships one.

    Raises:
        BuilderArgsInvalidError: If the args violate the schema or the
            schema itself is invalid.
        BuildPipelineError: If the schema file exists but cannot be read.
    """
    schema_path = builder_dir / ARGS_SCHEMA_FILE
    if not schema_path.exists():
        logger.info("No args schema at %s, skipping validation", schema_path)
        return

    try:
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise BuildPipelineError(f"could not load argument schema {schema_path}: {exc}") from exc

    validator_cls = validator_for(schema)
    try:
        validator_cls.check_schema(schema)
    except SchemaError as exc:
        raise BuilderArgsInvalidError(
            builder.id, [f"invalid schema: {exc.message}"]
        ) from exc

    violations = [
        _format_violation(error)
        for error in sorted(validator_cls(schema).iter_errors(builder.args), key=str)
    ]
    if violations:
        raise BuilderArgsInvalidError(builder.id, violations)


def image_repository(name: str, registry: Optional[str] = None) -> str:
    """Image repository for ``name``, prefixed with the registry if any."""
    if registry:
        return f"{registry}/{name}"
    return name


class DockerBuildPipeline:
    """Build pipeline over the Docker engine."""

    def __init__(
        self,
        engine: DockerContainerEngine,
        builders_dir: Union[str, Path],
        registry: Optional[str] = None,
        push_auth: Optional[str] = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            engine: Docker adapter used to build, tag and push.
            builders_dir: Directory holding one sub-directory per builder.
            registry: Registry to push to; images stay local when empty.
            push_auth: Encoded registry auth; ``PUSH_AUTH`` is used when unset.
        """
        self._engine = engine
        self._builders_dir = Path(builders_dir)
        self._registry = registry or None
        self._push_auth = push_auth

    def build_in_dir(self, directory: Path, config_file_name: str) -> PublishRequest:
        config = load_deploy_config(Path(directory) / config_file_name)
        return self.build_from_config(config, Path(directory))

    def build_from_config(self, config: DeployConfig, working_dir: Path) -> PublishRequest:
        """Build, and push if a registry is set, the project in ``working_dir``.

        Returns:
            Request describing the artifact to publish.

        Raises:
            BuildPipelineError: If any step fails.
        """
        version_hash = resolve_head_hash(working_dir)

        builder_dir = self._locate_builder(config.builder.id)
        validate_builder_args(builder_dir, config.builder)
        self._prepare_context(builder_dir, working_dir, config.builder.exclude)

        repository = image_repository(config.global_.name, self._registry)
        logger.info("Tag prepared: %s", repository)

        self._build(working_dir, repository, version_hash, json.dumps(config.builder.args))
        if self._registry:
            self._push(repository)

        return PublishRequest.for_repository(
            config.global_.repo,
            display_name=config.global_.name,
            version_hash=version_hash,
            image_reference=f"{repository}:{version_hash}",
            registry=self._registry or "",
            exec_spec=config.exec_.to_exec_spec(),
        )

    def _locate_builder(self, builder_id: str) -> Path:
        builder_dir = self._builders_dir / builder_id
        logger.info("Looking for builder: id=%s, path=%s", builder_id, builder_dir)
        if not builder_dir.is_dir():
            raise BuilderNotFoundError(builder_id, str(builder_dir))
        return builder_dir

    @staticmethod
    def _prepare_context(builder_dir: Path, working_dir: Path, exclude: List[str]) -> None:
        """Overlay the builder onto the project and merge ``.dockerignore``.

        The merged ignore file lists builder entries, then project entries,
        then the deploy config's ``exclude`` entries.
        """
        project_ignore = working_dir / DOCKERIGNORE_FILE
        project_content = (
            project_ignore.read_text(encoding="utf-8") if project_ignore.is_file() else ""
        )

        try:
            for entry in builder_dir.iterdir():
                target = working_dir / entry.name
                if entry.is_dir():
                    shutil.copytree(entry, target, dirs_exist_ok=True)
                else:
                    shutil.copy2(entry, target)
        except OSError as exc:
            raise BuildPipelineError(
                f"failed to copy from builder {builder_dir} to working dir: {exc}"
            ) from exc

        builder_ignore = builder_dir / DOCKERIGNORE_FILE
        builder_content = (
            builder_ignore.read_text(encoding="utf-8") if builder_ignore.is_file() else ""
        )
        sections = [builder_content.strip("\n"), project_content.strip("\n"), "\n".join(exclude)]
        merged = "\n".join(section for section in sections if section)
        project_ignore.write_text(merged + "\n" if merged else "", encoding="utf-8")

    def _build(self, working_dir: Path, repository: str, version_hash: str, args_json: str) -> None:
        versioned = f"{repository}:{version_hash}"
        try:
            error = scan_stream_for_error(
                self._engine.build_image(
                    str(working_dir),
                    versioned,
                    {BUILDER_ARGS_BUILD_ARG: args_json},
                )
            )
            if error:
                raise ImageBuildError("build", versioned, error)
            self._engine.tag_image(versioned, repository, LATEST_TAG)
        except ContainerEngineError as exc:
            raise ImageBuildError("build", versioned, exc.reason) from exc
        logger.info("Built image %s", versioned)

    def _push(self, repository: str) -> None:
        auth = self._push_auth
        if auth is None:
            auth = os.environ.get(PUSH_AUTH_ENV, "")
        log_secure_info("info", f"Pushing {repository} (auth supplied: {bool(auth)})")
        try:
            error = scan_stream_for_error(self._engine.push_image(repository, auth))
        except ContainerEngineError as exc:
            raise ImageBuildError("push", repository, exc.reason) from exc
        if error:
            raise ImageBuildError("push", repository, error)
        logger.info("Pushed image %s", repository)
