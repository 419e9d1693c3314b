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

"""Command line entry point.

Usage:
    echo-cicd --etcd-endpoints http://etcd:2379 build --registry registry.example.com
    echo-cicd webhook-server --allowed-refs-file allowed-refs.json
    echo-cicd agent --registry-auth registry.example.com=<token>
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dependency_injector import providers

from api.logging_utils import configure_logging
from common.config import EchoCicdConfig, load_config, parse_bind_address, split_endpoints
from core.builds.exceptions import BuildStoreError
from core.deploy.exceptions import DeployDomainError
from core.pipeline.exceptions import BuildPipelineError
from core.webhook.exceptions import AllowedRefsConfigError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def parse_registry_auth(values: List[str]) -> Dict[str, str]:
    """Parse ``REGISTRY=TOKEN`` pairs.

    Raises:
        ValueError: If a pair has no ``=`` or an empty registry.
    """
    auths: Dict[str, str] = {}
    for value in values:
        registry, sep, token = value.partition("=")
        if not sep or not registry:
            raise ValueError(f"Registry auth must be REGISTRY=TOKEN, got {value}")
        auths[registry] = token
    return auths


def _add_build_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--registry", help="Registry to push built images to")
    parser.add_argument("--push-auth", help="Encoded registry auth used for pushes")
    parser.add_argument("--docker-host", help="Docker daemon URL")
    parser.add_argument("--builder-dir", help="Directory holding the builders (default: /builders)")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="echo-cicd",
        description="Build images from git pushes and deploy them as containers",
    )
    parser.add_argument(
        "--etcd-endpoints",
        action="append",
        default=[],
        help="etcd endpoint(s), repeatable or comma separated",
    )
    parser.add_argument("--working-dir", default=".", help="Project working directory")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", help="INI configuration file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build the project in the working directory")
    _add_build_options(build)
    build.add_argument(
        "--deploy-config",
        default="deploy-config.toml",
        help="Deploy config file, relative to the working directory (default: deploy-config.toml)",
    )

    webhook = subparsers.add_parser("webhook-server", help="Run the push webhook server")
    _add_build_options(webhook)
    webhook.add_argument("--bind-address", help="host:port to listen on (default: 0.0.0.0:15342)")
    webhook.add_argument("--allowed-refs-file", help="JSON allow-list of refs per repository")
    webhook.add_argument("--queue-capacity", type=int, help="Maximum queued push events")

    agent = subparsers.add_parser("agent", help="Deploy every published build locally")
    agent.add_argument("--docker-host", help="Docker daemon URL")
    agent.add_argument(
        "--registry-auth",
        action="append",
        default=[],
        metavar="REGISTRY=TOKEN",
        help="Encoded auth for pulls from REGISTRY, repeatable",
    )

    return parser


def apply_overrides(settings: EchoCicdConfig, args: argparse.Namespace) -> EchoCicdConfig:
    """Merge command line options over file settings."""
    endpoints: List[str] = []
    for value in args.etcd_endpoints:
        endpoints.extend(split_endpoints(value))
    if endpoints:
        settings.store.endpoints = endpoints

    if getattr(args, "docker_host", None):
        settings.docker.host = args.docker_host

    webhook = settings.webhook
    if getattr(args, "registry", None):
        webhook.registry = args.registry
    if getattr(args, "push_auth", None):
        webhook.push_auth = args.push_auth
    if getattr(args, "builder_dir", None):
        webhook.builders_dir = args.builder_dir
    if getattr(args, "bind_address", None):
        parse_bind_address(args.bind_address)
        webhook.bind_address = args.bind_address
    if getattr(args, "allowed_refs_file", None):
        webhook.allowed_refs_file = args.allowed_refs_file
    if getattr(args, "queue_capacity", None) is not None:
        if args.queue_capacity < 1:
            raise ValueError("queue capacity must be positive")
        webhook.queue_capacity = args.queue_capacity

    if getattr(args, "registry_auth", None):
        settings.agent.registry_auth.update(parse_registry_auth(args.registry_auth))

    return settings


def run_build(container, args: argparse.Namespace) -> int:
    """Build, push and publish the project in the working directory."""
    working_dir = Path(args.working_dir).resolve()
    pipeline = container.build_pipeline()
    request = pipeline.build_in_dir(working_dir, args.deploy_config)
    artifact = container.build_event_store().publish_request(request)
    logger.info(
        "Published build: project=%s, tag=%s",
        artifact.project_key,
        artifact.image_reference,
    )
    return EXIT_OK


def run_webhook_server(container, settings: EchoCicdConfig) -> int:
    """Serve the webhook endpoint until interrupted."""
    import uvicorn  # pylint: disable=import-outside-toplevel

    if not settings.webhook.allowed_refs_file:
        raise AllowedRefsConfigError("<none>", "an allowed refs file is required")
    # Fail on a bad allow-list before binding the port.
    container.allowed_refs()

    from main import app  # pylint: disable=import-outside-toplevel

    host, port = parse_bind_address(settings.webhook.bind_address)
    logger.info("Starting webhook server on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)
    return EXIT_OK


def run_agent(container) -> int:
    """Reconcile published builds until interrupted."""
    agent = container.deploy_agent()
    try:
        asyncio.run(agent.run())
    except KeyboardInterrupt:
        logger.info("Agent interrupted")
    finally:
        container.coordination_store().close()
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(debug=args.debug, force=True)

    from container import container  # pylint: disable=import-outside-toplevel

    try:
        settings = apply_overrides(load_config(args.config), args)
        container.settings.override(providers.Object(settings))

        if args.command == "build":
            return run_build(container, args)
        if args.command == "webhook-server":
            return run_webhook_server(container, settings)
        return run_agent(container)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Configuration error: %s", exc)
    except AllowedRefsConfigError as exc:
        logger.error("Configuration error: %s", exc.message)
    except BuildPipelineError as exc:
        logger.error("Build failed: %s", exc.message)
    except BuildStoreError as exc:
        logger.error("Coordination store error: %s", exc.message)
    except DeployDomainError as exc:
        logger.error("Container engine error: %s", exc.message)
    return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
