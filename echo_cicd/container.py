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

"""Dependency Injector container for echo-cicd.

Settings come from :func:`common.config.load_config`; the CLI overrides the
``settings`` provider with its merged configuration before anything else is
resolved.
"""
# pylint: disable=c-extension-no-member

import logging

from dependency_injector import containers, providers

from common.config import EchoCicdConfig, load_config
from core.builds.services import BuildEventStore
from core.deploy.services import ContainerReconciler
from core.webhook.services import WebhookIngestor
from core.webhook.value_objects import AllowedRefTable
from infra.builder.docker_build_pipeline import DockerBuildPipeline
from infra.docker.docker_engine import DockerContainerEngine, create_docker_client
from infra.git.repository_cloner import GitRepositoryCloner
from infra.store.etcd_store import EtcdCoordinationStore
from infra.store.in_memory_store import InMemoryCoordinationStore
from orchestrator.agent.deploy_agent import DeployAgent
from orchestrator.webhook.processor import WebhookProcessor

logger = logging.getLogger(__name__)


def _create_coordination_store(settings: EchoCicdConfig):
    """Factory function to create the coordination store based on configuration.

    Returns:
        InMemoryCoordinationStore or EtcdCoordinationStore based on config.
    """
    if settings.store.backend == "memory":
        logger.warning("Using in-memory coordination store, builds are not shared")
        return InMemoryCoordinationStore()
    return EtcdCoordinationStore(endpoints=settings.store.endpoints)


def _load_allowed_refs(settings: EchoCicdConfig) -> AllowedRefTable:
    """Load the allow-list; without one every push is rejected."""
    path = settings.webhook.allowed_refs_file
    if not path:
        logger.warning("No allowed refs file configured, all pushes will be rejected")
        return AllowedRefTable()
    table = AllowedRefTable.from_file(path)
    logger.info("Loaded allowed refs for %d repositories from %s", len(table), path)
    return table


class Container(containers.DeclarativeContainer):  # pylint: disable=R0903
    """Application container.

    The coordination store backend is chosen by ``[store] backend``:
    ``etcd`` for deployments, ``memory`` for development and tests.
    """

    settings = providers.Singleton(load_config)

    # --- Coordination store ---
    coordination_store = providers.Singleton(_create_coordination_store, settings=settings)

    build_event_store = providers.Singleton(
        BuildEventStore,
        store=coordination_store,
        namespace=settings.provided.store.namespace,
    )

    # --- Container engine ---
    docker_client = providers.Singleton(
        create_docker_client,
        docker_host=settings.provided.docker.host,
    )

    container_engine = providers.Singleton(
        DockerContainerEngine,
        api_client=docker_client,
    )

    reconciler = providers.Factory(
        ContainerReconciler,
        engine=container_engine,
    )

    deploy_agent = providers.Singleton(
        DeployAgent,
        build_store=build_event_store,
        reconciler=reconciler,
        registry_auth=settings.provided.agent.registry_auth,
    )

    # --- Webhook and build ---
    allowed_refs = providers.Singleton(_load_allowed_refs, settings=settings)

    webhook_ingestor = providers.Singleton(
        WebhookIngestor,
        allowed_refs=allowed_refs,
        capacity=settings.provided.webhook.queue_capacity,
    )

    repository_cloner = providers.Singleton(GitRepositoryCloner)

    build_pipeline = providers.Singleton(
        DockerBuildPipeline,
        engine=container_engine,
        builders_dir=settings.provided.webhook.builders_dir,
        registry=settings.provided.webhook.registry,
        push_auth=settings.provided.webhook.push_auth,
    )

    webhook_processor = providers.Singleton(
        WebhookProcessor,
        ingestor=webhook_ingestor,
        cloner=repository_cloner,
        pipeline=build_pipeline,
        build_store=build_event_store,
        deploy_config_name=settings.provided.webhook.deploy_config_name,
    )


# Singleton container instance shared across app, CLI and dependencies
container = Container()

__all__ = ["Container", "container"]
