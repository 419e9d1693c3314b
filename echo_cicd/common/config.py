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

"""Configuration loader for echo-cicd.

Example ``echo_cicd.ini``::

    [store]
    backend = etcd
    endpoints = http://etcd-1:2379, http://etcd-2:2379
    namespace = echocicd

    [docker]
    host = unix:///var/run/docker.sock

    [webhook]
    bind_address = 0.0.0.0:15342
    allowed_refs_file = /etc/echo_cicd/allowed-refs.json
    queue_capacity = 100
    builders_dir = /builders
    registry = registry.example.com

    [agent]
    registry_auth.registry.example.com = eyJ1c2VybmFtZSI6...
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

CONFIG_PATH_ENV = "ECHO_CICD_CONFIG_PATH"

STORE_BACKENDS = ("etcd", "memory")
REGISTRY_AUTH_PREFIX = "registry_auth."


@dataclass
class StoreConfig:
    """Coordination store configuration."""
    backend: str = "etcd"
    endpoints: List[str] = field(default_factory=lambda: ["http://localhost:2379"])
    namespace: str = "echocicd"


@dataclass
class DockerConfig:
    """Docker daemon connection; ``None`` uses the environment."""
    host: Optional[str] = None


@dataclass
class WebhookConfig:
    """Webhook server and build configuration."""
    bind_address: str = "0.0.0.0:15342"
    allowed_refs_file: Optional[str] = None
    queue_capacity: int = 100
    builders_dir: str = "/builders"
    registry: Optional[str] = None
    push_auth: Optional[str] = None
    deploy_config_name: str = ".deploy-config.toml"


@dataclass
class AgentConfig:
    """Deploy agent configuration."""
    registry_auth: Dict[str, str] = field(default_factory=dict)


@dataclass
class EchoCicdConfig:
    """echo-cicd configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    docker: DockerConfig = field(default_factory=DockerConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)


def split_endpoints(raw: str) -> List[str]:
    """Split a comma separated endpoint list, dropping blanks."""
    return [endpoint.strip() for endpoint in raw.split(",") if endpoint.strip()]


def parse_bind_address(bind_address: str) -> Tuple[str, int]:
    """Split ``host:port`` into ``(host, port)``.

    Raises:
        ValueError: If the port is missing or not a number.
    """
    host, sep, port = bind_address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Bind address must be host:port, got {bind_address}")
    return host or "0.0.0.0", int(port)


def load_config(config_path: Optional[str] = None) -> EchoCicdConfig:
    """Load configuration from an INI file.

    Args:
        config_path: Path to configuration file. If None, uses the
                    ECHO_CICD_CONFIG_PATH environment variable; defaults are
                    returned when neither is set.

    Returns:
        EchoCicdConfig instance.

    Raises:
        FileNotFoundError: If a named config file does not exist.
        ValueError: If config is invalid.
    """
    if config_path is None:
        config_path = os.getenv(CONFIG_PATH_ENV)
    if not config_path:
        return EchoCicdConfig()

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # registry names are case sensitive
    parser.read(config_file)

    config = EchoCicdConfig()

    if parser.has_section("store"):
        backend = parser.get("store", "backend", fallback=config.store.backend)
        if backend not in STORE_BACKENDS:
            raise ValueError(
                f"store backend must be one of {', '.join(STORE_BACKENDS)}, got {backend}"
            )
        config.store.backend = backend
        if parser.has_option("store", "endpoints"):
            config.store.endpoints = split_endpoints(parser.get("store", "endpoints"))
        config.store.namespace = parser.get("store", "namespace", fallback=config.store.namespace)

    if parser.has_section("docker"):
        config.docker.host = parser.get("docker", "host", fallback=None) or None

    if parser.has_section("webhook"):
        section = "webhook"
        webhook = config.webhook
        webhook.bind_address = parser.get(section, "bind_address", fallback=webhook.bind_address)
        parse_bind_address(webhook.bind_address)
        webhook.allowed_refs_file = parser.get(section, "allowed_refs_file", fallback=None)
        if parser.has_option(section, "queue_capacity"):
            webhook.queue_capacity = parser.getint(section, "queue_capacity")
            if webhook.queue_capacity < 1:
                raise ValueError("webhook queue_capacity must be positive")
        webhook.builders_dir = parser.get(section, "builders_dir", fallback=webhook.builders_dir)
        webhook.registry = parser.get(section, "registry", fallback=None) or None
        webhook.push_auth = parser.get(section, "push_auth", fallback=None) or None
        webhook.deploy_config_name = parser.get(
            section, "deploy_config_name", fallback=webhook.deploy_config_name
        )

    if parser.has_section("agent"):
        for option, value in parser.items("agent"):
            if option.startswith(REGISTRY_AUTH_PREFIX):
                config.agent.registry_auth[option[len(REGISTRY_AUTH_PREFIX):]] = value

    return config
