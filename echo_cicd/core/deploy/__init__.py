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

"""Container deployment domain module.

This module contains the reconciliation logic that turns a published build
into a running, labelled container.
"""

from core.deploy.entities import ContainerSpec, CreatedContainer, ImageInfo, ManagedContainer
from core.deploy.exceptions import (
    ContainerEngineError,
    CreateWarningError,
    DeployDomainError,
    ImageUnavailableError,
)
from core.deploy.interfaces import ContainerEnginePort
from core.deploy.value_objects import LabelSelector, StopTimeout

__all__ = [
    "ContainerSpec",
    "CreatedContainer",
    "ImageInfo",
    "ManagedContainer",
    "ContainerEngineError",
    "CreateWarningError",
    "DeployDomainError",
    "ImageUnavailableError",
    "ContainerEnginePort",
    "LabelSelector",
    "StopTimeout",
]
