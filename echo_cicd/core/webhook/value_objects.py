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

"""Value objects for webhook ingestion."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Union

from .exceptions import AllowedRefsConfigError


@dataclass(frozen=True)
class AllowedRefTable:
    """Repository full name (or ``*``) to the refs that may trigger a build.

    Attributes:
        entries: Immutable mapping of repository to permitted refs.
    """

    entries: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    WILDCARD: ClassVar[str] = "*"

    @classmethod
    def from_mapping(cls, data: Any, source: str = "<mapping>") -> "AllowedRefTable":
        """Build the table from decoded JSON.

        Raises:
            AllowedRefsConfigError: If ``data`` is not an object of string lists.
        """
        if not isinstance(data, dict):
            raise AllowedRefsConfigError(source, "top level must be a JSON object")

        entries: Dict[str, FrozenSet[str]] = {}
        for repository, refs in data.items():
            if not isinstance(refs, list) or not all(isinstance(ref, str) for ref in refs):
                raise AllowedRefsConfigError(
                    source, f"refs for {repository} must be a list of strings"
                )
            entries[repository] = frozenset(refs)
        return cls(entries=entries)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "AllowedRefTable":
        """Load the table from a JSON file.

        Raises:
            AllowedRefsConfigError: If the file is unreadable or invalid.
        """
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except OSError as exc:
            raise AllowedRefsConfigError(str(path), f"cannot read file: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise AllowedRefsConfigError(str(path), f"invalid JSON: {exc}") from exc
        return cls.from_mapping(data, source=str(path))

    def is_allowed(self, repository: str, ref: str) -> bool:
        """Check the exact repository entry, then the wildcard entry."""
        if ref in self.entries.get(repository, frozenset()):
            return True
        return ref in self.entries.get(self.WILDCARD, frozenset())

    def __len__(self) -> int:
        return len(self.entries)
