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

"""Port interfaces (Protocols) for the coordination store.

These define the contracts that infrastructure implementations must satisfy.
"""

from typing import Callable, Dict, Iterator, Protocol, Tuple

from .entities import StoreEvent

WatchHandle = Tuple[Iterator[StoreEvent], Callable[[], None]]


class CoordinationStore(Protocol):
    """Port for a distributed key/value store with prefix watches.

    Implementations must be safe for concurrent use from several threads.
    """

    def put_many(self, entries: Dict[str, str]) -> None:
        """Write all entries as a single atomic batch.

        Args:
            entries: Mapping of full key to value, written in order.

        Raises:
            StoreUnavailableError: If the batch could not be committed.
        """
        ...

    def get_prefix(self, prefix: str) -> Dict[str, str]:
        """Read every entry whose key starts with ``prefix``.

        Args:
            prefix: Key prefix to range over.

        Returns:
            Mapping of full key to value; empty when nothing matches.

        Raises:
            StoreUnavailableError: If the store could not be read.
        """
        ...

    def watch_prefix(self, prefix: str) -> WatchHandle:
        """Subscribe to changes of keys starting with ``prefix``.

        Args:
            prefix: Key prefix to watch.

        Returns:
            Tuple of a blocking event iterator and a cancel callable. Calling
            cancel ends the iterator and releases the subscription.

        Raises:
            StoreUnavailableError: If the subscription could not be opened.
        """
        ...

    def close(self) -> None:
        """Release the store connection."""
        ...
