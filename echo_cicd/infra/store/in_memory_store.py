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

"""In-memory implementation of CoordinationStore for dev/test."""

import queue
import threading
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from core.builds.entities import StoreEvent
from core.builds.exceptions import StoreUnavailableError
from core.builds.interfaces import WatchHandle
from core.builds.value_objects import EventKind

_Subscriber = Tuple[str, "queue.Queue[Optional[StoreEvent]]"]


class InMemoryCoordinationStore:
    """Thread-safe key/value store with prefix watches.

    Batches are applied under one lock, and their events are fanned out to
    watchers in key insertion order, mirroring a store transaction.
    """

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._subscribers: List[_Subscriber] = []
        self._closed = False

    def put_many(self, entries: Mapping[str, str]) -> None:
        """Write all entries atomically and notify matching watchers."""
        with self._lock:
            self._ensure_open("put")
            events = []
            for key, value in entries.items():
                self._data[key] = value
                events.append(StoreEvent(key=key, value=value, kind=EventKind.PUT))
            self._publish(events)

    def delete(self, key: str) -> bool:
        """Delete a key and notify watchers.

        Returns:
            True if the key existed.
        """
        with self._lock:
            self._ensure_open("delete")
            if key not in self._data:
                return False
            del self._data[key]
            self._publish([StoreEvent(key=key, value="", kind=EventKind.DELETE)])
            return True

    def get_prefix(self, prefix: str) -> Dict[str, str]:
        """Return a snapshot of every entry under ``prefix``."""
        with self._lock:
            self._ensure_open("get")
            return {
                key: value
                for key, value in self._data.items()
                if key.startswith(prefix)
            }

    def watch_prefix(self, prefix: str) -> WatchHandle:
        """Subscribe to changes under ``prefix`` made after this call."""
        events: "queue.Queue[Optional[StoreEvent]]" = queue.Queue()
        subscriber = (prefix, events)
        with self._lock:
            self._ensure_open("watch")
            self._subscribers.append(subscriber)

        def iterate() -> Iterator[StoreEvent]:
            while True:
                event = events.get()
                if event is None:
                    return
                yield event

        def cancel() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)
            events.put(None)

        return iterate(), cancel

    def close(self) -> None:
        """End every open watch and refuse further calls."""
        with self._lock:
            self._closed = True
            subscribers, self._subscribers = self._subscribers, []
        for _, events in subscribers:
            events.put(None)

    def _publish(self, events: List[StoreEvent]) -> None:
        for prefix, subscriber_queue in self._subscribers:
            for event in events:
                if event.key.startswith(prefix):
                    subscriber_queue.put(event)

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise StoreUnavailableError(operation, "store is closed")
