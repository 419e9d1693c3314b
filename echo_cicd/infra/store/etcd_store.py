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

"""etcd implementation of CoordinationStore over the v3 JSON gateway.

The gateway speaks base64 for keys and values. ``etcd3gw`` decodes reads
and watch events for us; transaction bodies are encoded here.
"""

import base64
import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence
from urllib.parse import urlsplit

import requests
from etcd3gw.client import Etcd3Client
from etcd3gw.exceptions import Etcd3Exception

from core.builds.entities import StoreEvent
from core.builds.exceptions import StoreUnavailableError
from core.builds.interfaces import WatchHandle
from core.builds.value_objects import EventKind

logger = logging.getLogger(__name__)

DEFAULT_PORT = 2379

ClientFactory = Callable[[str, int, str], Any]

_STORE_ERRORS = (Etcd3Exception, requests.RequestException)


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _text(raw: Any) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return str(raw)


def _default_client_factory(host: str, port: int, protocol: str) -> Etcd3Client:
    return Etcd3Client(host=host, port=port, protocol=protocol)


def parse_endpoint(endpoint: str) -> Dict[str, Any]:
    """Split ``http://host:port`` (scheme and port optional) for the client.

    Raises:
        ValueError: If the endpoint has no host or an unsupported scheme.
    """
    raw = endpoint.strip()
    if "://" not in raw:
        raw = f"http://{raw}"
    parts = urlsplit(raw)
    if parts.scheme not in ("http", "https"):
        raise ValueError(f"Unsupported etcd endpoint scheme: {endpoint}")
    if not parts.hostname:
        raise ValueError(f"etcd endpoint has no host: {endpoint}")
    return {
        "host": parts.hostname,
        "port": parts.port or DEFAULT_PORT,
        "protocol": parts.scheme,
    }


class EtcdCoordinationStore:
    """Coordination store backed by an etcd cluster."""

    def __init__(
        self,
        endpoints: Sequence[str],
        client_factory: ClientFactory = _default_client_factory,
    ) -> None:
        """Connect to the first endpoint that answers a status call.

        Args:
            endpoints: Candidate endpoints such as ``http://etcd:2379``.
            client_factory: Builds a gateway client from host, port, protocol.

        Raises:
            StoreUnavailableError: If no endpoint answers.
        """
        if not endpoints:
            raise StoreUnavailableError("connect", "no etcd endpoints configured")
        self._client = self._connect(endpoints, client_factory)

    @staticmethod
    def _connect(endpoints: Sequence[str], client_factory: ClientFactory) -> Any:
        failures: List[str] = []
        for endpoint in endpoints:
            try:
                target = parse_endpoint(endpoint)
                client = client_factory(
                    target["host"], target["port"], target["protocol"]
                )
                client.status()
            except ValueError as exc:
                failures.append(f"{endpoint}: {exc}")
                continue
            except _STORE_ERRORS as exc:
                logger.warning("etcd endpoint %s did not answer: %s", endpoint, exc)
                failures.append(f"{endpoint}: {exc}")
                continue
            logger.info("Connected to etcd at %s", endpoint)
            return client
        raise StoreUnavailableError("connect", "; ".join(failures))

    def put_many(self, entries: Mapping[str, str]) -> None:
        """Commit every entry in one etcd transaction."""
        txn = {
            "compare": [],
            "success": [
                {"request_put": {"key": _b64(key), "value": _b64(value)}}
                for key, value in entries.items()
            ],
            "failure": [],
        }
        try:
            result = self._client.transaction(txn)
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError("put", str(exc)) from exc

        if isinstance(result, dict) and result.get("succeeded") is False:
            raise StoreUnavailableError("put", "transaction was not applied")

    def get_prefix(self, prefix: str) -> Dict[str, str]:
        """Range over ``prefix`` and decode every entry."""
        try:
            items = self._client.get_prefix(prefix)
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError("get", str(exc)) from exc

        return {_text(meta["key"]): _text(value) for value, meta in items}

    def watch_prefix(self, prefix: str) -> WatchHandle:
        """Open a gateway watch stream over ``prefix``."""
        try:
            raw_events, cancel = self._client.watch_prefix(prefix)
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError("watch", str(exc)) from exc

        def iterate() -> Iterator[StoreEvent]:
            for raw in raw_events:
                event = self._to_event(raw)
                if event is not None:
                    yield event

        return iterate(), cancel

    def close(self) -> None:
        """Close the gateway HTTP session."""
        session = getattr(self._client, "session", None)
        if session is not None:
            session.close()

    @staticmethod
    def _to_event(raw: Optional[Dict[str, Any]]) -> Optional[StoreEvent]:
        if not raw or "kv" not in raw:
            return None
        kv = raw["kv"]
        # The gateway omits the type of PUT events.
        kind = EventKind.DELETE if raw.get("type") == "DELETE" else EventKind.PUT
        return StoreEvent(
            key=_text(kv["key"]),
            value=_text(kv.get("value", b"")),
            kind=kind,
        )
