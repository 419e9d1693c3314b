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

"""Unit tests for the coordination store adapters."""

# pylint: disable=redefined-outer-name

import base64
from unittest.mock import MagicMock, create_autospec

import pytest
import requests
from etcd3gw.client import Etcd3Client
from etcd3gw.exceptions import Etcd3Exception

from core.builds.exceptions import StoreUnavailableError
from core.builds.value_objects import EventKind
from infra.store.etcd_store import EtcdCoordinationStore, parse_endpoint
from infra.store.in_memory_store import InMemoryCoordinationStore


def b64(text):
    """Encode like the etcd gateway."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def etcd_client():
    """Gateway client mock checked against the real client signatures."""
    client = create_autospec(Etcd3Client, instance=True)
    client.session = MagicMock()
    return client


class TestInMemoryCoordinationStore:
    """Tests for InMemoryCoordinationStore."""

    def test_get_prefix(self):
        """Only keys under the prefix are returned."""
        store = InMemoryCoordinationStore()
        store.put_many({"a/1": "x", "a/2": "y", "b/1": "z"})

        assert store.get_prefix("a/") == {"a/1": "x", "a/2": "y"}

    def test_watch_sees_later_writes_in_order(self):
        """Watchers receive matching writes in batch order."""
        store = InMemoryCoordinationStore()
        store.put_many({"a/0": "before"})
        events, cancel = store.watch_prefix("a/")

        store.put_many({"a/1": "x", "b/1": "ignored", "a/2": "y"})
        store.delete("a/1")
        cancel()

        received = [(event.key, event.kind) for event in events]
        assert received == [
            ("a/1", EventKind.PUT),
            ("a/2", EventKind.PUT),
            ("a/1", EventKind.DELETE),
        ]

    def test_delete_missing_key(self):
        """Deleting an absent key reports False."""
        assert InMemoryCoordinationStore().delete("nope") is False

    def test_close_ends_watches_and_refuses_calls(self):
        """A closed store ends its watches and rejects further use."""
        store = InMemoryCoordinationStore()
        events, _ = store.watch_prefix("a/")

        store.close()

        assert list(events) == []
        with pytest.raises(StoreUnavailableError):
            store.put_many({"a/1": "x"})
        with pytest.raises(StoreUnavailableError):
            store.get_prefix("a/")


class TestParseEndpoint:
    """Tests for parse_endpoint."""

    def test_full_url(self):
        """Scheme, host and port are split out."""
        assert parse_endpoint("https://etcd-1:4001") == {
            "host": "etcd-1",
            "port": 4001,
            "protocol": "https",
        }

    def test_defaults(self):
        """A bare host uses http and the default port."""
        assert parse_endpoint("etcd-1") == {"host": "etcd-1", "port": 2379, "protocol": "http"}

    @pytest.mark.parametrize("endpoint", ["ftp://etcd:2379", "http://:2379"])
    def test_invalid(self, endpoint):
        """Unsupported schemes and missing hosts are rejected."""
        with pytest.raises(ValueError):
            parse_endpoint(endpoint)


class TestEtcdCoordinationStore:
    """Tests for EtcdCoordinationStore with a fake gateway client."""

    @pytest.fixture
    def client(self):
        """Gateway client that answers status calls."""
        client = etcd_client()
        client.transaction.return_value = {"succeeded": True}
        return client

    @pytest.fixture
    def store(self, client):
        """Store connected through the fake client."""
        return EtcdCoordinationStore(
            ["http://etcd:2379"], client_factory=lambda host, port, protocol: client
        )

    def test_connects_to_first_answering_endpoint(self, client):
        """Endpoints that fail the status call are skipped."""
        dead = etcd_client()
        dead.status.side_effect = requests.ConnectionError("refused")
        clients = {"dead": dead, "live": client}

        EtcdCoordinationStore(
            ["http://dead:2379", "http://live:2379"],
            client_factory=lambda host, port, protocol: clients[host],
        )

        dead.status.assert_called_once()
        client.status.assert_called_once()

    def test_no_endpoint_answers(self):
        """Connecting fails when every endpoint is down."""
        dead = etcd_client()
        dead.status.side_effect = Etcd3Exception("unavailable")

        with pytest.raises(StoreUnavailableError, match="connect"):
            EtcdCoordinationStore(["http://etcd:2379"], client_factory=lambda *args: dead)

    def test_no_endpoints(self):
        """An empty endpoint list is rejected."""
        with pytest.raises(StoreUnavailableError):
            EtcdCoordinationStore([])

    def test_put_many_is_one_transaction(self, store, client):
        """Every entry goes into a single transaction, in order."""
        store.put_many({"k/name": "app", "k/exec": "{}"})

        txn = client.transaction.call_args[0][0]
        assert txn["compare"] == []
        assert txn["success"] == [
            {"request_put": {"key": b64("k/name"), "value": b64("app")}},
            {"request_put": {"key": b64("k/exec"), "value": b64("{}")}},
        ]

    def test_put_many_not_applied(self, store, client):
        """A transaction that did not succeed is an error."""
        client.transaction.return_value = {"succeeded": False}
        with pytest.raises(StoreUnavailableError, match="not applied"):
            store.put_many({"k": "v"})

    def test_put_many_transport_error(self, store, client):
        """Transport failures become store errors."""
        client.transaction.side_effect = requests.ConnectionError("reset")
        with pytest.raises(StoreUnavailableError, match="reset"):
            store.put_many({"k": "v"})

    def test_get_prefix_decodes(self, store, client):
        """Keys come from metadata and values are decoded."""
        client.get_prefix.return_value = [
            (b"app", {"key": b"k/name"}),
            (b"{}", {"key": b"k/exec"}),
        ]

        assert store.get_prefix("k/") == {"k/name": "app", "k/exec": "{}"}
        client.get_prefix.assert_called_once_with("k/")

    def test_watch_maps_events(self, store, client):
        """Gateway events become store events; empty ones are dropped."""
        cancel = MagicMock()
        client.watch_prefix.return_value = (
            iter(
                [
                    {"kv": {"key": b"k/exec", "value": b"{}"}},
                    {},
                    {"type": "DELETE", "kv": {"key": b"k/exec"}},
                ]
            ),
            cancel,
        )

        events, returned_cancel = store.watch_prefix("k/")

        received = [(event.key, event.value, event.kind) for event in events]
        assert received == [("k/exec", "{}", EventKind.PUT), ("k/exec", "", EventKind.DELETE)]
        assert returned_cancel is cancel

    def test_close_closes_session(self, store, client):
        """Closing releases the HTTP session."""
        store.close()
        client.session.close.assert_called_once()
