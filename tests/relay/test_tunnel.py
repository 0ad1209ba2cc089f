"""Tests for ByteRelay — raw bidirectional forwarding."""

from __future__ import annotations

import socket
from typing import TYPE_CHECKING

import pytest

from telecast.relay.tunnel import ByteRelay, RelayLink
from tests._helpers import unused_port, wait_for

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tests.relay.conftest import EchoServer


def _recv_exactly(sock: socket.socket, size: int) -> bytes:
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def _closed_by_peer(sock: socket.socket) -> bool:
    try:
        return sock.recv(1) == b""
    except ConnectionResetError:
        return True


@pytest.fixture()
def relay(echo_server: EchoServer) -> Iterator[ByteRelay]:
    r = ByteRelay("127.0.0.1", 0, "127.0.0.1", echo_server.port, read_timeout=0.2)
    r.start()
    yield r
    r.close()


class TestRelayLink:
    def test_str(self) -> None:
        link = RelayLink("0.0.0.0", 5801, "172.29.0.1", 5801)
        assert str(link) == "0.0.0.0:5801 -> 172.29.0.1:5801"


class TestLifecycle:
    def test_start_binds(self, relay: ByteRelay) -> None:
        assert relay.running
        assert relay.port != 0

    def test_start_is_idempotent(self, relay: ByteRelay) -> None:
        port = relay.port
        relay.start()
        assert relay.port == port

    def test_close_stops_accepting(self, relay: ByteRelay) -> None:
        port = relay.port
        relay.close()
        assert not relay.running
        with pytest.raises(OSError):
            socket.create_connection(("127.0.0.1", port), timeout=1.0)

    def test_close_is_idempotent(self, relay: ByteRelay) -> None:
        relay.close()
        relay.close()
        assert not relay.running

    def test_bind_conflict_raises(self, relay: ByteRelay) -> None:
        clash = ByteRelay("127.0.0.1", relay.port, "127.0.0.1", 1)
        with pytest.raises(OSError):
            clash.start()
        assert not clash.running


class TestForwarding:
    def test_round_trip(self, relay: ByteRelay) -> None:
        with socket.create_connection(("127.0.0.1", relay.port), timeout=2.0) as client:
            client.sendall(b"hello relay")
            assert _recv_exactly(client, 11) == b"hello relay"

    def test_binary_payload_larger_than_chunk(self, relay: ByteRelay) -> None:
        payload = bytes(range(256)) * 64
        with socket.create_connection(("127.0.0.1", relay.port), timeout=2.0) as client:
            client.sendall(payload)
            assert _recv_exactly(client, len(payload)) == payload

    def test_each_client_gets_own_remote_connection(
        self, relay: ByteRelay, echo_server: EchoServer
    ) -> None:
        with (
            socket.create_connection(("127.0.0.1", relay.port), timeout=2.0) as a,
            socket.create_connection(("127.0.0.1", relay.port), timeout=2.0) as b,
        ):
            a.sendall(b"from-a")
            b.sendall(b"from-b")
            assert _recv_exactly(b, 6) == b"from-b"
            assert _recv_exactly(a, 6) == b"from-a"
            assert echo_server.connections == 2
            assert wait_for(lambda: relay.active_connections == 2)

    def test_client_close_releases_connection(self, relay: ByteRelay) -> None:
        with socket.create_connection(("127.0.0.1", relay.port), timeout=2.0) as client:
            client.sendall(b"x")
            assert _recv_exactly(client, 1) == b"x"
        assert wait_for(lambda: relay.active_connections == 0)

    def test_existing_connection_ends_after_close(self, relay: ByteRelay) -> None:
        with socket.create_connection(("127.0.0.1", relay.port), timeout=2.0) as client:
            client.sendall(b"a")
            assert _recv_exactly(client, 1) == b"a"
            relay.close()
            # Pumps wind down on their next read timeout.
            assert _closed_by_peer(client)


class TestUnreachableRemote:
    def test_client_closed_without_data(self) -> None:
        relay = ByteRelay("127.0.0.1", 0, "127.0.0.1", unused_port(), connect_timeout=0.5)
        relay.start()
        try:
            with socket.create_connection(("127.0.0.1", relay.port), timeout=2.0) as first:
                assert _closed_by_peer(first)
            with socket.create_connection(("127.0.0.1", relay.port), timeout=2.0) as second:
                assert _closed_by_peer(second)
            assert relay.running
            assert relay.active_connections == 0
        finally:
            relay.close()
