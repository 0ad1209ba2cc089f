"""Shared fixtures for telemetry tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from telecast.telemetry.config_registry import ConfigRegistry
from telecast.telemetry.fields import FieldCatalog
from telecast.telemetry.server import TelemetryServer
from tests._helpers import LineClient

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


class Tunable:
    """Holder for a live-tunable value in tests."""

    def __init__(self, value: float) -> None:
        self.value = value

    def get(self) -> float:
        return self.value

    def set(self, value: float) -> None:
        self.value = value


@pytest.fixture()
def catalog() -> FieldCatalog:
    cat = FieldCatalog()
    cat.add("x", "double", "m")
    cat.add("y", "double", "")
    cat.add("status", "string", "")
    return cat


@pytest.fixture()
def gain() -> Tunable:
    return Tunable(0.5)


@pytest.fixture()
def registry(gain: Tunable) -> ConfigRegistry:
    reg = ConfigRegistry()
    reg.register_double("gain", gain.get, gain.set, 0.0, 1.0)
    return reg


@pytest.fixture()
def server(catalog: FieldCatalog, registry: ConfigRegistry) -> Iterator[TelemetryServer]:
    srv = TelemetryServer(port=0, catalog=catalog, config_registry=registry, host="127.0.0.1")
    srv.start()
    yield srv
    srv.close()


@pytest.fixture()
def connect(server: TelemetryServer) -> Iterator[Callable[[], LineClient]]:
    clients: list[LineClient] = []

    def _connect() -> LineClient:
        client = LineClient(server.port)
        clients.append(client)
        return client

    yield _connect
    for client in clients:
        client.close()
