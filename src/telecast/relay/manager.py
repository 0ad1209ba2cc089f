"""Start and stop a fixed group of relays for one peripheral device."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telecast.relay.tunnel import CONNECT_TIMEOUT_SECONDS, READ_TIMEOUT_SECONDS, ByteRelay

if TYPE_CHECKING:
    from collections.abc import Iterable

    from telecast.models.config import AppSettings

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_HOST = "172.29.0.1"
DEFAULT_BIND_HOST = "0.0.0.0"
# data, MJPEG stream, websocket, HTTP API
DEFAULT_DEVICE_PORTS: tuple[int, ...] = (5800, 5801, 5805, 5807)


class RelayManager:
    """Owns a fixed set of :class:`ByteRelay` instances."""

    def __init__(self, relays: Iterable[ByteRelay]) -> None:
        self._relays = tuple(relays)

    @classmethod
    def for_device(
        cls,
        remote_host: str = DEFAULT_DEVICE_HOST,
        ports: Iterable[int] = DEFAULT_DEVICE_PORTS,
        bind_host: str = DEFAULT_BIND_HOST,
        *,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        read_timeout: float = READ_TIMEOUT_SECONDS,
    ) -> RelayManager:
        """One relay per port, listening locally on the same port number."""
        return cls(
            ByteRelay(
                bind_host,
                port,
                remote_host,
                port,
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
            )
            for port in ports
        )

    @classmethod
    def from_settings(cls, settings: AppSettings) -> RelayManager:
        return cls.for_device(
            settings.relay_remote_host,
            settings.relay_ports,
            settings.relay_bind_host,
            connect_timeout=settings.relay_connect_timeout,
            read_timeout=settings.relay_read_timeout,
        )

    @property
    def relays(self) -> tuple[ByteRelay, ...]:
        return self._relays

    def start(self) -> int:
        """Start every relay; one failing to bind does not stop the others.

        Returns the number of relays running afterwards.
        """
        for relay in self._relays:
            try:
                relay.start()
            except Exception:
                logger.warning("Relay %s failed to start", relay.link, exc_info=True)
        return sum(1 for relay in self._relays if relay.running)

    def close(self) -> None:
        for relay in self._relays:
            relay.close()

    def __enter__(self) -> RelayManager:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
