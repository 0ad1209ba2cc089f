"""Raw TCP relays exposing a peripheral device's services on the controller's network."""

from __future__ import annotations

from telecast.relay.manager import DEFAULT_DEVICE_PORTS, RelayManager
from telecast.relay.tunnel import ByteRelay, RelayLink

__all__ = [
    "DEFAULT_DEVICE_PORTS",
    "ByteRelay",
    "RelayLink",
    "RelayManager",
]
