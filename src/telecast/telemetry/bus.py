"""Control-loop facing telemetry bus.

:class:`SchemaTelemetryBus` wraps a :class:`SchemaTelemetryService` so that a
telemetry failure can never take down the control loop: the first exception
is logged and the bus disables itself.  :class:`NoopTelemetryBus` offers the
same surface for runs without telemetry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from telecast.telemetry.config_registry import ConfigRegistry
from telecast.telemetry.service import SchemaTelemetryService

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from telecast.telemetry.schema import TelemetrySchema

logger = logging.getLogger(__name__)


class TelemetryBus(Protocol):
    """What a control loop needs from a telemetry sink."""

    @property
    def config(self) -> ConfigRegistry: ...

    @property
    def enabled(self) -> bool: ...

    def start(self) -> None: ...

    def begin(self) -> None: ...

    def put(self, name: str, value: str | None) -> None: ...

    def put_number(self, name: str, value: float, fmt: str = "%.3f") -> None: ...

    def put_int(self, name: str, value: int) -> None: ...

    def publish(self) -> None: ...

    def close(self) -> None: ...


class SchemaTelemetryBus:
    """Fail-safe bus backed by a schema-driven service."""

    def __init__(
        self,
        schema: TelemetrySchema | str | Path,
        *,
        host: str = "0.0.0.0",
        port: int | None = None,
    ) -> None:
        self._config = ConfigRegistry()
        self._service = SchemaTelemetryService(schema, self._config, host=host, port=port)
        self._enabled = True

    @property
    def config(self) -> ConfigRegistry:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def service(self) -> SchemaTelemetryService:
        return self._service

    def start(self) -> None:
        self._guard(self._service.start)

    def begin(self) -> None:
        self._guard(self._service.begin)

    def put(self, name: str, value: str | None) -> None:
        self._guard(lambda: self._service.put(name, value))

    def put_number(self, name: str, value: float, fmt: str = "%.3f") -> None:
        self._guard(lambda: self._service.put_number(name, value, fmt))

    def put_int(self, name: str, value: int) -> None:
        self._guard(lambda: self._service.put_int(name, value))

    def publish(self) -> None:
        self._guard(self._service.publish)

    def close(self) -> None:
        self._guard(self._service.close)

    def _guard(self, action: Callable[[], None]) -> None:
        if not self._enabled:
            return
        try:
            action()
        except Exception:
            logger.exception("Telemetry service error; disabling telemetry bus")
            self._enabled = False
            self._service.close()


class NoopTelemetryBus:
    """Bus that accepts every call and does nothing."""

    def __init__(self) -> None:
        self._config = ConfigRegistry()

    @property
    def config(self) -> ConfigRegistry:
        return self._config

    @property
    def enabled(self) -> bool:
        return False

    def start(self) -> None:
        pass

    def begin(self) -> None:
        pass

    def put(self, name: str, value: str | None) -> None:
        pass

    def put_number(self, name: str, value: float, fmt: str = "%.3f") -> None:
        pass

    def put_int(self, name: str, value: int) -> None:
        pass

    def publish(self) -> None:
        pass

    def close(self) -> None:
        pass
