"""Schema-driven publisher: put values by field name, publish once per cycle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telecast.errors import SequenceError, UnknownFieldError
from telecast.telemetry.schema import TelemetrySchema
from telecast.telemetry.server import TelemetryServer
from telecast.telemetry.snapshot import SnapshotBuilder, begin_cycle, format_number

if TYPE_CHECKING:
    from pathlib import Path

    from telecast.telemetry.config_registry import ConfigRegistry
    from telecast.telemetry.fields import FieldCatalog

logger = logging.getLogger(__name__)


class SchemaTelemetryService:
    """Owns the catalog and server for one schema.

    Typical control loop::

        service.begin()
        service.put_int("robot_ts_ms", now_ms)
        service.put_number("front_left_power", power, "%.3f")
        service.publish()

    Unknown field names raise :class:`UnknownFieldError` when the schema is
    strict and are logged and dropped otherwise.
    """

    def __init__(
        self,
        schema: TelemetrySchema | str | Path,
        config_registry: ConfigRegistry | None = None,
        *,
        host: str = "0.0.0.0",
        port: int | None = None,
    ) -> None:
        if not isinstance(schema, TelemetrySchema):
            schema = TelemetrySchema.load(schema)
        self._schema = schema
        self._catalog = schema.build_catalog()
        self._config = config_registry
        self._server = TelemetryServer(
            schema.port if port is None else port,
            self._catalog,
            config_registry,
            max_rate_hz=schema.max_rate_hz,
            host=host,
        )
        self._builder: SnapshotBuilder | None = None
        self._started = False

    @property
    def schema(self) -> TelemetrySchema:
        return self._schema

    @property
    def catalog(self) -> FieldCatalog:
        return self._catalog

    @property
    def server(self) -> TelemetryServer:
        return self._server

    @property
    def config(self) -> ConfigRegistry | None:
        return self._config

    def start(self) -> None:
        """Start the server if it is not already running."""
        if self._started:
            return
        self._server.start()
        self._started = True

    def begin(self) -> None:
        """Open a new cycle; any unpublished values from the previous one are discarded."""
        self._builder = begin_cycle(self._catalog.size())

    def put(self, name: str, value: str | None) -> None:
        """Put a text value."""
        builder = self._require_builder()
        index = self._resolve(name)
        if index is not None:
            builder.set(index, value)

    def put_number(self, name: str, value: float, fmt: str = "%.3f") -> None:
        """Put a number rendered with *fmt*; NaN publishes as an empty value."""
        builder = self._require_builder()
        index = self._resolve(name)
        if index is not None:
            builder.set(index, format_number(value, fmt))

    def put_int(self, name: str, value: int) -> None:
        """Put an integer (timestamps, counters)."""
        self.put(name, str(int(value)))

    def publish(self) -> None:
        """Hand the current cycle's snapshot to the server.  No-op without an open cycle."""
        builder, self._builder = self._builder, None
        if builder is None:
            return
        self._server.set_snapshot(builder.build())

    def close(self) -> None:
        self._server.close()

    def __enter__(self) -> SchemaTelemetryService:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _require_builder(self) -> SnapshotBuilder:
        if self._builder is None:
            raise SequenceError("Call begin() before putting telemetry values.")
        return self._builder

    def _resolve(self, name: str) -> int | None:
        index = self._catalog.index_of(name)
        if index is None:
            if self._schema.strict:
                raise UnknownFieldError(name)
            logger.warning("Unknown telemetry field (ignored): %s", name)
        return index
