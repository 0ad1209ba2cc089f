"""``telecast serve`` — run the telemetry server for a schema."""

from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING

import click

from telecast.cli.fields import resolve_schema_source
from telecast.cli.relay import build_relay_manager
from telecast.models.config import AppSettings
from telecast.telemetry.config_registry import ConfigRegistry
from telecast.telemetry.service import SchemaTelemetryService

if TYPE_CHECKING:
    from telecast.cli.main import AppContext

logger = logging.getLogger(__name__)

_INTEGER_TYPES = frozenset({"int", "long", "integer"})
_NUMERIC_TYPES = frozenset({"double", "float", "number"})


class DemoSource:
    """Synthetic values for every catalog field, for exercising dashboards."""

    def __init__(self, service: SchemaTelemetryService, registry: ConfigRegistry) -> None:
        self._service = service
        self.gain = 1.0
        registry.register_double("demo_gain", lambda: self.gain, self._set_gain, 0.0, 10.0)

    def _set_gain(self, value: float) -> None:
        self.gain = value

    def cycle(self, elapsed: float) -> None:
        """Fill and publish one snapshot for *elapsed* seconds since start."""
        service = self._service
        service.begin()
        for field in service.catalog.fields:
            kind = field.type.lower()
            if kind in _INTEGER_TYPES:
                service.put_int(field.name, int(elapsed * 1000))
            elif kind in _NUMERIC_TYPES:
                service.put_number(field.name, self.gain * math.sin(elapsed + field.index))
            else:
                service.put(field.name, "ok")
        service.publish()


@click.command("serve")
@click.argument("schema", required=False, default=None)
@click.option("--host", default=None, help="Bind address (env: TELECAST_HOST)")
@click.option("--port", type=int, default=None, help="Override the schema's port")
@click.option("--demo", is_flag=True, default=False, help="Publish synthetic values")
@click.option(
    "--cycle-hz", type=float, default=50.0, show_default=True, help="Demo publish rate"
)
@click.option(
    "--relay/--no-relay", default=False, help="Also run the device port relays"
)
@click.pass_obj
def serve_cmd(
    app_ctx: AppContext,
    schema: str | None,
    host: str | None,
    port: int | None,
    demo: bool,
    cycle_hz: float,
    relay: bool,
) -> None:
    """Serve telemetry for SCHEMA until interrupted."""
    if cycle_hz <= 0:
        raise click.BadParameter("must be positive", param_hint="--cycle-hz")
    settings = AppSettings()
    registry = ConfigRegistry()
    service = SchemaTelemetryService(
        resolve_schema_source(schema), registry, host=host or settings.host, port=port
    )
    source = DemoSource(service, registry) if demo else None
    relays = build_relay_manager(settings) if relay else None

    with service:
        rich = app_ctx.formatter.rich
        rich.info(
            f"Telemetry server on {host or settings.host}:{service.server.port} "
            f"({service.catalog.size()} fields)"
        )
        if relays is not None:
            relays.start()
            rich.relays(relays)
        started = time.monotonic()
        try:
            while True:
                if source is not None:
                    source.cycle(time.monotonic() - started)
                    time.sleep(1.0 / cycle_hz)
                else:
                    time.sleep(1.0)
        except KeyboardInterrupt:
            logger.info("Interrupted; shutting down")
        finally:
            if relays is not None:
                relays.close()
