"""``telecast relay`` — expose a peripheral device's ports on this host."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import click

from telecast.models.config import AppSettings
from telecast.relay.manager import RelayManager

if TYPE_CHECKING:
    from telecast.cli.main import AppContext


def build_relay_manager(
    settings: AppSettings,
    remote_host: str | None = None,
    bind_host: str | None = None,
    ports: tuple[int, ...] = (),
) -> RelayManager:
    """Relay manager from settings, with any CLI overrides applied."""
    return RelayManager.for_device(
        remote_host or settings.relay_remote_host,
        ports or settings.relay_ports,
        bind_host or settings.relay_bind_host,
        connect_timeout=settings.relay_connect_timeout,
        read_timeout=settings.relay_read_timeout,
    )


@click.command("relay")
@click.option("--remote-host", default=None, help="Device address (env: TELECAST_RELAY_REMOTE_HOST)")
@click.option("--bind-host", default=None, help="Local bind address")
@click.option(
    "--port", "ports", type=int, multiple=True, help="Port to relay (repeatable)"
)
@click.pass_obj
def relay_cmd(
    app_ctx: AppContext,
    remote_host: str | None,
    bind_host: str | None,
    ports: tuple[int, ...],
) -> None:
    """Relay raw TCP traffic from local ports to the same ports on a device."""
    manager = build_relay_manager(AppSettings(), remote_host, bind_host, ports)
    running = manager.start()
    try:
        app_ctx.formatter.rich.relays(manager)
        if running == 0:
            raise click.ClickException("No relay could be started.")
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        manager.close()
