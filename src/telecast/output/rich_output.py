from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table

if TYPE_CHECKING:
    from rich.console import Console

    from telecast.relay.manager import RelayManager
    from telecast.telemetry.schema import TelemetrySchema


class RichOutput:
    """Rich-based terminal output helpers for *telecast*."""

    def __init__(self, console: Console) -> None:
        self._con = console

    def schema_fields(self, schema: TelemetrySchema) -> None:
        """Print the field catalog of *schema* as a table."""
        table = Table(
            title="Telemetry fields",
            caption=(
                f"port {schema.port} · max {schema.max_rate_hz} Hz · "
                f"{'strict' if schema.strict else 'permissive'}"
            ),
        )
        table.add_column("#", justify="right", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Type")
        table.add_column("Unit")

        for index, spec in enumerate(schema.fields):
            table.add_row(str(index), spec.name, spec.type, spec.unit)

        self._con.print(table)

    def relays(self, manager: RelayManager) -> None:
        """Print one line per relay with its state."""
        for relay in manager.relays:
            state = "[green]up[/green]" if relay.running else "[red]down[/red]"
            self._con.print(f"  {state}  {relay.link}")

    def error(self, message: str) -> None:
        """Print a bold red error line."""
        self._con.print(f"[bold red]Error:[/bold red] {message}")

    def info(self, message: str) -> None:
        """Print an informational message (plain)."""
        self._con.print(message)
