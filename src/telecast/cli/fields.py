"""``telecast fields`` — show the catalog a schema declares."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from telecast.models.config import AppSettings
from telecast.telemetry.schema import TelemetrySchema

if TYPE_CHECKING:
    from telecast.cli.main import AppContext


def resolve_schema_source(schema: str | None) -> str:
    """Return *schema* or the configured ``TELECAST_SCHEMA_PATH``."""
    source = schema or AppSettings().schema_path
    if not source:
        raise click.UsageError("No schema given. Pass SCHEMA or set TELECAST_SCHEMA_PATH.")
    return source


@click.command("fields")
@click.argument("schema", required=False, default=None)
@click.pass_obj
def fields_cmd(app_ctx: AppContext, schema: str | None) -> None:
    """List the fields declared by SCHEMA (a JSON file or inline JSON)."""
    loaded = TelemetrySchema.load(resolve_schema_source(schema))
    formatter = app_ctx.formatter
    if formatter.format == "json":
        formatter.output(loaded, command="fields")
    else:
        formatter.rich.schema_fields(loaded)
