"""Schema-driven telemetry broadcast — catalog, snapshots, tunables, and TCP server."""

from __future__ import annotations

from telecast.telemetry.bus import NoopTelemetryBus, SchemaTelemetryBus, TelemetryBus
from telecast.telemetry.config_registry import ConfigEntry, ConfigRegistry
from telecast.telemetry.fields import FieldCatalog, SchemaField
from telecast.telemetry.schema import TelemetrySchema
from telecast.telemetry.server import ClientSession, TelemetryServer
from telecast.telemetry.service import SchemaTelemetryService
from telecast.telemetry.snapshot import (
    SnapshotBuilder,
    TelemetrySnapshot,
    begin_cycle,
    format_number,
    sanitize_csv,
)

__all__ = [
    "ClientSession",
    "ConfigEntry",
    "ConfigRegistry",
    "FieldCatalog",
    "NoopTelemetryBus",
    "SchemaField",
    "SchemaTelemetryBus",
    "SchemaTelemetryService",
    "SnapshotBuilder",
    "TelemetryBus",
    "TelemetrySchema",
    "TelemetryServer",
    "TelemetrySnapshot",
    "begin_cycle",
    "format_number",
    "sanitize_csv",
]
