"""Telemetry schema: which fields a controller publishes, and on which port.

A schema is JSON, either inline or in a file::

    {
      "port": 5599,
      "strict": false,
      "max_rate_hz": 100,
      "fields": [
        {"name": "robot_ts_ms", "type": "long", "unit": "ms"},
        {"name": "front_left_power", "type": "double"}
      ]
    }
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

from telecast.errors import ConfigError
from telecast.telemetry.fields import FieldCatalog

DEFAULT_PORT = 5599


class FieldSpec(BaseModel):
    """One ``fields`` entry in the schema."""

    name: str = ""
    type: str = "double"
    unit: str = ""


class TelemetrySchema(BaseModel):
    """Validated schema document."""

    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    strict: bool = False
    max_rate_hz: int = Field(default=100, ge=1)
    fields: list[FieldSpec]

    @model_validator(mode="after")
    def _check_unique_names(self) -> TelemetrySchema:
        seen: set[str] = set()
        for spec in self.fields:
            if spec.name in seen:
                raise ValueError(f"Duplicate field name: {spec.name!r}")
            seen.add(spec.name)
        return self

    @classmethod
    def load(cls, path_or_json: str | Path) -> TelemetrySchema:
        """Load from inline JSON (text starting with ``{``) or a file path.

        Raises :class:`ConfigError` if the source is missing or invalid.
        """
        text = str(path_or_json).strip()
        if not text:
            raise ConfigError("Telemetry schema path is empty.")
        if not text.startswith("{"):
            path = Path(text).expanduser()
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigError(f"Failed to load telemetry schema: {path}") from exc
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid telemetry schema JSON: {exc}") from exc
        if not isinstance(raw, dict) or "fields" not in raw:
            raise ConfigError("Telemetry schema must include a fields array.")
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(f"Invalid telemetry schema: {exc}") from exc

    def build_catalog(self) -> FieldCatalog:
        """Register every field, in schema order, into a new catalog."""
        catalog = FieldCatalog()
        for spec in self.fields:
            catalog.add(spec.name, spec.type, spec.unit)
        return catalog
