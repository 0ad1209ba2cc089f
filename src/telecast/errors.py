"""Exception hierarchy for telecast."""

from __future__ import annotations


class TelecastError(Exception):
    """Base class for all telecast errors."""


class ConfigError(TelecastError):
    """Raised when a schema or settings file cannot be loaded or validated."""


class SchemaError(TelecastError):
    """Raised when published data does not match the field schema."""


class UnknownFieldError(SchemaError):
    """Raised in strict mode when a value is written to an undeclared field."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Telemetry field not in schema: {field_name}")
        self.field_name = field_name


class SequenceError(TelecastError):
    """Raised when a value is put before a cycle has been started with ``begin()``."""
