"""telecast — schema-driven telemetry broadcast and TCP relay for onboard controllers."""

__version__ = "0.1.0"
