from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application-wide settings populated from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TELECAST_",
        extra="ignore",
    )

    schema_path: str | None = None
    host: str = "0.0.0.0"
    relay_bind_host: str = "0.0.0.0"
    relay_remote_host: str = "172.29.0.1"
    relay_ports: list[int] = Field(default_factory=lambda: [5800, 5801, 5805, 5807])
    relay_connect_timeout: float = Field(default=1.0, gt=0)
    relay_read_timeout: float = Field(default=2.0, gt=0)
