"""Shared fixtures for CLI execution tests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


SCHEMA = {
    "port": 5599,
    "strict": True,
    "max_rate_hz": 50,
    "fields": [
        {"name": "robot_ts_ms", "type": "long", "unit": "ms"},
        {"name": "heading", "type": "double", "unit": "deg"},
        {"name": "mode", "type": "string"},
    ],
}


@pytest.fixture()
def cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run from an empty directory with no TELECAST_* variables set."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TELECAST_SCHEMA_PATH", raising=False)
    monkeypatch.delenv("TELECAST_HOST", raising=False)
    return tmp_path


@pytest.fixture()
def schema_file(cli_env: Path) -> Path:
    path = cli_env / "schema.json"
    path.write_text(json.dumps(SCHEMA))
    return path
