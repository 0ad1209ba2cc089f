from __future__ import annotations

import json
from io import StringIO

import pytest
from rich.console import Console

from telecast.output.formatter import OutputFormatter
from telecast.output.rich_output import RichOutput
from telecast.relay.manager import RelayManager
from telecast.telemetry.schema import FieldSpec, TelemetrySchema


def _make_console() -> tuple[Console, StringIO]:
    """Return a ``(Console, buffer)`` pair for capturing Rich output."""
    buf = StringIO()
    console = Console(file=buf, width=100)
    return console, buf


class TestSchemaFields:
    def test_renders_table(self) -> None:
        console, buf = _make_console()
        schema = TelemetrySchema(
            strict=True,
            max_rate_hz=50,
            fields=[
                FieldSpec(name="robot_ts_ms", type="long", unit="ms"),
                FieldSpec(name="mode", type="string"),
            ],
        )
        RichOutput(console).schema_fields(schema)
        output = buf.getvalue()

        assert "robot_ts_ms" in output
        assert "long" in output
        assert "mode" in output
        assert "50 Hz" in output
        assert "strict" in output

    def test_permissive_caption(self) -> None:
        console, buf = _make_console()
        RichOutput(console).schema_fields(TelemetrySchema(fields=[]))
        assert "permissive" in buf.getvalue()


class TestRelays:
    def test_state_per_relay(self) -> None:
        console, buf = _make_console()
        manager = RelayManager.for_device("10.0.0.2", [5800], "127.0.0.1")
        RichOutput(console).relays(manager)
        output = buf.getvalue()

        assert "down" in output
        assert "127.0.0.1:5800 -> 10.0.0.2:5800" in output


class TestMessages:
    def test_error(self) -> None:
        console, buf = _make_console()
        RichOutput(console).error("boom")
        assert "Error: boom" in buf.getvalue()


class TestOutputFormatter:
    def test_forced_format(self) -> None:
        assert OutputFormatter(force_format="json").format == "json"

    def test_non_tty_defaults_to_json(self) -> None:
        assert OutputFormatter(stream=StringIO()).format == "json"

    def test_json_output_printed(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputFormatter(force_format="json").output({"n": 1}, command="test")
        assert json.loads(capsys.readouterr().out)["data"] == {"n": 1}
