from __future__ import annotations

import json

from telecast.output.json_output import format_json_error, format_json_response
from telecast.telemetry.schema import FieldSpec, TelemetrySchema


class TestFormatJsonResponse:
    """Tests for :func:`format_json_response`."""

    def test_with_model(self) -> None:
        schema = TelemetrySchema(fields=[FieldSpec(name="heading", unit="deg")])
        raw = format_json_response(data=schema, command="fields")
        parsed = json.loads(raw)

        assert parsed["ok"] is True
        assert parsed["command"] == "fields"
        assert parsed["data"]["port"] == 5599
        assert parsed["data"]["fields"] == [{"name": "heading", "type": "double", "unit": "deg"}]
        assert "timestamp" in parsed

    def test_with_list_of_models(self) -> None:
        specs = [FieldSpec(name="a"), FieldSpec(name="b", type="string")]
        parsed = json.loads(format_json_response(data=specs, command="fields"))

        assert [item["name"] for item in parsed["data"]] == ["a", "b"]
        assert parsed["data"][1]["type"] == "string"

    def test_with_dict(self) -> None:
        parsed = json.loads(format_json_response(data={"running": 3}, command="relay"))
        assert parsed["data"] == {"running": 3}

    def test_timestamp_is_iso_utc(self) -> None:
        parsed = json.loads(format_json_response(data={"x": 1}, command="test"))
        assert parsed["timestamp"].endswith("+00:00")


class TestFormatJsonError:
    """Tests for :func:`format_json_error`."""

    def test_basic_error(self) -> None:
        raw = format_json_error(
            code="ConfigError", message="Telemetry schema path is empty.", command="fields"
        )
        parsed = json.loads(raw)

        assert parsed["ok"] is False
        assert parsed["command"] == "fields"
        assert parsed["error"] == {
            "code": "ConfigError",
            "message": "Telemetry schema path is empty.",
        }
        assert "timestamp" in parsed
