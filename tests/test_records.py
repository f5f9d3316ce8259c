"""
Tests for exchange records and generation options.

Tests ExchangeRecord.from_dict() for both capture layouts, body decoding,
header normalization and GenerationOptions validation and loading.
"""

import sys
from pathlib import Path
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tracespec.openapi.records import ExchangeRecord, GenerationOptions, to_json_value


RECORDER_CAPTURE = {
    "id": "rec-1",
    "timestamp": 1700000000000,
    "method": "POST",
    "url": "https://api.example.com/users",
    "requestHeaders": {"Content-Type": "application/json"},
    "requestBody": '{"name": "Ann"}',
    "responseStatus": 201,
    "responseHeaders": {"Location": "/users/1"},
    "responseBody": {"id": 1},
    "responseTime": 42,
    "customTags": ["users"],
    "customTitle": "Create a user",
}

RAW_LOG_CAPTURE = {
    "method": "GET",
    "url": "https://api.example.com/users?page=1",
    "req_headers": {"Accept": "application/json"},
    "req_body": "",
    "status": 200,
    "resp_headers": {"Content-Type": "application/json"},
    "resp_body": '[{"id": 1}]',
    "duration_ms": 150,
    "time": "2024-01-15T10:30:00Z",
}


class TestExchangeRecordFromDict:
    """Test suite for ExchangeRecord.from_dict()."""

    def test_recorder_layout(self):
        """Test the browser recorder layout."""
        record = ExchangeRecord.from_dict(RECORDER_CAPTURE)

        assert record.id == "rec-1"
        assert record.timestamp == 1700000000000
        assert record.method == "POST"
        assert record.request_headers == {"content-type": "application/json"}
        assert record.request_body == {"name": "Ann"}
        assert record.response_status == 201
        assert record.response_headers == {"location": "/users/1"}
        assert record.response_body == {"id": 1}
        assert record.response_time_ms == 42
        assert record.custom_tags == ("users",)
        assert record.custom_title == "Create a user"

    def test_raw_log_layout(self):
        """Test the capture proxy raw log layout."""
        record = ExchangeRecord.from_dict(RAW_LOG_CAPTURE, index=3)

        assert record.id == "3"
        assert record.request_body is None
        assert record.response_status == 200
        assert record.response_body == [{"id": 1}]
        assert record.response_time_ms == 150
        assert record.timestamp == 1705314600000

    def test_plain_text_body_kept_as_string(self):
        """Test that non-JSON text bodies stay strings."""
        record = ExchangeRecord.from_dict({"method": "POST", "url": "https://x.com", "requestBody": "a=1&b=2"})

        assert record.request_body == "a=1&b=2"

    def test_json_scalar_text_stays_string(self):
        """Test that only JSON objects and arrays are parsed from text."""
        record = ExchangeRecord.from_dict({"method": "GET", "url": "https://x.com", "responseBody": "42"})

        assert record.response_body == "42"

    def test_har_style_header_list(self):
        """Test that a list of name/value entries is accepted."""
        record = ExchangeRecord.from_dict({
            "method": "GET",
            "url": "https://x.com",
            "requestHeaders": [{"name": "X-Trace", "value": "abc"}, {"key": "Accept", "value": "*/*"}],
        })

        assert record.request_headers == {"x-trace": "abc", "accept": "*/*"}

    def test_missing_fields_use_defaults(self):
        """Test defaults for a minimal capture."""
        record = ExchangeRecord.from_dict({"method": "GET", "url": "https://x.com"})

        assert record.response_status == 0
        assert record.timestamp == 0
        assert record.custom_tags == ()
        assert record.custom_title is None
        assert record.id

    def test_invalid_status_becomes_zero(self):
        """Test that a non-numeric status does not raise."""
        record = ExchangeRecord.from_dict({"method": "GET", "url": "https://x.com", "status": "n/a"})

        assert record.response_status == 0

    def test_records_are_immutable(self):
        """Test that records cannot be modified after construction."""
        record = ExchangeRecord.from_dict(RECORDER_CAPTURE)

        with pytest.raises(AttributeError):
            record.method = "GET"

    def test_to_dict_uses_recorder_layout(self):
        """Test serialization back to the recorder layout."""
        data = ExchangeRecord.from_dict(RECORDER_CAPTURE).to_dict()

        assert data["responseStatus"] == 201
        assert data["requestBody"] == {"name": "Ann"}
        assert data["customTags"] == ["users"]


class TestToJsonValue:
    """Test suite for to_json_value()."""

    def test_converts_tuples_and_keys(self):
        """Test that tuples become lists and keys become strings."""
        assert to_json_value({1: (1, 2)}) == {"1": [1, 2]}

    def test_unknown_types_become_strings(self):
        """Test that non-JSON values are rendered with str()."""
        assert to_json_value({"p": Path("a")}) == {"p": "a"}


class TestGenerationOptions:
    """Test suite for GenerationOptions."""

    def test_defaults(self):
        """Test default option values."""
        options = GenerationOptions()

        assert options.title == "Recorded API"
        assert options.version == "1.0.0"
        assert options.include_examples is True
        assert options.parameterize_urls is True
        assert options.target_version == "3.0"
        assert options.uses_auto_server is True

    def test_invalid_target_version(self):
        """Test that unsupported target versions raise ValueError."""
        with pytest.raises(ValueError):
            GenerationOptions(target_version="3.1")

    def test_explicit_server(self):
        """Test that an explicit server URL disables auto servers."""
        assert GenerationOptions(server_url="https://api.x.com").uses_auto_server is False
        assert GenerationOptions(server_url="auto").uses_auto_server is True

    def test_from_dict_camel_case(self):
        """Test camelCase keys."""
        options = GenerationOptions.from_dict({
            "title": "Shop",
            "serverUrl": "https://shop.io",
            "includeExamples": False,
            "targetVersion": "2.0",
        })

        assert options.title == "Shop"
        assert options.server_url == "https://shop.io"
        assert options.include_examples is False
        assert options.target_version == "2.0"

    def test_from_yaml_nested(self, tmp_path):
        """Test loading from a YAML config with a generation section."""
        config = tmp_path / "tracespec.yaml"
        config.write_text("generation:\n  title: Shop API\n  version: '2.1.0'\n  sanitize: true\n")

        options = GenerationOptions.from_yaml(str(config))

        assert options.title == "Shop API"
        assert options.version == "2.1.0"
        assert options.sanitize is True
