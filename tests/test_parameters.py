"""
Tests for parameter and request-body extraction.

Tests ParameterExtractor ordering, first-seen deduplication, literal
parsing of query values and request body grouping by content type.
"""

import sys
from pathlib import Path
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tracespec.openapi.parameters import Parameter, ParameterExtractor, count_observed_parameters
from tracespec.openapi.records import ExchangeRecord
from tracespec.openapi.sanitizer import DataSanitizer
from tracespec.openapi.schema import Schema


def make_record(url, method="GET", headers=None, body=None):
    return ExchangeRecord(
        method=method,
        url=url,
        request_headers=headers or {},
        request_body=body,
        response_status=200,
    )


@pytest.fixture
def extractor():
    return ParameterExtractor()


class TestParameterExtraction:
    """Test suite for ParameterExtractor.extract()."""

    def test_query_parameters_deduplicated(self, extractor):
        """Test that repeated query parameters appear once with the first-seen example."""
        records = [make_record("https://x.com/items?page=1") for _ in range(3)]
        records.append(make_record("https://x.com/items?page=2&sort=asc"))

        params = [p for p in extractor.extract(records) if p.location == "query"]

        assert [p.name for p in params] == ["page", "sort"]
        assert params[0].example == 1
        assert params[0].schema == Schema(kind="integer")
        assert params[1].example == "asc"
        assert all(p.required is False for p in params)

    def test_order_is_path_query_header(self, extractor):
        """Test per-record ordering."""
        record = make_record("https://x.com/users/42?active=true", headers={"accept": "application/json"})

        params = extractor.extract([record])

        assert [(p.location, p.name) for p in params] == [
            ("path", "id"),
            ("query", "active"),
            ("header", "accept"),
        ]

    def test_path_parameters_required(self, extractor):
        """Test that path parameters are required and typed."""
        params = extractor.extract([make_record("https://x.com/users/42")])

        assert params[0] == Parameter(
            name="id",
            location="path",
            required=True,
            schema=Schema(kind="integer"),
            example=42,
            description="Path parameter extracted from /users/{id}",
        )

    def test_boolean_query_value(self, extractor):
        """Test that boolean literals are parsed."""
        params = extractor.extract([make_record("https://x.com/users?active=true")])

        assert params[0].example is True
        assert params[0].schema.kind == "boolean"

    def test_headers_are_optional_strings(self, extractor):
        """Test header parameter shape."""
        params = extractor.extract([make_record("https://x.com/", headers={"x-trace": "abc"})])

        assert params == [Parameter(
            name="x-trace",
            location="header",
            required=False,
            schema=Schema(kind="string"),
            example="abc",
            description="Request header: x-trace",
        )]

    def test_same_name_different_location_kept(self, extractor):
        """Test that dedup is keyed on (location, name)."""
        record = make_record("https://x.com/a?token=1", headers={"token": "abc"})

        params = extractor.extract([record])

        assert {(p.location, p.name) for p in params} == {("query", "token"), ("header", "token")}

    def test_unparseable_url_contributes_headers_only(self, extractor):
        """Test the unparseable URL fallback."""
        record = make_record("not a url?page=1", headers={"accept": "*/*"})

        params = extractor.extract([record])

        assert [(p.location, p.name) for p in params] == [("header", "accept")]

    def test_empty_query_value_kept(self, extractor):
        """Test that blank query values still yield a parameter."""
        params = extractor.extract([make_record("https://x.com/search?q=")])

        assert params[0].name == "q"
        assert params[0].example == ""


class TestRequestBody:
    """Test suite for ParameterExtractor.request_body()."""

    def test_no_bodies(self, extractor):
        """Test that no body yields None."""
        assert extractor.request_body([make_record("https://x.com/")]) is None

    def test_bodies_merged_per_content_type(self, extractor):
        """Test schema union across samples."""
        records = [
            make_record("https://x.com/users", "POST", {"content-type": "application/json"}, {"name": "Ann"}),
            make_record("https://x.com/users", "POST", {"content-type": "application/json; charset=utf-8"},
                        {"name": "Bob", "email": "bob@x.io"}),
        ]

        body = extractor.request_body(records)

        assert list(body.content) == ["application/json"]
        assert set(body.content["application/json"].properties) == {"name", "email"}
        assert body.examples["application/json"] == {"name": "Ann"}

    def test_default_content_type(self, extractor):
        """Test that bodies without content-type default to application/json."""
        body = extractor.request_body([make_record("https://x.com/", "POST", body={"a": 1})])

        assert list(body.content) == ["application/json"]

    def test_form_body_decoded(self, extractor):
        """Test url-encoded form bodies become field mappings."""
        record = make_record("https://x.com/login", "POST",
                             {"content-type": "application/x-www-form-urlencoded"}, "user=ann&remember=1")

        body = extractor.request_body([record])

        schema = body.content["application/x-www-form-urlencoded"]
        assert schema.kind == "object"
        assert set(schema.properties) == {"user", "remember"}


class TestParameterRendering:
    """Test suite for Parameter.to_openapi()."""

    def test_openapi3(self):
        """Test 3.0 rendering."""
        param = Parameter("page", "query", False, Schema(kind="integer"), example=1)

        assert param.to_openapi("3.0") == {
            "name": "page",
            "in": "query",
            "required": False,
            "description": "",
            "schema": {"type": "integer"},
            "example": 1,
        }

    def test_swagger2(self):
        """Test 2.0 rendering with inline type and x-example."""
        param = Parameter("page", "query", False, Schema(kind="integer"), example=1)

        rendered = param.to_openapi("2.0")

        assert rendered["type"] == "integer"
        assert rendered["x-example"] == 1
        assert "schema" not in rendered

    def test_examples_disabled(self):
        """Test that examples can be left out."""
        param = Parameter("page", "query", False, Schema(kind="integer"), example=1)

        assert "example" not in param.to_openapi("3.0", include_examples=False)

    def test_sensitive_header_example_masked(self):
        """Test that credential headers are redacted when sanitizing."""
        param = Parameter("authorization", "header", False, Schema(kind="string"), example="Bearer abc")

        rendered = param.to_openapi("3.0", sanitizer=DataSanitizer())

        assert rendered["example"] == "[REDACTED]"


class TestCountObservedParameters:
    """Test suite for count_observed_parameters()."""

    def test_counts_query_and_body_fields(self):
        """Test query plus top-level body field count."""
        record = make_record("https://x.com/a?x=1&y=2", "POST", body={"a": 1, "b": 2, "c": 3})

        assert count_observed_parameters(record) == 5
