"""
Tests for schema inference and merging module.

Tests SchemaInferencer type/format detection, literal parsing and
SchemaMerger object union, nullability and alternatives.
"""

import sys
from pathlib import Path
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tracespec.openapi.schema import Schema, SchemaInferencer, SchemaMerger


@pytest.fixture
def inferencer():
    return SchemaInferencer()


@pytest.fixture
def merger():
    return SchemaMerger()


class TestSchemaInference:
    """Test suite for SchemaInferencer.infer()."""

    def test_null_is_nullable_string(self, inferencer):
        """Test that None becomes a nullable string."""
        assert inferencer.infer(None) == Schema(kind="string", nullable=True)

    def test_booleans_are_not_integers(self, inferencer):
        """Test that bool is detected before int."""
        assert inferencer.infer(True).kind == "boolean"
        assert inferencer.infer(False).kind == "boolean"

    @pytest.mark.parametrize("value,kind", [
        (42, "integer"),
        (-3, "integer"),
        (2.0, "integer"),
        (1.5, "number"),
    ])
    def test_numbers(self, inferencer, value, kind):
        """Test integer vs number detection."""
        assert inferencer.infer(value).kind == kind

    def test_object_required_excludes_null_values(self, inferencer):
        """Test that keys with None values are not required."""
        schema = inferencer.infer({"id": 1, "name": None, "tags": []})

        assert schema.kind == "object"
        assert list(schema.properties) == ["id", "name", "tags"]
        assert schema.required == ("id", "tags")
        assert schema.properties["name"].nullable is True

    def test_array_items_from_first_element(self, inferencer):
        """Test that array items come from the first element only."""
        schema = inferencer.infer([1, "two"])

        assert schema.kind == "array"
        assert schema.items.kind == "integer"

    def test_empty_array_has_string_items(self, inferencer):
        """Test the empty-array default."""
        assert inferencer.infer([]).items == Schema(kind="string")

    def test_nested_structures(self, inferencer):
        """Test recursive inference."""
        schema = inferencer.infer({"user": {"emails": ["a@b.io"]}})

        emails = schema.properties["user"].properties["emails"]
        assert emails.kind == "array"
        assert emails.items.format == "email"

    @pytest.mark.parametrize("value,fmt", [
        ("2024-01-15T10:30:00Z", "date-time"),
        ("2024-01-15T10:30:00.123+02:00", "date-time"),
        ("2024-01-15", "date"),
        ("ann@example.com", "email"),
        ("https://example.com/a", "uri"),
        ("http://localhost:8080", "uri"),
        ("hello", None),
        ("2024-01-15 and more", None),
    ])
    def test_string_formats(self, inferencer, value, fmt):
        """Test string format sniffing."""
        schema = inferencer.infer(value)

        assert schema.kind == "string"
        assert schema.format == fmt


class TestLiteralParsing:
    """Test suite for query-string literal parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("42", 42),
        ("-7", -7),
        ("1.5", 1.5),
        ("true", True),
        ("false", False),
        ("abc", "abc"),
        ("", ""),
        ("True", "True"),
    ])
    def test_parse_literal(self, raw, expected):
        """Test integer, float and boolean parsing."""
        value = SchemaInferencer.parse_literal(raw)

        assert value == expected
        assert type(value) is type(expected)

    def test_infer_literal_returns_value_and_schema(self, inferencer):
        """Test that infer_literal pairs the parsed value with its schema."""
        assert inferencer.infer_literal("true") == (True, Schema(kind="boolean"))
        assert inferencer.infer_literal("10") == (10, Schema(kind="integer"))


class TestSchemaValidation:
    """Test suite for Schema construction checks."""

    def test_unknown_kind_rejected(self):
        """Test that unknown kinds raise ValueError."""
        with pytest.raises(ValueError):
            Schema(kind="date")

    def test_required_must_be_subset_of_properties(self):
        """Test that required names must exist in properties."""
        with pytest.raises(ValueError):
            Schema(kind="object", properties={"a": Schema(kind="string")}, required=("b",))


class TestSchemaMerge:
    """Test suite for SchemaMerger.merge()."""

    def test_empty_input_raises(self, merger):
        """Test that merging nothing is an error."""
        with pytest.raises(ValueError):
            merger.merge([])

    def test_single_schema_returned_unchanged(self, merger, inferencer):
        """Test merge idempotence for one schema."""
        schema = inferencer.infer({"id": 1, "name": "Ann"})

        assert merger.merge([schema]) is schema

    def test_merge_with_itself(self, merger, inferencer):
        """Test merge([s, s]) == merge([s])."""
        schema = inferencer.infer({"id": 1, "items": [{"sku": "a"}], "note": None})

        assert merger.merge([schema, schema]) == merger.merge([schema])

    def test_object_union_is_commutative(self, merger, inferencer):
        """Test that property names and required set do not depend on order."""
        a = inferencer.infer({"id": 1, "name": "Ann"})
        b = inferencer.infer({"id": 2, "email": "b@x.io", "age": 30})

        ab = merger.merge([a, b])
        ba = merger.merge([b, a])

        assert set(ab.properties) == set(ba.properties) == {"id", "name", "email", "age"}
        assert set(ab.required) == set(ba.required)

    def test_required_is_union_of_samples(self, merger, inferencer):
        """Test the permissive required union."""
        a = inferencer.infer({"id": 1, "name": "Ann"})
        b = inferencer.infer({"id": 2, "email": "b@x.io"})

        merged = merger.merge([a, b])

        assert set(merged.required) == {"id", "name", "email"}

    def test_null_sample_makes_property_optional_and_nullable(self, merger, inferencer):
        """Test that a property seen as null is nullable and not required."""
        a = inferencer.infer({"id": 42, "name": "Ann"})
        b = inferencer.infer({"id": 7, "name": None})

        merged = merger.merge([a, b])

        assert merged.properties["id"] == Schema(kind="integer")
        assert merged.properties["name"] == Schema(kind="string", nullable=True)
        assert merged.required == ("id",)

    def test_same_kind_scalars_keep_first(self, merger):
        """Test that same-kind scalars merge to the first schema."""
        merged = merger.merge([Schema(kind="string", format="email"), Schema(kind="string")])

        assert merged == Schema(kind="string", format="email")

    def test_mixed_kinds_become_alternatives(self, merger):
        """Test that incompatible shapes are kept as alternatives."""
        merged = merger.merge([Schema(kind="integer"), Schema(kind="string"), Schema(kind="integer")])

        assert merged.kind == "alternatives"
        assert merged.options == (Schema(kind="integer"), Schema(kind="string"))

    def test_nested_alternatives_flatten(self, merger):
        """Test that merging alternatives does not nest them."""
        first = merger.merge([Schema(kind="integer"), Schema(kind="string")])

        merged = merger.merge([first, Schema(kind="boolean")])

        assert merged.options == (Schema(kind="integer"), Schema(kind="string"), Schema(kind="boolean"))

    def test_nested_objects_merge_recursively(self, merger, inferencer):
        """Test recursive property merge."""
        a = inferencer.infer({"user": {"id": 1}})
        b = inferencer.infer({"user": {"id": 2, "role": "admin"}})

        merged = merger.merge([a, b])

        assert set(merged.properties["user"].properties) == {"id", "role"}

    def test_inputs_not_mutated(self, merger, inferencer):
        """Test that merge builds new schemas."""
        a = inferencer.infer({"id": 1})
        b = inferencer.infer({"name": "x"})

        merger.merge([a, b])

        assert list(a.properties) == ["id"]
        assert list(b.properties) == ["name"]

    def test_merge_values(self, merger):
        """Test inferring and merging raw values in one call."""
        merged = merger.merge_values([{"id": 1}, {"id": 2, "x": True}])

        assert set(merged.properties) == {"id", "x"}


class TestSchemaRendering:
    """Test suite for Schema.to_openapi()."""

    def test_object_rendering(self, inferencer):
        """Test OpenAPI 3.0 object rendering."""
        schema = inferencer.infer({"id": 1, "name": None})

        assert schema.to_openapi("3.0") == {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "name": {"type": "string", "nullable": True},
            },
            "required": ["id"],
        }

    def test_alternatives_render_as_one_of(self):
        """Test 3.0 oneOf rendering."""
        schema = Schema(kind="alternatives", options=(Schema(kind="integer"), Schema(kind="string")))

        assert schema.to_openapi("3.0") == {"oneOf": [{"type": "integer"}, {"type": "string"}]}

    def test_swagger2_rendering(self):
        """Test that 2.0 uses x-nullable and x-alternatives."""
        nullable = Schema(kind="string", nullable=True)
        alternatives = Schema(kind="alternatives", options=(Schema(kind="integer"), Schema(kind="string")))

        assert nullable.to_openapi("2.0") == {"type": "string", "x-nullable": True}
        rendered = alternatives.to_openapi("2.0")
        assert rendered["type"] == "integer"
        assert rendered["x-alternatives"] == [{"type": "integer"}, {"type": "string"}]

    def test_array_rendering(self, inferencer):
        """Test array items rendering."""
        assert inferencer.infer([]).to_openapi() == {"type": "array", "items": {"type": "string"}}
