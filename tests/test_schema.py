"""Tests for tagged schema definitions and JSON Schema interchange."""

from __future__ import annotations

import pytest

from toolstream.ai.tools.schema import (
    NO_DEFAULT,
    ArraySchema,
    BooleanSchema,
    IntegerSchema,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    Property,
    SchemaDefinitionError,
    SchemaType,
    StringFormat,
    StringSchema,
    schema_from_json,
)


class TestSchemaConstruction:
    def test_each_variant_carries_its_tag(self) -> None:
        assert StringSchema().type is SchemaType.STRING
        assert NumberSchema().type is SchemaType.NUMBER
        assert IntegerSchema().type is SchemaType.INTEGER
        assert BooleanSchema().type is SchemaType.BOOLEAN
        assert NullSchema().type is SchemaType.NULL
        assert ArraySchema(items=StringSchema()).type is SchemaType.ARRAY
        assert ObjectSchema().type is SchemaType.OBJECT

    def test_string_format_is_coerced_from_text(self) -> None:
        schema = StringSchema(format="date-time")  # type: ignore[arg-type]

        assert schema.format is StringFormat.DATE_TIME

    def test_unknown_string_format_is_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="Unsupported string format"):
            StringSchema(format="hostname")  # type: ignore[arg-type]

    def test_inverted_bounds_are_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            StringSchema(min_length=5, max_length=2)
        with pytest.raises(SchemaDefinitionError):
            IntegerSchema(minimum=10, maximum=1)
        with pytest.raises(SchemaDefinitionError):
            ArraySchema(items=NullSchema(), min_items=3, max_items=1)

    def test_enum_is_stored_as_tuple(self) -> None:
        assert StringSchema(enum=["a", "b"]).enum == ("a", "b")  # type: ignore[arg-type]

    def test_array_items_must_be_a_schema(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="Array items"):
            ArraySchema(items={"type": "string"})  # type: ignore[arg-type]

    def test_object_wraps_bare_property_schemas(self) -> None:
        schema = ObjectSchema(properties={"q": StringSchema()})  # type: ignore[dict-item]

        prop = schema.properties["q"]
        assert isinstance(prop, Property)
        assert prop.default is NO_DEFAULT
        assert not prop.has_default

    def test_object_deduplicates_required_names(self) -> None:
        schema = ObjectSchema(properties={"a": StringSchema()}, required=("a", "a"))  # type: ignore[dict-item]

        assert schema.required == ("a",)
        assert schema.is_required("a")
        assert not schema.is_required("b")

    def test_none_is_a_real_default(self) -> None:
        prop = Property(NullSchema(), default=None)

        assert prop.has_default

    def test_default_must_match_its_schema(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="does not match its schema"):
            Property(IntegerSchema(minimum=1), default=0)

    def test_default_is_stored_normalized(self) -> None:
        options = ObjectSchema(properties={"a": StringSchema()})  # type: ignore[dict-item]

        assert Property(options, default={"a": "x", "extra": 1}).default == {"a": "x"}
        assert Property(IntegerSchema(), default=2.0).default == 2

    def test_property_schema_must_be_a_schema(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="Property schema"):
            Property({"type": "string"})  # type: ignore[arg-type]


class TestToJsonSchema:
    def test_object_renders_nested_json_schema(self) -> None:
        schema = ObjectSchema(
            properties={
                "query": Property(StringSchema(min_length=1, max_length=64), description="Search text"),
                "limit": Property(IntegerSchema(minimum=1, maximum=50), default=10),
                "tags": ArraySchema(items=StringSchema(enum=("a", "b")), max_items=3),  # type: ignore[dict-item]
                "when": StringSchema(format=StringFormat.DATE_TIME),  # type: ignore[dict-item]
            },
            required=("query",),
        )

        assert schema.to_json_schema() == {
            "type": "object",
            "properties": {
                "query": {"type": "string", "minLength": 1, "maxLength": 64, "description": "Search text"},
                "limit": {"type": "integer", "minimum": 1, "maximum": 50, "default": 10},
                "tags": {"type": "array", "items": {"type": "string", "enum": ["a", "b"]}, "maxItems": 3},
                "when": {"type": "string", "format": "date-time"},
            },
            "required": ["query"],
        }

    def test_zero_bounds_are_rendered(self) -> None:
        assert NumberSchema(minimum=0, maximum=0).to_json_schema() == {
            "type": "number",
            "minimum": 0,
            "maximum": 0,
        }

    def test_required_is_omitted_when_empty(self) -> None:
        assert "required" not in ObjectSchema().to_json_schema()


class TestSchemaFromJson:
    def test_builds_tagged_variants(self) -> None:
        schema = schema_from_json(
            {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "maxLength": 10, "format": "email"},
                    "count": {"type": "integer", "minimum": 0, "default": 1},
                    "ratio": {"type": "number"},
                    "flags": {"type": "array", "items": {"type": "boolean"}},
                    "nothing": {"type": "null"},
                },
                "required": ["name"],
            }
        )

        assert isinstance(schema, ObjectSchema)
        assert schema.required == ("name",)
        assert schema.properties["name"].schema == StringSchema(max_length=10, format=StringFormat.EMAIL)
        assert schema.properties["count"].default == 1
        assert isinstance(schema.properties["ratio"].schema, NumberSchema)
        flags = schema.properties["flags"].schema
        assert isinstance(flags, ArraySchema)
        assert isinstance(flags.items, BooleanSchema)
        assert isinstance(schema.properties["nothing"].schema, NullSchema)

    def test_rendered_schema_converts_back(self) -> None:
        original = ObjectSchema(
            properties={"q": StringSchema(min_length=1), "n": Property(IntegerSchema(), default=3)},  # type: ignore[dict-item]
            required=("q",),
        )

        assert schema_from_json(original.to_json_schema()) == original

    def test_meta_schema_violation_is_reported(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="Invalid JSON schema"):
            schema_from_json({"type": "string", "minLength": -1})

    def test_union_types_are_unsupported(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="single type name"):
            schema_from_json({"type": ["string", "null"]})

    def test_array_requires_items_schema(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="items"):
            schema_from_json({"type": "array"})

    def test_non_mapping_is_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            schema_from_json(["string"])  # type: ignore[arg-type]

    def test_invalid_default_is_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="does not match its schema"):
            schema_from_json(
                {"type": "object", "properties": {"limit": {"type": "integer", "minimum": 1, "default": 0}}}
            )
